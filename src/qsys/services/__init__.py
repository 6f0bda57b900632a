"""Business logic services for the queueing platform."""

from .background import DeferredTasks, TaskSink
from .branch_resolver import BranchResolver, ResolvedBranch
from .daily_stats import DailyStatsAggregator
from .display import DisplayService
from .queue_service import QueueService
from .queue_state import QueueStateMachine
from .registration import RegistrationService
from .status_query import StatusQueryService
from .wait_time import WaitTimeEstimator

__all__ = [
    "BranchResolver",
    "DailyStatsAggregator",
    "DeferredTasks",
    "DisplayService",
    "QueueService",
    "QueueStateMachine",
    "RegistrationService",
    "ResolvedBranch",
    "StatusQueryService",
    "TaskSink",
    "WaitTimeEstimator",
]

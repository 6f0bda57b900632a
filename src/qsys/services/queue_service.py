"""Queue operations with their statistics follow-ups wired in.

Each method commits its primary transaction first and only then queues the
best-effort follow-ups on the caller's :class:`TaskSink`.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from qsys.models.daily_stat import STAT_RESERVED, STAT_SEATED, STAT_SKIPPED
from qsys.services.background import TaskSink, dispatch
from qsys.services.branch_resolver import BranchResolver
from qsys.services.daily_stats import DailyStatsAggregator
from qsys.services.queue_state import QueueStateMachine, TransitionResult
from qsys.services.registration import RegistrationResult, RegistrationService
from qsys.services.status_query import StatusQueryService, TicketStatus
from qsys.services.wait_time import WaitTimeEstimator


class QueueService:
    """Entry point used by the HTTP layer and the scripts."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory
        self.resolver = BranchResolver(session_factory)
        self.estimator = WaitTimeEstimator(session_factory)
        self.stats = DailyStatsAggregator(session_factory)
        self.state = QueueStateMachine(session_factory)
        self.registration = RegistrationService(session_factory, self.resolver)
        self.status = StatusQueryService(session_factory, self.estimator)

    async def register(
        self,
        tasks: TaskSink,
        branch_param: str,
        name: str | None,
        pax: Any,
        phone: str | None = None,
        priority_class: str | None = None,
        date_key: str | None = None,
    ) -> RegistrationResult:
        result = await self.registration.register(
            branch_param, name, pax, phone, priority_class, date_key
        )
        dispatch(
            tasks, "reserved-event", self.stats.record_event,
            result.branch_code, result.date_key, STAT_RESERVED, result.ticket_id,
            result.branch_name,
        )
        self._refresh_snapshot(tasks, result.branch_code, result.date_key, result.branch_name)
        return result

    async def call(
        self, tasks: TaskSink, branch_code: str, group: str, ticket_id: str
    ) -> TransitionResult:
        result = await self.state.call(branch_code, group, ticket_id)
        self._refresh_snapshot(tasks, result.branch_code, result.date_key, result.branch_name)
        return result

    async def toggle_call(
        self, tasks: TaskSink, branch_code: str, group: str, ticket_id: str
    ) -> TransitionResult:
        result = await self.state.toggle_call(branch_code, group, ticket_id)
        self._refresh_snapshot(tasks, result.branch_code, result.date_key, result.branch_name)
        return result

    async def seat(
        self, tasks: TaskSink, branch_code: str, group: str, ticket_id: str
    ) -> TransitionResult:
        """Seat a ticket; a fresh seating adds a wait sample and a seated event."""
        result = await self.state.seat(branch_code, group, ticket_id)
        if result.changed:
            dispatch(
                tasks, "wait-sample", self.estimator.record_sample,
                result.branch_code, result.group, result.created_at, result.seated_at,
            )
            dispatch(
                tasks, "seated-event", self.stats.record_event,
                result.branch_code, result.date_key, STAT_SEATED, result.ticket_id,
                result.branch_name,
            )
            self._refresh_snapshot(tasks, result.branch_code, result.date_key, result.branch_name)
        return result

    async def skip(
        self, tasks: TaskSink, branch_code: str, group: str, ticket_id: str
    ) -> TransitionResult:
        result = await self.state.skip(branch_code, group, ticket_id)
        if result.changed:
            dispatch(
                tasks, "skipped-event", self.stats.record_event,
                result.branch_code, result.date_key, STAT_SKIPPED, result.ticket_id,
                result.branch_name,
            )
            self._refresh_snapshot(tasks, result.branch_code, result.date_key, result.branch_name)
        return result

    async def get_status(
        self, branch_code: str, date_key: str, group: str, ticket_id: str
    ) -> TicketStatus:
        return await self.status.get_status(branch_code, date_key, group, ticket_id)

    def _refresh_snapshot(
        self, tasks: TaskSink, branch_code: str, date_key: str, branch_name: str | None
    ) -> None:
        dispatch(
            tasks, "waiting-snapshot", self.stats.refresh_waiting_now_snapshot,
            branch_code, date_key, branch_name,
        )

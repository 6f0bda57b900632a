"""
Pydantic schemas for API request/response models.

Field names are snake_case in Python and camelCase on the wire.
"""

from .branch import BranchResponse
from .common import ActionResponse, CamelModel, ErrorResponse
from .display import DisplayFeedResponse, GroupFeedOut, StaffBoardResponse
from .stats import DashboardResponse, WaitingSnapshotResponse
from .ticket import RegisterRequest, RegisterResponse, TicketResponse, TicketStatusResponse

__all__ = [
    "ActionResponse", "CamelModel", "ErrorResponse",
    "BranchResponse",
    "DashboardResponse", "WaitingSnapshotResponse",
    "DisplayFeedResponse", "GroupFeedOut", "StaffBoardResponse",
    "RegisterRequest", "RegisterResponse", "TicketResponse", "TicketStatusResponse",
]

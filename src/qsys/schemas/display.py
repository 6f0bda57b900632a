"""Display feed and staff board schemas."""

from datetime import datetime

from pydantic import Field

from qsys.schemas.common import CamelModel


class CalledOut(CamelModel):
    code: str
    name: str
    pax: int
    updated_at: datetime | None = Field(None, description="When the ticket was called")


class WaitingOut(CamelModel):
    id: str
    code: str
    name: str
    pax: int
    timestamp: datetime = Field(..., description="Registration time")


class GroupFeedOut(CamelModel):
    """One lane on the public display."""

    called: CalledOut | None = None
    waiting: list[WaitingOut] = Field(default_factory=list)


class BoardTicketOut(CamelModel):
    id: str
    group: str
    number: int
    code: str
    name: str
    pax: int
    phone: str
    priority_class: str
    status: str
    created_at: datetime
    called_at: datetime | None = None


class NowServingOut(CamelModel):
    ticket_id: str
    group: str | None = None
    code: str | None = None
    name: str | None = None
    pax: int | None = None
    updated_at: datetime | None = None


class StaffBoardResponse(CamelModel):
    """Staff panel feed: active tickets per lane plus the branch pointer."""

    ok: bool = True
    branch_code: str
    branch_name: str
    date: str
    groups: dict[str, list[BoardTicketOut]]
    now_serving: NowServingOut | None = None


class DisplayFeedResponse(CamelModel):
    """Public display: the resolved branch and one entry per lane."""

    ok: bool = True
    branch_code: str
    branch_name: str
    date: str
    groups: dict[str, GroupFeedOut]

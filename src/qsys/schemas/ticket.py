"""Ticket registration and status schemas."""

from datetime import datetime

from pydantic import AliasChoices, Field

from qsys.schemas.common import CamelModel


class RegisterRequest(CamelModel):
    """Guest registration form.

    ``pax`` may arrive as a string from HTML forms; the service parses it so
    that bad values get a field-level message instead of a generic 422.
    """

    name: str | None = Field(None, max_length=120, description="Name to call out")
    pax: int | float | str | None = Field(None, description="Party size")
    phone: str | None = Field(None, max_length=40, description="Optional contact number")
    priority_class: str | None = Field(
        None,
        validation_alias=AliasChoices("priorityClass", "priority", "priority_class"),
        description="none, senior or pwd",
    )
    date: str | None = Field(None, description="Day partition override (YYYY-MM-DD)")


class RegisterResponse(CamelModel):
    """Where the new ticket lives and what the guest should listen for."""

    ok: bool = True
    branch_code: str
    branch_name: str
    date: str = Field(..., description="Day partition (YYYY-MM-DD)")
    group: str
    ticket_id: str
    number: int
    code: str


class TicketResponse(CamelModel):
    """Full ticket record for the guest's ticket page."""

    id: str
    branch_code: str
    branch_name: str | None = None
    date_key: str = Field(..., serialization_alias="date")
    group: str
    number: int
    code: str
    name: str
    pax: int
    priority_class: str
    status: str
    created_at: datetime
    called_at: datetime | None = None
    seated_at: datetime | None = None


class TicketStatusResponse(CamelModel):
    """Answer to "where am I in line"."""

    ok: bool = True
    position_in_group: int = Field(..., ge=0)
    total_in_group: int = Field(..., ge=0)
    eta_minutes: int = Field(..., ge=0)
    now_serving_code: str | None = None

"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that speaks camelCase on the wire and snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class ErrorResponse(CamelModel):
    """Body returned for every domain failure."""

    ok: bool = False
    error: str = Field(..., description="Human-readable error message")
    field: str | None = Field(None, description="Offending input field, when known")


class ActionResponse(CamelModel):
    """Acknowledgement of a staff action."""

    ok: bool = True
    ticket_id: str
    status: str = Field(..., description="Ticket status after the action")
    changed: bool = Field(True, description="False when the action was a no-op")

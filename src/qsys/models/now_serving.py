"""Denormalized "now serving" pointers maintained by the queue state machine."""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from qsys.db.session import Base

# Slot holding the most recent call across all groups of a branch.
BRANCH_SLOT = "current"


class NowServing(Base):
    """Which ticket is currently called, per group slot and per branch.

    Rows are written only inside the transaction that changes the ticket they
    point at. An empty pointer has ``ticket_id`` set to NULL.
    """

    __tablename__ = "now_serving"

    branch_code: Mapped[str] = mapped_column(String(64), primary_key=True)
    # One of the group letters, or BRANCH_SLOT.
    slot: Mapped[str] = mapped_column(String(16), primary_key=True)
    ticket_id: Mapped[str | None] = mapped_column(String(32), nullable=True)
    group: Mapped[str | None] = mapped_column(String(1), nullable=True)
    code: Mapped[str | None] = mapped_column(String(16), nullable=True)
    name: Mapped[str | None] = mapped_column(Text, nullable=True)
    pax: Mapped[int | None] = mapped_column(Integer, nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def is_empty(self) -> bool:
        return self.ticket_id is None

    def point_at(self, *, ticket_id: str, group: str, code: str, name: str, pax: int,
                 at: datetime) -> None:
        self.ticket_id = ticket_id
        self.group = group
        self.code = code
        self.name = name
        self.pax = pax
        self.updated_at = at

    def clear(self, at: datetime) -> None:
        self.ticket_id = None
        self.group = None
        self.code = None
        self.name = None
        self.pax = None
        self.updated_at = at

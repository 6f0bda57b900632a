"""SQLAlchemy models for queue tickets and their per-day counters."""

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from qsys.db.session import Base

GROUPS: tuple[str, ...] = ("P", "A", "B", "C")

PRIORITY_NONE = "none"
PRIORITY_SENIOR = "senior"
PRIORITY_PWD = "pwd"
PRIORITY_CLASSES: tuple[str, ...] = (PRIORITY_NONE, PRIORITY_SENIOR, PRIORITY_PWD)

# Ticket status machine:
# waiting -> called -> seated | skipped, called -> waiting (uncall), waiting -> skipped.
STATUS_WAITING = "waiting"
STATUS_CALLED = "called"
STATUS_SEATED = "seated"
STATUS_SKIPPED = "skipped"
# Written by older clients only; treated as terminal wherever statuses are read.
STATUS_CANCELLED = "cancelled"

ACTIVE_STATUSES: tuple[str, ...] = (STATUS_WAITING, STATUS_CALLED)
TERMINAL_STATUSES: tuple[str, ...] = (STATUS_SEATED, STATUS_SKIPPED, STATUS_CANCELLED)


class Ticket(Base):
    """One guest party's place in a branch/day/group queue."""

    __tablename__ = "queue_ticket"
    __table_args__ = (
        UniqueConstraint("branch_code", "date_key", "group", "number", name="uq_ticket_number"),
        Index("ix_ticket_lane_status", "branch_code", "date_key", "group", "status"),
        Index("ix_ticket_called", "branch_code", "group", "status"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    branch_code: Mapped[str] = mapped_column(String(64), nullable=False)
    branch_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    date_key: Mapped[str] = mapped_column(String(10), nullable=False)
    group: Mapped[str] = mapped_column(String(1), nullable=False)
    number: Mapped[int] = mapped_column(Integer, nullable=False)
    code: Mapped[str] = mapped_column(String(16), nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    pax: Mapped[int] = mapped_column(Integer, nullable=False)
    phone: Mapped[str] = mapped_column(Text, nullable=False, default="")
    priority_class: Mapped[str] = mapped_column(String(16), nullable=False, default=PRIORITY_NONE)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=STATUS_WAITING)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    called_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    seated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES


class QueueCounter(Base):
    """Last issued ticket number for one branch/day/group lane.

    Only the sequencer touches this row, and only inside the transaction that
    inserts the ticket carrying the new number.
    """

    __tablename__ = "queue_counter"

    branch_code: Mapped[str] = mapped_column(String(64), primary_key=True)
    date_key: Mapped[str] = mapped_column(String(10), primary_key=True)
    group: Mapped[str] = mapped_column(String(1), primary_key=True)
    current: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

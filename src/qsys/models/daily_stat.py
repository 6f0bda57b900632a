"""Per-branch daily counters for the admin dashboard."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKeyConstraint, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from qsys.db.session import Base

STAT_RESERVED = "reserved"
STAT_SEATED = "seated"
STAT_SKIPPED = "skipped"
STAT_ACTIONS: tuple[str, ...] = (STAT_RESERVED, STAT_SEATED, STAT_SKIPPED)


class DailyStat(Base):
    """Totals and the live waiting gauge for one branch on one day."""

    __tablename__ = "daily_stat"

    date_key: Mapped[str] = mapped_column(String(10), primary_key=True)
    branch_code: Mapped[str] = mapped_column(String(64), primary_key=True)
    branch_name: Mapped[str | None] = mapped_column(Text, nullable=True)

    reserved: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    seated: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    skipped: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Point-in-time gauge, overwritten by every snapshot refresh.
    waiting_p: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    waiting_a: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    waiting_b: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    waiting_c: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Flattened keys carried over from the previous document schema, e.g.
    # {"totals.reserved": 12}. Read only through the aggregator's accessor.
    legacy_totals: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class DailyStatEvent(Base):
    """Idempotency ledger entry: one row per counted (action, ticket) pair."""

    __tablename__ = "daily_stat_event"
    __table_args__ = (
        ForeignKeyConstraint(
            ["date_key", "branch_code"],
            ["daily_stat.date_key", "daily_stat.branch_code"],
            ondelete="CASCADE",
        ),
    )

    date_key: Mapped[str] = mapped_column(String(10), primary_key=True)
    branch_code: Mapped[str] = mapped_column(String(64), primary_key=True)
    # "{action}__{ticket_id}"
    event_key: Mapped[str] = mapped_column(String(64), primary_key=True)
    action: Mapped[str] = mapped_column(String(16), nullable=False)
    ticket_id: Mapped[str] = mapped_column(String(32), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

"""Idempotent per-branch daily statistics for the admin dashboard.

Counters are keyed by (date, branch). Each increment is guarded by a ledger
row keyed ``{action}__{ticket_id}`` written in the same transaction, so a
retried or duplicated event is counted once. The ``waitingNow`` gauge is a
plain recomputation from the ticket table and is safe to refresh redundantly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from qsys.core.errors import InvalidInputError, ServerError, StatsRecordingError
from qsys.db.time import utcnow, validate_date_key
from qsys.db.transaction import run_transaction
from qsys.models.daily_stat import STAT_ACTIONS, DailyStat, DailyStatEvent
from qsys.models.ticket import GROUPS
from qsys.repositories.ticket_repo import TicketRepository

logger = logging.getLogger(__name__)

LEGACY_RESERVED_KEY = "totals.reserved"


def event_key(action: str, ticket_id: str) -> str:
    """Return the ledger key for one counted action."""
    return f"{action}__{ticket_id}"


def coalesce_reserved(stat: DailyStat) -> int:
    """Return the reserved total, tolerating the flattened legacy field.

    Documents written before the nested ``totals`` layout stored the count
    under the literal key ``"totals.reserved"``. Until those rows are
    migrated, take the larger of both so nothing is under-counted.
    """
    nested = int(stat.reserved or 0)
    legacy: Any = (stat.legacy_totals or {}).get(LEGACY_RESERVED_KEY)
    try:
        flattened = int(legacy) if legacy is not None else 0
    except (TypeError, ValueError):
        flattened = 0
    return max(nested, flattened)


@dataclass
class BranchDailyStats:
    """Dashboard row for one branch on one day."""

    date_key: str
    branch_code: str
    branch_name: str
    reserved: int
    seated: int
    skipped: int
    waiting_now: dict[str, int]


@dataclass
class DailyStatsSummary:
    """Dashboard totals across branches plus the per-branch rows."""

    date_key: str
    reserved: int = 0
    seated: int = 0
    skipped: int = 0
    waiting_now: dict[str, int] = field(default_factory=lambda: {g: 0 for g in GROUPS})
    by_branch: list[BranchDailyStats] = field(default_factory=list)


def _waiting_now(stat: DailyStat) -> dict[str, int]:
    return {
        "P": int(stat.waiting_p or 0),
        "A": int(stat.waiting_a or 0),
        "B": int(stat.waiting_b or 0),
        "C": int(stat.waiting_c or 0),
    }


def _to_branch_row(stat: DailyStat) -> BranchDailyStats:
    return BranchDailyStats(
        date_key=stat.date_key,
        branch_code=stat.branch_code,
        branch_name=stat.branch_name or stat.branch_code,
        reserved=coalesce_reserved(stat),
        seated=int(stat.seated or 0),
        skipped=int(stat.skipped or 0),
        waiting_now=_waiting_now(stat),
    )


class DailyStatsAggregator:
    """Accumulates reserved/seated/skipped counters and the waiting gauge."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def record_event(
        self,
        branch_code: str,
        date_key: str,
        action: str,
        ticket_id: str,
        branch_name: str | None = None,
    ) -> bool:
        """Count ``action`` for ``ticket_id`` at most once.

        Returns:
            True if this call incremented the counter, False if the pair had
            already been counted.

        Raises:
            InvalidInputError: For an unknown action or malformed date.
            StatsRecordingError: If the store write failed.
        """
        if action not in STAT_ACTIONS:
            raise InvalidInputError("action", f"Unknown stats action {action!r}.")
        validate_date_key(date_key)
        key = event_key(action, ticket_id)

        async def _work(session: AsyncSession) -> bool:
            if await session.get(DailyStatEvent, (date_key, branch_code, key)) is not None:
                return False
            now = utcnow()
            stat = await self._lock_stat(session, date_key, branch_code, branch_name)
            session.add(
                DailyStatEvent(
                    date_key=date_key,
                    branch_code=branch_code,
                    event_key=key,
                    action=action,
                    ticket_id=ticket_id,
                    created_at=now,
                )
            )
            setattr(stat, action, int(getattr(stat, action) or 0) + 1)
            stat.updated_at = now
            await session.flush()
            return True

        try:
            counted = await run_transaction(self._session_factory, _work, label="stats-event")
        except (ServerError, SQLAlchemyError) as exc:
            raise StatsRecordingError(f"Could not record {key} for {branch_code}") from exc
        if not counted:
            logger.debug("Stats event %s for %s on %s already counted", key, branch_code, date_key)
        return counted

    async def refresh_waiting_now_snapshot(
        self, branch_code: str, date_key: str, branch_name: str | None = None
    ) -> dict[str, int]:
        """Recompute the per-group waiting gauge from the ticket table.

        Last write wins; the gauge is a point-in-time reading, not a counter.

        Raises:
            StatsRecordingError: If the store write failed.
        """
        validate_date_key(date_key)

        async def _work(session: AsyncSession) -> dict[str, int]:
            counts = await TicketRepository(session).count_active_by_group(branch_code, date_key)
            stat = await self._lock_stat(session, date_key, branch_code, branch_name)
            stat.waiting_p = counts["P"]
            stat.waiting_a = counts["A"]
            stat.waiting_b = counts["B"]
            stat.waiting_c = counts["C"]
            stat.updated_at = utcnow()
            await session.flush()
            return counts

        try:
            return await run_transaction(self._session_factory, _work, label="waiting-snapshot")
        except (ServerError, SQLAlchemyError) as exc:
            raise StatsRecordingError(
                f"Could not refresh waiting snapshot for {branch_code} on {date_key}"
            ) from exc

    async def get_branch_stats(self, branch_code: str, date_key: str) -> BranchDailyStats | None:
        """Return one branch's row for a day, or None if nothing was recorded."""
        validate_date_key(date_key)
        async with self._session_factory() as session:
            stat = await session.get(DailyStat, (date_key, branch_code))
            return _to_branch_row(stat) if stat is not None else None

    async def get_daily_stats(self, date_key: str) -> DailyStatsSummary:
        """Aggregate every branch's counters for ``date_key``."""
        validate_date_key(date_key)
        async with self._session_factory() as session:
            result = await session.execute(
                select(DailyStat)
                .where(DailyStat.date_key == date_key)
                .order_by(DailyStat.branch_code)
            )
            rows = [_to_branch_row(stat) for stat in result.scalars()]

        summary = DailyStatsSummary(date_key=date_key, by_branch=rows)
        for row in rows:
            summary.reserved += row.reserved
            summary.seated += row.seated
            summary.skipped += row.skipped
            for group in GROUPS:
                summary.waiting_now[group] += row.waiting_now.get(group, 0)
        return summary

    @staticmethod
    async def _lock_stat(
        session: AsyncSession, date_key: str, branch_code: str, branch_name: str | None
    ) -> DailyStat:
        result = await session.execute(
            select(DailyStat)
            .where(DailyStat.date_key == date_key, DailyStat.branch_code == branch_code)
            .with_for_update()
        )
        stat = result.scalars().first()
        if stat is None:
            stat = DailyStat(
                date_key=date_key,
                branch_code=branch_code,
                branch_name=branch_name or branch_code,
                reserved=0,
                seated=0,
                skipped=0,
                waiting_p=0,
                waiting_a=0,
                waiting_b=0,
                waiting_c=0,
            )
            session.add(stat)
            await session.flush()
        elif branch_name and not stat.branch_name:
            stat.branch_name = branch_name
        return stat

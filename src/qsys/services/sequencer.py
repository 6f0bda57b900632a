"""Ticket numbering and queue lane assignment."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from qsys.core.errors import InvalidInputError
from qsys.core.settings import settings
from qsys.db.time import utcnow
from qsys.models.ticket import (
    PRIORITY_CLASSES,
    PRIORITY_NONE,
    PRIORITY_PWD,
    PRIORITY_SENIOR,
    QueueCounter,
)


def assign_group(pax: int, priority_class: str) -> str:
    """Return the queue lane for a party.

    Senior and PWD guests always go to ``P`` regardless of party size; other
    parties go to ``A`` (1-2), ``B`` (3-4) or ``C`` (5+).
    """
    if priority_class in (PRIORITY_SENIOR, PRIORITY_PWD):
        return "P"
    if pax <= 2:
        return "A"
    if pax <= 4:
        return "B"
    return "C"


def normalize_priority(value: str | None) -> str:
    """Lowercase a priority class, defaulting blanks to ``none``."""
    priority = (value or PRIORITY_NONE).strip().lower() or PRIORITY_NONE
    if priority not in PRIORITY_CLASSES:
        raise InvalidInputError("priorityClass", f"Unknown priority class {value!r}.")
    return priority


def format_queue_code(group: str, number: int, width: int | None = None) -> str:
    """Return the guest-facing code, e.g. ``A03`` for group A, number 3, width 2."""
    pad = settings.queue_number_width if width is None else width
    return f"{group}{str(number).zfill(pad)}"


async def next_number(session: AsyncSession, branch_code: str, date_key: str, group: str) -> int:
    """Advance and return the lane counter inside the caller's transaction.

    Must run in the same transaction that inserts the ticket: if the insert
    fails the counter rolls back with it, so numbers are gapless.
    """
    result = await session.execute(
        select(QueueCounter)
        .where(
            QueueCounter.branch_code == branch_code,
            QueueCounter.date_key == date_key,
            QueueCounter.group == group,
        )
        .with_for_update()
    )
    counter = result.scalars().first()
    if counter is None:
        counter = QueueCounter(branch_code=branch_code, date_key=date_key, group=group, current=0)
        session.add(counter)
    counter.current = int(counter.current or 0) + 1
    counter.updated_at = utcnow()
    await session.flush()
    return counter.current

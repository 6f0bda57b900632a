"""Ticket status transitions driven by staff actions.

Transition table::

    waiting -> called | skipped
    called  -> waiting (uncall) | seated | skipped
    seated, skipped: terminal

At most one ticket per (branch, group) is ``called``. Every transition runs in
one transaction that also rewrites the group's and the branch's NowServing
pointers, so readers never see a ticket marked called while the pointer names
something else. The group pointer row is locked first in every transition and
acts as the per-group serialization point; the branch pointer is locked second.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from qsys.core.errors import InvalidInputError, InvalidTransitionError, TicketNotFoundError
from qsys.db.time import ensure_aware, utcnow
from qsys.db.transaction import run_transaction
from qsys.models.now_serving import BRANCH_SLOT, NowServing
from qsys.models.ticket import (
    GROUPS,
    STATUS_CALLED,
    STATUS_SEATED,
    STATUS_SKIPPED,
    STATUS_WAITING,
    TERMINAL_STATUSES,
    Ticket,
)
from qsys.repositories.ticket_repo import TicketRepository

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    STATUS_WAITING: frozenset({STATUS_CALLED, STATUS_SKIPPED}),
    STATUS_CALLED: frozenset({STATUS_WAITING, STATUS_SEATED, STATUS_SKIPPED}),
}


def can_transition(current: str, target: str) -> bool:
    """Return True if the transition table allows ``current -> target``."""
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def validate_group(group: str) -> str:
    """Return the uppercased group letter or raise for anything else."""
    value = (group or "").strip().upper()
    if value not in GROUPS:
        raise InvalidInputError("group", f"Unknown queue group {group!r}.")
    return value


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of one staff action, carrying what follow-ups need."""

    ticket_id: str
    branch_code: str
    branch_name: str | None
    date_key: str
    group: str
    code: str
    previous_status: str
    status: str
    changed: bool
    created_at: datetime
    called_at: datetime | None
    seated_at: datetime | None


def _result(ticket: Ticket, previous_status: str, changed: bool) -> TransitionResult:
    return TransitionResult(
        ticket_id=ticket.id,
        branch_code=ticket.branch_code,
        branch_name=ticket.branch_name,
        date_key=ticket.date_key,
        group=ticket.group,
        code=ticket.code,
        previous_status=previous_status,
        status=ticket.status,
        changed=changed,
        created_at=ensure_aware(ticket.created_at),
        called_at=ensure_aware(ticket.called_at) if ticket.called_at else None,
        seated_at=ensure_aware(ticket.seated_at) if ticket.seated_at else None,
    )


@dataclass
class _Lane:
    repo: TicketRepository
    group_pointer: NowServing
    branch_pointer: NowServing


class QueueStateMachine:
    """Apply call, toggle, seat and skip to tickets atomically."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def call(self, branch_code: str, group: str, ticket_id: str) -> TransitionResult:
        """Mark a ticket called, reverting any other called ticket in its group.

        Calling an already-called ticket refreshes its timestamp.

        Raises:
            TicketNotFoundError: If the ticket is missing or already retired.
        """
        group = validate_group(group)

        async def _work(session: AsyncSession) -> TransitionResult:
            lane = await self._lock_lane(session, branch_code, group)
            ticket = await self._active_ticket(lane.repo, branch_code, group, ticket_id)
            previous = ticket.status
            await self._apply_call(lane, ticket, utcnow())
            return _result(ticket, previous, True)

        result = await run_transaction(self._session_factory, _work, label="call")
        logger.info("Called %s (%s) at %s/%s", result.code, ticket_id, branch_code, group)
        return result

    async def toggle_call(self, branch_code: str, group: str, ticket_id: str) -> TransitionResult:
        """Uncall a called ticket, or call it otherwise, in one transaction.

        Raises:
            TicketNotFoundError: If the ticket is missing or already retired.
        """
        group = validate_group(group)

        async def _work(session: AsyncSession) -> TransitionResult:
            lane = await self._lock_lane(session, branch_code, group)
            ticket = await self._active_ticket(lane.repo, branch_code, group, ticket_id)
            previous = ticket.status
            now = utcnow()
            if ticket.status == STATUS_CALLED:
                ticket.status = STATUS_WAITING
                ticket.called_at = None
                self._release_pointers(lane, ticket.id, now)
            else:
                await self._apply_call(lane, ticket, now)
            await session.flush()
            return _result(ticket, previous, True)

        result = await run_transaction(self._session_factory, _work, label="toggle-call")
        logger.info(
            "Toggled %s (%s) at %s/%s: %s -> %s",
            result.code, ticket_id, branch_code, group, result.previous_status, result.status,
        )
        return result

    async def seat(self, branch_code: str, group: str, ticket_id: str) -> TransitionResult:
        """Seat a called ticket and retire it from the active queue.

        Re-seating an already retired ticket is a no-op (``changed`` is False).

        Raises:
            TicketNotFoundError: If no such ticket was ever issued.
            InvalidTransitionError: If the ticket has not been called.
        """
        return await self._retire(branch_code, group, ticket_id, STATUS_SEATED)

    async def skip(self, branch_code: str, group: str, ticket_id: str) -> TransitionResult:
        """Skip a waiting or called ticket; no wait sample is taken.

        Re-skipping an already retired ticket is a no-op (``changed`` is False).

        Raises:
            TicketNotFoundError: If no such ticket was ever issued.
        """
        return await self._retire(branch_code, group, ticket_id, STATUS_SKIPPED)

    async def _retire(
        self, branch_code: str, group: str, ticket_id: str, target: str
    ) -> TransitionResult:
        group = validate_group(group)

        async def _work(session: AsyncSession) -> TransitionResult:
            lane = await self._lock_lane(session, branch_code, group)
            ticket = await lane.repo.get(branch_code, group, ticket_id, for_update=True)
            if ticket is None:
                raise TicketNotFoundError(ticket_id)
            previous = ticket.status
            if previous in TERMINAL_STATUSES:
                return _result(ticket, previous, False)
            if not can_transition(previous, target):
                raise InvalidTransitionError(previous, target)
            now = utcnow()
            ticket.status = target
            if target == STATUS_SEATED:
                ticket.seated_at = now
            self._release_pointers(lane, ticket.id, now)
            await session.flush()
            return _result(ticket, previous, True)

        result = await run_transaction(self._session_factory, _work, label=target)
        if result.changed:
            logger.info("Ticket %s (%s) at %s/%s %s", result.code, ticket_id, branch_code,
                        group, target)
        else:
            logger.info("Ticket %s already %s; %s ignored", ticket_id, result.status, target)
        return result

    @staticmethod
    async def _lock_lane(session: AsyncSession, branch_code: str, group: str) -> _Lane:
        repo = TicketRepository(session)
        group_pointer = await repo.lock_now_serving(branch_code, group)
        branch_pointer = await repo.lock_now_serving(branch_code, BRANCH_SLOT)
        return _Lane(repo=repo, group_pointer=group_pointer, branch_pointer=branch_pointer)

    @staticmethod
    async def _active_ticket(
        repo: TicketRepository, branch_code: str, group: str, ticket_id: str
    ) -> Ticket:
        ticket = await repo.get(branch_code, group, ticket_id, for_update=True)
        if ticket is None or ticket.status in TERMINAL_STATUSES:
            raise TicketNotFoundError(ticket_id)
        return ticket

    @staticmethod
    async def _apply_call(lane: _Lane, ticket: Ticket, now: datetime) -> None:
        for other in await lane.repo.list_called(ticket.branch_code, ticket.group, for_update=True):
            if other.id != ticket.id:
                other.status = STATUS_WAITING
                other.called_at = None
        ticket.status = STATUS_CALLED
        ticket.called_at = now
        for pointer in (lane.group_pointer, lane.branch_pointer):
            pointer.point_at(
                ticket_id=ticket.id,
                group=ticket.group,
                code=ticket.code,
                name=ticket.name,
                pax=ticket.pax,
                at=now,
            )

    @staticmethod
    def _release_pointers(lane: _Lane, ticket_id: str, now: datetime) -> None:
        for pointer in (lane.group_pointer, lane.branch_pointer):
            if pointer.ticket_id == ticket_id:
                pointer.clear(now)

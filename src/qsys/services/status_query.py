"""Guest-facing "where am I in line" lookups."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from qsys.core.errors import TicketNotFoundError
from qsys.db.time import ensure_aware, validate_date_key
from qsys.models.ticket import Ticket
from qsys.repositories.ticket_repo import TicketRepository
from qsys.services.queue_state import validate_group
from qsys.services.wait_time import WaitTimeEstimator


@dataclass(frozen=True)
class TicketStatus:
    position_in_group: int
    total_in_group: int
    eta_minutes: int
    now_serving_code: str | None


class StatusQueryService:
    """Combine the active lane, the NowServing pointer and the estimator."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        estimator: WaitTimeEstimator | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._estimator = estimator or WaitTimeEstimator(session_factory)

    async def get_ticket(
        self, branch_code: str, date_key: str, group: str, ticket_id: str
    ) -> Ticket:
        """Return a ticket in any status.

        Raises:
            TicketNotFoundError: If no such ticket exists in that lane.
        """
        validate_date_key(date_key)
        group = validate_group(group)
        async with self._session_factory() as session:
            ticket = await TicketRepository(session).get(
                branch_code, group, ticket_id, date_key=date_key
            )
        if ticket is None:
            raise TicketNotFoundError(ticket_id)
        return ticket

    async def get_status(
        self, branch_code: str, date_key: str, group: str, ticket_id: str
    ) -> TicketStatus:
        """Return the ticket's 1-based position among active tickets and its ETA.

        The lane and the pointer are read in one transaction so the reply is
        a consistent snapshot.

        Raises:
            TicketNotFoundError: If the ticket is not waiting or called.
            InvalidInputError: For a malformed date or unknown group.
        """
        validate_date_key(date_key)
        group = validate_group(group)

        async with self._session_factory() as session, session.begin():
            repo = TicketRepository(session)
            active = await repo.list_active(branch_code, date_key, group)
            pointer = await repo.get_now_serving(branch_code, group)

        position = next((i for i, t in enumerate(active, start=1) if t.id == ticket_id), None)
        if position is None:
            raise TicketNotFoundError(ticket_id)
        ticket = active[position - 1]

        eta = await self._estimator.estimate_eta_minutes(
            branch_code, group, position, ensure_aware(ticket.created_at)
        )
        return TicketStatus(
            position_in_group=position,
            total_in_group=len(active),
            eta_minutes=eta,
            now_serving_code=pointer.code if pointer is not None and not pointer.is_empty else None,
        )

"""Data access helpers for queue tickets."""
from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from qsys.models.now_serving import NowServing
from qsys.models.ticket import ACTIVE_STATUSES, GROUPS, STATUS_CALLED, Ticket

__all__ = ["TicketRepository"]


class TicketRepository:
    """Queries over the ticket table scoped to branch/day/group lanes."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository with an async SQLAlchemy session."""
        self.session = session

    async def get(
        self,
        branch_code: str,
        group: str,
        ticket_id: str,
        *,
        date_key: str | None = None,
        for_update: bool = False,
    ) -> Ticket | None:
        """Return a ticket if it belongs to the given branch and group."""
        stmt = select(Ticket).where(
            Ticket.id == ticket_id,
            Ticket.branch_code == branch_code,
            Ticket.group == group,
        )
        if date_key is not None:
            stmt = stmt.where(Ticket.date_key == date_key)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_active(self, branch_code: str, date_key: str, group: str) -> list[Ticket]:
        """Return waiting and called tickets ordered by registration time."""
        result = await self.session.execute(
            select(Ticket)
            .where(
                Ticket.branch_code == branch_code,
                Ticket.date_key == date_key,
                Ticket.group == group,
                Ticket.status.in_(ACTIVE_STATUSES),
            )
            .order_by(Ticket.created_at.asc(), Ticket.number.asc())
        )
        return list(result.scalars())

    async def list_called(
        self, branch_code: str, group: str, *, for_update: bool = False
    ) -> list[Ticket]:
        """Return every ticket of a branch group currently in ``called``."""
        stmt = select(Ticket).where(
            Ticket.branch_code == branch_code,
            Ticket.group == group,
            Ticket.status == STATUS_CALLED,
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return list(result.scalars())

    async def count_active_by_group(self, branch_code: str, date_key: str) -> dict[str, int]:
        """Return the number of waiting or called tickets for each group."""
        result = await self.session.execute(
            select(Ticket.group, func.count())
            .where(
                Ticket.branch_code == branch_code,
                Ticket.date_key == date_key,
                Ticket.status.in_(ACTIVE_STATUSES),
            )
            .group_by(Ticket.group)
        )
        counts = {group: 0 for group in GROUPS}
        for group, count in result.all():
            if group in counts:
                counts[group] = int(count)
        return counts

    async def get_now_serving(
        self, branch_code: str, slot: str, *, for_update: bool = False
    ) -> NowServing | None:
        """Return the now-serving pointer for a group slot or the branch slot."""
        stmt = select(NowServing).where(
            NowServing.branch_code == branch_code,
            NowServing.slot == slot,
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def lock_now_serving(self, branch_code: str, slot: str) -> NowServing:
        """Return the pointer row for ``slot``, creating an empty one if missing.

        The group slot row doubles as the per-group serialization point for
        call, toggle, seat and skip. Two transactions racing to create it hit
        the primary key and one of them is retried.
        """
        pointer = await self.get_now_serving(branch_code, slot, for_update=True)
        if pointer is None:
            pointer = NowServing(branch_code=branch_code, slot=slot)
            self.session.add(pointer)
            await self.session.flush()
        return pointer

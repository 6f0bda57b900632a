"""Read-only feeds for the public display and the staff panel."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from qsys.db.time import ensure_aware, local_date_key, validate_date_key
from qsys.models.now_serving import BRANCH_SLOT, NowServing
from qsys.models.ticket import GROUPS, STATUS_CALLED, Ticket
from qsys.repositories.ticket_repo import TicketRepository
from qsys.services.branch_resolver import BranchResolver


@dataclass(frozen=True)
class CalledEntry:
    ticket_id: str
    code: str
    name: str
    pax: int
    updated_at: datetime | None


@dataclass(frozen=True)
class WaitingEntry:
    ticket_id: str
    code: str
    name: str
    pax: int
    timestamp: datetime


@dataclass
class GroupFeed:
    called: CalledEntry | None = None
    waiting: list[WaitingEntry] = field(default_factory=list)


@dataclass
class DisplayFeed:
    branch_code: str
    branch_name: str
    date_key: str
    groups: dict[str, GroupFeed]


@dataclass(frozen=True)
class BoardTicket:
    """Everything the staff panel shows for one active ticket."""

    ticket_id: str
    group: str
    number: int
    code: str
    name: str
    pax: int
    phone: str
    priority_class: str
    status: str
    created_at: datetime
    called_at: datetime | None


@dataclass(frozen=True)
class NowServingEntry:
    ticket_id: str
    group: str | None
    code: str | None
    name: str | None
    pax: int | None
    updated_at: datetime | None


@dataclass
class StaffBoard:
    branch_code: str
    branch_name: str
    date_key: str
    groups: dict[str, list[BoardTicket]]
    now_serving: NowServingEntry | None


def _board_ticket(ticket: Ticket) -> BoardTicket:
    return BoardTicket(
        ticket_id=ticket.id,
        group=ticket.group,
        number=ticket.number,
        code=ticket.code,
        name=ticket.name,
        pax=ticket.pax,
        phone=ticket.phone or "",
        priority_class=ticket.priority_class,
        status=ticket.status,
        created_at=ensure_aware(ticket.created_at),
        called_at=ensure_aware(ticket.called_at) if ticket.called_at else None,
    )


def _now_serving_entry(pointer: NowServing | None) -> NowServingEntry | None:
    if pointer is None or pointer.is_empty:
        return None
    return NowServingEntry(
        ticket_id=pointer.ticket_id,
        group=pointer.group,
        code=pointer.code,
        name=pointer.name,
        pax=pointer.pax,
        updated_at=ensure_aware(pointer.updated_at) if pointer.updated_at else None,
    )


class DisplayService:
    """Build per-group snapshots from the ticket table in one read."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        resolver: BranchResolver | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._resolver = resolver or BranchResolver(session_factory)

    async def display_feed(self, branch_param: str, date_key: str | None = None) -> DisplayFeed:
        """Return the called ticket and the waiting line for every group.

        ``branch_param`` may be a slug or a code in any case. The called
        entry's ``updated_at`` is the ticket's call time; waiting tickets are
        ordered by registration time.
        """
        day = validate_date_key(date_key) if date_key else local_date_key()
        branch = await self._resolver.resolve(branch_param)
        branch_code = branch.code
        groups: dict[str, GroupFeed] = {}
        async with self._session_factory() as session, session.begin():
            repo = TicketRepository(session)
            for group in GROUPS:
                feed = GroupFeed()
                for ticket in await repo.list_active(branch_code, day, group):
                    if ticket.status == STATUS_CALLED:
                        feed.called = CalledEntry(
                            ticket_id=ticket.id,
                            code=ticket.code,
                            name=ticket.name,
                            pax=ticket.pax,
                            updated_at=ensure_aware(ticket.called_at) if ticket.called_at else None,
                        )
                    else:
                        feed.waiting.append(
                            WaitingEntry(
                                ticket_id=ticket.id,
                                code=ticket.code,
                                name=ticket.name,
                                pax=ticket.pax,
                                timestamp=ensure_aware(ticket.created_at),
                            )
                        )
                groups[group] = feed
        return DisplayFeed(
            branch_code=branch_code, branch_name=branch.name, date_key=day, groups=groups
        )

    async def staff_board(self, branch_param: str, date_key: str | None = None) -> StaffBoard:
        """Return active tickets per group and the branch-level pointer."""
        day = validate_date_key(date_key) if date_key else local_date_key()
        branch = await self._resolver.resolve(branch_param)
        branch_code = branch.code
        async with self._session_factory() as session, session.begin():
            repo = TicketRepository(session)
            groups = {
                group: [_board_ticket(t) for t in await repo.list_active(branch_code, day, group)]
                for group in GROUPS
            }
            pointer = await repo.get_now_serving(branch_code, BRANCH_SLOT)
            now_serving = _now_serving_entry(pointer)
        return StaffBoard(
            branch_code=branch_code,
            branch_name=branch.name,
            date_key=day,
            groups=groups,
            now_serving=now_serving,
        )

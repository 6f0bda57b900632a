"""Guest registration: validate, number and insert a waiting ticket."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from qsys.core.errors import InvalidInputError
from qsys.db.time import local_date_key, utcnow, validate_date_key
from qsys.db.transaction import run_transaction
from qsys.models.ticket import STATUS_WAITING, Ticket
from qsys.services.branch_resolver import BranchResolver, ResolvedBranch
from qsys.services.sequencer import assign_group, format_queue_code, next_number, normalize_priority

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistrationResult:
    branch_code: str
    branch_name: str
    date_key: str
    group: str
    ticket_id: str
    number: int
    code: str
    created_at: datetime


def parse_pax(value: Any) -> int:
    """Return the party size as a positive int."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidInputError("pax", "Please fill in all required fields.")
    if isinstance(value, bool):
        raise InvalidInputError("pax", "Number of guests must be a positive number.")
    if isinstance(value, float) and not value.is_integer():
        raise InvalidInputError("pax", "Number of guests must be a whole number.")
    try:
        pax = int(str(value).strip()) if isinstance(value, str) else int(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise InvalidInputError("pax", "Number of guests must be a positive number.") from exc
    if pax < 1:
        raise InvalidInputError("pax", "Number of guests must be a positive number.")
    return pax


class RegistrationService:
    """Issue tickets; each insert shares a transaction with its counter bump."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        resolver: BranchResolver | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._resolver = resolver or BranchResolver(session_factory)

    async def register(
        self,
        branch_param: str,
        name: str | None,
        pax: Any,
        phone: str | None = None,
        priority_class: str | None = None,
        date_key: str | None = None,
    ) -> RegistrationResult:
        """Create a ``waiting`` ticket with the next number in its lane.

        Inputs are validated before anything is written.

        Raises:
            InvalidInputError: For a blank name, a non-positive party size, an
                unknown priority class or a malformed date.
            UnknownBranchError: If the branch cannot be resolved.
            ServerError: If the transaction kept conflicting.
        """
        clean_name = (name or "").strip()
        if not clean_name:
            raise InvalidInputError("name", "Please fill in all required fields.")
        party = parse_pax(pax)
        priority = normalize_priority(priority_class)
        day = validate_date_key(date_key) if date_key else local_date_key()

        branch: ResolvedBranch = await self._resolver.resolve(branch_param)
        group = assign_group(party, priority)

        async def _work(session: AsyncSession) -> RegistrationResult:
            number = await next_number(session, branch.code, day, group)
            ticket = Ticket(
                id=uuid.uuid4().hex,
                branch_code=branch.code,
                branch_name=branch.name,
                date_key=day,
                group=group,
                number=number,
                code=format_queue_code(group, number),
                name=clean_name,
                pax=party,
                phone=(phone or "").strip(),
                priority_class=priority,
                status=STATUS_WAITING,
                created_at=utcnow(),
            )
            session.add(ticket)
            await session.flush()
            return RegistrationResult(
                branch_code=branch.code,
                branch_name=branch.name,
                date_key=day,
                group=group,
                ticket_id=ticket.id,
                number=number,
                code=ticket.code,
                created_at=ticket.created_at,
            )

        result = await run_transaction(self._session_factory, _work, label="register")
        logger.info(
            "Registered %s for %s on %s (pax=%d, priority=%s)",
            result.code, branch.code, day, party, priority,
        )
        return result

"""Retrying transaction runner shared by every queue service."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from qsys.core.errors import ServerError, TransactionConflictError
from qsys.core.settings import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Backoff between attempts, in seconds; grows linearly with the attempt number.
RETRY_BACKOFF_SECONDS = 0.02


async def run_transaction(
    session_factory: async_sessionmaker[AsyncSession],
    work: Callable[[AsyncSession], Awaitable[T]],
    *,
    label: str = "transaction",
    max_attempts: int | None = None,
) -> T:
    """Run ``work`` inside one atomic transaction, retrying on conflicts.

    Each attempt opens a fresh session so nothing read by a losing attempt
    leaks into the next one. Domain exceptions raised by ``work`` roll the
    transaction back and propagate immediately.

    Args:
        session_factory: Factory producing new ``AsyncSession`` objects.
        work: Coroutine function performing the reads and writes.
        label: Name used in log messages.
        max_attempts: Override for ``TRANSACTION_MAX_ATTEMPTS``.

    Returns:
        Whatever ``work`` returns once its transaction commits.

    Raises:
        ServerError: If every attempt ended in a store conflict.
    """
    attempts = max_attempts or settings.transaction_max_attempts
    last_error: Exception | None = None
    for attempt in range(1, attempts + 1):
        try:
            async with session_factory() as session, session.begin():
                return await work(session)
        except (IntegrityError, OperationalError, TransactionConflictError) as exc:
            last_error = exc
            logger.warning(
                "%s conflict on attempt %d/%d: %s",
                label,
                attempt,
                attempts,
                exc.__class__.__name__,
            )
            if attempt < attempts:
                await asyncio.sleep(RETRY_BACKOFF_SECONDS * attempt)
    raise ServerError(f"{label} failed after {attempts} attempts") from last_error

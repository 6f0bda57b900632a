"""Adaptive wait-time estimation from seated-ticket history.

Every seating contributes one sample, ``seated_at - registered_at`` in minutes,
to an exponential moving average kept per branch, group and time-of-day
bucket. The bucket comes from the *registration* instant in branch-local time,
so a guest who registers at 13:50 and is seated at 14:20 counts toward lunch.

ETA for a queue position is ``per_ticket_average * max(1, position)``, where the
per-ticket average is the bucket's EMA once it has enough samples and a static
per-group default before that. Lookups never raise: a missing or unreadable
bucket degrades to the default.

The offline seeding tool imports ``bucket_for``, ``clamp_wait`` and
``ema_update`` from here so simulated history is shaped exactly like live
history.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, tzinfo

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from qsys.core.errors import ServerError, StatsRecordingError
from qsys.core.settings import settings
from qsys.db.time import ensure_aware, queue_zone, utcnow
from qsys.db.transaction import run_transaction
from qsys.models.wait_stat import WaitStatBucket

logger = logging.getLogger(__name__)

# Bucket boundaries in minutes since local midnight:
# 10:00 = 600, 14:00 = 840, 17:00 = 1020, 21:00 = 1260.
LUNCH_OPEN_MIN = 600
LUNCH_END_MIN = 840
AFTERNOON_END_MIN = 1020
DINNER_END_MIN = 1260


def bucket_for(instant: datetime, zone: tzinfo | None = None) -> str:
    """Return the time-of-day bucket for ``instant`` in branch-local time.

    Anything before 10:00 counts as lunch.
    """
    local = ensure_aware(instant).astimezone(zone or queue_zone())
    total_min = local.hour * 60 + local.minute
    if total_min < LUNCH_OPEN_MIN:
        return "lunch"
    if total_min < LUNCH_END_MIN:
        return "lunch"
    if total_min < AFTERNOON_END_MIN:
        return "afternoon"
    if total_min < DINNER_END_MIN:
        return "dinner"
    return "late"


def clamp_wait(minutes: float) -> float:
    """Clamp a raw wait into the configured noise/outlier window."""
    return max(settings.wait_time_min_clamp_min, min(settings.wait_time_min_clamp_max, minutes))


def ema_update(
    prev_ema: float | None, prev_count: int, sample: float, alpha: float | None = None
) -> tuple[float, int]:
    """Fold ``sample`` into a bucket's moving average.

    Returns:
        The new ``(ema, sample_count)`` pair. The first sample seeds the EMA.
    """
    weight = settings.wait_time_ema_alpha if alpha is None else alpha
    if prev_ema is None or prev_count <= 0:
        new_ema = sample
    else:
        new_ema = weight * sample + (1 - weight) * prev_ema
    return new_ema, max(prev_count, 0) + 1


def round_minutes(value: float) -> int:
    """Round half-up to whole minutes, never below zero."""
    return max(0, int(math.floor(value + 0.5)))


@dataclass(frozen=True)
class BucketStats:
    """Read-only view of one wait statistics bucket."""

    branch_code: str
    group: str
    bucket_id: str
    ema_wait_min: float | None
    sample_count: int


def _to_stats(row: WaitStatBucket) -> BucketStats:
    return BucketStats(
        branch_code=row.branch_code,
        group=row.group,
        bucket_id=row.bucket_id,
        ema_wait_min=row.ema_wait_min,
        sample_count=int(row.sample_count or 0),
    )


async def lock_bucket(
    session: AsyncSession, branch_code: str, group: str, bucket_id: str
) -> WaitStatBucket:
    """Return the bucket row locked for update, adding an empty one if missing."""
    result = await session.execute(
        select(WaitStatBucket)
        .where(
            WaitStatBucket.branch_code == branch_code,
            WaitStatBucket.group == group,
            WaitStatBucket.bucket_id == bucket_id,
        )
        .with_for_update()
    )
    row = result.scalars().first()
    if row is None:
        row = WaitStatBucket(
            branch_code=branch_code,
            group=group,
            bucket_id=bucket_id,
            ema_wait_min=None,
            sample_count=0,
        )
        session.add(row)
    return row


class WaitTimeEstimator:
    """Record seat-time samples and turn them into ETAs."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def record_sample(
        self,
        branch_code: str,
        group: str,
        registered_at: datetime | None,
        seated_at: datetime | None,
    ) -> BucketStats | None:
        """Add one registration-to-seat wait to the matching bucket.

        Invalid samples are logged and discarded; the return value is then
        ``None``.

        Raises:
            StatsRecordingError: If the bucket could not be written.
        """
        if registered_at is None or seated_at is None:
            logger.warning("Missing timestamps for wait sample %s/%s", branch_code, group)
            return None
        registered = ensure_aware(registered_at)
        seated = ensure_aware(seated_at)
        if seated <= registered:
            logger.warning(
                "Rejected wait sample %s/%s: seated %s not after registered %s",
                branch_code, group, seated.isoformat(), registered.isoformat(),
            )
            return None
        raw_minutes = (seated - registered).total_seconds() / 60.0
        if not math.isfinite(raw_minutes):
            logger.warning("Rejected non-finite wait sample %s/%s", branch_code, group)
            return None

        sample = clamp_wait(raw_minutes)
        bucket_id = bucket_for(registered)

        async def _work(session: AsyncSession) -> BucketStats:
            row = await lock_bucket(session, branch_code, group, bucket_id)
            row.ema_wait_min, row.sample_count = ema_update(
                row.ema_wait_min, int(row.sample_count or 0), sample
            )
            row.updated_at = utcnow()
            await session.flush()
            return _to_stats(row)

        try:
            stats = await run_transaction(
                self._session_factory, _work, label="wait-sample"
            )
        except (ServerError, SQLAlchemyError) as exc:
            raise StatsRecordingError(
                f"Could not record wait sample for {branch_code}/{group}/{bucket_id}"
            ) from exc
        logger.info(
            "Wait sample %s/%s/%s: %.1f min -> ema %.2f (n=%d)",
            branch_code, group, bucket_id, sample, stats.ema_wait_min or 0.0, stats.sample_count,
        )
        return stats

    async def get_bucket(self, branch_code: str, group: str, bucket_id: str) -> BucketStats | None:
        """Return a bucket's current statistics, or None if it has none yet."""
        async with self._session_factory() as session:
            row = await session.get(WaitStatBucket, (branch_code, group, bucket_id))
            return _to_stats(row) if row is not None else None

    async def per_ticket_minutes(
        self,
        branch_code: str,
        group: str,
        registered_at: datetime | None = None,
        *,
        now: datetime | None = None,
    ) -> float:
        """Return the average minutes each ticket ahead is expected to take.

        With ``registered_at`` the bucket is chosen from the registration time
        and needs ``MIN_SAMPLES_FOR_BUCKET`` samples; without it the bucket is
        chosen from ``now`` and needs ``MIN_STATS_SAMPLE``.
        """
        fallback = settings.fallback_wait_minutes(group)
        if registered_at is not None:
            reference = registered_at
            min_samples = settings.min_samples_for_bucket
        else:
            reference = now or utcnow()
            min_samples = settings.min_stats_sample
        bucket_id = bucket_for(reference)

        try:
            stats = await self.get_bucket(branch_code, group, bucket_id)
        except SQLAlchemyError as exc:
            logger.warning("ETA bucket read failed for %s/%s/%s: %s",
                           branch_code, group, bucket_id, exc)
            return fallback

        if stats is None or stats.ema_wait_min is None or stats.sample_count < min_samples:
            logger.debug(
                "ETA fallback for %s/%s/%s (samples=%s)",
                branch_code, group, bucket_id, stats.sample_count if stats else 0,
            )
            return fallback
        return float(stats.ema_wait_min)

    async def estimate_eta_minutes(
        self,
        branch_code: str,
        group: str,
        position_in_group: int,
        registered_at: datetime | None = None,
        *,
        now: datetime | None = None,
    ) -> int:
        """Return the whole-minute ETA for a ticket at ``position_in_group``."""
        per_ticket = await self.per_ticket_minutes(branch_code, group, registered_at, now=now)
        return round_minutes(per_ticket * max(1, position_in_group))

"""
Seed EMA wait-time statistics with simulated history.

Simulates several days of seatings per branch and folds them into the
``wait_stat_bucket`` rows so guest ETAs have data before real traffic exists.
Synthetic registration instants are placed inside each bucket's time window
and then bucketed with the live estimator's ``bucket_for``, so seeded and live
samples are partitioned identically.

Usage:
    python -m qsys.scripts.seed_wait_stats [--days 7] [--branch CODE ...]
        [--seed 42] [--dry-run]
"""
from __future__ import annotations

import argparse
import asyncio
import random
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, tzinfo

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from qsys.db.session import SessionLocal, create_tables, engine
from qsys.db.time import queue_zone, utcnow
from qsys.db.transaction import run_transaction
from qsys.models.ticket import GROUPS
from qsys.models.wait_stat import BUCKETS
from qsys.repositories.branch_repo import BranchRepository
from qsys.services.branch_resolver import normalize_branch
from qsys.services.wait_time import (
    AFTERNOON_END_MIN,
    DINNER_END_MIN,
    LUNCH_END_MIN,
    LUNCH_OPEN_MIN,
    bucket_for,
    clamp_wait,
    ema_update,
    lock_bucket,
)

DAYS_BACK = 7
MIN_PAX_PER_DAY = 150
MAX_PAX_PER_DAY = 500
AVG_PAX_PER_TICKET = 2.5

GROUP_WEIGHTS: Mapping[str, float] = {"P": 0.06, "A": 0.5, "B": 0.32, "C": 0.12}
BUCKET_WEIGHTS: Mapping[str, float] = {
    "lunch": 0.35,
    "afternoon": 0.15,
    "dinner": 0.4,
    "late": 0.1,
}
# Wait ranges in minutes under moderate load.
BUCKET_WAIT_RANGES: Mapping[str, tuple[float, float]] = {
    "lunch": (8, 18),
    "afternoon": (5, 12),
    "dinner": (20, 35),
    "late": (10, 20),
}
# [start, end) in minutes since local midnight.
BUCKET_WINDOWS: Mapping[str, tuple[int, int]] = {
    "lunch": (LUNCH_OPEN_MIN, LUNCH_END_MIN),
    "afternoon": (LUNCH_END_MIN, AFTERNOON_END_MIN),
    "dinner": (AFTERNOON_END_MIN, DINNER_END_MIN),
    "late": (DINNER_END_MIN, 24 * 60),
}

StatsGrid = dict[tuple[str, str], tuple[float | None, int]]


@dataclass
class SeedReport:
    """What one branch's simulation produced."""

    branch_code: str
    tickets: int
    stats: StatsGrid = field(default_factory=dict)


def weighted_pick(weights: Mapping[str, float], rng: random.Random) -> str:
    """Pick a key with probability proportional to its weight."""
    keys = list(weights)
    return rng.choices(keys, weights=[weights[k] for k in keys], k=1)[0]


def synthetic_registration(
    day: date, bucket_id: str, rng: random.Random, zone: tzinfo | None = None
) -> datetime:
    """Return a random local registration instant on ``day`` inside the bucket's window."""
    start, end = BUCKET_WINDOWS[bucket_id]
    minute = rng.randrange(start, end)
    local = datetime.combine(day, time(minute // 60, minute % 60, rng.randrange(60)))
    return local.replace(tzinfo=zone or queue_zone())


def empty_grid() -> StatsGrid:
    return {(group, bucket): (None, 0) for group in GROUPS for bucket in BUCKETS}


def simulate(
    stats: StatsGrid,
    *,
    days: int,
    rng: random.Random,
    today: date,
    zone: tzinfo | None = None,
) -> int:
    """Fold ``days`` of simulated seatings into ``stats`` in place.

    Returns:
        The number of simulated tickets.
    """
    total = 0
    for offset in range(days, 0, -1):
        day = today - timedelta(days=offset)
        pax_today = rng.randint(MIN_PAX_PER_DAY, MAX_PAX_PER_DAY)
        tickets_today = max(1, round(pax_today / AVG_PAX_PER_TICKET))
        total += tickets_today
        for _ in range(tickets_today):
            group = weighted_pick(GROUP_WEIGHTS, rng)
            window = weighted_pick(BUCKET_WEIGHTS, rng)
            registered_at = synthetic_registration(day, window, rng, zone)
            bucket_id = bucket_for(registered_at, zone)
            low, high = BUCKET_WAIT_RANGES[bucket_id]
            sample = clamp_wait(rng.uniform(low, high))
            ema, count = stats.get((group, bucket_id), (None, 0))
            stats[(group, bucket_id)] = ema_update(ema, count, sample)
    return total


async def seed_branch(
    session_factory: async_sessionmaker[AsyncSession],
    branch_code: str,
    *,
    days: int = DAYS_BACK,
    rng: random.Random | None = None,
    dry_run: bool = False,
    today: date | None = None,
) -> SeedReport:
    """Simulate on top of a branch's current buckets and persist the result.

    Reading, simulating and writing happen in one transaction so live samples
    recorded meanwhile are not lost. With ``dry_run`` the transaction is rolled
    back after the simulation.
    """
    generator = rng or random.Random()
    day = today or utcnow().astimezone(queue_zone()).date()

    async def _work(session: AsyncSession) -> SeedReport:
        rows = {}
        grid = empty_grid()
        for group in GROUPS:
            for bucket_id in BUCKETS:
                row = await lock_bucket(session, branch_code, group, bucket_id)
                rows[(group, bucket_id)] = row
                grid[(group, bucket_id)] = (row.ema_wait_min, int(row.sample_count or 0))
        tickets = simulate(grid, days=days, rng=generator, today=day)
        report = SeedReport(branch_code=branch_code, tickets=tickets, stats=dict(grid))
        if dry_run:
            return report
        now = utcnow()
        for key, (ema, count) in grid.items():
            row = rows[key]
            row.ema_wait_min = ema
            row.sample_count = count
            row.updated_at = now
        await session.flush()
        return report

    if dry_run:
        async with session_factory() as session:
            return await _work(session)
    return await run_transaction(session_factory, _work, label="seed-wait-stats")


async def branch_codes(session_factory: async_sessionmaker[AsyncSession]) -> list[str]:
    """Return the canonical code of every stored branch."""
    async with session_factory() as session:
        branches = await BranchRepository(session).list_all()
    return sorted({normalize_branch(branch).code for branch in branches})


async def run(args: argparse.Namespace) -> int:
    try:
        await create_tables()
        codes = [code.upper() for code in args.branch] if args.branch else await branch_codes(
            SessionLocal
        )
        if not codes:
            print("[seed] No branches found; pass --branch CODE.", file=sys.stderr)
            return 1
        print(f"[seed] Seeding {', '.join(codes)} with {args.days} simulated days")
        rng = random.Random(args.seed)
        for code in codes:
            report = await seed_branch(
                SessionLocal, code, days=args.days, rng=rng, dry_run=args.dry_run
            )
            print(f"[seed] Branch {code}: simulated ~{report.tickets} tickets")
            for (group, bucket_id), (ema, count) in sorted(report.stats.items()):
                if count:
                    print(f"[seed]   {group}/{bucket_id}: ema={ema:.2f} n={count}")
        if args.dry_run:
            print("[seed] Dry run; nothing was written.")
        return 0
    finally:
        await engine.dispose()


def main(argv: Sequence[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Seed EMA wait-time statistics")
    parser.add_argument("--days", type=int, default=DAYS_BACK, help="Days of history to simulate")
    parser.add_argument(
        "--branch",
        action="append",
        default=[],
        help="Branch code to seed (repeatable; defaults to every stored branch)",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed for repeatable runs")
    parser.add_argument("--dry-run", action="store_true", help="Simulate without writing")
    args = parser.parse_args(argv)
    if args.days < 1:
        parser.error("--days must be at least 1")
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()

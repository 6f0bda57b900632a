"""Create the database tables and optionally register a branch.

Usage:
    python -m qsys.scripts.init_db [--branch CODE --name NAME --slug SLUG]
"""
from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from qsys.db.session import SessionLocal, create_tables, engine
from qsys.db.transaction import run_transaction
from qsys.repositories.branch_repo import BranchRepository
from qsys.services.branch_resolver import ResolvedBranch, normalize_branch


async def upsert_branch(
    session_factory: async_sessionmaker[AsyncSession],
    code: str,
    name: str | None = None,
    slug: str | None = None,
    location: str | None = None,
) -> ResolvedBranch:
    """Insert or update the branch whose record id is the uppercased ``code``."""
    branch_id = code.strip().upper()

    async def _work(session: AsyncSession) -> ResolvedBranch:
        branch = await BranchRepository(session).upsert(
            branch_id=branch_id,
            code=branch_id,
            name=name,
            slug=(slug or branch_id).lower(),
            location=location,
        )
        return normalize_branch(branch)

    return await run_transaction(session_factory, _work, label="upsert-branch")


async def run(args: argparse.Namespace) -> int:
    try:
        await create_tables()
        print("[init_db] Tables are in place.")
        if args.branch:
            branch = await upsert_branch(
                SessionLocal, args.branch, args.name, args.slug, args.location
            )
            print(f"[init_db] Branch {branch.code} ({branch.name}) at /{branch.slug}")
        return 0
    finally:
        await engine.dispose()


def main(argv: Sequence[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Initialize the queue database")
    parser.add_argument("--branch", default=None, help="Branch code to create or update")
    parser.add_argument("--name", default=None, help="Branch display name")
    parser.add_argument("--slug", default=None, help="URL slug (defaults to the lowercased code)")
    parser.add_argument("--location", default=None, help="Free-form location text")
    args = parser.parse_args(argv)
    if (args.name or args.slug or args.location) and not args.branch:
        parser.error("--name, --slug and --location require --branch")
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()

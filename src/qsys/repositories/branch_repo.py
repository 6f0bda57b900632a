"""Data access helpers for working with branches."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from qsys.models.branch import Branch

__all__ = ["BranchRepository"]


class BranchRepository:
    """Thin wrapper around database access for branch records."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository with an async SQLAlchemy session."""
        self.session = session

    async def get_by_id(self, branch_id: str) -> Branch | None:
        """Return a branch by its record identifier."""
        if not branch_id:
            return None
        return await self.session.get(Branch, branch_id)

    async def find_by_slug(self, slug: str) -> Branch | None:
        """Return the first branch whose slug equals ``slug``."""
        result = await self.session.execute(select(Branch).where(Branch.slug == slug).limit(1))
        return result.scalars().first()

    async def find_by_code(self, code: str) -> Branch | None:
        """Return the first branch whose code field equals ``code``."""
        result = await self.session.execute(select(Branch).where(Branch.code == code).limit(1))
        return result.scalars().first()

    async def list_all(self) -> list[Branch]:
        """Return every branch ordered by identifier."""
        result = await self.session.execute(select(Branch).order_by(Branch.id))
        return list(result.scalars())

    async def upsert(
        self,
        *,
        branch_id: str,
        name: str | None = None,
        slug: str | None = None,
        code: str | None = None,
        location: str | None = None,
        active: bool = True,
    ) -> Branch:
        """Insert or update a branch record and return it."""
        branch = await self.get_by_id(branch_id)
        if branch is None:
            branch = Branch(id=branch_id)
            self.session.add(branch)
        branch.code = code
        branch.name = name
        branch.slug = slug
        branch.location = location
        branch.active = active
        await self.session.flush()
        return branch

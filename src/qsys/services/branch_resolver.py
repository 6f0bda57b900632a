"""Branch resolution: slugs and codes to the canonical branch identity."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from qsys.core.errors import UnknownBranchError
from qsys.core.settings import settings
from qsys.models.branch import Branch
from qsys.repositories.branch_repo import BranchRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedBranch:
    """Canonical identity of a branch as used across queues and stats."""

    code: str
    name: str
    slug: str


def normalize_branch(branch: Branch) -> ResolvedBranch:
    """Collapse the record's optional fields into a canonical identity."""
    code = (branch.code or branch.id).upper()
    name = branch.name or settings.branch_name_map.get(code) or code
    slug = (branch.slug or code).lower()
    return ResolvedBranch(code=code, name=name, slug=slug)


class BranchResolver:
    """Resolve user-supplied branch parameters without writing anything."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def resolve(self, param: str | None) -> ResolvedBranch:
        """Map a slug or code, in any case, to the canonical branch.

        Lookup order: record id verbatim, record id uppercased, slug field
        (lowercased), code field (uppercased), then the configured default
        branch.

        Raises:
            UnknownBranchError: If nothing matches and the default branch record
                is missing too.
        """
        raw = (param or "").strip()
        async with self._session_factory() as session:
            repo = BranchRepository(session)
            branch = await self._lookup(repo, raw)
            if branch is None:
                logger.info("Branch %r not found, falling back to %s", raw,
                            settings.default_branch_code)
                branch = await repo.get_by_id(settings.default_branch_code)
        if branch is None:
            raise UnknownBranchError(raw)
        return normalize_branch(branch)

    async def branch_name(self, branch_code: str) -> str:
        """Return a display name for a canonical code, never failing."""
        code = branch_code.upper()
        async with self._session_factory() as session:
            repo = BranchRepository(session)
            branch = await repo.get_by_id(code) or await repo.find_by_code(code)
        if branch is not None:
            return normalize_branch(branch).name
        return settings.branch_name_map.get(code) or code

    @staticmethod
    async def _lookup(repo: BranchRepository, raw: str) -> Branch | None:
        if not raw:
            return None
        upper = raw.upper()
        branch = await repo.get_by_id(raw)
        if branch is None and upper != raw:
            branch = await repo.get_by_id(upper)
        if branch is None:
            branch = await repo.find_by_slug(raw.lower())
        if branch is None:
            branch = await repo.find_by_code(upper)
        return branch

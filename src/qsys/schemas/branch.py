"""Branch-related Pydantic schemas."""

from qsys.schemas.common import CamelModel


class BranchResponse(CamelModel):
    """Canonical identity of a resolved branch."""

    code: str
    name: str
    slug: str

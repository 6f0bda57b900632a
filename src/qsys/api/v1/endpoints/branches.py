"""Branch resolution endpoint."""

from fastapi import APIRouter

from qsys.api.v1.dependencies import QueueServiceDep
from qsys.schemas.branch import BranchResponse

router = APIRouter(prefix="/branches", tags=["branches"])


@router.get("/resolve/{param}", response_model=BranchResponse)
async def resolve_branch(param: str, service: QueueServiceDep) -> BranchResponse:
    """Map a slug or code, in any case, to the canonical branch."""
    branch = await service.resolver.resolve(param)
    return BranchResponse(code=branch.code, name=branch.name, slug=branch.slug)

"""Guest registration endpoint."""

from fastapi import APIRouter, BackgroundTasks, status

from qsys.api.v1.dependencies import QueueServiceDep
from qsys.schemas.ticket import RegisterRequest, RegisterResponse

router = APIRouter(prefix="/register", tags=["register"])


@router.post(
    "/{branch_param}",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    branch_param: str,
    body: RegisterRequest,
    background_tasks: BackgroundTasks,
    service: QueueServiceDep,
) -> RegisterResponse:
    """Join the queue at a branch.

    The reserved counter and the waiting gauge are updated after the response
    is sent.
    """
    result = await service.register(
        background_tasks,
        branch_param,
        body.name,
        body.pax,
        phone=body.phone,
        priority_class=body.priority_class,
        date_key=body.date,
    )
    return RegisterResponse(
        branch_code=result.branch_code,
        branch_name=result.branch_name,
        date=result.date_key,
        group=result.group,
        ticket_id=result.ticket_id,
        number=result.number,
        code=result.code,
    )

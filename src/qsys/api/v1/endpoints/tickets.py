"""Guest ticket page and status polling endpoints."""

from fastapi import APIRouter

from qsys.api.v1.dependencies import BranchDep, QueueServiceDep
from qsys.schemas.ticket import TicketResponse, TicketStatusResponse

router = APIRouter(prefix="/tickets", tags=["tickets"])


@router.get("/{branch_code}/{date}/{group}/{ticket_id}", response_model=TicketResponse)
async def get_ticket(
    date: str, group: str, ticket_id: str, branch: BranchDep, service: QueueServiceDep
) -> TicketResponse:
    """Return the ticket record in any status."""
    ticket = await service.status.get_ticket(branch.code, date, group, ticket_id)
    return TicketResponse.model_validate(ticket)


@router.get(
    "/{branch_code}/{date}/{group}/{ticket_id}/status",
    response_model=TicketStatusResponse,
)
async def get_ticket_status(
    date: str, group: str, ticket_id: str, branch: BranchDep, service: QueueServiceDep
) -> TicketStatusResponse:
    """Position, lane size, ETA and the code being served in the lane.

    A seated or skipped ticket answers 404 so the guest page stops polling.
    """
    result = await service.get_status(branch.code, date, group, ticket_id)
    return TicketStatusResponse(
        position_in_group=result.position_in_group,
        total_in_group=result.total_in_group,
        eta_minutes=result.eta_minutes,
        now_serving_code=result.now_serving_code,
    )

"""Staff panel endpoints: the live board and ticket actions."""

from fastapi import APIRouter, BackgroundTasks, Query

from qsys.api.v1.dependencies import BranchDep, DisplayServiceDep, QueueServiceDep, StaffDep
from qsys.schemas.common import ActionResponse
from qsys.schemas.display import BoardTicketOut, NowServingOut, StaffBoardResponse
from qsys.services.queue_state import TransitionResult

router = APIRouter(prefix="/staff", tags=["staff"])


def _ack(result: TransitionResult) -> ActionResponse:
    return ActionResponse(ticket_id=result.ticket_id, status=result.status, changed=result.changed)


@router.get("/{branch_code}/board", response_model=StaffBoardResponse)
async def get_board(
    account: StaffDep,
    branch: BranchDep,
    service: DisplayServiceDep,
    date: str | None = Query(None, description="Day partition (YYYY-MM-DD); today by default"),
) -> StaffBoardResponse:
    """Active tickets per group and the branch now-serving pointer."""
    board = await service.staff_board(branch.code, date)
    now_serving = None
    if board.now_serving is not None:
        pointer = board.now_serving
        now_serving = NowServingOut(
            ticket_id=pointer.ticket_id,
            group=pointer.group,
            code=pointer.code,
            name=pointer.name,
            pax=pointer.pax,
            updated_at=pointer.updated_at,
        )
    return StaffBoardResponse(
        branch_code=board.branch_code,
        branch_name=board.branch_name,
        date=board.date_key,
        groups={
            group: [
                BoardTicketOut(
                    id=t.ticket_id,
                    group=t.group,
                    number=t.number,
                    code=t.code,
                    name=t.name,
                    pax=t.pax,
                    phone=t.phone,
                    priority_class=t.priority_class,
                    status=t.status,
                    created_at=t.created_at,
                    called_at=t.called_at,
                )
                for t in tickets
            ]
            for group, tickets in board.groups.items()
        },
        now_serving=now_serving,
    )


@router.post("/{branch_code}/call/{group}/{ticket_id}", response_model=ActionResponse)
async def call_ticket(
    group: str,
    ticket_id: str,
    account: StaffDep,
    branch: BranchDep,
    background_tasks: BackgroundTasks,
    service: QueueServiceDep,
) -> ActionResponse:
    """Call a ticket; any other called ticket in the group goes back to waiting."""
    return _ack(await service.call(background_tasks, branch.code, group, ticket_id))


@router.post("/{branch_code}/toggle-call/{group}/{ticket_id}", response_model=ActionResponse)
async def toggle_call_ticket(
    group: str,
    ticket_id: str,
    account: StaffDep,
    branch: BranchDep,
    background_tasks: BackgroundTasks,
    service: QueueServiceDep,
) -> ActionResponse:
    """Uncall a called ticket, or call it."""
    return _ack(await service.toggle_call(background_tasks, branch.code, group, ticket_id))


@router.post("/{branch_code}/seat/{group}/{ticket_id}", response_model=ActionResponse)
async def seat_ticket(
    group: str,
    ticket_id: str,
    account: StaffDep,
    branch: BranchDep,
    background_tasks: BackgroundTasks,
    service: QueueServiceDep,
) -> ActionResponse:
    """Seat a called ticket. Seating a retired ticket again is a no-op."""
    return _ack(await service.seat(background_tasks, branch.code, group, ticket_id))


@router.post("/{branch_code}/skip/{group}/{ticket_id}", response_model=ActionResponse)
async def skip_ticket(
    group: str,
    ticket_id: str,
    account: StaffDep,
    branch: BranchDep,
    background_tasks: BackgroundTasks,
    service: QueueServiceDep,
) -> ActionResponse:
    """Skip a waiting or called ticket."""
    return _ack(await service.skip(background_tasks, branch.code, group, ticket_id))

"""Public now-serving display feed."""

from fastapi import APIRouter, Query, Response

from qsys.api.v1.dependencies import DisplayServiceDep
from qsys.schemas.display import CalledOut, DisplayFeedResponse, GroupFeedOut, WaitingOut

router = APIRouter(prefix="/display", tags=["display"])


@router.get("/{branch_param}", response_model=DisplayFeedResponse)
async def get_display_feed(
    branch_param: str,
    response: Response,
    service: DisplayServiceDep,
    date: str | None = Query(None, description="Day partition (YYYY-MM-DD); today by default"),
) -> DisplayFeedResponse:
    """Called ticket and waiting line for each of the four groups.

    ``branch_param`` may be the branch slug or its code in any case.
    """
    feed = await service.display_feed(branch_param, date)
    response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, proxy-revalidate"
    response.headers["Pragma"] = "no-cache"
    response.headers["Expires"] = "0"

    groups: dict[str, GroupFeedOut] = {}
    for group, lane in feed.groups.items():
        called = None
        if lane.called is not None:
            called = CalledOut(
                code=lane.called.code,
                name=lane.called.name,
                pax=lane.called.pax,
                updated_at=lane.called.updated_at,
            )
        groups[group] = GroupFeedOut(
            called=called,
            waiting=[
                WaitingOut(id=w.ticket_id, code=w.code, name=w.name, pax=w.pax,
                           timestamp=w.timestamp)
                for w in lane.waiting
            ],
        )
    return DisplayFeedResponse(
        branch_code=feed.branch_code,
        branch_name=feed.branch_name,
        date=feed.date_key,
        groups=groups,
    )

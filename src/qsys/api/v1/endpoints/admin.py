"""Admin dashboard endpoints."""

from fastapi import APIRouter, Query

from qsys.api.v1.dependencies import AdminDep, BranchDep, QueueServiceDep
from qsys.db.time import local_date_key
from qsys.schemas.stats import (
    BranchStatsOut,
    DailyTotals,
    DashboardResponse,
    WaitingSnapshotResponse,
)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    account: AdminDep,
    service: QueueServiceDep,
    date: str | None = Query(None, description="Day partition (YYYY-MM-DD); today by default"),
) -> DashboardResponse:
    """Reserved, seated and skipped totals plus the waiting gauge, per branch and overall."""
    summary = await service.stats.get_daily_stats(date or local_date_key())
    return DashboardResponse(
        date_key=summary.date_key,
        totals=DailyTotals(
            reserved=summary.reserved,
            seated=summary.seated,
            skipped=summary.skipped,
            waiting_now=summary.waiting_now,
        ),
        by_branch=[
            BranchStatsOut(
                branch_code=row.branch_code,
                branch_name=row.branch_name,
                reserved=row.reserved,
                seated=row.seated,
                skipped=row.skipped,
                waiting_now=row.waiting_now,
            )
            for row in summary.by_branch
        ],
    )


@router.post("/stats/{date}/{branch_code}/refresh", response_model=WaitingSnapshotResponse)
async def refresh_waiting_snapshot(
    date: str, account: AdminDep, branch: BranchDep, service: QueueServiceDep
) -> WaitingSnapshotResponse:
    """Recompute a branch's waiting gauge now instead of waiting for the next action."""
    counts = await service.stats.refresh_waiting_now_snapshot(branch.code, date, branch.name)
    return WaitingSnapshotResponse(branch_code=branch.code, date_key=date, waiting_now=counts)

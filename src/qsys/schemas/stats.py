"""Admin dashboard schemas."""

from pydantic import Field

from qsys.schemas.common import CamelModel


class DailyTotals(CamelModel):
    reserved: int = 0
    seated: int = 0
    skipped: int = 0
    waiting_now: dict[str, int] = Field(default_factory=dict)


class BranchStatsOut(CamelModel):
    branch_code: str
    branch_name: str
    reserved: int = 0
    seated: int = 0
    skipped: int = 0
    waiting_now: dict[str, int] = Field(default_factory=dict)


class DashboardResponse(CamelModel):
    """Totals across all branches for one day, plus the per-branch rows."""

    ok: bool = True
    date_key: str
    totals: DailyTotals
    by_branch: list[BranchStatsOut] = Field(default_factory=list)


class WaitingSnapshotResponse(CamelModel):
    ok: bool = True
    branch_code: str
    date_key: str
    waiting_now: dict[str, int]

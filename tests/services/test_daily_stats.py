"""Tests for idempotent daily statistics."""

import asyncio

import pytest
from sqlalchemy import func, select

from qsys.core.errors import InvalidInputError, ServerError, StatsRecordingError
from qsys.models import DailyStat, DailyStatEvent
from qsys.services import daily_stats
from qsys.services.daily_stats import DailyStatsAggregator, coalesce_reserved, event_key
from tests.conftest import BRANCH_CODE, register

DAY = "2025-03-14"


@pytest.fixture()
def aggregator(session_factory):
    return DailyStatsAggregator(session_factory)


def test_event_key():
    assert event_key("seated", "abc123") == "seated__abc123"


class TestCoalesceReserved:
    def test_nested_only(self):
        assert coalesce_reserved(DailyStat(reserved=7, legacy_totals=None)) == 7

    def test_legacy_larger_wins(self):
        stat = DailyStat(reserved=3, legacy_totals={"totals.reserved": 11})
        assert coalesce_reserved(stat) == 11

    def test_nested_larger_wins(self):
        stat = DailyStat(reserved=15, legacy_totals={"totals.reserved": 11})
        assert coalesce_reserved(stat) == 15

    def test_garbage_legacy_value_is_ignored(self):
        stat = DailyStat(reserved=2, legacy_totals={"totals.reserved": "n/a"})
        assert coalesce_reserved(stat) == 2


@pytest.mark.asyncio
class TestRecordEvent:
    async def test_same_pair_counts_once(self, aggregator):
        assert await aggregator.record_event(BRANCH_CODE, DAY, "reserved", "t1", "MOA")
        assert not await aggregator.record_event(BRANCH_CODE, DAY, "reserved", "t1", "MOA")

        row = await aggregator.get_branch_stats(BRANCH_CODE, DAY)
        assert (row.reserved, row.seated, row.skipped) == (1, 0, 0)
        assert row.branch_name == "MOA"

    async def test_different_actions_for_one_ticket_both_count(self, aggregator):
        await aggregator.record_event(BRANCH_CODE, DAY, "reserved", "t1")
        await aggregator.record_event(BRANCH_CODE, DAY, "seated", "t1")

        row = await aggregator.get_branch_stats(BRANCH_CODE, DAY)
        assert (row.reserved, row.seated) == (1, 1)

    async def test_concurrent_duplicates_count_once(self, aggregator, session_factory):
        await asyncio.gather(
            *(aggregator.record_event(BRANCH_CODE, DAY, "skipped", "t9") for _ in range(5))
        )

        row = await aggregator.get_branch_stats(BRANCH_CODE, DAY)
        assert row.skipped == 1
        async with session_factory() as session:
            events = await session.scalar(select(func.count()).select_from(DailyStatEvent))
        assert events == 1

    async def test_unknown_action(self, aggregator):
        with pytest.raises(InvalidInputError):
            await aggregator.record_event(BRANCH_CODE, DAY, "cancelled", "t1")

    async def test_malformed_date(self, aggregator):
        with pytest.raises(InvalidInputError) as exc_info:
            await aggregator.record_event(BRANCH_CODE, "14/03/2025", "reserved", "t1")
        assert exc_info.value.field == "date"

    async def test_store_failure_is_a_stats_error(self, aggregator, mocker):
        mocker.patch.object(daily_stats, "run_transaction", side_effect=ServerError("boom"))
        with pytest.raises(StatsRecordingError):
            await aggregator.record_event(BRANCH_CODE, DAY, "reserved", "t1")


@pytest.mark.asyncio
class TestWaitingSnapshot:
    async def test_counts_waiting_and_called_per_group(self, branch, service, tasks, aggregator):
        a1 = await register(service, tasks, pax=2)
        await register(service, tasks, pax=2)
        b1 = await register(service, tasks, pax=3)
        await register(service, tasks, pax=6, priority_class="pwd")
        await service.state.call(BRANCH_CODE, "A", a1.ticket_id)
        await service.state.skip(BRANCH_CODE, "B", b1.ticket_id)

        counts = await aggregator.refresh_waiting_now_snapshot(BRANCH_CODE, a1.date_key)

        assert counts == {"P": 1, "A": 2, "B": 0, "C": 0}
        row = await aggregator.get_branch_stats(BRANCH_CODE, a1.date_key)
        assert row.waiting_now == counts

    async def test_refresh_overwrites(self, branch, service, tasks, aggregator):
        ticket = await register(service, tasks, pax=2)
        await aggregator.refresh_waiting_now_snapshot(BRANCH_CODE, ticket.date_key)
        await service.state.skip(BRANCH_CODE, "A", ticket.ticket_id)

        counts = await aggregator.refresh_waiting_now_snapshot(BRANCH_CODE, ticket.date_key)

        assert counts["A"] == 0


@pytest.mark.asyncio
class TestGetDailyStats:
    async def test_sums_branches_sorted_by_code(self, aggregator):
        await aggregator.record_event("YL-SM", DAY, "reserved", "s1", "SM")
        await aggregator.record_event(BRANCH_CODE, DAY, "reserved", "m1", "MOA")
        await aggregator.record_event(BRANCH_CODE, DAY, "reserved", "m2", "MOA")
        await aggregator.record_event(BRANCH_CODE, DAY, "seated", "m1", "MOA")
        await aggregator.record_event("YL-SM", "2025-03-15", "reserved", "s2", "SM")

        summary = await aggregator.get_daily_stats(DAY)

        assert [row.branch_code for row in summary.by_branch] == [BRANCH_CODE, "YL-SM"]
        assert (summary.reserved, summary.seated, summary.skipped) == (3, 1, 0)
        assert summary.waiting_now == {"P": 0, "A": 0, "B": 0, "C": 0}

    async def test_legacy_totals_are_coalesced(self, aggregator, session_factory):
        async with session_factory() as session, session.begin():
            session.add(
                DailyStat(
                    date_key=DAY,
                    branch_code="YL-OLD",
                    branch_name="Old",
                    reserved=0,
                    seated=4,
                    skipped=1,
                    waiting_p=0,
                    waiting_a=2,
                    waiting_b=0,
                    waiting_c=0,
                    legacy_totals={"totals.reserved": 9},
                )
            )

        summary = await aggregator.get_daily_stats(DAY)

        assert summary.reserved == 9
        assert summary.waiting_now["A"] == 2

    async def test_empty_day(self, aggregator):
        summary = await aggregator.get_daily_stats(DAY)
        assert summary.by_branch == []
        assert summary.reserved == 0

"""Tests for the ticket status machine and the now-serving pointers."""

import asyncio

import pytest
from sqlalchemy import select

from qsys.core.errors import InvalidInputError, InvalidTransitionError, TicketNotFoundError
from qsys.models import NowServing, Ticket
from qsys.models.now_serving import BRANCH_SLOT
from qsys.services.queue_state import ALLOWED_TRANSITIONS, can_transition
from tests.conftest import BRANCH_CODE, register


async def _ticket(session_factory, ticket_id):
    async with session_factory() as session:
        return await session.get(Ticket, ticket_id)


async def _pointer(session_factory, slot):
    async with session_factory() as session:
        return await session.get(NowServing, (BRANCH_CODE, slot))


async def _called_in(session_factory, group):
    async with session_factory() as session:
        result = await session.execute(
            select(Ticket.id).where(
                Ticket.branch_code == BRANCH_CODE,
                Ticket.group == group,
                Ticket.status == "called",
            )
        )
        return [ticket_id for (ticket_id,) in result.all()]


def test_transition_table():
    assert can_transition("waiting", "called")
    assert can_transition("waiting", "skipped")
    assert can_transition("called", "waiting")
    assert can_transition("called", "seated")
    assert not can_transition("waiting", "seated")
    assert not can_transition("seated", "waiting")
    assert not can_transition("skipped", "called")
    assert set(ALLOWED_TRANSITIONS) == {"waiting", "called"}


@pytest.mark.asyncio
class TestCall:
    async def test_call_sets_status_and_pointers(self, branch, service, tasks, session_factory):
        ticket = await register(service, tasks, name="Ana", pax=2)

        result = await service.state.call(BRANCH_CODE, "A", ticket.ticket_id)

        assert result.status == "called"
        stored = await _ticket(session_factory, ticket.ticket_id)
        assert stored.status == "called"
        assert stored.called_at is not None
        for slot in ("A", BRANCH_SLOT):
            pointer = await _pointer(session_factory, slot)
            assert pointer.ticket_id == ticket.ticket_id
            assert (pointer.code, pointer.name, pointer.pax) == ("A01", "Ana", 2)

    async def test_calling_another_ticket_reverts_the_first(
        self, branch, service, tasks, session_factory
    ):
        x = await register(service, tasks)
        y = await register(service, tasks)

        await service.state.call(BRANCH_CODE, "A", x.ticket_id)
        await service.state.call(BRANCH_CODE, "A", y.ticket_id)

        first = await _ticket(session_factory, x.ticket_id)
        assert first.status == "waiting"
        assert first.called_at is None
        assert (await _ticket(session_factory, y.ticket_id)).status == "called"
        assert (await _pointer(session_factory, "A")).ticket_id == y.ticket_id

    async def test_other_groups_are_untouched(self, branch, service, tasks, session_factory):
        a = await register(service, tasks, pax=2)
        b = await register(service, tasks, pax=4)

        await service.state.call(BRANCH_CODE, "A", a.ticket_id)
        await service.state.call(BRANCH_CODE, "B", b.ticket_id)

        assert await _called_in(session_factory, "A") == [a.ticket_id]
        assert await _called_in(session_factory, "B") == [b.ticket_id]
        assert (await _pointer(session_factory, BRANCH_SLOT)).ticket_id == b.ticket_id

    async def test_group_letter_is_case_insensitive(self, branch, service, tasks):
        ticket = await register(service, tasks)
        result = await service.state.call(BRANCH_CODE, "a", ticket.ticket_id)
        assert result.group == "A"

    async def test_unknown_group_is_invalid_input(self, branch, service):
        with pytest.raises(InvalidInputError):
            await service.state.call(BRANCH_CODE, "Z", "whatever")

    async def test_missing_ticket(self, branch, service):
        with pytest.raises(TicketNotFoundError):
            await service.state.call(BRANCH_CODE, "A", "missing")

    async def test_ticket_from_another_group_is_not_found(self, branch, service, tasks):
        ticket = await register(service, tasks, pax=2)
        with pytest.raises(TicketNotFoundError):
            await service.state.call(BRANCH_CODE, "B", ticket.ticket_id)

    async def test_retired_ticket_cannot_be_called(self, branch, service, tasks):
        ticket = await register(service, tasks)
        await service.state.skip(BRANCH_CODE, "A", ticket.ticket_id)
        with pytest.raises(TicketNotFoundError):
            await service.state.call(BRANCH_CODE, "A", ticket.ticket_id)

    async def test_concurrent_calls_leave_one_called(
        self, branch, service, tasks, session_factory
    ):
        tickets = [await register(service, tasks) for _ in range(5)]

        await asyncio.gather(
            *(service.state.call(BRANCH_CODE, "A", t.ticket_id) for t in tickets)
        )

        called = await _called_in(session_factory, "A")
        assert len(called) == 1
        assert (await _pointer(session_factory, "A")).ticket_id == called[0]


@pytest.mark.asyncio
class TestToggleCall:
    async def test_uncall_scenario(self, branch, service, tasks, session_factory):
        x = await register(service, tasks)
        y = await register(service, tasks)

        await service.state.call(BRANCH_CODE, "A", x.ticket_id)
        await service.state.call(BRANCH_CODE, "A", y.ticket_id)
        result = await service.state.toggle_call(BRANCH_CODE, "A", y.ticket_id)

        assert (result.previous_status, result.status) == ("called", "waiting")
        assert await _called_in(session_factory, "A") == []
        assert (await _ticket(session_factory, x.ticket_id)).status == "waiting"
        assert (await _pointer(session_factory, "A")).is_empty
        assert (await _pointer(session_factory, BRANCH_SLOT)).is_empty

    async def test_toggle_on_waiting_calls(self, branch, service, tasks, session_factory):
        x = await register(service, tasks)
        y = await register(service, tasks)
        await service.state.call(BRANCH_CODE, "A", x.ticket_id)

        result = await service.state.toggle_call(BRANCH_CODE, "A", y.ticket_id)

        assert result.status == "called"
        assert await _called_in(session_factory, "A") == [y.ticket_id]

    async def test_uncall_keeps_branch_pointer_on_other_group(
        self, branch, service, tasks, session_factory
    ):
        a = await register(service, tasks, pax=2)
        b = await register(service, tasks, pax=3)
        await service.state.call(BRANCH_CODE, "A", a.ticket_id)
        await service.state.call(BRANCH_CODE, "B", b.ticket_id)

        await service.state.toggle_call(BRANCH_CODE, "A", a.ticket_id)

        assert (await _pointer(session_factory, "A")).is_empty
        assert (await _pointer(session_factory, BRANCH_SLOT)).ticket_id == b.ticket_id

    async def test_sequence_never_has_two_called(self, branch, service, tasks, session_factory):
        tickets = [await register(service, tasks) for _ in range(3)]
        ops = [
            ("call", 0), ("toggle", 1), ("toggle", 1), ("call", 2),
            ("toggle", 0), ("call", 1), ("toggle", 2), ("toggle", 1),
        ]
        for op, index in ops:
            ticket_id = tickets[index].ticket_id
            if op == "call":
                await service.state.call(BRANCH_CODE, "A", ticket_id)
            else:
                await service.state.toggle_call(BRANCH_CODE, "A", ticket_id)
            called = await _called_in(session_factory, "A")
            assert len(called) <= 1
            pointer = await _pointer(session_factory, "A")
            assert pointer.ticket_id == (called[0] if called else None)

    async def test_concurrent_toggles_on_one_ticket_stay_consistent(
        self, branch, service, tasks, session_factory
    ):
        ticket = await register(service, tasks)

        await asyncio.gather(
            *(service.state.toggle_call(BRANCH_CODE, "A", ticket.ticket_id) for _ in range(4))
        )

        stored = await _ticket(session_factory, ticket.ticket_id)
        pointer = await _pointer(session_factory, "A")
        # An even number of toggles lands back on waiting with an empty pointer.
        assert stored.status == "waiting"
        assert pointer.is_empty


@pytest.mark.asyncio
class TestSeatAndSkip:
    async def test_seat_requires_called(self, branch, service, tasks):
        ticket = await register(service, tasks)
        with pytest.raises(InvalidTransitionError) as exc_info:
            await service.state.seat(BRANCH_CODE, "A", ticket.ticket_id)
        assert (exc_info.value.current, exc_info.value.target) == ("waiting", "seated")

    async def test_seat_clears_pointers(self, branch, service, tasks, session_factory):
        ticket = await register(service, tasks)
        await service.state.call(BRANCH_CODE, "A", ticket.ticket_id)

        result = await service.state.seat(BRANCH_CODE, "A", ticket.ticket_id)

        assert result.changed
        assert result.seated_at is not None
        assert result.seated_at >= result.created_at
        stored = await _ticket(session_factory, ticket.ticket_id)
        assert stored.status == "seated"
        assert (await _pointer(session_factory, "A")).is_empty
        assert (await _pointer(session_factory, BRANCH_SLOT)).is_empty

    async def test_seat_again_is_a_noop(self, branch, service, tasks):
        ticket = await register(service, tasks)
        await service.state.call(BRANCH_CODE, "A", ticket.ticket_id)
        await service.state.seat(BRANCH_CODE, "A", ticket.ticket_id)

        again = await service.state.seat(BRANCH_CODE, "A", ticket.ticket_id)

        assert not again.changed
        assert again.status == "seated"

    async def test_seat_unknown_ticket(self, branch, service):
        with pytest.raises(TicketNotFoundError):
            await service.state.seat(BRANCH_CODE, "A", "missing")

    async def test_skip_from_waiting(self, branch, service, tasks, session_factory):
        ticket = await register(service, tasks)

        result = await service.state.skip(BRANCH_CODE, "A", ticket.ticket_id)

        assert result.changed
        stored = await _ticket(session_factory, ticket.ticket_id)
        assert stored.status == "skipped"
        assert stored.seated_at is None

    async def test_skip_called_clears_only_its_pointer(
        self, branch, service, tasks, session_factory
    ):
        a = await register(service, tasks, pax=2)
        b = await register(service, tasks, pax=3)
        await service.state.call(BRANCH_CODE, "A", a.ticket_id)
        await service.state.call(BRANCH_CODE, "B", b.ticket_id)

        await service.state.skip(BRANCH_CODE, "A", a.ticket_id)

        assert (await _pointer(session_factory, "A")).is_empty
        assert (await _pointer(session_factory, "B")).ticket_id == b.ticket_id
        assert (await _pointer(session_factory, BRANCH_SLOT)).ticket_id == b.ticket_id

    async def test_skip_seated_is_a_noop(self, branch, service, tasks, session_factory):
        ticket = await register(service, tasks)
        await service.state.call(BRANCH_CODE, "A", ticket.ticket_id)
        await service.state.seat(BRANCH_CODE, "A", ticket.ticket_id)

        result = await service.state.skip(BRANCH_CODE, "A", ticket.ticket_id)

        assert not result.changed
        assert (await _ticket(session_factory, ticket.ticket_id)).status == "seated"

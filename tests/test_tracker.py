"""Order lifecycle tracker tests."""

import asyncio

import pytest

from tableorder.constant import STEP_ACTIVE, STEP_COMPLETED, STEP_PENDING
from tableorder.errors import NotFoundError, StateError, TransientError
from tableorder.models import STATUS_SEQUENCE, OrderStatus
from tableorder.tracker import OrderTracker, Phase, PollTask, classify_status, progress_steps, status_message


@pytest.fixture
def tracker(session, fake_api):
    return OrderTracker(session, fake_api, interval=0.01)


async def _wait_for(predicate, timeout=1.0):
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not reached")
        await asyncio.sleep(0.005)


async def _settle():
    for _ in range(5):
        await asyncio.sleep(0)


class TestClassification:
    @pytest.mark.parametrize(
        "status, phase",
        [
            (OrderStatus.PENDING, Phase.ACTIVE),
            (OrderStatus.ACCEPTED, Phase.ACTIVE),
            (OrderStatus.PREPARING, Phase.ACTIVE),
            (OrderStatus.READY, Phase.TERMINAL),
            (OrderStatus.COMPLETED, Phase.TERMINAL),
            (OrderStatus.REJECTED, Phase.TERMINAL),
        ],
    )
    def test_phase(self, status, phase):
        assert classify_status(status) is phase

    def test_every_status_has_a_message(self):
        for status in OrderStatus:
            assert status_message(status)
        assert status_message(OrderStatus.READY) == "Your order is ready!"


class TestProgressSteps:
    def test_steps_advance_with_status(self):
        for position, status in enumerate(STATUS_SEQUENCE[:-1]):
            checklist = progress_steps(status)
            states = [step.state for step in checklist.steps]
            assert states[:position] == [STEP_COMPLETED] * position
            assert states[position] == STEP_ACTIVE
            assert states[position + 1 :] == [STEP_PENDING] * (len(states) - position - 1)
            assert states.count(STEP_ACTIVE) == 1
            assert not checklist.rejected

    def test_completed_order_marks_every_step_done(self):
        checklist = progress_steps(OrderStatus.COMPLETED)
        assert [step.state for step in checklist.steps] == [STEP_COMPLETED] * 5

    def test_rejection_supersedes_checklist(self):
        checklist = progress_steps(OrderStatus.REJECTED)
        assert checklist.rejected
        assert all(step.state == STEP_PENDING for step in checklist.steps)

    def test_labels_follow_sequence(self):
        labels = [step.label for step in progress_steps(OrderStatus.PENDING).steps]
        assert labels == ["Order Placed", "Order Accepted", "Preparing", "Ready", "Completed"]


class TestBindAndRefresh:
    @pytest.mark.asyncio
    async def test_bind_unknown_order_raises_not_found(self, tracker):
        with pytest.raises(NotFoundError):
            await tracker.bind("missing")
        assert not tracker.bound
        assert tracker.snapshot is None

    @pytest.mark.asyncio
    async def test_refresh_unbound_is_state_error(self, tracker):
        with pytest.raises(StateError):
            await tracker.refresh()

    @pytest.mark.asyncio
    async def test_refresh_replaces_snapshot_and_publishes(self, tracker, fake_api, session, order_factory):
        fake_api.orders["order-1"] = order_factory()
        await tracker.bind("order-1")
        assert session.active_order.status is OrderStatus.PENDING

        fake_api.orders["order-1"] = order_factory(status=OrderStatus.ACCEPTED, total=3000)
        order = await tracker.refresh()

        assert order is tracker.snapshot is session.active_order
        assert tracker.snapshot.total_amount == 3000
        assert tracker.phase is Phase.ACTIVE

    @pytest.mark.asyncio
    async def test_transient_failure_keeps_last_good_snapshot(self, tracker, fake_api, order_factory):
        fake_api.orders["order-1"] = order_factory(status=OrderStatus.PREPARING)
        await tracker.bind("order-1")

        fake_api.errors["get_order"] = TransientError("Request timed out")
        snapshot = await tracker.refresh()

        assert snapshot.status is OrderStatus.PREPARING
        assert tracker.stale
        assert isinstance(tracker.last_error, TransientError)

        await tracker.refresh()
        assert not tracker.stale
        assert tracker.last_error is None

    @pytest.mark.asyncio
    async def test_older_response_never_overwrites_newer(self, tracker, fake_api, order_factory):
        fake_api.orders["order-1"] = order_factory()
        await tracker.bind("order-1")

        fake_api.pending_orders = []
        first = asyncio.create_task(tracker.refresh())
        second = asyncio.create_task(tracker.refresh())
        await _wait_for(lambda: len(fake_api.pending_orders) == 2)

        older, newer = fake_api.pending_orders
        newer.set_result(order_factory(status=OrderStatus.PREPARING))
        await second
        older.set_result(order_factory(status=OrderStatus.ACCEPTED))
        await first

        assert tracker.snapshot.status is OrderStatus.PREPARING

    @pytest.mark.asyncio
    async def test_older_failure_does_not_mark_newer_snapshot_stale(self, tracker, fake_api, order_factory):
        fake_api.orders["order-1"] = order_factory()
        await tracker.bind("order-1")

        fake_api.pending_orders = []
        first = asyncio.create_task(tracker.refresh())
        second = asyncio.create_task(tracker.refresh())
        await _wait_for(lambda: len(fake_api.pending_orders) == 2)

        older, newer = fake_api.pending_orders
        newer.set_result(order_factory(status=OrderStatus.ACCEPTED))
        await second
        older.set_exception(TransientError("Request timed out"))
        await first

        assert not tracker.stale
        assert tracker.snapshot.status is OrderStatus.ACCEPTED


class TestPolling:
    @pytest.mark.asyncio
    async def test_tick_skipped_while_refresh_in_flight(self):
        gate = asyncio.Event()
        calls = []

        async def slow_refresh():
            calls.append(1)
            await gate.wait()

        poller = PollTask(slow_refresh, interval=60)
        assert poller.fire()
        await _settle()
        assert not poller.fire()
        assert poller.skipped_ticks == 1
        assert calls == [1]

        gate.set()
        await _settle()
        assert poller.fire()
        await _settle()
        assert calls == [1, 1]
        poller.stop()

    @pytest.mark.asyncio
    async def test_polling_stops_at_terminal_status(self, tracker, fake_api, order_factory):
        fake_api.orders["order-1"] = order_factory(status=OrderStatus.PREPARING)
        await tracker.bind("order-1")
        tracker.start_polling()
        assert tracker.polling

        fake_api.orders["order-1"] = order_factory(status=OrderStatus.READY)
        await _wait_for(lambda: not tracker.polling)

        calls_after_terminal = fake_api.call_names().count("get_order")
        await asyncio.sleep(0.05)
        assert fake_api.call_names().count("get_order") == calls_after_terminal
        assert tracker.snapshot.status is OrderStatus.READY

    @pytest.mark.asyncio
    async def test_terminal_order_is_never_polled(self, tracker, fake_api, order_factory):
        fake_api.orders["order-1"] = order_factory(status=OrderStatus.REJECTED)
        await tracker.bind("order-1")
        tracker.start_polling()
        assert not tracker.polling
        await asyncio.sleep(0.03)
        assert fake_api.call_names().count("get_order") == 1

    @pytest.mark.asyncio
    async def test_no_refresh_after_detach(self, tracker, fake_api, order_factory):
        fake_api.orders["order-1"] = order_factory(status=OrderStatus.ACCEPTED)
        await tracker.bind("order-1")
        tracker.start_polling()
        await _wait_for(lambda: fake_api.call_names().count("get_order") >= 3)

        tracker.detach()
        calls_at_detach = fake_api.call_names().count("get_order")
        await asyncio.sleep(0.05)

        assert fake_api.call_names().count("get_order") == calls_at_detach
        assert not tracker.polling
        assert tracker.snapshot is None

    @pytest.mark.asyncio
    async def test_late_response_after_detach_is_discarded(self, tracker, fake_api, session, order_factory):
        fake_api.orders["order-1"] = order_factory()
        await tracker.bind("order-1")

        fake_api.pending_orders = []
        pending = asyncio.create_task(tracker.refresh())
        await _wait_for(lambda: len(fake_api.pending_orders) == 1)
        tracker.detach()
        fake_api.pending_orders[0].set_result(order_factory(status=OrderStatus.COMPLETED))

        assert await pending is None
        assert tracker.snapshot is None
        assert session.active_order.status is OrderStatus.PENDING

    @pytest.mark.asyncio
    async def test_polling_survives_transient_failures(self, tracker, fake_api, order_factory):
        fake_api.orders["order-1"] = order_factory()
        await tracker.bind("order-1")
        fake_api.errors["get_order"] = TransientError("Service unavailable", 503)
        tracker.start_polling()

        await _wait_for(lambda: fake_api.call_names().count("get_order") >= 3)
        assert tracker.polling
        assert not tracker.stale
        tracker.detach()

"""Order lifecycle tracking and status polling."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable

from tableorder.api import ApiClient
from tableorder.config import resolve_poll_interval
from tableorder.constant import (
    DEFAULT_STATUS_MESSAGE,
    PROGRESS_STEP_LABELS,
    STATUS_MESSAGES,
    STEP_ACTIVE,
    STEP_COMPLETED,
    STEP_PENDING,
)
from tableorder.errors import StateError, TransientError
from tableorder.models import STATUS_SEQUENCE, Order, OrderStatus, ProgressChecklist, ProgressStep
from tableorder.session import SessionContext

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    ACTIVE = "active"
    TERMINAL = "terminal"


_ACTIVE_STATUSES = {OrderStatus.PENDING, OrderStatus.ACCEPTED, OrderStatus.PREPARING}


def classify_status(status: OrderStatus) -> Phase:
    """Orders in a terminal phase are no longer polled."""
    if status in _ACTIVE_STATUSES:
        return Phase.ACTIVE
    return Phase.TERMINAL


def status_message(status: OrderStatus) -> str:
    return STATUS_MESSAGES.get(status.value, DEFAULT_STATUS_MESSAGE)


def progress_steps(status: OrderStatus) -> ProgressChecklist:
    """Derive the progress checklist from the current status alone.

    A step is completed once the status has moved strictly past it and active
    while the status equals it. A completed order shows its final step as
    completed. A rejection supersedes the whole checklist.
    """
    if status is OrderStatus.REJECTED:
        return ProgressChecklist(
            steps=[ProgressStep(step, PROGRESS_STEP_LABELS[step.value], STEP_PENDING) for step in STATUS_SEQUENCE],
            rejected=True,
        )

    steps: list[ProgressStep] = []
    for step in STATUS_SEQUENCE:
        if status.is_after(step) or (step is OrderStatus.COMPLETED and status is OrderStatus.COMPLETED):
            state = STEP_COMPLETED
        elif status is step:
            state = STEP_ACTIVE
        else:
            state = STEP_PENDING
        steps.append(ProgressStep(step, PROGRESS_STEP_LABELS[step.value], state))
    return ProgressChecklist(steps=steps)


class PollTask:
    """Cancellable fixed-interval poller with a single in-flight guard.

    ``fire()`` starts one tick unless the previous tick is still running, in
    which case the tick is skipped.
    """

    def __init__(self, callback: Callable[[], Awaitable[object]], interval: float) -> None:
        self.callback = callback
        self.interval = interval
        self.skipped_ticks = 0
        self._loop_task: asyncio.Task[None] | None = None
        self._inflight: asyncio.Task[object] | None = None
        self._stopped = False

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._stopped

    @property
    def in_flight(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    def start(self) -> None:
        if self._loop_task is not None:
            return
        self._stopped = False
        self._loop_task = asyncio.get_running_loop().create_task(self._run())

    def fire(self) -> bool:
        """Start one tick. Returns False when skipped or stopped."""
        if self._stopped:
            return False
        if self.in_flight:
            self.skipped_ticks += 1
            logger.debug("poll_tick_skipped reason=in_flight")
            return False
        self._inflight = asyncio.get_running_loop().create_task(self.callback())
        self._inflight.add_done_callback(self._tick_done)
        return True

    def stop(self) -> None:
        self._stopped = True
        current = asyncio.current_task()
        if self._loop_task is not None and self._loop_task is not current:
            self._loop_task.cancel()
        # A tick may stop its own poller; it finishes on its own.
        if self._inflight is not None and self._inflight is not current and not self._inflight.done():
            self._inflight.cancel()
        self._loop_task = None

    async def _run(self) -> None:
        while not self._stopped:
            await asyncio.sleep(self.interval)
            if self._stopped:
                return
            self.fire()

    def _tick_done(self, task: asyncio.Task[object]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("poll_tick_failed error=%r", exc)


class OrderTracker:
    """Mirrors the collaborator's view of one order.

    The tracker never changes an order's status. Snapshots replace each other
    wholesale, and a response is only applied if it answers a newer request
    than the snapshot already held.
    """

    def __init__(
        self,
        session: SessionContext,
        api: ApiClient,
        interval: float | None = None,
        on_update: Callable[[OrderTracker], None] | None = None,
    ) -> None:
        self.session = session
        self.api = api
        self.interval = interval if interval is not None else resolve_poll_interval()
        self.on_update = on_update
        self.order_id: str | None = None
        self.snapshot: Order | None = None
        self.stale = False
        self.last_error: Exception | None = None
        self._poller: PollTask | None = None
        self._issued_seq = 0
        self._applied_seq = 0
        self._generation = 0

    @property
    def bound(self) -> bool:
        return self.order_id is not None

    @property
    def phase(self) -> Phase | None:
        if self.snapshot is None:
            return None
        return classify_status(self.snapshot.status)

    @property
    def polling(self) -> bool:
        return self._poller is not None and self._poller.running

    def progress(self) -> ProgressChecklist | None:
        if self.snapshot is None:
            return None
        return progress_steps(self.snapshot.status)

    async def bind(self, order_id: str) -> Order:
        """Attach to ``order_id``; a missing order raises NotFoundError."""
        if not order_id:
            raise StateError("Cannot bind tracker without an order id")
        self.detach()
        self.order_id = order_id
        generation = self._generation
        self._issued_seq += 1
        seq = self._issued_seq
        try:
            order = await self.api.get_order(order_id)
        except Exception:
            if generation == self._generation:
                self.order_id = None
            raise
        if generation == self._generation:
            self._apply(order, seq)
        logger.info("tracker_bound order_id=%s status=%s", order_id, order.status.value)
        return order

    async def refresh(self) -> Order | None:
        """Fetch and mirror the current snapshot.

        Transient failures keep the last-known-good snapshot and set ``stale``.
        """
        if self.order_id is None:
            raise StateError("Tracker is not bound to an order")
        order_id = self.order_id
        generation = self._generation
        self._issued_seq += 1
        seq = self._issued_seq
        try:
            order = await self.api.get_order(order_id)
        except TransientError as exc:
            if generation != self._generation or seq < self._applied_seq:
                return self.snapshot
            self.stale = True
            self.last_error = exc
            logger.warning("tracker_refresh_failed order_id=%s error=%r", order_id, exc)
            self._notify()
            return self.snapshot

        if generation != self._generation:
            logger.debug("tracker_response_discarded order_id=%s reason=detached", order_id)
            return None
        if seq <= self._applied_seq:
            logger.debug("tracker_response_discarded order_id=%s seq=%d applied=%d", order_id, seq, self._applied_seq)
            return self.snapshot
        self._apply(order, seq)
        return order

    def start_polling(self) -> None:
        if self.order_id is None:
            raise StateError("Tracker is not bound to an order")
        if self.phase is Phase.TERMINAL or self.polling:
            return
        self._poller = PollTask(self.refresh, self.interval)
        self._poller.start()
        logger.info("tracker_polling_started order_id=%s interval=%s", self.order_id, self.interval)

    def stop_polling(self) -> None:
        if self._poller is None:
            return
        self._poller.stop()
        self._poller = None
        logger.info("tracker_polling_stopped order_id=%s", self.order_id)

    def detach(self) -> None:
        """Stop polling and forget the order; late responses are discarded."""
        self.stop_polling()
        self._generation += 1
        self.order_id = None
        self.snapshot = None
        self.stale = False
        self.last_error = None

    def _apply(self, order: Order, seq: int) -> None:
        self.snapshot = order
        self._applied_seq = seq
        self.stale = False
        self.last_error = None
        self.session.set_active_order(order)
        logger.debug("tracker_snapshot_applied order_id=%s status=%s seq=%d", order.id, order.status.value, seq)
        if classify_status(order.status) is Phase.TERMINAL:
            self.stop_polling()
        self._notify()

    def _notify(self) -> None:
        if self.on_update is not None:
            self.on_update(self)

"""
Interaction queue for Verdant.

UI and world events arrive concurrently, but the orchestrator and the garden must only ever see
one turn at a time.  :class:`InteractionQueue` serializes handlers through a single asyncio
worker, debounces bursts of the same event type, bounds the number of waiting items, and gives
every in-flight item a deadline.
"""

import asyncio
import inspect
import itertools
import logging
import time
from collections import deque
from typing import (
    Any,
    Awaitable,
    Callable,
    Deque,
    Dict,
    Optional,
    Set,
    Union,
)

from verdant.config import settings

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Union[Any, Awaitable[Any]]]


class QueueError(RuntimeError):
    """Base class for the explicit reasons a queued interaction does not produce a result."""


class InteractionDropped(QueueError):
    """Evicted because the queue was full."""


class InteractionTimeout(QueueError):
    """The handler did not finish before the per-item deadline."""


class InteractionCancelled(QueueError):
    """Removed from the queue by :meth:`InteractionQueue.cancel_by_type` or ``clear``."""


_ids = itertools.count(1)


class QueuedInteraction:
    """One accepted enqueue: the handler, its input and the future the caller awaits."""

    __slots__ = ("id", "type", "data", "handler", "future", "enqueued_at")

    def __init__(self, type_: str, data: Any, handler: Handler, future: "asyncio.Future[Any]"):
        self.id = next(_ids)
        self.type = type_
        self.data = data
        self.handler = handler
        self.future = future
        self.enqueued_at = time.monotonic()

    def reject(self, exc: BaseException) -> None:
        if not self.future.done():
            self.future.set_exception(exc)

    def resolve(self, value: Any) -> None:
        if not self.future.done():
            self.future.set_result(value)

    def __repr__(self) -> str:
        return f"QueuedInteraction(id={self.id}, type={self.type!r})"


class InteractionQueue:
    """
    FIFO queue with exactly one item in flight.

    Parameters
    ----------
    debounce_seconds : float, optional
        Minimum spacing between two accepted enqueues of the same type.
    max_size : int, optional
        Maximum number of waiting (not yet started) items.
    timeout_seconds : float, optional
        Deadline for each in-flight handler.
    clock : Callable[[], float], optional
        Monotonic clock used for debouncing.
    """

    def __init__(
        self,
        debounce_seconds: float | None = None,
        max_size: int | None = None,
        timeout_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.debounce_seconds = (
            settings.QUEUE_DEBOUNCE_SECONDS if debounce_seconds is None else debounce_seconds
        )
        self.max_size = settings.QUEUE_MAX_SIZE if max_size is None else max_size
        self.timeout_seconds = (
            settings.QUEUE_TIMEOUT_SECONDS if timeout_seconds is None else timeout_seconds
        )
        if self.max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._clock = clock
        self._pending: Deque[QueuedInteraction] = deque()
        self._last_accepted: Dict[str, float] = {}
        self._current: Optional[QueuedInteraction] = None
        self._worker: Optional[asyncio.Task] = None
        self._wakeup: Optional[asyncio.Event] = None
        self._idle: Optional[asyncio.Event] = None
        self._stragglers: Set[asyncio.Task] = set()

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #
    def __len__(self) -> int:
        return len(self._pending)

    @property
    def busy(self) -> bool:
        return self._current is not None

    @property
    def is_empty(self) -> bool:
        return not self._pending and self._current is None

    @property
    def current_id(self) -> Optional[int]:
        return self._current.id if self._current is not None else None

    # ------------------------------------------------------------------ #
    # Enqueue / cancel
    # ------------------------------------------------------------------ #
    def enqueue(
        self, type_: str, data: Any, handler: Handler, debounce: bool = True
    ) -> Optional["asyncio.Future[Any]"]:
        """
        Queue ``handler(data)``.

        ``debounce=False`` bypasses the repeat window, for control items such as a reset.

        Returns
        -------
        asyncio.Future | None
            Future settled with the handler's result, or rejected with a :class:`QueueError`
            subclass or the handler's own exception.  ``None`` when the request was debounced:
            nothing was queued and nothing will run.
        """
        now = self._clock()
        last = self._last_accepted.get(type_)
        if debounce and last is not None and now - last < self.debounce_seconds:
            logger.debug("Debounced '%s' interaction", type_)
            return None
        self._last_accepted[type_] = now

        loop = asyncio.get_running_loop()
        item = QueuedInteraction(type_, data, handler, loop.create_future())

        if len(self._pending) >= self.max_size:
            evicted = self._pending.popleft()
            logger.warning("Queue full, dropping oldest waiting interaction %r", evicted)
            evicted.reject(InteractionDropped(f"interaction {evicted.id} dropped: queue full"))

        self._pending.append(item)
        self._ensure_worker(loop)
        self._idle.clear()
        self._wakeup.set()
        return item.future

    def cancel_by_type(self, type_: str) -> int:
        """Reject and remove every waiting item of *type_*; the in-flight item is untouched."""
        keep: Deque[QueuedInteraction] = deque()
        cancelled = 0
        for item in self._pending:
            if item.type == type_:
                item.reject(InteractionCancelled(f"interaction {item.id} cancelled"))
                cancelled += 1
            else:
                keep.append(item)
        self._pending = keep
        return cancelled

    def clear(self) -> int:
        """Reject and remove every waiting item."""
        cancelled = len(self._pending)
        while self._pending:
            item = self._pending.popleft()
            item.reject(InteractionCancelled(f"interaction {item.id} cancelled"))
        return cancelled

    async def join(self) -> None:
        """Wait until nothing is waiting or in flight."""
        while not self.is_empty:
            if self._idle is None:
                await asyncio.sleep(0)
                continue
            await self._idle.wait()

    async def close(self) -> None:
        """Cancel waiting items and stop the worker."""
        self.clear()
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None

    # ------------------------------------------------------------------ #
    # Worker
    # ------------------------------------------------------------------ #
    def _ensure_worker(self, loop: asyncio.AbstractEventLoop) -> None:
        if (
            self._worker is not None
            and not self._worker.done()
            and self._worker.get_loop() is loop
        ):
            return
        self._wakeup = asyncio.Event()
        self._idle = asyncio.Event()
        self._worker = loop.create_task(self._run(), name="interaction-queue-worker")

    async def _run(self) -> None:
        while True:
            if not self._pending:
                self._idle.set()
                self._wakeup.clear()
                await self._wakeup.wait()
                continue

            self._idle.clear()
            item = self._pending.popleft()
            self._current = item
            try:
                await self._process(item)
            finally:
                self._current = None

    async def _process(self, item: QueuedInteraction) -> None:
        if item.future.done():
            return
        task = asyncio.ensure_future(_invoke(item.handler, item.data))
        done, _ = await asyncio.wait({task}, timeout=self.timeout_seconds)

        if not done:
            logger.warning(
                "Interaction %r timed out after %.1fs", item, self.timeout_seconds
            )
            item.reject(
                InteractionTimeout(
                    f"interaction {item.id} timed out after {self.timeout_seconds}s"
                )
            )
            self._stragglers.add(task)
            task.add_done_callback(self._straggler_done)
            return

        if task.cancelled():
            logger.warning("Interaction %r was cancelled while running", item)
            item.reject(InteractionCancelled(f"interaction {item.id} cancelled while running"))
            return

        exc = task.exception()
        if exc is not None:
            logger.error("Interaction %r failed: %s", item, exc)
            item.reject(exc)
        else:
            item.resolve(task.result())

    def _straggler_done(self, task: asyncio.Task) -> None:
        self._stragglers.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Timed-out interaction failed later: %s", exc)


async def _invoke(handler: Handler, data: Any) -> Any:
    result = handler(data)
    if inspect.isawaitable(result):
        result = await result
    return result

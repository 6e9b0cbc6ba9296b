"""First-class cancellation tokens for asyncio operations."""

import asyncio
import contextlib
from typing import Awaitable, TypeVar

from ..errors import CancelReason, OperationCancelled

T = TypeVar("T")


class CancellationToken:
    """Cancels the awaitable it guards, either on demand or after a delay.

    A timeout is just a cancellation scheduled on the event loop, so explicit
    cancel and timeout go through the same path. Call :meth:`dispose` once the
    guarded operation is over to free the timer.
    """

    def __init__(self):
        self._event = asyncio.Event()
        self._timer: asyncio.TimerHandle | None = None
        self.reason: CancelReason | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: CancelReason = CancelReason.USER) -> None:
        """Fire the token; the first reason wins."""
        if self._event.is_set():
            return
        self.reason = reason
        self._event.set()
        self._clear_timer()

    def cancel_after(self, seconds: float) -> None:
        """Schedule a timeout cancellation."""
        self._clear_timer()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(seconds, self.cancel, CancelReason.TIMEOUT)

    def dispose(self) -> None:
        self._clear_timer()

    def _clear_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def run(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless the token fires first.

        Raises:
            OperationCancelled: the token fired; the operation was aborted
        """
        if self.cancelled:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise OperationCancelled(self.reason)

        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if task.done():
            return task.result()

        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        raise OperationCancelled(self.reason)

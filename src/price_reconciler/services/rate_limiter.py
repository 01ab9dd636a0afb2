"""Debounce and throttle primitives.

Both wrappers own a single pending ``asyncio.TimerHandle`` and must be
called from inside a running event loop. Wrapped callables may be plain
functions or coroutine functions; a coroutine result is scheduled as a task.
"""

import asyncio
import inspect
import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


class _TimerOwner:
    """Shared state for objects that own one pending timer."""

    def __init__(self, func: Callable[..., Any], name: str | None) -> None:
        self._func = func
        self._name = name or getattr(func, "__qualname__", repr(func))
        self._handle: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task] = set()
        self.calls = 0
        self.fired = 0

    @property
    def pending(self) -> bool:
        """True while a scheduled call has not fired yet."""
        return self._handle is not None

    def cancel(self) -> None:
        """Drop the pending call, if any."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _invoke(self, args: tuple, kwargs: dict) -> None:
        self.fired += 1
        result = self._func(*args, **kwargs)
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("%s failed", self._name, exc_info=task.exception())

    async def drain(self) -> None:
        """Wait for coroutine calls already started by this wrapper."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)


class Debouncer(_TimerOwner):
    """Only the last call inside a trailing window fires.

    Every call cancels the pending one and schedules a new call ``wait``
    seconds later, so a burst of calls collapses into one.

    Example:
        ```python
        reconcile = Debouncer(scheduler.request, wait=0.5)
        for _ in range(100):
            reconcile()       # one scheduler.request() ~0.5s after the last call
        ```
    """

    def __init__(self, func: Callable[..., Any], wait: float, name: str | None = None) -> None:
        """Initialize the debouncer.

        Args:
            func: Callable to invoke.
            wait: Trailing window in seconds.
            name: Label used in logs.
        """
        if wait < 0:
            raise ValueError(f"wait must not be negative, got {wait}")
        super().__init__(func, name)
        self._wait = wait

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        self.calls += 1
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self._wait, self._fire, args, kwargs)

    def _fire(self, args: tuple, kwargs: dict) -> None:
        self._handle = None
        self._invoke(args, kwargs)

    @property
    def wait(self) -> float:
        """Get the trailing window in seconds."""
        return self._wait


class Throttler(_TimerOwner):
    """Fire at most once per interval, with a trailing guarantee.

    The first call fires immediately. A call arriving inside the interval
    replaces any pending call and is scheduled for the interval boundary, so
    the most recent arguments always fire even if calls stop arriving.
    """

    def __init__(self, func: Callable[..., Any], interval: float, name: str | None = None) -> None:
        """Initialize the throttler.

        Args:
            func: Callable to invoke.
            interval: Minimum seconds between two invocations.
            name: Label used in logs.
        """
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        super().__init__(func, name)
        self._interval = interval
        self._last_ran: float | None = None

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        self.calls += 1
        loop = asyncio.get_running_loop()
        now = loop.time()

        if self._handle is None and (self._last_ran is None or now - self._last_ran >= self._interval):
            self._run(loop, args, kwargs)
            return

        self.cancel()
        delay = max(0.0, self._interval - (now - (self._last_ran or now)))
        self._handle = loop.call_later(delay, self._trailing, loop, args, kwargs)

    def _trailing(self, loop: asyncio.AbstractEventLoop, args: tuple, kwargs: dict) -> None:
        self._handle = None
        self._run(loop, args, kwargs)

    def _run(self, loop: asyncio.AbstractEventLoop, args: tuple, kwargs: dict) -> None:
        self._last_ran = loop.time()
        self._invoke(args, kwargs)

    def reset(self) -> None:
        """Forget the last run so the next call fires immediately."""
        self.cancel()
        self._last_ran = None

    @property
    def interval(self) -> float:
        """Get the minimum interval in seconds."""
        return self._interval

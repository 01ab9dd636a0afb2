"""asyncio implementation of IdleScheduler."""

import asyncio


class AsyncioIdleScheduler:
    """Yield to the event loop between reconciliation slices.

    This class satisfies the IdleScheduler protocol through structural
    typing. A zero delay lets every ready callback (input handlers, other
    tasks) run before the next slice; a positive delay adds breathing room.
    """

    def __init__(self, delay: float = 0.0) -> None:
        """Initialize the scheduler.

        Args:
            delay: Seconds to sleep at each yield point.
        """
        if delay < 0:
            raise ValueError(f"delay must not be negative, got {delay}")
        self._delay = delay
        self._yields = 0

    async def wait_for_idle(self) -> None:
        """Yield control to the loop."""
        self._yields += 1
        await asyncio.sleep(self._delay)

    @property
    def yields(self) -> int:
        """Number of yields performed so far."""
        return self._yields

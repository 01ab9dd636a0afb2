"""Idle scheduler protocol.

The host's background scheduling facility. Reconciliation awaits it between
slices so that rendering and input handling are never starved.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class IdleScheduler(Protocol):
    """Protocol for cooperative yield points."""

    async def wait_for_idle(self) -> None:
        """Return once the host has spare capacity for the next slice."""
        ...

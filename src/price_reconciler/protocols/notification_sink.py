"""Notification sink protocol.

Consumes cache statistics and reconciliation summaries for observability.
Implementations must return promptly: the core never waits on them.
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class NotificationSink(Protocol):
    """Protocol for observability consumers."""

    def publish(self, event: str, payload: dict[str, Any]) -> None:
        """Receive one event.

        Args:
            event: Event name, e.g. ``"reconciliation.pass"``
            payload: JSON-compatible event data
        """
        ...

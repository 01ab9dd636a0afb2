"""Watch the page for relevant insertions and client-side navigation."""

import asyncio
import contextlib
import logging
from collections.abc import Callable, Sequence
from typing import Any

from price_reconciler.protocols import MutationRecord, MutationSubscription, PageAdapter
from price_reconciler.services.rate_limiter import Throttler

logger = logging.getLogger(__name__)

APP_ROOT_SELECTOR = "#__next"
VENDOR_TARGET_SELECTORS = ('a[href*="/restaurant/menu/"]', '[class*="vendor"]')
PRODUCT_TARGET_SELECTORS = ('section[class*="ProductCard"]',)


class ChangeWatcher:
    """Call ``trigger`` when nodes matching the target selectors are added.

    The trigger is normally a ``Debouncer`` around a scheduler's ``request``.
    When the application root is missing the whole document body is watched.
    """

    def __init__(
        self,
        adapter: PageAdapter,
        selectors: Sequence[str],
        trigger: Callable[[], Any],
        root_selector: str = APP_ROOT_SELECTOR,
    ) -> None:
        self._adapter = adapter
        self._selectors = tuple(selectors)
        self._trigger = trigger
        self._root_selector = root_selector
        self._subscription: MutationSubscription | None = None
        self.watching_body = False
        self.notifications = 0
        self.triggers = 0

    def start(self) -> None:
        if self._subscription is not None:
            return

        root: str | None = self._root_selector
        if not self._adapter.has_root(self._root_selector):
            logger.info("%s not found, watching the document body", self._root_selector)
            root = None
        self.watching_body = root is None
        self._subscription = self._adapter.observe(root, self._on_mutations)

    def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.disconnect()
            self._subscription = None

    @property
    def active(self) -> bool:
        return self._subscription is not None

    def _on_mutations(self, records: list[MutationRecord]) -> None:
        self.notifications += 1
        if any(self._is_relevant(record) for record in records):
            self.triggers += 1
            self._trigger()

    def _is_relevant(self, record: MutationRecord) -> bool:
        return any(self._adapter.node_matches(node, self._selectors) for node in record.added_nodes)


class NavigationMonitor:
    """Detect location changes by polling, at most once per interval.

    ``on_navigate(previous, current)`` runs once per observed change.
    """

    def __init__(
        self,
        adapter: PageAdapter,
        on_navigate: Callable[[str, str], Any],
        poll_interval: float = 1.0,
    ) -> None:
        self._adapter = adapter
        self._on_navigate = on_navigate
        self._poll_interval = poll_interval
        self._throttled = Throttler(self.check, poll_interval, name="navigation check")
        self._task: asyncio.Task | None = None
        self.last_known_location = adapter.current_location()
        self.navigations = 0

    def check(self) -> bool:
        """Compare the current location with the last known one.

        Returns:
            True if the location changed
        """
        current = self._adapter.current_location()
        if current == self.last_known_location:
            return False

        previous, self.last_known_location = self.last_known_location, current
        self.navigations += 1
        logger.debug("location changed (#%d): %s -> %s", self.navigations, previous, current)
        self._on_navigate(previous, current)
        return True

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.ensure_future(self._poll())

    async def stop(self) -> None:
        self._throttled.cancel()
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _poll(self) -> None:
        while True:
            await asyncio.sleep(self._poll_interval)
            self._throttled()

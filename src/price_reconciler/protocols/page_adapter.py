"""Page adapter protocol.

Defines the interface to the live, externally mutating document. Element
handles are opaque to the core: it only passes them back to the adapter.

Implementations can include:
- a browser bridge driving a real page
- an in-memory document used by tests
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from price_reconciler.entities import ComparisonRecord, DecorationKey, ProductVerdict


@dataclass(frozen=True)
class MutationRecord:
    """One structural change notification.

    Attributes:
        added_nodes: Handles of the nodes inserted by the change
    """

    added_nodes: tuple[Any, ...]


MutationCallback = Callable[[list[MutationRecord]], None]


@runtime_checkable
class MutationSubscription(Protocol):
    """Handle returned by ``PageAdapter.observe``."""

    def disconnect(self) -> None:
        """Stop delivering notifications."""
        ...


@runtime_checkable
class PageAdapter(Protocol):
    """Protocol for the host page.

    ``decorate`` and ``annotate_product`` must be idempotent when called again
    with the same arguments.
    """

    def current_location(self) -> str:
        """Return the current page address."""
        ...

    def query_candidates(self, selectors: Sequence[str]) -> list[Any]:
        """Return every element matching any selector, in document order."""
        ...

    def extract_vendor_code(self, item: Any) -> str | None:
        """Derive the vendor code of a candidate, or None if it has none."""
        ...

    def closest(self, item: Any, selector: str) -> Any | None:
        """Return the nearest ancestor (or the item itself) matching selector."""
        ...

    def parent_of(self, item: Any) -> Any | None:
        """Return the direct parent of an element."""
        ...

    def is_document_root(self, handle: Any) -> bool:
        """Return True for the document body or root element."""
        ...

    def markup(self, handle: Any) -> str:
        """Return the serialized markup of an element."""
        ...

    def text_of(self, handle: Any) -> str:
        """Return the visible text of an element."""
        ...

    def rating_text(self, handle: Any) -> str | None:
        """Return the text of the platform's dedicated rating element, if any."""
        ...

    def product_title(self, item: Any) -> str | None:
        """Return the title of a product card, if any."""
        ...

    def decorate(self, container: Any, key: DecorationKey) -> None:
        """Apply the border class and badge for a decoration key."""
        ...

    def annotate_product(
        self,
        item: Any,
        verdict: ProductVerdict,
        record: ComparisonRecord | None,
    ) -> None:
        """Attach a comparison annotation to a product card."""
        ...

    def clear_decorations(self) -> None:
        """Remove every annotation and badge added to the page."""
        ...

    def has_root(self, selector: str) -> bool:
        """Return True if an element matching selector exists."""
        ...

    def observe(self, root_selector: str | None, callback: MutationCallback) -> MutationSubscription:
        """Subscribe to subtree insertions under a root.

        Args:
            root_selector: Root to watch, or None for the whole document body
            callback: Receives batches of mutation records

        Returns:
            A subscription that can be disconnected
        """
        ...

    def node_matches(self, node: Any, selectors: Sequence[str]) -> bool:
        """Return True if node, or any descendant, matches one of selectors."""
        ...

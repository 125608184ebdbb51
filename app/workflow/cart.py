"""
==============================================================================
Cart Store Module
==============================================================================

Ordered, in-session collection of scanned items awaiting submission.

Identical scans are kept as separate entries; each entry gets its own
temp_id so it can be removed individually.

==============================================================================
"""

from __future__ import annotations

import logging
import uuid
from typing import Iterator, List

from app.schemas.scan import ScannedItem


# Module logger
logger = logging.getLogger(__name__)


class CartStore:
    """
    Cart for the current workflow session.

    Example:
        >>> cart = CartStore()
        >>> items = cart.add(parser.parse("P1"))
        >>> cart.remove(items[0].temp_id)
        >>> cart.is_empty()
        True
    """

    def __init__(self) -> None:
        self._items: List[ScannedItem] = []

    def add(self, item: ScannedItem) -> List[ScannedItem]:
        """
        Append an item under a fresh temp_id.

        Returns:
            The cart contents in insertion order
        """
        entry = item.model_copy(update={"temp_id": self._new_temp_id()})
        self._items.append(entry)
        logger.info(f"📦 Added to cart: {entry.name} ({entry.id})")
        return self.items

    def remove(self, temp_id: str) -> None:
        """Remove the entry with this temp_id. Unknown ids are ignored."""
        before = len(self._items)
        self._items = [i for i in self._items if i.temp_id != temp_id]
        if len(self._items) != before:
            logger.info(f"🗑️ Removed from cart: {temp_id}")

    def clear(self) -> None:
        """Empty the cart."""
        self._items.clear()

    def is_empty(self) -> bool:
        return not self._items

    @property
    def items(self) -> List[ScannedItem]:
        """Copy of the cart contents in insertion order."""
        return list(self._items)

    def to_list(self) -> List[dict]:
        return [item.model_dump() for item in self._items]

    def _new_temp_id(self) -> str:
        temp_id = uuid.uuid4().hex
        while any(i.temp_id == temp_id for i in self._items):
            temp_id = uuid.uuid4().hex
        return temp_id

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[ScannedItem]:
        return iter(self.items)

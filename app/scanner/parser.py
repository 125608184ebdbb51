"""
==============================================================================
Scan Parser Module
==============================================================================

Turns decoded QR text into a ScannedItem.

Expected payload:
-----------------
    {"name": "UltraSeal", "batch": "B1", "bag": "BG1", "id": "P1", "qty": "5KG"}

Anything that is not a JSON object becomes a placeholder item whose `id`
is the raw text, so every decode produces a usable cart entry.

==============================================================================
"""

from __future__ import annotations

import json
import logging
from typing import Any

from app.schemas.scan import ScannedItem


# Module logger
logger = logging.getLogger(__name__)


class ScanParser:
    """
    Parser for decoded QR payloads.

    Example:
        >>> parser = ScanParser()
        >>> parser.parse('{"name": "UltraSeal", "batch": "B1", '
        ...              '"bag": "BG1", "id": "P1", "qty": "5KG"}').name
        'UltraSeal'
        >>> parser.parse("not-json-garbage").name
        'Unknown Item'
    """

    FIELDS = ("name", "batch", "bag", "id", "qty")

    FALLBACK_NAME = "Unknown Item"
    FALLBACK_BATCH = "N/A"
    FALLBACK_BAG = "N/A"
    FALLBACK_QTY = "1"

    def parse(self, text: str) -> ScannedItem:
        """
        Parse decoded text. Never raises.

        Args:
            text: Raw decoded QR text

        Returns:
            ScannedItem without a temp_id
        """
        try:
            data = json.loads(text)
            if not isinstance(data, dict):
                logger.debug("Scan payload is not a JSON object, using placeholder item")
                return self.fallback(text)

            return ScannedItem(**{
                field: self._coerce(data.get(field)) for field in self.FIELDS
            })
        except (TypeError, ValueError, RecursionError):
            # RecursionError: nesting deeper than the json module can walk
            logger.debug("Scan payload is not usable JSON, using placeholder item")
            return self.fallback(text)

    def fallback(self, text: Any) -> ScannedItem:
        """Placeholder item carrying the raw text as its id."""
        return ScannedItem(
            name=self.FALLBACK_NAME,
            batch=self.FALLBACK_BATCH,
            bag=self.FALLBACK_BAG,
            id=text if isinstance(text, str) else str(text),
            qty=self.FALLBACK_QTY,
        )

    @staticmethod
    def _coerce(value: Any) -> str:
        # Missing keys become "", other values keep their JSON spelling
        if value is None:
            return ""
        if isinstance(value, str):
            return value
        return json.dumps(value, ensure_ascii=False)


def parse_scan(text: str) -> ScannedItem:
    """Module-level shortcut for ScanParser().parse()."""
    return ScanParser().parse(text)

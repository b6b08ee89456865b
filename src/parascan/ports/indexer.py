# parascan/ports/indexer.py
from __future__ import annotations

from typing import Any, Protocol


class IndexerClient(Protocol):
    """Port defining the contract for a chain-indexing API (Subscan shaped)."""

    async def events_page(self, request: dict[str, Any]) -> list[dict[str, Any]]:
        """Return the raw event records of one page; an empty page is []."""

    async def extrinsic(self, extrinsic_index: str) -> dict[str, Any] | None:
        """Return the extrinsic `data` object for "<block>-<idx>", or None when the indexer has none."""

# parascan/ports/storage.py
from __future__ import annotations

from typing import Awaitable, Callable, Protocol, Sequence
from ..domain.models import DisputeInitiator, PlottingPoint


class SeriesSink(Protocol):
    """Port for persisting derived series (e.g., CSV files)."""

    def write_points(self, name: str, points: Sequence[PlottingPoint]) -> str | None:
        """Persist latency samples under `name`; return the written path, None if nothing was written."""

    def write_initiators(self, name: str, rows: Sequence[DisputeInitiator]) -> str | None:
        """Persist resolved dispute initiators under `name`."""


class BlobCache(Protocol):
    """Port for a content-addressed store of immutable blobs."""

    def get(self, namespace: str, key: str) -> bytes | None:
        """Return the cached bytes for `key`, or None."""

    def put(self, namespace: str, key: str, data: bytes) -> str:
        """Store `data` under `key` and return its path."""

    async def get_or_fetch(self, namespace: str, key: str,
                           fetch: Callable[[], Awaitable[bytes]]) -> tuple[bytes, bool]:
        """Return (bytes, was_cached), calling `fetch` only on a miss."""

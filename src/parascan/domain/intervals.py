from __future__ import annotations
from typing import Iterable, TypeVar

from .models import DisputeEvent, InclusionEvent, IntervalSeries, PlottingPoint

T = TypeVar("T", InclusionEvent, DisputeEvent)


def sort_dedup(events: Iterable[T]) -> tuple[list[T], int]:
    """Sort ascending and drop repeated values. Returns (events, duplicates_removed)."""
    ordered = sorted(events)
    out: list[T] = []
    for ev in ordered:
        if not out or out[-1] != ev:
            out.append(ev)
    return out, len(ordered) - len(out)


def _blocks_between(later: int, earlier: int) -> int:
    return max(0, later - earlier)


def reconstruct(events: Iterable[InclusionEvent]) -> IntervalSeries:
    """
    Pair backed/included events into latency samples.

    Input must already be deduplicated and sorted by (block_num, para_id,
    included); unsorted input yields meaningless but non-negative samples.
    An inclusion sample measures blocks since the last backing, a backing
    sample blocks since the last inclusion.
    """
    last_backed: int | None = None
    last_included: int | None = None
    backing: list[PlottingPoint] = []
    inclusion: list[PlottingPoint] = []

    for ev in events:
        if ev.included:
            if last_backed is not None:
                inclusion.append(PlottingPoint(ev.block_num, _blocks_between(ev.block_num, last_backed)))
            last_included = ev.block_num
        else:
            if last_included is not None:
                backing.append(PlottingPoint(ev.block_num, _blocks_between(ev.block_num, last_included)))
            last_backed = ev.block_num

    return IntervalSeries(backing=backing, inclusion=inclusion)

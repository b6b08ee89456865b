import random

from parascan.domain.intervals import reconstruct, sort_dedup
from parascan.domain.models import DisputeEvent, InclusionEvent, PlottingPoint


def test_pairing_example():
    events = [InclusionEvent(10, 1, False), InclusionEvent(12, 1, True),
              InclusionEvent(15, 1, False), InclusionEvent(20, 1, True)]
    series = reconstruct(events)
    assert series.inclusion == [PlottingPoint(12, 2), PlottingPoint(20, 5)]
    assert series.backing == [PlottingPoint(15, 3)]


def test_no_samples_without_opposite_kind():
    series = reconstruct([InclusionEvent(1, 1, True), InclusionEvent(2, 1, True)])
    assert series.inclusion == []
    assert series.backing == []


def test_backed_and_included_in_same_block():
    # (block, para, False) sorts before (block, para, True)
    events, _ = sort_dedup([InclusionEvent(7, 1, True), InclusionEvent(7, 1, False), InclusionEvent(5, 1, True)])
    series = reconstruct(events)
    assert series.backing == [PlottingPoint(7, 2)]
    assert series.inclusion == [PlottingPoint(7, 0)]


def test_unsorted_input_never_goes_negative():
    events = [InclusionEvent(20, 1, False), InclusionEvent(12, 1, True), InclusionEvent(3, 1, False)]
    series = reconstruct(events)
    assert series.inclusion == [PlottingPoint(12, 0)]
    assert series.backing == [PlottingPoint(3, 0)]


def test_latencies_non_negative_and_ordered():
    rng = random.Random(7)
    raw = [InclusionEvent(rng.randint(0, 500), 1, rng.random() < 0.5) for _ in range(300)]
    events, _ = sort_dedup(raw)
    series = reconstruct(events)
    for points in (series.backing, series.inclusion):
        assert all(p.blocks >= 0 for p in points)
        blocks = [p.block_num for p in points]
        assert blocks == sorted(blocks)


def test_sort_dedup_counts_and_is_idempotent():
    raw = [InclusionEvent(3, 1, True), InclusionEvent(1, 1, False), InclusionEvent(3, 1, True),
           InclusionEvent(2, 2, True), InclusionEvent(1, 1, False)]
    once, dups = sort_dedup(raw)
    assert dups == 2
    assert once == [InclusionEvent(1, 1, False), InclusionEvent(2, 2, True), InclusionEvent(3, 1, True)]
    twice, dups_again = sort_dedup(once)
    assert twice == once
    assert dups_again == 0


def test_sort_dedup_dispute_events():
    events, dups = sort_dedup([DisputeEvent(9, 2), DisputeEvent(9, 1), DisputeEvent(9, 2), DisputeEvent(4, 7)])
    assert events == [DisputeEvent(4, 7), DisputeEvent(9, 1), DisputeEvent(9, 2)]
    assert dups == 1

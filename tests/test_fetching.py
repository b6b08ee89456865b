import pytest

from conftest import NO_DELAY, FakeIndexer, backed, included, timed_out
from parascan.application.fetching import (
    dispute_request,
    fetch_dispute_events,
    fetch_inclusion_events,
    inclusion_request,
)
from parascan.config import FetchConfig
from parascan.domain.models import DisputeEvent, InclusionEvent
from parascan.errors import FetchError


def test_request_shapes():
    assert inclusion_request(100, 100) == {"row": 100, "page": 0, "module": "parainclusion", "block_num": 100}
    assert dispute_request(2, 1_000_000, 400_000, 100) == {
        "row": 100, "page": 2, "module": "parasdisputes", "call": "disputeinitiated",
        "block_range": "600000-1000000",
    }
    assert dispute_request(0, 10, 400_000, 100)["block_range"] == "0-10"


def test_single_page_when_first_page_is_enough(run):
    indexer = FakeIndexer(lambda req: [included(100), backed(100), included(99, 2000)])
    events = run(fetch_inclusion_events(indexer, 100, 1000, 2, cfg=NO_DELAY))
    assert len(indexer.requests) == 1
    assert events == [InclusionEvent(100, 1000, False), InclusionEvent(100, 1000, True)]


def test_scans_backwards_one_block_per_request(run):
    by_block = {100: [included(100)], 99: [], 98: [backed(98), timed_out(98)], 97: [included(97)]}
    indexer = FakeIndexer(lambda req: by_block.get(req["block_num"], []))
    events = run(fetch_inclusion_events(indexer, 100, 1000, 3, cfg=NO_DELAY))
    assert [r["block_num"] for r in indexer.requests] == [100, 99, 98, 97]
    assert events == [InclusionEvent(97, 1000, True), InclusionEvent(98, 1000, False),
                      InclusionEvent(100, 1000, True)]


def test_other_paras_do_not_count_towards_min(run):
    by_block = {5: [included(5, 2000)], 4: [included(4, 2000)], 3: [included(3)]}
    indexer = FakeIndexer(lambda req: by_block.get(req["block_num"], []))
    events = run(fetch_inclusion_events(indexer, 5, 1000, 1, cfg=NO_DELAY))
    assert len(indexer.requests) == 3
    assert events == [InclusionEvent(3, 1000, True)]


def test_stops_at_genesis(run):
    indexer = FakeIndexer()
    assert run(fetch_inclusion_events(indexer, 2, 1000, 10, cfg=NO_DELAY)) == []
    assert [r["block_num"] for r in indexer.requests] == [2, 1, 0]


def test_duplicates_across_pages_are_removed(run):
    indexer = FakeIndexer(lambda req: [included(50)])
    events = run(fetch_inclusion_events(indexer, 51, 1000, 2, cfg=NO_DELAY))
    assert events == [InclusionEvent(50, 1000, True)]


def test_fixed_delay_after_every_request(run, sleeps):
    by_block = {10: [], 9: [included(9)]}
    indexer = FakeIndexer(lambda req: by_block.get(req["block_num"], []))
    run(fetch_inclusion_events(indexer, 10, 1000, 1, cfg=FetchConfig()))
    assert sleeps == [0.150, 0.150]


def test_observer_sees_running_count(run):
    seen = []
    by_block = {3: [included(3)], 2: [backed(2), included(2)]}
    indexer = FakeIndexer(lambda req: by_block.get(req["block_num"], []))
    run(fetch_inclusion_events(indexer, 3, 1000, 3, cfg=NO_DELAY, observer=seen.append))
    assert seen == [1, 3]


def test_malformed_record_aborts(run):
    indexer = FakeIndexer(lambda req: [{"block_num": 1, "event_id": "Nope", "params": ""}])
    with pytest.raises(FetchError):
        run(fetch_inclusion_events(indexer, 1, 1000, 1, cfg=NO_DELAY))


def test_transport_error_propagates(run):
    def boom(req):
        raise FetchError("connection reset")
    with pytest.raises(FetchError):
        run(fetch_inclusion_events(FakeIndexer(boom), 10, 1000, 1, cfg=NO_DELAY))


def test_disputes_stop_on_empty_page(run):
    pages = {0: [{"block_num": 9, "extrinsic_idx": 1}, {"block_num": 7, "extrinsic_idx": 2}], 1: []}
    indexer = FakeIndexer(lambda req: pages.get(req["page"], []))
    events = run(fetch_dispute_events(indexer, 10, 100, cfg=NO_DELAY))
    assert [r["page"] for r in indexer.requests] == [0, 1]
    assert events == [DisputeEvent(7, 2), DisputeEvent(9, 1)]


def test_disputes_stop_at_min_count(run):
    indexer = FakeIndexer(lambda req: [{"block_num": 100 - req["page"], "extrinsic_idx": 0}])
    events = run(fetch_dispute_events(indexer, 100, 2, cfg=NO_DELAY))
    assert len(indexer.requests) == 2
    assert events == [DisputeEvent(99, 0), DisputeEvent(100, 0)]


def test_disputes_stop_when_provider_repeats_a_page(run):
    indexer = FakeIndexer(lambda req: [{"block_num": 9, "extrinsic_idx": 1}])
    events = run(fetch_dispute_events(indexer, 10, 100, cfg=NO_DELAY))
    assert [r["page"] for r in indexer.requests] == [0, 1]
    assert events == [DisputeEvent(9, 1)]


def test_fixed_delay_after_every_dispute_page(run, sleeps):
    pages = {0: [{"block_num": 9, "extrinsic_idx": 1}], 1: [{"block_num": 8, "extrinsic_idx": 0}], 2: []}
    indexer = FakeIndexer(lambda req: pages.get(req["page"], []))
    run(fetch_dispute_events(indexer, 10, 100, cfg=FetchConfig()))
    assert len(indexer.requests) == 3
    assert sleeps == [0.150, 0.150, 0.150]

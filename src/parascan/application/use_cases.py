from __future__ import annotations

import logging
from typing import Optional

from ..config import FetchConfig
from ..domain.intervals import reconstruct
from ..domain.models import DisputeReport, IntervalSeries
from ..ports.indexer import IndexerClient
from ..ports.session_keys import SessionKeyLookup
from ..ports.storage import SeriesSink
from .disputes import DisputeResolver
from .fetching import Observer, fetch_inclusion_events

log = logging.getLogger(__name__)


def inclusion_series_name(up_to_block: int, kind: str, para_id: int) -> str:
    return f"{up_to_block}-{kind}-{para_id}"


def disputes_series_name(network: str, up_to_block: int) -> str:
    return f"disputes-{network}-{up_to_block}"


async def inclusion_latencies(
    *,
    indexer: IndexerClient,
    sink: SeriesSink,
    para_id: int,
    up_to_block: int,
    num_events: int,
    cfg: FetchConfig = FetchConfig(),
    observer: Optional[Observer] = None,
) -> tuple[IntervalSeries, dict[str, str]]:
    """Fetch backed/included events for `para_id` and persist both latency series."""
    events = await fetch_inclusion_events(indexer, up_to_block, para_id, num_events,
                                          cfg=cfg, observer=observer)
    series = reconstruct(events)

    written: dict[str, str] = {}
    for kind, points in (("backing", series.backing), ("inclusion", series.inclusion)):
        if not points:
            log.warning("no %s events found for %d", kind, para_id)
            continue
        path = sink.write_points(inclusion_series_name(up_to_block, kind, para_id), points)
        if path:
            written[kind] = path
            log.info("saved the %s data to %s", kind, path)
    return series, written


async def dispute_initiators(
    *,
    indexer: IndexerClient,
    session_keys: SessionKeyLookup,
    sink: SeriesSink,
    network: str,
    up_to_block: int,
    num_events: int,
    cfg: FetchConfig = FetchConfig(),
    observer: Optional[Observer] = None,
) -> tuple[DisputeReport, Optional[str]]:
    """Resolve who initiated recent disputes and persist one row per initiator."""
    resolver = DisputeResolver(indexer, session_keys, cfg=cfg, observer=observer)
    report = await resolver.run(up_to_block, num_events)
    path = sink.write_initiators(disputes_series_name(network, up_to_block), report.initiators)
    if path:
        log.info("saved the data to %s", path)
    return report, path

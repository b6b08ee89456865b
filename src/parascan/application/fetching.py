from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional

from ..config import FetchConfig
from ..domain.decoding import normalize_dispute_event, normalize_inclusion_event, raw_event_from_record
from ..domain.intervals import sort_dedup
from ..domain.models import DisputeEvent, InclusionEvent
from ..errors import FetchError
from ..ports.indexer import IndexerClient

log = logging.getLogger(__name__)

Observer = Callable[[int], None]   # receives the running count of collected events

INCLUSION_MODULE = "parainclusion"
DISPUTES_MODULE  = "parasdisputes"
DISPUTES_CALL    = "disputeinitiated"


def inclusion_request(block_num: int, rows: int) -> dict[str, Any]:
    return {"row": rows, "page": 0, "module": INCLUSION_MODULE, "block_num": block_num}


def dispute_request(page: int, up_to_block: int, window: int, rows: int) -> dict[str, Any]:
    lo = max(0, up_to_block - window)
    return {"row": rows, "page": page, "module": DISPUTES_MODULE, "call": DISPUTES_CALL,
            "block_range": f"{lo}-{up_to_block}"}


async def fetch_inclusion_events(
    indexer: IndexerClient,
    up_to_block: int,
    para_id: int,
    min_count: int,
    *,
    cfg: FetchConfig = FetchConfig(),
    observer: Optional[Observer] = None,
) -> list[InclusionEvent]:
    """
    Scan backwards one block per request from `up_to_block` until at least
    `min_count` backed/included events of `para_id` are collected (or genesis
    is passed). Returns them sorted and deduplicated.
    """
    log.info("fetching inclusion events, para_id=%d up to block %d", para_id, up_to_block)
    events: list[InclusionEvent] = []
    cursor = up_to_block
    while len(events) < min_count and cursor >= 0:
        records = await indexer.events_page(inclusion_request(cursor, cfg.rows_per_page))
        try:
            raws = [raw_event_from_record(r) for r in records]
        except (KeyError, TypeError, ValueError) as e:
            raise FetchError(f"block {cursor}: malformed event record: {e}") from e
        for raw in raws:
            ev = normalize_inclusion_event(raw)
            if ev is not None and ev.para_id == para_id:
                events.append(ev)
        cursor -= 1
        if observer is not None:
            observer(len(events))
        await asyncio.sleep(cfg.page_delay_s)

    events.reverse()
    out, dups = sort_dedup(events)
    if dups:
        log.info("%d duplicate events found", dups)
    return out


async def fetch_dispute_events(
    indexer: IndexerClient,
    up_to_block: int,
    min_count: int,
    *,
    cfg: FetchConfig = FetchConfig(),
    observer: Optional[Observer] = None,
) -> list[DisputeEvent]:
    """
    Page through dispute initiations in a fixed window below `up_to_block`.
    Stops at `min_count` events or on the first page that adds no event not already seen.
    """
    log.info("fetching dispute events up to block %d (window %d)", up_to_block, cfg.dispute_window)
    events: list[DisputeEvent] = []
    seen: set[DisputeEvent] = set()
    page = 0
    while len(events) < min_count:
        records = await indexer.events_page(dispute_request(page, up_to_block, cfg.dispute_window, cfg.rows_per_page))
        new_events = [ev for ev in map(normalize_dispute_event, records) if ev is not None and ev not in seen]
        seen.update(new_events)
        events.extend(new_events)
        page += 1
        if observer is not None:
            observer(len(events))
        await asyncio.sleep(cfg.page_delay_s)
        if not new_events:
            break

    out, dups = sort_dedup(events)
    if dups:
        log.info("%d duplicate dispute events found", dups)
    return out

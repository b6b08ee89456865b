from __future__ import annotations

import logging
from typing import Any, Mapping

from .models import DisputeEvent, DisputeInitiated, InclusionEvent, RawEvent
from .value_types import EVENT_KINDS, BlockHash, ParaId, SessionIndex, ValidatorIndex

log = logging.getLogger(__name__)

PARA_ID_MARKER = '"para_id":'
PARA_ID_WIDTH  = 4
INVALID_VOTE   = "Invalid"


# ---------- raw records (shape errors raise; callers treat them as fatal) ------

def raw_event_from_record(rec: Mapping[str, Any]) -> RawEvent:
    """Typed view of one `parainclusion` event record. Unknown event ids raise ValueError."""
    kind = rec["event_id"]
    if kind not in EVENT_KINDS:
        raise ValueError(f"unexpected event_id {kind!r} at block {rec.get('block_num')}")
    return RawEvent(block_num=int(rec["block_num"]), kind=kind, params=str(rec.get("params") or ""))


# ---------- inclusion / backing ------------------------------------------------

def extract_para_id(params: str) -> int | None:
    """
    Read the para id out of the opaque `params` text.

    The indexer always renders this event family's para id as exactly four
    ASCII digits right after the `"para_id":` marker, so this reads a fixed
    width slice instead of parsing JSON. Returns None when the marker is
    missing or the slice is not four digits.
    """
    idx = params.find(PARA_ID_MARKER)
    if idx < 0:
        return None
    start = idx + len(PARA_ID_MARKER)
    digits = params[start:start + PARA_ID_WIDTH]
    if len(digits) != PARA_ID_WIDTH or not (digits.isascii() and digits.isdigit()):
        return None
    return int(digits)


def normalize_inclusion_event(raw: RawEvent) -> InclusionEvent | None:
    para_id = extract_para_id(raw.params)
    if para_id is None:
        log.warning("%d: skipping %s, no para_id in params", raw.block_num, raw.kind)
        return None

    if raw.kind == "CandidateIncluded":
        included = True
    elif raw.kind == "CandidateBacked":
        included = False
    else:
        log.debug("%d: skipping CandidateTimedOut(%d)", raw.block_num, para_id)
        return None

    return InclusionEvent(block_num=raw.block_num, para_id=ParaId(para_id), included=included)


# ---------- disputes -----------------------------------------------------------

def normalize_dispute_event(rec: Mapping[str, Any]) -> DisputeEvent | None:
    try:
        return DisputeEvent(block_num=int(rec["block_num"]), extrinsic_idx=int(rec["extrinsic_idx"]))
    except (KeyError, TypeError, ValueError) as e:
        log.warning("skipping dispute event without block/extrinsic index: %s", e)
        return None


def _is_invalid_vote(kind: Any) -> bool:
    # col1 is a tagged union rendered as {"<Tag>": <payload>}
    return isinstance(kind, Mapping) and INVALID_VOTE in kind


def invalid_votes_from_extrinsic(data: Mapping[str, Any], block_num: int) -> list[DisputeInitiated]:
    """
    Expand a `paras_inherent.enter` extrinsic into one row per `Invalid` vote.

    Every dispute statement set contributes `(session, validator_index)` for
    each statement tagged `Invalid`; params that carry no `disputes` list are
    ignored. Raises KeyError/TypeError/ValueError on a malformed dispute entry.
    """
    block_hash = BlockHash(str(data.get("block_hash") or ""))
    if not block_hash:
        log.warning("block %d: extrinsic has no block_hash, session keys will be read at the chain head", block_num)
    out: list[DisputeInitiated] = []
    for param in data.get("params") or []:
        value = param.get("value") if isinstance(param, Mapping) else None
        if not isinstance(value, Mapping):
            continue
        for dispute in value.get("disputes") or []:
            session = SessionIndex(int(dispute["session"]))
            for st in dispute["statements"]:
                if not _is_invalid_vote(st["col1"]):
                    continue
                out.append(DisputeInitiated(
                    session_index=session,
                    block_num=block_num,
                    validator_index=ValidatorIndex(int(st["col2"])),
                    block_hash=block_hash,
                ))
    return out

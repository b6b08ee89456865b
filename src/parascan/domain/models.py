from __future__ import annotations
from dataclasses import dataclass
from .value_types import AccountId, BlockHash, EventKind, ParaId, SessionIndex, ValidatorIndex

@dataclass(slots=True, frozen=True)
class RawEvent:
    block_num: int
    kind: EventKind
    params: str                        # opaque JSON text as returned by the indexer

@dataclass(slots=True, frozen=True, order=True)
class InclusionEvent:
    block_num: int
    para_id: ParaId
    included: bool                     # False means backed

@dataclass(slots=True, frozen=True)
class PlottingPoint:
    block_num: int
    blocks: int

@dataclass(slots=True, frozen=True)
class IntervalSeries:
    backing: list[PlottingPoint]
    inclusion: list[PlottingPoint]

@dataclass(slots=True, frozen=True, order=True)
class DisputeEvent:
    block_num: int
    extrinsic_idx: int

    @property
    def extrinsic_index(self) -> str:
        return f"{self.block_num}-{self.extrinsic_idx}"

@dataclass(slots=True, frozen=True)
class DisputeInitiated:
    session_index: SessionIndex
    block_num: int
    validator_index: ValidatorIndex
    block_hash: BlockHash              # block carrying the dispute statements

@dataclass(slots=True, frozen=True)
class DisputeInitiator:
    session_index: SessionIndex
    account_id: AccountId

@dataclass(slots=True, frozen=True)
class DisputeReport:
    initiators: list[DisputeInitiator]
    events: int = 0
    skipped_extrinsics: int = 0
    sessions_resolved: int = 0
    dropped_rows: int = 0

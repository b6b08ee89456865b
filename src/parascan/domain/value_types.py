from __future__ import annotations
from typing import NewType, Literal

ParaId         = NewType("ParaId", int)
SessionIndex   = NewType("SessionIndex", int)
ValidatorIndex = NewType("ValidatorIndex", int)
AccountId      = NewType("AccountId", str)   # SS58 encoded
BlockHash      = NewType("BlockHash", str)   # 0x-prefixed hex
Network        = NewType("Network", str)     # subscan subdomain, e.g. "kusama"
EventKind = Literal["CandidateIncluded", "CandidateBacked", "CandidateTimedOut"]
EVENT_KINDS: tuple[EventKind, ...] = ("CandidateIncluded", "CandidateBacked", "CandidateTimedOut")

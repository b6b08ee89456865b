from __future__ import annotations

import asyncio
import enum
import logging
from typing import Iterable, Optional

from ..config import FetchConfig
from ..domain.decoding import invalid_votes_from_extrinsic
from ..domain.models import DisputeEvent, DisputeInitiated, DisputeInitiator, DisputeReport
from ..domain.value_types import AccountId, SessionIndex
from ..errors import FetchError
from ..ports.indexer import IndexerClient
from ..ports.session_keys import SessionKeyLookup
from .fetching import Observer, fetch_dispute_events

log = logging.getLogger(__name__)


# ──────────────────────────────
# Session key memo
# ──────────────────────────────

class SessionKeyCache:
    """
    Session index -> validator accounts (list position = validator index).

    Each session is populated at most once per run; a session whose lookup
    returned nothing is remembered as unresolved so it is not queried again.
    Sessions are immutable once finalized, so entries are never invalidated.
    """
    def __init__(self) -> None:
        self._keys: dict[SessionIndex, Optional[list[AccountId]]] = {}
        self.lookups = 0

    def __contains__(self, session: object) -> bool:
        return session in self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def get(self, session: SessionIndex) -> Optional[list[AccountId]]:
        return self._keys.get(session)

    def populate(self, session: SessionIndex, keys: Optional[list[AccountId]]) -> None:
        if session in self._keys:
            raise ValueError(f"session {session} already populated")
        self._keys[session] = list(keys) if keys is not None else None
        self.lookups += 1

    def resolved_sessions(self) -> int:
        return sum(1 for v in self._keys.values() if v is not None)

    def account(self, session: SessionIndex, validator_index: int) -> Optional[AccountId]:
        keys = self._keys.get(session)
        if keys is None or not 0 <= validator_index < len(keys):
            return None
        return keys[validator_index]


# ──────────────────────────────
# Resolver
# ──────────────────────────────

class ResolverState(enum.Enum):
    IDLE = "idle"
    FETCHING_DISPUTE_EVENTS = "fetching_dispute_events"
    EXPANDING_EXTRINSICS = "expanding_extrinsics"
    RESOLVING_IDENTITIES = "resolving_identities"
    DONE = "done"


class DisputeResolver:
    """
    Turns dispute initiation events into (session, validator account) rows.

    Stages run strictly in order: discover events, expand each extrinsic into
    its `Invalid` votes, resolve validator indices against session keys. A
    failing stage aborts the run; extrinsics the indexer has no data for and
    rows whose validator cannot be resolved are skipped and counted.
    """

    def __init__(
        self,
        indexer: IndexerClient,
        session_keys: SessionKeyLookup,
        *,
        cfg: FetchConfig = FetchConfig(),
        observer: Optional[Observer] = None,
    ) -> None:
        self.indexer = indexer
        self.session_keys = session_keys
        self.cfg = cfg
        self.observer = observer
        self.cache = SessionKeyCache()
        self.state = ResolverState.IDLE
        self.skipped_extrinsics = 0
        self.dropped_rows = 0

    def _enter(self, state: ResolverState) -> None:
        log.debug("dispute resolver: %s -> %s", self.state.value, state.value)
        self.state = state

    async def discover(self, up_to_block: int, min_count: int) -> list[DisputeEvent]:
        self._enter(ResolverState.FETCHING_DISPUTE_EVENTS)
        return await fetch_dispute_events(self.indexer, up_to_block, min_count,
                                          cfg=self.cfg, observer=self.observer)

    async def expand(self, events: Iterable[DisputeEvent]) -> list[DisputeInitiated]:
        self._enter(ResolverState.EXPANDING_EXTRINSICS)
        out: list[DisputeInitiated] = []
        for ev in events:
            data = await self.indexer.extrinsic(ev.extrinsic_index)
            await asyncio.sleep(self.cfg.page_delay_s)
            if data is None:
                log.warning("no extrinsic data for %s, skipping", ev.extrinsic_index)
                self.skipped_extrinsics += 1
                continue
            try:
                rows = invalid_votes_from_extrinsic(data, ev.block_num)
            except (KeyError, TypeError, ValueError) as e:
                raise FetchError(f"extrinsic {ev.extrinsic_index}: malformed dispute statements: {e}") from e
            log.debug("%s: %d invalid votes", ev.extrinsic_index, len(rows))
            out.extend(rows)
        return out

    async def resolve(self, initiated: Iterable[DisputeInitiated]) -> list[DisputeInitiator]:
        self._enter(ResolverState.RESOLVING_IDENTITIES)
        out: list[DisputeInitiator] = []
        for row in initiated:
            if row.session_index not in self.cache:
                keys = await self.session_keys.account_keys(row.session_index, row.block_hash)
                self.cache.populate(row.session_index, keys)
            account = self.cache.account(row.session_index, row.validator_index)
            if account is None:
                self.dropped_rows += 1
                continue
            out.append(DisputeInitiator(session_index=row.session_index, account_id=account))
        return out

    async def run(self, up_to_block: int, min_count: int) -> DisputeReport:
        events = await self.discover(up_to_block, min_count)
        initiated = await self.expand(events)
        initiators = await self.resolve(initiated)
        self._enter(ResolverState.DONE)
        if self.dropped_rows:
            log.warning("%d dispute rows dropped: session keys missing or validator index out of range",
                        self.dropped_rows)
        return DisputeReport(
            initiators=initiators,
            events=len(events),
            skipped_extrinsics=self.skipped_extrinsics,
            sessions_resolved=self.cache.resolved_sessions(),
            dropped_rows=self.dropped_rows,
        )

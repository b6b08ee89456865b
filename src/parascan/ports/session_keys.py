# parascan/ports/session_keys.py
from __future__ import annotations

from typing import Protocol
from ..domain.value_types import AccountId, BlockHash, SessionIndex


class SessionKeyLookup(Protocol):
    """Port for resolving a session's validator accounts from chain state."""

    async def account_keys(self, session: SessionIndex, block_hash: BlockHash) -> list[AccountId] | None:
        """Validator accounts of `session` as seen at `block_hash`; position is the validator index."""

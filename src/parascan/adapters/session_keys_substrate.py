# parascan/adapters/session_keys_substrate.py
from __future__ import annotations

import asyncio
import logging

from substrateinterface import SubstrateInterface
from substrateinterface.exceptions import StorageFunctionNotFound, SubstrateRequestException
from substrateinterface.utils.ss58 import ss58_encode
from websocket import WebSocketException

from ..domain.value_types import AccountId, BlockHash, SessionIndex
from ..errors import SessionKeyError
from ..ports.session_keys import SessionKeyLookup

log = logging.getLogger(__name__)


def _as_account(v: object, ss58_format: int) -> AccountId:
    # substrate-interface renders AccountId32 as SS58 already; raw hex/bytes show up on some metadata versions
    if isinstance(v, bytes):
        return AccountId(ss58_encode(v, ss58_format))
    s = str(v)
    if s.startswith("0x") and len(s) == 66:
        return AccountId(ss58_encode(s, ss58_format))
    return AccountId(s)


class SubstrateSessionKeys(SessionKeyLookup):
    """
    Reads `ParaSessionInfo.AccountKeys(session)` at a historical block.

    The node must keep state for the requested block (an archive node for old
    disputes). The client is synchronous, so each query runs in a worker thread.
    """

    def __init__(self, rpc_url: str, *, ss58_format: int | None = None) -> None:
        self.rpc_url = rpc_url
        self._ss58_format = ss58_format
        self._substrate: SubstrateInterface | None = None

    def _connect(self) -> SubstrateInterface:
        if self._substrate is None:
            try:
                self._substrate = SubstrateInterface(url=self.rpc_url, ss58_format=self._ss58_format)
            except (ConnectionError, OSError, WebSocketException, SubstrateRequestException) as e:
                raise SessionKeyError(f"cannot connect to {self.rpc_url}: {e}") from e
        return self._substrate

    def _query(self, session: SessionIndex, block_hash: BlockHash) -> list[AccountId] | None:
        substrate = self._connect()
        try:
            res = substrate.query("ParaSessionInfo", "AccountKeys", [int(session)], block_hash=block_hash or None)
        except (ConnectionError, OSError, WebSocketException, SubstrateRequestException,
                StorageFunctionNotFound) as e:
            raise SessionKeyError(f"AccountKeys({session}) at {block_hash}: {e}") from e
        keys = res.value if res is not None else None
        if not keys:
            log.warning("no account keys stored for session %d at %s", session, block_hash)
            return None
        fmt = substrate.ss58_format if substrate.ss58_format is not None else 42
        return [_as_account(k, fmt) for k in keys]

    async def account_keys(self, session: SessionIndex, block_hash: BlockHash) -> list[AccountId] | None:
        return await asyncio.to_thread(self._query, session, block_hash)

    def close(self) -> None:
        if self._substrate is not None:
            self._substrate.close()
            self._substrate = None

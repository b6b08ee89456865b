# parascan/adapters/pov_store.py
from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from ..config import PovConfig
from ..errors import FetchError
from ..ports.storage import BlobCache

log = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class CandidateBlobs:
    candidate_hash: str
    pov: bytes                         # SCALE encoded AvailableData
    receipt: bytes                     # SCALE encoded CandidateReceipt
    cached: bool


class PovStore:
    """
    Raw PoV + receipt download for one candidate, backed by a blob cache.
    Bytes are handed over undecoded; decoding belongs to the validation host.
    """
    def __init__(self, cfg: PovConfig, cache: BlobCache, *,
                 transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.cfg = cfg
        self.cache = cache
        self.client = httpx.AsyncClient(
            base_url=cfg.base_url,
            timeout=httpx.Timeout(cfg.timeout_s),
            follow_redirects=True,
            transport=transport,
        )

    def _urls(self, candidate_hash: str) -> tuple[str, str]:
        base = f"/{self.cfg.network}/{candidate_hash[2:4]}"
        return f"{base}/{candidate_hash}", f"{base}/receipts/{candidate_hash}"

    async def _get(self, path: str) -> bytes:
        try:
            r = await self.client.get(path)
            r.raise_for_status()
        except httpx.HTTPError as e:
            raise FetchError(f"{path}: {type(e).__name__}: {e}") from e
        return r.content

    async def fetch_candidate(self, candidate_hash: str) -> CandidateBlobs:
        h = candidate_hash.lower()
        pov_path, receipt_path = self._urls(h)
        pov, pov_cached = await self.cache.get_or_fetch("povs", h, lambda: self._get(pov_path))
        # receipt goes last: its presence marks a complete entry
        receipt, receipt_cached = await self.cache.get_or_fetch("receipts", h, lambda: self._get(receipt_path))
        cached = pov_cached and receipt_cached
        if cached:
            log.info("using cached PoV for %s", h)
        else:
            log.info("fetched PoV for %s (%d bytes, receipt %d bytes)", h, len(pov), len(receipt))
        return CandidateBlobs(h, pov, receipt, cached=cached)

    async def aclose(self) -> None:
        await self.client.aclose()

from __future__ import annotations
import json, httpx
from typing import Any
from ..config import SubscanConfig
from ..errors import FetchError
from ..ports.indexer import IndexerClient

def _data(body: Any, what: str, *, null_ok: bool = False) -> dict[str, Any] | None:
    if not isinstance(body, dict):
        raise FetchError(f"{what}: expected a JSON object, got {type(body).__name__}")
    # "Record Not Found" comes back as a non-zero code with null data
    if null_ok and body.get("data") is None:
        return None
    code = body.get("code", 0)
    if code:
        raise FetchError(f"{what}: subscan error code={code} message={body.get('message')}")
    data = body.get("data")
    if data is not None and not isinstance(data, dict):
        raise FetchError(f"{what}: `data` is {type(data).__name__}, expected object or null")
    return data

class SubscanClient(IndexerClient):
    def __init__(self, cfg: SubscanConfig, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.cfg = cfg
        headers = {"Content-Type": "application/json"}
        if cfg.api_key:
            headers["X-API-Key"] = cfg.api_key
        self.client = httpx.AsyncClient(
            base_url=cfg.base_url,
            http2=True,
            timeout=httpx.Timeout(cfg.timeout_s),
            headers=headers,
            transport=transport,
        )

    async def _post(self, path: str, payload: dict[str, Any], *, null_ok: bool = False) -> dict[str, Any] | None:
        try:
            r = await self.client.post(path, json=payload)
            r.raise_for_status()
            body = r.json()
        except httpx.HTTPError as e:
            raise FetchError(f"{path}: {type(e).__name__}: {e}") from e
        except json.JSONDecodeError as e:
            raise FetchError(f"{path}: malformed JSON: {e}") from e
        return _data(body, path, null_ok=null_ok)

    async def events_page(self, request: dict[str, Any]) -> list[dict[str, Any]]:
        data = await self._post("/api/scan/events", request)
        events = (data or {}).get("events")
        if events is None:
            return []
        if not isinstance(events, list):
            raise FetchError(f"/api/scan/events: `events` is {type(events).__name__}, expected list")
        return events

    async def extrinsic(self, extrinsic_index: str) -> dict[str, Any] | None:
        return await self._post("/api/scan/extrinsic", {"extrinsic_index": extrinsic_index}, null_ok=True)

    async def aclose(self) -> None:
        await self.client.aclose()

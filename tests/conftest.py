import asyncio
import pytest

from parascan.config import FetchConfig


NO_DELAY = FetchConfig(page_delay_s=0.0)


def included(block, para_id=1000):
    return {"block_num": block, "event_id": "CandidateIncluded",
            "params": f'[{{"type":"CandidateReceipt","value":{{"descriptor":{{"para_id":{para_id}}}}}}}]'}


def backed(block, para_id=1000):
    return {"block_num": block, "event_id": "CandidateBacked",
            "params": f'[{{"type":"CandidateReceipt","value":{{"descriptor":{{"para_id":{para_id}}}}}}}]'}


def timed_out(block, para_id=1000):
    return {"block_num": block, "event_id": "CandidateTimedOut",
            "params": f'[{{"type":"CandidateReceipt","value":{{"descriptor":{{"para_id":{para_id}}}}}}}]'}


def statement(kind, validator_index):
    return {"col1": {kind: {"Explicit": None}}, "col2": validator_index, "col3": "0xsig"}


def extrinsic_data(block_hash, *disputes):
    return {
        "block_hash": block_hash,
        "params": [{"name": "data", "type": "ParachainsInherentData",
                    "value": {"bitfields": [], "backed_candidates": [], "disputes": list(disputes)}}],
    }


class FakeIndexer:
    """In-memory IndexerClient; `pages` maps a request to the records it returns."""

    def __init__(self, pages=None, extrinsics=None):
        self.pages = pages or (lambda request: [])
        self.extrinsics = extrinsics or {}
        self.requests = []
        self.extrinsic_requests = []

    async def events_page(self, request):
        self.requests.append(dict(request))
        return self.pages(request)

    async def extrinsic(self, extrinsic_index):
        self.extrinsic_requests.append(extrinsic_index)
        return self.extrinsics.get(extrinsic_index)


class FakeSessionKeys:
    def __init__(self, keys):
        self.keys = keys
        self.calls = []

    async def account_keys(self, session, block_hash):
        self.calls.append((session, block_hash))
        return self.keys.get(session)


@pytest.fixture
def run():
    return asyncio.run


@pytest.fixture
def sleeps(monkeypatch):
    """Record asyncio.sleep delays instead of waiting."""
    delays = []

    async def fake_sleep(delay, result=None):
        delays.append(delay)
        return result

    monkeypatch.setattr(asyncio, "sleep", fake_sleep)
    return delays

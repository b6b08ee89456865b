# parascan/adapters/blob_cache.py
from __future__ import annotations

import os
import re
from typing import Awaitable, Callable

from ..ports.storage import BlobCache

_HASH_RE = re.compile(r"^0x[0-9a-f]{64}$")


class FileBlobCache(BlobCache):
    """
    Content-addressed cache of immutable blobs: `<root>/<namespace>/<0xhash>`.
    Entries are written once via a temp file + os.replace and never invalidated.
    """
    def __init__(self, root_dir: str) -> None:
        self.root = root_dir
        os.makedirs(self.root, exist_ok=True)

    def _path(self, namespace: str, key: str) -> str:
        k = key.lower()
        if not _HASH_RE.match(k):
            raise ValueError(f"Invalid blob key: {key!r}")
        return os.path.join(self.root, namespace, k)

    def get(self, namespace: str, key: str) -> bytes | None:
        path = self._path(namespace, key)
        if not os.path.isfile(path):
            return None
        with open(path, "rb") as f:
            return f.read()

    def put(self, namespace: str, key: str, data: bytes) -> str:
        path = self._path(namespace, key)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        tmp = path + ".tmp"
        with open(tmp, "wb") as f:
            f.write(data); f.flush(); os.fsync(f.fileno())
        os.replace(tmp, path)
        return path

    async def get_or_fetch(self, namespace: str, key: str,
                           fetch: Callable[[], Awaitable[bytes]]) -> tuple[bytes, bool]:
        cached = self.get(namespace, key)
        if cached is not None:
            return cached, True
        data = await fetch()
        self.put(namespace, key, data)
        return data, False

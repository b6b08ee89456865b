# parascan/errors.py
from __future__ import annotations


class ParascanError(Exception):
    """Base for failures that abort a whole command."""


class FetchError(ParascanError):
    """Indexer transport, HTTP status or response shape failure."""


class SessionKeyError(ParascanError):
    """The on-chain session key lookup could not be performed."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class SubscanConfig:
    """Connection settings for the Subscan indexing API."""

    network: str = "kusama"
    api_key: str | None = None
    timeout_s: int = 20
    base_url_template: str = "https://{network}.api.subscan.io"

    @property
    def base_url(self) -> str:
        return self.base_url_template.format(network=self.network)


@dataclass(frozen=True)
class FetchConfig:
    """Paging and throttling knobs shared by every indexer query."""

    rows_per_page: int = 100
    page_delay_s: float = 0.150        # fixed gap after each request; the API rate limit is undocumented
    dispute_window: int = 400_000      # blocks scanned backwards for dispute events


@dataclass(frozen=True)
class PovConfig:
    """Where candidate PoVs and receipts are downloaded from and cached."""

    network: str = "kusama"
    base_url: str = "https://pov.data.paritytech.io"
    cache_dir: Path = Path("povs")
    timeout_s: int = 60

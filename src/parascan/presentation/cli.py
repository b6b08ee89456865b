import asyncio, logging, time
from pathlib import Path
from typing import Optional

import click
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import (
    Progress, BarColumn, TextColumn, TimeElapsedColumn, MofNCompleteColumn, SpinnerColumn
)

from ..adapters.blob_cache import FileBlobCache
from ..adapters.pov_store import PovStore
from ..adapters.session_keys_substrate import SubstrateSessionKeys
from ..adapters.subscan_httpx import SubscanClient
from ..adapters.table_sink import TableSink
from ..application.use_cases import dispute_initiators, inclusion_latencies
from ..config import FetchConfig, PovConfig, SubscanConfig
from ..errors import ParascanError

app = typer.Typer(help="parascan: parachain backing/inclusion latencies and dispute initiators from Subscan.")
console = Console(stderr=True)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def _progress() -> Progress:
    return Progress(SpinnerColumn(),
                    TextColumn("[bold]collecting events[/]"),
                    BarColumn(),
                    MofNCompleteColumn(),
                    TextColumn("•"),
                    TimeElapsedColumn(),
                    TextColumn(" • {task.description}"),
                    console=console,
                    transient=False,
                    expand=True,
                    )


def _format(fmt: str) -> str:
    if fmt not in ("csv", "parquet"):
        raise click.BadParameter(f"expected csv or parquet, got {fmt!r}", param_hint="--format")
    return fmt


def _run(coro) -> None:
    try:
        asyncio.run(coro)
    except ParascanError as e:
        raise click.ClickException(str(e))


@app.command()
def inclusion(
    para_id: int = typer.Option(..., help="Parachain ID to be processed"),
    up_to_block: int = typer.Option(..., help="Block number up to which events are fetched, e.g. 13524714"),
    network: str = typer.Option("kusama", help='Name of the network, e.g. "kusama"'),
    num_events: int = typer.Option(500, help="How many events to fetch"),
    out_dir: Path = typer.Option(Path("out"), "--out", help="Output directory"),
    fmt: str = typer.Option("csv", "--format", help="csv or parquet"),
    api_key: Optional[str] = typer.Option(None, envvar="SUBSCAN_API_KEY", help="Subscan API key"),
):
    """Fetch backing and inclusion events and write the latency series to OUT."""
    out_fmt = _format(fmt)

    async def go():
        t0 = time.time()
        indexer = SubscanClient(SubscanConfig(network=network, api_key=api_key))
        sink = TableSink(str(out_dir), fmt=out_fmt)
        try:
            with _progress() as progress:
                task = progress.add_task(description=f"{network} para {para_id} ≤ #{up_to_block:,}", total=num_events)
                series, written = await inclusion_latencies(
                    indexer=indexer, sink=sink, para_id=para_id, up_to_block=up_to_block,
                    num_events=num_events, cfg=FetchConfig(),
                    observer=lambda n: progress.update(task, completed=min(n, num_events)),
                )
        finally:
            await indexer.aclose()
        console.print(
            f"[bold]done[/]: backing={len(series.backing)} inclusion={len(series.inclusion)} "
            f"files={len(written)} • {time.time() - t0:.2f}s"
        )
    _run(go())


@app.command()
def disputes(
    up_to_block: int = typer.Option(..., help="Block number up to which events are fetched"),
    rpc_url: str = typer.Option(..., help="Archive node URL, e.g. wss://kusama-rpc.polkadot.io:443"),
    network: str = typer.Option("kusama", help='Name of the network, e.g. "kusama"'),
    num_events: int = typer.Option(100, help="How many dispute events to fetch"),
    out_dir: Path = typer.Option(Path("out"), "--out", help="Output directory"),
    fmt: str = typer.Option("csv", "--format", help="csv or parquet"),
    api_key: Optional[str] = typer.Option(None, envvar="SUBSCAN_API_KEY", help="Subscan API key"),
):
    """Resolve the validators that cast invalid dispute votes and write them to OUT."""
    out_fmt = _format(fmt)

    async def go():
        t0 = time.time()
        indexer = SubscanClient(SubscanConfig(network=network, api_key=api_key))
        keys = SubstrateSessionKeys(rpc_url)
        sink = TableSink(str(out_dir), fmt=out_fmt)
        try:
            with _progress() as progress:
                task = progress.add_task(description=f"{network} disputes ≤ #{up_to_block:,}", total=num_events)
                report, path = await dispute_initiators(
                    indexer=indexer, session_keys=keys, sink=sink, network=network,
                    up_to_block=up_to_block, num_events=num_events, cfg=FetchConfig(),
                    observer=lambda n: progress.update(task, completed=min(n, num_events)),
                )
        finally:
            await indexer.aclose()
            keys.close()
        console.print(
            f"[bold]summary[/]: events={report.events}  "
            f"[green]initiators[/]={len(report.initiators)}  "
            f"sessions={report.sessions_resolved}  "
            f"[yellow]skipped_extrinsics[/]={report.skipped_extrinsics}  "
            f"[red]dropped_rows[/]={report.dropped_rows}  "
            f"• {time.time() - t0:.2f}s"
        )
        if path is None:
            console.print("[yellow]no dispute initiators resolved, nothing written[/]")
    _run(go())


@app.command()
def pov(
    candidate_hash: str = typer.Option(..., help="Candidate hash, 0x-prefixed"),
    network: str = typer.Option("kusama", help='Name of the network, e.g. "kusama"'),
    cache_dir: Path = typer.Option(Path("povs"), help="Blob cache directory"),
):
    """Download (or reuse from cache) the raw PoV and receipt of a candidate."""
    async def go():
        cfg = PovConfig(network=network, cache_dir=cache_dir)
        store = PovStore(cfg, FileBlobCache(str(cfg.cache_dir)))
        try:
            blobs = await store.fetch_candidate(candidate_hash)
        finally:
            await store.aclose()
        console.print(
            f"[bold]{blobs.candidate_hash}[/]: pov={len(blobs.pov) // 1024}kb "
            f"receipt={len(blobs.receipt)}b cached={blobs.cached}"
        )
    try:
        _run(go())
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--candidate-hash")


if __name__ == "__main__":
    app()

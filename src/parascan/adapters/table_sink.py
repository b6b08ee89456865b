from __future__ import annotations
import logging, os
from typing import Literal, Sequence
import pyarrow as pa
import pyarrow.csv as pcsv
import pyarrow.parquet as pq

from ..domain.models import DisputeInitiator, PlottingPoint
from ..ports.storage import SeriesSink

log = logging.getLogger(__name__)

OutputFormat = Literal["csv", "parquet"]

POINT_SCHEMA = pa.schema([
    pa.field("block_num", pa.uint32()),
    pa.field("blocks",    pa.uint32()),
])

INITIATOR_SCHEMA = pa.schema([
    pa.field("session_index", pa.uint32()),
    pa.field("account_id",    pa.string()),
])

def points_to_table(points: Sequence[PlottingPoint]) -> pa.Table:
    return pa.Table.from_arrays(
        arrays=[
            pa.array([p.block_num for p in points], POINT_SCHEMA.field("block_num").type),
            pa.array([p.blocks for p in points],    POINT_SCHEMA.field("blocks").type),
        ],
        schema=POINT_SCHEMA,
    )

def initiators_to_table(rows: Sequence[DisputeInitiator]) -> pa.Table:
    return pa.Table.from_arrays(
        arrays=[
            pa.array([r.session_index for r in rows], INITIATOR_SCHEMA.field("session_index").type),
            pa.array([str(r.account_id) for r in rows], INITIATOR_SCHEMA.field("account_id").type),
        ],
        schema=INITIATOR_SCHEMA,
    )

class TableSink(SeriesSink):
    """Writes each series as one CSV (default) or Parquet file under `out_dir`."""
    def __init__(self, out_dir: str, fmt: OutputFormat = "csv") -> None:
        if fmt not in ("csv", "parquet"):
            raise ValueError(f"Unsupported output format: {fmt!r}")
        self.out_dir = out_dir
        self.fmt = fmt
        os.makedirs(self.out_dir, exist_ok=True)

    def _path(self, name: str) -> str:
        return os.path.join(self.out_dir, f"{name}.{self.fmt}")

    def _write(self, name: str, table: pa.Table) -> str | None:
        if table.num_rows == 0:
            log.info("no rows for %s, nothing written", name)
            return None
        path = self._path(name)
        tmp = path + ".tmp"
        if self.fmt == "parquet":
            pq.write_table(table, tmp, compression="snappy")
        else:
            pcsv.write_csv(table, tmp)
        os.replace(tmp, path)
        return path

    def write_points(self, name: str, points: Sequence[PlottingPoint]) -> str | None:
        return self._write(name, points_to_table(points))

    def write_initiators(self, name: str, rows: Sequence[DisputeInitiator]) -> str | None:
        return self._write(name, initiators_to_table(rows))

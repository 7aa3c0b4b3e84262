"""Frame bundles: the tables of one frame as CSV files plus a manifest.

Layout of a bundle directory:

    manifest.json
    tables/atoms.csv
    tables/bonds.csv
    tables/residues.csv

Every table goes through `normalize_table` on save and again on load, so the
loaded tables compare equal to `frame_tables(frame)` of the saved frame.
Codecs and the CLI are not imported here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from trajtext.core.tables import TABLE_COLUMN_ORDER, frame_tables, normalize_table

from .manifest import build_manifest, read_manifest, table_entry, verify_table, write_manifest

if TYPE_CHECKING:  # pragma: no cover
    from trajtext.core.model import Frame, UnitCell

logger = logging.getLogger(__name__)

MANIFEST_NAME = "manifest.json"
TABLES_DIR = "tables"


@dataclass(frozen=True)
class FrameBundle:
    root: Path
    manifest: dict[str, Any]
    tables: dict[str, Any]  # name -> pandas.DataFrame

    @property
    def cell(self) -> "UnitCell | None":
        """Unit cell recorded in the manifest, or None when it was not saved."""
        from trajtext.core.model import UnitCell

        entry = self.manifest.get("cell")
        if not entry:
            return None
        return UnitCell(entry["lengths"], entry["angles"])


def _cell_entry(cell: "UnitCell") -> dict[str, Any]:
    return {
        "lengths": [float(v) for v in cell.lengths],
        "angles": [float(v) for v in cell.angles],
        "shape": cell.shape.value,
    }


def save_tables(
    root: Path,
    *,
    name: str,
    tables: dict[str, Any],
    source: dict[str, Any] | None = None,
    cell: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Write each table as `tables/<name>.csv` under `root`; return the manifest."""
    import pandas as pd

    root = Path(root)
    (root / TABLES_DIR).mkdir(parents=True, exist_ok=True)

    entries: dict[str, dict[str, Any]] = {}
    for table_name, df in sorted(tables.items()):
        if not isinstance(df, pd.DataFrame):
            raise TypeError(f"tables['{table_name}']: expected pandas.DataFrame, got {type(df).__name__}")
        df = normalize_table(table_name, df).loc[:, TABLE_COLUMN_ORDER[table_name]]

        rel = Path(TABLES_DIR) / f"{table_name}.csv"
        # full float precision so positions survive the round trip exactly
        df.to_csv(root / rel, index=False, lineterminator="\n", float_format="%.17g")
        entries[table_name] = table_entry(
            root, rel, rows=len(df), dtypes={col: str(dtype) for col, dtype in df.dtypes.items()}
        )

    manifest = build_manifest(name=name, source=source, tables=entries, cell=cell)
    write_manifest(root / MANIFEST_NAME, manifest)
    logger.debug("wrote bundle %s (%s)", root, ", ".join(entries))
    return manifest


def save_frame_bundle(
    root: Path,
    frame: "Frame",
    *,
    name: str,
    source: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Save the atoms/bonds/residues tables and the unit cell of `frame`."""
    return save_tables(root, name=name, tables=frame_tables(frame), source=source, cell=_cell_entry(frame.cell))


def load_frame_bundle(root: Path, *, validate_hashes: bool = False) -> FrameBundle:
    """Read a bundle written by `save_tables`/`save_frame_bundle`.

    With `validate_hashes`, every CSV is hashed again first and a ValueError
    is raised on the first mismatch.
    """
    import pandas as pd

    root = Path(root)
    manifest = read_manifest(root / MANIFEST_NAME)

    tables: dict[str, pd.DataFrame] = {}
    for table_name, entry in manifest.get("tables", {}).items():
        if not isinstance(entry, dict) or not isinstance(entry.get("path"), str) or not entry["path"]:
            raise ValueError(f"{MANIFEST_NAME}: tables.{table_name} needs a non-empty 'path'")
        if validate_hashes:
            verify_table(root, table_name, entry)

        # names such as NA (sodium) are not missing values
        df = pd.read_csv(root / entry["path"], keep_default_na=False, na_values=[""])
        tables[table_name] = normalize_table(table_name, df)

    return FrameBundle(root=root, manifest=manifest, tables=tables)

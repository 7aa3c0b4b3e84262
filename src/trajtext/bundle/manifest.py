"""`manifest.json` for frame bundles.

No pandas, codecs or CLI imports here; `bundle.io` is the only caller. A
manifest records where a frame came from, its unit cell and, per table, the
CSV path, the row count, the dtypes and the sha256 of the file.
"""

from __future__ import annotations

import hashlib
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

SCHEMA_VERSION = "trajtext-bundle-1"

# units of the values stored in the tables
FRAME_UNITS = {"length": "angstrom", "mass": "amu", "charge": "e", "angle": "degree"}

_CHUNK = 1 << 20


def sha256_file(path: Path) -> str:
    """Hex sha256 digest of the file at `path`."""
    digest = hashlib.sha256()
    with Path(path).open("rb") as f:
        while True:
            chunk = f.read(_CHUNK)
            if not chunk:
                break
            digest.update(chunk)
    return digest.hexdigest()


def _utc_timestamp() -> str:
    # 2026-01-31T12:00:00Z
    stamp = datetime.now(timezone.utc).replace(microsecond=0)
    return stamp.isoformat().replace("+00:00", "Z")


def read_manifest(path: Path) -> dict[str, Any]:
    """Load `manifest.json`, rejecting anything but a trajtext bundle manifest."""
    manifest = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(manifest, dict):
        raise ValueError(f"{Path(path).name}: expected a JSON object")
    schema = manifest.get("schema_version")
    if schema != SCHEMA_VERSION:
        raise ValueError(f"{Path(path).name}: unsupported schema_version {schema!r}, expected {SCHEMA_VERSION!r}")
    if not isinstance(manifest.get("tables", {}), dict):
        raise ValueError(f"{Path(path).name}: tables must be an object")
    return manifest


def write_manifest(path: Path, manifest: dict[str, Any]) -> None:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(manifest, indent=2, sort_keys=True) + "\n", encoding="utf-8")


def table_entry(root: Path, rel: Path, *, rows: int, dtypes: dict[str, str]) -> dict[str, Any]:
    """Manifest entry for the table CSV already written at `root / rel`."""
    return {
        "path": rel.as_posix(),
        "rows": int(rows),
        "sha256": sha256_file(Path(root) / rel),
        "dtypes": dict(dtypes),
    }


def verify_table(root: Path, table_name: str, entry: dict[str, Any]) -> None:
    """Raise ValueError when the CSV of `table_name` no longer matches its hash."""
    rel = entry["path"]
    expected = entry.get("sha256")
    actual = sha256_file(Path(root) / rel)
    if actual != expected:
        raise ValueError(f"sha256 mismatch for {rel} ({table_name} table): expected {expected}, got {actual}")


def build_manifest(
    *,
    name: str,
    source: dict[str, Any] | None,
    tables: dict[str, dict[str, Any]],
    cell: dict[str, Any] | None = None,
    created_utc: str | None = None,
) -> dict[str, Any]:
    """Assemble the manifest of one frame bundle.

    `source` is `{path, format, step, sha256}` of the file the frame was read
    from, or None for a frame built in memory. `cell` is `{lengths, angles,
    shape}`. `tables` maps a table name to its `table_entry()`.
    """
    if not isinstance(name, str) or not name.strip():
        raise ValueError("manifest: name must be a non-empty string")
    if not isinstance(tables, dict):
        raise TypeError("manifest: tables must be a dict")
    if source is not None and not isinstance(source, dict):
        raise TypeError("manifest: source must be a dict or None")

    return {
        "schema_version": SCHEMA_VERSION,
        "name": name.strip(),
        "created_utc": created_utc or _utc_timestamp(),
        "units": dict(FRAME_UNITS),
        "source": source,
        "cell": cell,
        "tables": tables,
    }

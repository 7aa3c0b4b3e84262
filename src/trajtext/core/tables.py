"""Canonical table views of a frame.

A `Frame` can be flattened into three pandas DataFrames, `atoms`, `bonds` and
`residues`. This module is the single source of truth for:

- required columns / canonical column order
- pragmatic dtype normalization (string/Int64/Float64 extension dtypes)
- deterministic sorting

so that tables built from a parsed file, or loaded back from a CSV bundle,
compare equal in tests.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    import pandas as pd

    from trajtext.core.model import Frame


# column -> pandas extension dtype, in canonical column order
TABLE_SCHEMAS: dict[str, dict[str, str]] = {
    "atoms": {
        "index": "Int64",
        "name": "string",
        "type": "string",
        "mass": "Float64",
        "charge": "Float64",
        "x": "Float64",
        "y": "Float64",
        "z": "Float64",
        "residue": "Int64",
    },
    "bonds": {
        "i": "Int64",
        "j": "Int64",
        "order": "string",
    },
    "residues": {
        "residue": "Int64",
        "name": "string",
        "resid": "Int64",
        "chain": "string",
        "n_atoms": "Int64",
        "secondary_structure": "string",
    },
}


TABLE_KEYS: dict[str, list[str]] = {
    "atoms": ["index"],
    "bonds": ["i", "j"],
    "residues": ["residue"],
}


TABLE_COLUMN_ORDER: dict[str, list[str]] = {table: list(schema) for table, schema in TABLE_SCHEMAS.items()}


def _check_columns(df: "pd.DataFrame", columns: list[str], table: str) -> None:
    present = set(df.columns)
    missing = [col for col in columns if col not in present]
    if missing:
        raise ValueError(f"{table}: missing required columns: {missing}")
    extras = [col for col in df.columns if col not in columns]
    if extras:
        raise ValueError(f"{table}: unexpected extra columns: {extras}")


def _coerce(series: "pd.Series", dtype: str) -> "pd.Series":
    if dtype != "string":
        return series.astype(dtype)
    # <NA> survives the strip
    return series.astype("string").str.strip()


def normalize_table(name: str, df: "pd.DataFrame") -> "pd.DataFrame":
    """Return a canonicalized copy of table `name`.

    Post-conditions:
    - exactly the schema columns are present, in schema order
    - columns are cast to their extension dtypes, strings stripped
    - rows are stably sorted by the table keys and the index is reset
    """
    import pandas as pd

    if name not in TABLE_SCHEMAS:
        raise ValueError(f"unknown table {name!r}; expected one of {sorted(TABLE_SCHEMAS)}")
    if not isinstance(df, pd.DataFrame):
        raise TypeError(f"{name}: expected pandas.DataFrame, got {type(df).__name__}")

    schema = TABLE_SCHEMAS[name]
    _check_columns(df, TABLE_COLUMN_ORDER[name], name)

    out = pd.DataFrame({col: _coerce(df[col], dtype) for col, dtype in schema.items()})
    return out.sort_values(TABLE_KEYS[name], kind="mergesort", na_position="last", ignore_index=True)


def frame_tables(frame: "Frame") -> dict[str, "pd.DataFrame"]:
    """Flatten `frame` into normalized `atoms`, `bonds` and `residues` tables."""
    import pandas as pd

    residue_of: dict[int, int] = {}
    for r, residue in enumerate(frame.residues):
        for index in residue.atoms:
            residue_of[index] = r

    positions = frame.positions
    atoms = pd.DataFrame(
        {
            "index": list(range(len(frame))),
            "name": [a.name for a in frame.atoms],
            "type": [a.type for a in frame.atoms],
            "mass": [a.mass for a in frame.atoms],
            "charge": [a.charge for a in frame.atoms],
            "x": positions[:, 0],
            "y": positions[:, 1],
            "z": positions[:, 2],
            "residue": pd.array([residue_of.get(i) for i in range(len(frame))], dtype="Int64"),
        }
    )

    bond_rows = [(i, j, frame.bond_order(i, j).name.lower()) for i, j in frame.bonds()]
    bonds = pd.DataFrame(bond_rows, columns=["i", "j", "order"])

    residues = pd.DataFrame(
        {
            "residue": list(range(len(frame.residues))),
            "name": [r.name for r in frame.residues],
            "resid": pd.array([r.id for r in frame.residues], dtype="Int64"),
            "chain": pd.array([r.properties.get("chainid") for r in frame.residues], dtype="string"),
            "n_atoms": [len(r) for r in frame.residues],
            "secondary_structure": pd.array(
                [r.properties.get("secondary_structure") for r in frame.residues], dtype="string"
            ),
        }
    )

    return {
        "atoms": normalize_table("atoms", atoms),
        "bonds": normalize_table("bonds", bonds),
        "residues": normalize_table("residues", residues),
    }

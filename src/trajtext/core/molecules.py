"""Connected-component grouping of atoms from a bond list."""

from __future__ import annotations

from typing import Iterable


def guess_molecules(n_atoms: int, bonds: Iterable[tuple[int, int]]) -> list[int]:
    """Return one dense molecule id per atom.

    Each bond merges the two groups by relabeling every atom of the larger id
    to the smaller one. Surviving ids are then renumbered 0..k-1 in order of
    first appearance, scanning atoms by ascending index.
    """
    if n_atoms < 0:
        raise ValueError(f"guess_molecules: n_atoms must be >= 0, got {n_atoms}")

    groups = list(range(n_atoms))
    for i, j in bonds:
        if not (0 <= i < n_atoms and 0 <= j < n_atoms):
            raise IndexError(f"guess_molecules: bond ({i}, {j}) out of range (n_atoms={n_atoms})")
        gi, gj = groups[i], groups[j]
        if gi == gj:
            continue
        keep, drop = (gi, gj) if gi < gj else (gj, gi)
        for atom, group in enumerate(groups):
            if group == drop:
                groups[atom] = keep

    dense: dict[int, int] = {}
    out: list[int] = []
    for group in groups:
        if group not in dense:
            dense[group] = len(dense)
        out.append(dense[group])
    return out

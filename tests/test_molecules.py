from __future__ import annotations

import pytest

from trajtext.core.molecules import guess_molecules


def test_two_components_get_dense_ids_in_atom_order() -> None:
    assert guess_molecules(4, [(0, 1), (2, 3)]) == [0, 0, 1, 1]


def test_ids_follow_first_appearance_not_bond_order() -> None:
    # the bond on the higher atoms is listed first
    assert guess_molecules(5, [(3, 4), (0, 2)]) == [0, 1, 0, 2, 2]


def test_merging_chains_relabels_every_member() -> None:
    bonds = [(0, 1), (2, 3), (4, 5), (1, 2), (3, 4)]
    assert guess_molecules(7, bonds) == [0, 0, 0, 0, 0, 0, 1]


def test_isolated_atoms_and_empty_input() -> None:
    assert guess_molecules(3, []) == [0, 1, 2]
    assert guess_molecules(0, []) == []


def test_out_of_range_bond_raises() -> None:
    with pytest.raises(IndexError, match="out of range"):
        guess_molecules(2, [(0, 2)])

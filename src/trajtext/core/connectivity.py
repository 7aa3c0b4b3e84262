"""Connectivity reconstruction for residue-based text grammars.

Three independent pieces, used by the PDB reader after every frame:

- `AtomOffsetTable` maps on-file atom serials to compacted zero-based indices,
  including after a numbering restart that follows a chain terminator.
- `link_standard_residues` adds intra-residue template bonds and backbone bonds
  between consecutive standard residues.
- `SecondaryStructureRanges` applies labelled residue ranges with ordered range
  queries; later records overwrite earlier ones where ranges overlap.

Soft failures go to the diagnostic sink and the offending bond is dropped.
"""

from __future__ import annotations

import bisect
import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Mapping, Sequence

from trajtext.core import residue_templates
from trajtext.core.diagnostics import send_warning
from trajtext.core.model import Frame, Residue

logger = logging.getLogger(__name__)

ResidueKey = tuple[str, int, str]
TemplateLookup = Callable[[str], "Sequence[tuple[str, str]] | None"]

_OPTIONAL_PREFIXES = ("H", "OXT", "P", "OP")


@dataclass
class _Segment:
    first_serial: int
    first_index: int
    count: int


class AtomOffsetTable:
    """Restart-aware map from on-file atom serials to frame indices.

    `start()` is called once per atom, in file order. Consecutive serials extend
    the current segment; any other serial (a terminator gap or a restart at a
    small value) opens a new one. The first segment's starting serial minus one
    is the baseline.
    """

    def __init__(self) -> None:
        self._segments: list[_Segment] = []
        self._n_atoms = 0

    def __len__(self) -> int:
        return self._n_atoms

    @property
    def baseline(self) -> int | None:
        if not self._segments:
            return None
        return self._segments[0].first_serial - 1

    @property
    def restarts(self) -> list[int]:
        """On-file serials where a new segment began, after the first one."""
        return [seg.first_serial for seg in self._segments[1:]]

    def start(self, serial: int | None) -> None:
        """Record the next atom. `None` means the serial was unreadable."""
        if self._segments:
            last = self._segments[-1]
            expected = last.first_serial + last.count
            if serial is None or serial == expected:
                last.count += 1
            else:
                self._segments.append(_Segment(serial, self._n_atoms, 1))
        else:
            self._segments.append(_Segment(1 if serial is None else serial, 0, 1))
        self._n_atoms += 1

    def resolve(self, serial: int) -> int | None:
        """Compacted index for `serial`, or None when no segment covers it.

        The most recent segment covering `serial` wins. Serials in a numbering
        gap (eg the one a TER record consumed) or past the last atom name no
        atom.
        """
        for seg in reversed(self._segments):
            if seg.first_serial <= serial < seg.first_serial + seg.count:
                return seg.first_index + (serial - seg.first_serial)
        return None


def resolve_bonds(
    frame: Frame,
    pairs: Iterable[tuple[int, int]],
    table: AtomOffsetTable,
    *,
    context: str = "PDB reader",
) -> int:
    """Add bonds given as on-file serial pairs; return how many were added."""
    n_atoms = len(frame)
    added = 0
    for first, second in pairs:
        i = table.resolve(first)
        j = table.resolve(second)
        if i is None or j is None or i >= n_atoms or j >= n_atoms:
            send_warning(
                context,
                f"ignoring bond between atoms {first} and {second}: "
                f"atomic index out of range for frame size ({n_atoms})",
            )
            continue
        if i == j:
            send_warning(context, f"ignoring bond from atom {first} to itself")
            continue
        frame.add_bond(i, j)
        added += 1
    return added


def _is_optional(name: str) -> bool:
    return any(name.startswith(prefix) for prefix in _OPTIONAL_PREFIXES)


@dataclass
class _BackboneTracker:
    atom: int | None = None
    resid: int | None = None

    def previous(self, resid: int) -> int | None:
        """Tracked atom when `resid` directly follows its residue, else None."""
        if self.resid is None or resid != self.resid + 1:
            return None
        return self.atom

    def track(self, atom: int, resid: int) -> None:
        self.atom = atom
        self.resid = resid


def link_standard_residues(
    frame: Frame,
    templates: TemplateLookup = residue_templates.find,
    *,
    context: str = "PDB reader",
) -> None:
    """Add template and backbone bonds for every residue with a known template.

    Peptide links go from C of the previous residue to N of the current one;
    nucleic links go from O3' of the previous residue to P of the current one.
    Both require the numeric ids to be consecutive.
    """
    peptide = _BackboneTracker()
    nucleic = _BackboneTracker()

    for residue in frame.residues:
        template = templates(residue.name)
        if template is None:
            continue
        if residue.id is None:
            send_warning(context, f"residue '{residue.name}' has no id, skipping its bonds")
            continue

        by_name: dict[str, int] = {}
        for index in residue.atoms:
            by_name[frame.atoms[index].name] = index
        resid = residue.id

        nitrogen = by_name.get("N")
        linked = peptide.previous(resid)
        if nitrogen is not None and linked is not None:
            frame.add_bond(linked, nitrogen)
        carbon = by_name.get("C")
        if carbon is not None:
            peptide.track(carbon, resid)

        phosphorus = by_name.get("P")
        linked = nucleic.previous(resid)
        if phosphorus is not None and linked is not None:
            frame.add_bond(linked, phosphorus)
        oxygen = by_name.get("O3'")
        if oxygen is not None:
            nucleic.track(oxygen, resid)

        if "HO5'" in by_name and "O5'" in by_name:
            frame.add_bond(by_name["HO5'"], by_name["O5'"])

        reported: set[str] = set()
        for first, second in template:
            missing = [name for name in (first, second) if name not in by_name]
            if not missing:
                frame.add_bond(by_name[first], by_name[second])
                continue
            for name in missing:
                if name in reported or _is_optional(name):
                    continue
                reported.add(name)
                send_warning(context, f"missing atom '{name}' in residue '{residue.name}' (resid {resid})")


@dataclass
class SecondaryStructureRanges:
    """Inclusive residue-key ranges with a label, kept in record order."""

    records: list[tuple[ResidueKey, ResidueKey, str]] = field(default_factory=list)

    def add(self, start: ResidueKey, end: ResidueKey, label: str) -> None:
        self.records.append((start, end, label))

    def __len__(self) -> int:
        return len(self.records)

    def apply(self, residues: Mapping[ResidueKey, Residue], *, prop: str = "secondary_structure") -> None:
        if not self.records or not residues:
            return
        keys = sorted(residues)
        for start, end, label in self.records:
            lo = bisect.bisect_left(keys, start)
            hi = bisect.bisect_right(keys, end)
            for key in keys[lo:hi]:
                residues[key].properties[prop] = label
        logger.debug("applied %d secondary structure ranges to %d residues", len(self.records), len(keys))

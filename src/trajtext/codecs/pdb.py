"""Protein Data Bank (`.pdb`) codec.

A frame runs until an `END` or `ENDMDL` record. An `ENDMDL` directly followed by
`END` ends at the `END`, so both records belong to the same frame. A last frame with neither
record runs to the end of the file.

After the records of a frame are read, the reader:

- resolves `CONECT` serials through an `AtomOffsetTable` (numbering restarts
  after `TER` are handled there),
- applies `HELIX`/`SHEET`/`TURN` ranges to residues at every chain end,
- adds template and backbone bonds for standard residues.

The writer emits `MODEL`/`CRYST1`/`ATOM|HETATM`/`CONECT`/`ENDMDL` per frame and a
single `END` when the file is closed.
"""

from __future__ import annotations

import logging

from trajtext.codecs._pdb_records import Record, parse_helix, parse_strand, record_type
from trajtext.codecs._text import check_fixed_width, column, only_blank_remaining, parse_float
from trajtext.core.connectivity import (
    AtomOffsetTable,
    SecondaryStructureRanges,
    link_standard_residues,
    resolve_bonds,
)
from trajtext.core.diagnostics import send_warning
from trajtext.core.errors import EndOfFileError, FormatError
from trajtext.core.model import Atom, Frame, Residue, UnitCell
from trajtext.io.textfile import TextFile

logger = logging.getLogger(__name__)

_CONTEXT_READ = "PDB reader"
_CONTEXT_WRITE = "PDB writer"
_MAX_SERIAL = 99999
_MAX_RESID = 9999

ResidueKey = tuple[str, int, str]


def _next_is_end(file: TextFile) -> bool:
    """Peek at the next record; True when it is an END record."""
    if file.eof():
        return False
    position = file.tell()
    line = file.readline()
    file.seek(position)
    return record_type(line) is Record.END


class _FrameBuilder:
    """Mutable state for the frame currently being read."""

    def __init__(self, file: TextFile) -> None:
        self.file = file
        self.frame = Frame()
        self.offsets = AtomOffsetTable()
        self.ranges = SecondaryStructureRanges()
        self.residues: dict[ResidueKey, Residue] = {}
        self.conect: list[tuple[int, int]] = []

    def error(self, message: str) -> FormatError:
        return FormatError(message, path=str(self.file.path), position=self.file.tell())

    def header(self, line: str) -> None:
        if len(line) < 66:
            return
        self.frame.properties["classification"] = line[10:50].strip()
        self.frame.properties["deposition_date"] = line[50:59].strip()
        self.frame.properties["pdb_idcode"] = line[62:66].strip()

    def title(self, line: str) -> None:
        if len(line) < 11:
            return
        name = str(self.frame.properties.get("name", ""))
        self.frame.properties["name"] = (name + line[10:80]).strip()

    def cryst1(self, line: str) -> None:
        if len(line) < 54:
            raise self.error(f"CRYST1 record '{line}' is too small")
        try:
            lengths = [float(column(line, 6 + 9 * k, 9)) for k in range(3)]
            angles = [float(column(line, 33 + 7 * k, 7)) for k in range(3)]
        except ValueError:
            raise self.error(f"could not read CRYST1 record '{line}'") from None
        self.frame.cell = UnitCell(lengths, angles)

        space_group = line[55:66].strip()
        if space_group and space_group not in ("P 1", "P1"):
            send_warning(_CONTEXT_READ, f"ignoring custom space group ({space_group}), using P1 instead")

    def atom(self, line: str, hetatm: bool) -> None:
        if len(line) < 54:
            raise self.error(f"{line[:6]} record is too small: '{line}'")

        serial_text = line[6:11].strip()
        try:
            serial: int | None = int(serial_text)
        except ValueError:
            serial = None
            if len(self.offsets) == 0:
                send_warning(_CONTEXT_READ, f"'{serial_text}' is not a valid atom id, assuming '1'")
        if serial is not None and serial <= 0 and len(self.offsets) == 0:
            send_warning(_CONTEXT_READ, f"{serial} is too small, assuming id is '1'")
            serial = None
        self.offsets.start(serial)

        name = line[12:16].strip()
        kind = line[76:78].strip() if len(line) >= 78 else ""
        atom = Atom(name, kind or None)
        altloc = line[16]
        if altloc != " ":
            atom.properties["altloc"] = altloc

        position = [parse_float(line[30 + 8 * k:38 + 8 * k], what="PDB position", file=self.file) for k in range(3)]
        index = self.frame.add_atom(atom, position)

        try:
            resid = int(line[22:26])
        except ValueError:
            # no residue information
            return
        chain = line[21]
        insertion_code = line[26]
        key = (chain, resid, insertion_code)
        residue = self.residues.get(key)
        if residue is None:
            residue = Residue(line[17:20].strip(), resid)
            if insertion_code != " ":
                residue.properties["insertion_code"] = insertion_code
            residue.properties["is_standard_pdb"] = not hetatm
            residue.properties["chainid"] = chain
            residue.properties["chainname"] = chain
            self.residues[key] = residue
        residue.add_atom(index)

    def conect_record(self, line: str) -> None:
        def serial_at(start: int) -> int:
            try:
                return int(line[start:start + 5])
            except ValueError:
                raise self.error(f"could not read atomic number in '{line}'") from None

        first = serial_at(6)
        for start in (11, 16, 21, 26):
            if not line[start:start + 5].strip():
                break
            self.conect.append((first, serial_at(start)))

    def chain_ended(self) -> None:
        self.ranges.apply(self.residues)
        for key in sorted(self.residues):
            self.frame.add_residue(self.residues[key])
        # residue ids may legitimately repeat after a TER
        self.residues.clear()

    def finish(self) -> Frame:
        self.chain_ended()
        resolve_bonds(self.frame, self.conect, self.offsets, context=_CONTEXT_READ)
        link_standard_residues(self.frame, context=_CONTEXT_READ)
        return self.frame


def _pdb_index(i: int) -> str:
    return str(i + 1) if i + 1 <= _MAX_SERIAL else "*****"


def _truncate(value: str, width: int, what: str) -> str:
    if len(value) > width:
        send_warning(_CONTEXT_WRITE, f"{what} '{value}' is too long, it will be truncated")
        return value[:width]
    return value


class PDBCodec:
    """Multi-frame PDB reader/writer."""

    name = "PDB"

    def __init__(self) -> None:
        self.models = 0
        self.written = False

    def forward(self, file: TextFile) -> int | None:
        if only_blank_remaining(file):
            return None
        position = file.tell()
        while True:
            try:
                line = file.readline()
            except EndOfFileError:
                # an unterminated last frame is still a frame, as in read()
                return position
            record = record_type(line)
            if record is Record.ENDMDL:
                if _next_is_end(file):
                    continue
                return position
            if record is Record.END:
                return position

    def read(self, file: TextFile) -> Frame:
        if only_blank_remaining(file):
            raise EndOfFileError(f"no PDB frame left in '{file.path}'")

        builder = _FrameBuilder(file)
        got_end = False
        while not got_end and not file.eof():
            line = file.readline()
            record = record_type(line)
            if record is Record.HEADER:
                builder.header(line)
            elif record is Record.TITLE:
                builder.title(line)
            elif record is Record.CRYST1:
                builder.cryst1(line)
            elif record is Record.ATOM:
                builder.atom(line, hetatm=False)
            elif record is Record.HETATM:
                builder.atom(line, hetatm=True)
            elif record is Record.CONECT:
                builder.conect_record(line)
            elif record is Record.MODEL:
                self.models += 1
            elif record is Record.ENDMDL:
                if not _next_is_end(file):
                    got_end = True
            elif record is Record.HELIX:
                helix = parse_helix(line)
                if helix is not None:
                    builder.ranges.add(*helix)
            elif record is Record.SHEET:
                sheet = parse_strand(line, 21, 32, "SHEET")
                if sheet is not None:
                    builder.ranges.add(*sheet)
            elif record is Record.TURN:
                turn = parse_strand(line, 19, 30, "TURN")
                if turn is not None:
                    builder.ranges.add(*turn)
            elif record is Record.TER:
                builder.chain_ended()
            elif record is Record.END:
                got_end = True
            elif record is Record.UNKNOWN:
                send_warning(_CONTEXT_READ, f"ignoring unknown record: {line}")

        if not got_end:
            send_warning(_CONTEXT_READ, "missing END record in file")
        return builder.finish()

    def write(self, file: TextFile, frame: Frame) -> None:
        self.written = True
        out = [f"MODEL {self.models + 1:>4}"]

        cell = frame.cell
        check_fixed_width(cell.lengths, 9, 3, fmt="PDB", what="cell lengths")
        out.append(
            f"CRYST1{cell.a:9.3f}{cell.b:9.3f}{cell.c:9.3f}"
            f"{cell.alpha:7.2f}{cell.beta:7.2f}{cell.gamma:7.2f} P 1           1"
        )

        # atoms outside any residue get ids above every existing residue id
        max_resid = max((r.id for r in frame.residues if r.id is not None), default=0)

        positions = frame.positions
        for i, atom in enumerate(frame.atoms):
            altloc = _truncate(str(atom.properties.get("altloc", " ")), 1, "altloc")
            residue = frame.residue_for_atom(i)
            record = "HETATM"
            if residue is not None:
                if residue.properties.get("is_standard_pdb", False):
                    record = "ATOM  "
                resname = _truncate(residue.name, 3, "residue name")
                if residue.id is None:
                    resid = "  -1"
                elif residue.id > _MAX_RESID:
                    send_warning(_CONTEXT_WRITE, f"too many residues, removing residue id {residue.id}")
                    resid = "  -1"
                else:
                    resid = str(residue.id)
                chain = residue.properties.get("chainid")
                chainid = _truncate(chain, 1, "chain id") if isinstance(chain, str) else "X"
                code = residue.properties.get("insertion_code")
                inscode = _truncate(code, 1, "insertion code") if isinstance(code, str) else " "
            else:
                resname = "XXX"
                chainid = "X"
                inscode = " "
                value = max_resid
                max_resid += 1
                resid = _pdb_index(value) if value < _MAX_RESID else "  -1"

            pos = positions[i]
            check_fixed_width(pos, 8, 3, fmt="PDB", what="atomic position")
            name = _truncate(atom.name, 4, "atom name")
            kind = _truncate(atom.type or "", 2, "atom type")
            out.append(
                f"{record:<6}{_pdb_index(i):>5} {name:<4}{altloc:1}{resname:<3} {chainid:1}{resid:>4}{inscode:1}"
                f"   {pos[0]:8.3f}{pos[1]:8.3f}{pos[2]:8.3f}{1.0:6.2f}{0.0:6.2f}          {kind:>2}"
            )

        connect: list[list[int]] = [[] for _ in range(len(frame))]
        for i, j in frame.bonds():
            if i >= _MAX_SERIAL or j >= _MAX_SERIAL:
                send_warning(
                    _CONTEXT_WRITE,
                    f"atomic index is too big for CONECT, removing the bond between {i} and {j}",
                )
                continue
            connect[i].append(j)
            connect[j].append(i)

        for i, partners in enumerate(connect):
            for start in range(0, len(partners), 4):
                chunk = "".join(f"{_pdb_index(j):>5}" for j in partners[start:start + 4])
                out.append(f"CONECT{_pdb_index(i):>5}{chunk}")

        out.append("ENDMDL")
        file.write("\n".join(out) + "\n")
        self.models += 1

    def close(self, file: TextFile) -> None:
        if self.written:
            file.write("END\n")

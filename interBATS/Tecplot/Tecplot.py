"""Tecplot reader for BATSRUS unstructured outputs.

Overview
========
BATSRUS writes one finite element zone per file: a keyworded text header
followed by the point data, the cell connectivity and, for cell-centered
output, the nodal geometry. The body is either text or raw binary; nothing
in the header says which, so the first body line is probed.

Header grammar
--------------
::

    TITLE="BATSRUS: 3D Data"
    VARIABLES="X [R]", "Y [R]", "Z [R]",
     "Rho [g/cm^3]", ...
    ZONE T="3D", N=1234, E=567, F=FEPOINT, ET=BRICK
    AUXDATA ITER="  1000"
    AUXDATA TIMESIM="T=   0.00 s"
    <body>

The header is read by a small state machine:
``EXPECT_TITLE -> EXPECT_VARIABLES -> EXPECT_ZONE -> EXPECT_AUXDATA_OR_DATA
-> DATA``. Zone lines may span several physical lines; the zone ends at the first
``AUXDATA`` line, or at the first line that does not open with ``KEY=``,
which is then the first body line.

Body layout
-----------
- data: ``ndata`` records of ``nvars`` float32 values,
- connectivity: ``ncell`` records of 4 (quadrilateral) or 8 (brick) int32,
- geometry: ``nnode`` records of ``ndim`` float32, geometry mode only.

In text bodies each record is one line.

Usage
-----
>>> head, mesh = read_tecplot("3d_mhd.dat")
>>> mesh.connectivity.shape
(8, 567)
>>> head, mesh = read_tecplot("3d_mhd.dat", with_geometry=True)
>>> mesh.geometry.shape
(3, 1234)
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path

import numpy as np

from ..errors import (
    MalformedZoneLineError,
    ShortReadError,
    TruncatedHeaderError,
    UnsupportedZoneTypeError,
)
from ..IDL.filetype import FileType
from ..IO import BinaryReader
from ..Log import get_logger
from ..Mesh import AuxInt, AuxStr, AuxValue, Mesh, TecplotZoneMeta, ZoneType
from ..options import DEFAULT_OPTIONS, ReaderOptions

_INT_AUXDATA = ("ITER", "NPROC")

# commas outside double quotes
_ZONE_SPLIT = re.compile(r',(?=(?:[^"]*"[^"]*")*[^"]*$)')

# a zone continuation line opens with a KEY= token
_ZONE_KEY = re.compile(r"^[A-Za-z][A-Za-z0-9_]*\s*=")


class ParserState(Enum):
    EXPECT_TITLE = auto()
    EXPECT_VARIABLES = auto()
    EXPECT_ZONE = auto()
    EXPECT_AUXDATA_OR_DATA = auto()
    DATA = auto()


@dataclass(frozen=True)
class TecplotHeader:
    """Decoded Tecplot header.

    Attributes:
        title (str): File title, empty when the file has none.
        variables (tuple[str, ...]): Variable names.
        zone (TecplotZoneMeta): Zone metadata.
        ndim (int): 2 for quadrilateral zones, 3 for brick zones.
        ndata (int): Records in the data block.
        nconn (int): Records in the connectivity block.
        ngeom (int): Records in the geometry block (read in geometry mode only).
        binary (bool): Whether the body is binary.
        data_offset (int): Byte offset of the body.
    """

    title: str
    variables: tuple[str, ...]
    zone: TecplotZoneMeta
    ndim: int
    ndata: int
    nconn: int
    ngeom: int
    binary: bool
    data_offset: int

    @property
    def file_type(self) -> FileType:
        return FileType.TECPLOT_BINARY if self.binary else FileType.TECPLOT_ASCII


def _split_variables(text: str) -> tuple[str, ...]:
    """Split the accumulated VARIABLES value into names."""
    if '"' not in text:
        return tuple(tok for tok in re.split(r"[,\s]+", text) if tok)
    # odd chunks sit between quotes; even chunks are separators
    return tuple(chunk for chunk in text.split('"') if chunk.strip(" ,"))


class _HeaderParser:
    """State machine over the header lines of one Tecplot file."""

    def __init__(self, reader: BinaryReader):
        self._reader = reader
        self._log = get_logger("tecplot")
        self.state = ParserState.EXPECT_TITLE
        self.title = ""
        self.variables: tuple[str, ...] = ()
        self.zone_title = ""
        self.nnode = 0
        self.ncell = 0
        self.zone_type: ZoneType | None = None
        self.zone_keyword: str | None = None
        self.auxdata: dict[str, AuxValue] = {}
        self.data_offset = 0
        self.line_offset = 0
        self.line = self._next()

    def _next(self, required: bool = True) -> str:
        offset = self._reader.tell()
        self.line_offset = offset
        raw = self._reader.readline()
        if not raw and required:
            raise TruncatedHeaderError(
                f"file ends in the Tecplot header ({self.state.name})",
                filename=self._reader.filename,
                offset=offset,
            )
        return raw.decode("latin-1").strip()

    def _malformed(self, message: str) -> MalformedZoneLineError:
        return MalformedZoneLineError(
            message, filename=self._reader.filename, offset=self._reader.tell()
        )

    def run(self) -> None:
        handlers = {
            ParserState.EXPECT_TITLE: self._expect_title,
            ParserState.EXPECT_VARIABLES: self._expect_variables,
            ParserState.EXPECT_ZONE: self._expect_zone,
            ParserState.EXPECT_AUXDATA_OR_DATA: self._expect_auxdata,
        }
        while self.state is not ParserState.DATA:
            handlers[self.state]()

    # ------------- states -------------

    def _expect_title(self) -> None:
        if self.line.upper().startswith("TITLE"):
            value = self.line.partition("=")[2]
            m = re.search(r'"(.*?)"', value)
            self.title = m.group(1) if m else value.strip()
            self.line = self._next()
        else:
            self._log.warning("{}: no title provided", self._reader.filename)
        self.state = ParserState.EXPECT_VARIABLES

    def _expect_variables(self) -> None:
        if self.line.upper().startswith("VARIABLES"):
            parts = [self.line.partition("=")[2]]
            self.line = self._next()
            while not self.line.upper().startswith("ZONE"):
                parts.append(self.line)
                self.line = self._next()
            self.variables = _split_variables(" ".join(parts))
        else:
            self._log.warning("{}: no variable names provided", self._reader.filename)
        self.state = ParserState.EXPECT_ZONE

    def _expect_zone(self) -> None:
        first = True
        while not self.line.upper().startswith("AUXDATA"):
            text = self.line
            if text.upper().startswith("ZONE"):
                text = text[4:]
            elif not first and not _ZONE_KEY.match(text):
                # no AUXDATA: this line opens the body
                break
            first = False
            for token in _ZONE_SPLIT.split(text):
                if token.strip():
                    self._zone_token(token.strip())
            self.line = self._next()
        self.state = ParserState.EXPECT_AUXDATA_OR_DATA

    def _expect_auxdata(self) -> None:
        while self.line.upper().startswith(("AUXDATA", "DT")):
            self._auxdata(self.line)
            self.line = self._next(required=False)
        self.data_offset = self.line_offset
        self.state = ParserState.DATA

    # ------------- tokens -------------

    def _zone_token(self, token: str) -> None:
        name, sep, value = token.partition("=")
        name = name.strip().upper()
        value = value.strip()
        if not sep or not name:
            raise self._malformed(f"zone token {token!r} is not KEY=VALUE")
        if name == "T":
            self.zone_title = value.strip('"').strip()
        elif name in ("NODES", "N"):
            self.nnode = self._count(name, value)
        elif name in ("ELEMENTS", "E"):
            self.ncell = self._count(name, value)
        elif name in ("ET", "ZONETYPE"):
            self.zone_keyword = value
            self.zone_type = ZoneType.from_keyword(value)

    def _count(self, name: str, value: str) -> int:
        try:
            return int(value)
        except ValueError as e:
            raise self._malformed(f"{name}={value!r} is not an integer") from e

    def _auxdata(self, line: str) -> None:
        rest = line[len("AUXDATA") :] if line.upper().startswith("AUXDATA") else line
        name, sep, value = rest.partition("=")
        name = name.strip()
        if not sep or not name:
            raise self._malformed(f"AUXDATA line {line!r} is not NAME=VALUE")
        text = value.strip().strip('"').strip()
        if name.upper() in _INT_AUXDATA:
            try:
                self.auxdata[name] = AuxInt(int(text))
            except ValueError as e:
                raise self._malformed(f"AUXDATA {name}={text!r} is not an integer") from e
            return
        if name.upper() == "TIMESIM" and "=" in text:
            text = text.split("=", 1)[1].strip()
        self.auxdata[name] = AuxStr(text)


def _probe_ascii(reader: BinaryReader) -> bool:
    """Return True when the next line parses as a sequence of numbers."""
    line = reader.readline()
    try:
        [float(tok) for tok in line.decode("ascii").split()]
    except (UnicodeDecodeError, ValueError):
        return False
    return True


def _read_text_block(
    reader: BinaryReader, nrows: int, ncols: int, dtype: type, what: str
) -> np.ndarray:
    """Read ``nrows`` lines of ``ncols`` values; return them as ``(ncols, nrows)``."""
    conv = int if np.issubdtype(dtype, np.integer) else float
    out = np.empty((ncols, nrows), dtype=dtype)
    for r in range(nrows):
        offset = reader.tell()
        line = reader.readline()
        if not line:
            raise ShortReadError(
                f"{what}: file ends after {r} of {nrows} records",
                filename=reader.filename,
                offset=offset,
            )
        tokens = line.decode("latin-1").split()
        if len(tokens) != ncols:
            raise ShortReadError(
                f"{what}: record {r} holds {len(tokens)} values, {ncols} declared",
                filename=reader.filename,
                offset=offset,
            )
        try:
            out[:, r] = [conv(tok) for tok in tokens]
        except ValueError as e:
            raise ShortReadError(
                f"{what}: record {r} is not numeric",
                filename=reader.filename,
                offset=offset,
            ) from e
    return out


def _read_binary_block(
    reader: BinaryReader, nrows: int, ncols: int, code: str, dtype: type
) -> np.ndarray:
    """Read ``nrows`` packed records of ``ncols`` values as ``(ncols, nrows)``."""
    flat = reader.read_array(code, nrows * ncols)
    return np.ascontiguousarray(flat.reshape(nrows, ncols).T, dtype=dtype)


def read_tecplot(
    path: str | Path,
    with_geometry: bool = False,
    *,
    options: ReaderOptions | None = None,
) -> tuple[TecplotHeader, Mesh]:
    """Read header, data, connectivity and optional geometry of a Tecplot file.

    Parameters
    ----------
    path
        Tecplot ``.dat`` file, text or binary body.
    with_geometry
        Read cell-centered data (one data record per cell) followed by a
        nodal geometry block. Otherwise data is node-centered and no geometry
        is read.
    options
        Reader options; ``byteorder`` applies to binary bodies.
    """
    opts = options or DEFAULT_OPTIONS
    log = get_logger("tecplot")

    with BinaryReader(path, byteorder=opts.body_byteorder) as reader:
        parser = _HeaderParser(reader)
        parser.run()
        if parser.zone_type is None:
            what = (
                "missing" if parser.zone_keyword is None else repr(parser.zone_keyword)
            )
            raise UnsupportedZoneTypeError(
                f"zone type {what}, expected QUADRILATERAL or BRICK",
                filename=reader.filename,
            )

        zone = TecplotZoneMeta(
            nnode=parser.nnode,
            ncell=parser.ncell,
            zone_type=parser.zone_type,
            title=parser.zone_title,
            auxdata=dict(parser.auxdata),
        )
        ndim = zone.ndim
        nvars = len(parser.variables)
        ndata = zone.ncell if with_geometry else zone.nnode
        nconn = zone.ncell
        ngeom = zone.nnode
        pt0 = parser.data_offset

        reader.seek(pt0)
        binary = not _probe_ascii(reader)
        reader.seek(pt0)
        if opts.verbose:
            log.info("{}: reading {} body", reader.filename, "binary" if binary else "ascii")
        log.debug(
            "{}: {} zone, nodes={} cells={} vars={} body at {}",
            reader.filename,
            zone.zone_type.value,
            zone.nnode,
            zone.ncell,
            nvars,
            pt0,
        )

        k = zone.zone_type.nodes_per_cell
        geometry = None
        if binary:
            data = _read_binary_block(reader, ndata, nvars, "f4", np.float32)
            connectivity = _read_binary_block(reader, nconn, k, "i4", np.int32)
            if with_geometry:
                geometry = _read_binary_block(reader, ngeom, ndim, "f4", np.float32)
        else:
            data = _read_text_block(reader, ndata, nvars, np.float32, "data")
            connectivity = _read_text_block(reader, nconn, k, np.int32, "connectivity")
            if with_geometry:
                geometry = _read_text_block(reader, ngeom, ndim, np.float32, "geometry")

    head = TecplotHeader(
        title=parser.title,
        variables=parser.variables,
        zone=zone,
        ndim=ndim,
        ndata=ndata,
        nconn=nconn,
        ngeom=ngeom,
        binary=binary,
        data_offset=pt0,
    )
    mesh = Mesh(
        variables=parser.variables,
        zone=zone,
        data=data,
        connectivity=connectivity,
        geometry=geometry,
    )
    return head, mesh


__all__ = ["ParserState", "TecplotHeader", "read_tecplot"]

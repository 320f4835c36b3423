"""IDL snapshot header decoding and snapshot size computation.

Two readers walk the same header layout:

- :func:`scan_snapshot` only keeps what is needed to know how many bytes one
  snapshot takes, so a multi-snapshot file can be indexed by offset.
- :func:`read_header` decodes every field into a :class:`Header`.

Both share the field-level helpers below so they agree on every byte offset.

Binary layout (each ``[...]`` is a Fortran record with 4-byte length tags)::

    [headline: 79 or 500 chars]
    [iteration:i4, time:f4|f8, ndim:i4, neqpar:i4, nw:i4]
    [nx: ndim * i4]
    [eqpar: neqpar * f4|f8]          only when neqpar > 0
    [variable names: 79 or 500 chars]

The ascii layout holds the same values, one record per text line.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import NamedTuple

import numpy as np

from ..errors import (
    MalformedHeaderError,
    TruncatedHeaderError,
    UnsupportedDimensionalityError,
)
from ..IO import TAG, BinaryReader
from .filetype import EXTENDED_HEADLINE_LEN, HEADLINE_LEN, FileType

ASCII_COLUMN_WIDTH = 18

# iteration, ndim, neqpar and nw around the time value
_COUNT_INTS_BYTES = 4 * 4


@dataclass(frozen=True)
class Header:
    """Decoded header of one IDL snapshot.

    ``variables`` lists coordinate names, then field names, then equation
    parameter names.
    """

    ndim: int
    headline: str
    iteration: int
    time: float
    gencoord: bool
    neqpar: int
    nw: int
    nx: tuple[int, ...]
    eqpar: tuple[float, ...]
    variables: tuple[str, ...]

    @property
    def coord_names(self) -> tuple[str, ...]:
        return self.variables[: self.ndim]

    @property
    def field_names(self) -> tuple[str, ...]:
        return self.variables[self.ndim : self.ndim + self.nw]

    @property
    def param_names(self) -> tuple[str, ...]:
        return self.variables[self.ndim + self.nw :]

    @property
    def npoints(self) -> int:
        return math.prod(self.nx)

    def parameters(self) -> dict[str, float]:
        """Map equation parameter names to their values."""
        return dict(zip(self.param_names, self.eqpar))


@dataclass(frozen=True)
class SnapshotLayout:
    """Byte layout of one snapshot as found by :func:`scan_snapshot`."""

    size: int
    header_size: int
    ndim: int
    nw: int
    nx: tuple[int, ...]


class _Counts(NamedTuple):
    iteration: int
    time: float
    ndim: int
    gencoord: bool
    neqpar: int
    nw: int


# --------------------------- shared helpers ---------------------------


def _strlen(extended: bool) -> int:
    return EXTENDED_HEADLINE_LEN if extended else HEADLINE_LEN


def _check_ndim(raw: int, reader: BinaryReader, offset: int) -> tuple[int, bool]:
    """Split the signed dimensionality into ``(ndim, gencoord)``."""
    ndim = abs(raw)
    if ndim not in (1, 2, 3):
        raise UnsupportedDimensionalityError(
            f"ndim={raw} is not 1, 2 or 3",
            filename=reader.filename,
            offset=offset,
        )
    return ndim, raw < 0


def _check_extents(nx: list[int], reader: BinaryReader, offset: int) -> tuple[int, ...]:
    if any(n <= 0 for n in nx):
        raise MalformedHeaderError(
            f"grid extents {nx} must be positive",
            filename=reader.filename,
            offset=offset,
        )
    return tuple(nx)


def _next_line(reader: BinaryReader, what: str) -> str:
    offset = reader.tell()
    raw = reader.readline()
    if not raw:
        raise TruncatedHeaderError(
            f"file ends before the {what} line",
            filename=reader.filename,
            offset=offset,
        )
    return raw.decode("latin-1").rstrip("\r\n")


def _tokens(reader: BinaryReader, what: str, count: int) -> tuple[list[str], int]:
    """Return at least ``count`` whitespace separated tokens of the next line."""
    offset = reader.tell()
    tokens = _next_line(reader, what).split()
    if len(tokens) < count:
        raise TruncatedHeaderError(
            f"{what} line holds {len(tokens)} values, {count} declared",
            filename=reader.filename,
            offset=offset,
        )
    return tokens, offset


def _parse(conv, token: str, reader: BinaryReader, offset: int):
    try:
        return conv(token)
    except ValueError as e:
        raise MalformedHeaderError(
            f"cannot parse {token!r} as {conv.__name__}",
            filename=reader.filename,
            offset=offset,
        ) from e


def _ascii_counts(reader: BinaryReader) -> _Counts:
    tokens, offset = _tokens(reader, "counts", 5)
    it = _parse(int, tokens[0], reader, offset)
    t = _parse(float, tokens[1], reader, offset)
    ndim, gencoord = _check_ndim(_parse(int, tokens[2], reader, offset), reader, offset)
    neqpar = _parse(int, tokens[3], reader, offset)
    nw = _parse(int, tokens[4], reader, offset)
    return _Counts(it, t, ndim, gencoord, neqpar, nw)


def _ascii_extents(reader: BinaryReader, ndim: int) -> tuple[int, ...]:
    tokens, offset = _tokens(reader, "grid extent", ndim)
    nx = [_parse(int, tok, reader, offset) for tok in tokens[:ndim]]
    return _check_extents(nx, reader, offset)


def _binary_counts(reader: BinaryReader, ftype: FileType) -> _Counts:
    # i4 iteration, f4|f8 time, i4 ndim, neqpar, nw: 20 bytes in real4, 24 in real8
    length = _COUNT_INTS_BYTES + ftype.itemsize
    reader.begin_record(length)
    offset = reader.tell()
    it = reader.read_i32()
    t = reader.read_float(ftype.itemsize)
    ndim, gencoord = _check_ndim(reader.read_i32(), reader, offset)
    neqpar = reader.read_i32()
    nw = reader.read_i32()
    reader.end_record(length)
    if neqpar < 0 or nw < 0:
        raise MalformedHeaderError(
            f"negative counts neqpar={neqpar} nw={nw}",
            filename=reader.filename,
            offset=offset,
        )
    return _Counts(it, t, ndim, gencoord, neqpar, nw)


def _binary_extents(reader: BinaryReader, ndim: int) -> tuple[int, ...]:
    offset = reader.tell()
    payload = reader.read_record(4 * ndim)
    nx = [int(v) for v in np.frombuffer(payload, dtype=reader.dtype("i4"), count=ndim)]
    return _check_extents(nx, reader, offset)


def _eqpar_itemsize(reader: BinaryReader, ftype: FileType, neqpar: int) -> int:
    """Width of one equation parameter as declared by the record tag.

    Parameters are stored in the snapshot precision; double precision files
    written with single precision parameters are accepted as well.
    """
    if ftype is FileType.REAL8 and reader.peek_i32() == 4 * neqpar:
        return 4
    return ftype.itemsize


# --------------------------- size scan ---------------------------


def snapshot_bytes(
    ftype: FileType, header_size: int, ndim: int, nw: int, npoints: int
) -> int:
    """Return the byte length of a snapshot from its header size and counts."""
    if ftype is FileType.LOG:
        return 1
    if ftype is FileType.ASCII:
        return header_size + (ASCII_COLUMN_WIDTH * (ndim + nw) + 1) * npoints
    if ftype.is_binary:
        return header_size + 2 * TAG * (1 + nw) + ftype.itemsize * (ndim + nw) * npoints
    raise ValueError(f"{ftype.value} files have no snapshot layout")


def scan_snapshot(
    reader: BinaryReader, ftype: FileType, extended: bool = False
) -> SnapshotLayout:
    """Walk one header from the current offset and size the whole snapshot.

    The reader is left right after the header.
    """
    if ftype is FileType.LOG:
        return SnapshotLayout(size=1, header_size=0, ndim=1, nw=0, nx=(1,))

    start = reader.tell()
    strlen = _strlen(extended)
    if ftype is FileType.ASCII:
        _next_line(reader, "headline")
        counts = _ascii_counts(reader)
        nx = _ascii_extents(reader, counts.ndim)
        if counts.neqpar > 0:
            _next_line(reader, "equation parameter")
        _next_line(reader, "variable name")
    elif ftype.is_binary:
        reader.skip_record(strlen)
        counts = _binary_counts(reader, ftype)
        nx = _binary_extents(reader, counts.ndim)
        if counts.neqpar > 0:
            width = _eqpar_itemsize(reader, ftype, counts.neqpar)
            reader.skip_record(width * counts.neqpar)
        reader.skip_record(strlen)
    else:
        raise ValueError(f"{ftype.value} files have no snapshot layout")

    header_size = reader.tell() - start
    size = snapshot_bytes(ftype, header_size, counts.ndim, counts.nw, math.prod(nx))
    return SnapshotLayout(
        size=size, header_size=header_size, ndim=counts.ndim, nw=counts.nw, nx=nx
    )


# --------------------------- full decode ---------------------------


def _decode_str(payload: bytes) -> str:
    return payload.decode("latin-1").split("\x00")[0].rstrip()


def read_header(
    reader: BinaryReader, ftype: FileType, extended: bool = False
) -> Header:
    """Decode the snapshot header at the current offset.

    The reader is left at the first byte after the header.
    """
    start = reader.tell()
    strlen = _strlen(extended)
    if ftype is FileType.ASCII:
        headline = _next_line(reader, "headline").rstrip()
        counts = _ascii_counts(reader)
        nx = _ascii_extents(reader, counts.ndim)
        eqpar: tuple[float, ...] = ()
        if counts.neqpar > 0:
            tokens, offset = _tokens(reader, "equation parameter", counts.neqpar)
            eqpar = tuple(
                _parse(float, tok, reader, offset) for tok in tokens[: counts.neqpar]
            )
        varname = _next_line(reader, "variable name")
    elif ftype.is_binary:
        headline = _decode_str(reader.read_record(strlen))
        counts = _binary_counts(reader, ftype)
        nx = _binary_extents(reader, counts.ndim)
        eqpar = ()
        if counts.neqpar > 0:
            width = _eqpar_itemsize(reader, ftype, counts.neqpar)
            payload = reader.read_record(width * counts.neqpar)
            code = "f4" if width == 4 else "f8"
            eqpar = tuple(
                float(v)
                for v in np.frombuffer(payload, dtype=reader.dtype(code), count=counts.neqpar)
            )
        varname = _decode_str(reader.read_record(strlen))
    else:
        raise ValueError(f"{ftype.value} files have no IDL header")

    variables = tuple(varname.split())
    expected = counts.ndim + counts.nw + counts.neqpar
    if len(variables) != expected:
        raise MalformedHeaderError(
            f"{len(variables)} variable names for ndim+nw+neqpar={expected}",
            filename=reader.filename,
            offset=start,
        )

    return Header(
        ndim=counts.ndim,
        headline=headline,
        iteration=counts.iteration,
        time=counts.time,
        gencoord=counts.gencoord,
        neqpar=counts.neqpar,
        nw=counts.nw,
        nx=nx,
        eqpar=eqpar,
        variables=variables,
    )


__all__ = [
    "ASCII_COLUMN_WIDTH",
    "Header",
    "SnapshotLayout",
    "read_header",
    "scan_snapshot",
    "snapshot_bytes",
]

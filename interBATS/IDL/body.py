"""Snapshot body decoding: coordinate array ``x`` and field array ``w``.

Arrays use the Fortran index order of the writer: the first grid extent
varies fastest, so ``x[i, j, k, :]`` is the coordinate of point ``(i, j, k)``.
"""

from __future__ import annotations

import numpy as np

from ..errors import ShortReadError
from ..IO import BinaryReader
from .filetype import FileType
from .header import Header


def allocate_buffers(head: Header, dtype: np.dtype | type) -> tuple[np.ndarray, np.ndarray]:
    """Return uninitialized ``x`` of shape ``(*nx, ndim)`` and ``w`` of ``(*nx, nw)``."""
    x = np.empty((*head.nx, head.ndim), dtype=dtype, order="F")
    w = np.empty((*head.nx, head.nw), dtype=dtype, order="F")
    return x, w


def read_ascii_body(
    reader: BinaryReader, head: Header, x: np.ndarray, w: np.ndarray
) -> None:
    """Fill ``x`` and ``w`` from one text row per grid point."""
    ncol = head.ndim + head.nw
    npoints = head.npoints
    rows = np.empty((npoints, ncol), dtype=np.float64)
    for r in range(npoints):
        offset = reader.tell()
        line = reader.readline()
        if not line:
            raise ShortReadError(
                f"file ends after {r} of {npoints} rows",
                filename=reader.filename,
                offset=offset,
            )
        tokens = line.decode("latin-1").split()
        if len(tokens) != ncol:
            raise ShortReadError(
                f"row {r} holds {len(tokens)} values, {ncol} declared",
                filename=reader.filename,
                offset=offset,
            )
        try:
            rows[r] = [float(tok) for tok in tokens]
        except ValueError as e:
            raise ShortReadError(
                f"row {r} is not numeric",
                filename=reader.filename,
                offset=offset,
            ) from e

    # row index runs over the grid with the first extent innermost
    grid = rows.reshape((*head.nx, ncol), order="F")
    x[...] = grid[..., : head.ndim]
    w[...] = grid[..., head.ndim :]


def read_binary_body(
    reader: BinaryReader,
    head: Header,
    ftype: FileType,
    x: np.ndarray,
    w: np.ndarray,
) -> None:
    """Fill ``x`` and ``w`` from Fortran records.

    ``x`` is a single record holding all coordinates; every field of ``w``
    is a record of its own, in variable name order.
    """
    code = ftype.float_code
    npoints = head.npoints
    itemsize = ftype.itemsize

    count = npoints * head.ndim
    reader.begin_record(count * itemsize, ShortReadError)
    coords = reader.read_array(code, count)
    reader.end_record(count * itemsize, ShortReadError)
    x[...] = coords.reshape(x.shape, order="F")

    for iw in range(head.nw):
        reader.begin_record(npoints * itemsize, ShortReadError)
        values = reader.read_array(code, npoints)
        reader.end_record(npoints * itemsize, ShortReadError)
        w[..., iw] = values.reshape(head.nx, order="F")


def read_body(
    reader: BinaryReader, head: Header, ftype: FileType
) -> tuple[np.ndarray, np.ndarray]:
    """Allocate and decode the body following ``head``.

    Ascii bodies are always decoded to float64; binary bodies keep their
    on-disk precision.
    """
    if ftype is FileType.ASCII:
        x, w = allocate_buffers(head, np.float64)
        read_ascii_body(reader, head, x, w)
    elif ftype.is_binary:
        x, w = allocate_buffers(head, np.dtype(ftype.float_code))
        read_binary_body(reader, head, ftype, x, w)
    else:
        raise ValueError(f"{ftype.value} files have no snapshot body")
    return x, w


__all__ = [
    "allocate_buffers",
    "read_ascii_body",
    "read_binary_body",
    "read_body",
]

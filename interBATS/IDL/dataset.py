"""Entry points for IDL snapshot files.

Workflow
--------
1) Resolve the name pattern to exactly one file in the directory.
2) Detect the type from the extension or the first record tags.
3) Scan the first header to learn the byte size of one snapshot; the file
   holds ``filesize // snapshot_size`` snapshots.
4) Seek to ``index * snapshot_size``, decode the header there, allocate the
   buffers and decode the body.

Usage
-----
>>> data = read_dataset("1d_raw*", directory="run/IO2", snapshot_index=0)
>>> data.head.field_names
('rho', 'ux', 'p')
>>> rho = data["rho"]
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import numpy as np

from ..errors import (
    AmbiguousMatchError,
    IndexOutOfRangeError,
    NoMatchError,
    ShortReadError,
    UnrecognizedFormatError,
)
from ..IO import BinaryReader
from ..Log import get_logger
from ..options import DEFAULT_OPTIONS, ReaderOptions
from ..paths import resolve
from .body import read_body
from .filetype import FileDescriptor, FileType, detect_file_type, format_size
from .header import Header, read_header, scan_snapshot


@dataclass(frozen=True, eq=False)
class Dataset:
    """One decoded snapshot.

    Attributes:
        file (FileDescriptor): The file it was read from.
        head (Header): Snapshot header.
        x (np.ndarray): Coordinates, shape ``(*nx, ndim)``.
        w (np.ndarray): Field values, shape ``(*nx, nw)``.
    """

    file: FileDescriptor
    head: Header
    x: np.ndarray
    w: np.ndarray

    def __getitem__(self, name: str) -> np.ndarray:
        """Return a coordinate or field by variable name."""
        head = self.head
        if name in head.coord_names:
            return self.x[..., head.coord_names.index(name)]
        if name in head.field_names:
            return self.w[..., head.field_names.index(name)]
        raise KeyError(name)

    def __repr__(self) -> str:
        h = self.head
        return (
            f"Dataset(file={self.file.name!r}, type={self.file.type.value}, "
            f"size={format_size(self.file.nbytes)}, snapshots={self.file.nsnapshots}, "
            f"it={h.iteration}, t={h.time:g}, nx={h.nx}, fields={list(h.field_names)})"
        )

    __str__ = __repr__


def _describe(
    reader: BinaryReader, name: str, directory: str, opts: ReaderOptions
) -> FileDescriptor:
    """Detect the type of the open file and count its snapshots."""
    log = get_logger("idl")
    ftype, extended, order = detect_file_type(reader, name, opts.byteorder)
    nbytes = reader.filesize

    if ftype is FileType.LOG:
        size, count = 1, 1
    elif ftype in (FileType.TECPLOT_ASCII, FileType.TECPLOT_BINARY):
        size, count = nbytes, 1
    else:
        layout = scan_snapshot(reader, ftype, extended)
        reader.seek(0)
        size = layout.size
        count = nbytes // size
        if count == 0 and ftype is FileType.ASCII:
            log.warning(
                "{}: {} bytes is less than one fixed-width snapshot ({} bytes), "
                "reading it as a single free-format snapshot",
                name,
                nbytes,
                size,
            )
            count = 1
        elif nbytes % size:
            log.warning(
                "{}: {} trailing bytes after {} snapshots", name, nbytes % size, count
            )
        log.debug(
            "{}: header {} bytes, snapshot {} bytes, nx={}",
            name,
            layout.header_size,
            size,
            layout.nx,
        )

    return FileDescriptor(
        name=name,
        directory=str(directory),
        type=ftype,
        extended=extended,
        byteorder=order,
        nbytes=nbytes,
        snapshot_size=size,
        nsnapshots=count,
    )


def _resolve_one(name_pattern: str, directory: str | Path) -> str:
    matches = resolve(name_pattern, directory)
    if not matches:
        raise NoMatchError(
            f"no file matching {name_pattern!r}", filename=str(directory)
        )
    if len(matches) > 1:
        raise AmbiguousMatchError(
            f"pattern {name_pattern!r} matches {len(matches)} files: {matches}",
            matches,
            filename=str(directory),
        )
    return matches[0]


def _require_snapshots(desc: FileDescriptor) -> None:
    if desc.type not in (FileType.ASCII, FileType.REAL4, FileType.REAL8):
        hint = "read_log" if desc.type is FileType.LOG else "read_tecplot"
        raise UnrecognizedFormatError(
            f"{desc.type.value} file holds no IDL snapshots, use {hint}()",
            filename=str(desc.path),
        )


def describe_file(
    path: str | Path, *, options: ReaderOptions | None = None
) -> FileDescriptor:
    """Detect the type of ``path`` and count its snapshots."""
    opts = options or DEFAULT_OPTIONS
    path = Path(path)
    with BinaryReader(path) as reader:
        return _describe(reader, path.name, str(path.parent), opts)


def read_dataset(
    name_pattern: str,
    directory: str | Path = ".",
    snapshot_index: int = 0,
    *,
    options: ReaderOptions | None = None,
) -> Dataset:
    """Read one snapshot from the single file matching ``name_pattern``.

    Parameters
    ----------
    name_pattern
        File name, ``*`` may be used as a wildcard.
    directory
        Directory searched for the file.
    snapshot_index
        0-based index of the snapshot inside the file.
    options
        Reader options; see :class:`~interBATS.options.ReaderOptions`.
    """
    opts = options or DEFAULT_OPTIONS
    log = get_logger("idl")
    name = _resolve_one(name_pattern, directory)

    with BinaryReader(Path(directory) / name) as reader:
        desc = _describe(reader, name, str(directory), opts)
        _require_snapshots(desc)
        if opts.verbose:
            log.info("filename={} type={} npict={}", name, desc.type.value, desc.nsnapshots)
        if not 0 <= snapshot_index < desc.nsnapshots:
            raise IndexOutOfRangeError(
                f"snapshot {snapshot_index} out of range, file holds {desc.nsnapshots}",
                filename=str(desc.path),
            )

        reader.seek(snapshot_index * desc.snapshot_size)
        head = read_header(reader, desc.type, desc.extended)
        log.debug(
            "{}: snapshot {} header ends at offset {}", name, snapshot_index, reader.tell()
        )
        x, w = read_body(reader, head, desc.type)

    x.flags.writeable = False
    w.flags.writeable = False
    if opts.verbose:
        log.info("Finished reading {}", name)
    return Dataset(file=desc, head=head, x=x, w=w)


def _skip_body(reader: BinaryReader, head: Header, ftype: FileType) -> None:
    if ftype is FileType.ASCII:
        for r in range(head.npoints):
            if not reader.readline():
                raise ShortReadError(
                    f"file ends after {r} of {head.npoints} rows",
                    filename=reader.filename,
                    offset=reader.tell(),
                )
        return
    reader.skip_record(head.npoints * head.ndim * ftype.itemsize, ShortReadError)
    for _ in range(head.nw):
        reader.skip_record(head.npoints * ftype.itemsize, ShortReadError)


def read_headers(
    name_pattern: str,
    directory: str | Path = ".",
    *,
    options: ReaderOptions | None = None,
) -> list[Header]:
    """Decode every snapshot header by walking the file front to back.

    Bodies are skipped record by record (or line by line for ascii), without
    using the precomputed snapshot size.
    """
    opts = options or DEFAULT_OPTIONS
    name = _resolve_one(name_pattern, directory)
    headers: list[Header] = []
    with BinaryReader(Path(directory) / name) as reader:
        desc = _describe(reader, name, str(directory), opts)
        _require_snapshots(desc)
        reader.seek(0)
        for _ in range(desc.nsnapshots):
            head = read_header(reader, desc.type, desc.extended)
            _skip_body(reader, head, desc.type)
            headers.append(head)
    return headers


__all__ = ["Dataset", "describe_file", "read_dataset", "read_headers"]

"""File type detection for BATSRUS outputs.

BATSRUS writes IDL plot files either as text or as unformatted Fortran
sequential records. The first record of a binary file is the headline, so its
length tag (79, or 500 for the extended header) identifies the binary
variants. The length of the second record tells the time precision:
``4 + 4 + 4*3 = 20`` bytes for single precision and ``4 + 8 + 4*3 = 24`` for
double precision.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from ..errors import MalformedHeaderError, UnrecognizedFormatError
from ..IO import TAG, BinaryReader
from ..Log import get_logger

HEADLINE_LEN = 79
EXTENDED_HEADLINE_LEN = 500

_LEN2_TO_TYPE = {20: "real4", 24: "real8"}


class FileType(Enum):
    """Format tags understood by the readers."""

    ASCII = "ascii"
    REAL4 = "real4"
    REAL8 = "real8"
    LOG = "log"
    TECPLOT_ASCII = "tecplot_ascii"
    TECPLOT_BINARY = "tecplot_binary"

    @property
    def is_binary(self) -> bool:
        return self in (FileType.REAL4, FileType.REAL8)

    @property
    def itemsize(self) -> int:
        """Bytes per floating point value in the snapshot body."""
        if self is FileType.REAL4:
            return 4
        return 8

    @property
    def float_code(self) -> str:
        return "f4" if self.itemsize == 4 else "f8"


@dataclass(frozen=True)
class FileDescriptor:
    """What is known about a file before its snapshots are decoded.

    Attributes:
        name (str): File name inside ``directory``.
        directory (str): Directory holding the file.
        type (FileType): Detected format.
        extended (bool): Binary file written with 500-byte string records.
        byteorder (str): ``"little"`` or ``"big"``.
        nbytes (int): Total file size.
        snapshot_size (int): Bytes taken by one snapshot.
        nsnapshots (int): Number of whole snapshots in the file.
    """

    name: str
    directory: str
    type: FileType
    extended: bool
    byteorder: str
    nbytes: int
    snapshot_size: int
    nsnapshots: int

    @property
    def path(self) -> Path:
        return Path(self.directory) / self.name

    @property
    def strlen(self) -> int:
        """Width of the headline and variable name records."""
        return EXTENDED_HEADLINE_LEN if self.extended else HEADLINE_LEN

    def __repr__(self) -> str:
        return (
            f"FileDescriptor(name={self.name!r}, type={self.type.value}, "
            f"size={format_size(self.nbytes)}, snapshots={self.nsnapshots})"
        )

    __str__ = __repr__


def format_size(nbytes: int) -> str:
    """Render a byte count with a decimal unit."""
    for unit, scale in (("GB", 1e9), ("MB", 1e6), ("KB", 1e3)):
        if nbytes >= scale:
            return f"{nbytes / scale:g} {unit}"
    return f"{nbytes} bytes"


def _binary_order(reader: BinaryReader, byteorder: str) -> str | None:
    """Return the byte order in which the first tag reads as a headline length."""
    candidates = ("little", "big") if byteorder == "auto" else (byteorder,)
    for order in candidates:
        if reader.peek_i32(order) in (HEADLINE_LEN, EXTENDED_HEADLINE_LEN):
            return order
    return None


def detect_file_type(
    reader: BinaryReader, name: str, byteorder: str = "auto"
) -> tuple[FileType, bool, str]:
    """Classify the file behind ``reader``.

    Returns:
        tuple[FileType, bool, str]: the type, the extended-header flag and the
        byte order. The reader is rewound to offset 0 and left in that byte
        order.
    """
    log = get_logger("idl")
    suffix = Path(name).suffix.lower()
    fallback = "little" if byteorder == "auto" else byteorder
    try:
        if suffix == ".log":
            reader.set_byteorder(fallback)
            return FileType.LOG, False, fallback
        if suffix == ".dat":
            reader.set_byteorder(fallback)
            return FileType.TECPLOT_ASCII, False, fallback

        reader.seek(0)
        if reader.filesize < TAG:
            raise UnrecognizedFormatError(
                f"file too short to classify ({reader.filesize} bytes)",
                filename=reader.filename,
                offset=0,
            )
        order = _binary_order(reader, byteorder)
        if order is None:
            log.debug("{}: first tag is not a headline length, reading as ascii", name)
            reader.set_byteorder(fallback)
            return FileType.ASCII, False, fallback

        reader.set_byteorder(order)
        lenhead = reader.read_i32(MalformedHeaderError)
        if reader.remaining() < lenhead + 2 * TAG:
            raise MalformedHeaderError(
                "file ends inside the first record",
                filename=reader.filename,
                offset=reader.tell(),
            )
        reader.skip(lenhead + TAG)
        offset = reader.tell()
        len2 = reader.read_i32(MalformedHeaderError)
        kind = _LEN2_TO_TYPE.get(len2)
        if kind is None:
            raise MalformedHeaderError(
                f"second record length {len2} is neither 20 nor 24",
                filename=reader.filename,
                offset=offset,
            )
        extended = lenhead == EXTENDED_HEADLINE_LEN
        log.debug(
            "{}: {} binary, {}-endian, extended={}", name, kind, order, extended
        )
        return FileType(kind), extended, order
    finally:
        reader.seek(0)


__all__ = [
    "EXTENDED_HEADLINE_LEN",
    "FileDescriptor",
    "FileType",
    "HEADLINE_LEN",
    "detect_file_type",
    "format_size",
]

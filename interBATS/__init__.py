"""interBATS: readers for BATSRUS output files.

- IDL snapshot files (ascii, real4, real8): :func:`read_dataset`
- log files: :func:`read_log`
- Tecplot files: :func:`read_tecplot`
"""

from .errors import (
    AmbiguousMatchError,
    BATSReadError,
    IndexOutOfRangeError,
    MalformedHeaderError,
    MalformedZoneLineError,
    NoMatchError,
    ShortReadError,
    TruncatedHeaderError,
    UnrecognizedFormatError,
    UnsupportedDimensionalityError,
    UnsupportedZoneTypeError,
)
from .IDL import (
    Dataset,
    FileDescriptor,
    FileType,
    Header,
    describe_file,
    read_dataset,
    read_headers,
)
from .Log import Log
from .logfile import LogHeader, read_log
from .Mesh import AuxInt, AuxStr, Mesh, TecplotZoneMeta, ZoneType
from .options import ReaderOptions
from .paths import resolve
from .Tecplot import TecplotHeader, read_tecplot

__all__ = [
    "AmbiguousMatchError",
    "AuxInt",
    "AuxStr",
    "BATSReadError",
    "Dataset",
    "FileDescriptor",
    "FileType",
    "Header",
    "IndexOutOfRangeError",
    "Log",
    "LogHeader",
    "MalformedHeaderError",
    "MalformedZoneLineError",
    "Mesh",
    "NoMatchError",
    "ReaderOptions",
    "ShortReadError",
    "TecplotHeader",
    "TecplotZoneMeta",
    "TruncatedHeaderError",
    "UnrecognizedFormatError",
    "UnsupportedDimensionalityError",
    "UnsupportedZoneTypeError",
    "ZoneType",
    "describe_file",
    "read_dataset",
    "read_headers",
    "read_log",
    "read_tecplot",
    "resolve",
]

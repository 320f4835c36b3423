"""Reader for BATSRUS IDL snapshot files (ascii, real4 and real8)."""

from .body import allocate_buffers, read_ascii_body, read_binary_body, read_body
from .dataset import Dataset, describe_file, read_dataset, read_headers
from .filetype import FileDescriptor, FileType, detect_file_type
from .header import Header, SnapshotLayout, read_header, scan_snapshot

__all__ = [
    "Dataset",
    "FileDescriptor",
    "FileType",
    "Header",
    "SnapshotLayout",
    "allocate_buffers",
    "describe_file",
    "detect_file_type",
    "read_ascii_body",
    "read_binary_body",
    "read_body",
    "read_dataset",
    "read_header",
    "read_headers",
    "scan_snapshot",
]

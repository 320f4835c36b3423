# ---------------------------------------------------------------------
# Binary reader (memory-mapped, Fortran record aware)
# ---------------------------------------------------------------------
from __future__ import annotations

import mmap
import os
import struct
from pathlib import Path

import numpy as np

from ..errors import MalformedHeaderError, ShortReadError, TruncatedHeaderError

TAG = 4  # bytes in one Fortran record length marker

_ORDER = {"little": "<", "big": ">"}


class BinaryReader:
    """Cursor reader for BATSRUS output files.

    Design
    ------
    - Memory-mapped file, integer cursor ``pos`` instead of file seeks.
    - Typed reads honour a fixed byte order (``"little"`` or ``"big"``).
    - Fortran sequential records are read with their length tags checked.
    - Text lines can be pulled from the same cursor, so ascii headers and
      binary payloads share one offset space.
    - Use as a context manager; the map and the handle are released on exit.

    Notes
    -----
    An unformatted Fortran record of ``R`` bytes is stored as:
        [i32 R][R bytes of payload][i32 R]
    """

    __slots__ = ("filename", "_f", "_mm", "_buf", "filesize", "pos", "byteorder")

    def __init__(self, filename: str | Path, byteorder: str = "little"):
        self.filename = str(filename)
        f = open(filename, "rb")
        try:
            size = os.fstat(f.fileno()).st_size
            # mmap refuses empty files
            mm = mmap.mmap(f.fileno(), 0, access=mmap.ACCESS_READ) if size else None
        except BaseException:
            f.close()
            raise
        self._f = f
        self._mm = mm
        self._buf = memoryview(mm) if mm is not None else memoryview(b"")
        self.filesize = size
        self.pos = 0
        self.byteorder = "little"
        self.set_byteorder(byteorder)

    def __repr__(self) -> str:
        return f"BinaryReader({self.filename!r}, size={self.filesize}, pos={self.pos}, order={self.byteorder})"

    __str__ = __repr__

    def __enter__(self) -> BinaryReader:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def set_byteorder(self, byteorder: str) -> None:
        if byteorder not in _ORDER:
            raise ValueError(f"invalid byte order {byteorder!r}")
        self.byteorder = byteorder

    @property
    def _prefix(self) -> str:
        return _ORDER[self.byteorder]

    def dtype(self, code: str) -> np.dtype:
        """Return a NumPy dtype such as ``'f4'`` in the reader's byte order."""
        return np.dtype(self._prefix + code)

    # ------------- low-level cursor ops -------------

    def remaining(self) -> int:
        return self.filesize - self.pos

    def eof(self) -> bool:
        return self.pos >= self.filesize

    def _ensure(self, n: int, exc: type = ShortReadError) -> None:
        if self.pos + n > self.filesize:
            raise exc(
                f"need {n} bytes, {self.remaining()} left",
                filename=self.filename,
                offset=self.pos,
            )

    def tell(self) -> int:
        return self.pos

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> None:
        if whence == os.SEEK_SET:
            np_ = offset
        elif whence == os.SEEK_CUR:
            np_ = self.pos + offset
        elif whence == os.SEEK_END:
            np_ = self.filesize + offset
        else:
            raise ValueError("invalid whence")
        if np_ < 0 or np_ > self.filesize:
            raise ValueError(f"invalid seek to {np_} in {self.filesize}-byte file")
        self.pos = np_

    def skip(self, n: int, exc: type = ShortReadError) -> None:
        self._ensure(n, exc)
        self.pos += n

    # ------------- typed reads -------------

    def read(self, n: int, exc: type = ShortReadError) -> bytes:
        """Return ``n`` bytes and advance."""
        self._ensure(n, exc)
        out = self._buf[self.pos : self.pos + n].tobytes()
        self.pos += n
        return out

    def read_i32(self, exc: type = TruncatedHeaderError) -> int:
        self._ensure(4, exc)
        val = struct.unpack_from(self._prefix + "i", self._buf, self.pos)[0]
        self.pos += 4
        return int(val)

    def peek_i32(self, order: str | None = None) -> int:
        """Peek the next signed 32-bit integer without advancing."""
        self._ensure(4, TruncatedHeaderError)
        prefix = _ORDER[order] if order is not None else self._prefix
        return int(struct.unpack_from(prefix + "i", self._buf, self.pos)[0])

    def read_float(self, itemsize: int, exc: type = TruncatedHeaderError) -> float:
        """Read one 4- or 8-byte float."""
        code = {4: "f", 8: "d"}[itemsize]
        self._ensure(itemsize, exc)
        val = struct.unpack_from(self._prefix + code, self._buf, self.pos)[0]
        self.pos += itemsize
        return float(val)

    def read_array(
        self, code: str, count: int, exc: type = ShortReadError
    ) -> np.ndarray:
        """Read ``count`` items of dtype ``code`` into a fresh array."""
        dt = self.dtype(code)
        payload = self.read(dt.itemsize * count, exc)
        return np.frombuffer(payload, dtype=dt, count=count)

    def readline(self) -> bytes:
        """Return the next line including its newline; ``b''`` at end of file."""
        if self.pos >= self.filesize:
            return b""
        end = self._mm.find(b"\n", self.pos)
        end = self.filesize if end < 0 else end + 1
        out = self._buf[self.pos : end].tobytes()
        self.pos = end
        return out

    # ------------- record helpers -------------

    def begin_record(self, expected: int, exc: type = TruncatedHeaderError) -> int:
        """Consume a leading record tag and check it against ``expected`` bytes.

        A tag smaller than ``expected`` means the record cannot hold the
        declared fields and raises ``exc``; any other mismatch is malformed.
        """
        start = self.pos
        tag = self.read_i32(exc)
        if tag != expected:
            if 0 <= tag < expected:
                raise exc(
                    f"record holds {tag} bytes, {expected} declared",
                    filename=self.filename,
                    offset=start,
                )
            raise MalformedHeaderError(
                f"record tag {tag} does not match expected length {expected}",
                filename=self.filename,
                offset=start,
            )
        return tag

    def end_record(self, length: int, exc: type = TruncatedHeaderError) -> None:
        """Consume a trailing record tag and check it equals ``length``."""
        start = self.pos
        tag = self.read_i32(exc)
        if tag != length:
            raise MalformedHeaderError(
                f"closing record tag {tag} does not match opening tag {length}",
                filename=self.filename,
                offset=start,
            )

    def read_record(self, expected: int, exc: type = TruncatedHeaderError) -> bytes:
        """Read one tag-bracketed record of exactly ``expected`` bytes."""
        self.begin_record(expected, exc)
        payload = self.read(expected, exc)
        self.end_record(expected, exc)
        return payload

    def skip_record(self, expected: int, exc: type = TruncatedHeaderError) -> None:
        """Skip one tag-bracketed record of ``expected`` bytes, checking tags."""
        self.begin_record(expected, exc)
        self.skip(expected, exc)
        self.end_record(expected, exc)

    # ------------- lifecycle -------------

    def close(self) -> None:
        if self._f.closed:
            return
        self._buf.release()
        try:
            if self._mm is not None:
                self._mm.close()
        finally:
            self._f.close()

    @property
    def closed(self) -> bool:
        return self._f.closed

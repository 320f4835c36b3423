"""Exceptions raised while locating and decoding BATSRUS output files."""

from __future__ import annotations


class BATSReadError(RuntimeError):
    """Base class for every decode failure.

    Attributes:
        filename (str | None): File being decoded, when known.
        offset (int | None): Byte offset where the problem was detected.
    """

    def __init__(
        self,
        message: str,
        *,
        filename: str | None = None,
        offset: int | None = None,
    ) -> None:
        self.message = message
        self.filename = filename
        self.offset = offset
        super().__init__(self._format())

    def _format(self) -> str:
        where = []
        if self.filename is not None:
            where.append(str(self.filename))
        if self.offset is not None:
            where.append(f"offset {self.offset}")
        if not where:
            return self.message
        return f"{self.message} ({', '.join(where)})"


class NoMatchError(BATSReadError):
    """No file in the directory matches the requested pattern."""


class AmbiguousMatchError(BATSReadError):
    """More than one file matches the requested pattern."""

    def __init__(self, message: str, matches: list[str], **kwargs) -> None:
        self.matches = list(matches)
        super().__init__(message, **kwargs)


class IndexOutOfRangeError(BATSReadError, IndexError):
    """The requested snapshot does not exist in the file."""


class UnrecognizedFormatError(BATSReadError):
    """The leading bytes do not identify any supported format."""


class MalformedHeaderError(BATSReadError):
    """A record tag or magic value disagrees with the declared layout."""


class TruncatedHeaderError(BATSReadError):
    """The header ends before all declared fields were read."""


class ShortReadError(BATSReadError):
    """The body holds fewer bytes or lines than the header declares."""


class UnsupportedDimensionalityError(BATSReadError):
    """The header declares a dimensionality outside 1..3."""


class UnsupportedZoneTypeError(BATSReadError):
    """The Tecplot zone type is missing or not a quadrilateral/brick zone."""


class MalformedZoneLineError(BATSReadError):
    """A Tecplot zone or AUXDATA token could not be parsed."""


__all__ = [
    "AmbiguousMatchError",
    "BATSReadError",
    "IndexOutOfRangeError",
    "MalformedHeaderError",
    "MalformedZoneLineError",
    "NoMatchError",
    "ShortReadError",
    "TruncatedHeaderError",
    "UnrecognizedFormatError",
    "UnsupportedDimensionalityError",
    "UnsupportedZoneTypeError",
]

"""Configuration dataclasses for the readers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ByteOrder = Literal["auto", "little", "big"]

_BYTEORDERS = ("auto", "little", "big")


@dataclass(slots=True, frozen=True)
class ReaderOptions:
    """Controls shared by every decode call.

    Attributes:
        verbose (bool): Emit ``info`` records naming the file, its type and
            the snapshot being read. Stage-by-stage ``debug`` records are
            always emitted and only need a lower sink level to show up.
        byteorder (ByteOrder): Byte order of binary files. ``"auto"``
            inspects the first record tag of IDL snapshots and falls back to
            little-endian for Tecplot bodies, which carry no tag to inspect.
    """

    verbose: bool = False
    byteorder: ByteOrder = "auto"

    def __post_init__(self) -> None:
        if self.byteorder not in _BYTEORDERS:
            raise ValueError(
                f"byteorder must be one of {_BYTEORDERS}, got {self.byteorder!r}"
            )

    @property
    def body_byteorder(self) -> str:
        """Byte order to use where nothing in the file reveals it."""
        return "little" if self.byteorder == "auto" else self.byteorder


DEFAULT_OPTIONS = ReaderOptions()


__all__ = ["ByteOrder", "DEFAULT_OPTIONS", "ReaderOptions"]

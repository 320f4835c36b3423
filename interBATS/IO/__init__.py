"""Low-level byte access shared by all decoders."""

from .BinaryReader import TAG, BinaryReader

__all__ = ["BinaryReader", "TAG"]

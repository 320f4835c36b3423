"""Reader for BATSRUS Tecplot outputs."""

from .Tecplot import ParserState, TecplotHeader, read_tecplot

__all__ = ["ParserState", "TecplotHeader", "read_tecplot"]

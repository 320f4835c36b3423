"""Reader for BATSRUS log files.

A log file is a plain text table: a title line, a line of variable names and
one row of numbers per line after that.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import numpy as np

from .errors import ShortReadError, TruncatedHeaderError
from .Log import get_logger


@dataclass(frozen=True)
class LogHeader:
    """Header of a log file."""

    headline: str
    variables: tuple[str, ...]
    nw: int
    nrows: int


def read_log(path: str | Path) -> tuple[LogHeader, np.ndarray]:
    """Read a log file.

    Returns:
        tuple[LogHeader, np.ndarray]: the header and a float64 table shaped
        ``(nw, nrows)``, one row per variable.
    """
    path = Path(path)
    with path.open("r", encoding="latin-1") as fp:
        lines = fp.read().splitlines()
    if len(lines) < 2:
        raise TruncatedHeaderError(
            "log file needs a title and a variable line", filename=str(path)
        )

    headline = lines[0].strip()
    variables = tuple(lines[1].split())
    nw = len(variables)
    rows: list[list[float]] = []
    for lineno, line in enumerate(lines[2:], start=3):
        tokens = line.split()
        if not tokens:
            continue
        if len(tokens) != nw:
            raise ShortReadError(
                f"line {lineno} holds {len(tokens)} values, {nw} variables declared",
                filename=str(path),
            )
        try:
            rows.append([float(tok) for tok in tokens])
        except ValueError as e:
            raise ShortReadError(
                f"line {lineno} is not numeric", filename=str(path)
            ) from e

    table = np.asarray(rows, dtype=np.float64).reshape(len(rows), nw).T
    get_logger("log").debug("{}: {} variables, {} rows", path.name, nw, len(rows))
    return LogHeader(headline=headline, variables=variables, nw=nw, nrows=len(rows)), table


__all__ = ["LogHeader", "read_log"]

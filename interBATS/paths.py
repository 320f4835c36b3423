"""Helpers to resolve file name patterns inside an output directory."""

from __future__ import annotations

import re
from pathlib import Path


def pattern_to_regex(pattern: str) -> re.Pattern[str]:
    """Translate a name pattern where ``*`` is the only wildcard."""
    parts = [re.escape(p) for p in pattern.split("*")]
    return re.compile(".*".join(parts))


def resolve(pattern: str, directory: str | Path = ".") -> list[str]:
    """Return the sorted names of regular files in ``directory`` matching ``pattern``.

    The pattern may match anywhere inside a name, so ``"1d_raw*"`` also
    matches ``"z=0_1d_raw_t0000.out"``.
    """
    rx = pattern_to_regex(pattern)
    root = Path(directory)
    return sorted(
        entry.name
        for entry in root.iterdir()
        if entry.is_file() and rx.search(entry.name)
    )


__all__ = ["pattern_to_regex", "resolve"]

"""Mesh container for interBATS.

This module defines small data classes for the unstructured output of the
Tecplot writer: zone metadata, the point data table, the cell connectivity
and the optional nodal geometry.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

import numpy as np


class ZoneType(Enum):
    """Finite element zone types written by BATSRUS."""

    QUADRILATERAL = "QUADRILATERAL"
    BRICK = "BRICK"

    @classmethod
    def from_keyword(cls, value: str) -> ZoneType | None:
        """Map an ``ET``/``ZONETYPE`` value to a zone type, or ``None``."""
        key = value.strip().strip('"').upper()
        if key.startswith("FE"):
            key = key[2:]
        try:
            return cls(key)
        except ValueError:
            return None

    @property
    def ndim(self) -> int:
        return 3 if self is ZoneType.BRICK else 2

    @property
    def nodes_per_cell(self) -> int:
        return 8 if self is ZoneType.BRICK else 4


@dataclass(frozen=True)
class AuxInt:
    """Integer AUXDATA value."""

    value: int


@dataclass(frozen=True)
class AuxStr:
    """Text AUXDATA value."""

    value: str


AuxValue = Union[AuxInt, AuxStr]


@dataclass(frozen=True)
class TecplotZoneMeta:
    """Zone metadata.

    Attributes
    ----------
    nnode
        Number of nodes.
    ncell
        Number of cells.
    zone_type
        Cell shape; fixes the dimensionality and the nodes per cell.
    title
        Zone title, without quotes.
    auxdata
        AUXDATA pairs in file order.
    """

    nnode: int
    ncell: int
    zone_type: ZoneType
    title: str = ""
    auxdata: dict[str, AuxValue] = field(default_factory=dict)

    @property
    def ndim(self) -> int:
        return self.zone_type.ndim

    def aux(self, name: str) -> int | str:
        """Return the plain value of an AUXDATA entry."""
        return self.auxdata[name].value


@dataclass(eq=False)
class Mesh:
    """Point data and connectivity of one Tecplot zone.

    Attributes
    ----------
    variables
        Variable names, one per row of ``data``.
    zone
        Zone metadata.
    data
        Array of shape ``(nvars, ndata)``. ``ndata`` is the node count, or
        the cell count when the file was read with geometry.
    connectivity
        Array of shape ``(nodes_per_cell, ncell)`` with the node ids of each
        cell as stored in the file (1-based).
    geometry
        Array of shape ``(ndim, nnode)`` with nodal coordinates, only present
        when reading cell-centered data with geometry.
    """

    variables: tuple[str, ...]
    zone: TecplotZoneMeta
    data: np.ndarray
    connectivity: np.ndarray
    geometry: np.ndarray | None = None

    def __post_init__(self) -> None:
        if self.data.ndim != 2 or self.data.shape[0] != len(self.variables):
            raise ValueError("data must be (nvars, ndata)")
        if self.connectivity.shape[0] != self.zone.zone_type.nodes_per_cell:
            raise ValueError("connectivity rows must match the zone type")
        if self.geometry is not None and self.geometry.shape[0] != self.zone.ndim:
            raise ValueError("geometry must be (ndim, nnode)")

    # -------------- simple queries --------------

    @property
    def ncells(self) -> int:
        """Return the number of cells."""
        return int(self.connectivity.shape[1])

    @property
    def nnodes(self) -> int:
        """Return the number of nodes."""
        return self.zone.nnode

    def __getitem__(self, name: str) -> np.ndarray:
        """Return the data row of a variable."""
        try:
            return self.data[self.variables.index(name)]
        except ValueError as e:
            raise KeyError(name) from e

    def cell_nodes(self, ci: int) -> np.ndarray:
        """Return 0-based node ids of a single cell."""
        return self.connectivity[:, ci].astype(np.int64) - 1

    def bounds(self) -> tuple[np.ndarray, np.ndarray]:
        """Return the axis-aligned bounding box of the nodes.

        Uses the geometry array when present, otherwise the first ``ndim``
        data rows, which hold the coordinates in node-centered files.
        """
        xyz = self.geometry if self.geometry is not None else self.data[: self.zone.ndim]
        return xyz.min(axis=1), xyz.max(axis=1)

    def __repr__(self) -> str:
        geom = "yes" if self.geometry is not None else "no"
        return (
            f"Mesh(zone={self.zone.zone_type.value}, nodes={self.nnodes}, "
            f"cells={self.ncells}, vars={len(self.variables)}, geometry={geom})"
        )

    __str__ = __repr__


__all__ = ["AuxInt", "AuxStr", "AuxValue", "Mesh", "TecplotZoneMeta", "ZoneType"]

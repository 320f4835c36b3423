"""Mesh and zone containers."""

from .Mesh import AuxInt, AuxStr, AuxValue, Mesh, TecplotZoneMeta, ZoneType

__all__ = ["AuxInt", "AuxStr", "AuxValue", "Mesh", "TecplotZoneMeta", "ZoneType"]

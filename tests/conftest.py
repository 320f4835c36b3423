"""Builders for synthetic BATSRUS files."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np
import pytest


@dataclass
class Snapshot:
    """Logical content of one IDL snapshot."""

    x: np.ndarray
    w: np.ndarray
    variables: list[str]
    headline: str = "test run [R] [g/cm3]"
    iteration: int = 10
    time: float = 0.5
    gencoord: bool = False
    eqpar: list[float] = field(default_factory=list)

    @property
    def nx(self) -> tuple[int, ...]:
        return self.x.shape[:-1]

    @property
    def ndim(self) -> int:
        return self.x.shape[-1]

    @property
    def nw(self) -> int:
        return self.w.shape[-1]


def make_snapshot(
    nx: tuple[int, ...],
    nw: int,
    *,
    neqpar: int = 0,
    seed: int = 0,
    **kwargs,
) -> Snapshot:
    rng = np.random.default_rng(seed)
    ndim = len(nx)
    axes = np.meshgrid(*[np.linspace(-1.0, 1.0, n) for n in nx], indexing="ij")
    x = np.stack(axes, axis=-1)
    w = rng.uniform(-2.0, 2.0, size=(*nx, nw))
    coords = ["x", "y", "z"][:ndim]
    fields = [f"w{i}" for i in range(nw)]
    params = ["g", "rbody", "c", "clight"][:neqpar]
    eqpar = [1.5, 2.5, 3.0, 4.0][:neqpar]
    return Snapshot(x=x, w=w, variables=coords + fields + params, eqpar=eqpar, **kwargs)


def record(payload: bytes, order: str = "<") -> bytes:
    tag = struct.pack(order + "i", len(payload))
    return tag + payload + tag


def binary_snapshot(
    snap: Snapshot, kind: str = "real4", *, extended: bool = False, order: str = "<"
) -> bytes:
    strlen = 500 if extended else 79
    fcode = "f" if kind == "real4" else "d"
    dtype = np.dtype(order + ("f4" if kind == "real4" else "f8"))
    ndim = -snap.ndim if snap.gencoord else snap.ndim
    out = record(snap.headline.encode().ljust(strlen), order)
    out += record(
        struct.pack(
            order + "i" + fcode + "iii",
            snap.iteration,
            snap.time,
            ndim,
            len(snap.eqpar),
            snap.nw,
        ),
        order,
    )
    out += record(np.asarray(snap.nx, dtype=order + "i4").tobytes(), order)
    if snap.eqpar:
        out += record(np.asarray(snap.eqpar, dtype=dtype).tobytes(), order)
    out += record(" ".join(snap.variables).encode().ljust(strlen), order)
    out += record(np.asarray(snap.x, dtype=dtype).tobytes(order="F"), order)
    for iw in range(snap.nw):
        out += record(np.asarray(snap.w[..., iw], dtype=dtype).tobytes(order="F"), order)
    return out


def ascii_header(snap: Snapshot) -> str:
    ndim = -snap.ndim if snap.gencoord else snap.ndim
    lines = [
        snap.headline,
        f"{snap.iteration:8d} {snap.time:13.6E} {ndim:2d} {len(snap.eqpar):2d} {snap.nw:2d}",
        " ".join(f"{n:6d}" for n in snap.nx),
    ]
    if snap.eqpar:
        lines.append(" ".join(f"{v:13.6E}" for v in snap.eqpar))
    lines.append(" ".join(snap.variables))
    return "\n".join(lines) + "\n"


def ascii_snapshot(snap: Snapshot) -> bytes:
    """Fixed-width text snapshot: 18 characters per value, first extent fastest."""
    npoints = int(np.prod(snap.nx))
    rows = np.concatenate(
        [
            snap.x.reshape(npoints, snap.ndim, order="F"),
            snap.w.reshape(npoints, snap.nw, order="F"),
        ],
        axis=1,
    )
    body = "".join("".join(f"{v:18.10E}" for v in row) + "\n" for row in rows)
    return (ascii_header(snap) + body).encode()


def encode_snapshot(snap: Snapshot, kind: str, **kwargs) -> bytes:
    if kind == "ascii":
        return ascii_snapshot(snap)
    return binary_snapshot(snap, kind, **kwargs)


@pytest.fixture
def write_idl(tmp_path: Path):
    """Return a writer ``(name, snapshots, kind, **kwargs) -> Path``."""

    def _write(name: str, snapshots: list[Snapshot], kind: str = "real4", **kwargs) -> Path:
        path = tmp_path / name
        path.write_bytes(b"".join(encode_snapshot(s, kind, **kwargs) for s in snapshots))
        return path

    return _write


TECPLOT_HEADER = (
    'TITLE="BATSRUS: 3D Data, ..."\n'
    'VARIABLES="X [R]", "Y [R]", "Z [R]",\n'
    ' "Rho [g/cm^3]", "P [nPa]"\n'
    'ZONE T="3D   ", N={nnode}, E={ncell}, F=FEPOINT, ET={et}\n'
    'AUXDATA CODEVERSION="BATSRUS 9.20"\n'
    'AUXDATA ITER="  1000"\n'
    'AUXDATA NPROC="     4"\n'
    'AUXDATA TIMESIM="T=    12.50 s"\n'
)


@pytest.fixture
def tecplot_header() -> str:
    return TECPLOT_HEADER

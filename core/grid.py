#!/usr/bin/env python3
# core/grid.py
# Per-rank curvilinear metrics store and the 1-D x-slab decomposition.
from dataclasses import dataclass, replace

import h5py
import numpy as np

from core.errors import CheckpointIOError, ConfigurationError

METRIC_NAMES = (
    ("dxi_dx", "dxi_dy", "dxi_dz"),
    ("deta_dx", "deta_dy", "deta_dz"),
    ("dzeta_dx", "dzeta_dy", "dzeta_dz"),
)


def decompose_x(nx_glob, nprocs, rank):
    """Equal x-slabs: returns (cells on this rank, global offset of first interior cell)."""
    if nx_glob % nprocs != 0:
        raise ConfigurationError(f"NX={nx_glob} not divisible by {nprocs} ranks")
    nxp = nx_glob // nprocs
    return nxp, rank * nxp


@dataclass(frozen=True)
class Metrics:
    """dxi[d, c] = d(xi_d)/d(x_c); J = det(dx/dxi). Read-only after construction."""
    dxi: np.ndarray   # (3, 3, nx, ny, nz)
    J: np.ndarray     # (nx, ny, nz)
    x: np.ndarray
    y: np.ndarray
    z: np.ndarray

    def __post_init__(self):
        for arr in (self.dxi, self.J, self.x, self.y, self.z):
            arr.flags.writeable = False

    @property
    def shape(self):
        return self.J.shape


def _check_shape(name, arr, expected):
    if arr.shape != expected:
        raise ConfigurationError(f"metrics {name} has shape {arr.shape}, expected {expected}")


def load_metrics(path, rank, cfg):
    """Read this rank's slab (with ghosts) from a metrics file."""
    nxp, ng = cfg.nxp, cfg.ng
    lo = rank * nxp
    hi = (rank + 1) * nxp + 2*ng
    glob_shape = (cfg.nx + 2*ng, cfg.ny + 2*ng, cfg.nz + 2*ng)
    try:
        with h5py.File(path, "r") as f:
            dxi = np.empty((3, 3) + cfg.shape_local)
            for d in range(3):
                for c in range(3):
                    name = METRIC_NAMES[d][c]
                    _check_shape(name, f[name], glob_shape)
                    dxi[d, c] = f[name][lo:hi, :, :]
            fields = {}
            for name in ("J", "x", "y", "z"):
                _check_shape(name, f[name], glob_shape)
                fields[name] = np.ascontiguousarray(f[name][lo:hi, :, :], dtype=np.float64)
    except (OSError, KeyError) as exc:
        raise CheckpointIOError(f"cannot read metrics {path}: {exc}") from exc
    if np.any(fields["J"] <= 0.0):
        raise ConfigurationError(f"metrics {path}: non-positive Jacobian on rank {rank}")
    return Metrics(dxi, fields["J"], fields["x"], fields["y"], fields["z"])


def cartesian_metrics(cfg, rank, lengths=None):
    """Uniform box metrics for this rank; ghost cells extend the lattice."""
    Lx, Ly, Lz = lengths if lengths is not None else cfg.lengths
    dx, dy, dz = Lx / cfg.nx, Ly / cfg.ny, Lz / cfg.nz
    ng = cfg.ng
    shape = cfg.shape_local
    _, off = decompose_x(cfg.nx, cfg.nprocs, rank)
    i = np.arange(shape[0]) - ng + off
    j = np.arange(shape[1]) - ng
    k = np.arange(shape[2]) - ng
    x, y, z = np.meshgrid((i + 0.5)*dx, (j + 0.5)*dy, (k + 0.5)*dz, indexing="ij")
    dxi = np.zeros((3, 3) + shape)
    dxi[0, 0] = 1.0 / dx
    dxi[1, 1] = 1.0 / dy
    dxi[2, 2] = 1.0 / dz
    J = np.full(shape, dx*dy*dz)
    return Metrics(dxi, J, np.ascontiguousarray(x), np.ascontiguousarray(y), np.ascontiguousarray(z))


def write_metrics(path, cfg, lengths=None):
    """Write a global Cartesian metrics file in the layout load_metrics expects."""
    m = cartesian_metrics(replace(cfg, nprocs=1), 0, lengths)
    with h5py.File(path, "w") as f:
        for d in range(3):
            for c in range(3):
                f.create_dataset(METRIC_NAMES[d][c], data=m.dxi[d, c])
        for name in ("J", "x", "y", "z"):
            f.create_dataset(name, data=getattr(m, name))

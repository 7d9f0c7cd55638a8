#!/usr/bin/env python3
# core/checkpoint.py
# Restart files: one HDF5 file per checkpoint, rank-major datasets over the
# full local extents (ghosts included)
#   Q_h    (NPROCS, 6, nxp+2NG, ny+2NG, nz+2NG)
#   rhoi_h (NPROCS, nspecs, nxp+2NG, ny+2NG, nz+2NG)
# one chunk per rank. Multi-rank writes go through MPI-IO (h5py built
# against parallel HDF5) with collective transfers.
import os

import h5py
import numpy as np

from core.errors import CheckpointIOError, CheckpointLayoutError, ConfigurationError


def checkpoint_name(step):
    return f"chk{step:06d}.h5"


def write_checkpoint(path, Q, rhoi, comm, step, t, cfg):
    """Collective: every rank must call with its own slab."""
    size = comm.Get_size()
    rank = comm.Get_rank()
    q = np.ascontiguousarray(Q)
    r = np.ascontiguousarray(rhoi)

    kw = {}
    if size > 1:
        if not h5py.get_config().mpi:
            raise ConfigurationError(
                "multi-rank checkpoint needs h5py built with MPI support (driver='mpio')")
        kw = dict(driver="mpio", comm=comm)

    try:
        with h5py.File(path, "w", **kw) as f:
            dq = f.create_dataset("Q_h", shape=(size,) + q.shape, dtype="f8",
                                  chunks=(1,) + q.shape)
            dr = f.create_dataset("rhoi_h", shape=(size,) + r.shape, dtype="f8",
                                  chunks=(1,) + r.shape)
            f.attrs["step"] = int(step)
            f.attrs["time"] = float(t)
            f.attrs["ng"] = int(cfg.ng)
            f.attrs["species"] = ",".join(cfg.species)
            if size > 1:
                with dq.collective:
                    dq[rank] = q
                with dr.collective:
                    dr[rank] = r
            else:
                dq[0] = q
                dr[0] = r
    except OSError as exc:
        raise CheckpointIOError(f"cannot write checkpoint {path}: {exc}") from exc


def read_checkpoint(path, rank, cfg):
    """This rank's (Q, rhoi) slab with ghosts plus (step, time); layout must match cfg."""
    ns = cfg.nspecs
    cells = cfg.shape_local
    try:
        with h5py.File(path, "r") as f:
            dq = f["Q_h"]
            dr = f["rhoi_h"]
            if dq.shape != (cfg.nprocs, 6) + cells or dr.shape != (cfg.nprocs, ns) + cells:
                raise CheckpointLayoutError(
                    f"checkpoint {path}: Q_h {dq.shape}, rhoi_h {dr.shape} do not match "
                    f"{cfg.nprocs} ranks x {cells} cells x {ns} species")
            species = str(f.attrs.get("species", ""))
            if species and tuple(species.split(",")) != tuple(cfg.species):
                raise CheckpointLayoutError(
                    f"checkpoint {path}: species {species} != {','.join(cfg.species)}")
            q = dq[rank]
            r = dr[rank]
            step = int(f.attrs["step"])
            t = float(f.attrs["time"])
    except (OSError, KeyError) as exc:
        raise CheckpointIOError(f"cannot read checkpoint {path}: {exc}") from exc
    return q, r, step, t


def restore(state, path, rank, cfg):
    """Load a checkpoint into state.Q / state.rhoi; returns (step, time)."""
    q, r, step, t = read_checkpoint(path, rank, cfg)
    np.copyto(state.Q, q)
    np.copyto(state.rhoi, r)
    return step, t


def latest_checkpoint(run_dir):
    names = sorted(n for n in os.listdir(run_dir) if n.startswith("chk") and n.endswith(".h5"))
    return os.path.join(run_dir, names[-1]) if names else None

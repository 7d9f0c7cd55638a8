#!/usr/bin/env python3
# core/halo.py
# x-slab neighbours, blocking Sendrecv halo exchange, full ghost refresh.
from typing import NamedTuple, Optional

import numpy as np
from mpi4py import MPI

from core.convert import fill_species, mass_fractions
from core.errors import ConfigurationError


class Neighbours(NamedTuple):
    left: Optional[int]
    right: Optional[int]

    @classmethod
    def from_config(cls, cfg, rank):
        size = cfg.nprocs
        if cfg.periodic(0):
            return cls((rank - 1) % size, (rank + 1) % size)
        left = rank - 1 if rank - 1 >= 0 else None
        right = rank + 1 if rank + 1 < size else None
        return cls(left, right)


def check_rank_count(comm, cfg):
    size = comm.Get_size()
    if size != cfg.nprocs:
        raise ConfigurationError(
            f"launched with {size} ranks but NPROCS={cfg.nprocs}; "
            f"start with: mpirun -np {cfg.nprocs} ...")


def _peer(r):
    return MPI.PROC_NULL if r is None else r


def exchange_halos(arr, comm, nbrs, ng):
    """
    Exchange NG ghost layers along x using blocking Sendrecv.
    arr shape: (nvar, nx_loc + 2*NG, ny + 2*NG, nz + 2*NG)
    Shift pattern, so a self-neighbour (single periodic rank) and a missing
    neighbour (PROC_NULL) both work.
    """
    left, right = nbrs
    # phase 1: first interior slab -> left, right ghosts <- right neighbour
    sendL = np.ascontiguousarray(arr[:, ng:2*ng, :, :])
    recvR = np.empty_like(sendL)
    comm.Sendrecv(sendbuf=sendL, dest=_peer(left), sendtag=20,
                  recvbuf=recvR, source=_peer(right), recvtag=20)
    if right is not None:
        arr[:, -ng:, :, :] = recvR

    # phase 2: last interior slab -> right, left ghosts <- left neighbour
    sendR = np.ascontiguousarray(arr[:, -2*ng:-ng, :, :])
    recvL = np.empty_like(sendR)
    comm.Sendrecv(sendbuf=sendR, dest=_peer(right), sendtag=21,
                  recvbuf=recvL, source=_peer(left), recvtag=21)
    if left is not None:
        arr[:, 0:ng, :, :] = recvL


def fill_and_exchange(Q, rhoi, Yi, metrics, bcs, comm, nbrs, ng):
    """Ghost refresh for Q and rhoi, then species renormalisation and Y."""
    bcs.apply_yz(Q, rhoi, metrics, ng)
    bcs.apply_x(Q, rhoi, metrics, ng)
    exchange_halos(Q, comm, nbrs, ng)
    exchange_halos(rhoi, comm, nbrs, ng)
    comm.Barrier()
    fill_species(rhoi, Q)
    mass_fractions(Yi, rhoi)

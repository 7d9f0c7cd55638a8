# utils/diagnostics.py
import os
import numpy as np
from mpi4py import MPI


def _interior(ng):
    return (slice(ng, -ng),) * 3


def find_bad_cells(Q, U, rhoi, ng):
    """
    Interior cells with a non-finite value or non-positive rho, p, T.
    Returns (count, first bad local index or None).
    """
    s = _interior(ng)
    v = (slice(None),) + s
    bad = ~np.isfinite(Q[v]).all(axis=0)
    bad |= ~np.isfinite(U[v]).all(axis=0)
    bad |= ~np.isfinite(rhoi[v]).all(axis=0)
    with np.errstate(invalid="ignore"):
        bad |= ~(Q[0][s] > 0.0) | ~(Q[4][s] > 0.0) | ~(Q[5][s] > 0.0)
    n = int(bad.sum())
    if n == 0:
        return 0, None
    first = tuple(int(c) + ng for c in np.argwhere(bad)[0])
    return n, first


def global_totals(U, J, ng, comm):
    """Domain integrals of the conserved variables: sum over interior of J*U."""
    s = _interior(ng)
    local = np.array([np.sum(U[n][s] * J[s]) for n in range(U.shape[0])])
    out = np.empty_like(local)
    comm.Allreduce(local, out, op=MPI.SUM)
    return out


def global_extrema(Q, phi, ng, comm):
    s = _interior(ng)
    rho_min = comm.allreduce(float(Q[0][s].min()), op=MPI.MIN)
    T_max = comm.allreduce(float(Q[5][s].max()), op=MPI.MAX)
    phi_max = comm.allreduce(float(phi[s].max()), op=MPI.MAX)
    return rho_min, T_max, phi_max


def append_diagnostics(run_dir, rank, step, t, dt, totals, extrema):
    """Rank-0 append of one row to diagnostics.csv."""
    if rank != 0:
        return
    rho_min, T_max, phi_max = extrema
    fn = os.path.join(run_dir, "diagnostics.csv")
    new = not os.path.exists(fn)
    with open(fn, "a") as f:
        if new:
            f.write("step,time,dt,mass,mom_x,mom_y,mom_z,energy,rho_min,T_max,phi_max\n")
        f.write(f"{step},{t:.8e},{dt:.8e},"
                + ",".join(f"{v:.10e}" for v in totals)
                + f",{rho_min:.6e},{T_max:.6e},{phi_max:.6e}\n")

#!/usr/bin/env python3
# rns3d_mpi_weno.py - 3D reacting Navier-Stokes, multi-species ideal gas
# Curvilinear metrics, LF flux splitting + hybrid linear/WENO5-Z/minmod,
# mixture-averaged transport, SSP-RK3, operator-split chemistry (optional)
# MPI x-slab decomposition, blocking Sendrecv halo exchange, HDF5 restarts
#
# Usage:
#   python3 -m pip install -e .
#   mpirun -np 2 python3 solvers/rns3d_mpi_weno.py --config case.json5

import os, time
from mpi4py import MPI

from core.boundary import BoundaryPolicy
from core.checkpoint import checkpoint_name, restore, write_checkpoint
from core.chemistry import make_chemistry
from core.errors import (CheckpointIOError, ConfigurationError,
                         NumericalDivergenceError)
from core.grid import cartesian_metrics, load_metrics
from core.halo import Neighbours, check_rank_count
from core.initial import initialize
from core.integrator import RK3Integrator
from core.state import FlowState
from core.thermo import load_thermo
from utils.backend import get_backend, select_device
from utils.diagnostics import append_diagnostics, global_extrema, global_totals
from utils.io_utils import make_run_dir, write_run_config, write_snapshot
from utils.settings import SimConfig, load_settings


def build(cfg, comm):
    """Everything one rank needs, in dependency order."""
    rank = comm.Get_rank()
    check_rank_count(comm, cfg)
    thermo = load_thermo(cfg.species, cfg.mechanism)
    if cfg.metrics_path:
        metrics = load_metrics(cfg.metrics_path, rank, cfg)
    else:
        metrics = cartesian_metrics(cfg, rank)
    state = FlowState(cfg)
    bcs = BoundaryPolicy.from_config(cfg, rank, thermo)
    nbrs = Neighbours.from_config(cfg, rank)
    chem = make_chemistry(cfg)
    return RK3Integrator(cfg, metrics, state, thermo, bcs, nbrs, comm, chemistry=chem)


def write_outputs(integ, run_dir, step, t, dt):
    comm, rank = integ.comm, integ.rank
    st, m = integ.state, integ.metrics
    fname = write_snapshot(run_dir, step, rank, t, st, m, integ.cfg.species)
    if rank == 0:
        print(f"[io] wrote {fname}", flush=True)
    totals = global_totals(st.U, m.J, integ.ng, comm)
    ext = global_extrema(st.Q, st.phi, integ.ng, comm)
    append_diagnostics(run_dir, rank, step, t, dt, totals, ext)
    if rank == 0:
        print(f"[diag] step={step} mass={totals[0]:.10e} energy={totals[4]:.10e} "
              f"rho_min={ext[0]:.4e} T_max={ext[1]:.1f} phi_max={ext[2]:.3f}", flush=True)


def run(cfg, comm, settings=None):
    rank = comm.Get_rank()
    size = comm.Get_size()

    RUN_DIR = make_run_dir(base=cfg.results_dir, unique=cfg.results_unique) if rank == 0 else None
    RUN_DIR = comm.bcast(RUN_DIR, root=0)
    if rank == 0:
        print(f"[startup] run directory: {RUN_DIR}", flush=True)
        if settings is not None:
            write_run_config(RUN_DIR, settings)
        print(f"[startup] ranks={size} grid={cfg.nx}x{cfg.ny}x{cfg.nz} NG={cfg.ng} "
              f"species={','.join(cfg.species)} reaction={cfg.reaction} "
              f"viscous={cfg.viscous} debug={cfg.debug}", flush=True)
        if cfg.debug:
            from numba import config as nbconfig
            print(f"[startup] numba threads={nbconfig.NUMBA_NUM_THREADS}", flush=True)

    xp, _ = get_backend(cfg.backend)
    dev = select_device(xp, rank)
    if dev is not None and cfg.debug:
        print(f"[startup] rank {rank} -> device {dev}", flush=True)

    integ = build(cfg, comm)
    st = integ.state

    t = 0.0
    step = 0
    if cfg.restart:
        step, t = restore(st, cfg.restart, rank, cfg)
        if rank == 0:
            print(f"[startup] restart from {cfg.restart} step={step} t={t:.6e}", flush=True)
    else:
        initialize(st.Q, st.rhoi, integ.metrics, cfg, integ.thermo)
    integ.refresh()

    # --- DEBUG: JIT warm-up ---
    if cfg.debug:
        t0 = time.time()
        integ.flux_graph(0.0).run()
        comm.Barrier()
        if rank == 0:
            print(f"[jit] stage kernels compiled in {time.time() - t0:.2f}s", flush=True)

    while t < cfg.t_end:
        dt = integ.compute_dt()
        if t + dt > cfg.t_end:
            dt = cfg.t_end - t

        integ.advance(dt, step)

        t += dt
        step += 1

        if rank == 0 and (step % cfg.print_every == 0 or abs(t - cfg.t_end) < 1e-14*cfg.t_end):
            print(f"[step] t={t:.6e} dt={dt:.3e} step={step}", flush=True)

        do_out = step % cfg.out_every == 0 or t >= cfg.t_end
        do_ckpt = cfg.checkpoint_every > 0 and step % cfg.checkpoint_every == 0
        # never persist a diverged state
        if do_out or do_ckpt:
            integ.check_health(step)

        if do_out:
            write_outputs(integ, RUN_DIR, step, t, dt)

        if do_ckpt:
            path = os.path.join(RUN_DIR, checkpoint_name(step))
            write_checkpoint(path, st.Q, st.rhoi, comm, step, t, cfg)
            if rank == 0:
                print(f"[io] checkpoint {path}", flush=True)

    if rank == 0:
        print("Done.", flush=True)
    return integ, step, t


def main(argv=None):
    comm = MPI.COMM_WORLD
    rank = comm.Get_rank()
    try:
        settings = load_settings(argv)
        cfg = SimConfig.from_settings(settings)
        run(cfg, comm, settings)
    except (ConfigurationError, CheckpointIOError, NumericalDivergenceError, ValueError) as exc:
        print(f"[error] rank {rank}: {type(exc).__name__}: {exc}", flush=True)
        if comm.Get_size() > 1:
            comm.Abort(1)
        raise SystemExit(1)


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
# Restart check: 4 straight steps must match 2 steps + restart + 2 steps.
import argparse
import json
import os
import subprocess
import sys
import time

import h5py
import numpy as np

from core.checkpoint import checkpoint_name
from utils.io_utils import latest_run_dir


def checkpoint_at(run_dir, step):
    path = os.path.join(run_dir, checkpoint_name(step))
    return path if os.path.exists(path) else None


def run(cmd, dry_run):
    print(f"[restart-mpi] {' '.join(cmd)}", flush=True)
    if dry_run:
        return
    proc = subprocess.run(cmd, stdout=sys.stdout, stderr=sys.stderr)
    if proc.returncode != 0:
        raise SystemExit(proc.returncode)


def main():
    ap = argparse.ArgumentParser(description="Validate MPI checkpoint/restart: 4 straight steps == 2 + restart + 2.")
    ap.add_argument("--python", default="python")
    ap.add_argument("--mpiexec", default="mpiexec")
    ap.add_argument("--np", type=int, default=2)
    ap.add_argument("--dt", type=float, default=1e-8)
    ap.add_argument("--dry-run", action="store_true")
    args = ap.parse_args()

    cfg = dict(NX=8*args.np, NY=4, NZ=4, NPROCS=args.np, DT=args.dt, T_END=4*args.dt,
               CHECKPOINT_EVERY=2, OUT_EVERY=2, PRINT_EVERY=1, RESULTS_UNIQUE=True,
               INIT={"case": "hotspot", "rho": 1.0, "T": 300.0, "dT": 600.0,
                     "Y": {"O2": 0.233, "N2": 0.767}})
    os.makedirs("config", exist_ok=True)
    tmp = "config/.restart_mpi_run.json"
    with open(tmp, "w") as f:
        json.dump(cfg, f, indent=2)

    solver = [args.mpiexec, "-n", str(args.np), args.python, "solvers/rns3d_mpi_weno.py",
              "--config", tmp]
    run(solver, args.dry_run)
    if args.dry_run:
        return
    full_dir = latest_run_dir()
    if full_dir is None:
        raise SystemExit("[restart-mpi] no run directory under results/")
    chk2 = checkpoint_at(full_dir, 2)
    chk4 = checkpoint_at(full_dir, 4)
    if chk2 is None or chk4 is None:
        raise SystemExit("[restart-mpi] missing checkpoints at steps 2 and 4")

    # unique run dirs are keyed by wall-clock second
    time.sleep(1.1)
    run(solver + ["--restart", chk2], args.dry_run)
    resumed = checkpoint_at(latest_run_dir(), 4)
    if resumed is None:
        raise SystemExit("[restart-mpi] restarted run wrote no step-4 checkpoint")

    with h5py.File(chk4, "r") as a, h5py.File(resumed, "r") as b:
        for name in ("Q_h", "rhoi_h"):
            ref = a[name][...]
            diff = np.max(np.abs(ref - b[name][...]) / (np.abs(ref).max() + 1e-30))
            print(f"[restart-mpi] max |{name} straight - restarted| = {diff:.3e}", flush=True)
            # U is rebuilt from Q on restart, so agreement is to the T-inversion tolerance
            if diff > 1e-8:
                raise SystemExit("[restart-mpi] restarted run diverges from the straight run")

    os.remove(tmp)
    print("[restart-mpi] ok")


if __name__ == "__main__":
    main()

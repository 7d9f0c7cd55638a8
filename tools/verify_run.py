#!/usr/bin/env python3
# Sanity-check the newest rank-0 snapshot of a run and its mass history.
import argparse
import glob
import os

import numpy as np

from utils.io_utils import latest_run_dir

PRIMS = ("rho", "u", "v", "w", "p", "T")


def check_snapshot(path):
    """Returns a list of problems found in one snapshot file."""
    problems = []
    with np.load(path) as d:
        for name in PRIMS:
            if not np.isfinite(d[name]).all():
                problems.append(f"non-finite values in {name}")
        rho, p, T = d["rho"], d["p"], d["T"]
        if (rho <= 0).any() or (p <= 0).any() or (T <= 0).any():
            problems.append("non-positive rho/p/T")
        Y = np.stack([d[k] for k in d.files if k.startswith("Y_")])
        ysum = np.abs(Y.sum(axis=0, dtype=np.float64) - 1.0).max()
        print(f"[verify] t = {float(d['time']):.6e}")
        print(f"[verify] rho in [{rho.min():.4e}, {rho.max():.4e}], T in [{T.min():.1f}, {T.max():.1f}]")
        print(f"[verify] max |sum Y - 1| = {ysum:.3e} (float32 snapshot)")
        if ysum > 1e-5:
            problems.append("mass fractions do not sum to one")
    return problems


def mass_drift(run_dir):
    diag = os.path.join(run_dir, "diagnostics.csv")
    if not os.path.exists(diag):
        return None
    rows = np.atleast_1d(np.genfromtxt(diag, delimiter=",", names=True))
    m0, m1 = rows["mass"][0], rows["mass"][-1]
    return (m1 - m0) / m0


def main():
    ap = argparse.ArgumentParser(description="Sanity-check the latest snapshot and diagnostics of a run.")
    ap.add_argument("--run-dir", default=None)
    args = ap.parse_args()
    run_dir = args.run_dir or latest_run_dir()
    if run_dir is None:
        raise SystemExit("No results/ runs found.")

    files = sorted(glob.glob(os.path.join(run_dir, "plt*_rank0000.npz")))
    if not files:
        raise SystemExit(f"No snapshot files in {run_dir}")
    print(f"[verify] using {files[-1]}")

    problems = check_snapshot(files[-1])
    drift = mass_drift(run_dir)
    if drift is not None:
        print(f"[verify] mass drift first->last row = {drift:.3e}")
    for msg in problems:
        print(f"[verify] {msg}")
    if problems:
        raise SystemExit(1)
    print("[verify] ok")


if __name__ == "__main__":
    main()

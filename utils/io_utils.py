# utils/io_utils.py
import json
import os
from datetime import datetime

import numpy as np


def make_run_dir(base="results", unique=False):
    """
    Create a run directory:
      unique=False -> results/YYYY-MM-DD/
      unique=True  -> results/YYYY-MM-DD/HH-MM-SS/
    """
    now = datetime.now()
    date = now.strftime("%Y-%m-%d")
    if unique:
        path = os.path.join(base, date, now.strftime("%H-%M-%S"))
    else:
        path = os.path.join(base, date)
    os.makedirs(path, exist_ok=True)
    return path


def write_run_config(run_dir, settings):
    path = os.path.join(run_dir, "run_config.json")
    if os.path.exists(path):
        return
    with open(path, "w") as f:
        json.dump(settings, f, indent=2, sort_keys=True, default=str)


def snapshot_name(step, rank):
    return f"plt{step:06d}_rank{rank:04d}.npz"


def write_snapshot(run_dir, step, rank, t, state, metrics, species):
    """Per-rank interior fields as float32 for visualization."""
    ng = state.cfg.ng
    s = (slice(ng, -ng),) * 3
    Q = state.Q
    f32 = lambda a: np.ascontiguousarray(a[s], dtype=np.float32)
    fields = dict(
        rho=f32(Q[0]), u=f32(Q[1]), v=f32(Q[2]), w=f32(Q[3]), p=f32(Q[4]), T=f32(Q[5]),
        phi=f32(state.phi), mu=f32(state.mu), lam=f32(state.lam),
        x=f32(metrics.x), y=f32(metrics.y), z=f32(metrics.z),
    )
    for n, name in enumerate(species):
        fields[f"Y_{name}"] = f32(state.Yi[n])
    fname = os.path.join(run_dir, snapshot_name(step, rank))
    np.savez(fname, time=np.float64(t), **fields)
    return fname


def _newest_subdir(path):
    subs = sorted(e.path for e in os.scandir(path) if e.is_dir())
    return subs[-1] if subs else None


def latest_run_dir(base="results"):
    """Newest results/YYYY-MM-DD[/HH-MM-SS] directory, or None if there is none."""
    if not os.path.isdir(base):
        return None
    day = _newest_subdir(base)
    if day is None:
        return None
    return _newest_subdir(day) or day

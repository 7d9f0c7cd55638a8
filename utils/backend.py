#!/usr/bin/env python3
# utils/backend.py
# Array module for batched host/device work (surrogate inference).
import numpy as np

BACKENDS = {"np": "numpy", "numpy": "numpy", "cp": "cupy", "cupy": "cupy"}


def get_backend(name: str):
    """(array module, canonical name) for 'numpy' or 'cupy'."""
    key = BACKENDS.get("numpy" if name is None else str(name).lower())
    if key is None:
        raise ValueError(f"Unknown backend: {name}")
    if key == "numpy":
        return np, key
    try:
        import cupy as cp
    except Exception as exc:
        raise RuntimeError(f"cupy backend requested but unavailable: {exc}") from exc
    return cp, key


def select_device(xp, rank):
    """One device per rank: round-robin over the visible devices."""
    if xp is np:
        return None
    ndev = xp.cuda.runtime.getDeviceCount()
    dev = rank % ndev
    xp.cuda.Device(dev).use()
    return dev


def to_device(xp, arr, dtype=np.float32):
    return xp.asarray(np.asarray(arr, dtype=dtype))


def to_numpy(arr, dtype=np.float64):
    """Host copy in `dtype`; device arrays go through .get()."""
    if not isinstance(arr, np.ndarray) and hasattr(arr, "get"):
        arr = arr.get()
    return np.asarray(arr, dtype=dtype)

#!/usr/bin/env python3
# Write a Cartesian metrics file (global, ghosts included) for a config.
import argparse

from core.grid import write_metrics
from utils.settings import SimConfig, load_settings


def main():
    ap = argparse.ArgumentParser(description="Generate a uniform Cartesian metrics HDF5 file.")
    ap.add_argument("out", help="output .h5 path")
    ap.add_argument("--config", default=None)
    ap.add_argument("--nx", type=int); ap.add_argument("--ny", type=int); ap.add_argument("--nz", type=int)
    args = ap.parse_args()

    argv = []
    if args.config: argv += ["--config", args.config]
    if args.nx is not None: argv += ["--nx", str(args.nx)]
    if args.ny is not None: argv += ["--ny", str(args.ny)]
    if args.nz is not None: argv += ["--nz", str(args.nz)]
    cfg = SimConfig.from_settings(load_settings(argv))
    write_metrics(args.out, cfg)
    print(f"[metrics] wrote {args.out} grid={cfg.nx}x{cfg.ny}x{cfg.nz} NG={cfg.ng} L={cfg.lengths}")


if __name__ == "__main__":
    main()

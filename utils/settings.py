# utils/settings.py
import argparse
import os
from dataclasses import dataclass
from types import MappingProxyType

import json5

FACES = ("x-", "x+", "y-", "y+", "z-", "z+")
BC_KINDS = ("periodic", "outflow", "reflective", "inflow")
REACTION_MODES = ("none", "surrogate", "cantera")
INIT_CASES = ("uniform", "hotspot", "shock_tube", "density_wave")


def _load_json5(path: str) -> dict:
    with open(path, "r") as f:
        return json5.load(f)


def default_settings():
    # air at rest in a periodic box
    return dict(
        # grid & decomposition
        NX=64, NY=32, NZ=32, NG=3, NPROCS=1,
        METRICS_PATH=None,             # None -> uniform Cartesian box of size L
        L=[1.0e-2, 5.0e-3, 5.0e-3],
        # time
        T_END=1.0e-5, DT=None, CFL=0.3,
        PRINT_EVERY=10, OUT_EVERY=100, CHECKPOINT_EVERY=0, CHECK_NAN_EVERY=10,
        # physics
        SPECIES=["O", "O2", "N", "NO", "N2"],
        MECHANISM=None,
        VISCOUS=True,
        # hybrid linear / WENO5-Z / minmod switch on the shock sensor
        PHI_LINEAR=0.01, PHI_WENO=0.2, WENO_EPS=1e-40,
        # boundaries, keyed by face
        BC={"x-": "periodic", "x+": "periodic",
            "y-": "periodic", "y+": "periodic",
            "z-": "periodic", "z+": "periodic"},
        INFLOW=None,
        # initial state
        INIT={"case": "uniform", "rho": 1.0, "u": [0.0, 0.0, 0.0], "T": 300.0,
              "Y": {"O2": 0.233, "N2": 0.767}},
        # reaction
        REACTION="none",
        SURROGATE_WEIGHTS=None, SURROGATE_NORM=None, SURROGATE_ACTIVATION="gelu",
        CANTERA_MECH="air.yaml", CANTERA_RTOL=1e-9, CANTERA_ATOL=1e-15,
        BACKEND="numpy",
        # files
        RESTART=None, RESULTS_DIR="results", RESULTS_UNIQUE=False,
        DEBUG=False,
    )


def validate(s):
    if s["NG"] < 3:
        raise ValueError("NG must be >= 3 for the 5-point WENO stencils.")
    if s["NPROCS"] < 1:
        raise ValueError("NPROCS must be >= 1.")
    if s["NX"] % s["NPROCS"] != 0:
        raise ValueError("NX must be divisible by NPROCS (equal x-slabs).")
    if s["NX"] // s["NPROCS"] < s["NG"]:
        raise ValueError("each x-slab needs at least NG interior cells.")
    if min(s["NY"], s["NZ"]) < s["NG"]:
        raise ValueError("NY, NZ must be >= NG.")
    if s["DT"] is None and not (0.0 < s["CFL"] <= 1.0):
        raise ValueError("CFL should be in (0, 1].")
    if s["DT"] is not None and s["DT"] <= 0.0:
        raise ValueError("DT must be positive.")
    if s["T_END"] <= 0.0:
        raise ValueError("T_END must be positive.")
    if not (0.0 <= s["PHI_LINEAR"] <= s["PHI_WENO"]):
        raise ValueError("need 0 <= PHI_LINEAR <= PHI_WENO.")
    if len(s["SPECIES"]) < 1:
        raise ValueError("SPECIES must name at least one species.")
    for face in FACES:
        kind = s["BC"].get(face)
        if kind not in BC_KINDS:
            raise ValueError(f"BC[{face!r}] must be one of {BC_KINDS}, got {kind!r}")
    for axis in "xyz":
        lo, hi = s["BC"][axis + "-"], s["BC"][axis + "+"]
        if (lo == "periodic") != (hi == "periodic"):
            raise ValueError(f"periodic BC on {axis} must be set on both faces.")
    if "inflow" in s["BC"].values() and not s["INFLOW"]:
        raise ValueError("inflow BC requires an INFLOW state.")
    if s["REACTION"] not in REACTION_MODES:
        raise ValueError(f"REACTION must be one of {REACTION_MODES}")
    if s["REACTION"] == "surrogate" and not (s["SURROGATE_WEIGHTS"] and s["SURROGATE_NORM"]):
        raise ValueError("surrogate reaction needs SURROGATE_WEIGHTS and SURROGATE_NORM.")
    if s["INIT"].get("case", "uniform") not in INIT_CASES:
        raise ValueError(f"INIT.case must be one of {INIT_CASES}")
    if len(s["L"]) != 3:
        raise ValueError("L must be [Lx, Ly, Lz].")


def load_settings(argv=None):
    ap = argparse.ArgumentParser(description="3D reacting Navier-Stokes (WENO + SSPRK3 + MPI)")
    ap.add_argument("--config", type=str, help="path to JSON/JSON5 config")
    ap.add_argument("--debug", action="store_true", help="verbose logging + JIT warm-up")
    # quick overrides
    ap.add_argument("--nx", type=int); ap.add_argument("--ny", type=int); ap.add_argument("--nz", type=int)
    ap.add_argument("--nprocs", type=int)
    ap.add_argument("--t-end", type=float); ap.add_argument("--dt", type=float)
    ap.add_argument("--out-every", type=int); ap.add_argument("--print-every", type=int)
    ap.add_argument("--restart", type=str, help="checkpoint file to restart from")
    args = ap.parse_args(argv)

    cfg = {}
    if args.config:
        if not os.path.exists(args.config):
            raise ValueError(f"config file not found: {args.config}")
        cfg = _load_json5(args.config)

    s = {**default_settings(), **cfg}
    if "BC" in cfg:
        s["BC"] = {**default_settings()["BC"], **cfg["BC"]}
    if args.debug: s["DEBUG"] = True
    if args.nx is not None: s["NX"] = args.nx
    if args.ny is not None: s["NY"] = args.ny
    if args.nz is not None: s["NZ"] = args.nz
    if args.nprocs is not None: s["NPROCS"] = args.nprocs
    if args.t_end is not None: s["T_END"] = args.t_end
    if args.dt is not None: s["DT"] = args.dt
    if args.out_every is not None: s["OUT_EVERY"] = args.out_every
    if args.print_every is not None: s["PRINT_EVERY"] = args.print_every
    if args.restart is not None: s["RESTART"] = args.restart

    validate(s)
    return s


def _freeze(v):
    if isinstance(v, dict):
        return MappingProxyType({k: _freeze(x) for k, x in v.items()})
    if isinstance(v, list):
        return tuple(_freeze(x) for x in v)
    return v


@dataclass(frozen=True)
class SimConfig:
    """Immutable run configuration handed to every component."""
    nx: int
    ny: int
    nz: int
    ng: int
    nprocs: int
    lengths: tuple
    t_end: float
    dt: float
    cfl: float
    print_every: int
    out_every: int
    checkpoint_every: int
    check_nan_every: int
    species: tuple
    mechanism: str
    viscous: bool
    phi_linear: float
    phi_weno: float
    weno_eps: float
    bc: MappingProxyType
    inflow: MappingProxyType
    init: MappingProxyType
    reaction: str
    surrogate_weights: str
    surrogate_norm: str
    surrogate_activation: str
    cantera_mech: str
    cantera_rtol: float
    cantera_atol: float
    backend: str
    metrics_path: str
    restart: str
    results_dir: str
    results_unique: bool
    debug: bool

    @classmethod
    def from_settings(cls, s):
        validate(s)
        return cls(
            nx=int(s["NX"]), ny=int(s["NY"]), nz=int(s["NZ"]), ng=int(s["NG"]),
            nprocs=int(s["NPROCS"]), lengths=tuple(float(v) for v in s["L"]),
            t_end=float(s["T_END"]), dt=None if s["DT"] is None else float(s["DT"]),
            cfl=float(s["CFL"]),
            print_every=int(s["PRINT_EVERY"]), out_every=int(s["OUT_EVERY"]),
            checkpoint_every=int(s["CHECKPOINT_EVERY"]),
            check_nan_every=int(s["CHECK_NAN_EVERY"]),
            species=tuple(s["SPECIES"]), mechanism=s["MECHANISM"],
            viscous=bool(s["VISCOUS"]),
            phi_linear=float(s["PHI_LINEAR"]), phi_weno=float(s["PHI_WENO"]),
            weno_eps=float(s["WENO_EPS"]),
            bc=_freeze(s["BC"]), inflow=_freeze(s["INFLOW"]), init=_freeze(s["INIT"]),
            reaction=s["REACTION"],
            surrogate_weights=s["SURROGATE_WEIGHTS"], surrogate_norm=s["SURROGATE_NORM"],
            surrogate_activation=s["SURROGATE_ACTIVATION"],
            cantera_mech=s["CANTERA_MECH"], cantera_rtol=float(s["CANTERA_RTOL"]),
            cantera_atol=float(s["CANTERA_ATOL"]),
            backend=s["BACKEND"], metrics_path=s["METRICS_PATH"], restart=s["RESTART"],
            results_dir=s["RESULTS_DIR"], results_unique=bool(s["RESULTS_UNIQUE"]),
            debug=bool(s["DEBUG"]),
        )

    @property
    def nxp(self):
        return self.nx // self.nprocs

    @property
    def nspecs(self):
        return len(self.species)

    @property
    def shape_local(self):
        return (self.nxp + 2*self.ng, self.ny + 2*self.ng, self.nz + 2*self.ng)

    @property
    def interior(self):
        ng = self.ng
        return (slice(ng, ng + self.nxp), slice(ng, ng + self.ny), slice(ng, ng + self.nz))

    def periodic(self, axis):
        return self.bc["xyz"[axis] + "-"] == "periodic"


def make_config(**overrides):
    """Defaults + overrides (settings-key names) -> SimConfig, for scripts and tests."""
    s = default_settings()
    for k, v in overrides.items():
        if k == "BC":
            s["BC"] = {**s["BC"], **v}
        else:
            s[k] = v
    return SimConfig.from_settings(s)

#!/usr/bin/env python3
# core/initial.py
# Analytic initial states on every cell (ghosts included).
import numpy as np

from core.errors import ConfigurationError
from core.thermo import gas_constant


def composition(Ydict, thermo):
    Y = np.zeros(thermo.nspecs)
    for name, val in dict(Ydict).items():
        if name not in thermo.species:
            raise ConfigurationError(f"INIT.Y names unknown species {name!r}")
        Y[thermo.index(name)] = float(val)
    if Y.sum() <= 0.0:
        raise ConfigurationError("INIT.Y must have a positive sum")
    return Y / Y.sum()


def _set(Q, rhoi, rho, u, T, Y, R):
    Q[0] = rho
    Q[1] = u[0]
    Q[2] = u[1]
    Q[3] = u[2]
    Q[5] = T
    Q[4] = rho * R * T
    rhoi[...] = Y[:, None, None, None] * Q[0][None]


def initialize(Q, rhoi, metrics, cfg, thermo):
    init = dict(cfg.init)
    case = init.get("case", "uniform")
    Y = composition(init.get("Y", {"O2": 0.233, "N2": 0.767}), thermo)
    R = gas_constant(Y, thermo.W)
    rho0 = float(init.get("rho", 1.0))
    T0 = float(init.get("T", 300.0))
    u0 = [float(v) for v in init.get("u", (0.0, 0.0, 0.0))]
    Lx, Ly, Lz = cfg.lengths
    x, y, z = metrics.x, metrics.y, metrics.z
    ones = np.ones(metrics.shape)

    if case == "uniform":
        _set(Q, rhoi, rho0*ones, u0, T0*ones, Y, R)

    elif case == "hotspot":
        # Gaussian temperature bump at constant pressure
        c = [float(v) for v in init.get("center", (0.5*Lx, 0.5*Ly, 0.5*Lz))]
        w = float(init.get("width", 0.1*Lx))
        dT = float(init.get("dT", 1500.0))
        r2 = (x - c[0])**2 + (y - c[1])**2 + (z - c[2])**2
        T = T0 + dT*np.exp(-0.5*r2/(w*w))
        p0 = rho0*R*T0
        _set(Q, rhoi, p0/(R*T), u0, T, Y, R)

    elif case == "shock_tube":
        x0 = float(init.get("x0", 0.5*Lx))
        left = dict(init.get("left", {"rho": 8.0*rho0, "T": T0}))
        right = dict(init.get("right", {"rho": rho0, "T": T0}))
        L = x < x0
        rho = np.where(L, float(left["rho"]), float(right["rho"]))
        T = np.where(L, float(left["T"]), float(right["T"]))
        _set(Q, rhoi, rho, u0, T, Y, R)

    elif case == "density_wave":
        # smooth density sine advected by a uniform flow at uniform pressure
        amp = float(init.get("amp", 0.1))
        rho = rho0*(1.0 + amp*np.sin(2.0*np.pi*x/Lx))
        p0 = rho0*R*T0
        _set(Q, rhoi, rho, u0, p0/(R*rho), Y, R)

    else:
        raise ConfigurationError(f"unknown initial case {case!r}")

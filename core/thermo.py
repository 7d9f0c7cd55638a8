#!/usr/bin/env python3
# core/thermo.py
# Ideal-gas mixture thermodynamics: NASA-7 polynomials, mixture energy and
# the Newton inversion e -> T used by the conservative->primitive transform.
from typing import NamedTuple

import json5
import numpy as np
import numba as nb

from core.errors import ConfigurationError

RU = 8.314462618          # J/(mol K)
P_ATM = 101325.0
T_MIN = 50.0
T_MAX = 6000.0
SMALL = 1e-30

# 5-species air, GRI-Mech 3.0 thermo, GRI transport LJ parameters.
# nasa rows: [low (T < tmid), high]; W in kg/mol, sigma in Angstrom, eps in K.
AIR5 = {
    "species": ["O", "O2", "N", "NO", "N2"],
    "W": [15.9994e-3, 31.9988e-3, 14.0067e-3, 30.0061e-3, 28.0134e-3],
    "tmid": [1000.0, 1000.0, 1000.0, 1000.0, 1000.0],
    "sigma": [2.750, 3.458, 3.298, 3.621, 3.621],
    "eps": [80.0, 107.4, 71.4, 97.53, 97.53],
    "nasa": [
        [[3.1682671, -3.27931884e-3, 6.64306396e-6, -6.12806624e-9, 2.11265971e-12, 29122.2592, 2.05193346],
         [2.56942078, -8.59741137e-5, 4.19484589e-8, -1.00177799e-11, 1.22833691e-15, 29217.5791, 4.78433864]],
        [[3.78245636, -2.99673416e-3, 9.84730201e-6, -9.68129509e-9, 3.24372837e-12, -1063.94356, 3.65767573],
         [3.28253784, 1.48308754e-3, -7.57966669e-7, 2.09470555e-10, -2.16717794e-14, -1088.45772, 5.45323129]],
        [[2.5, 0.0, 0.0, 0.0, 0.0, 56104.637, 4.1939087],
         [2.4159429, 1.7489065e-4, -1.1902369e-7, 3.0226245e-11, -2.0360982e-15, 56133.773, 4.6496096]],
        [[4.2184763, -4.638976e-3, 1.1041022e-5, -9.3361354e-9, 2.803577e-12, 9844.623, 2.2808464],
         [3.2606056, 1.1911043e-3, -4.2917048e-7, 6.9457669e-11, -4.0336099e-15, 9920.9746, 6.3693027]],
        [[3.298677, 1.4082404e-3, -3.963222e-6, 5.641515e-9, -2.444854e-12, -1020.8999, 3.950372],
         [2.92664, 1.4879768e-3, -5.68476e-7, 1.0097038e-10, -6.753351e-15, -922.7977, 5.980528]],
    ],
}


class Thermo(NamedTuple):
    species: tuple
    W: np.ndarray       # (ns,)
    tmid: np.ndarray    # (ns,)
    nasa: np.ndarray    # (ns, 2, 7)
    sigma: np.ndarray   # (ns,)
    eps: np.ndarray     # (ns,)

    @property
    def nspecs(self):
        return len(self.species)

    def index(self, name):
        return self.species.index(name)


def load_thermo(species, path=None):
    """Build the species table for `species` (in that order).

    Data comes from the built-in air set or from a JSON/JSON5 mechanism file
    with the same keys as AIR5.
    """
    data = AIR5
    if path:
        with open(path, "r") as f:
            data = json5.load(f)
    known = list(data["species"])
    idx = []
    for name in species:
        if name not in known:
            raise ConfigurationError(f"species {name!r} not in thermo data ({known})")
        idx.append(known.index(name))

    def pick(key):
        return np.ascontiguousarray(np.asarray(data[key], dtype=np.float64)[idx])

    th = Thermo(tuple(species), pick("W"), pick("tmid"), pick("nasa"),
                pick("sigma"), pick("eps"))
    for arr in th[1:]:
        arr.flags.writeable = False
    return th


# ------------------------
# pointwise kernels (Numba)
# ------------------------
@nb.njit
def cp_k(T, k, nasa, tmid, W):
    r = 0 if T < tmid[k] else 1
    a = nasa[k, r]
    return RU / W[k] * (a[0] + T*(a[1] + T*(a[2] + T*(a[3] + T*a[4]))))


@nb.njit
def h_k(T, k, nasa, tmid, W):
    r = 0 if T < tmid[k] else 1
    a = nasa[k, r]
    return RU / W[k] * (T*(a[0] + T*(a[1]/2.0 + T*(a[2]/3.0 + T*(a[3]/4.0 + T*a[4]/5.0)))) + a[5])


@nb.njit
def gas_constant(Y, W):
    s = 0.0
    for k in range(Y.shape[0]):
        s += Y[k] / W[k]
    return RU * s


@nb.njit
def internal_energy(T, Y, nasa, tmid, W):
    """Mixture internal energy per unit mass and cv at T."""
    e = 0.0
    cv = 0.0
    for k in range(Y.shape[0]):
        Rk = RU / W[k]
        e += Y[k] * (h_k(T, k, nasa, tmid, W) - Rk*T)
        cv += Y[k] * (cp_k(T, k, nasa, tmid, W) - Rk)
    return e, cv


@nb.njit
def temperature_from_energy(e, Y, T0, nasa, tmid, W):
    """Newton solve of e(T) = e seeded at T0.

    Iterates are kept inside [T_MIN, T_MAX] while searching, but the result
    is NaN if Newton does not converge or converges outside that range, so
    inadmissible energies reach the health check instead of being clamped.
    """
    T = T0
    if not (T > T_MIN):
        T = T_MIN
    if T > T_MAX:
        T = T_MAX
    for _ in range(50):
        ei, cv = internal_energy(T, Y, nasa, tmid, W)
        dT = (e - ei) / cv
        if abs(dT) < 1e-10 * T:
            Tn = T + dT
            if Tn >= T_MIN and Tn <= T_MAX:
                return Tn
            return np.nan
        T += dT
        if T < T_MIN:
            T = T_MIN
        if T > T_MAX:
            T = T_MAX
    return np.nan


@nb.njit
def sound_speed(T, Y, nasa, tmid, W):
    R = gas_constant(Y, W)
    cp = 0.0
    for k in range(Y.shape[0]):
        cp += Y[k] * cp_k(T, k, nasa, tmid, W)
    gamma = cp / (cp - R)
    return np.sqrt(gamma * R * T)

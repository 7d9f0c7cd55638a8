#!/usr/bin/env python3
# core/convert.py
# Primitive <-> conservative transforms and species bookkeeping (Numba).
import numpy as np
import numba as nb

from core.thermo import internal_energy, gas_constant, temperature_from_energy


@nb.njit(parallel=True)
def prim_to_cons(Q, Yi, U, nasa, tmid, W):
    """U = (rho, rho u, rho v, rho w, rho E) from Q and Yi, every cell."""
    nx, ny, nz = Q.shape[1], Q.shape[2], Q.shape[3]
    for i in nb.prange(nx):
        for j in range(ny):
            for k in range(nz):
                rho = Q[0, i, j, k]
                u = Q[1, i, j, k]; v = Q[2, i, j, k]; w = Q[3, i, j, k]
                e, _ = internal_energy(Q[5, i, j, k], Yi[:, i, j, k], nasa, tmid, W)
                U[0, i, j, k] = rho
                U[1, i, j, k] = rho*u
                U[2, i, j, k] = rho*v
                U[3, i, j, k] = rho*w
                U[4, i, j, k] = rho*(e + 0.5*(u*u + v*v + w*w))


@nb.njit(parallel=True)
def cons_to_prim(U, rhoi, Q, ng, nasa, tmid, W):
    """Interior cells only; the previous Q temperature seeds the Newton solve."""
    nx, ny, nz = Q.shape[1], Q.shape[2], Q.shape[3]
    ns = rhoi.shape[0]
    for i in nb.prange(ng, nx - ng):
        Y = np.empty(ns)
        for j in range(ng, ny - ng):
            for k in range(ng, nz - ng):
                rho = U[0, i, j, k]
                s = 0.0
                for n in range(ns):
                    r = rhoi[n, i, j, k]
                    if r < 0.0:
                        r = 0.0
                    Y[n] = r
                    s += r
                for n in range(ns):
                    Y[n] /= s
                u = U[1, i, j, k] / rho
                v = U[2, i, j, k] / rho
                w = U[3, i, j, k] / rho
                e = U[4, i, j, k] / rho - 0.5*(u*u + v*v + w*w)
                T = temperature_from_energy(e, Y, Q[5, i, j, k], nasa, tmid, W)
                Q[0, i, j, k] = rho
                Q[1, i, j, k] = u
                Q[2, i, j, k] = v
                Q[3, i, j, k] = w
                Q[4, i, j, k] = rho * gas_constant(Y, W) * T
                Q[5, i, j, k] = T


@nb.njit(parallel=True)
def fill_species(rhoi, Q):
    """Clip negative partial densities and rescale so sum(rhoi) == rho."""
    ns, nx, ny, nz = rhoi.shape
    for i in nb.prange(nx):
        for j in range(ny):
            for k in range(nz):
                s = 0.0
                for n in range(ns):
                    if rhoi[n, i, j, k] < 0.0:
                        rhoi[n, i, j, k] = 0.0
                    s += rhoi[n, i, j, k]
                if s > 0.0:
                    f = Q[0, i, j, k] / s
                    for n in range(ns):
                        rhoi[n, i, j, k] *= f


@nb.njit(parallel=True)
def mass_fractions(Yi, rhoi):
    ns, nx, ny, nz = rhoi.shape
    for i in nb.prange(nx):
        for j in range(ny):
            for k in range(nz):
                s = 0.0
                for n in range(ns):
                    s += rhoi[n, i, j, k]
                for n in range(ns):
                    Yi[n, i, j, k] = rhoi[n, i, j, k] / s


def prim_to_cons_host(Q, Yi, thermo):
    """Allocating wrapper used by initialisation and tests."""
    U = np.zeros((5,) + Q.shape[1:])
    prim_to_cons(Q, Yi, U, thermo.nasa, thermo.tmid, thermo.W)
    return U

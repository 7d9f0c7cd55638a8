#!/usr/bin/env python3
# core/split.py
# Local Lax-Friedrichs flux-vector splitting along one logical direction.
import numpy as np
import numba as nb

from core.thermo import internal_energy


@nb.njit(parallel=True)
def split_fluxes(Q, rhoi, Yi, cs, dxi, J, axis, Fp, Fm, Fp_i, Fm_i, nasa, tmid, W):
    """
    Contravariant flux F = J grad(xi_axis) . F_phys, split per cell as
        F+- = 1/2 (F -+ alpha U),  alpha = |Un| + c |k|,  k = J grad(xi_axis).
    Species use the same alpha so sum_k F+-_k equals the mass flux.
    Every cell including ghosts; the result feeds the 5-point stencils.
    """
    nx, ny, nz = Q.shape[1], Q.shape[2], Q.shape[3]
    ns = rhoi.shape[0]
    for i in nb.prange(nx):
        for j in range(ny):
            for k in range(nz):
                jac = J[i, j, k]
                kx = jac * dxi[axis, 0, i, j, k]
                ky = jac * dxi[axis, 1, i, j, k]
                kz = jac * dxi[axis, 2, i, j, k]
                kn = np.sqrt(kx*kx + ky*ky + kz*kz)

                rho = Q[0, i, j, k]
                u = Q[1, i, j, k]; v = Q[2, i, j, k]; w = Q[3, i, j, k]
                p = Q[4, i, j, k]
                e, _ = internal_energy(Q[5, i, j, k], Yi[:, i, j, k], nasa, tmid, W)
                rE = rho*(e + 0.5*(u*u + v*v + w*w))

                Un = u*kx + v*ky + w*kz
                a = abs(Un) + cs[i, j, k]*kn

                f0 = rho*Un
                f1 = rho*u*Un + p*kx
                f2 = rho*v*Un + p*ky
                f3 = rho*w*Un + p*kz
                f4 = (rE + p)*Un

                Fp[0, i, j, k] = 0.5*(f0 + a*rho)
                Fp[1, i, j, k] = 0.5*(f1 + a*rho*u)
                Fp[2, i, j, k] = 0.5*(f2 + a*rho*v)
                Fp[3, i, j, k] = 0.5*(f3 + a*rho*w)
                Fp[4, i, j, k] = 0.5*(f4 + a*rE)
                Fm[0, i, j, k] = 0.5*(f0 - a*rho)
                Fm[1, i, j, k] = 0.5*(f1 - a*rho*u)
                Fm[2, i, j, k] = 0.5*(f2 - a*rho*v)
                Fm[3, i, j, k] = 0.5*(f3 - a*rho*w)
                Fm[4, i, j, k] = 0.5*(f4 - a*rE)

                for n in range(ns):
                    r = rhoi[n, i, j, k]
                    Fp_i[n, i, j, k] = 0.5*r*(Un + a)
                    Fm_i[n, i, j, k] = 0.5*r*(Un - a)


@nb.njit(parallel=True)
def spectral_radius(Q, cs, dxi, ng):
    """max over interior cells of sum_d (|u.grad xi_d| + c |grad xi_d|)."""
    nx, ny, nz = Q.shape[1], Q.shape[2], Q.shape[3]
    out = np.zeros(nx)
    for i in nb.prange(ng, nx - ng):
        m = 0.0
        for j in range(ng, ny - ng):
            for k in range(ng, nz - ng):
                s = 0.0
                for d in range(3):
                    gx = dxi[d, 0, i, j, k]; gy = dxi[d, 1, i, j, k]; gz = dxi[d, 2, i, j, k]
                    un = Q[1, i, j, k]*gx + Q[2, i, j, k]*gy + Q[3, i, j, k]*gz
                    s += abs(un) + cs[i, j, k]*np.sqrt(gx*gx + gy*gy + gz*gz)
                if s > m:
                    m = s
        out[i] = m
    return out.max()

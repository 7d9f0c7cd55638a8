#!/usr/bin/env python3
# core/transport.py
# Mixture-averaged transport: Chapman-Enskog species properties with Neufeld
# collision integrals, Wilke viscosity, Mathur-Saxena conductivity and
# mixture-averaged diffusion. Also the frozen mixture sound speed.
import numpy as np
import numba as nb

from core.thermo import RU, P_ATM, SMALL, cp_k, sound_speed


@nb.njit
def omega22(Ts):
    return 1.16145*Ts**(-0.14874) + 0.52487*np.exp(-0.77320*Ts) + 2.16178*np.exp(-2.43787*Ts)


@nb.njit
def omega11(Ts):
    return (1.06036*Ts**(-0.15610) + 0.19300*np.exp(-0.47635*Ts)
            + 1.03587*np.exp(-1.52996*Ts) + 1.76474*np.exp(-3.89411*Ts))


@nb.njit
def species_viscosity(T, k, W, sigma, eps):
    """Pa s; W in kg/mol, sigma in Angstrom, eps in K."""
    return 2.6693e-6*np.sqrt(W[k]*1e3*T) / (sigma[k]*sigma[k]*omega22(T/eps[k]))


@nb.njit
def binary_diffusion(T, p, j, k, W, sigma, eps):
    """m^2/s."""
    s = 0.5*(sigma[j] + sigma[k])
    e = np.sqrt(eps[j]*eps[k])
    Mjk = 1.0/(W[j]*1e3) + 1.0/(W[k]*1e3)
    return 0.0018583e-4*np.sqrt(T*T*T*Mjk) / ((p/P_ATM)*s*s*omega11(T/e))


@nb.njit(parallel=True)
def mixture(Q, Yi, mu, lam, D, cs, Xi, mui, Dij, W, sigma, eps, nasa, tmid):
    nx, ny, nz = Q.shape[1], Q.shape[2], Q.shape[3]
    ns = Yi.shape[0]
    for i in nb.prange(nx):
        for j in range(ny):
            for k in range(nz):
                T = Q[5, i, j, k]
                p = Q[4, i, j, k]

                s = 0.0
                for n in range(ns):
                    s += Yi[n, i, j, k]/W[n]
                for n in range(ns):
                    Xi[n, i, j, k] = Yi[n, i, j, k]/W[n]/s

                for n in range(ns):
                    mui[n, i, j, k] = species_viscosity(T, n, W, sigma, eps)

                # Wilke
                m = 0.0
                for a in range(ns):
                    den = 0.0
                    for b in range(ns):
                        r = 1.0 + np.sqrt(mui[a, i, j, k]/mui[b, i, j, k])*(W[b]/W[a])**0.25
                        den += Xi[b, i, j, k]*r*r/np.sqrt(8.0*(1.0 + W[a]/W[b]))
                    m += Xi[a, i, j, k]*mui[a, i, j, k]/den
                mu[i, j, k] = m

                # Eucken species conductivity + Mathur-Saxena
                l1 = 0.0
                l2 = 0.0
                for n in range(ns):
                    ln = mui[n, i, j, k]*(cp_k(T, n, nasa, tmid, W) + 1.25*RU/W[n])
                    l1 += Xi[n, i, j, k]*ln
                    l2 += Xi[n, i, j, k]/ln
                lam[i, j, k] = 0.5*(l1 + 1.0/l2)

                for a in range(ns):
                    for b in range(a, ns):
                        d = binary_diffusion(T, p, a, b, W, sigma, eps)
                        Dij[a*ns + b, i, j, k] = d
                        Dij[b*ns + a, i, j, k] = d
                for a in range(ns):
                    den = 0.0
                    for b in range(ns):
                        if b != a:
                            den += Xi[b, i, j, k]/Dij[a*ns + b, i, j, k]
                    if den > SMALL:
                        D[a, i, j, k] = (1.0 - Yi[a, i, j, k])/den
                    else:
                        # pure species limit
                        D[a, i, j, k] = Dij[a*ns + a, i, j, k]

                cs[i, j, k] = sound_speed(T, Yi[:, i, j, k], nasa, tmid, W)


@nb.njit(parallel=True)
def sound_speed_field(Q, Yi, cs, nasa, tmid, W):
    nx, ny, nz = Q.shape[1], Q.shape[2], Q.shape[3]
    for i in nb.prange(nx):
        for j in range(ny):
            for k in range(nz):
                cs[i, j, k] = sound_speed(Q[5, i, j, k], Yi[:, i, j, k], nasa, tmid, W)

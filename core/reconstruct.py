#!/usr/bin/env python3
# core/reconstruct.py
# Shock sensor and hybrid face reconstruction of split fluxes:
# linear 5th order in smooth regions, WENO5-Z near gradients, minmod at shocks.
import numpy as np
import numba as nb

LINEAR, WENO, MINMOD = 0, 1, 2


def shock_sensor(Q, phi):
    """Jameson pressure sensor |p+ - 2p + p-| / (p+ + 2p + p-), max over directions."""
    p = Q[4]
    c = p[1:-1, 1:-1, 1:-1]
    out = np.zeros_like(c)
    for sl_m, sl_p in (
        ((slice(0, -2), slice(1, -1), slice(1, -1)), (slice(2, None), slice(1, -1), slice(1, -1))),
        ((slice(1, -1), slice(0, -2), slice(1, -1)), (slice(1, -1), slice(2, None), slice(1, -1))),
        ((slice(1, -1), slice(1, -1), slice(0, -2)), (slice(1, -1), slice(1, -1), slice(2, None))),
    ):
        pm, pp = p[sl_m], p[sl_p]
        np.maximum(out, np.abs(pp - 2.0*c + pm) / (pp + 2.0*c + pm), out=out)
    phi[...] = 0.0
    phi[1:-1, 1:-1, 1:-1] = out


@nb.njit
def minmod(a, b):
    if a*b <= 0.0:
        return 0.0
    return a if abs(a) < abs(b) else b


@nb.njit
def weno5(v0, v1, v2, v3, v4, mode, eps):
    """Upwind-biased value at the face between v2 and v3."""
    if mode == MINMOD:
        return v2 + 0.5*minmod(v2 - v1, v3 - v2)
    q0 = (2.0*v0 - 7.0*v1 + 11.0*v2) / 6.0
    q1 = (-v1 + 5.0*v2 + 2.0*v3) / 6.0
    q2 = (2.0*v2 + 5.0*v3 - v4) / 6.0
    if mode == LINEAR:
        return 0.1*q0 + 0.6*q1 + 0.3*q2
    b0 = 13.0/12.0*(v0 - 2.0*v1 + v2)**2 + 0.25*(v0 - 4.0*v1 + 3.0*v2)**2
    b1 = 13.0/12.0*(v1 - 2.0*v2 + v3)**2 + 0.25*(v1 - v3)**2
    b2 = 13.0/12.0*(v2 - 2.0*v3 + v4)**2 + 0.25*(3.0*v2 - 4.0*v3 + v4)**2
    tau = abs(b0 - b2)
    a0 = 0.1*(1.0 + tau/(b0 + eps))
    a1 = 0.6*(1.0 + tau/(b1 + eps))
    a2 = 0.3*(1.0 + tau/(b2 + eps))
    return (a0*q0 + a1*q1 + a2*q2) / (a0 + a1 + a2)


@nb.njit(parallel=True)
def reconstruct_faces(Fp, Fm, phi, F, axis, ng, lo_edge, hi_edge, phi_lin, phi_weno, eps):
    """
    F[:, f...] on faces of `axis`; face f sits between cells a = ng-1+f and
    b = a+1 along the axis (interior range in the other two directions).
    lo_edge/hi_edge: first/last face is a physical boundary -> first-order upwind.
    """
    nv = F.shape[0]
    n0, n1, n2 = F.shape[1], F.shape[2], F.shape[3]
    nf = F.shape[axis + 1]
    di = 1 if axis == 0 else 0
    dj = 1 if axis == 1 else 0
    dk = 1 if axis == 2 else 0
    for fi in nb.prange(n0):
        for fj in range(n1):
            for fk in range(n2):
                # cell b
                i = fi + ng; j = fj + ng; k = fk + ng
                ia = i - di; ja = j - dj; ka = k - dk
                fidx = fi if axis == 0 else (fj if axis == 1 else fk)
                edge = (lo_edge and fidx == 0) or (hi_edge and fidx == nf - 1)

                ph = max(phi[ia, ja, ka], phi[i, j, k])
                if ph < phi_lin:
                    mode = LINEAR
                elif ph < phi_weno:
                    mode = WENO
                else:
                    mode = MINMOD

                for n in range(nv):
                    if edge:
                        F[n, fi, fj, fk] = Fp[n, ia, ja, ka] + Fm[n, i, j, k]
                        continue
                    fp = weno5(Fp[n, ia - 2*di, ja - 2*dj, ka - 2*dk],
                               Fp[n, ia - di, ja - dj, ka - dk],
                               Fp[n, ia, ja, ka],
                               Fp[n, i, j, k],
                               Fp[n, i + di, j + dj, k + dk],
                               mode, eps)
                    fm = weno5(Fm[n, i + 2*di, j + 2*dj, k + 2*dk],
                               Fm[n, i + di, j + dj, k + dk],
                               Fm[n, i, j, k],
                               Fm[n, ia, ja, ka],
                               Fm[n, ia - di, ja - dj, ka - dk],
                               mode, eps)
                    F[n, fi, fj, fk] = fp + fm

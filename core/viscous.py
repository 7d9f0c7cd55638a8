#!/usr/bin/env python3
# core/viscous.py
# Cell-centred viscous/diffusive fluxes in contravariant form and their
# face averages. Sign: the stored fluxes are added to the advective ones.
import numpy as np
import numba as nb

from core.thermo import h_k


@nb.njit(parallel=True)
def viscous_fluxes(Q, Yi, mu, lam, D, dxi, J, Fv, Fd, nasa, tmid, W):
    """
    Fv[d] = J grad(xi_d) . (-tau, -u.tau + q + sum_k h_k J_k)   (momentum x3, energy)
    Fd[d] = J grad(xi_d) . J_k,   J_k = -rho D_k grad Y_k + Y_k rho V_c
    Gradients: central differences in logical space mapped by the metrics,
    evaluated on cells 1..n-2 in every direction.
    """
    nx, ny, nz = Q.shape[1], Q.shape[2], Q.shape[3]
    ns = Yi.shape[0]
    for i in nb.prange(1, nx - 1):
        gY = np.empty((ns, 3))
        Jk = np.empty((ns, 3))
        gu = np.empty((3, 3))
        gT = np.empty(3)
        tau = np.empty((3, 3))
        for j in range(1, ny - 1):
            for k in range(1, nz - 1):
                # logical derivatives -> physical gradients
                for c in range(3):
                    gT[c] = 0.0
                    for m in range(3):
                        gu[m, c] = 0.0
                    for n in range(ns):
                        gY[n, c] = 0.0
                for d in range(3):
                    ip = i + (1 if d == 0 else 0); im = i - (1 if d == 0 else 0)
                    jp = j + (1 if d == 1 else 0); jm = j - (1 if d == 1 else 0)
                    kp = k + (1 if d == 2 else 0); km = k - (1 if d == 2 else 0)
                    dT = 0.5*(Q[5, ip, jp, kp] - Q[5, im, jm, km])
                    du = 0.5*(Q[1, ip, jp, kp] - Q[1, im, jm, km])
                    dv = 0.5*(Q[2, ip, jp, kp] - Q[2, im, jm, km])
                    dw = 0.5*(Q[3, ip, jp, kp] - Q[3, im, jm, km])
                    for c in range(3):
                        g = dxi[d, c, i, j, k]
                        gT[c] += g*dT
                        gu[0, c] += g*du
                        gu[1, c] += g*dv
                        gu[2, c] += g*dw
                        for n in range(ns):
                            gY[n, c] += g*0.5*(Yi[n, ip, jp, kp] - Yi[n, im, jm, km])

                m_ = mu[i, j, k]
                div = gu[0, 0] + gu[1, 1] + gu[2, 2]
                for a in range(3):
                    for b in range(3):
                        tau[a, b] = m_*(gu[a, b] + gu[b, a])
                    tau[a, a] -= 2.0/3.0*m_*div

                rho = Q[0, i, j, k]
                T = Q[5, i, j, k]
                for c in range(3):
                    vc = 0.0
                    for n in range(ns):
                        vc += D[n, i, j, k]*gY[n, c]
                    for n in range(ns):
                        Jk[n, c] = -rho*D[n, i, j, k]*gY[n, c] + Yi[n, i, j, k]*rho*vc

                u0 = Q[1, i, j, k]; u1 = Q[2, i, j, k]; u2 = Q[3, i, j, k]
                jac = J[i, j, k]
                for d in range(3):
                    f0 = 0.0; f1 = 0.0; f2 = 0.0; f3 = 0.0
                    for c in range(3):
                        g = jac*dxi[d, c, i, j, k]
                        hd = 0.0
                        for n in range(ns):
                            hd += h_k(T, n, nasa, tmid, W)*Jk[n, c]
                        f0 -= g*tau[0, c]
                        f1 -= g*tau[1, c]
                        f2 -= g*tau[2, c]
                        f3 += g*(-(u0*tau[0, c] + u1*tau[1, c] + u2*tau[2, c])
                                 - lam[i, j, k]*gT[c] + hd)
                    Fv[d, 0, i, j, k] = f0
                    Fv[d, 1, i, j, k] = f1
                    Fv[d, 2, i, j, k] = f2
                    Fv[d, 3, i, j, k] = f3
                    for n in range(ns):
                        s = 0.0
                        for c in range(3):
                            s += jac*dxi[d, c, i, j, k]*Jk[n, c]
                        Fd[d, n, i, j, k] = s


def _face_pair(axis, ng, shape):
    """Slices of cells a (left) and b (right) for every face on `axis`."""
    sa, sb = [], []
    for ax in range(3):
        if ax == axis:
            sa.append(slice(ng - 1, shape[ax] - ng))
            sb.append(slice(ng, shape[ax] - ng + 1))
        else:
            sa.append(slice(ng, shape[ax] - ng))
            sb.append(slice(ng, shape[ax] - ng))
    return (slice(None),) + tuple(sa), (slice(None),) + tuple(sb)


def add_viscous_faces(F, Fc, axis, ng, rows=slice(None)):
    """F[rows] += face average of the cell fluxes Fc (nvar, nx, ny, nz)."""
    shape = Fc.shape[1:]
    sa, sb = _face_pair(axis, ng, shape)
    F[rows] += 0.5*(Fc[sa] + Fc[sb])

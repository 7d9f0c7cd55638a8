import numpy as np
from numpy.testing import assert_allclose

from core.grid import cartesian_metrics
from core.viscous import add_viscous_faces, viscous_fluxes
from utils.settings import make_config


def _shear_case(thermo, air_Y, a=1.0e4):
    cfg = make_config(NX=6, NY=6, NZ=4, L=[6e-3, 6e-3, 4e-3])
    m = cartesian_metrics(cfg, 0)
    shape = cfg.shape_local
    ns = thermo.nspecs
    Q = np.zeros((6,) + shape)
    Q[0] = 1.0
    Q[1] = a*m.y
    Q[4] = 1.0e5
    Q[5] = 300.0
    Yi = np.empty((ns,) + shape)
    Yi[...] = air_Y[:, None, None, None]
    mu = np.full(shape, 2.0e-5)
    lam = np.full(shape, 0.03)
    D = np.full((ns,) + shape, 2.0e-5)
    Fv = np.zeros((3, 4) + shape)
    Fd = np.zeros((3, ns) + shape)
    viscous_fluxes(Q, Yi, mu, lam, D, m.dxi, m.J, Fv, Fd, thermo.nasa, thermo.tmid, thermo.W)
    return cfg, m, Q, Fv, Fd


def test_couette_shear_stress(thermo, air_Y):
    a = 1.0e4
    cfg, m, Q, Fv, Fd = _shear_case(thermo, air_Y, a)
    s = (slice(1, -1),) * 3
    dy = 6e-3 / 6
    ky = m.J[s] / dy
    # y-direction flux of x-momentum: -tau_xy scaled by J |grad eta|
    assert_allclose(Fv[1, 0][s], -ky*2.0e-5*a, rtol=1e-10)
    assert_allclose(Fv[1, 1][s], 0.0, atol=1e-20)
    # energy flux carries the shear work
    assert_allclose(Fv[1, 3][s], -ky*Q[1][s]*2.0e-5*a, rtol=1e-10, atol=1e-25)
    # symmetric stress: x-direction flux of y-momentum, no work since v = 0
    dx = 6e-3 / 6
    assert_allclose(Fv[0, 1][s], -m.J[s]/dx*2.0e-5*a, rtol=1e-10)
    assert np.all(Fv[0, 0][s] == 0.0) and np.all(Fv[0, 3][s] == 0.0)
    # nothing in z, no species diffusion
    assert np.all(Fv[2][(slice(None),) + s] == 0.0)
    assert np.all(Fd[(slice(None), slice(None)) + s] == 0.0)


def test_face_average(thermo, air_Y):
    cfg, m, Q, Fv, Fd = _shear_case(thermo, air_Y)
    ng = cfg.ng
    F = np.zeros((5, cfg.nxp, cfg.ny + 1, cfg.nz))
    add_viscous_faces(F, Fv[1], 1, ng, rows=slice(1, 5))
    assert np.all(F[0] == 0.0)
    # x-momentum flux is uniform, so every face sees the cell value
    assert_allclose(F[1], Fv[1, 0][ng, ng, ng], rtol=1e-10)

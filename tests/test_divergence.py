import numpy as np
from numpy.testing import assert_allclose, assert_array_equal

from core.divergence import apply_divergence, flux_divergence


def _faces(n, ng, nvar=2, value=1.0):
    Fx = np.full((nvar, n + 1, n, n), value)
    Fy = np.full((nvar, n, n + 1, n), value)
    Fz = np.full((nvar, n, n, n + 1), value)
    return Fx, Fy, Fz


def test_uniform_flux_has_no_divergence():
    assert_array_equal(flux_divergence(*_faces(4, 3)), 0.0)


def test_update_interior_only():
    n, ng = 4, 3
    arr = np.ones((2, n + 2*ng, n + 2*ng, n + 2*ng))
    J = np.full(arr.shape[1:], 0.5)
    Fx, Fy, Fz = _faces(n, ng)
    Fx[:, 2] = 3.0          # raises the flux out of cell 1, into cell 2
    apply_divergence(arr, Fx, Fy, Fz, J, 0.1, ng)
    assert_allclose(arr[:, ng + 1, ng:-ng, ng:-ng], 1.0 - 0.1/0.5*2.0)
    assert_allclose(arr[:, ng + 2, ng:-ng, ng:-ng], 1.0 + 0.1/0.5*2.0)
    assert_array_equal(arr[:, ng], 1.0)
    assert_array_equal(arr[:, :ng], 1.0)


def test_telescoping_sum():
    n, ng = 5, 3
    rng = np.random.default_rng(3)
    arr = np.zeros((1, n + 2*ng, n + 2*ng, n + 2*ng))
    J = np.ones(arr.shape[1:])
    Fx = rng.normal(size=(1, n + 1, n, n))
    Fx[:, 0] = Fx[:, -1]
    Fy = np.zeros((1, n, n + 1, n))
    Fz = np.zeros((1, n, n, n + 1))
    apply_divergence(arr, Fx, Fy, Fz, J, 1.0, ng)
    assert abs(arr.sum()) < 1e-12

"""
Ghost fill for each physical boundary kind.
"""

import pytest
import numpy as np
from numpy.testing import assert_allclose, assert_array_equal

from core.boundary import BoundaryPolicy, InflowBC, OutflowBC, PeriodicBC, ReflectiveBC
from core.errors import ConfigurationError
from core.grid import cartesian_metrics
from core.thermo import gas_constant
from utils.settings import make_config

NG = 3


def _fields(cfg, ns=5, seed=0):
    rng = np.random.default_rng(seed)
    Q = rng.uniform(0.5, 2.0, (6,) + cfg.shape_local)
    rhoi = rng.uniform(0.1, 0.3, (ns,) + cfg.shape_local)
    return Q, rhoi


@pytest.fixture
def cfg():
    return make_config(NX=6, NY=4, NZ=5, NG=NG)


@pytest.fixture
def metrics(cfg):
    return cartesian_metrics(cfg, 0)


def test_periodic_wraps_both_sides(cfg, metrics):
    Q, rhoi = _fields(cfg)
    PeriodicBC("y-")(Q, rhoi, metrics, NG)
    ny = cfg.ny
    assert_array_equal(Q[:, :, :NG], Q[:, :, ny:ny + NG])
    assert_array_equal(rhoi[:, :, -NG:], rhoi[:, :, NG:2*NG])


def test_periodic_high_face_is_noop(cfg, metrics):
    Q, rhoi = _fields(cfg)
    Q0 = Q.copy()
    PeriodicBC("z+")(Q, rhoi, metrics, NG)
    assert_array_equal(Q, Q0)


def test_outflow_copies_last_cell(cfg, metrics):
    Q, rhoi = _fields(cfg)
    OutflowBC("x+")(Q, rhoi, metrics, NG)
    last = Q[:, -NG - 1]
    for g in range(1, NG + 1):
        assert_array_equal(Q[:, -g], last)
    OutflowBC("z-")(Q, rhoi, metrics, NG)
    for g in range(NG):
        assert_array_equal(rhoi[:, :, :, g], rhoi[:, :, :, NG])


def test_reflective_mirrors_and_flips_normal(cfg, metrics):
    Q, rhoi = _fields(cfg)
    interior = Q.copy()
    ReflectiveBC("y+")(Q, rhoi, metrics, NG)
    n = cfg.shape_local[1]
    for g in range(NG):
        ghost = n - NG + g
        mirror = n - NG - 1 - g
        assert_array_equal(Q[0, :, ghost], interior[0, :, mirror])
        assert_array_equal(Q[1, :, ghost], interior[1, :, mirror])
        assert_allclose(Q[2, :, ghost], -interior[2, :, mirror], rtol=1e-15)
        assert_array_equal(Q[3, :, ghost], interior[3, :, mirror])
        assert_array_equal(rhoi[:, :, ghost], rhoi[:, :, mirror])


def test_inflow_state(cfg, metrics, thermo):
    inflow = {"rho": 1.2, "u": [100.0, 0.0, 0.0], "T": 320.0, "Y": {"O2": 0.233, "N2": 0.767}}
    Q, rhoi = _fields(cfg)
    InflowBC("x-", inflow, thermo)(Q, rhoi, metrics, NG)
    Y = np.zeros(5)
    Y[thermo.index("O2")], Y[thermo.index("N2")] = 0.233, 0.767
    g = Q[:, :NG]
    assert np.all(g[0] == 1.2) and np.all(g[1] == 100.0) and np.all(g[5] == 320.0)
    assert_allclose(g[4], 1.2*gas_constant(Y, thermo.W)*320.0, rtol=1e-14)
    assert_allclose(rhoi[:, :NG].sum(axis=0), 1.2, rtol=1e-14)


def test_inflow_needs_state(thermo):
    with pytest.raises(ConfigurationError):
        InflowBC("x-", None, thermo)


class TestPolicy:
    def test_x_faces_only_on_edge_ranks(self, thermo):
        cfg = make_config(NX=12, NPROCS=3, NY=4, NZ=4,
                          BC={"x-": "reflective", "x+": "outflow"})
        kinds = [[bc.kind for bc in BoundaryPolicy.from_config(cfg, r, thermo).x]
                 for r in range(3)]
        assert kinds == [["reflective"], [], ["outflow"]]

    def test_periodic_x_has_no_x_policy(self, thermo):
        cfg = make_config(NX=8, NY=4, NZ=4)
        pol = BoundaryPolicy.from_config(cfg, 0, thermo)
        assert pol.x == []
        assert len(pol.yz) == 4

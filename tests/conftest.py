"""
Shared pytest fixtures for the test suite.

Everything runs on a single rank (MPI.COMM_SELF) on small grids; the one
multi-rank test is skipped unless launched under mpiexec with 2+ ranks.
"""

import pytest
import numpy as np
from mpi4py import MPI

from core.boundary import BoundaryPolicy
from core.grid import cartesian_metrics
from core.halo import Neighbours
from core.initial import initialize
from core.integrator import RK3Integrator
from core.state import FlowState
from core.thermo import load_thermo
from utils.settings import make_config


# small periodic box with a resolved hot spot
SMALL_CASE = dict(
    NX=8, NY=4, NZ=4, NG=3, NPROCS=1,
    L=[1.0e-2, 5.0e-3, 5.0e-3],
    DT=1.0e-8, T_END=1.0e-7, CHECK_NAN_EVERY=1,
    INIT={"case": "hotspot", "rho": 1.0, "u": [20.0, -5.0, 3.0], "T": 600.0,
          "dT": 900.0, "width": 2.5e-3,
          "Y": {"O": 0.01, "O2": 0.22, "N": 0.005, "NO": 0.01, "N2": 0.755}},
)


def build_integrator(comm=MPI.COMM_SELF, chemistry=None, **overrides):
    """Config + metrics + initialised state, ghosts filled and U built."""
    case = {**SMALL_CASE, **overrides}
    cfg = make_config(**case)
    rank = comm.Get_rank()
    thermo = load_thermo(cfg.species)
    metrics = cartesian_metrics(cfg, rank)
    state = FlowState(cfg)
    bcs = BoundaryPolicy.from_config(cfg, rank, thermo)
    nbrs = Neighbours.from_config(cfg, rank)
    integ = RK3Integrator(cfg, metrics, state, thermo, bcs, nbrs, comm, chemistry=chemistry)
    initialize(state.Q, state.rhoi, metrics, cfg, thermo)
    integ.refresh()
    return integ


@pytest.fixture
def comm():
    return MPI.COMM_SELF


@pytest.fixture(scope="session")
def thermo():
    return load_thermo(("O", "O2", "N", "NO", "N2"))


@pytest.fixture
def make_integrator():
    return build_integrator


@pytest.fixture
def integrator():
    return build_integrator()


@pytest.fixture
def air_Y(thermo):
    Y = np.zeros(thermo.nspecs)
    Y[thermo.index("O2")] = 0.233
    Y[thermo.index("N2")] = 0.767
    return Y


@pytest.fixture
def small_case():
    return dict(SMALL_CASE)

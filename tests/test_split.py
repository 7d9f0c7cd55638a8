import pytest
import numpy as np
from numpy.testing import assert_allclose

from core.split import spectral_radius


@pytest.mark.parametrize("axis", [0, 1, 2])
def test_split_sums_to_contravariant_flux(integrator, axis):
    st, m = integrator.state, integrator.metrics
    integrator._mixture()
    integrator._split(axis)
    Un = st.Q[1 + axis] * m.J * m.dxi[axis, axis]
    assert_allclose(st.Fp[0] + st.Fm[0], st.Q[0]*Un, rtol=1e-12)
    # the dissipative part is alpha * U with alpha >= c |k|
    alpha = (st.Fp[0] - st.Fm[0]) / st.Q[0]
    assert np.all(alpha >= np.abs(Un))
    # species fluxes add up to the mass flux
    assert_allclose(st.Fp_i.sum(axis=0), st.Fp[0], rtol=1e-12)
    assert_allclose(st.Fm_i.sum(axis=0), st.Fm[0], rtol=1e-12)


def test_spectral_radius_uniform_box(make_integrator):
    integ = make_integrator(INIT={"case": "uniform", "rho": 1.0, "u": [30.0, -10.0, 5.0],
                                  "T": 300.0, "Y": {"O2": 0.233, "N2": 0.767}})
    st, cfg = integ.state, integ.cfg
    integ._mixture()
    c = st.cs[cfg.interior].max()
    dx, dy, dz = (L/n for L, n in zip(cfg.lengths, (cfg.nx, cfg.ny, cfg.nz)))
    expected = 30.0/dx + 10.0/dy + 5.0/dz + c*(1/dx + 1/dy + 1/dz)
    got = spectral_radius(st.Q, st.cs, integ.metrics.dxi, integ.ng)
    assert got == pytest.approx(expected, rel=1e-12)

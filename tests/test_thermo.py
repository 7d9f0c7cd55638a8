import pytest
import numpy as np

from core.errors import ConfigurationError
from core.thermo import (RU, cp_k, gas_constant, h_k, load_thermo, sound_speed)


def test_nitrogen_cp_room_temperature(thermo):
    k = thermo.index("N2")
    cp = cp_k(300.0, k, thermo.nasa, thermo.tmid, thermo.W)
    assert cp == pytest.approx(1040.0, rel=0.01)


def test_formation_enthalpies(thermo):
    T = 298.15
    hN2 = h_k(T, thermo.index("N2"), thermo.nasa, thermo.tmid, thermo.W) * thermo.W[thermo.index("N2")]
    hO = h_k(T, thermo.index("O"), thermo.nasa, thermo.tmid, thermo.W) * thermo.W[thermo.index("O")]
    hNO = h_k(T, thermo.index("NO"), thermo.nasa, thermo.tmid, thermo.W) * thermo.W[thermo.index("NO")]
    assert abs(hN2) < 50.0                          # J/mol
    assert hO == pytest.approx(249.2e3, rel=0.01)
    assert hNO == pytest.approx(91.3e3, rel=0.02)


def test_enthalpy_continuous_at_midpoint(thermo):
    for k in range(thermo.nspecs):
        lo = h_k(999.999999, k, thermo.nasa, thermo.tmid, thermo.W)
        hi = h_k(1000.0, k, thermo.nasa, thermo.tmid, thermo.W)
        assert hi == pytest.approx(lo, rel=2e-3)


def test_air_sound_speed(thermo, air_Y):
    R = gas_constant(air_Y, thermo.W)
    assert R == pytest.approx(288.3, rel=2e-3)
    c = sound_speed(300.0, air_Y, thermo.nasa, thermo.tmid, thermo.W)
    assert c == pytest.approx(347.5, rel=0.01)


def test_subset_keeps_requested_order():
    th = load_thermo(("N2", "O2"))
    assert th.species == ("N2", "O2")
    assert th.W[0] == pytest.approx(28.0134e-3)
    assert th.nasa.shape == (2, 2, 7)
    assert not th.nasa.flags.writeable


def test_unknown_species():
    with pytest.raises(ConfigurationError):
        load_thermo(("O2", "XE"))


def test_mechanism_file(tmp_path):
    path = tmp_path / "argon.json5"
    path.write_text("""{
        // monatomic test gas
        species: ["AR"], W: [39.948e-3], tmid: [1000.0],
        sigma: [3.33], eps: [136.5],
        nasa: [[[2.5, 0, 0, 0, 0, -745.375, 4.366],
                [2.5, 0, 0, 0, 0, -745.375, 4.366]]],
    }""")
    th = load_thermo(("AR",), str(path))
    Y = np.ones(1)
    cp = cp_k(500.0, 0, th.nasa, th.tmid, th.W)
    assert cp == pytest.approx(2.5 * RU / 39.948e-3)
    c = sound_speed(300.0, Y, th.nasa, th.tmid, th.W)
    assert c == pytest.approx(np.sqrt(5.0/3.0 * RU / 39.948e-3 * 300.0), rel=1e-12)

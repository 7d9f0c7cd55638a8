import dataclasses

import pytest

from utils.settings import SimConfig, default_settings, load_settings, make_config, validate


def _settings(**kw):
    s = default_settings()
    s.update(kw)
    return s


@pytest.mark.parametrize("overrides", [
    dict(NG=2),
    dict(NX=30, NPROCS=4),
    dict(NX=8, NPROCS=4),
    dict(NY=2),
    dict(DT=-1.0),
    dict(DT=None, CFL=1.5),
    dict(PHI_LINEAR=0.5, PHI_WENO=0.2),
    dict(REACTION="arrhenius"),
    dict(REACTION="surrogate"),
    dict(INIT={"case": "vortex"}),
    dict(L=[1.0, 1.0]),
])
def test_invalid_settings(overrides):
    with pytest.raises(ValueError):
        validate(_settings(**overrides))


def test_boundary_validation():
    bc = dict(default_settings()["BC"])
    bc["x-"] = "inflow"
    with pytest.raises(ValueError):
        validate(_settings(BC={**bc, "x+": "outflow"}))       # inflow without INFLOW
    with pytest.raises(ValueError):
        validate(_settings(BC={**bc, "x-": "outflow"}))       # half-periodic x
    with pytest.raises(ValueError):
        validate(_settings(BC={**bc, "x-": "slip", "x+": "outflow"}))


def test_defaults_are_valid():
    validate(default_settings())


def test_load_settings_file_and_overrides(tmp_path):
    cfg = tmp_path / "case.json5"
    cfg.write_text("""{
        // small test case
        NX: 12, NY: 6, NZ: 6,
        BC: {"x-": "outflow", "x+": "outflow"},
        SPECIES: ["O2", "N2"],
    }""")
    s = load_settings(["--config", str(cfg), "--nx", "24", "--t-end", "2e-6", "--debug"])
    assert s["NX"] == 24
    assert s["NY"] == 6
    assert s["T_END"] == 2e-6
    assert s["DEBUG"] is True
    assert s["BC"]["x-"] == "outflow"
    assert s["BC"]["y-"] == "periodic"       # merged with defaults


def test_missing_config_file(tmp_path):
    with pytest.raises(ValueError):
        load_settings(["--config", str(tmp_path / "nope.json")])


class TestSimConfig:
    def test_derived_shapes(self):
        cfg = make_config(NX=16, NY=4, NZ=5, NG=3, NPROCS=2)
        assert cfg.nxp == 8
        assert cfg.shape_local == (14, 10, 11)
        assert cfg.interior == (slice(3, 11), slice(3, 7), slice(3, 8))
        assert cfg.nspecs == 5
        assert cfg.periodic(0)

    def test_is_immutable(self):
        cfg = make_config()
        with pytest.raises(dataclasses.FrozenInstanceError):
            cfg.nx = 4
        with pytest.raises(TypeError):
            cfg.bc["x-"] = "outflow"
        assert isinstance(cfg.species, tuple)

    def test_from_settings_validates(self):
        with pytest.raises(ValueError):
            SimConfig.from_settings(_settings(NG=1))

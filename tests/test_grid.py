import h5py
import pytest
import numpy as np
from numpy.testing import assert_allclose, assert_array_equal

from core.errors import CheckpointIOError, ConfigurationError
from core.grid import METRIC_NAMES, cartesian_metrics, decompose_x, load_metrics, write_metrics
from utils.settings import make_config


def test_decompose_x():
    assert decompose_x(64, 4, 0) == (16, 0)
    assert decompose_x(64, 4, 3) == (16, 48)
    with pytest.raises(ConfigurationError):
        decompose_x(65, 4, 0)


class TestCartesian:
    def test_volume_and_centres(self):
        cfg = make_config(NX=8, NY=4, NZ=4, L=[1.0, 0.5, 0.25])
        m = cartesian_metrics(cfg, 0)
        assert m.shape == cfg.shape_local
        assert_allclose(m.J, (1/8)*(0.5/4)*(0.25/4))
        assert m.x[cfg.ng, 0, 0] == pytest.approx(1/16)
        assert m.dxi[0, 0, 0, 0, 0] == pytest.approx(8.0)
        assert np.all(m.dxi[0, 1] == 0.0)

    def test_second_rank_is_offset(self):
        cfg = make_config(NX=16, NPROCS=2, NY=4, NZ=4, L=[1.0, 1.0, 1.0])
        m = cartesian_metrics(cfg, 1)
        assert m.x[cfg.ng, 0, 0] == pytest.approx(8.5/16)

    def test_read_only(self):
        m = cartesian_metrics(make_config(NX=8, NY=4, NZ=4), 0)
        with pytest.raises(ValueError):
            m.J[0, 0, 0] = 1.0
        with pytest.raises(ValueError):
            m.dxi[0, 0, 0, 0, 0] = 1.0


class TestMetricsFile:
    def test_round_trip_per_rank(self, tmp_path):
        cfg = make_config(NX=16, NPROCS=2, NY=4, NZ=4)
        path = str(tmp_path / "metrics.h5")
        write_metrics(path, cfg)
        for rank in (0, 1):
            m = load_metrics(path, rank, cfg)
            ref = cartesian_metrics(cfg, rank)
            assert_allclose(m.x, ref.x, rtol=1e-14)
            assert_allclose(m.J, ref.J, rtol=1e-14)
            assert_array_equal(m.dxi, ref.dxi)
            assert not m.J.flags.writeable

    def test_wrong_shape(self, tmp_path):
        path = str(tmp_path / "metrics.h5")
        write_metrics(path, make_config(NX=8, NY=4, NZ=4))
        with pytest.raises(ConfigurationError):
            load_metrics(path, 0, make_config(NX=8, NY=5, NZ=4))

    def test_missing_dataset(self, tmp_path):
        path = str(tmp_path / "metrics.h5")
        cfg = make_config(NX=8, NY=4, NZ=4)
        write_metrics(path, cfg)
        with h5py.File(path, "a") as f:
            del f[METRIC_NAMES[1][2]]
        with pytest.raises(CheckpointIOError):
            load_metrics(path, 0, cfg)

    def test_missing_file(self, tmp_path):
        with pytest.raises(CheckpointIOError):
            load_metrics(str(tmp_path / "none.h5"), 0, make_config(NX=8, NY=4, NZ=4))

    def test_nonpositive_jacobian(self, tmp_path):
        path = str(tmp_path / "metrics.h5")
        cfg = make_config(NX=8, NY=4, NZ=4)
        write_metrics(path, cfg)
        with h5py.File(path, "a") as f:
            f["J"][5, 5, 5] = -1.0
        with pytest.raises(ConfigurationError):
            load_metrics(path, 0, cfg)

"""
End-to-end scenarios against a simulated scan and, when RiVLib and a fixture
file are available, against the real engine.
"""

import os

import pytest

from conftest import inclination_frame
from rxp_reader.engine import ScanifcEngine, ScanlibEngine, SimulatedEngine
from rxp_reader.engine.simulated import synthetic_points
from rxp_reader.errors import EngineError, EngineNotFoundError
from rxp_reader.stream import StreamBuilder

FIXTURE = os.environ.get("RXP_FIXTURE", "data/scan.rxp")
FIXTURE_POINTS = 24390
FIXTURE_INCLINATIONS = 36


def _load(engine_cls):
    try:
        return engine_cls.load()
    except EngineNotFoundError:
        return None


scanifc = _load(ScanifcEngine)
scanlib = _load(ScanlibEngine)

requires_scanifc = pytest.mark.skipif(
    scanifc is None or not os.path.isfile(FIXTURE),
    reason="scanifc library or rxp fixture not available")
requires_scanlib = pytest.mark.skipif(
    scanlib is None or not os.path.isfile(FIXTURE),
    reason="scanlib wrapper or rxp fixture not available")


def inclination_samples():
    samples = [(1.8818 * (i + 1), -8.442 - 0.00025 * i, -0.981 - 0.00066 * i)
               for i in range(FIXTURE_INCLINATIONS)]
    samples[-1] = (67.7494, -8.451, -1.004)
    return samples


@pytest.fixture
def simulated_scan():
    engine = SimulatedEngine()
    engine.add_source("file:scan.rxp", synthetic_points(FIXTURE_POINTS, 4096, seed=7))
    return engine


@pytest.mark.parametrize("sync_to_pps", [True, False])
def test_simulated_scan_point_count(simulated_scan, sync_to_pps):
    builder = StreamBuilder.from_path("scan.rxp", simulated_scan).sync_to_pps(sync_to_pps)
    with builder.open() as points:
        assert len(points.read_all()) == FIXTURE_POINTS


def test_simulated_scan_is_repeatable(simulated_scan):
    builder = StreamBuilder.from_path("scan.rxp", simulated_scan).batch_size(1000)
    first = builder.open().read_all()
    second = builder.batch_size(1).open().read_all()
    assert first == second
    assert simulated_scan.open_handles == 0


def test_simulated_inclinations():
    engine = SimulatedEngine()
    engine.add_source("file:scan.rxp", [inclination_frame(inclination_samples())])
    samples = StreamBuilder.from_path("scan.rxp", engine).batch_size(5).open_inclinations().read_all()
    assert len(samples) == FIXTURE_INCLINATIONS
    assert samples[0].roll == pytest.approx(-8.442, abs=1e-3)
    assert samples[0].pitch == pytest.approx(-0.981, abs=1e-3)
    assert samples[35].time == pytest.approx(67.7494, abs=1e-4)
    assert samples[35].roll == pytest.approx(-8.451, abs=1e-3)
    assert samples[35].pitch == pytest.approx(-1.004, abs=1e-3)


@requires_scanifc
@pytest.mark.parametrize("sync_to_pps", [True, False])
def test_fixture_point_count(sync_to_pps):
    builder = StreamBuilder.from_path(FIXTURE, scanifc).sync_to_pps(sync_to_pps)
    with builder.open() as points:
        assert len(points.read_all()) == FIXTURE_POINTS


@requires_scanifc
def test_fixture_batch_sizes_agree():
    builder = StreamBuilder.from_path(FIXTURE, scanifc)
    reference = builder.batch_size(1024).open().read_all()
    assert builder.batch_size(97).open().read_all() == reference


@requires_scanifc
def test_fixture_nonexistent_path():
    with pytest.raises(EngineError):
        StreamBuilder.from_path("notafile", scanifc).open()


@requires_scanlib
def test_fixture_inclinations():
    builder = StreamBuilder.from_path(FIXTURE, scanlib).sync_to_pps(False)
    with builder.open_inclinations() as inclinations:
        samples = inclinations.read_all()
    assert len(samples) == FIXTURE_INCLINATIONS
    assert samples[0].roll == pytest.approx(-8.442, abs=1e-3)
    assert samples[0].pitch == pytest.approx(-0.981, abs=1e-3)
    assert samples[35].time == pytest.approx(67.7494, abs=1e-4)
    assert samples[35].roll == pytest.approx(-8.451, abs=1e-3)
    assert samples[35].pitch == pytest.approx(-1.004, abs=1e-3)

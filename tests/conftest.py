import numpy as np
import pytest

from rxp_reader.engine import SimulatedEngine
from rxp_reader.engine.base import INCLINATION_DTYPE
from rxp_reader.engine.simulated import point_frame

SCAN_URI = "file:scan.rxp"


def numbered_points(count: int, start: int = 0):
    """Raw point frame whose record i carries the index start + i in every field."""
    xyz, attributes, times = point_frame(count)
    index = np.arange(start, start + count)
    xyz["x"] = index
    xyz["y"] = index * 2
    xyz["z"] = -index
    attributes["amplitude"] = index % 40
    attributes["reflectance"] = -(index % 20)
    attributes["deviation"] = index % 65536
    attributes["flags"] = index % 1024
    times[:] = index * 1_000_000
    return (xyz, attributes, times)


def inclination_frame(samples):
    records = np.zeros(len(samples), dtype=INCLINATION_DTYPE)
    for i, (time, roll, pitch) in enumerate(samples):
        records[i] = (time, roll, pitch)
    return (records,)


@pytest.fixture
def engine():
    return SimulatedEngine()


@pytest.fixture
def scan_engine(engine):
    """Engine serving 15 numbered points in two frames under SCAN_URI."""
    engine.add_source(SCAN_URI, [numbered_points(10), numbered_points(5, start=10)])
    return engine

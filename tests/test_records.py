import dataclasses

import numpy as np
import pytest

from rxp_reader.stream.records import (
    EchoType,
    Inclination,
    Point,
    decode_inclination,
    decode_point,
    points_to_array,
)

XYZ = (1.0, 2.0, 3.0)


def decode_flags(flags: int) -> Point:
    return decode_point(XYZ, (10.0, -3.5, 7, flags), 0)


@pytest.mark.parametrize("ordinal, expected", [
    (0, EchoType.SINGLE),
    (1, EchoType.FIRST),
    (2, EchoType.INTERIOR),
    (3, EchoType.LAST),
])
@pytest.mark.parametrize("other_bits", [0x0000, 0x00F8, 0x0300, 0xFFFC])
def test_echo_type_ignores_other_bits(ordinal, expected, other_bits):
    assert decode_flags(other_bits | ordinal).echo_type is expected


@pytest.mark.parametrize("facet", [0, 1, 2, 3])
@pytest.mark.parametrize("other_bits", [0x0000, 0x00FF, 0xFC00, 0xFCFF])
def test_facet_number(facet, other_bits):
    flags = other_bits | (facet << 8)
    assert decode_flags(flags).facet_number == facet


@pytest.mark.parametrize("bit, field", [
    (3, "is_waveform_available"),
    (4, "is_pseudo_echo"),
    (5, "is_sw_calculated_target"),
    (6, "is_pps_new"),
    (7, "is_time_in_pps_timeframe"),
])
def test_single_flag_bits(bit, field):
    fields = ["is_waveform_available", "is_pseudo_echo", "is_sw_calculated_target",
              "is_pps_new", "is_time_in_pps_timeframe"]
    point = decode_flags(1 << bit)
    for name in fields:
        assert getattr(point, name) is (name == field)
    assert point.echo_type is EchoType.SINGLE
    assert point.facet_number == 0


def test_decode_point_fields():
    point = decode_point((1.5, -2.25, 3.0), (12.5, -4.0, 42, 0x02FB), 67_749_400_000)
    assert point.to_tuple() == (1.5, -2.25, 3.0)
    assert point.amplitude == 12.5
    assert point.reflectance == -4.0
    assert point.deviation == 42
    assert point.echo_type is EchoType.LAST
    assert point.is_waveform_available
    assert point.is_pseudo_echo
    assert point.is_sw_calculated_target
    assert point.is_pps_new
    assert point.is_time_in_pps_timeframe
    assert point.facet_number == 2
    assert point.time == pytest.approx(67.7494, abs=1e-9)


def test_ticks_are_nanoseconds():
    assert decode_flags(0).time == 0.0
    assert decode_point(XYZ, (0.0, 0.0, 0, 0), 1_000_000_000).time == pytest.approx(1.0)


def test_points_are_immutable():
    point = decode_flags(0)
    with pytest.raises(dataclasses.FrozenInstanceError):
        point.x = 5.0


def test_decode_inclination():
    sample = decode_inclination((67.7494, -8.451, -1.004))
    assert sample == Inclination(time=67.7494, roll=-8.451, pitch=-1.004)


def test_points_to_array():
    points = [decode_point((i, i + 1, i + 2), (0.0, 0.0, 0, 0), 0) for i in range(3)]
    array = points_to_array(points)
    assert array.shape == (3, 3)
    np.testing.assert_array_equal(array[2], [2.0, 3.0, 4.0])


def test_points_to_array_empty():
    assert points_to_array([]).shape == (0, 3)

"""
Decoded scan records and the decoder for raw engine records.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence, Tuple

import numpy as np

from ..config import TICK_DURATION

# Attribute flag layout (16 bit)
ECHO_TYPE_MASK = 0x0003
WAVEFORM_AVAILABLE = 1 << 3
PSEUDO_ECHO = 1 << 4      # Fixed range of 0.1 m
SW_CALCULATED_TARGET = 1 << 5
PPS_NEW = 1 << 6          # PPS not older than 1.5 s
TIME_IN_PPS_TIMEFRAME = 1 << 7
FACET_SHIFT = 8
FACET_MASK = 0x0003


class EchoType(Enum):
    """Position of an echo among the echoes of one laser pulse."""
    SINGLE = 0
    FIRST = 1
    INTERIOR = 2
    LAST = 3

    @classmethod
    def from_flags(cls, flags: int) -> 'EchoType':
        """Decode the echo type from the two lowest flag bits."""
        return cls(flags & ECHO_TYPE_MASK)


@dataclass(frozen=True)
class Point:
    """A single scan point."""
    x: float
    y: float
    z: float
    amplitude: float      # Relative amplitude in dB
    reflectance: float    # Relative reflectance in dB
    deviation: int        # Pulse shape distortion
    echo_type: EchoType
    is_waveform_available: bool
    is_pseudo_echo: bool
    is_sw_calculated_target: bool
    is_pps_new: bool
    is_time_in_pps_timeframe: bool
    facet_number: int
    time: float           # Seconds

    def to_tuple(self) -> Tuple[float, float, float]:
        """Return point as (x, y, z) tuple."""
        return (self.x, self.y, self.z)


@dataclass(frozen=True)
class Inclination:
    """An inclination sample, angles in degrees."""
    time: float
    roll: float
    pitch: float


def decode_point(xyz: Sequence[float], attributes: Sequence, ticks: int) -> Point:
    """
    Decode one raw point record.

    Args:
        xyz: (x, y, z) coordinates
        attributes: (amplitude, reflectance, deviation, flags)
        ticks: Raw timestamp in engine ticks

    Returns:
        The decoded Point
    """
    x, y, z = xyz
    amplitude, reflectance, deviation, flags = attributes
    flags = int(flags)
    return Point(
        x=float(x),
        y=float(y),
        z=float(z),
        amplitude=float(amplitude),
        reflectance=float(reflectance),
        deviation=int(deviation),
        echo_type=EchoType.from_flags(flags),
        is_waveform_available=bool(flags & WAVEFORM_AVAILABLE),
        is_pseudo_echo=bool(flags & PSEUDO_ECHO),
        is_sw_calculated_target=bool(flags & SW_CALCULATED_TARGET),
        is_pps_new=bool(flags & PPS_NEW),
        is_time_in_pps_timeframe=bool(flags & TIME_IN_PPS_TIMEFRAME),
        facet_number=(flags >> FACET_SHIFT) & FACET_MASK,
        time=int(ticks) * TICK_DURATION,
    )


def decode_inclination(raw: Sequence[float]) -> Inclination:
    """Decode one raw (time, roll, pitch) record."""
    time, roll, pitch = raw
    return Inclination(time=float(time), roll=float(roll), pitch=float(pitch))


def points_to_array(points: List[Point]) -> np.ndarray:
    """
    Get point coordinates as numpy array (N x 3).

    Args:
        points: Decoded points

    Returns:
        Numpy array of shape (N, 3) with x, y, z columns
    """
    if not points:
        return np.array([]).reshape(0, 3)
    return np.array([p.to_tuple() for p in points])

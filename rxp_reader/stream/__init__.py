"""
Stream modules for opening, buffering and decoding scan records.
"""

from .records import EchoType, Point, Inclination
from .buffered import PointStream, InclinationStream
from .builder import (
    SourceLocator,
    StreamConfig,
    StreamBuilder,
    read_points,
    read_inclinations
)

__all__ = [
    'EchoType', 'Point', 'Inclination',
    'PointStream', 'InclinationStream',
    'SourceLocator', 'StreamConfig', 'StreamBuilder',
    'read_points', 'read_inclinations',
]

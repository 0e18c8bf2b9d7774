"""
Lazy, typed reader for RIEGL rxp scan streams.
"""

from .errors import (
    RxpReaderError,
    ConfigurationError,
    InvalidLocatorError,
    EngineError,
    EngineNotFoundError,
    ResourceError
)
from .stream import (
    EchoType,
    Point,
    Inclination,
    PointStream,
    InclinationStream,
    SourceLocator,
    StreamConfig,
    StreamBuilder,
    read_points,
    read_inclinations
)

__version__ = '1.0.0'

__all__ = [
    'RxpReaderError', 'ConfigurationError', 'InvalidLocatorError',
    'EngineError', 'EngineNotFoundError', 'ResourceError',
    'EchoType', 'Point', 'Inclination',
    'PointStream', 'InclinationStream',
    'SourceLocator', 'StreamConfig', 'StreamBuilder',
    'read_points', 'read_inclinations',
]

"""
Declarative stream configuration and the builder that opens streams.
"""

import dataclasses
import logging
import os
from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union

from ..config import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_SYNC_TO_PPS,
    FILE_URI_PREFIX,
    NETWORK_URI_PREFIX
)
from ..engine.base import ScanEngine, Rangegate
from ..engine.scanifc import ScanifcEngine
from ..engine.scanlib import ScanlibEngine
from ..errors import EngineError, InvalidLocatorError
from .buffered import PointStream, InclinationStream
from .reader import PointBatchReader, InclinationBatchReader

logger = logging.getLogger(__name__)

PathLike = Union[str, bytes, 'os.PathLike']


def _check_nul(value: str, what: str) -> str:
    if '\0' in value:
        raise InvalidLocatorError(f"{what} contains an embedded NUL byte: {value!r}")
    return value


@dataclass(frozen=True)
class SourceLocator:
    """Where a scan stream comes from: a file or an rdtp network address."""
    scheme: str
    target: str

    @classmethod
    def file(cls, path: PathLike) -> 'SourceLocator':
        return cls(FILE_URI_PREFIX, os.fsdecode(path))

    @classmethod
    def network(cls, address: str) -> 'SourceLocator':
        return cls(NETWORK_URI_PREFIX, address)

    def to_uri(self) -> str:
        """
        Serialize to the engine's locator string.

        Raises:
            InvalidLocatorError: If the target contains a NUL byte
        """
        return _check_nul(self.scheme + self.target, "Locator")


@dataclass(frozen=True)
class StreamConfig:
    """Immutable settings for one stream."""
    locator: SourceLocator
    sync_to_external_clock: bool = DEFAULT_SYNC_TO_PPS
    batch_size: int = DEFAULT_BATCH_SIZE
    log_path: Optional[str] = None
    rangegates: Tuple[Rangegate, ...] = ()

    def __post_init__(self):
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be a positive integer, got {self.batch_size}")

    @property
    def sync_to_pps(self) -> bool:
        """Alias of ``sync_to_external_clock``."""
        return self.sync_to_external_clock


class StreamBuilder:
    """
    Builds point and inclination streams.

    Setters return new builders and never touch the engine; the only engine
    call happens in ``open()`` / ``open_inclinations()``.

    Example:
        with StreamBuilder.from_path("scan.rxp").batch_size(256).open() as points:
            for point in points:
                ...
    """

    def __init__(self, config: StreamConfig, engine: Optional[ScanEngine] = None):
        """
        Args:
            config: Stream settings
            engine: Engine to open streams with; the native libraries are
                loaded on open when omitted
        """
        self._config = config
        self._engine = engine

    @classmethod
    def from_path(cls, path: PathLike, engine: Optional[ScanEngine] = None) -> 'StreamBuilder':
        """Create a builder for an rxp file."""
        return cls(StreamConfig(SourceLocator.file(path)), engine)

    @classmethod
    def from_network(cls, address: str, engine: Optional[ScanEngine] = None) -> 'StreamBuilder':
        """Create a builder for a live scanner reachable over rdtp."""
        return cls(StreamConfig(SourceLocator.network(address)), engine)

    @property
    def config(self) -> StreamConfig:
        return self._config

    def _replace(self, **changes) -> 'StreamBuilder':
        return StreamBuilder(dataclasses.replace(self._config, **changes), self._engine)

    def sync_to_external_clock(self, sync: bool) -> 'StreamBuilder':
        """Keep only records synchronized to an external PPS signal (or not)."""
        return self._replace(sync_to_external_clock=bool(sync))

    def sync_to_pps(self, sync: bool) -> 'StreamBuilder':
        """Alias of ``sync_to_external_clock``."""
        return self.sync_to_external_clock(sync)

    def batch_size(self, batch_size: int) -> 'StreamBuilder':
        """Set the number of records requested per engine read."""
        return self._replace(batch_size=int(batch_size))

    def log_path(self, log_path: Optional[PathLike]) -> 'StreamBuilder':
        """Write a copy of the raw stream packages to ``log_path``."""
        return self._replace(log_path=None if log_path is None else os.fsdecode(log_path))

    def rangegate(self, zone: int, near: float, far: float) -> 'StreamBuilder':
        """
        Override the sensor's default range gate of ``zone``.

        A later call for the same zone replaces the earlier setting.

        Args:
            zone: Range gate zone number
            near: Near limit in meters
            far: Far limit in meters

        Raises:
            ValueError: If the zone does not fit 16 bits or near exceeds far
        """
        zone = int(zone)
        if not 0 <= zone <= 0xFFFF:
            raise ValueError(f"Range gate zone must be in 0..65535, got {zone}")
        if near > far:
            raise ValueError(f"Range gate near limit {near} exceeds far limit {far}")
        gates = tuple(g for g in self._config.rangegates if g[0] != zone)
        return self._replace(rangegates=gates + ((zone, float(near), float(far)),))
    def _validate(self) -> Tuple[str, Optional[str]]:
        """Serialize the locator and check the log path before any engine call."""
        uri = self._config.locator.to_uri()
        log_path = self._config.log_path
        if log_path is not None:
            _check_nul(log_path, "Log path")
        return uri, log_path

    def _open_handle(self, engine: ScanEngine, uri: str, log_path: Optional[str]) -> Any:
        config = self._config
        status, handle = engine.open(
            uri, config.sync_to_external_clock, log_path, config.rangegates)
        if status != 0:
            raise EngineError.from_engine(engine, status)

        logger.info(f"Opened {uri} (sync_to_external_clock={config.sync_to_external_clock}, "
                    f"batch_size={config.batch_size})")
        return handle

    def open(self) -> PointStream:
        """
        Open a point stream.

        Returns:
            PointStream owning the new engine handle

        Raises:
            InvalidLocatorError: If the locator or log path contains a NUL byte
            EngineError: If the engine fails to open the source
            EngineNotFoundError: If no engine was given and scanifc is missing
        """
        uri, log_path = self._validate()
        engine = self._engine
        if engine is None:
            engine = ScanifcEngine.load()
        handle = self._open_handle(engine, uri, log_path)
        return PointStream(PointBatchReader(engine, handle), self._config.batch_size)

    def open_inclinations(self) -> InclinationStream:
        """
        Open an inclination stream over the same source.

        Raises the same errors as ``open()``.
        """
        uri, log_path = self._validate()
        engine = self._engine
        if engine is None:
            engine = ScanlibEngine.load()
        handle = self._open_handle(engine, uri, log_path)
        return InclinationStream(InclinationBatchReader(engine, handle), self._config.batch_size)


def read_points(path: PathLike, sync_to_external_clock: bool = DEFAULT_SYNC_TO_PPS,
                engine: Optional[ScanEngine] = None) -> list:
    """
    Read every point of an rxp file.

    Args:
        path: File to read
        sync_to_external_clock: Keep only PPS-synchronized points
        engine: Optional engine, scanifc by default

    Returns:
        List of Point objects
    """
    builder = StreamBuilder.from_path(path, engine).sync_to_external_clock(sync_to_external_clock)
    with builder.open() as points:
        return points.read_all()


def read_inclinations(path: PathLike, sync_to_external_clock: bool = DEFAULT_SYNC_TO_PPS,
                      engine: Optional[ScanEngine] = None) -> list:
    """Read every inclination sample of an rxp file."""
    builder = StreamBuilder.from_path(path, engine).sync_to_external_clock(sync_to_external_clock)
    with builder.open_inclinations() as inclinations:
        return inclinations.read_all()

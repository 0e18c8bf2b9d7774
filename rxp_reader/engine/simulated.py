"""
In-memory scan engine for simulation mode and tests.

Sources are registered under their URI as a list of frames. Each frame is a
tuple of raw arrays laid out like the buffers the engine fills: (xyz,
attributes, time) for points, (inclinations,) for inclinations. An empty
frame produces an end-of-frame signal with no records.
"""

import logging
from collections import deque
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from .base import (
    ScanEngine,
    Rangegate,
    XYZ32_DTYPE,
    ATTRIBUTES_DTYPE,
    TIME_DTYPE,
    INCLINATION_DTYPE
)

logger = logging.getLogger(__name__)

Frame = Tuple[np.ndarray, ...]

# Status codes reported by the simulated engine
OPEN_FAILED = 1
INVALID_HANDLE = 3


class _Cursor:
    """Read position inside a registered source."""

    def __init__(self, frames: List[Frame]):
        self.frames = frames
        self.frame_index = 0
        self.offset = 0


class SimulatedEngine(ScanEngine):
    """
    Scan engine replaying registered frames.

    Counts every call so callers can check batching and handle release.
    """

    def __init__(self):
        self._sources: Dict[str, List[Frame]] = {}
        self._cursors: Dict[int, _Cursor] = {}
        self._next_handle = 1
        self._message = ''
        self._read_failures = deque()
        self.last_error_status = 0
        self.opened: List[Tuple[str, bool, Optional[str]]] = []
        self.opened_rangegates: List[Tuple[Rangegate, ...]] = []
        self.open_calls = 0
        self.read_calls = 0
        self.close_calls = 0

    def add_source(self, uri: str, frames: Sequence[Frame]):
        """
        Register a source.

        Args:
            uri: Locator string the source answers to
            frames: Raw frames, delivered in order
        """
        self._sources[uri] = list(frames)

    def fail_next_read(self, code: int, message: str = ''):
        """Make the next read call fail with ``code``."""
        self._read_failures.append((code, message))

    @property
    def open_handles(self) -> int:
        """Number of handles not closed yet."""
        return len(self._cursors)

    def open(self, uri: str, sync_to_pps: bool,
             log_path: Optional[str] = None,
             rangegates: Sequence[Rangegate] = ()) -> Tuple[int, Optional[int]]:
        self.open_calls += 1
        self.opened.append((uri, sync_to_pps, log_path))
        self.opened_rangegates.append(tuple(rangegates))
        if uri not in self._sources:
            self._message = f"cannot open {uri}: no such file or directory"
            return OPEN_FAILED, None

        handle = self._next_handle
        self._next_handle += 1
        self._cursors[handle] = _Cursor(self._sources[uri])
        logger.debug(f"Simulated stream {handle} opened for {uri}")
        return 0, handle

    def read(self, handle: int, buffers: Sequence[np.ndarray]) -> Tuple[int, int, bool]:
        self.read_calls += 1
        cursor = self._cursors.get(handle)
        if cursor is None:
            self._message = f"invalid stream handle {handle}"
            return INVALID_HANDLE, 0, False
        if self._read_failures:
            code, self._message = self._read_failures.popleft()
            return code, 0, False
        if cursor.frame_index >= len(cursor.frames):
            return 0, 0, False

        frame = cursor.frames[cursor.frame_index]
        total = len(frame[0])
        take = min(len(buffers[0]), total - cursor.offset)
        for out, data in zip(buffers, frame):
            out[:take] = data[cursor.offset:cursor.offset + take]
        cursor.offset += take

        end_of_frame = cursor.offset >= total
        if end_of_frame:
            cursor.frame_index += 1
            cursor.offset = 0
        return 0, take, end_of_frame

    def close(self, handle: int) -> int:
        self.close_calls += 1
        if self._cursors.pop(handle, None) is None:
            self._message = f"invalid stream handle {handle}"
            return INVALID_HANDLE
        return 0

    def last_error(self) -> Tuple[int, str]:
        if self.last_error_status != 0:
            return self.last_error_status, ''
        return 0, self._message


def point_frame(count: int) -> Frame:
    """Allocate a zeroed raw point frame of ``count`` records."""
    return (
        np.zeros(count, dtype=XYZ32_DTYPE),
        np.zeros(count, dtype=ATTRIBUTES_DTYPE),
        np.zeros(count, dtype=TIME_DTYPE),
    )


def synthetic_points(count: int, frame_size: int, seed: int = 0) -> List[Frame]:
    """
    Generate raw point frames with random geometry and attribute bits.

    Timestamps start at zero and advance by 10 microseconds per point.

    Args:
        count: Total number of points
        frame_size: Points per frame; the last frame may be shorter
        seed: Random seed

    Returns:
        List of (xyz, attributes, time) frames
    """
    rng = np.random.default_rng(seed)
    xyz, attributes, times = point_frame(count)
    for axis in ('x', 'y', 'z'):
        xyz[axis] = rng.uniform(-50.0, 50.0, count)
    attributes['amplitude'] = rng.uniform(0.0, 40.0, count)
    attributes['reflectance'] = rng.uniform(-20.0, 5.0, count)
    attributes['deviation'] = rng.integers(0, 100, count)
    attributes['flags'] = rng.integers(0, 1 << 10, count)
    times[:] = np.arange(count, dtype=TIME_DTYPE) * 10_000

    return [
        (xyz[start:start + frame_size],
         attributes[start:start + frame_size],
         times[start:start + frame_size])
        for start in range(0, count, frame_size)
    ]


def synthetic_inclinations(count: int, period: float,
                           roll: float = -8.44, pitch: float = -0.98) -> List[Frame]:
    """Generate one frame of slowly drifting inclination samples."""
    records = np.zeros(count, dtype=INCLINATION_DTYPE)
    steps = np.arange(count)
    records['time'] = period * (steps + 1)
    records['roll'] = roll - 0.0003 * steps
    records['pitch'] = pitch - 0.0007 * steps
    return [(records,)]

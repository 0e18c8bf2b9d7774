"""
Inclination stream engine over the scanlib wrapper library.

The wrapper dispatches one decoder buffer per ``stream_read`` call and hands
back every inclination found in it. This module slices those buffers into
batches of the requested size so inclination streams follow the same read
contract as point streams.
"""

import ctypes
import logging
from typing import Optional, Sequence, Tuple

import numpy as np

from .base import ScanEngine, Rangegate, INCLINATION_DTYPE
from .scanifc import load_library
from ..config import SCANLIB_LIBRARY_NAME, SCANLIB_LIBRARY_ENV

logger = logging.getLogger(__name__)

# The wrapper prints failures to stderr and keeps no message to query
LAST_ERROR_UNAVAILABLE = -1


class _InclinationCursor:
    """Wrapper stream pointer plus the undelivered tail of its last buffer."""

    def __init__(self, stream: ctypes.c_void_p):
        self.stream = stream
        self.frame = np.zeros(0, dtype=INCLINATION_DTYPE)
        self.offset = 0

    @property
    def remaining(self) -> int:
        return len(self.frame) - self.offset


class ScanlibEngine(ScanEngine):
    """Inclination engine backed by the scanlib C++ wrapper."""

    def __init__(self, library: ctypes.CDLL):
        self._lib = library
        lib = self._lib
        lib.stream_new.argtypes = [
            ctypes.c_char_p, ctypes.c_int32, ctypes.POINTER(ctypes.c_void_p)]
        lib.stream_new.restype = ctypes.c_int32
        lib.stream_read.argtypes = [
            ctypes.c_void_p,
            ctypes.POINTER(ctypes.c_void_p),
            ctypes.POINTER(ctypes.c_size_t),
            ctypes.POINTER(ctypes.c_int32),
        ]
        lib.stream_read.restype = ctypes.c_int32
        lib.stream_del.argtypes = [ctypes.c_void_p]
        lib.stream_del.restype = ctypes.c_int32

    @classmethod
    def load(cls) -> 'ScanlibEngine':
        """Load the wrapper library from the environment or the system path."""
        return cls(load_library(SCANLIB_LIBRARY_NAME, SCANLIB_LIBRARY_ENV))

    def open(self, uri: str, sync_to_pps: bool,
             log_path: Optional[str] = None,
             rangegates: Sequence[Rangegate] = ()) -> Tuple[int, Optional[_InclinationCursor]]:
        if log_path is not None:
            logger.warning(f"Inclination streams do not support logging, ignoring {log_path}")
        if rangegates:
            logger.warning("Inclination streams do not support range gates, ignoring them")
        stream = ctypes.c_void_p()
        status = self._lib.stream_new(
            uri.encode('utf-8'), 1 if sync_to_pps else 0, ctypes.byref(stream))
        if status != 0:
            return status, None
        return 0, _InclinationCursor(stream)

    def _next_frame(self, cursor: _InclinationCursor) -> Tuple[int, Optional[np.ndarray]]:
        """
        Dispatch the next decoder buffer.

        Returns:
            Tuple of (status, inclinations); inclinations is None at end of input
        """
        pointer = ctypes.c_void_p()
        length = ctypes.c_size_t(0)
        end_of_input = ctypes.c_int32(0)
        status = self._lib.stream_read(
            cursor.stream, ctypes.byref(pointer), ctypes.byref(length),
            ctypes.byref(end_of_input))
        if status != 0:
            return status, None
        if end_of_input.value:
            return 0, None
        if not length.value or not pointer.value:
            return 0, np.zeros(0, dtype=INCLINATION_DTYPE)

        size = length.value * INCLINATION_DTYPE.itemsize
        raw = (ctypes.c_char * size).from_address(pointer.value)
        # The wrapper reuses its storage on the next read
        return 0, np.frombuffer(raw, dtype=INCLINATION_DTYPE).copy()

    def read(self, handle: _InclinationCursor,
             buffers: Sequence[np.ndarray]) -> Tuple[int, int, bool]:
        (out,) = buffers
        if handle.remaining == 0:
            status, frame = self._next_frame(handle)
            if status != 0:
                return status, 0, False
            if frame is None:
                return 0, 0, False
            if len(frame) == 0:
                return 0, 0, True
            handle.frame = frame
            handle.offset = 0

        take = min(len(out), handle.remaining)
        out[:take] = handle.frame[handle.offset:handle.offset + take]
        handle.offset += take
        return 0, take, handle.remaining == 0

    def close(self, handle: _InclinationCursor) -> int:
        return self._lib.stream_del(handle.stream)

    def last_error(self) -> Tuple[int, str]:
        return LAST_ERROR_UNAVAILABLE, ''

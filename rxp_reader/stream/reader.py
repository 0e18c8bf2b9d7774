"""
Batch readers: one engine read per call, decoded into typed records.
"""

import logging
import weakref
from typing import Any, List, Optional, Sequence

import numpy as np

from ..engine.base import (
    ScanEngine,
    allocate_point_buffers,
    allocate_inclination_buffers
)
from ..errors import EngineError, ResourceError
from .records import Point, Inclination, decode_point, decode_inclination

logger = logging.getLogger(__name__)


def _release(engine: ScanEngine, handle: Any):
    """Close an engine handle. Runs at most once per handle."""
    status = engine.close(handle)
    if status != 0:
        logger.warning(f"Engine close returned status {status}")
    else:
        logger.debug("Stream handle released")


class BatchReader:
    """
    Owns one engine handle and reads bounded batches from it.

    The handle is released exactly once: by ``close()``, or when the reader
    is garbage collected, or at interpreter exit, whichever comes first.
    """

    def __init__(self, engine: ScanEngine, handle: Any):
        self._engine = engine
        self._handle = handle
        self._finalizer = weakref.finalize(self, _release, engine, handle)

    @property
    def closed(self) -> bool:
        """Check if the handle has been released."""
        return not self._finalizer.alive

    def read_batch(self, want: int) -> Optional[List]:
        """
        Read up to ``want`` records.

        Args:
            want: Number of records requested from the engine

        Returns:
            Decoded records, possibly empty when the engine only signalled an
            end of frame, or None at end of stream

        Raises:
            EngineError: If the engine read fails
            ResourceError: If the handle was already released
        """
        if self.closed:
            raise ResourceError("read from a released stream handle")

        buffers = self._allocate(want)
        status, got, end_of_frame = self._engine.read(self._handle, buffers)
        if status != 0:
            raise EngineError.from_engine(self._engine, status)

        if got == 0 and not end_of_frame:
            logger.debug("End of stream")
            return None

        if got > want:
            logger.warning(f"Engine reported {got} records for a batch of {want}, keeping {want}")
            got = want
        logger.debug(f"Read {got} records (end_of_frame={end_of_frame})")
        return self._decode(buffers, got)

    def close(self):
        """Release the engine handle. Later calls do nothing."""
        self._finalizer()

    def _allocate(self, want: int) -> Sequence[np.ndarray]:
        raise NotImplementedError

    def _decode(self, buffers: Sequence[np.ndarray], got: int) -> List:
        raise NotImplementedError


class PointBatchReader(BatchReader):
    """Batch reader for point streams."""

    def _allocate(self, want: int) -> Sequence[np.ndarray]:
        return allocate_point_buffers(want)

    def _decode(self, buffers: Sequence[np.ndarray], got: int) -> List[Point]:
        xyz, attributes, times = buffers
        return [
            decode_point(p, a, t)
            for p, a, t in zip(xyz[:got].tolist(),
                               attributes[:got].tolist(),
                               times[:got].tolist())
        ]


class InclinationBatchReader(BatchReader):
    """Batch reader for inclination streams."""

    def _allocate(self, want: int) -> Sequence[np.ndarray]:
        return allocate_inclination_buffers(want)

    def _decode(self, buffers: Sequence[np.ndarray], got: int) -> List[Inclination]:
        (records,) = buffers
        return [decode_inclination(r) for r in records[:got].tolist()]

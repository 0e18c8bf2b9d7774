"""
Buffered, single-pass record streams.
"""

import logging
from collections import deque
from typing import List, Optional

import numpy as np

from .reader import BatchReader
from .records import points_to_array

logger = logging.getLogger(__name__)


class BufferedStream:
    """
    Lazy iterator over the records of one open engine stream.

    Records are delivered in engine order. The buffer holds at most one
    batch and is only refilled once empty. A failed read raises
    ``EngineError`` and leaves the stream open, so iteration may be retried
    with another ``next()``. End of stream releases the handle; the stream
    then stays exhausted.
    """

    def __init__(self, reader: BatchReader, batch_size: int):
        """
        Args:
            reader: Batch reader owning the engine handle
            batch_size: Records requested per engine read
        """
        self._reader: Optional[BatchReader] = reader
        self._batch_size = batch_size
        self._buffer = deque()

    @property
    def batch_size(self) -> int:
        return self._batch_size

    @property
    def closed(self) -> bool:
        """Check if the stream is exhausted or closed."""
        return self._reader is None

    def __iter__(self):
        return self

    def __next__(self):
        while not self._buffer:
            if self._reader is None:
                raise StopIteration
            batch = self._reader.read_batch(self._batch_size)
            if batch is None:
                self.close()
                raise StopIteration
            self._buffer.extend(batch)
        return self._buffer.popleft()

    def read_all(self) -> List:
        """Consume the remaining records into a list."""
        return list(self)

    def close(self):
        """
        Release the engine handle and drop any unread records.

        Safe to call more than once.
        """
        reader, self._reader = self._reader, None
        self._buffer.clear()
        if reader is not None:
            reader.close()
            logger.info(f"{type(self).__name__} closed")

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
        return False


class PointStream(BufferedStream):
    """Stream of decoded points."""

    def to_numpy(self) -> np.ndarray:
        """
        Consume the remaining points into a numpy array.

        Returns:
            Numpy array of shape (N, 3) with x, y, z columns
        """
        return points_to_array(self.read_all())


class InclinationStream(BufferedStream):
    """Stream of decoded inclination samples."""

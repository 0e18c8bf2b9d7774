"""
Interface of the native scan engine and the raw record layouts it fills.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence, Tuple

import numpy as np

# Raw layouts, matching the engine's C structs field for field
XYZ32_DTYPE = np.dtype([('x', '<f4'), ('y', '<f4'), ('z', '<f4')])
ATTRIBUTES_DTYPE = np.dtype([
    ('amplitude', '<f4'),
    ('reflectance', '<f4'),
    ('deviation', '<u2'),
    ('flags', '<u2'),
])
TIME_DTYPE = np.dtype('<u8')
INCLINATION_DTYPE = np.dtype([('time', '<f8'), ('roll', '<f4'), ('pitch', '<f4')])

# (zone, near, far) range gate override, distances in meters
Rangegate = Tuple[int, float, float]


def allocate_point_buffers(want: int) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Allocate ``want`` slots for each raw point array (xyz, attributes, time)."""
    return (
        np.zeros(want, dtype=XYZ32_DTYPE),
        np.zeros(want, dtype=ATTRIBUTES_DTYPE),
        np.zeros(want, dtype=TIME_DTYPE),
    )


def allocate_inclination_buffers(want: int) -> Tuple[np.ndarray]:
    """Allocate ``want`` slots for raw inclination records."""
    return (np.zeros(want, dtype=INCLINATION_DTYPE),)


class ScanEngine(ABC):
    """
    Opaque engine that decodes the proprietary scan stream.

    Every call reports a status code, zero meaning success. Failed calls
    leave a message behind that ``last_error`` retrieves.
    """

    @abstractmethod
    def open(self, uri: str, sync_to_pps: bool,
             log_path: Optional[str] = None,
             rangegates: Sequence[Rangegate] = ()) -> Tuple[int, Any]:
        """
        Open a stream.

        Args:
            uri: Serialized source locator (``file:...`` or ``rdtp://...``)
            sync_to_pps: Only deliver records synchronized to the PPS signal
            log_path: Optional file receiving a copy of the raw packages
            rangegates: Range gate overrides applied before the first read

        Returns:
            Tuple of (status, handle); handle is None unless status is zero
        """

    @abstractmethod
    def read(self, handle: Any, buffers: Sequence[np.ndarray]) -> Tuple[int, int, bool]:
        """
        Read one batch into ``buffers``.

        Each buffer holds the same number of slots, which is the number of
        records requested.

        Returns:
            Tuple of (status, got, end_of_frame)
        """

    @abstractmethod
    def close(self, handle: Any) -> int:
        """Release a handle. Returns the status of the call."""

    @abstractmethod
    def last_error(self) -> Tuple[int, str]:
        """Return (status, message) for the most recent failed call."""

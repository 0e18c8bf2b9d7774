"""
RiVLib scanifc point stream engine, bound with ctypes.
"""

import ctypes
import ctypes.util
import logging
import os
from typing import Optional, Sequence, Tuple

import numpy as np

from .base import ScanEngine, Rangegate
from ..config import (
    SCANIFC_LIBRARY_NAME,
    SCANIFC_LIBRARY_ENV,
    LAST_ERROR_BUFFER_SIZE,
    DEMULTIPLEXER_SELECTIONS,
    DEMULTIPLEXER_CLASSES
)
from ..errors import EngineError, EngineNotFoundError

logger = logging.getLogger(__name__)


def load_library(name: str, env_var: str) -> ctypes.CDLL:
    """
    Load a native library, preferring an explicit path from the environment.

    Args:
        name: Library name for ctypes.util.find_library
        env_var: Environment variable that may hold a full path

    Returns:
        The loaded library

    Raises:
        EngineNotFoundError: If the library cannot be found or loaded
    """
    path = os.environ.get(env_var) or ctypes.util.find_library(name)
    if not path:
        raise EngineNotFoundError(
            f"{name} library not found. Install RiVLib or set {env_var}")
    try:
        library = ctypes.CDLL(path)
    except OSError as e:
        raise EngineNotFoundError(f"Failed to load {path}: {e}") from e
    logger.info(f"Loaded {name} from {path}")
    return library


def _bind(lib: ctypes.CDLL) -> None:
    """Declare the signatures of the scanifc entry points."""
    c_int = ctypes.c_int
    handle = ctypes.c_void_p

    lib.scanifc_point3dstream_open.argtypes = [
        ctypes.c_char_p, ctypes.c_int32, ctypes.POINTER(handle)]
    lib.scanifc_point3dstream_open.restype = c_int

    lib.scanifc_point3dstream_add_demultiplexer.argtypes = [
        handle, ctypes.c_char_p, ctypes.c_char_p, ctypes.c_char_p]
    lib.scanifc_point3dstream_add_demultiplexer.restype = c_int

    lib.scanifc_point3dstream_set_rangegate.argtypes = [
        handle, ctypes.c_uint16, ctypes.c_float, ctypes.c_float]
    lib.scanifc_point3dstream_set_rangegate.restype = c_int

    lib.scanifc_point3dstream_read.argtypes = [
        handle,
        ctypes.c_uint32,
        ctypes.c_void_p,  # scanifc_xyz32_t[want]
        ctypes.c_void_p,  # scanifc_attributes_t[want]
        ctypes.c_void_p,  # uint64_t[want]
        ctypes.POINTER(ctypes.c_uint32),
        ctypes.POINTER(ctypes.c_int32),
    ]
    lib.scanifc_point3dstream_read.restype = c_int

    lib.scanifc_point3dstream_close.argtypes = [handle]
    lib.scanifc_point3dstream_close.restype = c_int

    lib.scanifc_get_last_error.argtypes = [
        ctypes.c_char_p, ctypes.c_uint32, ctypes.POINTER(ctypes.c_uint32)]
    lib.scanifc_get_last_error.restype = c_int

    lib.scanifc_get_library_version.argtypes = [
        ctypes.POINTER(ctypes.c_uint16)] * 3
    lib.scanifc_get_library_version.restype = c_int

    lib.scanifc_get_library_info.argtypes = [
        ctypes.POINTER(ctypes.c_char_p)] * 2
    lib.scanifc_get_library_info.restype = c_int


class ScanifcEngine(ScanEngine):
    """
    Point stream engine backed by the scanifc C library.

    Handles are ``ctypes.c_void_p`` values returned by
    ``scanifc_point3dstream_open``.
    """

    def __init__(self, library: ctypes.CDLL):
        self._lib = library
        _bind(self._lib)

    @classmethod
    def load(cls) -> 'ScanifcEngine':
        """Load the scanifc library from the environment or the system path."""
        return cls(load_library(SCANIFC_LIBRARY_NAME, SCANIFC_LIBRARY_ENV))

    def open(self, uri: str, sync_to_pps: bool,
             log_path: Optional[str] = None,
             rangegates: Sequence[Rangegate] = ()) -> Tuple[int, Optional[ctypes.c_void_p]]:
        handle = ctypes.c_void_p()
        status = self._lib.scanifc_point3dstream_open(
            uri.encode('utf-8'), 1 if sync_to_pps else 0, ctypes.byref(handle))
        if status != 0:
            return status, None

        status = self._configure(handle, log_path, rangegates)
        if status != 0:
            # Never hand out a half-configured stream
            self._lib.scanifc_point3dstream_close(handle)
            return status, None

        return 0, handle

    def _configure(self, handle: ctypes.c_void_p, log_path: Optional[str],
                   rangegates: Sequence[Rangegate]) -> int:
        if log_path is not None:
            status = self._lib.scanifc_point3dstream_add_demultiplexer(
                handle,
                os.fsencode(log_path),
                DEMULTIPLEXER_SELECTIONS.encode('ascii'),
                DEMULTIPLEXER_CLASSES.encode('ascii'))
            if status != 0:
                return status

        for zone, near, far in rangegates:
            status = self._lib.scanifc_point3dstream_set_rangegate(handle, zone, near, far)
            if status != 0:
                return status
            logger.debug(f"Range gate {zone} set to {near}..{far} m")
        return 0

    def read(self, handle: ctypes.c_void_p,
             buffers: Sequence[np.ndarray]) -> Tuple[int, int, bool]:
        xyz, attributes, times = buffers
        got = ctypes.c_uint32(0)
        end_of_frame = ctypes.c_int32(0)
        status = self._lib.scanifc_point3dstream_read(
            handle,
            len(xyz),
            xyz.ctypes.data_as(ctypes.c_void_p),
            attributes.ctypes.data_as(ctypes.c_void_p),
            times.ctypes.data_as(ctypes.c_void_p),
            ctypes.byref(got),
            ctypes.byref(end_of_frame))
        return status, got.value, end_of_frame.value != 0

    def close(self, handle: ctypes.c_void_p) -> int:
        return self._lib.scanifc_point3dstream_close(handle)

    def last_error(self) -> Tuple[int, str]:
        buffer = ctypes.create_string_buffer(LAST_ERROR_BUFFER_SIZE)
        size = ctypes.c_uint32(0)
        status = self._lib.scanifc_get_last_error(
            buffer, LAST_ERROR_BUFFER_SIZE, ctypes.byref(size))
        if status != 0:
            return status, ''
        length = min(size.value, LAST_ERROR_BUFFER_SIZE)
        message = buffer.raw[:length].split(b'\0', 1)[0]
        return 0, message.decode('utf-8', errors='replace')

    def library_version(self) -> Tuple[int, int, int]:
        """
        Get the scanifc library version.

        Returns:
            Tuple of (major, minor, build)
        """
        major, minor, build = ctypes.c_uint16(), ctypes.c_uint16(), ctypes.c_uint16()
        status = self._lib.scanifc_get_library_version(
            ctypes.byref(major), ctypes.byref(minor), ctypes.byref(build))
        if status != 0:
            raise EngineError.from_engine(self, status)
        return major.value, minor.value, build.value

    def library_info(self) -> Tuple[str, str]:
        """
        Get build traceability information.

        Returns:
            Tuple of (build_version, build_tag)
        """
        version, tag = ctypes.c_char_p(), ctypes.c_char_p()
        status = self._lib.scanifc_get_library_info(
            ctypes.byref(version), ctypes.byref(tag))
        if status != 0:
            raise EngineError.from_engine(self, status)
        return (
            (version.value or b'').decode('utf-8', errors='replace'),
            (tag.value or b'').decode('utf-8', errors='replace'),
        )

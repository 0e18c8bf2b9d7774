"""
Exception types raised by the rxp stream reader.
"""

import logging
from typing import Optional

logger = logging.getLogger(__name__)


class RxpReaderError(Exception):
    """Base class for all reader errors."""


class ConfigurationError(RxpReaderError):
    """The stream configuration cannot be handed to the engine."""


class InvalidLocatorError(ConfigurationError, ValueError):
    """A locator or log path contains an embedded NUL byte."""


class EngineNotFoundError(RxpReaderError):
    """The native engine library could not be located or loaded."""


class ResourceError(RxpReaderError):
    """A stream handle was used after it was released."""


class EngineError(RxpReaderError):
    """
    A nonzero status returned by an engine call.

    The message comes from the engine's last-error query. When that query
    fails too, ``message`` is None and ``last_error_status`` holds the
    status of the failed query.
    """

    def __init__(self, code: int, message: Optional[str] = None,
                 last_error_status: int = 0):
        self.code = code
        self.message = message
        self.last_error_status = last_error_status
        super().__init__(code, message)

    def __str__(self) -> str:
        if self.message is None:
            return (f"scanifc error, code {self.code} "
                    f"(last error unavailable, status {self.last_error_status})")
        return f"scanifc error, code {self.code}: {self.message}"

    @classmethod
    def from_engine(cls, engine, code: int) -> 'EngineError':
        """
        Build an error for a failed engine call.

        Args:
            engine: The engine whose call returned ``code``
            code: Nonzero status of the failed call

        Returns:
            EngineError carrying the engine's last error message
        """
        status, message = engine.last_error()
        if status != 0:
            logger.warning(f"Last error query failed with status {status} "
                           f"while reporting code {code}")
            return cls(code, None, status)
        return cls(code, message)

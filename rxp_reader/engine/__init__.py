"""
Scan engine interface, native bindings and the simulated engine.
"""

from .base import ScanEngine
from .scanifc import ScanifcEngine
from .scanlib import ScanlibEngine
from .simulated import SimulatedEngine

__all__ = ['ScanEngine', 'ScanifcEngine', 'ScanlibEngine', 'SimulatedEngine']

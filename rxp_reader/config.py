"""
Configuration for the rxp stream reader.
Native library lookup, stream defaults and engine constants.
"""

# =============================================================================
# Native Libraries
# =============================================================================

# Names passed to ctypes.util.find_library
SCANIFC_LIBRARY_NAME = 'scanifc-mt'        # Point stream engine (RiVLib scanifc)
SCANLIB_LIBRARY_NAME = 'scanlib_wrapper'   # Inclination wrapper around scanlib

# Environment variables holding an explicit library path
SCANIFC_LIBRARY_ENV = 'RXP_SCANIFC_LIBRARY'
SCANLIB_LIBRARY_ENV = 'RXP_SCANLIB_LIBRARY'

# =============================================================================
# Stream Defaults
# =============================================================================

DEFAULT_BATCH_SIZE = 1024   # Records requested per engine read
DEFAULT_SYNC_TO_PPS = True  # Keep only points synchronized to the PPS signal

# =============================================================================
# Source Locators
# =============================================================================

FILE_URI_PREFIX = 'file:'
NETWORK_URI_PREFIX = 'rdtp://'

# =============================================================================
# Engine Constants
# =============================================================================

LAST_ERROR_BUFFER_SIZE = 512  # Bytes reserved for scanifc_get_last_error
TICK_DURATION = 1e-9          # Seconds per raw point timestamp tick

# Package selection for the side-channel log (scanifc demultiplexer)
DEMULTIPLEXER_SELECTIONS = ''
DEMULTIPLEXER_CLASSES = 'all'

# =============================================================================
# Simulation
# =============================================================================

SIMULATED_POINT_COUNT = 24390    # Points per simulated scan
SIMULATED_FRAME_SIZE = 4096      # Points per simulated frame
SIMULATED_INCLINATION_COUNT = 36
SIMULATED_INCLINATION_PERIOD = 1.9357  # Seconds between inclination samples

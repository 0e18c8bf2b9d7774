#!/usr/bin/env python3
"""
rxp-reader - Command Line Entry Point

Inspect RIEGL rxp scan streams:
- count the points of a file or a live rdtp stream
- dump inclination samples as CSV
- report the versions of this package and the scanifc library

Usage:
    python -m rxp_reader.main [options] <command> <stream>

Options:
    --simulate      Use the simulated engine (no RiVLib required)
    --network       Treat <stream> as an rdtp address instead of a path
    --batch-size N  Records requested per engine read
    --debug         Enable debug logging
    --version       Print version information and exit
"""

import argparse
import logging
import sys
from typing import List, Optional

from . import __version__
from .config import (
    DEFAULT_BATCH_SIZE,
    SIMULATED_POINT_COUNT,
    SIMULATED_FRAME_SIZE,
    SIMULATED_INCLINATION_COUNT,
    SIMULATED_INCLINATION_PERIOD
)
from .engine import ScanEngine, ScanifcEngine, SimulatedEngine
from .engine.simulated import synthetic_points, synthetic_inclinations
from .errors import RxpReaderError
from .stream import StreamBuilder

# Configure logging; stdout carries command output
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stderr)
    ]
)

logger = logging.getLogger(__name__)


def _parse_bool(value: str) -> bool:
    v = value.strip().lower()
    if v in ('1', 'true', 'yes', 'on'):
        return True
    if v in ('0', 'false', 'no', 'off'):
        return False
    raise argparse.ArgumentTypeError(f"expected true or false, got {value!r}")


def parse_args(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog='rxp-reader',
        description='Get information about an rxp data stream',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Count points, keeping only PPS-synchronized ones
    rxp-reader info data/scan.rxp

    # Count points with and without PPS synchronization
    rxp-reader count data/scan.rxp

    # Dump inclinations as CSV
    rxp-reader inclinations data/scan.rxp > inclinations.csv

    # Try it without RiVLib
    rxp-reader --simulate info scan.rxp
        """
    )

    parser.add_argument(
        '--version',
        action='store_true',
        help='Print package and scanifc library versions'
    )

    parser.add_argument(
        '--simulate',
        action='store_true',
        help='Use the simulated engine with synthetic data'
    )

    parser.add_argument(
        '--network',
        action='store_true',
        help='Treat the stream argument as an rdtp address'
    )

    parser.add_argument(
        '--batch-size',
        type=int,
        default=DEFAULT_BATCH_SIZE,
        help=f'Records requested per engine read (default: {DEFAULT_BATCH_SIZE})'
    )

    parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug mode with verbose logging'
    )

    commands = parser.add_subparsers(dest='command')

    info = commands.add_parser('info', help='Print the number of points')
    info.add_argument('stream')
    info.add_argument(
        '--sync-to-pps',
        type=_parse_bool,
        default=True,
        metavar='BOOL',
        help='Keep only points synced to a PPS signal (default: true)'
    )

    count = commands.add_parser('count', help='Count points with and without sync-to-pps')
    count.add_argument('stream')

    inclinations = commands.add_parser('inclinations', help='Print inclinations as CSV')
    inclinations.add_argument('stream')

    args = parser.parse_args(argv)
    if not args.version and args.command is None:
        parser.error('a command is required')
    return args


def make_builder(args, inclinations: bool = False) -> StreamBuilder:
    """
    Create a stream builder for the command line arguments.

    Args:
        args: Parsed arguments
        inclinations: Prepare simulated data for an inclination stream

    Returns:
        StreamBuilder for ``args.stream``
    """
    engine: Optional[ScanEngine] = None
    if args.simulate:
        engine = SimulatedEngine()

    if args.network:
        builder = StreamBuilder.from_network(args.stream, engine)
    else:
        builder = StreamBuilder.from_path(args.stream, engine)

    if args.simulate:
        uri = builder.config.locator.to_uri()
        if inclinations:
            engine.add_source(uri, synthetic_inclinations(
                SIMULATED_INCLINATION_COUNT, SIMULATED_INCLINATION_PERIOD))
        else:
            engine.add_source(uri, synthetic_points(
                SIMULATED_POINT_COUNT, SIMULATED_FRAME_SIZE))

    return builder.batch_size(args.batch_size)


def count_points(builder: StreamBuilder) -> int:
    """Count the points of a stream without keeping them."""
    with builder.open() as points:
        return sum(1 for _ in points)


def print_version(args):
    """Print package and scanifc library version information."""
    print(f"rxp-reader version: {__version__}")
    if args.simulate:
        print("scanifc library version: simulated")
        return
    engine = ScanifcEngine.load()
    major, minor, build = engine.library_version()
    print(f"scanifc library version: {major}.{minor}.{build}")
    build_version, build_tag = engine.library_info()
    print(f"scanifc build version: {build_version}")
    print(f"scanifc build tag: {build_tag}")


def run(args):
    """Run the selected command."""
    if args.version:
        print_version(args)
        return

    if args.command == 'info':
        builder = make_builder(args).sync_to_external_clock(args.sync_to_pps)
        print(f"number of points: {count_points(builder)}")

    elif args.command == 'count':
        builder = make_builder(args)
        with_sync = count_points(builder.sync_to_external_clock(True))
        print(f"With sync_to_pps: {with_sync}")
        without_sync = count_points(builder.sync_to_external_clock(False))
        print(f"Without sync_to_pps: {without_sync}")

    elif args.command == 'inclinations':
        builder = make_builder(args, inclinations=True)
        print("Time,Roll,Pitch")
        with builder.open_inclinations() as inclinations:
            for inclination in inclinations:
                print(f"{inclination.time},{inclination.roll:.3f},{inclination.pitch:.3f}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    # Configure debug logging if requested
    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.debug("Debug logging enabled")

    if args.simulate:
        logger.warning("Running in simulation mode - synthetic data, no RiVLib")

    try:
        run(args)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 1
    except (RxpReaderError, ValueError) as e:
        logger.error(f"Command failed: {e}")
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())

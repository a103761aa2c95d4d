#!/usr/bin/env python3
"""
pds-tools: MODIS PDS capture statistics and merging

Main entry point. Two commands:
1. info  - integrity and coverage statistics of one capture
2. merge - merge overlapping captures into one ordered, duplicate-free
           capture for one channel and time window

Usage:
    # Statistics of a capture
    pds-tools info P0420064AAAAAAAAAAAAAA09083101500001.PDS

    # Merge two passes, one hour, APID 64
    pds-tools merge 2009/03/24,10:00:00 2009/03/24,11:00:00 64 \\
        pass1.pds pass2.pds merged.pds

    # Open time bounds
    pds-tools merge - - 64 pass1.pds pass2.pds merged.pds

Exit status:
    0  success
    5  I/O error (read failure, truncated or empty capture)
    10 resource error (file cannot be opened or created, oversize frame)
    15 unexpected decode error
    20 usage error
"""

import argparse
import logging
import sys
from contextlib import ExitStack
from enum import IntEnum
from pathlib import Path
from typing import Any, Dict, List, Optional
import toml

# Set up logging before imports that use it
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger('pds-tools')

from . import __version__
from .codec.calendar import parse_time_window
from .engine.capture_stats import CaptureAnalyzer
from .engine.packet_reader import open_capture
from .engine.stream_merger import TemporalStreamMerger
from .errors import (
    NoPacketsError,
    PDSError,
    ResourceError,
    TruncatedReadError,
    UsageError,
)
from .output.atomic_writer import AtomicFileWriter, write_text_atomic
from .output.stats_report import format_capture_report


class ExitCode(IntEnum):
    """Process exit status."""
    SUCCESS = 0
    IO_ERROR = 5
    RESOURCE_ERROR = 10
    DECODE_ERROR = 15
    USAGE_ERROR = 20


DEFAULT_CONFIG: Dict[str, Any] = {
    'general': {
        'log_level': 'INFO',
    },
    'instrument': {
        'apid_min': 64,
        'apid_max': 127,
        'max_payload_size': 100000,
    },
}


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from TOML file, filling in defaults for missing keys."""
    config = {section: dict(values) for section, values in DEFAULT_CONFIG.items()}

    if config_path:
        if Path(config_path).exists():
            with open(config_path, 'r') as f:
                loaded = toml.load(f)
            for section, values in loaded.items():
                if isinstance(values, dict):
                    config.setdefault(section, {}).update(values)
                else:
                    config[section] = values
        else:
            logger.warning(f"Config file {config_path} not found, using defaults")

    return config


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports bad arguments as UsageError instead of exiting."""

    def error(self, message):
        raise UsageError(message)


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog='pds-tools',
        description='pds-tools: MODIS PDS capture statistics and merging',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    pds-tools info capture.pds
    pds-tools info capture.pds --json stats.json
    pds-tools merge 2009/03/24,10:00:00 2009/03/24,11:00:00 64 a.pds b.pds out.pds
    pds-tools merge - - 64 a.pds b.pds out.pds
    pds-tools merge --json merge.json - - 64 a.pds b.pds out.pds
        """
    )
    parser.add_argument(
        '--config', '-c',
        help='Path to TOML configuration file'
    )
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (overrides config)'
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'pds-tools V{__version__}'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    info = subparsers.add_parser('info', help='Statistics of one capture')
    info.add_argument('input', help='Capture file')
    info.add_argument('--json', help='Also write the statistics as JSON to this file')

    merge = subparsers.add_parser('merge', help='Merge captures of one channel')
    merge.add_argument('start', help='Start time YYYY/MM/DD,hh:mm:ss or -')
    merge.add_argument('end', help='End time YYYY/MM/DD,hh:mm:ss or -')
    merge.add_argument('apid', help='Channel id (APID)')
    merge.add_argument('inputs', nargs='+', help='Input captures, in priority order')
    merge.add_argument('output', help='Output capture')
    merge.add_argument('--json', help='Also write the merge counters as JSON to this file')

    return parser


def parse_apid(text: str, config: Dict[str, Any]) -> int:
    """Channel id from the command line, restricted to the instrument range."""
    try:
        apid = int(text)
    except ValueError:
        raise UsageError(f"invalid APID '{text}'")

    apid_min = config['instrument']['apid_min']
    apid_max = config['instrument']['apid_max']
    if not apid_min <= apid <= apid_max:
        raise UsageError(f"only APID {apid_min} to {apid_max} supported")
    return apid


def run_info(args: argparse.Namespace, config: Dict[str, Any]) -> ExitCode:
    """Print statistics for one capture."""
    instrument = config['instrument']
    analyzer = CaptureAnalyzer(range(instrument['apid_min'], instrument['apid_max'] + 1))

    with open_capture(args.input, instrument['max_payload_size']) as reader:
        stats = analyzer.analyze(reader)

    print(format_capture_report(stats))

    if args.json:
        write_text_atomic(args.json, stats.to_json())
        logger.info(f"Statistics written to {args.json}")

    return ExitCode.IO_ERROR if stats.truncated else ExitCode.SUCCESS


def run_merge(args: argparse.Namespace, config: Dict[str, Any]) -> ExitCode:
    """Merge captures into one output capture."""
    window = parse_time_window(args.start, args.end)
    apid = parse_apid(args.apid, config)
    max_payload_size = config['instrument']['max_payload_size']

    logger.info("=" * 60)
    logger.info("MERGE")
    logger.info(f"  Inputs: {len(args.inputs)}")
    logger.info(f"  Output: {args.output}")
    logger.info(f"  APID: {apid}")
    logger.info(f"  Window: {window.start} - {window.end} (day, ms)")
    logger.info("=" * 60)

    with ExitStack() as stack:
        readers = [
            stack.enter_context(open_capture(path, max_payload_size))
            for path in args.inputs
        ]
        merger = TemporalStreamMerger(readers, apid=apid, window=window)
        with AtomicFileWriter(args.output) as writer:
            result = merger.merge_into(writer)

    for source in result.sources:
        logger.info(
            f"  {source.name}: accepted {source.accepted}, rejected {source.rejected}, "
            f"resyncs {source.resyncs}"
        )

    if args.json:
        write_text_atomic(args.json, result.to_json())
        logger.info(f"Merge counters written to {args.json}")

    return ExitCode.SUCCESS


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()

    try:
        args = parser.parse_args(argv)
    except UsageError as e:
        parser.print_usage(sys.stderr)
        logger.error(f"usage error: {e}")
        return ExitCode.USAGE_ERROR

    config = load_config(args.config)
    level = args.log_level or config['general'].get('log_level', 'INFO')
    logging.getLogger().setLevel(getattr(logging, str(level).upper(), logging.INFO))

    logger.info(f"pds-tools V{__version__}")

    commands = {
        'info': run_info,
        'merge': run_merge,
    }

    try:
        return commands[args.command](args, config)
    except UsageError as e:
        parser.print_usage(sys.stderr)
        logger.error(f"usage error: {e}")
        return ExitCode.USAGE_ERROR
    except ResourceError as e:
        logger.error(str(e))
        return ExitCode.RESOURCE_ERROR
    except (TruncatedReadError, NoPacketsError) as e:
        logger.error(f"{e}: file might be corrupted")
        return ExitCode.IO_ERROR
    except OSError as e:
        logger.error(f"I/O error: {e}")
        return ExitCode.IO_ERROR
    except PDSError as e:
        logger.exception(f"Unexpected decode error: {e}")
        return ExitCode.DECODE_ERROR
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return ExitCode.DECODE_ERROR


if __name__ == '__main__':
    sys.exit(main())

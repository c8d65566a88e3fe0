"""
Command line entry point for the console samples.

Usage:
    python scripts/run_sample.py queries               # Pause after each step
    python scripts/run_sample.py ttl --no-pause        # Run straight through
    python scripts/run_sample.py indexing --uri mongodb://localhost:27017
    python scripts/run_sample.py partitioning --debug   # Verbose logging
"""

import argparse
import sys
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from docdb.common.config import load_settings
from docdb.common.database import DocumentClient
from docdb.common.logger import set_global_debug_mode, setup_logging

from . import SAMPLES, SAMPLES_DATABASE
from .console import SampleConsole, log_exception


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run a document database console sample"
    )
    parser.add_argument(
        "sample",
        choices=sorted(SAMPLES),
        help="Sample to run"
    )
    parser.add_argument(
        "--no-pause",
        action="store_true",
        help="Do not wait for the enter key between steps"
    )
    parser.add_argument(
        "--uri",
        default=None,
        help="Connection string (defaults to MONGODB_URI)"
    )
    parser.add_argument(
        "--database",
        default=SAMPLES_DATABASE,
        help=f"Database the sample works in (default: {SAMPLES_DATABASE})"
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Log level for driver and library messages"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging (same as DEBUG_MODE=true)"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Run the chosen sample; returns the process exit code."""
    args = build_parser().parse_args(argv)
    load_dotenv()
    if args.debug:
        set_global_debug_mode(True)
    setup_logging(args.log_level)

    overrides = {"mongodb_uri": args.uri} if args.uri else None
    try:
        settings = load_settings(overrides)
    except ValidationError as e:
        print(f"❌ Invalid configuration: {e}")
        return 2

    pause = not args.no_pause
    try:
        with DocumentClient(settings) as client:
            console = SampleConsole(client.database(args.database), pause=pause)
            SAMPLES[args.sample](console)
    except Exception as e:
        log_exception(e)
        return 1
    finally:
        print("End of demo.")

    return 0


if __name__ == "__main__":
    sys.exit(main())

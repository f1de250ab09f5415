"""
Session Splitter command line entry point.

Reads a Windows Security log export, splits it into one file per logon
session and records sessions without intermediate activity in a ledger.
"""

import argparse
import logging
import sys
from typing import List, Optional

from .config.session_config import ConfigurationError, SessionSplitterConfig, create_default_config
from .engine.performance_monitor import ProcessingPhase, RunMetrics
from .engine.session_engine import SessionEngine
from .integration.integration_logging import setup_logging
from .integration.record_loader import RecordLoader, RecordLoaderError
from .integration.session_writer import SessionWriter

logger = logging.getLogger("session_splitter.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="session-splitter",
        description="Split a Windows Security log export into per-logon-session files.",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument("input", help="Path to the exported log (delimited text)")
    parser.add_argument("-o", "--output", help="Output directory (overrides config)")
    parser.add_argument("-c", "--config", help="JSON or YAML configuration file")
    parser.add_argument("-w", "--workers", type=int,
                        help="Number of worker threads (overrides config)")
    parser.add_argument("--no-clean", action="store_true",
                        help="Keep files from a previous run in the output directory")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable debug logging")
    return parser


def load_config(args: argparse.Namespace) -> SessionSplitterConfig:
    """Load the configuration file (if any) and apply command line overrides."""
    if args.config:
        config = SessionSplitterConfig.load_from_file(args.config)
    else:
        config = create_default_config(args.output)
    if args.output:
        config.output.output_directory = args.output
    if args.workers is not None:
        config.max_workers = args.workers
    if args.no_clean:
        config.output.clean_output_directory = False
    config.validate_or_raise()
    return config


def run(config: SessionSplitterConfig, input_path: str) -> RunMetrics:
    """
    Load, split and write one export.

    Args:
        config: Validated configuration
        input_path: Path to the export

    Returns:
        RunMetrics for the run
    """
    metrics = RunMetrics()
    loader = RecordLoader(config.columns)
    engine = SessionEngine(config)
    writer = SessionWriter(config.output, delimiter=config.columns.delimiter)

    with metrics.time_phase(ProcessingPhase.TOTAL_EXECUTION):
        with metrics.time_phase(ProcessingPhase.LOADING):
            loaded = loader.load(input_path)
        metrics.records_loaded = len(loaded.records)
        metrics.malformed_epoch_records = loaded.malformed_epoch_count

        with metrics.time_phase(ProcessingPhase.WINDOWING):
            result = engine.run(loaded.records)
        metrics.identifiers_discovered = len(result.identifiers)
        metrics.identifiers_skipped = len(result.skipped_identifiers)

        with metrics.time_phase(ProcessingPhase.WRITING):
            summary = writer.write_all(result, loaded.fieldnames, preserve=[input_path])
        metrics.windows_emitted = len(summary.main_files)
        metrics.windows_ignored = len(summary.ignored_files)

    return metrics


def main(argv: Optional[List[str]] = None) -> int:
    """Command line entry point. Returns the process exit code."""
    args = build_parser().parse_args(argv)

    # Bootstrap logging before the config is read so config errors are reported
    setup_logging()

    try:
        config = load_config(args)
    except (ConfigurationError, FileNotFoundError) as e:
        logger.error(str(e))
        return 1

    level = logging.DEBUG if args.verbose else None
    setup_logging(config.logging, level=level)

    try:
        metrics = run(config, args.input)
    except (RecordLoaderError, FileNotFoundError) as e:
        logger.error(str(e))
        return 1
    except OSError as e:
        logger.error(f"Failed to write session files: {e}")
        return 1

    metrics.log_summary(logger)
    return 0


if __name__ == "__main__":
    sys.exit(main())

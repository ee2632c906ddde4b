from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from ckansync.app import run_catalog_sync
from ckansync.config import ConfigurationError, configure_logging, load_run_config

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="ckan-sync",
        description="Synchronise a CKAN catalog into the local item store",
    )
    parser.add_argument("config", help="Path to the TOML run configuration")
    parser.add_argument(
        "--verbose",
        action="store_true",
        default=None,
        help="Log per-package progress and the final statistics (overrides config)",
    )
    parser.add_argument(
        "--group-by-package",
        action="store_true",
        default=None,
        help="Store one item per package instead of one per resource (overrides config)",
    )
    return parser.parse_args(list(argv))


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)

    try:
        config = load_run_config(parsed_args.config).with_overrides(
            verbose=parsed_args.verbose,
            group_by_package=parsed_args.group_by_package,
        )
    except ConfigurationError:
        configure_logging()
        log.exception("Configuration error")
        sys.exit(1)

    configure_logging(verbose=config.sync.verbose)
    try:
        run_catalog_sync(config)
    except Exception:
        log.exception("Fatal error during sync")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()

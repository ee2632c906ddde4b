"""Shared logging helpers for ckan-sync."""

from __future__ import annotations

import logging


def configure_logging(
    *,
    verbose: bool = False,
    level: int | None = None,
    force: bool = False,
) -> None:
    """Initialise the root logger once with a terse CLI format.

    ``verbose`` selects INFO (per-package progress and the final statistics
    dump); otherwise only warnings and the final error log are shown. An
    explicit ``level`` wins over ``verbose``. Pass ``force=True`` to
    reconfigure during tests.
    """

    if level is None:
        level = logging.INFO if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))

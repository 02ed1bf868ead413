"""structlog setup for generator runs."""

from __future__ import annotations

import logging
import sys

import structlog


def configure_logging(*, debug: bool) -> None:
    """Route structlog output to stderr, at DEBUG when ``debug`` is set, WARNING otherwise.

    stdout stays reserved for the rendered document.
    """
    level = logging.DEBUG if debug else logging.WARNING
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )

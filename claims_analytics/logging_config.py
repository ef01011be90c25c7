"""Structured logging configuration for the command line tools.

Library modules log through the standard :mod:`logging` module; the CLI
routes those records and its own structlog events to stderr so stdout
stays free for JSON output.
"""

from __future__ import annotations

import logging
import sys

import structlog

logger = structlog.get_logger(__name__)


def configure_logging(level: str = "INFO", json_output: bool = False) -> None:
    """Configure stdlib logging and structlog for a CLI run.

    Parameters
    ----------
    level:
        Minimum level name (``DEBUG``, ``INFO``, ``WARNING`` ...).
    json_output:
        Render structlog events as JSON lines instead of console text.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    logging.basicConfig(
        level=numeric_level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        force=True,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=structlog.WriteLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )

    logger.debug("logging_configured", level=level.upper(), json_output=json_output)

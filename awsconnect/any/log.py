"""
Logging setup for awsconnect.

Modules take a named logger at import time with ``get_logger("awsconnect.<module>")``;
the command surface calls ``configure_logging`` once before doing any work.
Logs go to stderr so they never interleave with a remote session's stdout.
"""

import logging
import os
import sys

import structlog

DEFAULT_LEVEL = "WARNING"
LEVEL_ENV_VAR = "AWSCONNECT_LOG_LEVEL"


def configure_logging(level: str | None = None) -> None:
    """
    Configure stdlib logging and structlog.

    Args:
    ----
        level: Level name (e.g. "DEBUG"). Defaults to $AWSCONNECT_LOG_LEVEL, then WARNING.

    """
    level_name = (level or os.environ.get(LEVEL_ENV_VAR) or DEFAULT_LEVEL).upper()
    numeric_level = getattr(logging, level_name, logging.WARNING)

    # stdlib root logger first so structlog's filter_by_level sees the right level
    logging.basicConfig(level=numeric_level, format="%(message)s", stream=sys.stderr, force=True)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a named logger."""
    return structlog.get_logger(name)

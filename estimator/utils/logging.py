"""Structured logging setup for the BuildCost estimator.

Modules log through `structlog.get_logger()` with snake_case event names
and keyword context. `configure_logging()` installs the processor chain
once per process: ISO timestamps, log level, then either the console
renderer (local runs) or JSON lines (LOG_JSON=true).
"""

import logging
from typing import Optional

import structlog

from config.settings import settings


def configure_logging(level: Optional[str] = None, json_output: Optional[bool] = None) -> None:
    """Configure structlog for the process.

    Args:
        level: Minimum level name (defaults to settings.log_level)
        json_output: Render JSON lines instead of console output
            (defaults to settings.log_json)
    """
    level_name = (level or settings.log_level).upper()
    min_level = logging.getLevelName(level_name)
    if not isinstance(min_level, int):
        raise ValueError(f"Unknown log level: {level_name}")

    use_json = settings.log_json if json_output is None else json_output

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if use_json:
        # ConsoleRenderer formats exceptions itself
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(min_level),
        cache_logger_on_first_use=False,
    )

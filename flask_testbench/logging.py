"""
Structured logging for the testing harness.

The harness logs its own lifecycle (application created, capability hooks run,
application flushed) through structlog so the entries line up with the host
application's structured logs when both run in the same process. Output is a
pretty console rendering when ``APP_ENV`` is ``development`` and JSON lines
otherwise. The default level is WARNING so that a normal test run stays quiet;
set ``TESTBENCH_LOG_LEVEL=DEBUG`` to trace the lifecycle.
"""

import logging
import os
from typing import Optional, Union

import structlog

_configured = False


def _resolve_level(level: Optional[Union[str, int]]) -> int:
    if level is None:
        level = os.environ.get('TESTBENCH_LOG_LEVEL', 'WARNING')
    if isinstance(level, int):
        return level
    return getattr(logging, str(level).upper(), logging.WARNING)


def configure_logging(level: Optional[Union[str, int]] = None, force: bool = False) -> None:
    """
    Configure structlog for harness output.

    Args:
        level: Minimum level to emit, as a name or number. Falls back to the
            ``TESTBENCH_LOG_LEVEL`` environment variable.
        force: Reconfigure even if logging was already configured
    """
    global _configured

    if _configured and not force:
        return

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
    ]

    if os.getenv('APP_ENV') == 'development':
        processors = shared_processors + [structlog.dev.ConsoleRenderer(colors=False)]
    else:
        processors = shared_processors + [structlog.processors.JSONRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(_resolve_level(level)),
        logger_factory=structlog.WriteLoggerFactory(),
        cache_logger_on_first_use=False,
    )
    _configured = True


def get_logger(name: str = 'flask_testbench'):
    """Return a structlog logger bound to ``name``, configuring on first use."""
    configure_logging()
    return structlog.get_logger(name).bind(logger=name)

"""structlog setup for the timetable package.

Events are snake_case names with key/value context, e.g.
``log.info("snapshot_saved", path=..., weeks=3)``. Everything is written to
stderr; stdout belongs to whatever the CLI prints.
"""

import logging
import sys

import structlog


def _renderer(json_output: bool) -> list:
    if json_output:
        return [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ]
    return [structlog.dev.ConsoleRenderer()]


def setup_logging(json_output: bool = False, log_level: str = "INFO") -> None:
    """Install the structlog pipeline once per process.

    Args:
        json_output: One JSON object per line instead of coloured console text.
        log_level: Minimum level name; unknown names fall back to INFO.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            *_renderer(json_output),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    # playwright and asyncio log through the stdlib
    logging.basicConfig(
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        level=level,
        force=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Logger bound to ``name``, usually the calling module's ``__name__``."""
    return structlog.get_logger(name)

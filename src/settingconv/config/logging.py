"""structlog configuration for settingconv.

Two output modes:
- Human (default): Rich-formatted colored output to stderr, styled with
  the project's console theme
- JSON (--log-json): Structured JSON lines to stderr
"""

from __future__ import annotations

import logging
import sys

import structlog
from rich.logging import RichHandler

from settingconv.output.console import create_log_console

# Rendered as columns by RichHandler, so dropped from the message text.
_HANDLER_COLUMNS = ("timestamp", "level")


def _drop_handler_columns(
    _logger: object,
    _method: str,
    event_dict: structlog.types.EventDict,
) -> structlog.types.EventDict:
    for key in _HANDLER_COLUMNS:
        event_dict.pop(key, None)
    return event_dict


def _human_handler() -> logging.Handler:
    return RichHandler(
        console=create_log_console(),
        show_path=False,
        markup=False,
        rich_tracebacks=False,
    )


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
) -> None:
    """Configure structlog processors and output routing.

    Args:
        verbose: Enable DEBUG-level output for settingconv loggers.
            When False, only WARNING+.
        log_json: Use JSON lines on a plain stream handler instead of
            the Rich handler.
    """
    level = logging.DEBUG if verbose else logging.WARNING

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler: logging.Handler
    if log_json:
        handler = logging.StreamHandler(sys.stderr)
        render: list[structlog.types.Processor] = [structlog.processors.JSONRenderer()]
    else:
        handler = _human_handler()
        render = [_drop_handler_columns, structlog.dev.ConsoleRenderer(colors=False)]

    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *render,
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.WARNING)

    logging.getLogger("settingconv").setLevel(level)
    logging.getLogger("pluggy").setLevel(logging.WARNING)

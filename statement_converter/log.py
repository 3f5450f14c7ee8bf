"""
Structured logging setup.

Entrypoints (the FastAPI app and the CLI) call ``configure_logging`` once;
library modules only call ``get_logger(__name__)``.
"""
from __future__ import annotations

import logging
import sys

import structlog

_CONFIGURED = False


def _parse_level(level) -> int:
    if isinstance(level, int):
        return level
    numeric = logging.getLevelName(str(level).strip().upper())
    return numeric if isinstance(numeric, int) else logging.INFO


def configure_logging(level="INFO", json_output: bool = False) -> None:
    global _CONFIGURED

    log_level = _parse_level(level)
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=log_level)
    logging.getLogger("statement_converter").setLevel(log_level)

    if _CONFIGURED:
        return

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _CONFIGURED = True


def get_logger(name: str):
    return structlog.get_logger(name)

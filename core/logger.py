"""Structured logging — JSON in prod, coloured console otherwise.

Log lines go to stderr; the CLI prints results on stdout.
"""

from __future__ import annotations

import logging
import re
import sys
from typing import Any

import structlog

from config.settings import settings

_configured = False

# Signatures, order UIDs and typed-data digests
_LONG_HEX_RE = re.compile(r"^(0x)?[0-9a-fA-F]{80,}$")
_HEX_KEEP = 10


def shorten_hex_values(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Cut long hex strings down to ``0x12345678…abcdef12`` form."""
    for key, value in event_dict.items():
        if isinstance(value, str) and _LONG_HEX_RE.match(value):
            event_dict[key] = f"{value[:_HEX_KEEP]}…{value[-8:]}"
    return event_dict


def setup_logging(level: str | None = None, force: bool = False) -> None:
    """Configure structlog processors and stdlib integration.

    Runs once per process unless ``force`` is set.  ``level`` overrides
    ``LOG_LEVEL``.
    """
    global _configured
    if _configured and not force:
        return

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        shorten_hex_values,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.APP_ENV == "prod":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel((level or settings.LOG_LEVEL).upper())
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    _configured = True

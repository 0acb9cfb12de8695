"""Structured logging via structlog.

Allocation and matching events carry the bound presentation context
(presentation_id, slide_count) when one is set.  Provider credentials are
redacted before rendering.
"""

from __future__ import annotations

import logging
import sys

import structlog


def setup_logging(json_output: bool = True, level: int = logging.INFO):
    """Configure structlog for the whole process."""
    shared_processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        _redact_credentials,
    ]

    if json_output:
        # Matcher and slide reader log fallbacks with exc_info
        renderer_chain = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        renderer_chain = [structlog.dev.ConsoleRenderer()]

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
            *renderer_chain,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_presentation_context(presentation_id: str, **extra) -> None:
    """Bind presentation-level context variables for all subsequent log calls."""
    structlog.contextvars.bind_contextvars(presentation_id=presentation_id, **extra)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


# Header and settings names under which a provider key can travel
_CREDENTIAL_KEYS = {"api_key", "ai_api_key", "x-api-key", "authorization"}


def _redact_credentials(logger, method_name, event_dict):
    for key in list(event_dict.keys()):
        if key.lower() in _CREDENTIAL_KEYS:
            event_dict[key] = "***REDACTED***"
    return event_dict

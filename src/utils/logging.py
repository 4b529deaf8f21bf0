"""structlog configuration for the Traxscout service.

Every event goes through one processor chain: context vars, level,
timestamp, credential redaction and then a renderer.  Development gets
coloured console lines and production (``app_env="production"``) gets one
JSON object per line.  Records from the standard ``logging`` module
(uvicorn, httpx, aiosqlite) are reformatted by the same chain.
"""

import logging
import os
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog

# Event keys whose values never reach a log sink.
REDACTED_KEYS = frozenset(
    {
        "password",
        "access_token",
        "refresh_token",
        "credentials",
        "encryption_key",
        "authorization",
    }
)
_REDACTED = "***"

_NOISY_LOGGERS = ("httpx", "httpcore", "aiosqlite")


def redact_secrets(
    _logger: Any, _method: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Mask credential values bound to an event by key name."""
    for key in event_dict.keys() & REDACTED_KEYS:
        if event_dict[key]:
            event_dict[key] = _REDACTED
    return event_dict


def _select_renderer(json_output: bool, app_env: str | None) -> structlog.types.Processor:
    env = app_env or os.environ.get("APP_ENV", "development")
    if json_output or env == "production":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=True)


def configure_logging(
    log_level: str = "INFO",
    json_output: bool = False,
    app_env: str | None = None,
) -> structlog.BoundLogger:
    """Install the processor chain for structlog and the stdlib root logger.

    Args:
        log_level: DEBUG, INFO, WARNING or ERROR.
        json_output: Render JSON even outside production.
        app_env: Deployment name; falls back to ``APP_ENV``.

    Returns:
        The root structlog logger.
    """
    level = log_level.upper()
    renderer = _select_renderer(json_output, app_env)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_secrets,
    ]

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *shared_processors,
                renderer,
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # Request and query chatter; scanners log one event per source instead.
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a logger bound to *name*, configuring defaults if needed."""
    if not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(logger_name=name)

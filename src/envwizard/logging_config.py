"""Logging configuration for envwizard.

Configures structlog with human-readable output on stderr for interactive
runs, or JSON output when a log file is given.

Collected credential values are registered with ``register_secret`` and
masked by the ``redact_secrets`` processor before any renderer sees them.
"""

import logging
import sys
from pathlib import Path
from typing import Any

import structlog

REDACTED = "***"

_SECRETS: set[str] = set()


def register_secret(value: str | None) -> None:
    """Mark a value as secret so it never reaches a log line."""
    if value and value.strip():
        _SECRETS.add(value)


def clear_secrets() -> None:
    """Forget all registered secret values."""
    _SECRETS.clear()


def redact(text: str) -> str:
    """Replace every registered secret value in text."""
    # Longest first so a secret that contains another is masked whole
    for secret in sorted(_SECRETS, key=len, reverse=True):
        if secret in text:
            text = text.replace(secret, REDACTED)
    return text


def _redact_value(value: Any) -> Any:
    if isinstance(value, str):
        return redact(value)
    if isinstance(value, dict):
        return {k: _redact_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(_redact_value(v) for v in value)
    return value


def redact_secrets(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """structlog processor that masks registered secret values."""
    if not _SECRETS:
        return event_dict
    return {key: _redact_value(value) for key, value in event_dict.items()}


def configure_logging(
    level: str = "warning",
    log_file: str | Path | None = None,
    json_output: bool = False,
) -> None:
    """Configure logging for the application.

    Called once on startup. Configures both standard logging and structlog.

    Args:
        level: Log level (debug, info, warning, error, critical)
        log_file: Optional path to a log file
        json_output: If True, output JSON format (default when log_file is set)
    """
    log_level = getattr(logging, level.upper(), logging.WARNING)

    handlers: list[logging.Handler] = []

    if log_file:
        file_handler = logging.FileHandler(str(log_file))
        file_handler.setLevel(log_level)
        handlers.append(file_handler)
        json_output = True
    else:
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setLevel(log_level)
        handlers.append(stream_handler)

    logging.basicConfig(
        level=log_level,
        handlers=handlers,
        format="%(message)s",
        force=True,
    )

    processors: list[structlog.types.Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        redact_secrets,
    ]

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def verbosity_to_level(verbose: int) -> str:
    """Map a -v count to a log level name."""
    if verbose >= 2:
        return "debug"
    if verbose == 1:
        return "info"
    return "warning"

"""structlog setup.

Every event passes through ``redact_event`` so passwords, OTPs and tokens
never reach the log stream, whichever module logged them.
"""

import logging
import sys
from typing import Any
import structlog
from vidvault.config import settings

REDACTED = "***REDACTED***"

SENSITIVE_KEYS = {
    "password",
    "newpassword",
    "new_password",
    "otp",
    "token",
    "access_token",
    "secret",
    "authorization",
}

# Libraries that are chatty at INFO
QUIET_LOGGERS = ("sqlalchemy.engine", "multipart", "passlib", "aiosqlite")


def redact_sensitive_data(data: dict[str, Any]) -> dict[str, Any]:
    """Copy of ``data`` with sensitive keys masked at any nesting depth."""
    redacted = {}
    for key, value in data.items():
        if str(key).lower() in SENSITIVE_KEYS:
            redacted[key] = REDACTED
        elif isinstance(value, dict):
            redacted[key] = redact_sensitive_data(value)
        elif isinstance(value, list):
            redacted[key] = [redact_sensitive_data(v) if isinstance(v, dict) else v for v in value]
        else:
            redacted[key] = value
    return redacted


def redact_validation_errors(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Drop the submitted values from pydantic validation errors."""
    return [
        {key: value for key, value in error.items() if key not in ("input", "ctx")}
        for error in errors
    ]


def redact_event(logger, method_name, event_dict):
    return redact_sensitive_data(event_dict)


def configure_logging(level: str = settings.log_level, fmt: str = settings.log_format):
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper()),
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        redact_event,
    ]
    if fmt == "json":
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()

logger = structlog.get_logger("vidvault")

"""
Logging utilities for the gateway.

This module provides:
- Console/file handler setup with a consistent format
- Routing of structlog events through stdlib logging
- Redaction of configured secrets from every log record
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

import structlog

DEFAULT_LOG_FORMAT = "%(asctime)s [%(levelname)-8s] %(name)s:%(lineno)d %(message)s"

BEARER_TOKEN_PATTERN = re.compile(r"Bearer\s+([a-zA-Z0-9._~+/-]+=*)")


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger.

    Args:
        name: Optional logger name

    Returns:
        A structured logger
    """
    return structlog.get_logger(name)  # type: ignore[no-any-return]


class SecretRedactionFilter(logging.Filter):
    """Logging filter that masks known secrets in log records.

    Sanitizes `record.msg` and `record.args` (strings or containers of
    strings), replacing the configured secrets and bearer tokens with a mask.
    """

    def __init__(self, secrets: Iterable[str] | None = None, mask: str = "***") -> None:
        super().__init__()
        self.mask = mask
        self.patterns: list[re.Pattern[str]] = []
        keys = {s for s in (secrets or []) if s}
        if keys:
            # Longer secrets first so a secret containing another is masked whole
            escaped = sorted((re.escape(k) for k in keys), key=len, reverse=True)
            self.patterns.append(re.compile("|".join(escaped)))
        self.patterns.append(BEARER_TOKEN_PATTERN)

    def _sanitize(self, obj: object) -> object:
        if isinstance(obj, str):
            s = obj
            for pat in self.patterns:
                if pat is BEARER_TOKEN_PATTERN:
                    s = pat.sub(f"Bearer {self.mask}", s)
                else:
                    s = pat.sub(self.mask, s)
            return s
        if isinstance(obj, dict):
            return {k: self._sanitize(v) for k, v in obj.items()}
        if isinstance(obj, list | tuple):
            return type(obj)(self._sanitize(v) for v in obj)
        return obj

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = self._sanitize(record.msg)  # type: ignore[assignment]
        if record.args:
            if isinstance(record.args, dict):
                record.args = self._sanitize(record.args)  # type: ignore[assignment]
            elif isinstance(record.args, tuple):
                record.args = tuple(self._sanitize(a) for a in record.args)
        return True


def install_secret_redaction_filter(
    secrets: Iterable[str] | None, mask: str = "***"
) -> SecretRedactionFilter:
    """Install a redaction filter on the root logger and its handlers."""
    root = logging.getLogger()
    filter_instance = SecretRedactionFilter(secrets, mask=mask)
    root.addFilter(filter_instance)
    # Records from child loggers skip root filters, handler filters catch them
    for handler in list(root.handlers):
        handler.addFilter(filter_instance)
    return filter_instance


def _configure_structlog() -> None:
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.format_exc_info,
            structlog.processors.KeyValueRenderer(key_order=["event"]),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def configure_logging(
    level: int | str = logging.INFO,
    log_file: str | None = None,
    secrets: Iterable[str] | None = None,
    log_format: str = DEFAULT_LOG_FORMAT,
) -> None:
    """Configure root logging for the process.

    Args:
        level: Logging level
        log_file: Optional log file path
        secrets: Values to mask in every record; None disables redaction
        log_format: Log format string
    """
    formatter = logging.Formatter(fmt=log_format)

    handlers: list[logging.Handler] = []
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    handlers.append(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    logging.basicConfig(level=level, handlers=handlers, force=True)
    _configure_structlog()

    if secrets is not None:
        install_secret_redaction_filter(secrets)

    # httpx logs full request URLs at INFO
    logging.getLogger("httpx").setLevel(max(logging.WARNING, level))

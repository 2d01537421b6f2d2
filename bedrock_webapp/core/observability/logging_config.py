"""
Logging setup for bedrockctl.

main.py calls ``setup_logging`` once; modules only ever do
``logger = logging.getLogger(__name__)``.

Console level precedence:
    --debug / -v / -q  >  BEDROCK_LOG_LEVEL  >  WARNING

A log file (BEDROCK_LOG_FILE) may run at its own, usually lower, level
(BEDROCK_LOG_FILE_LEVEL). Every handler masks credentials that appear in
command lines, SQL and dotenv text before a record is emitted.
"""

from __future__ import annotations

import logging
import re
import sys

# ── Formats per console level ───────────────────────────────────

_CONSOLE_FORMATS: dict[int, tuple[str, str | None]] = {
    logging.DEBUG: ("%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s", "%H:%M:%S"),
    logging.INFO: ("%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
    logging.WARNING: ("%(message)s", None),
}

_FILE_FORMAT = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

_NOISY_LOGGERS = ("dotenv",)

# ── Credential masking ──────────────────────────────────────────

_MASK = "********"

_SECRET_PATTERNS = (
    re.compile(r"(--admin_password=)\S+"),
    re.compile(r"(IDENTIFIED BY ')[^']*(?=')"),
    re.compile(r"\b((?:DB_PASSWORD|[A-Z_]+_(?:KEY|SALT))=)\S+"),
)


class SecretMaskingFilter(logging.Filter):
    """Rewrite the rendered message with secrets replaced by a mask."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = mask_secrets(message)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


def mask_secrets(text: str) -> str:
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(rf"\g<1>{_MASK}", text)
    return text


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    quiet_third_party: bool = True,
) -> None:
    """(Re)configure the root logger.

    Args:
        level: Console level name.
        log_file: Append log records to this file as well.
        log_file_level: Level for ``log_file``; defaults to ``level``.
        quiet_third_party: Hold third-party loggers at WARNING unless the
            console runs at DEBUG.
    """
    console_level = _parse_level(level)
    masking = SecretMaskingFilter()

    handlers: list[logging.Handler] = [_console_handler(console_level)]
    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setLevel(file_level)
        handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
        handlers.append(handler)

    root = logging.getLogger()
    root.handlers.clear()
    for handler in handlers:
        handler.addFilter(masking)
        root.addHandler(handler)
    root.setLevel(min(h.level for h in handlers))

    if quiet_third_party and console_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.raiseExceptions = False


def _console_handler(level: int) -> logging.Handler:
    key = max(k for k in _CONSOLE_FORMATS if k <= max(level, logging.DEBUG))
    fmt, datefmt = _CONSOLE_FORMATS[key]
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    return handler


def _parse_level(level: str | None) -> int:
    """Level name to its numeric value; unknown names mean WARNING."""
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        return logging.WARNING
    return numeric

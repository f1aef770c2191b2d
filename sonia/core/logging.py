"""
Logging setup: level from config + sensitive data masking.

Rules:
- Modules log through logging.getLogger(__name__); only this module configures handlers
- Passwords, API keys, bearer tokens and JWTs never reach a log line unmasked
"""

import logging
import re
from typing import Any

# (pattern, replacement) pairs applied to every formatted log message
SENSITIVE_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (
        re.compile(r'(api[_-]?key|apikey)(["\']?\s*[:=]\s*["\']?)([a-zA-Z0-9_-]{16,})', re.I),
        r"\1\2[MASKED]",
    ),
    (re.compile(r"(sk-ant-[a-zA-Z0-9_-]{16,})"), "[MASKED_API_KEY]"),
    (re.compile(r"(AIza[0-9A-Za-z_-]{20,})"), "[MASKED_API_KEY]"),
    (re.compile(r"(Bearer\s+)([a-zA-Z0-9._-]{16,})", re.I), r"\1[MASKED_TOKEN]"),
    (re.compile(r"(eyJ[a-zA-Z0-9_-]+\.eyJ[a-zA-Z0-9_-]+\.[a-zA-Z0-9_-]+)"), "[MASKED_JWT]"),
    (
        re.compile(r'(password|passwd|pwd)(["\']?\s*[:=]\s*["\']?)([^"\'\s,}]+)', re.I),
        r"\1\2[MASKED]",
    ),
]

DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def mask_sensitive_data(content: str) -> str:
    """Return content with secrets masked."""
    masked = content
    for pattern, replacement in SENSITIVE_PATTERNS:
        masked = pattern.sub(replacement, masked)
    return masked


class SensitiveDataFilter(logging.Filter):
    """Logging filter that masks secrets in the rendered message."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = mask_sensitive_data(message)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


def configure_logging(config: dict[str, Any]) -> None:
    """
    Configure the `sonia` logger tree from config.

    config:
        logging:
          level: INFO
          format: "%(asctime)s %(levelname)s %(name)s: %(message)s"
    """
    log_config = config.get("logging", {}) or {}
    level_name = str(log_config.get("level", "INFO")).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    root_logger = logging.getLogger("sonia")
    root_logger.setLevel(level)

    if not any(getattr(h, "_sonia_handler", False) for h in root_logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter(log_config.get("format", DEFAULT_FORMAT))
        )
        handler.addFilter(SensitiveDataFilter())
        handler._sonia_handler = True  # type: ignore[attr-defined]
        root_logger.addHandler(handler)

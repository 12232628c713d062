from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone

_SECRET_PATTERN = re.compile(r"(?i)\b(password|pwd)(\s*=\s*)(\{[^}]*\}|[^;]*)")
REDACTED = "***"


def redact_secrets(text: str) -> str:
    return _SECRET_PATTERN.sub(lambda match: f"{match.group(1)}{match.group(2)}{REDACTED}", text)


class SecretRedactionFilter(logging.Filter):
    """Masks connection-string passwords in log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_secrets(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, object] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            data["exc"] = self.formatException(record.exc_info)
        return json.dumps(data, ensure_ascii=False)


def configure_logging(level: int | str = logging.INFO, *, json_output: bool = False) -> None:
    handler = logging.StreamHandler()
    if json_output:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    handler.addFilter(SecretRedactionFilter())

    package_logger = logging.getLogger("tenantpool")
    package_logger.handlers.clear()
    package_logger.addHandler(handler)
    package_logger.setLevel(level)


__all__ = [
    "JsonFormatter",
    "REDACTED",
    "SecretRedactionFilter",
    "configure_logging",
    "redact_secrets",
]

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

_LOGGING_CONFIGURED = False

# Structured extras copied from `extra={...}` onto the JSON record
STRUCTURED_FIELDS = (
    "request_id",
    "phase",
    "client_ip",
    "step",
    "model",
    "elapsed_s",
    "input_tokens",
    "output_tokens",
    "web_search_calls",
    "kind",
)


class JsonFormatter(logging.Formatter):
    """
    Minimal JSON formatter for structured logs.

    One object per line on stdout, so the hosting platform can index the
    structured fields without a parser of its own.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_record: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": getattr(record, "service", "opportunity_research"),
        }

        for field in STRUCTURED_FIELDS:
            if hasattr(record, field):
                log_record[field] = getattr(record, field)

        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(log_record, default=str)


def configure_logging(level: int = logging.INFO) -> None:
    """
    Configure root logger once with JSON output.

    Safe to call multiple times; subsequent calls are no-ops.
    """
    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    _LOGGING_CONFIGURED = True

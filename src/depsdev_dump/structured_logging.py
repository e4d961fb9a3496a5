"""
Structured logging configuration for depsdev-dump.

Emits machine-readable JSON event records on stderr so that the rendered
output on stdout stays clean for the editor panel or the terminal.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

_RESERVED_RECORD_KEYS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
    "getMessage",
    "exc_info",
    "exc_text",
    "stack_info",
}


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "component": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_KEYS:
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


class EventLogger:
    """Structured logger for pipeline events."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(f"depsdev_dump.{name}")
        self.context: Dict[str, Any] = {}
        self._setup_logger()

    def _setup_logger(self) -> None:
        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(StructuredFormatter())
            self.logger.addHandler(handler)
            self.logger.propagate = False
            self.logger.setLevel(logging.WARNING)

    def set_context(self, **kwargs) -> None:
        """Attach fields to every subsequent event."""
        self.context = {k: v for k, v in kwargs.items() if v is not None}

    def clear_context(self) -> None:
        self.context.clear()

    def _log(self, level: str, event_type: str, **kwargs) -> None:
        log_data = {"event_type": event_type, **self.context, **kwargs}
        getattr(self.logger, level)(event_type, extra=log_data)

    def info(self, event_type: str, **kwargs) -> None:
        self._log("info", event_type, **kwargs)

    def warning(self, event_type: str, **kwargs) -> None:
        self._log("warning", event_type, **kwargs)

    def error(self, event_type: str, **kwargs) -> None:
        self._log("error", event_type, **kwargs)

    def debug(self, event_type: str, **kwargs) -> None:
        self._log("debug", event_type, **kwargs)


# Global logger instances
_extractor_logger = EventLogger("extractor")
_client_logger = EventLogger("client")
_command_logger = EventLogger("command")


def get_extractor_logger() -> EventLogger:
    """Get manifest extraction logger."""
    return _extractor_logger


def get_command_logger() -> EventLogger:
    """Get command surface logger."""
    return _command_logger


def log_extraction(manifest: str, total_entries: int, emitted: int) -> None:
    """Log the outcome of a dependency extraction."""
    _extractor_logger.info(
        "dependencies_extracted",
        manifest=manifest,
        total_entries=total_entries,
        emitted=emitted,
        skipped=total_entries - emitted,
    )


def log_batch_request(endpoint: str, total_requests: int, system: str) -> None:
    """Log a batch request being issued."""
    _client_logger.info(
        "batch_request_sent",
        endpoint=endpoint,
        total_requests=total_requests,
        system=system,
    )


def log_batch_response(
    status_code: int, body_bytes: int, response_time_ms: Optional[float] = None
) -> None:
    """Log a batch response being received."""
    log_data = {"status_code": status_code, "body_bytes": body_bytes}
    if response_time_ms is not None:
        log_data["response_time_ms"] = response_time_ms

    if status_code >= 400:
        _client_logger.warning("batch_response_error", **log_data)
    else:
        _client_logger.debug("batch_response_received", **log_data)


def log_command_invocation(command_name: str, outcome: str, **kwargs) -> None:
    """Log a host command dispatch and how it ended."""
    _command_logger.info(
        "command_invoked", command=command_name, outcome=outcome, **kwargs
    )


def configure_logging(log_level: str = "WARNING", enable_json: bool = True) -> None:
    """Configure logging for the application."""
    level = getattr(logging, log_level.upper(), logging.WARNING)

    for event_logger in [_extractor_logger, _client_logger, _command_logger]:
        event_logger.logger.setLevel(level)
        for handler in event_logger.logger.handlers:
            if enable_json:
                handler.setFormatter(StructuredFormatter())
            else:
                handler.setFormatter(
                    logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
                )

    logging.getLogger("depsdev_dump").setLevel(level)

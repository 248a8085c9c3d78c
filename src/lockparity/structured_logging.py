"""
Structured logging configuration for lockparity.

Emits one JSON object per event so comparison runs can be traced from CI
logs. Events go to stderr; stdout is reserved for the report.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

_RESERVED_ATTRS = {
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
    "message",
}


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "component": record.name,
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


class EventLogger:
    """Structured logger for comparison events."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(f"lockparity.{name}")
        self._setup_logger()
        self.run_context: Dict[str, Any] = {}

    def _setup_logger(self) -> None:
        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(StructuredFormatter())
            self.logger.addHandler(handler)
            self.logger.propagate = False
            self.logger.setLevel(logging.WARNING)

    def set_run_context(
        self,
        run_id: Optional[str] = None,
        lockfile_a: Optional[str] = None,
        lockfile_b: Optional[str] = None,
    ) -> None:
        self.run_context = {}
        if run_id:
            self.run_context["run_id"] = run_id
        if lockfile_a:
            self.run_context["lockfile_a"] = lockfile_a
        if lockfile_b:
            self.run_context["lockfile_b"] = lockfile_b

    def clear_run_context(self) -> None:
        self.run_context.clear()

    def _log(self, level: int, event_type: str, **kwargs) -> None:
        log_data = {"event_type": event_type, **self.run_context, **kwargs}
        self.logger.log(level, event_type, extra=log_data)

    def info(self, event_type: str, **kwargs) -> None:
        self._log(logging.INFO, event_type, **kwargs)


_loader_logger = EventLogger("loader")
_pipeline_logger = EventLogger("pipeline")


def get_loader_logger() -> EventLogger:
    """Get lockfile loading logger."""
    return _loader_logger


def get_pipeline_logger() -> EventLogger:
    """Get comparison pipeline logger."""
    return _pipeline_logger


def log_lockfile_loaded(side: str, src: str, packages: int, duration_ms: int) -> None:
    get_loader_logger().info(
        "lockfile_loaded",
        side=side,
        src=src,
        packages=packages,
        duration_ms=duration_ms,
    )


def log_side_resolved(
    side: str, selector: str, excluded: int, graph_size: int, reachable_size: int
) -> None:
    get_pipeline_logger().info(
        "side_resolved",
        side=side,
        selector=selector,
        excluded_names=excluded,
        graph_size=graph_size,
        reachable_size=reachable_size,
    )


def log_narrowing_applied(narrowed_a: int, narrowed_b: int) -> None:
    get_pipeline_logger().info(
        "narrowing_applied", narrowed_a=narrowed_a, narrowed_b=narrowed_b
    )


def log_comparison_complete(summary: Dict[str, int], all_match: bool) -> None:
    """Log comparison completion event."""
    get_pipeline_logger().info(
        "comparison_completed", all_common_versions_match=all_match, **summary
    )


def set_run_context(
    run_id: Optional[str] = None,
    lockfile_a: Optional[str] = None,
    lockfile_b: Optional[str] = None,
) -> None:
    """Set run context for all loggers."""
    for logger in (_loader_logger, _pipeline_logger):
        logger.set_run_context(run_id, lockfile_a, lockfile_b)


def clear_run_context() -> None:
    for logger in (_loader_logger, _pipeline_logger):
        logger.clear_run_context()


def configure_logging(log_level: str = "WARNING") -> None:
    """Configure logging for the application."""
    level = getattr(logging, log_level.upper(), logging.WARNING)
    for logger in (_loader_logger, _pipeline_logger):
        logger.logger.setLevel(level)

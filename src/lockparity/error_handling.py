"""
Error reporting for lockparity.

The comparison core only raises. The loader and the CLI record failures
here: each one is logged with credentials masked, counted per category,
and passed to any subscribed callbacks.
"""

import logging
import re
import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import urlparse

from .exceptions import (
    GraphError,
    LockfileParseError,
    LockParityError,
    SelectorError,
    SourceError,
)


class ErrorCategory(Enum):
    PARSING = "PARSING"
    NETWORK = "NETWORK"
    FILESYSTEM = "FILESYSTEM"
    GRAPH = "GRAPH"
    SELECTION = "SELECTION"
    CONFIGURATION = "CONFIGURATION"


_REDACTIONS: List[Tuple["re.Pattern[str]", str]] = [
    (re.compile(r"(https?://[^@\s:/]+:)[^@\s]+@", re.IGNORECASE), r"\1[REDACTED]@"),
    (re.compile(r"([?&](?:token|access_token|key)=)[^&\s]+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"Authorization:\s*\w+\s+\S+", re.IGNORECASE), "Authorization: [REDACTED]"),
]


def redact(text: str) -> str:
    """Mask credentials embedded in URLs and headers."""
    for pattern, replacement in _REDACTIONS:
        text = pattern.sub(replacement, text)
    return text


def sanitize_url(url: str) -> str:
    """Drop credentials and query from a URL so it can be logged."""
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.hostname:
        return url
    sanitized = f"{parsed.scheme}://{parsed.hostname}"
    if parsed.port:
        sanitized += f":{parsed.port}"
    return sanitized + parsed.path


@dataclass
class ErrorContext:
    """One recorded failure."""

    category: ErrorCategory
    message: str
    module: str
    function: str
    level: int = logging.ERROR
    details: Dict[str, Any] = field(default_factory=dict)
    exception: Optional[BaseException] = None
    suggestions: List[str] = field(default_factory=list)

    @property
    def location(self) -> str:
        return f"{self.module}.{self.function}"

    def log_line(self) -> str:
        parts = [redact(self.message), f"category={self.category.value}", f"at={self.location}"]
        for key, value in sorted(self.details.items()):
            parts.append(f"{key}={redact(str(value))}")
        if self.exception is not None:
            parts.append(f"exception={type(self.exception).__name__}")
        for suggestion in self.suggestions:
            parts.append(f"hint={suggestion}")
        return " | ".join(parts)


ErrorCallback = Callable[[ErrorContext], None]


class ErrorHandler:
    """Logs, counts and fans out recorded failures."""

    def __init__(self, logger_name: str = "lockparity.errors", log_level: int = logging.WARNING):
        self.logger = logging.getLogger(logger_name)
        self.logger.setLevel(log_level)
        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(
                logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
            )
            self.logger.addHandler(handler)
            self.logger.propagate = False

        self._callbacks: List[Tuple[Optional[ErrorCategory], ErrorCallback]] = []
        self._counts: Dict[str, int] = {}

    def register_callback(
        self, callback: ErrorCallback, category: Optional[ErrorCategory] = None
    ) -> None:
        """Call `callback` for every failure, or only for those in `category`."""
        self._callbacks.append((category, callback))

    def record(self, context: ErrorContext) -> ErrorContext:
        key = f"{context.category.value}_{logging.getLevelName(context.level)}"
        self._counts[key] = self._counts.get(key, 0) + 1

        self.logger.log(context.level, context.log_line())

        for category, callback in self._callbacks:
            if category is not None and category is not context.category:
                continue
            try:
                callback(context)
            except Exception as cb_error:
                # A failing callback must not hide the recorded error
                self.logger.error(f"Error in callback: {cb_error}")

        return context

    def error(
        self,
        category: ErrorCategory,
        message: str,
        module: str,
        function: str,
        exception: Optional[BaseException] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ) -> ErrorContext:
        return self.record(
            ErrorContext(
                category=category,
                message=message,
                module=module,
                function=function,
                details=details or {},
                exception=exception,
                suggestions=suggestions or [],
            )
        )

    def get_error_stats(self) -> Dict[str, int]:
        return dict(self._counts)

    def reset_stats(self) -> None:
        self._counts.clear()


_global_error_handler: Optional[ErrorHandler] = None


def get_error_handler() -> ErrorHandler:
    global _global_error_handler
    if _global_error_handler is None:
        _global_error_handler = ErrorHandler()
    return _global_error_handler


def setup_error_handling(log_level: int = logging.WARNING) -> ErrorHandler:
    """Install a fresh global handler logging at `log_level`."""
    global _global_error_handler
    _global_error_handler = ErrorHandler(log_level=log_level)
    return _global_error_handler


def log_parsing_error(
    message: str,
    module: str,
    function: str,
    origin: Optional[str] = None,
    exception: Optional[BaseException] = None,
) -> ErrorContext:
    """Record a lockfile that could not be decoded."""
    details = {"origin": sanitize_url(origin)} if origin is not None else {}
    return get_error_handler().error(
        ErrorCategory.PARSING,
        message,
        module,
        function,
        exception=exception,
        details=details,
        suggestions=["check that the file is a Cargo.lock or a JSON package list"],
    )


def log_network_error(
    message: str,
    module: str,
    function: str,
    url: Optional[str] = None,
    status_code: Optional[int] = None,
    exception: Optional[BaseException] = None,
) -> ErrorContext:
    """Record a remote lockfile that could not be fetched."""
    details: Dict[str, Any] = {}
    if url is not None:
        details["url"] = sanitize_url(url)
    if status_code is not None:
        details["status_code"] = status_code

    return get_error_handler().error(
        ErrorCategory.NETWORK,
        message,
        module,
        function,
        exception=exception,
        details=details,
        suggestions=["verify the lockfile URL is correct and publicly readable"],
    )


def categorize(exc: LockParityError) -> ErrorCategory:
    """Map a lockparity exception onto its error category."""
    if isinstance(exc, GraphError):
        return ErrorCategory.GRAPH
    if isinstance(exc, SelectorError):
        return ErrorCategory.SELECTION
    if isinstance(exc, LockfileParseError):
        return ErrorCategory.PARSING
    if isinstance(exc, SourceError):
        if exc.src and "://" in exc.src and not exc.src.startswith("file:"):
            return ErrorCategory.NETWORK
        return ErrorCategory.FILESYSTEM
    return ErrorCategory.CONFIGURATION


def report_error(
    exc: LockParityError, module: str, function: str, side: Optional[str] = None
) -> ErrorContext:
    """Record a raised lockparity error with its identifying attributes."""
    details: Dict[str, Any] = {}
    if side is not None:
        details["side"] = side
    for attr in ("package", "reference", "identifier", "origin", "src"):
        value = getattr(exc, attr, None)
        if value is not None:
            details[attr] = value
    return get_error_handler().error(
        categorize(exc), str(exc), module, function, exception=exc, details=details
    )

"""
Centralized logging and error handling utilities for the Gastronom.IA backend.

This module provides decorators and helper functions to standardize logging
and error handling patterns across the codebase, reducing boilerplate and
ensuring consistent error reporting.

Features:
- Structured logging with contextual information
- Automatic error type detection and HTTP status classification
- Performance timing for async operations
- Uniform JSON error bodies for the HTTP handlers
"""

from __future__ import annotations

import functools
import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any, ParamSpec, TypeVar

import httpx
import structlog
from pydantic import ValidationError

from gastronomia.llm.exceptions import (
    CreditsExhaustedError,
    LLMError,
    NoBodyError,
    ProviderError,
    RateLimitError,
    StreamingError,
    UpstreamError,
)

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(colors=True),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

# Type variables for generic decorators
P = ParamSpec("P")
T = TypeVar("T")
AsyncCallable = Callable[P, Awaitable[T]]

logger = structlog.get_logger(__name__)


def setup_logging(level: str = "INFO") -> None:
    """Route structlog output through the stdlib root logger at ``level``."""
    logging.basicConfig(level=level.upper(), format="%(message)s")


class ErrorHandler:
    """Centralized error classification with structured logging."""

    @staticmethod
    def classify_error(error: Exception) -> tuple[int, str]:
        """
        Classify an error and return the HTTP status and error category.

        Args:
            error: The exception to classify

        Returns:
            Tuple of (http_status, error_category)
        """
        if isinstance(error, RateLimitError):
            return 429, "rate_limited"
        if isinstance(error, CreditsExhaustedError):
            return 402, "credits_exhausted"
        if isinstance(error, UpstreamError):
            return 500, "upstream_error"
        if isinstance(error, StreamingError):
            return 502, "stream_interrupted"
        if isinstance(error, NoBodyError):
            return 500, "no_body_error"
        if isinstance(error, ProviderError):
            return 500, "configuration_error"
        if isinstance(error, LLMError):
            return 500, "llm_error"
        if isinstance(error, ValidationError):
            return 400, "validation_error"
        if isinstance(error, httpx.TimeoutException | TimeoutError):
            return 504, "timeout_error"
        if isinstance(error, httpx.TransportError | ConnectionError | OSError):
            return 502, "connection_error"
        if isinstance(error, ValueError | TypeError):
            return 400, "parameter_error"
        return 500, "unknown_error"

    @staticmethod
    def create_error_payload(
        error: Exception,
        operation: str,
        context: dict[str, Any] | None = None,
        custom_message: str | None = None,
    ) -> tuple[int, dict[str, str]]:
        """
        Log a failed operation and build the JSON error body for it.

        Args:
            error: Original exception
            operation: Description of the operation that failed
            context: Additional context for logging
            custom_message: Override the default error message

        Returns:
            Tuple of (http_status, {"error": message})
        """
        status, error_category = ErrorHandler.classify_error(error)
        context = context or {}

        if custom_message:
            message = custom_message
        elif isinstance(error, LLMError):
            message = error.message
        else:
            message = str(error) or f"{operation} failed"

        logger.error(
            "Operation failed",
            operation=operation,
            error_type=type(error).__name__,
            error_category=error_category,
            status_code=status,
            error_message=str(error),
            **context,
        )

        return status, {"error": message}


def _elapsed_ms(started: float | None) -> dict[str, float]:
    if started is None:
        return {}
    return {"duration_ms": round((time.perf_counter() - started) * 1000, 2)}


@asynccontextmanager
async def operation_context(
    operation: str,
    *,
    context: dict[str, Any] | None = None,
    log_timing: bool = True,
) -> AsyncIterator[Any]:
    """
    Log the start and outcome of a block of async work.

    Args:
        operation: Description of the operation
        context: Additional context bound to every log line
        log_timing: Whether to report the elapsed time

    Yields:
        Bound logger for the operation
    """
    operation_logger = logger.bind(operation=operation, **(context or {}))
    operation_logger.info("Operation started")
    started = time.perf_counter() if log_timing else None

    try:
        yield operation_logger
    except Exception as e:
        operation_logger.error(
            "Operation failed",
            error_type=type(e).__name__,
            error_message=str(e),
            **_elapsed_ms(started),
        )
        raise

    operation_logger.info("Operation completed successfully", **_elapsed_ms(started))


def log_operation(
    operation: str,
    *,
    log_timing: bool = True,
    context: dict[str, Any] | None = None,
) -> Callable[[AsyncCallable[P, T]], AsyncCallable[P, T]]:
    """Run each call of the decorated coroutine inside :func:`operation_context`."""
    def decorator(func: AsyncCallable[P, T]) -> AsyncCallable[P, T]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            bound = {"function": func.__name__, **(context or {})}
            async with operation_context(
                operation, context=bound, log_timing=log_timing
            ):
                return await func(*args, **kwargs)

        return wrapper
    return decorator

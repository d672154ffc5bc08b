#!/usr/bin/env python3
"""
Test script for logging utilities.

This validates that the centralized logging and error handling works correctly.
"""

import httpx
import pytest
from pydantic import BaseModel, ValidationError

from gastronomia.llm.exceptions import (
    CreditsExhaustedError,
    NoBodyError,
    ProviderError,
    RateLimitError,
    StreamingError,
    UpstreamError,
)
from gastronomia.logging_utils import (
    ErrorHandler,
    log_operation,
    operation_context,
)


class _Model(BaseModel):
    name: str


def _validation_error() -> ValidationError:
    try:
        _Model.model_validate({})
    except ValidationError as e:
        return e
    raise AssertionError("validation should fail")


class TestErrorHandler:
    """Test the ErrorHandler class."""

    @pytest.mark.parametrize("error, expected", [
        (RateLimitError("slow down", status_code=429), (429, "rate_limited")),
        (CreditsExhaustedError("no credits", status_code=402), (402, "credits_exhausted")),
        (UpstreamError("bad gateway", status_code=502), (500, "upstream_error")),
        (NoBodyError(), (500, "no_body_error")),
        (StreamingError("connection reset"), (502, "stream_interrupted")),
        (ProviderError("KEY is not configured"), (500, "configuration_error")),
        (httpx.ReadTimeout("timed out"), (504, "timeout_error")),
        (TimeoutError("timed out"), (504, "timeout_error")),
        (httpx.ConnectError("refused"), (502, "connection_error")),
        (ConnectionError("Network unreachable"), (502, "connection_error")),
        (ValueError("Invalid parameter"), (400, "parameter_error")),
        (RuntimeError("Unknown error"), (500, "unknown_error")),
    ])
    def test_classify_error(self, error, expected):
        assert ErrorHandler.classify_error(error) == expected

    def test_classify_validation_error(self):
        """Validation errors win over their ValueError base."""
        assert ErrorHandler.classify_error(_validation_error()) == (400, "validation_error")

    def test_payload_uses_llm_error_message(self):
        status, payload = ErrorHandler.create_error_payload(
            RateLimitError("slow down", status_code=429), "chef_chat", {"user": "1"}
        )
        assert status == 429
        assert payload == {"error": "slow down"}

    def test_payload_custom_message(self):
        status, payload = ErrorHandler.create_error_payload(
            RuntimeError("boom"), "generate_recipe", custom_message="Internal error"
        )
        assert status == 500
        assert payload == {"error": "Internal error"}

    def test_payload_falls_back_to_operation(self):
        _, payload = ErrorHandler.create_error_payload(RuntimeError(), "generate_recipe")
        assert payload == {"error": "generate_recipe failed"}


class TestDecorators:
    """Test logging decorators."""

    @pytest.mark.asyncio
    async def test_log_operation_success(self):
        """Test log_operation decorator with successful function."""

        @log_operation("test_operation", log_timing=True, context={"user": "1"})
        async def successful_function():
            return "success"

        result = await successful_function()
        assert result == "success"

    @pytest.mark.asyncio
    async def test_log_operation_with_error(self):
        """Test log_operation decorator with function that raises error."""

        @log_operation("test_operation", log_timing=True)
        async def failing_function():
            raise ValueError("Test error")

        with pytest.raises(ValueError, match="Test error"):
            await failing_function()

    def test_log_operation_preserves_metadata(self):
        @log_operation("test_operation")
        async def documented(value: int) -> int:
            """Doc."""
            return value

        assert documented.__name__ == "documented"
        assert documented.__doc__ == "Doc."


class TestContextManager:
    """Test operation context manager."""

    @pytest.mark.asyncio
    async def test_operation_context_success(self):
        """Test operation context manager with successful operation."""

        async with operation_context("test_operation", log_timing=True) as logger:
            assert logger is not None

    @pytest.mark.asyncio
    async def test_operation_context_with_error(self):
        """Test operation context manager with failing operation."""

        with pytest.raises(ValueError, match="Test error"):
            async with operation_context("test_operation", log_timing=True):
                raise ValueError("Test error")

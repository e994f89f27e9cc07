"""Tests for contextual-flags contrib modules.

This module tests:
- LoggingHook: Structured logging integration
"""

from __future__ import annotations

import logging
from unittest.mock import MagicMock, patch

import pytest

from contextual_flags import (
    DictionaryContext,
    EvaluationResult,
    FeatureMetadata,
    FeatureMetadataItem,
    MemoryFeatureProvider,
    ProviderFailure,
    Variant,
    VariantResolver,
)
from contextual_flags.models import Feature

# =============================================================================
# Test Fixtures
# =============================================================================


@pytest.fixture
def successful_result() -> EvaluationResult:
    """Create a result with two selected variants."""
    metadata = FeatureMetadata()
    metadata.add(FeatureMetadataItem("Checkout", "Memory", "A"))
    metadata.add(FeatureMetadataItem("Search", "Memory", "Fast", is_overridden=True, override_provider_name="QA"))
    return EvaluationResult(
        variants=(
            Variant("A", configuration={"Checkout": {"Size": 5}}),
            Variant("Fast", configuration={"Search": {"Engine": "v2"}}),
        ),
        metadata=metadata,
    )


@pytest.fixture
def failed_result() -> EvaluationResult:
    """Create a result in which a provider failed."""
    return EvaluationResult(failures=(ProviderFailure("Remote", RuntimeError("timeout")),))


@pytest.fixture
def full_context() -> DictionaryContext:
    """Create a populated evaluation context."""
    return DictionaryContext(UserId="user-123", Market="US", AgeGroup=2, Tags=["beta"], Coupon=None)


# =============================================================================
# LoggingHook Tests
# =============================================================================


class TestLoggingHookImport:
    """Test LoggingHook import behavior."""

    def test_structlog_available_constant_exported(self):
        """Test that STRUCTLOG_AVAILABLE is exported."""
        from contextual_flags.contrib.logging import STRUCTLOG_AVAILABLE

        assert isinstance(STRUCTLOG_AVAILABLE, bool)

    def test_logging_hook_satisfies_protocol(self):
        """Test that LoggingHook is an EvaluationHook."""
        from contextual_flags import EvaluationHook
        from contextual_flags.contrib.logging import LoggingHook

        assert isinstance(LoggingHook(logger=MagicMock(spec=logging.Logger)), EvaluationHook)


class TestLoggingHookWithStdlib:
    """Test LoggingHook with stdlib logging."""

    @pytest.fixture
    def mock_logger(self):
        """Create a mock stdlib logger."""
        return MagicMock(spec=logging.Logger)

    @pytest.fixture
    def logging_hook(self, mock_logger):
        """Create LoggingHook with mock logger."""
        from contextual_flags.contrib.logging import LoggingHook

        hook = LoggingHook(logger=mock_logger)
        hook._use_structlog = False  # Force stdlib logging
        return hook

    def test_init_with_custom_logger(self, mock_logger):
        """Test initialization with custom logger."""
        from contextual_flags.contrib.logging import LoggingHook

        hook = LoggingHook(logger=mock_logger)
        assert hook.logger == mock_logger
        assert hook._use_structlog is False

    def test_init_with_custom_levels(self):
        """Test initialization with custom log levels."""
        from contextual_flags.contrib.logging import LoggingHook

        hook = LoggingHook(evaluation_level="INFO", error_level="CRITICAL")
        assert hook._evaluation_level == "INFO"
        assert hook._error_level == "CRITICAL"

    def test_init_defaults(self):
        """Test that values are hidden and context is included by default."""
        from contextual_flags.contrib.logging import LoggingHook

        hook = LoggingHook()
        assert hook._log_values is False
        assert hook._include_context is True

    @pytest.mark.parametrize("level", ["DEBUG", "INFO", "WARNING", "ERROR", "info"])
    def test_get_log_method(self, logging_hook, mock_logger, level):
        """Test _get_log_method maps level names to logger methods."""
        assert logging_hook._get_log_method(level) == getattr(mock_logger, level.lower())

    def test_get_log_method_unknown_defaults_to_debug(self, logging_hook, mock_logger):
        """Test _get_log_method defaults to debug for unknown levels."""
        assert logging_hook._get_log_method("UNKNOWN") == mock_logger.debug

    def test_build_log_data_basic(self, logging_hook, successful_result):
        """Test _build_log_data with a successful result."""
        data = logging_hook._build_log_data(successful_result)

        assert data["variant_ids"] == ["A", "Fast"]
        assert data["variant_count"] == 2
        assert data["features"] == {"Checkout": "A", "Search": "Fast"}
        assert data["overridden_features"] == ["Search"]
        assert "configuration" not in data  # log_values is False
        assert "failed_providers" not in data

    def test_build_log_data_with_log_values(self, mock_logger, successful_result):
        """Test _build_log_data with log_values enabled."""
        from contextual_flags.contrib.logging import LoggingHook

        hook = LoggingHook(logger=mock_logger, log_values=True)
        data = hook._build_log_data(successful_result)

        assert data["configuration"] == {"Checkout": {"Size": 5}, "Search": {"Engine": "v2"}}

    def test_build_log_data_with_failures(self, logging_hook, failed_result):
        """Test _build_log_data lists failed providers."""
        data = logging_hook._build_log_data(failed_result)

        assert data["failed_providers"] == ["Remote"]
        assert data["variant_ids"] == []
        assert "features" not in data

    def test_build_log_data_with_context(self, logging_hook, successful_result, full_context):
        """Test _build_log_data includes scalar context fields."""
        data = logging_hook._build_log_data(successful_result, full_context)

        assert data["UserId"] == "user-123"
        assert data["Market"] == "US"
        assert data["AgeGroup"] == 2
        assert data["Tags"] == "['beta']"
        assert "Coupon" not in data

    def test_build_log_data_without_context(self, mock_logger, successful_result, full_context):
        """Test _build_log_data with include_context=False."""
        from contextual_flags.contrib.logging import LoggingHook

        hook = LoggingHook(logger=mock_logger, include_context=False)
        data = hook._build_log_data(successful_result, full_context)

        assert "UserId" not in data

    def test_build_log_data_with_unsupported_context(self, logging_hook, successful_result):
        """Test contexts that cannot be read are described by type."""
        data = logging_hook._build_log_data(successful_result, 42)

        assert data["context_type"] == "int"

    def test_log_with_data_stdlib(self, logging_hook, mock_logger):
        """Test _log_with_data with stdlib logging."""
        logging_hook._log_with_data("INFO", "Test message", {"key": "value"})

        mock_logger.info.assert_called_once_with("Test message", extra={"key": "value"})

    def test_log_with_data_renames_reserved_keys(self, logging_hook, mock_logger):
        """Test keys clashing with LogRecord attributes are prefixed."""
        logging_hook._log_with_data("INFO", "Test message", {"name": "x", "module": "y", "plan": "pro"})

        extra = mock_logger.info.call_args.kwargs["extra"]
        assert extra == {"context_name": "x", "context_module": "y", "plan": "pro"}

    async def test_log_evaluation_success(self, logging_hook, mock_logger, successful_result):
        """Test log_evaluation with a successful result."""
        await logging_hook.log_evaluation(successful_result)

        mock_logger.debug.assert_called_once()
        assert mock_logger.debug.call_args[0][0] == "Variants evaluated: A, Fast"

    async def test_log_evaluation_empty(self, logging_hook, mock_logger):
        """Test log_evaluation when nothing was selected."""
        await logging_hook.log_evaluation(EvaluationResult())

        assert mock_logger.debug.call_args[0][0] == "Variants evaluated: <none>"

    async def test_log_evaluation_with_failures(self, logging_hook, mock_logger, failed_result):
        """Test log_evaluation with a failed provider logs at error level."""
        await logging_hook.log_evaluation(failed_result)

        mock_logger.error.assert_called_once()
        assert "completed with provider failures" in mock_logger.error.call_args[0][0]

    async def test_before_evaluation(self, logging_hook, mock_logger, full_context):
        """Test before_evaluation logs starting message."""
        await logging_hook.before_evaluation(full_context)

        mock_logger.debug.assert_called_once()
        call_args = mock_logger.debug.call_args
        assert call_args[0][0] == "Starting variant evaluation"
        assert call_args.kwargs["extra"]["UserId"] == "user-123"

    async def test_before_evaluation_without_context(self, logging_hook, mock_logger):
        """Test before_evaluation without context."""
        await logging_hook.before_evaluation()

        assert mock_logger.debug.call_args.kwargs["extra"] == {}

    async def test_after_evaluation(self, logging_hook, mock_logger, successful_result):
        """Test after_evaluation calls log_evaluation."""
        await logging_hook.after_evaluation(successful_result)

        mock_logger.debug.assert_called_once()

    async def test_on_error_stdlib(self, logging_hook, mock_logger, full_context):
        """Test on_error with stdlib logging."""
        error = ValueError("Test error")
        await logging_hook.on_error(error, "Remote", full_context)

        mock_logger.error.assert_called_once()
        call_args = mock_logger.error.call_args
        assert "Provider failed during variant evaluation: Remote" in call_args[0][0]
        assert call_args.kwargs["exc_info"] == error
        assert call_args.kwargs["extra"]["error_type"] == "ValueError"
        assert call_args.kwargs["extra"]["error_message"] == "Test error"
        assert call_args.kwargs["extra"]["provider_name"] == "Remote"

    async def test_on_error_without_context(self, logging_hook, mock_logger):
        """Test on_error without context."""
        await logging_hook.on_error(RuntimeError("Test error"), "Remote")

        assert "UserId" not in mock_logger.error.call_args.kwargs["extra"]

    def test_log_evaluation_sync(self, logging_hook, mock_logger, successful_result):
        """Test synchronous log_evaluation_sync method."""
        logging_hook.log_evaluation_sync(successful_result)

        mock_logger.debug.assert_called_once()

    def test_log_evaluation_sync_error(self, logging_hook, mock_logger, failed_result):
        """Test log_evaluation_sync with a failed provider."""
        logging_hook.log_evaluation_sync(failed_result)

        mock_logger.error.assert_called_once()

    def test_bind_stdlib_returns_new_hook(self, logging_hook, mock_logger):
        """Test bind returns a new LoggingHook carrying the fields."""
        new_hook = logging_hook.bind(request_id="abc-123")

        assert new_hook is not logging_hook
        assert new_hook._evaluation_level == logging_hook._evaluation_level
        assert new_hook._error_level == logging_hook._error_level
        new_hook._log_with_data("INFO", "Test message", {"key": "value"})
        mock_logger.info.assert_called_once_with("Test message", extra={"request_id": "abc-123", "key": "value"})

    def test_bind_does_not_change_original(self, logging_hook, mock_logger):
        """Test the original hook keeps logging without the bound fields."""
        logging_hook.bind(request_id="abc-123")
        logging_hook._log_with_data("INFO", "Test message", {})

        mock_logger.info.assert_called_once_with("Test message", extra={})


class TestLoggingHookWithStructlog:
    """Test LoggingHook with structlog (when available)."""

    @pytest.fixture
    def mock_structlog_logger(self):
        """Create a mock structlog logger."""
        logger = MagicMock()
        logger.bind.return_value = MagicMock()
        return logger

    @pytest.fixture
    def logging_hook_structlog(self, mock_structlog_logger):
        """Create LoggingHook configured for structlog."""
        from contextual_flags.contrib.logging import LoggingHook

        hook = LoggingHook(logger=mock_structlog_logger)
        hook._use_structlog = True  # Force structlog mode
        return hook

    def test_log_with_data_structlog(self, logging_hook_structlog, mock_structlog_logger):
        """Test _log_with_data with structlog uses kwargs."""
        logging_hook_structlog._log_with_data("INFO", "Test message", {"key": "value", "count": 42})

        mock_structlog_logger.info.assert_called_once_with("Test message", key="value", count=42)

    def test_structlog_keeps_reserved_names(self, logging_hook_structlog, mock_structlog_logger):
        """Test structlog records are not renamed."""
        logging_hook_structlog._log_with_data("INFO", "Test message", {"name": "x"})

        mock_structlog_logger.info.assert_called_once_with("Test message", name="x")

    async def test_on_error_structlog(self, logging_hook_structlog, mock_structlog_logger):
        """Test on_error with structlog includes exc_info."""
        error = ValueError("Structlog error")
        await logging_hook_structlog.on_error(error, "Remote")

        mock_structlog_logger.error.assert_called_once()
        call_kwargs = mock_structlog_logger.error.call_args.kwargs
        assert call_kwargs["exc_info"] == error
        assert call_kwargs["error_type"] == "ValueError"

    def test_bind_structlog_returns_bound_hook(self, logging_hook_structlog, mock_structlog_logger):
        """Test bind with structlog returns hook with bound logger."""
        bound_logger = MagicMock()
        mock_structlog_logger.bind.return_value = bound_logger

        with patch("contextual_flags.contrib.logging.structlog", MagicMock()):
            new_hook = logging_hook_structlog.bind(request_id="xyz-789")

        mock_structlog_logger.bind.assert_called_once_with(request_id="xyz-789")
        assert new_hook is not logging_hook_structlog
        assert new_hook.logger is bound_logger
        assert new_hook._bound == {}


class TestLoggingHookDefaultLogger:
    """Test LoggingHook default logger creation."""

    def test_get_default_logger_stdlib(self):
        """Test _get_default_logger returns stdlib logger when structlog unavailable."""
        with patch("contextual_flags.contrib.logging.STRUCTLOG_AVAILABLE", False):
            with patch("contextual_flags.contrib.logging.structlog", None):
                from contextual_flags.contrib.logging import _get_default_logger

                logger = _get_default_logger()
                assert isinstance(logger, logging.Logger)
                assert logger.name == "contextual_flags"

    def test_default_logger_created_on_init(self):
        """Test that default logger is created when none provided."""
        from contextual_flags.contrib.logging import LoggingHook

        hook = LoggingHook()
        assert hook.logger is not None


class TestLoggingHookWithResolver:
    """Test LoggingHook attached to a resolver."""

    async def test_records_evaluation(self, caplog: pytest.LogCaptureFixture):
        """Test a real evaluation produces start and result records."""
        from contextual_flags.contrib.logging import LoggingHook

        hook = LoggingHook(logger=logging.getLogger("contextual_flags.test"), evaluation_level="INFO")
        provider = MemoryFeatureProvider([Feature("Checkout", provider_name="Memory", variants=(Variant("A"),))])
        resolver = VariantResolver([provider], hooks=[hook])

        with caplog.at_level(logging.INFO, logger="contextual_flags.test"):
            await resolver.evaluate(DictionaryContext(UserId="user-1", Market="US"))

        records = [record for record in caplog.records if record.name == "contextual_flags.test"]
        assert [record.getMessage() for record in records] == ["Starting variant evaluation", "Variants evaluated: A"]
        record = records[-1]
        assert record.features == {"Checkout": "A"}
        assert record.Market == "US"

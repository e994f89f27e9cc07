"""Structured logging for variant evaluations.

:class:`LoggingHook` logs every evaluation through structlog when it is
installed and through a stdlib logger otherwise.

Example:
    Adding the hook to a resolver::

        from contextual_flags import VariantResolver
        from contextual_flags.contrib.logging import LoggingHook

        resolver = VariantResolver(providers, hooks=[LoggingHook(evaluation_level="INFO")])

    Binding request-scoped fields::

        hook = LoggingHook().bind(request_id="abc-123")
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from contextual_flags.context import populate_receiver

if TYPE_CHECKING:
    from contextual_flags.results import EvaluationResult

try:
    import structlog

    STRUCTLOG_AVAILABLE = True
except ImportError:
    structlog = None  # type: ignore[assignment]
    STRUCTLOG_AVAILABLE = False

__all__ = [
    "STRUCTLOG_AVAILABLE",
    "LoggerProtocol",
    "LoggingHook",
]

LOGGER_NAME = "contextual_flags"

# attributes of LogRecord which stdlib loggers refuse in ``extra``
_RESERVED_RECORD_KEYS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


@runtime_checkable
class LoggerProtocol(Protocol):
    """Methods used from stdlib and structlog loggers."""

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> Any: ...

    def info(self, msg: str, *args: Any, **kwargs: Any) -> Any: ...

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> Any: ...

    def error(self, msg: str, *args: Any, **kwargs: Any) -> Any: ...


def _stdlib_extra(data: dict[str, Any]) -> dict[str, Any]:
    return {f"context_{key}" if key in _RESERVED_RECORD_KEYS else key: value for key, value in data.items()}


def _get_default_logger() -> Any:
    if STRUCTLOG_AVAILABLE and structlog is not None:
        return structlog.get_logger(LOGGER_NAME)
    return logging.getLogger(LOGGER_NAME)


class _ContextCollector:
    """Receiver keeping the scalar attributes of a context for log output."""

    def __init__(self) -> None:
        self.values: dict[str, Any] = {}

    def receive(self, name: str, value: Any) -> None:
        if value is None:
            return
        if isinstance(value, (str, int, float, bool)):
            self.values[name] = value
        else:
            self.values[name] = str(value)


class LoggingHook:
    """Evaluation hook writing one log record per evaluation.

    Successful evaluations are logged at ``evaluation_level``; evaluations in
    which a provider failed, and the failures themselves, at ``error_level``.

    Args:
        logger: Logger to use. Defaults to a structlog logger when available,
            else ``logging.getLogger("contextual_flags")``.
        evaluation_level: Level of evaluation records.
        error_level: Level of failure records.
        log_values: Include the merged configuration. Off by default since
            configurations may hold sensitive settings.
        include_context: Include the scalar context attributes.
    """

    def __init__(
        self,
        logger: Any = None,
        evaluation_level: str = "DEBUG",
        error_level: str = "ERROR",
        log_values: bool = False,
        include_context: bool = True,
    ) -> None:
        self._logger = logger if logger is not None else _get_default_logger()
        self._evaluation_level = evaluation_level
        self._error_level = error_level
        self._log_values = log_values
        self._include_context = include_context
        self._bound: dict[str, Any] = {}
        self._use_structlog = STRUCTLOG_AVAILABLE and structlog is not None and not isinstance(
            self._logger, logging.Logger
        )

    @property
    def logger(self) -> Any:
        return self._logger

    def _get_log_method(self, level: str) -> Any:
        methods = {
            "DEBUG": self._logger.debug,
            "INFO": self._logger.info,
            "WARNING": self._logger.warning,
            "ERROR": self._logger.error,
            "CRITICAL": getattr(self._logger, "critical", self._logger.error),
        }
        return methods.get(level.upper(), self._logger.debug)

    def _context_data(self, context: Any) -> dict[str, Any]:
        if context is None or not self._include_context:
            return {}
        collector = _ContextCollector()
        try:
            populate_receiver(context, collector)
        except TypeError:
            return {"context_type": type(context).__name__}
        return collector.values

    def _build_log_data(self, result: EvaluationResult, context: Any = None) -> dict[str, Any]:
        data: dict[str, Any] = {
            "variant_ids": result.variant_ids,
            "variant_count": len(result.variants),
        }
        if result.metadata is not None:
            data["features"] = {item.feature_name: item.variant_id for item in result.metadata}
            overridden = [item.feature_name for item in result.metadata if item.is_overridden]
            if overridden:
                data["overridden_features"] = overridden
        if result.failures:
            data["failed_providers"] = [failure.provider_name for failure in result.failures]
        if self._log_values:
            data["configuration"] = result.configuration
        data.update(self._context_data(context))
        return data

    def _log_with_data(self, level: str, message: str, data: dict[str, Any]) -> None:
        data = {**self._bound, **data}
        log_method = self._get_log_method(level)
        if self._use_structlog:
            log_method(message, **data)
        else:
            log_method(message, extra=_stdlib_extra(data))

    async def before_evaluation(self, context: Any = None) -> None:
        """Log the start of an evaluation."""
        self._log_with_data(self._evaluation_level, "Starting variant evaluation", self._context_data(context))

    async def after_evaluation(self, result: EvaluationResult, context: Any = None) -> None:
        """Log the evaluation result."""
        await self.log_evaluation(result, context)

    async def on_error(self, error: Exception, provider_name: str, context: Any = None) -> None:
        """Log a provider failure with its exception."""
        data = {
            "provider_name": provider_name,
            "error_type": type(error).__name__,
            "error_message": str(error),
            **self._bound,
            **self._context_data(context),
        }
        log_method = self._get_log_method(self._error_level)
        message = f"Provider failed during variant evaluation: {provider_name}"
        if self._use_structlog:
            log_method(message, exc_info=error, **data)
        else:
            log_method(message, exc_info=error, extra=_stdlib_extra(data))

    async def log_evaluation(self, result: EvaluationResult, context: Any = None) -> None:
        self.log_evaluation_sync(result, context)

    def log_evaluation_sync(self, result: EvaluationResult, context: Any = None) -> None:
        """Log ``result`` outside of an event loop."""
        data = self._build_log_data(result, context)
        if result.failures:
            self._log_with_data(self._error_level, "Variant evaluation completed with provider failures", data)
        else:
            self._log_with_data(
                self._evaluation_level, f"Variants evaluated: {', '.join(result.variant_ids) or '<none>'}", data
            )

    def bind(self, **kwargs: Any) -> LoggingHook:
        """Return a hook whose records carry ``kwargs``.

        With structlog the logger is bound, stdlib records get the fields
        added to their ``extra`` data.
        """
        bound = dict(self._bound)
        logger = self._logger
        if self._use_structlog and structlog is not None:
            logger = self._logger.bind(**kwargs)
        else:
            bound.update(kwargs)
        hook = LoggingHook(
            logger=logger,
            evaluation_level=self._evaluation_level,
            error_level=self._error_level,
            log_values=self._log_values,
            include_context=self._include_context,
        )
        hook._use_structlog = self._use_structlog
        hook._bound = bound
        return hook

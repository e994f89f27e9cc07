"""Exception hierarchy for contextual-flags.

Construction-time problems (invalid ranges, malformed configuration) raise
one of these. Evaluation never raises them for bad data: malformed filters
simply do not match and failing providers are isolated by the resolver.
"""

from __future__ import annotations

__all__ = [
    "AllocationError",
    "BindingError",
    "ConditionParseError",
    "ConfigurationError",
    "ContextualFlagsError",
    "RangeParseError",
]


class ContextualFlagsError(Exception):
    """Base class for all errors raised by contextual-flags."""


class AllocationError(ContextualFlagsError, ValueError):
    """Raised when a range or allocation has invalid bounds."""


class RangeParseError(ContextualFlagsError, ValueError):
    """Raised when a range string does not follow the ``[a;b)`` grammar.

    Attributes:
        text: The offending input.
    """

    def __init__(self, text: str, reason: str | None = None) -> None:
        self.text = text
        message = f"Invalid range string {text!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ConditionParseError(ContextualFlagsError):
    """Raised by the strict condition parser for an unknown operator or shape."""


class ConfigurationError(ContextualFlagsError):
    """Raised when a feature configuration mapping cannot be loaded."""

    def __init__(self, message: str, *, feature: str | None = None, variant: str | None = None) -> None:
        self.feature = feature
        self.variant = variant
        location = ".".join(part for part in (feature, variant) if part)
        super().__init__(f"{location}: {message}" if location else message)


class BindingError(ContextualFlagsError):
    """Raised when a merged configuration cannot be bound onto a destination."""

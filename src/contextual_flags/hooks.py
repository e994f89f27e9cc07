"""Evaluation hooks."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from contextual_flags.results import EvaluationResult

__all__ = ["EvaluationHook"]


@runtime_checkable
class EvaluationHook(Protocol):
    """Observer of resolver evaluations.

    Every method is optional in practice: the resolver only calls the ones a
    hook defines. Exceptions raised by a hook are logged and never change the
    evaluation result.
    """

    async def before_evaluation(self, context: Any) -> None:
        """Called before any provider is asked for features."""
        ...

    async def after_evaluation(self, result: EvaluationResult, context: Any) -> None:
        """Called with the completed result."""
        ...

    async def on_error(self, error: Exception, provider_name: str, context: Any) -> None:
        """Called when a feature or override provider fails."""
        ...

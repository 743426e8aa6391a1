"""Custom exceptions for loadplan.

All loadplan-specific exceptions inherit from LoadPlanError for unified error handling.
Each exception preserves the original cause chain for debugging.
"""

from __future__ import annotations

from typing import Any


class LoadPlanError(Exception):
    """Base exception for all loadplan errors.

    Attributes:
        message: Human-readable error description
        context: Optional dictionary with additional debugging context
        original_error: Original exception that caused this error (if any)
    """

    def __init__(
        self,
        message: str,
        *args: object,
        context: dict[str, Any] | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, *args)
        self.message = message
        self.context = context or {}
        self.original_error = original_error

    def __str__(self) -> str:
        """Return formatted error message with context if available."""
        base = self.message
        if self.context:
            ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            base = f"{base} [{ctx_str}]"
        if self.original_error:
            base = f"{base} (caused by: {type(self.original_error).__name__}: {self.original_error})"
        return base

    def with_context(self, **kwargs: Any) -> "LoadPlanError":
        """Add context to this error and return self for chaining."""
        self.context.update(kwargs)
        return self


class ConfigurationError(LoadPlanError):
    """Raised when a plan fragment is invalid or incomplete.

    Common causes:
    - Request built without method or path
    - Blank scenario name
    - Base URL that is not absolute https with a host
    - Non-positive user counts, rates or durations
    - Stress ramp whose target rate does not exceed its start rate
    - Population built without any injection steps
    - Plan file not found or malformed
    """


class ExecutionError(LoadPlanError):
    """Raised when the external execution engine fails on a handed-off plan.

    The failure is fatal and never retried here; rebuild the plan and hand it
    off again if a retry is wanted.
    """

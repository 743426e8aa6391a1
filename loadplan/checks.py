"""Response check descriptors.

Checks are recorded, never evaluated: the execution engine decides how a status
assertion or JSON-path extraction is applied to a response. Subclass ``Check``
to hand the engine descriptors of your own.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from .exceptions import ConfigurationError


class _Unset:
    """Marker for 'no expected value' so that None can be expected as JSON null."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


@dataclass(frozen=True, slots=True)
class Check:
    """Base class for all response checks."""


@dataclass(frozen=True, slots=True)
class StatusCheck(Check):
    """Assert the response status equals code."""

    code: int

    def __post_init__(self) -> None:
        if isinstance(self.code, bool) or not isinstance(self.code, int) or not 100 <= self.code <= 599:
            raise ConfigurationError(
                f"Invalid status check: code={self.code!r}",
                context={"code": self.code},
            )


@dataclass(frozen=True, slots=True)
class JsonPathCheck(Check):
    """Extract expression from a JSON body; optionally store it and/or compare it.

    A bare JsonPathCheck asserts that the expression resolves to something.
    """

    expression: str
    save_as_name: str | None = None
    expected: Any = UNSET

    def __post_init__(self) -> None:
        if not isinstance(self.expression, str) or not self.expression.strip():
            raise ConfigurationError("JSON path expression must not be null or blank.")
        if self.save_as_name is not None and (
            not isinstance(self.save_as_name, str) or not self.save_as_name.strip()
        ):
            raise ConfigurationError(
                "Session variable name must not be blank.",
                context={"expression": self.expression},
            )

    @property
    def has_expected(self) -> bool:
        return self.expected is not UNSET

    def save_as(self, variable: str) -> "JsonPathCheck":
        """Store the extracted value under session variable ``variable``."""
        return replace(self, save_as_name=variable)

    def is_(self, value: Any) -> "JsonPathCheck":
        """Assert the extracted value equals ``value``."""
        return replace(self, expected=value)


def status(code: int) -> StatusCheck:
    return StatusCheck(code)


def json_path(expression: str) -> JsonPathCheck:
    return JsonPathCheck(expression)

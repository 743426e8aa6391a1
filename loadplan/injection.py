"""Injection profiles: how many virtual users arrive, and when.

Open-model steps describe arrivals (spike, ramp_up, steady, stress_ramp);
closed-model steps describe concurrency (constant_concurrent, ramp_concurrent).
Construction is pure and deterministic: every profile validates itself in
__post_init__, so an invalid profile can never exist.

The generation helpers at the bottom (expected_users, arrival_offsets,
concurrent_users_at) are the single source of truth for the shape of a model.
Steps run back to back, each starting where the previous one ended.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Union

from .exceptions import ConfigurationError
from .logging_config import resolve_logger


class ModelFamily(str, Enum):
    """Injection model family."""

    OPEN = "open"  # Arrival-rate driven
    CLOSED = "closed"  # Concurrency driven


class ProfileKind(str, Enum):
    """Closed set of injection profile shapes."""

    SPIKE = "spike"
    RAMP_UP = "ramp_up"
    STEADY = "steady"
    STRESS_RAMP = "stress_ramp"
    CONSTANT_CONCURRENT = "constant_concurrent"
    RAMP_CONCURRENT = "ramp_concurrent"


def _is_count(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _invalid(kind: ProfileKind, values: dict[str, Any]) -> ConfigurationError:
    detail = ", ".join(f"{k}={v}" for k, v in values.items())
    return ConfigurationError(f"Invalid {kind.name} profile: {detail}", context=dict(values))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True, slots=True)
class InjectionStep:
    """Base class for every injection profile."""

    kind: ClassVar[ProfileKind]
    family: ClassVar[ModelFamily]

    @property
    def duration(self) -> float:
        return 0.0


@dataclass(frozen=True, slots=True)
class OpenInjectionStep(InjectionStep):
    family: ClassVar[ModelFamily] = ModelFamily.OPEN

    def user_count(self) -> int:
        """Total users this step injects."""
        raise NotImplementedError

    def arrival_times(self) -> list[float]:
        """Arrival offset of every injected user, relative to the step start."""
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class ClosedInjectionStep(InjectionStep):
    family: ClassVar[ModelFamily] = ModelFamily.CLOSED

    def peak_users(self) -> int:
        raise NotImplementedError

    def users_at(self, offset: float) -> int:
        """Target concurrency at offset seconds into this step."""
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class Spike(OpenInjectionStep):
    """All users arrive at once."""

    users: int
    kind: ClassVar[ProfileKind] = ProfileKind.SPIKE

    def __post_init__(self) -> None:
        if not _is_count(self.users) or self.users <= 0:
            raise _invalid(self.kind, {"users": self.users})

    def user_count(self) -> int:
        return self.users

    def arrival_times(self) -> list[float]:
        return [0.0] * self.users


@dataclass(frozen=True, slots=True)
class RampUp(OpenInjectionStep):
    """Users arrive linearly over duration_seconds."""

    users: int
    duration_seconds: float
    kind: ClassVar[ProfileKind] = ProfileKind.RAMP_UP

    def __post_init__(self) -> None:
        if (
            not _is_count(self.users) or self.users <= 0
            or not _is_number(self.duration_seconds) or self.duration_seconds <= 0
        ):
            raise _invalid(self.kind, {"users": self.users, "duration": self.duration_seconds})

    @property
    def duration(self) -> float:
        return float(self.duration_seconds)

    def user_count(self) -> int:
        return self.users

    def arrival_times(self) -> list[float]:
        interval = self.duration_seconds / self.users
        return [i * interval for i in range(self.users)]


@dataclass(frozen=True, slots=True)
class Steady(OpenInjectionStep):
    """Constant arrival rate of users_per_second for duration_seconds."""

    users_per_second: float
    duration_seconds: float
    kind: ClassVar[ProfileKind] = ProfileKind.STEADY

    def __post_init__(self) -> None:
        if (
            not _is_number(self.users_per_second) or self.users_per_second <= 0
            or not _is_number(self.duration_seconds) or self.duration_seconds <= 0
        ):
            raise _invalid(self.kind, {"users": self.users_per_second, "duration": self.duration_seconds})

    @property
    def duration(self) -> float:
        return float(self.duration_seconds)

    def user_count(self) -> int:
        return _round_half_up(self.users_per_second * self.duration_seconds)

    def arrival_times(self) -> list[float]:
        return [i / self.users_per_second for i in range(self.user_count())]


@dataclass(frozen=True, slots=True)
class StressRamp(OpenInjectionStep):
    """Arrival rate grows linearly from one rate to another.

    The start rate may be zero (ramp from idle); the target rate must exceed it.
    """

    from_users_per_second: float
    to_users_per_second: float
    duration_seconds: float
    kind: ClassVar[ProfileKind] = ProfileKind.STRESS_RAMP

    def __post_init__(self) -> None:
        start, end, duration = self.from_users_per_second, self.to_users_per_second, self.duration_seconds
        if (
            not (_is_number(start) and _is_number(end) and _is_number(duration))
            or start < 0
            or end <= start
            or duration <= 0
        ):
            raise _invalid(self.kind, {"from": start, "to": end, "duration": duration})

    @property
    def duration(self) -> float:
        return float(self.duration_seconds)

    def user_count(self) -> int:
        return _round_half_up((self.from_users_per_second + self.to_users_per_second) / 2 * self.duration_seconds)

    def arrival_times(self) -> list[float]:
        # Users arrived by t: from*t + (to - from) * t^2 / (2 * duration); solve for the i-th.
        start = self.from_users_per_second
        accel = (self.to_users_per_second - start) / (2 * self.duration_seconds)
        return [(-start + math.sqrt(start * start + 4 * accel * i)) / (2 * accel) for i in range(self.user_count())]


@dataclass(frozen=True, slots=True)
class ConstantConcurrent(ClosedInjectionStep):
    """Keep users concurrently active for duration_seconds."""

    users: int
    duration_seconds: float
    kind: ClassVar[ProfileKind] = ProfileKind.CONSTANT_CONCURRENT

    def __post_init__(self) -> None:
        if (
            not _is_count(self.users) or self.users <= 0
            or not _is_number(self.duration_seconds) or self.duration_seconds <= 0
        ):
            raise _invalid(self.kind, {"users": self.users, "duration": self.duration_seconds})

    @property
    def duration(self) -> float:
        return float(self.duration_seconds)

    def peak_users(self) -> int:
        return self.users

    def users_at(self, offset: float) -> int:
        return self.users


@dataclass(frozen=True, slots=True)
class RampConcurrent(ClosedInjectionStep):
    """Move concurrency linearly from from_users to to_users (either direction)."""

    from_users: int
    to_users: int
    duration_seconds: float
    kind: ClassVar[ProfileKind] = ProfileKind.RAMP_CONCURRENT

    def __post_init__(self) -> None:
        start, end, duration = self.from_users, self.to_users, self.duration_seconds
        if (
            not (_is_count(start) and _is_count(end) and _is_number(duration))
            or start < 0
            or end < 0
            or start == end
            or duration <= 0
        ):
            raise _invalid(self.kind, {"from": start, "to": end, "duration": duration})

    @property
    def duration(self) -> float:
        return float(self.duration_seconds)

    def peak_users(self) -> int:
        return max(self.from_users, self.to_users)

    def users_at(self, offset: float) -> int:
        progress = min(1.0, max(0.0, offset / self.duration_seconds))
        return int(self.from_users + (self.to_users - self.from_users) * progress)


# --- Injection models: exactly one family per population ---


def _check_family(steps: tuple[InjectionStep, ...], family: ModelFamily) -> None:
    if not steps:
        raise ConfigurationError(f"{family.value.capitalize()} injection model needs at least one step.")
    for step in steps:
        if not isinstance(step, InjectionStep) or step.family is not family:
            raise ConfigurationError(
                f"Expected {family.value} injection steps, got {step!r}",
                context={"family": family.value},
            )


@dataclass(frozen=True, slots=True)
class OpenModel:
    steps: tuple[OpenInjectionStep, ...]
    family: ClassVar[ModelFamily] = ModelFamily.OPEN

    def __post_init__(self) -> None:
        _check_family(self.steps, self.family)


@dataclass(frozen=True, slots=True)
class ClosedModel:
    steps: tuple[ClosedInjectionStep, ...]
    family: ClassVar[ModelFamily] = ModelFamily.CLOSED

    def __post_init__(self) -> None:
        _check_family(self.steps, self.family)


InjectionModel = Union[OpenModel, ClosedModel]


# --- Factory functions ---


def spike(users: int, *, logger: logging.Logger | None = None) -> Spike:
    """users virtual users arrive simultaneously."""
    profile = Spike(users)
    resolve_logger(logger, "injection").info("Creating SPIKE profile with %s users injected immediately.", users)
    return profile


def ramp_up(users: int, duration_seconds: float, *, logger: logging.Logger | None = None) -> RampUp:
    """users virtual users arrive linearly over duration_seconds."""
    profile = RampUp(users, duration_seconds)
    resolve_logger(logger, "injection").info(
        "Creating RAMP_UP profile with %s users over %s seconds.", users, duration_seconds
    )
    return profile


def steady(users_per_second: float, duration_seconds: float, *, logger: logging.Logger | None = None) -> Steady:
    """users_per_second arrivals sustained for duration_seconds."""
    profile = Steady(users_per_second, duration_seconds)
    resolve_logger(logger, "injection").info(
        "Creating STEADY profile with %s users/sec for %s seconds.", users_per_second, duration_seconds
    )
    return profile


def stress_ramp(
    from_users_per_second: float,
    to_users_per_second: float,
    duration_seconds: float,
    *,
    logger: logging.Logger | None = None,
) -> StressRamp:
    """Arrival rate increases linearly from one rate to another over duration_seconds."""
    profile = StressRamp(from_users_per_second, to_users_per_second, duration_seconds)
    resolve_logger(logger, "injection").info(
        "Creating STRESS_RAMP from %s to %s users/sec over %s seconds.",
        from_users_per_second, to_users_per_second, duration_seconds,
    )
    return profile


def constant_concurrent(
    users: int,
    duration_seconds: float,
    *,
    logger: logging.Logger | None = None,
) -> ConstantConcurrent:
    profile = ConstantConcurrent(users, duration_seconds)
    resolve_logger(logger, "injection").info(
        "Creating CONSTANT_CONCURRENT profile with %s users for %s seconds.", users, duration_seconds
    )
    return profile


def ramp_concurrent(
    from_users: int,
    to_users: int,
    duration_seconds: float,
    *,
    logger: logging.Logger | None = None,
) -> RampConcurrent:
    profile = RampConcurrent(from_users, to_users, duration_seconds)
    resolve_logger(logger, "injection").info(
        "Creating RAMP_CONCURRENT from %s to %s users over %s seconds.", from_users, to_users, duration_seconds
    )
    return profile


# --- Generation ---


def _steps_of(model: InjectionModel | Sequence[InjectionStep]) -> tuple[InjectionStep, ...]:
    if isinstance(model, (OpenModel, ClosedModel)):
        return model.steps
    return tuple(model)


def _require_family(steps: tuple[InjectionStep, ...], family: ModelFamily, operation: str) -> None:
    for step in steps:
        if step.family is not family:
            raise ConfigurationError(
                f"{operation} needs {family.value} injection steps, got {step.kind.value}",
                context={"kind": step.kind.value},
            )


def model_duration(model: InjectionModel | Sequence[InjectionStep]) -> float:
    """Total seconds the steps take when run back to back."""
    return sum(step.duration for step in _steps_of(model))


def expected_users(model: InjectionModel | Sequence[InjectionStep]) -> int:
    """Users injected by an open model, or peak concurrency of a closed one."""
    steps = _steps_of(model)
    if not steps:
        return 0
    if steps[0].family is ModelFamily.OPEN:
        _require_family(steps, ModelFamily.OPEN, "expected_users")
        return sum(step.user_count() for step in steps)
    _require_family(steps, ModelFamily.CLOSED, "expected_users")
    return max(step.peak_users() for step in steps)


def arrival_offsets(model: InjectionModel | Sequence[InjectionStep]) -> list[float]:
    """Arrival time in seconds of every user of an open model, in order."""
    steps = _steps_of(model)
    _require_family(steps, ModelFamily.OPEN, "arrival_offsets")
    offsets: list[float] = []
    start = 0.0
    for step in steps:
        offsets.extend(start + t for t in step.arrival_times())
        start += step.duration
    return offsets


def concurrent_users_at(model: InjectionModel | Sequence[InjectionStep], elapsed_seconds: float) -> int:
    """Target concurrency of a closed model at elapsed_seconds (0 outside the model)."""
    steps = _steps_of(model)
    _require_family(steps, ModelFamily.CLOSED, "concurrent_users_at")
    if elapsed_seconds < 0:
        return 0
    start = 0.0
    for step in steps:
        end = start + step.duration
        if start <= elapsed_seconds < end:
            return step.users_at(elapsed_seconds - start)
        start = end
    return 0

"""Immutable plan values produced by the loadplan builders.

Everything here is a frozen, slotted dataclass over tuples and ``Headers``, so a
built value can be shared between populations and plans without copying:
- RequestStep / Pause are the leaves
- Chain and Scenario own ordered tuples of their constituents
- Population binds a Scenario, one injection model and a ProtocolConfig
- LoadPlan bundles one or more Populations for the execution engine
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Union
from urllib.parse import urlsplit

from .checks import Check
from .exceptions import ConfigurationError
from .headers import Headers

if TYPE_CHECKING:
    from .injection import InjectionModel


class HttpMethod(str, Enum):
    """HTTP verbs a request step may use."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"

    @classmethod
    def parse(cls, value: "HttpMethod | str") -> "HttpMethod":
        """Accept an HttpMethod or a case-insensitive method name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        raise ConfigurationError(f"Unsupported HTTP method: {value!r}", context={"method": value})


# Methods that by convention carry no request body
BODYLESS_METHODS = frozenset({HttpMethod.GET, HttpMethod.HEAD})


@dataclass(frozen=True, slots=True)
class Pause:
    """Think time between request steps, in seconds."""

    seconds: float

    def __post_init__(self) -> None:
        if isinstance(self.seconds, bool) or not isinstance(self.seconds, (int, float)) or self.seconds < 0:
            raise ConfigurationError(
                f"Pause duration must be a non-negative number: {self.seconds!r}",
                context={"seconds": self.seconds},
            )


@dataclass(frozen=True, slots=True)
class RequestStep:
    """One HTTP call. Absent headers are None, absent checks an empty tuple."""

    name: str
    method: HttpMethod
    path: str
    headers: Headers | None = None
    body: str | None = None
    checks: tuple[Check, ...] = ()

    def __repr__(self) -> str:
        return f"RequestStep(name={self.name!r}, method={self.method.value!r}, path={self.path!r})"


ChainElement = Union[RequestStep, Pause]


@dataclass(frozen=True, slots=True)
class Chain:
    """Ordered, reusable unit of behavior (e.g. "login")."""

    elements: tuple[ChainElement, ...] = ()
    name: str | None = None

    @property
    def steps(self) -> tuple[RequestStep, ...]:
        return tuple(e for e in self.elements if isinstance(e, RequestStep))

    @property
    def total_pause_seconds(self) -> float:
        return sum(e.seconds for e in self.elements if isinstance(e, Pause))

    def __len__(self) -> int:
        return len(self.elements)


@dataclass(frozen=True, slots=True)
class Scenario:
    """Named user journey replaying its chains in order."""

    name: str
    chains: tuple[Chain, ...] = ()

    @property
    def steps(self) -> tuple[RequestStep, ...]:
        return tuple(step for chain in self.chains for step in chain.steps)

    @property
    def is_empty(self) -> bool:
        return not self.steps


@dataclass(frozen=True, slots=True)
class ProtocolConfig:
    """Base URL and default headers shared by every request of a population."""

    base_url: str
    headers: Headers

    def url_for(self, path: str) -> str:
        """Join base_url and a request path; absolute URLs pass through unchanged."""
        parts = urlsplit(path)
        if parts.scheme and parts.netloc:
            return path
        if not path:
            return self.base_url
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def headers_for(self, step: RequestStep) -> Headers:
        """Protocol defaults overridden by the step's own headers."""
        return self.headers.merged(step.headers)


@dataclass(frozen=True, slots=True)
class Population:
    """A scenario bound to exactly one injection model and one protocol."""

    scenario: Scenario
    model: "InjectionModel"
    protocol: ProtocolConfig

    @property
    def name(self) -> str:
        return self.scenario.name


@dataclass(frozen=True, slots=True)
class LoadPlan:
    """The populations of one load test, handed to the execution engine together."""

    name: str
    populations: tuple[Population, ...]

    def __len__(self) -> int:
        return len(self.populations)

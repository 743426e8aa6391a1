"""Scenario assembly: a named journey replaying chains in order."""

from __future__ import annotations

import logging

from .chains import RequestBuilder
from .exceptions import ConfigurationError
from .logging_config import resolve_logger
from .models import Chain, HttpMethod, Pause, RequestStep, Scenario


class ScenarioBuilder:
    """Bind an ordered list of chains to a scenario name.

    The name is also surfaced in diagnostics, and request() uses it as the
    request's display label unless one is given explicitly.
    """

    def __init__(self, name: str, logger: logging.Logger | None = None) -> None:
        self._logger = resolve_logger(logger, "scenarios")
        if name is None or not isinstance(name, str) or not name.strip():
            msg = "Scenario name cannot be null or blank."
            self._logger.error(msg)
            raise ConfigurationError(msg, context={"name": name})
        self.name = name.strip()
        self._chains: list[Chain] = []
        self._logger.debug("Initialized scenario builder %r", self.name)

    def exec(self, *items: Chain | RequestStep) -> "ScenarioBuilder":
        """Append chains in order; a bare request step becomes a one-step chain."""
        if not items:
            self._logger.warning("exec() called with no chains for scenario %r", self.name)
            return self
        resolved: list[Chain] = []
        for item in items:
            if isinstance(item, RequestStep):
                item = Chain(elements=(item,), name=item.name)
            if not isinstance(item, Chain):
                raise ConfigurationError(
                    f"Scenario items must be chains or request steps, got {type(item).__name__}",
                    context={"scenario": self.name},
                )
            resolved.append(item)
        self._chains.extend(resolved)
        self._logger.debug("Added %d chain(s) to scenario %r", len(resolved), self.name)
        return self

    def pause(self, seconds: float) -> "ScenarioBuilder":
        """Append a chain holding a single pause."""
        self._chains.append(Chain(elements=(Pause(seconds),)))
        self._logger.debug("Added %ss pause to scenario %r", seconds, self.name)
        return self

    def request(self, method: HttpMethod | str, path: str, name: str | None = None) -> "ScenarioBuilder":
        """Append a one-step chain; the scenario name labels it unless name is given."""
        step = RequestBuilder(name or self.name, logger=self._logger).request(method, path).build()
        return self.exec(step)

    def build(self) -> Scenario:
        if not self._chains:
            self._logger.warning("No chains defined for scenario %r. Scenario will do nothing.", self.name)
        scenario = Scenario(name=self.name, chains=tuple(self._chains))
        self._logger.info("Built scenario %r with %d chain(s)", self.name, len(scenario.chains))
        return scenario

"""Population and plan assembly.

PopulationBuilder is the capstone of the composition tree: it binds a Scenario
and a ProtocolConfig, takes exactly one injection model, and emits a Population.
The model is held in a single field, so setting one family always discards the
other:

    Empty --inject_open--> Open --inject_closed--> Closed --inject_open--> Open ...
    Open | Closed --build--> Built (terminal)

PlanBuilder bundles populations into the LoadPlan handed to the engine.
"""

from __future__ import annotations

import logging
from collections import Counter

from .exceptions import ConfigurationError
from .injection import ClosedInjectionStep, ClosedModel, InjectionModel, OpenInjectionStep, OpenModel
from .logging_config import resolve_logger
from .models import LoadPlan, Population, ProtocolConfig, Scenario
from .protocol import ProtocolBuilder


class PopulationBuilder:
    """Bind one scenario to one protocol and one injection model."""

    def __init__(
        self,
        scenario: Scenario,
        protocol: ProtocolConfig | ProtocolBuilder,
        logger: logging.Logger | None = None,
    ) -> None:
        self._logger = resolve_logger(logger, "population")
        if isinstance(protocol, ProtocolBuilder):
            protocol = protocol.build()
        if not isinstance(scenario, Scenario) or not isinstance(protocol, ProtocolConfig):
            msg = "Scenario and protocol must not be null."
            self._logger.error(msg)
            raise ConfigurationError(
                msg,
                context={"scenario": type(scenario).__name__, "protocol": type(protocol).__name__},
            )
        self.scenario = scenario
        self.protocol = protocol
        self._model: InjectionModel | None = None
        self._built: Population | None = None
        self._logger.debug("Population builder initialized for scenario %r", scenario.name)

    @property
    def model(self) -> InjectionModel | None:
        return self._model

    def _ensure_open_for_changes(self) -> None:
        if self._built is not None:
            raise ConfigurationError(
                "Population already built; injection can no longer change.",
                context={"scenario": self.scenario.name},
            )

    def inject_open(self, *steps: OpenInjectionStep) -> "PopulationBuilder":
        """Use an open (arrival-rate) model. Replaces any previous model wholesale."""
        self._ensure_open_for_changes()
        if not steps:
            self._logger.warning("No open injection steps provided. Injection not set.")
            return self
        if self._model is not None and self._model.family is not OpenModel.family:
            self._logger.info("Discarding closed injection model for scenario %r", self.scenario.name)
        self._model = OpenModel(tuple(steps))
        self._logger.info("Open injection configured with %d step(s).", len(steps))
        return self

    def inject_closed(self, *steps: ClosedInjectionStep) -> "PopulationBuilder":
        """Use a closed (concurrency) model. Replaces any previous model wholesale."""
        self._ensure_open_for_changes()
        if not steps:
            self._logger.warning("No closed injection steps provided. Injection not set.")
            return self
        if self._model is not None and self._model.family is not ClosedModel.family:
            self._logger.info("Discarding open injection model for scenario %r", self.scenario.name)
        self._model = ClosedModel(tuple(steps))
        self._logger.info("Closed injection configured with %d step(s).", len(steps))
        return self

    def build(self) -> Population:
        if self._built is not None:
            self._logger.warning("Population %r already built. Returning existing instance.", self.scenario.name)
            return self._built
        if self._model is None:
            msg = f"Cannot build population for scenario '{self.scenario.name}': no injection steps configured"
            self._logger.error(msg)
            raise ConfigurationError(msg, context={"scenario": self.scenario.name})
        if self.scenario.is_empty:
            self._logger.warning("Scenario %r has no request steps; its users will do nothing.", self.scenario.name)
        self._built = Population(scenario=self.scenario, model=self._model, protocol=self.protocol)
        self._logger.info(
            "Built population %r using %s model with %d step(s).",
            self.scenario.name, self._model.family.value, len(self._model.steps),
        )
        return self._built


class PlanBuilder:
    """Bundle one or more populations into a LoadPlan."""

    def __init__(self, name: str = "load-plan", logger: logging.Logger | None = None) -> None:
        self._logger = resolve_logger(logger, "population")
        if not isinstance(name, str) or not name.strip():
            raise ConfigurationError("Plan name must not be blank.")
        self.name = name.strip()
        self._populations: list[Population] = []

    def add(self, *populations: Population | PopulationBuilder) -> "PlanBuilder":
        for population in populations:
            if isinstance(population, PopulationBuilder):
                population = population.build()
            if not isinstance(population, Population):
                raise ConfigurationError(
                    f"Plans hold populations, got {type(population).__name__}",
                    context={"plan": self.name},
                )
            self._populations.append(population)
        self._logger.debug("Plan %r now holds %d population(s)", self.name, len(self._populations))
        return self

    def build(self) -> LoadPlan:
        if not self._populations:
            raise ConfigurationError(
                f"Cannot build plan '{self.name}': no populations added",
                context={"plan": self.name},
            )
        duplicates = [name for name, count in Counter(p.name for p in self._populations).items() if count > 1]
        if duplicates:
            self._logger.warning("Plan %r reuses scenario name(s): %s", self.name, ", ".join(duplicates))
        plan = LoadPlan(name=self.name, populations=tuple(self._populations))
        self._logger.info("Built plan %r with %d population(s)", self.name, len(plan))
        return plan

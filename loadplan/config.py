"""YAML plan loader for loadplan.

A plan file is a declarative front end to the builders: every entry is fed
through RequestBuilder, ChainBuilder, ScenarioBuilder, ProtocolBuilder and
PopulationBuilder, so the same validation rules apply as in code.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import yaml

from .chains import ChainBuilder, RequestBuilder
from .checks import Check, json_path, status
from .exceptions import ConfigurationError
from .injection import (
    InjectionStep,
    ModelFamily,
    ProfileKind,
    constant_concurrent,
    ramp_concurrent,
    ramp_up,
    spike,
    steady,
    stress_ramp,
)
from .logging_config import get_logger
from .models import Chain, LoadPlan, Population, ProtocolConfig, RequestStep, Scenario
from .population import PlanBuilder, PopulationBuilder
from .protocol import ProtocolBuilder
from .scenarios import ScenarioBuilder

logger = get_logger("config")

DEFAULT_PLAN_NAME = "load-plan"

PROFILE_FACTORIES: dict[str, Callable[..., InjectionStep]] = {
    ProfileKind.SPIKE.value: spike,
    ProfileKind.RAMP_UP.value: ramp_up,
    ProfileKind.STEADY.value: steady,
    ProfileKind.STRESS_RAMP.value: stress_ramp,
    ProfileKind.CONSTANT_CONCURRENT.value: constant_concurrent,
    ProfileKind.RAMP_CONCURRENT.value: ramp_concurrent,
}

_REQUEST_KEYS = frozenset({"name", "method", "path", "headers", "body", "checks"})
_JSON_PATH_KEYS = frozenset({"json_path", "save_as", "equals"})
_PROTOCOL_KEYS = frozenset({"base_url", "headers", "accept", "content_type"})


def load_plan(path: str | Path) -> LoadPlan:
    """Load a load-test plan from a YAML file.

    Args:
        path: Path to YAML plan file

    Returns:
        Validated, immutable LoadPlan

    Raises:
        ConfigurationError: If file not found, invalid YAML, or validation fails
    """
    p = Path(path)
    if not p.exists():
        raise ConfigurationError(
            f"Plan file not found: {path}",
            context={"path": str(path)}
        )

    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        logger.exception("Failed to parse YAML plan file")
        raise ConfigurationError(
            f"Invalid YAML syntax in plan file: {e}",
            context={"path": str(path)},
            original_error=e
        ) from e
    except OSError as e:
        logger.exception("Failed to read plan file")
        raise ConfigurationError(
            f"Cannot read plan file: {e}",
            context={"path": str(path)},
            original_error=e
        ) from e

    return load_plan_data(raw, source=str(p))


def load_plan_data(data: Any, source: str = "<memory>") -> LoadPlan:
    """Build a LoadPlan from an already-parsed mapping. Raises ConfigurationError."""
    if not isinstance(data, dict):
        raise ConfigurationError(
            "Plan must be a YAML object/dictionary",
            context={"path": source, "actual_type": type(data).__name__}
        )
    try:
        plan = _build_plan(data)
    except ConfigurationError as e:
        if "path" not in e.context:
            e.with_context(path=source)
        raise
    logger.debug("Loaded plan %r from %s with %d population(s)", plan.name, source, len(plan))
    return plan


def _build_plan(data: dict[str, Any]) -> LoadPlan:
    default_protocol = _protocol(data["protocol"]) if data.get("protocol") is not None else None

    shared_chains: dict[str, Chain] = {}
    for entry in _list_of(data, "chains"):
        chain = _chain(entry)
        if not isinstance(chain.name, str):
            raise ConfigurationError("Top-level chains need a name so scenarios can refer to them")
        if chain.name in shared_chains:
            logger.warning("Chain %r is declared more than once; the last declaration wins.", chain.name)
        shared_chains[chain.name] = chain

    scenarios: dict[str, Scenario] = {}
    for entry in _list_of(data, "scenarios"):
        scenario = _scenario(entry, shared_chains)
        if scenario.name in scenarios:
            logger.warning("Scenario %r is declared more than once; the last declaration wins.", scenario.name)
        scenarios[scenario.name] = scenario

    plan = PlanBuilder(str(data.get("name") or DEFAULT_PLAN_NAME))
    for entry in _list_of(data, "populations"):
        plan.add(_population(entry, scenarios, default_protocol))
    return plan.build()


def _list_of(entry: dict[str, Any], key: str) -> list[Any]:
    value = entry.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigurationError(f"'{key}' must be a list", context={"actual_type": type(value).__name__})
    return value


def _mapping(entry: Any, what: str) -> dict[str, Any]:
    if not isinstance(entry, dict):
        raise ConfigurationError(f"{what} must be a mapping, got {entry!r}")
    return entry


def _reject_unknown(entry: dict[str, Any], allowed: frozenset[str], what: str) -> None:
    unknown = sorted(str(k) for k in set(entry) - allowed)
    if unknown:
        raise ConfigurationError(f"Unknown {what} field(s): {', '.join(unknown)}")


def _protocol(entry: Any) -> ProtocolConfig:
    entry = _mapping(entry, "protocol")
    _reject_unknown(entry, _PROTOCOL_KEYS, "protocol")
    builder = ProtocolBuilder(entry.get("base_url"))
    if entry.get("accept") is not None:
        builder.accept_header(entry["accept"])
    if entry.get("content_type") is not None:
        builder.content_type_header(entry["content_type"])
    if entry.get("headers") is not None:
        builder.with_headers(_mapping(entry["headers"], "protocol headers"))
    return builder.build()


def _check(entry: Any) -> Check:
    entry = _mapping(entry, "check")
    if "status" in entry:
        if len(entry) != 1:
            raise ConfigurationError(f"Status checks take no other fields: {entry!r}")
        return status(entry["status"])
    if "json_path" in entry:
        _reject_unknown(entry, _JSON_PATH_KEYS, "json_path check")
        check = json_path(entry["json_path"])
        if "save_as" in entry:
            check = check.save_as(entry["save_as"])
        if "equals" in entry:
            check = check.is_(entry["equals"])
        return check
    raise ConfigurationError(f"Unknown check: {entry!r}")


def _request(entry: dict[str, Any]) -> RequestStep:
    _reject_unknown(entry, _REQUEST_KEYS, "request")
    if entry.get("method") is None or entry.get("path") is None:
        raise ConfigurationError(f"Request entries need both method and path: {entry!r}")
    builder = RequestBuilder(entry.get("name")).request(entry["method"], entry["path"])
    if entry.get("headers") is not None:
        builder.with_headers(_mapping(entry["headers"], "request headers"))
    if "body" in entry:
        builder.with_body(entry["body"])
    for check in _list_of(entry, "checks"):
        builder.with_check(_check(check))
    return builder.build()


def _chain(entry: Any) -> Chain:
    entry = _mapping(entry, "chain")
    _reject_unknown(entry, frozenset({"name", "steps"}), "chain")
    builder = ChainBuilder(entry.get("name"))
    for step in _list_of(entry, "steps"):
        step = _mapping(step, "chain step")
        if "pause" in step:
            builder.pause(step["pause"])
        else:
            builder.exec(_request(step))
    return builder.build()


def _scenario(entry: Any, shared_chains: dict[str, Chain]) -> Scenario:
    entry = _mapping(entry, "scenario")
    _reject_unknown(entry, frozenset({"name", "chains"}), "scenario")
    builder = ScenarioBuilder(entry.get("name"))
    for item in _list_of(entry, "chains"):
        if isinstance(item, str):
            if item not in shared_chains:
                raise ConfigurationError(f"Unknown chain reference: {item}", context={"scenario": builder.name})
            builder.exec(shared_chains[item])
        elif isinstance(item, dict) and "pause" in item:
            builder.pause(item["pause"])
        else:
            builder.exec(_chain(item))
    return builder.build()


def _profiles(entries: Any, family: ModelFamily) -> list[InjectionStep]:
    if not isinstance(entries, list):
        raise ConfigurationError(f"'{family.value}' injection must be a list of profiles")
    steps: list[InjectionStep] = []
    for entry in entries:
        entry = _mapping(entry, "injection profile")
        if len(entry) != 1:
            raise ConfigurationError(
                f"Injection profiles are single-key mappings like {{spike: {{users: 10}}}}: {entry!r}"
            )
        (kind, args), = entry.items()
        factory = PROFILE_FACTORIES.get(str(kind).strip().lower())
        if factory is None:
            raise ConfigurationError(f"Unknown injection profile: {kind}", context={"family": family.value})
        args = _mapping(args, f"{kind} arguments")
        try:
            steps.append(factory(**{str(k): v for k, v in args.items() if k != "logger"}))
        except TypeError as e:
            raise ConfigurationError(
                f"Invalid arguments for {kind} profile: {e}",
                context={"family": family.value},
                original_error=e,
            ) from e
    return steps


def _population(
    entry: Any,
    scenarios: dict[str, Scenario],
    default_protocol: ProtocolConfig | None,
) -> Population:
    entry = _mapping(entry, "population")
    _reject_unknown(entry, frozenset({"scenario", "protocol", "open", "closed"}), "population")
    name = entry.get("scenario")
    if not isinstance(name, str) or name not in scenarios:
        raise ConfigurationError(f"Unknown scenario reference: {name}")
    protocol = _protocol(entry["protocol"]) if entry.get("protocol") is not None else default_protocol
    if protocol is None:
        raise ConfigurationError(f"No protocol configured for population '{name}'")
    if "open" in entry and "closed" in entry:
        raise ConfigurationError(
            f"Population '{name}' declares both open and closed injection; choose one",
            context={"scenario": name},
        )
    builder = PopulationBuilder(scenarios[name], protocol)
    if "open" in entry:
        builder.inject_open(*_profiles(entry["open"], ModelFamily.OPEN))
    if "closed" in entry:
        builder.inject_closed(*_profiles(entry["closed"], ModelFamily.CLOSED))
    return builder.build()

"""Translate built plans into plain, JSON-ready dicts for the execution engine.

Every variant (check kind, chain element, injection profile) is handled
explicitly; an unknown type raises instead of being silently dropped. Absent
request parts are omitted, never emitted as empty directives.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import orjson

from .checks import Check, JsonPathCheck, StatusCheck
from .exceptions import LoadPlanError
from .injection import (
    ConstantConcurrent,
    InjectionModel,
    InjectionStep,
    RampConcurrent,
    RampUp,
    Spike,
    Steady,
    StressRamp,
    expected_users,
    model_duration,
)
from .logging_config import get_logger
from .models import Chain, LoadPlan, Pause, Population, ProtocolConfig, RequestStep, Scenario

logger = get_logger("export")


def check_to_dict(check: Check) -> dict[str, Any]:
    if isinstance(check, StatusCheck):
        return {"type": "status", "equals": check.code}
    if isinstance(check, JsonPathCheck):
        out: dict[str, Any] = {"type": "json_path", "expression": check.expression}
        if check.save_as_name is not None:
            out["save_as"] = check.save_as_name
        if check.has_expected:
            out["equals"] = check.expected
        return out
    raise LoadPlanError(f"Unsupported check type: {type(check).__name__}")


def step_to_dict(step: RequestStep, protocol: ProtocolConfig | None = None) -> dict[str, Any]:
    """Request step as a dict; with a protocol, url and headers are resolved against it."""
    out: dict[str, Any] = {
        "type": "request",
        "name": step.name,
        "method": step.method.value,
        "path": step.path,
    }
    if protocol is not None:
        out["url"] = protocol.url_for(step.path)
        out["headers"] = dict(protocol.headers_for(step))
    elif step.headers:
        out["headers"] = dict(step.headers)
    if step.body is not None:
        out["body"] = step.body
    if step.checks:
        out["checks"] = [check_to_dict(c) for c in step.checks]
    return out


def chain_to_dict(chain: Chain, protocol: ProtocolConfig | None = None) -> dict[str, Any]:
    elements: list[dict[str, Any]] = []
    for element in chain.elements:
        if isinstance(element, RequestStep):
            elements.append(step_to_dict(element, protocol))
        elif isinstance(element, Pause):
            elements.append({"type": "pause", "seconds": element.seconds})
        else:
            raise LoadPlanError(f"Unsupported chain element: {type(element).__name__}")
    out: dict[str, Any] = {"elements": elements}
    if chain.name is not None:
        out["name"] = chain.name
    return out


def scenario_to_dict(scenario: Scenario, protocol: ProtocolConfig | None = None) -> dict[str, Any]:
    return {
        "name": scenario.name,
        "chains": [chain_to_dict(c, protocol) for c in scenario.chains],
    }


def profile_to_dict(step: InjectionStep) -> dict[str, Any]:
    if isinstance(step, Spike):
        args: dict[str, Any] = {"users": step.users}
    elif isinstance(step, RampUp):
        args = {"users": step.users, "duration_seconds": step.duration_seconds}
    elif isinstance(step, Steady):
        args = {"users_per_second": step.users_per_second, "duration_seconds": step.duration_seconds}
    elif isinstance(step, StressRamp):
        args = {
            "from_users_per_second": step.from_users_per_second,
            "to_users_per_second": step.to_users_per_second,
            "duration_seconds": step.duration_seconds,
        }
    elif isinstance(step, ConstantConcurrent):
        args = {"users": step.users, "duration_seconds": step.duration_seconds}
    elif isinstance(step, RampConcurrent):
        args = {"from_users": step.from_users, "to_users": step.to_users, "duration_seconds": step.duration_seconds}
    else:
        raise LoadPlanError(f"Unsupported injection step: {type(step).__name__}")
    return {"kind": step.kind.value, **args}


def model_to_dict(model: InjectionModel) -> dict[str, Any]:
    return {
        "family": model.family.value,
        "steps": [profile_to_dict(s) for s in model.steps],
        "expected_users": expected_users(model),
        "duration_seconds": model_duration(model),
    }


def protocol_to_dict(protocol: ProtocolConfig) -> dict[str, Any]:
    return {"base_url": protocol.base_url, "headers": dict(protocol.headers)}


def population_to_dict(population: Population) -> dict[str, Any]:
    return {
        "name": population.name,
        "protocol": protocol_to_dict(population.protocol),
        "injection": model_to_dict(population.model),
        "scenario": scenario_to_dict(population.scenario, population.protocol),
    }


def plan_to_dict(plan: LoadPlan) -> dict[str, Any]:
    return {
        "name": plan.name,
        "populations": [population_to_dict(p) for p in plan.populations],
    }


def write_plan(plan: LoadPlan, path: str | Path) -> Path:
    """Write the translated plan as indented JSON. Returns the output path."""
    out = Path(path)
    if out.parent and not out.parent.exists():
        out.parent.mkdir(parents=True, exist_ok=True)
    try:
        payload = orjson.dumps(plan_to_dict(plan), option=orjson.OPT_INDENT_2)
    except orjson.JSONEncodeError as e:
        raise LoadPlanError(
            f"Plan contains values that cannot be written as JSON: {e}",
            context={"plan": plan.name},
            original_error=e,
        ) from e
    out.write_bytes(payload)
    logger.info("Plan %r written to %s", plan.name, out)
    return out

"""Unit tests for loadplan.config (YAML plan loading)."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest
import yaml

from loadplan.config import load_plan, load_plan_data
from loadplan.exceptions import ConfigurationError
from loadplan.injection import ClosedModel, OpenModel, ramp_up, spike
from loadplan.models import Pause


def _data(**overrides):
    base = {
        "protocol": {"base_url": "https://api.example.com"},
        "scenarios": [{"name": "Ping", "chains": [{"steps": [{"method": "GET", "path": "/ping"}]}]}],
        "populations": [{"scenario": "Ping", "open": [{"spike": {"users": 1}}]}],
    }
    base.update(overrides)
    return base


def test_load_auth_plan(auth_plan_path: Path) -> None:
    plan = load_plan(auth_plan_path)
    assert plan.name == "auth-plan"
    (population,) = plan.populations
    assert population.name == "Auth Workflow"
    assert population.model == OpenModel((spike(10), ramp_up(20, 10)))
    login, me = population.scenario.steps
    assert login.body == '{"username":"testuser","password":"password123"}'
    assert login.checks[1].save_as_name == "accessToken"
    assert me.headers["authorization"] == "Bearer #{accessToken}"


def test_load_plan_file_not_found(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="Plan file not found") as exc_info:
        load_plan(tmp_path / "missing.yaml")
    assert exc_info.value.context["path"].endswith("missing.yaml")


def test_load_plan_invalid_yaml(tmp_path: Path) -> None:
    p = tmp_path / "bad.yaml"
    p.write_text("scenarios: [unclosed", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="Invalid YAML syntax") as exc_info:
        load_plan(p)
    assert isinstance(exc_info.value.original_error, yaml.YAMLError)


def test_plan_must_be_mapping(tmp_path: Path) -> None:
    p = tmp_path / "list.yaml"
    p.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="Plan must be a YAML object"):
        load_plan(p)


def test_validation_errors_carry_source_path() -> None:
    with pytest.raises(ConfigurationError, match="Invalid SPIKE profile: users=0") as exc_info:
        load_plan_data(
            _data(populations=[{"scenario": "Ping", "open": [{"spike": {"users": 0}}]}]),
            source="plans/ping.yaml",
        )
    assert exc_info.value.context["path"] == "plans/ping.yaml"


def test_default_plan_name() -> None:
    assert load_plan_data(_data()).name == "load-plan"


def test_shared_chains_and_pauses() -> None:
    data = _data(
        chains=[{"name": "login", "steps": [{"method": "POST", "path": "/auth/login"}, {"pause": 1}]}],
        scenarios=[{"name": "Ping", "chains": ["login", {"pause": 2}, "login"]}],
    )
    scenario = load_plan_data(data).populations[0].scenario
    assert [c.name for c in scenario.chains] == ["login", None, "login"]
    assert scenario.chains[0].elements[1] == Pause(1)
    assert scenario.chains[1].elements == (Pause(2),)


def test_unknown_chain_reference() -> None:
    with pytest.raises(ConfigurationError, match="Unknown chain reference: nope"):
        load_plan_data(_data(scenarios=[{"name": "Ping", "chains": ["nope"]}]))


def test_shared_chain_needs_name() -> None:
    with pytest.raises(ConfigurationError, match="Top-level chains need a name"):
        load_plan_data(_data(chains=[{"steps": [{"method": "GET", "path": "/a"}]}]))


def test_closed_population() -> None:
    closed = [{"constant_concurrent": {"users": 5, "duration_seconds": 30}}]
    data = _data(populations=[{"scenario": "Ping", "closed": closed}])
    assert isinstance(load_plan_data(data).populations[0].model, ClosedModel)


def test_population_with_both_families_is_rejected() -> None:
    data = _data(
        populations=[
            {
                "scenario": "Ping",
                "open": [{"spike": {"users": 1}}],
                "closed": [{"constant_concurrent": {"users": 1, "duration_seconds": 1}}],
            }
        ]
    )
    with pytest.raises(ConfigurationError, match="declares both open and closed injection"):
        load_plan_data(data)


def test_population_without_injection() -> None:
    with pytest.raises(ConfigurationError, match="no injection steps configured"):
        load_plan_data(_data(populations=[{"scenario": "Ping", "open": []}]))


def test_population_protocol_override() -> None:
    data = _data(
        populations=[
            {
                "scenario": "Ping",
                "protocol": {"base_url": "https://staging.example.com", "accept": "text/plain"},
                "open": [{"spike": {"users": 1}}],
            }
        ]
    )
    protocol = load_plan_data(data).populations[0].protocol
    assert protocol.base_url == "https://staging.example.com"
    assert protocol.headers["Accept"] == "text/plain"


def test_population_needs_a_protocol() -> None:
    data = _data()
    del data["protocol"]
    with pytest.raises(ConfigurationError, match="No protocol configured for population 'Ping'"):
        load_plan_data(data)


def test_insecure_base_url_rejected() -> None:
    with pytest.raises(ConfigurationError, match="must use https"):
        load_plan_data(_data(protocol={"base_url": "http://api.example.com"}))


@pytest.mark.parametrize(
    ("populations", "message"),
    [
        ([{"scenario": "Nope", "open": [{"spike": {"users": 1}}]}], "Unknown scenario reference: Nope"),
        ([{"scenario": "Ping", "open": [{"burst": {"users": 1}}]}], "Unknown injection profile: burst"),
        ([{"scenario": "Ping", "open": [{"spike": {"count": 1}}]}], "Invalid arguments for spike profile"),
        ([{"scenario": "Ping", "open": [{"spike": {"users": 1}, "steady": {}}]}], "single-key mappings"),
        ([{"scenario": "Ping", "open": {"spike": {"users": 1}}}], "must be a list of profiles"),
    ],
)
def test_injection_errors(populations, message: str) -> None:
    with pytest.raises(ConfigurationError, match=message):
        load_plan_data(_data(populations=populations))


def test_request_needs_method_and_path() -> None:
    data = _data(scenarios=[{"name": "Ping", "chains": [{"steps": [{"path": "/ping"}]}]}])
    with pytest.raises(ConfigurationError, match="need both method and path"):
        load_plan_data(data)


def test_unknown_fields_are_rejected() -> None:
    data = _data(scenarios=[{"name": "Ping", "chains": [{"steps": [{"method": "GET", "path": "/", "timeout": 3}]}]}])
    with pytest.raises(ConfigurationError, match="Unknown request field"):
        load_plan_data(data)


def test_checks_from_yaml() -> None:
    step = {
        "method": "GET",
        "path": "/users/1",
        "checks": [{"status": 200}, {"json_path": "$.name", "equals": "John Doe", "save_as": "name"}],
    }
    data = _data(scenarios=[{"name": "Ping", "chains": [{"steps": [step]}]}])
    (built,) = load_plan_data(data).populations[0].scenario.steps
    assert built.checks[0].code == 200
    assert built.checks[1].expected == "John Doe"
    bad_step = {**step, "checks": [{"xpath": "/a"}]}
    with pytest.raises(ConfigurationError, match="Unknown check"):
        load_plan_data(_data(scenarios=[{"name": "Ping", "chains": [{"steps": [bad_step]}]}]))


@pytest.mark.parametrize(
    ("scenarios", "message"),
    [
        ([{"name": "Ping", "chains": [{"steps": 5}]}], "'steps' must be a list"),
        ([{"name": "Ping", "chains": 5}], "'chains' must be a list"),
        (
            [{"name": "Ping", "chains": [{"steps": [{"method": "GET", "path": "/", "checks": 200}]}]}],
            "'checks' must be a list",
        ),
    ],
)
def test_non_list_fields_are_rejected(scenarios, message: str) -> None:
    with pytest.raises(ConfigurationError, match=message) as exc_info:
        load_plan_data(_data(scenarios=scenarios), source="plans/ping.yaml")
    assert exc_info.value.context["path"] == "plans/ping.yaml"


def test_non_string_scenario_reference() -> None:
    with pytest.raises(ConfigurationError, match="Unknown scenario reference"):
        load_plan_data(_data(populations=[{"scenario": ["Ping"], "open": [{"spike": {"users": 1}}]}]))


def test_duplicate_names_warn_and_last_wins(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="loadplan")
    data = _data(
        chains=[
            {"name": "flow", "steps": [{"method": "GET", "path": "/a"}]},
            {"name": "flow", "steps": [{"method": "GET", "path": "/b"}]},
        ],
        scenarios=[{"name": "Ping", "chains": ["flow"]}, {"name": "Ping", "chains": ["flow", "flow"]}],
    )
    scenario = load_plan_data(data).populations[0].scenario
    assert [s.path for s in scenario.steps] == ["/b", "/b"]
    assert "Chain 'flow' is declared more than once" in caplog.text
    assert "Scenario 'Ping' is declared more than once" in caplog.text


def test_invalid_plan_file_reports_reason(tmp_path: Path) -> None:
    p = tmp_path / "plan.yaml"
    p.write_text(yaml.safe_dump(_data(scenarios=[{"name": "Ping", "chains": [{"steps": 5}]}])), encoding="utf-8")
    with pytest.raises(ConfigurationError, match="'steps' must be a list") as exc_info:
        load_plan(p)
    assert exc_info.value.context["path"] == str(p)

"""Pytest fixtures for loadplan tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from loadplan.chains import ChainBuilder, RequestBuilder
from loadplan.checks import status
from loadplan.models import ProtocolConfig, Scenario
from loadplan.protocol import ProtocolBuilder
from loadplan.scenarios import ScenarioBuilder

AUTH_PLAN_YAML = """
name: auth-plan
protocol:
  base_url: https://api.example.com
scenarios:
  - name: Auth Workflow
    chains:
      - name: auth
        steps:
          - name: Login
            method: POST
            path: /auth/login
            body: {username: testuser, password: password123}
            checks:
              - status: 200
              - json_path: $.accessToken
                save_as: accessToken
          - name: Me
            method: GET
            path: /auth/me
            headers:
              Authorization: "Bearer #{accessToken}"
            checks:
              - status: 200
populations:
  - scenario: Auth Workflow
    open:
      - spike: {users: 10}
      - ramp_up: {users: 20, duration_seconds: 10}
"""


@pytest.fixture
def protocol() -> ProtocolConfig:
    return ProtocolBuilder("https://api.example.com").build()


@pytest.fixture
def auth_scenario() -> Scenario:
    """Login, then fetch the current user with the saved token."""
    login = (
        RequestBuilder("Login")
        .post("/auth/login")
        .with_body('{"username": "testuser", "password": "password123"}')
        .with_check(status(200))
        .save_as("$.accessToken", "accessToken")
        .build()
    )
    me = (
        RequestBuilder("Me")
        .get("/auth/me")
        .with_header("Authorization", "Bearer #{accessToken}")
        .with_check(status(200))
        .build()
    )
    chain = ChainBuilder("auth").exec(login, me).build()
    return ScenarioBuilder("Auth Workflow").exec(chain).build()


@pytest.fixture
def auth_plan_path(tmp_path: Path) -> Path:
    """The end-to-end auth plan as a YAML file."""
    p = tmp_path / "auth_plan.yaml"
    p.write_text(AUTH_PLAN_YAML, encoding="utf-8")
    return p

"""Unit tests for check descriptors."""

from __future__ import annotations

import pytest

from loadplan.checks import UNSET, JsonPathCheck, StatusCheck, json_path, status
from loadplan.exceptions import ConfigurationError


def test_status_check() -> None:
    assert status(200) == StatusCheck(200)
    assert status(204).code == 204


@pytest.mark.parametrize("code", [99, 600, "200", True, None])
def test_status_check_rejects_invalid_codes(code) -> None:
    with pytest.raises(ConfigurationError, match="Invalid status check"):
        status(code)


def test_json_path_fluent_helpers_return_new_checks() -> None:
    base = json_path("$.accessToken")
    saved = base.save_as("accessToken")
    assert base.save_as_name is None
    assert saved.save_as_name == "accessToken"
    assert saved.expression == "$.accessToken"
    assert not saved.has_expected


def test_json_path_is_tracks_expected_value() -> None:
    check = json_path("$.name").is_("John Doe")
    assert check.has_expected
    assert check.expected == "John Doe"


def test_json_path_expected_none_differs_from_unset() -> None:
    assert json_path("$.deleted").is_(None).has_expected
    assert JsonPathCheck("$.deleted").expected is UNSET


def test_json_path_rejects_blank_expression() -> None:
    with pytest.raises(ConfigurationError, match="JSON path expression"):
        json_path("  ")


def test_json_path_rejects_blank_variable() -> None:
    with pytest.raises(ConfigurationError, match="Session variable name"):
        json_path("$.id").save_as("")

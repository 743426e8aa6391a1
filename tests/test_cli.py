"""Unit tests for CLI (validate/export subcommands, exit codes)."""

from __future__ import annotations

import sys
from pathlib import Path
from unittest.mock import patch

import orjson
import pytest

from loadplan.cli import main


def test_main_version_exits_zero(capsys: pytest.CaptureFixture[str]) -> None:
    with patch.object(sys, "argv", ["loadplan", "--version"]):
        with pytest.raises(SystemExit) as exc:
            main()
        assert exc.value.code == 0
    assert "loadplan 1.0.0" in capsys.readouterr().out


def test_main_help_exits_zero() -> None:
    with pytest.raises(SystemExit) as exc:
        main(["--help"])
    assert exc.value.code == 0


def test_main_requires_subcommand() -> None:
    with pytest.raises(SystemExit) as exc:
        main([])
    assert exc.value.code == 2


def test_validate_prints_summary(auth_plan_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    with patch.object(sys, "argv", ["loadplan", "validate", str(auth_plan_path)]):
        assert main() == 0
    out = capsys.readouterr().out
    assert "Plan 'auth-plan' is valid." in out


def test_validate_missing_file_exits_one(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["validate", "/nonexistent/plan.yaml"]) == 1
    assert "Error: Plan file not found" in capsys.readouterr().err


def test_validate_invalid_plan_exits_one(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    p = tmp_path / "plan.yaml"
    p.write_text(
        "protocol: {base_url: 'http://insecure.example.com'}\n"
        "scenarios: []\n"
        "populations: []\n",
        encoding="utf-8",
    )
    assert main(["validate", str(p)]) == 1
    assert "must use https" in capsys.readouterr().err


def test_export_writes_json(auth_plan_path: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    out = tmp_path / "out" / "plan.json"
    assert main(["export", str(auth_plan_path), "-o", str(out)]) == 0
    assert f"written to {out}" in capsys.readouterr().out
    data = orjson.loads(out.read_bytes())
    assert data["populations"][0]["injection"]["expected_users"] == 30


def test_unexpected_error_exits_one(auth_plan_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    with patch("loadplan.cli.load_plan", side_effect=RuntimeError("boom")):
        assert main(["validate", str(auth_plan_path)]) == 1
    assert "An unexpected error occurred" in capsys.readouterr().err


def test_keyboard_interrupt_exits_130(auth_plan_path: Path) -> None:
    with patch("loadplan.cli.load_plan", side_effect=KeyboardInterrupt):
        assert main(["validate", str(auth_plan_path)]) == 130


def test_validate_badly_shaped_plan_reports_reason(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    p = tmp_path / "plan.yaml"
    p.write_text(
        "protocol: {base_url: 'https://api.example.com'}\n"
        "scenarios: [{name: S, chains: [{steps: 5}]}]\n",
        encoding="utf-8",
    )
    assert main(["validate", str(p)]) == 1
    err = capsys.readouterr().err
    assert "'steps' must be a list" in err
    assert "unexpected" not in err

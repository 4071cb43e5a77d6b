"""Tests for the command-line entry point."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from phonepilot import __version__
from phonepilot.cli import main
from phonepilot.errors import PlannerRequestError

SAMPLE_SCREEN = Path(__file__).resolve().parent.parent / "samples" / "login_screen.json"

LOGIN_PLAN = json.dumps(
    {
        "thinking": "Fill the email field, then tap Log in.",
        "actions": [
            {"type": "type_text", "params": {"text": "me@example.com"}},
            {"type": "click", "params": {"element_id": "com.example.mail:id/login"}},
            {"type": "complete"},
        ],
    }
)


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path, monkeypatch):
    """Run from an empty directory so no .env is picked up; history goes to tmp."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("GROQ_API_KEY", "gsk-test")
    monkeypatch.setenv("SETTLE_INTERVAL_MS", "0")
    monkeypatch.setenv("HISTORY_DATA_DIR", str(tmp_path / "history"))


def test_screen_prints_serialized_snapshot(capsys):
    assert main(["screen", "--screen", str(SAMPLE_SCREEN)]) == 0
    out = capsys.readouterr().out
    assert out.startswith("Package: com.example.mail\nActivity: .LoginActivity\n\nUI Elements:\n")
    assert "[0] FrameLayout bounds=0,0-1080,2400" in out
    assert '  [2] Button id="com.example.mail:id/login" text="Log in" desc="Log in button" [clickable]' in out


@patch("phonepilot.orchestrator.PlannerClient")
def test_run_executes_plan_and_records_history(mock_planner_class, capsys):
    mock_planner_class.return_value.plan.return_value = LOGIN_PLAN

    code = main(["run", "log me in", "--screen", str(SAMPLE_SCREEN)])

    assert code == 0
    out = capsys.readouterr().out
    assert "Processing command..." in out
    assert 'Executing: Type text: "me@example.com"' in out
    assert "Command completed" in out
    assert "Thinking: Fill the email field, then tap Log in." in out
    api_key = mock_planner_class.return_value.plan.call_args[0][0]
    assert api_key == "gsk-test"

    assert main(["history"]) == 0
    out = capsys.readouterr().out
    assert "✓ log me in" in out
    assert '    Type text: "me@example.com": ✓' in out
    assert "    Complete: ✓" in out


@patch("phonepilot.orchestrator.PlannerClient")
def test_run_returns_1_when_an_action_fails(mock_planner_class, capsys):
    mock_planner_class.return_value.plan.return_value = json.dumps(
        {"actions": [{"type": "open_app", "params": {"package": "com.whatsapp"}}]}
    )
    code = main(["run", "open whatsapp", "--screen", str(SAMPLE_SCREEN), "--installed", "com.android.chrome"])
    assert code == 1
    out = capsys.readouterr().out
    assert "Error: App not found: com.whatsapp" in out
    assert "Command completed with errors" in out


@patch("phonepilot.orchestrator.PlannerClient")
def test_run_reports_planner_errors(mock_planner_class, capsys):
    mock_planner_class.return_value.plan.side_effect = PlannerRequestError("Planner returned HTTP 500")
    code = main(["run", "open whatsapp", "--screen", str(SAMPLE_SCREEN)])
    assert code == 1
    assert "Error: Planner returned HTTP 500" in capsys.readouterr().err


def test_run_blank_command_returns_1(capsys):
    assert main(["run", "  ", "--screen", str(SAMPLE_SCREEN)]) == 1
    assert "empty command" in capsys.readouterr().err


def test_history_clear(capsys):
    assert main(["history", "--clear"]) == 0
    assert "History cleared" in capsys.readouterr().out
    assert main(["history"]) == 0
    assert capsys.readouterr().out == ""


def test_version(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["--version"])
    assert exc.value.code == 0
    assert __version__ in capsys.readouterr().out


@patch("phonepilot.orchestrator.PlannerClient")
def test_run_prints_full_log_for_long_plans(mock_planner_class, capsys):
    actions = [{"type": "back"}] * 30 + [{"type": "complete"}]
    mock_planner_class.return_value.plan.return_value = json.dumps({"actions": actions})

    assert main(["run", "go back a lot", "--screen", str(SAMPLE_SCREEN)]) == 0

    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "Processing command..."
    assert lines.count("Executing: Back") == 30
    assert lines[-1] == "Command completed"

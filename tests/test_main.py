"""Tests for the command-line entry point."""

from pathlib import Path

import pytest

from agentcrew import main as main_module
from agentcrew.client.console import ConsoleClosedError
from agentcrew.config import settings
from agentcrew.core.event_log import (
    LOG_FILE,
    EventLog,
)
from agentcrew.core.workspace import META_DIR

from conftest import (
    ScriptedConsole,
    ScriptedGenerator,
)


class ClosingConsole(ScriptedConsole):
    """Behaves like an operator who pressed Ctrl+D once the scripted lines run out."""

    def get_user_input(self, prompt: str = "") -> str:
        if not self.inputs:
            raise ConsoleClosedError("closed")
        return super().get_user_input(prompt)


@pytest.fixture
def cli(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the entry point at a temp workspace with scripted collaborators."""

    monkeypatch.setattr(settings, "WORKSPACE_DIR", str(tmp_path / "ws"))
    monkeypatch.setattr(settings, "LOG_LEVEL", settings.LOG_LEVEL)
    monkeypatch.setattr(settings, "PLANNER", settings.PLANNER)
    monkeypatch.setattr(main_module, "ConsoleUI", ClosingConsole)
    monkeypatch.setattr(main_module, "load_generator", lambda name: ScriptedGenerator([]))
    return tmp_path / "ws"


def test_new_project_until_input_closes(cli: Path) -> None:
    """A new run seeds the log and stops cleanly when the operator closes input."""

    main_module.main(["--project", "demo", "--new", "--planner", "anthropic"])

    assert settings.PLANNER == "anthropic"
    log = EventLog(cli / "demo" / META_DIR / LOG_FILE, resume=True)
    log.load_all()
    assert [(t.sender, t.recipient) for t in log] == [("", "PM"), ("PM", "USER")]


def test_resume_without_log_exits_with_error(cli: Path) -> None:
    """Fatal errors end the process with status 1."""

    with pytest.raises(SystemExit) as excinfo:
        main_module.main(["--project", "empty", "--resume"])
    assert excinfo.value.code == 1

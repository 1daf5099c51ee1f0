"""Tests for the terminal front-end."""

import pytest

from agentcrew.client.console import (
    ConsoleUI,
    Style,
)
from agentcrew.core.schema import (
    TargetType,
    ToolResult,
    Turn,
)


def test_lines_are_coloured_by_kind(capsys: pytest.CaptureFixture) -> None:
    """Errors, statuses and turns each get their own colour and a reset."""

    console = ConsoleUI()
    console.display_error("disk full")
    console.display_status("saving")
    console.display_entry(
        Turn(sender="PM", target_type=TargetType.AGENT, recipient="Dev", message="go")
    )

    out = capsys.readouterr().out
    assert f"{Style.ERROR.value}❌ Error: disk full\033[0m" in out
    assert f"{Style.STATUS.value}saving\033[0m" in out
    assert Style.MESSAGE.value in out and "PM -> Dev (AGENT)" in out


def test_tool_results_are_previewed(capsys: pytest.CaptureFixture) -> None:
    """Long results are cut; failures use the error colour."""

    result = ToolResult(tool_name="ShellCommandTool", result="x" * 800, error=True)
    ConsoleUI().display_entry(result)

    out = capsys.readouterr().out
    assert Style.ERROR.value in out
    assert "[ERROR]" in out
    assert "x" * 500 + " ..." in out
    assert "x" * 501 not in out

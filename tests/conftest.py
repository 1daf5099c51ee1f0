"""Shared fakes and fixtures: scripted generator and console, stub tools, a temp workspace."""

import json
from pathlib import Path
from typing import (
    Any,
    Dict,
    List,
    Optional,
)

import pytest
from pydantic import BaseModel

from agentcrew.agent.generator import BaseGenerator
from agentcrew.client.console import ConsoleUI
from agentcrew.core.workspace import Workspace
from agentcrew.tools import (
    OMITTED,
    Tool,
    ToolExecutionError,
    ToolRegistry,
)


class ScriptedGenerator(BaseGenerator):
    """Returns queued answers in order; an Exception in the queue is raised instead."""

    def __init__(self, answers: List[Any], **kwargs: Any):
        kwargs.setdefault("sleep", self._record_sleep)
        super().__init__(**kwargs)
        self.answers = list(answers)
        self.prompts: List[str] = []
        self.attachments: List[Optional[str]] = []
        self.sleeps: List[float] = []

    def _record_sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)

    def _complete(
        self, prompt: str, json_schema: Dict[str, Any], attachment: Optional[str]
    ) -> str | None:
        self.prompts.append(prompt)
        self.attachments.append(attachment)
        if not self.answers:
            raise AssertionError("ScriptedGenerator ran out of answers")
        answer = self.answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        if isinstance(answer, (dict, list)):
            return json.dumps(answer)
        return answer


class ScriptedConsole(ConsoleUI):
    """Console whose operator input comes from a list."""

    def __init__(self, inputs: List[str] | None = None):
        self.inputs = list(inputs or [])
        self.prompts: List[str] = []
        self.errors: List[str] = []

    def get_user_input(self, prompt: str = "") -> str:
        self.prompts.append(prompt)
        if not self.inputs:
            raise AssertionError("ScriptedConsole ran out of input")
        return self.inputs.pop(0)

    def display_error(self, message: str) -> None:
        self.errors.append(message)
        super().display_error(message)


class EchoArgs(BaseModel):
    """Arguments of :class:`EchoTool`."""

    text: str


class EchoTool(Tool):
    """Returns its input; old results are omitted."""

    name = "EchoTool"
    description = "Echo the input text back to the caller."
    args_model = EchoArgs

    def execute(self, args: EchoArgs) -> str:
        return args.text

    def omit_args(self, turns_elapsed: int, args: Any) -> Any:
        return {"text": OMITTED}

    def omit_result(self, turns_elapsed: int, result: Any) -> Any:
        return f"{OMITTED} after {turns_elapsed}"


class BoomTool(Tool):
    """Always fails."""

    name = "BoomTool"
    description = "Raise an error."
    args_model = EchoArgs

    def execute(self, args: EchoArgs) -> str:
        if args.text == "expected":
            raise ToolExecutionError("expected failure")
        raise ZeroDivisionError("unexpected failure")


class SnapshotTool(Tool):
    """Returns a fake binary payload, like an image loader."""

    name = "SnapshotTool"
    description = "Return a fake image."
    args_model = EchoArgs
    carries_attachment = True

    def execute(self, args: EchoArgs) -> str:
        return f"BASE64:{args.text}"


@pytest.fixture
def workspace(tmp_path: Path) -> Workspace:
    """A fresh project directory."""
    return Workspace(tmp_path / "workspace", "demo")


@pytest.fixture
def tools(workspace: Workspace) -> ToolRegistry:
    """Registry with the stub tools."""
    return ToolRegistry([EchoTool(workspace), BoomTool(workspace), SnapshotTool(workspace)])

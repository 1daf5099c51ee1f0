"""Sandboxed shell command execution."""

import logging
import subprocess
from typing import (
    Any,
    Dict,
    List,
)

from pydantic import (
    BaseModel,
    Field,
)

from agentcrew.config import settings
from agentcrew.core.workspace import Workspace
from agentcrew.tools import (
    Tool,
    ToolExecutionError,
    register_tool,
)

logger = logging.getLogger(__name__)

_OUTPUT_LIMIT = 10000
_OLD_OUTPUT_TAIL = 500


class ShellCommandArgs(BaseModel):
    """Arguments of :class:`ShellCommandTool`."""

    command: str = Field(..., description="Shell command to run from the project directory")


def _tail(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return f"...({len(text) - limit} characters truncated)\n" + text[-limit:]


@register_tool("ShellCommandTool")
class ShellCommandTool(Tool):
    """
    Run a shell command with a hard wall-clock timeout.

    When ``SHELL_CONTAINER`` is configured the command runs inside that container through
    ``docker exec`` (the project is expected at ``/workspace/<project>``); otherwise it runs on the
    host with the project directory as working directory.
    """

    description = (
        "Runs a shell command (bash) from the project directory and returns its exit code, "
        "stdout and stderr. Long-running commands are killed after a timeout."
    )
    args_model = ShellCommandArgs

    def __init__(
        self,
        workspace: Workspace,
        timeout: float | None = None,
        container: str | None = None,
    ):
        super().__init__(workspace)
        self.timeout = timeout if timeout is not None else settings.SHELL_TIMEOUT
        self.container = container if container is not None else settings.SHELL_CONTAINER

    def _argv(self, command: str) -> List[str]:
        if self.container:
            workdir = f"/workspace/{self.workspace.project_name}"
            return ["docker", "exec", "-w", workdir, self.container, "bash", "-lc", command]
        return ["bash", "-lc", command]

    def execute(self, args: ShellCommandArgs) -> Dict[str, Any]:
        if not args.command.strip():
            raise ToolExecutionError("'command' is empty.")
        logger.info("Running shell command: %s", args.command)
        try:
            proc = subprocess.run(
                self._argv(args.command),
                cwd=self.workspace.project_path,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise ToolExecutionError(
                f"Command timed out after {self.timeout:g} seconds: {args.command}"
            ) from exc
        except OSError as exc:
            raise ToolExecutionError(f"Could not start command: {exc}") from exc

        return {
            "exit_code": proc.returncode,
            "stdout": _tail(proc.stdout, _OUTPUT_LIMIT),
            "stderr": _tail(proc.stderr, _OUTPUT_LIMIT),
        }

    def omit_result(self, turns_elapsed: int, result: Any) -> Any:
        if not isinstance(result, dict):
            return result
        return {
            **result,
            "stdout": _tail(str(result.get("stdout", "")), _OLD_OUTPUT_TAIL),
            "stderr": _tail(str(result.get("stderr", "")), _OLD_OUTPUT_TAIL),
        }

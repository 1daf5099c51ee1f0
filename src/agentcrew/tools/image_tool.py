"""Tool that hands a workspace image to the model."""

from pydantic import (
    BaseModel,
    Field,
)

from agentcrew.core.workspace import WorkspaceAccessError
from agentcrew.tools import (
    Tool,
    ToolExecutionError,
    register_tool,
)


class GetImageArgs(BaseModel):
    """Arguments of :class:`GetImageTool`."""

    file_path: str = Field(
        ..., description="Image path relative to the project, e.g. images/photo.png"
    )


@register_tool("GetImageTool")
class GetImageTool(Tool):
    """
    Load an image so the agent can look at it on its next turn.

    The base64 payload is never put into prompts as text; the history compactor sends it as an
    attachment exactly once.
    """

    description = (
        "Loads an image file from the project so you can see it. Typical use: save a screenshot "
        "with a headless browser through ShellCommandTool, then inspect it with this tool."
    )
    args_model = GetImageArgs
    carries_attachment = True

    def execute(self, args: GetImageArgs) -> str:
        if not args.file_path.strip():
            raise ToolExecutionError("'file_path' is empty. Give the path of an image file.")
        try:
            return self.workspace.read_base64(args.file_path)
        except WorkspaceAccessError as exc:
            raise ToolExecutionError(str(exc)) from exc
        except OSError as exc:
            raise ToolExecutionError(
                f"No readable file at the given path: {args.file_path}"
            ) from exc

"""Tools that read and write project files."""

from typing import (
    Any,
    Dict,
    List,
)

from pydantic import (
    BaseModel,
    Field,
)

from agentcrew.core.workspace import WorkspaceAccessError
from agentcrew.tools import (
    OMITTED,
    Tool,
    ToolExecutionError,
    register_tool,
)


class FileReaderArgs(BaseModel):
    """Arguments of :class:`FileReaderTool`."""

    filenames: List[str] = Field(
        ..., description="Paths of the files to read, relative to the project"
    )


class FileNameContentSet(BaseModel):
    """One file to write."""

    filename: str = Field(
        ..., description="File name including its path, e.g. docs/requirements.md"
    )
    contents: str = Field(..., description="Full contents of the file")


class FileWriterArgs(BaseModel):
    """Arguments of :class:`FileWriterTool`."""

    artifacts: List[FileNameContentSet] = Field(
        ..., description="Files to write and their contents"
    )


@register_tool("FileReaderTool")
class FileReaderTool(Tool):
    """Read several project files at once."""

    description = "Reads the given project files and returns their contents keyed by file name."
    args_model = FileReaderArgs

    def execute(self, args: FileReaderArgs) -> Dict[str, str]:
        if not args.filenames:
            raise ToolExecutionError("'filenames' must list at least one file.")
        return self.workspace.read_files(args.filenames)

    def omit_result(self, turns_elapsed: int, result: Any) -> Any:
        if not isinstance(result, dict):
            return OMITTED
        return {filename: OMITTED for filename in result}


@register_tool("FileWriterTool")
class FileWriterTool(Tool):
    """Create or overwrite project files."""

    description = (
        "Writes the given files into the project, creating directories as needed. "
        "Existing files are overwritten."
    )
    args_model = FileWriterArgs

    def execute(self, args: FileWriterArgs) -> str:
        if not args.artifacts:
            raise ToolExecutionError("'artifacts' must contain at least one file.")
        # Refuse the whole batch before anything is written
        try:
            for artifact in args.artifacts:
                self.workspace.resolve(artifact.filename)
        except WorkspaceAccessError as exc:
            raise ToolExecutionError(str(exc)) from exc
        for artifact in args.artifacts:
            self.workspace.save_artifact(artifact.filename, artifact.contents)
        names = ", ".join(a.filename for a in args.artifacts)
        return f"Wrote {len(args.artifacts)} file(s): {names}"

    def omit_args(self, turns_elapsed: int, args: Any) -> Any:
        if not isinstance(args, dict):
            return args
        artifacts = args.get("artifacts") or []
        return {
            **args,
            "artifacts": [
                {**artifact, "contents": OMITTED} if isinstance(artifact, dict) else artifact
                for artifact in artifacts
            ],
        }

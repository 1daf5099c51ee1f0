"""
Tool registry for agentcrew.

Every tool is a class implementing :class:`Tool`: a name, a description, a pydantic argument model,
an ``execute`` method and two redaction hooks used when old history entries are compacted.  Tool
classes register themselves with :func:`register_tool`; :func:`build_tool_registry` instantiates
all of them against a workspace for one run.
"""

import logging
from abc import (
    ABC,
    abstractmethod,
)
from typing import (
    Any,
    Callable,
    ClassVar,
    Dict,
    Iterable,
    Iterator,
    List,
    Optional,
    Type,
)

from pydantic import BaseModel

from agentcrew.core.workspace import Workspace

logger = logging.getLogger(__name__)

OMITTED = "(omitted)"
"""Placeholder that replaces redacted payloads."""


class ToolExecutionError(RuntimeError):
    """Raised by a tool when it cannot complete the requested action."""


class Tool(ABC):
    """Capability contract every tool implements."""

    name: ClassVar[str] = ""
    description: ClassVar[str] = ""
    args_model: ClassVar[Type[BaseModel]]
    carries_attachment: ClassVar[bool] = False
    """True when a successful result is a large binary payload (e.g. a base64 image)."""

    def __init__(self, workspace: Workspace):
        self.workspace = workspace

    def argument_schema(self) -> Dict[str, Any]:
        """JSON schema of the arguments this tool accepts."""
        return self.args_model.model_json_schema()

    def describe(self) -> Dict[str, Any]:
        """Catalog entry shown to agents."""
        return {"name": self.name, "description": self.description, "args": self.argument_schema()}

    def validate_args(self, raw_args: Any) -> BaseModel:
        """Validate raw arguments against :attr:`args_model`."""
        return self.args_model.model_validate(raw_args)

    @abstractmethod
    def execute(self, args: Any) -> Any:
        """Run the tool with validated arguments.  May raise."""

    def omit_args(self, turns_elapsed: int, args: Any) -> Any:  # pylint: disable=unused-argument
        """Return a cheaper version of *args* for an old history entry."""
        return args

    def omit_result(  # pylint: disable=unused-argument
        self, turns_elapsed: int, result: Any
    ) -> Any:
        """Return a cheaper version of *result* for an old history entry."""
        return result


class ToolRegistry:
    """Mapping from tool name to tool instance for one run."""

    def __init__(self, tools: Iterable[Tool] = ()):
        self._tools: Dict[str, Tool] = {}
        for tool in tools:
            self.register(tool)

    def register(self, tool: Tool) -> None:
        """Add *tool*; names must be unique."""
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' is already registered.")
        logger.debug("Registering tool '%s'", tool.name)
        self._tools[tool.name] = tool

    def get(self, name: str) -> Optional[Tool]:
        """Return the tool called *name*, or *None*."""
        return self._tools.get(name)

    def names(self) -> List[str]:
        """Registered tool names, in registration order."""
        return list(self._tools)

    def catalog(self) -> List[Dict[str, Any]]:
        """Descriptions of every tool, as embedded in agent prompts."""
        return [tool.describe() for tool in self._tools.values()]

    def args_models(self) -> Dict[str, Type[BaseModel]]:
        """Argument model of every tool, keyed by tool name."""
        return {name: tool.args_model for name, tool in self._tools.items()}

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[Tool]:
        return iter(list(self._tools.values()))

    def __len__(self) -> int:
        return len(self._tools)


TOOL_CLASSES: Dict[str, Type[Tool]] = {}
"""Global catalog of tool classes, filled by :func:`register_tool`."""


def register_tool(name: str) -> Callable[[Type[Tool]], Type[Tool]]:
    """
    Register a tool class under *name*.

    Used as a class decorator:
        @register_tool("FileReaderTool")
        class FileReaderTool(Tool):
            ...

    Parameters
    ----------
    name: str
        The name agents use as ``recipient`` to call the tool.  Must be unique.
    Returns
    -------
    Callable
        A decorator that records the class in :data:`TOOL_CLASSES`.
    Raises
    ------
    ValueError
        If a tool with the same name is already registered.
    """
    if name in TOOL_CLASSES:
        raise ValueError(f"Tool '{name}' is already registered.")

    def wrapper(cls: Type[Tool]) -> Type[Tool]:
        cls.name = name
        TOOL_CLASSES[name] = cls
        return cls

    return wrapper


def build_tool_registry(workspace: Workspace) -> ToolRegistry:
    """Instantiate every registered tool class against *workspace*."""
    # Importing the modules runs their @register_tool decorators
    # pylint: disable=import-outside-toplevel,unused-import
    from agentcrew.tools import (  # noqa: F401
        file_tools,
        image_tool,
        shell_tool,
        web_tools,
    )

    return ToolRegistry(cls(workspace) for cls in TOOL_CLASSES.values())

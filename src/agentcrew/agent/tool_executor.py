"""Dispatches tool calls to the registry and wraps every outcome in a ``ToolResult``."""

import logging
from typing import (
    Any,
    Mapping,
)

from pydantic import ValidationError

from agentcrew.core.schema import ToolResult
from agentcrew.tools import (
    ToolExecutionError,
    ToolRegistry,
)

logger = logging.getLogger(__name__)


def dispatch_tool(
    tools: ToolRegistry, tool_name: str, tool_args: Mapping[str, Any] | None = None
) -> ToolResult:
    """
    Look up *tool_name* in *tools* and run it with ``tool_args[tool_name]``.

    Parameters
    ----------
    tools:
        The run's tool registry.
    tool_name:
        The ``recipient`` of the Turn.
    tool_args:
        The Turn's full ``tool_args`` mapping, keyed by tool name.  If *None*, an empty mapping is
        assumed.

    Returns
    -------
    ToolResult
        ``error=False`` with the tool's output on success.  ``error=True`` with a readable message
        when the tool is unknown, its arguments are missing or invalid, or it raised.  This
        function never raises, so a failing tool cannot take the orchestrator down.
    """

    if tool_args is None:
        tool_args = {}

    tool = tools.get(tool_name)
    if tool is None:
        logger.warning("Agent requested unknown tool '%s'", tool_name)
        return ToolResult(
            tool_name=tool_name,
            result=f"Error: tool '{tool_name}' is not registered. Available: {tools.names()}",
            error=True,
        )

    raw_args = tool_args.get(tool_name)
    if raw_args is None:
        logger.warning("Tool '%s' was called without arguments under its own name", tool_name)
        return ToolResult(
            tool_name=tool_name,
            result=f"Error: no arguments were given under tool_args['{tool_name}'].",
            error=True,
        )

    try:
        args = tool.validate_args(raw_args)
        logger.debug("Executing tool '%s' with args=%s", tool_name, args)
        result = tool.execute(args)
    except ValidationError as exc:
        logger.warning("Invalid arguments for tool '%s': %s", tool_name, exc)
        return ToolResult(
            tool_name=tool_name,
            result=f"Error: invalid arguments for '{tool_name}': {exc}",
            error=True,
        )
    except ToolExecutionError as exc:
        logger.warning("Tool '%s' failed: %s", tool_name, exc)
        return ToolResult(tool_name=tool_name, result=f"Error: {exc}", error=True)
    except Exception as exc:  # noqa: BLE001  # pylint: disable=broad-except
        logger.exception("Unhandled error in tool '%s'", tool_name)
        return ToolResult(
            tool_name=tool_name,
            result=f"Error: tool '{tool_name}' raised an error: {exc}",
            error=True,
        )

    return ToolResult(tool_name=tool_name, result=result, error=False)

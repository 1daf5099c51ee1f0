"""
Per-agent views of the event log.

:func:`project_history` decides *what* an agent may see; :func:`compact_history` decides *how
much* of it goes into a prompt.  Both are pure functions over explicit sequences.
"""

import logging
from typing import (
    List,
    NamedTuple,
    Optional,
    Sequence,
)

from agentcrew.core.schema import (
    BROADCAST,
    HistoryEntry,
    TargetType,
    ToolResult,
    Turn,
)
from agentcrew.tools import ToolRegistry

logger = logging.getLogger(__name__)

ATTACHED_PLACEHOLDER = "Retrieved successfully. The image data is attached to this request."
EXPIRED_PLACEHOLDER = "Retrieved successfully, but image data is only kept for a single turn."


def project_history(entries: Sequence[HistoryEntry], agent_name: str) -> List[HistoryEntry]:
    """
    Return the subsequence of *entries* that *agent_name* is entitled to see.

    A Turn is visible when the agent sent it, received it, or it was broadcast to ``ALL``.  A
    ToolResult is visible only when the Turn right before it (the tool call) was sent by the agent.
    """
    personal: List[HistoryEntry] = []
    last_turn_sender: Optional[str] = None
    for entry in entries:
        if isinstance(entry, Turn):
            if agent_name in (entry.recipient, entry.sender) or entry.recipient == BROADCAST:
                personal.append(entry)
            last_turn_sender = entry.sender
        elif last_turn_sender == agent_name:
            personal.append(entry)
    return personal


class CompactedHistory(NamedTuple):
    """Prompt-ready history plus at most one out-of-band binary attachment."""

    entries: List[HistoryEntry]
    attachment: Optional[str]


def compact_history(
    history: Sequence[HistoryEntry], tools: ToolRegistry, recent_window: int
) -> CompactedHistory:
    """
    Redact old entries of a personal history to bound prompt size.

    The newest *recent_window* entries pass through unchanged; older tool calls and results are
    degraded by the owning tool's ``omit_args`` / ``omit_result`` hooks, which receive the number
    of entries elapsed since the entry.  Successful results of attachment-carrying tools are always
    replaced by a placeholder; the payload itself is returned as ``attachment`` only when that
    result is the very last entry.  *history* is not modified.
    """
    last_index = len(history) - 1
    attachment: Optional[str] = None
    compacted: List[HistoryEntry] = []

    for index, original in enumerate(history):
        entry = original.model_copy(deep=True)
        turns_elapsed = last_index - index

        if isinstance(entry, ToolResult):
            tool = tools.get(entry.tool_name)
            if tool is not None and tool.carries_attachment and not entry.error:
                if index == last_index:
                    attachment = entry.result
                    entry.result = ATTACHED_PLACEHOLDER
                else:
                    entry.result = EXPIRED_PLACEHOLDER
            elif tool is not None and not entry.error and turns_elapsed >= recent_window:
                entry.result = tool.omit_result(turns_elapsed, entry.result)

        elif turns_elapsed >= recent_window and entry.target_type == TargetType.TOOL:
            tool = tools.get(entry.recipient)
            if tool is not None and entry.recipient in entry.tool_args:
                entry.tool_args[entry.recipient] = tool.omit_args(
                    turns_elapsed, entry.tool_args[entry.recipient]
                )

        compacted.append(entry)

    if attachment is not None:
        logger.debug("Surfacing one attachment out of %d history entries", len(history))
    return CompactedHistory(compacted, attachment)

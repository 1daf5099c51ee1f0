"""Interactive terminal for watching a run and answering as the client."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from enum import Enum
from typing import (
    Any,
    Tuple,
)

from agentcrew.core.schema import (
    HistoryEntry,
    TargetType,
    ToolResult,
)

logger = logging.getLogger(__name__)

_RESULT_PREVIEW = 500
_RESET = "\033[0m"


class Style(str, Enum):
    """ANSI colour per kind of console line."""

    HEADER = "\033[96m"
    STATUS = "\033[33m"
    MESSAGE = "\033[94m"
    SUCCESS = "\033[92m"
    ERROR = "\033[91m"


def styled_print(text: str, style: Style, **kwargs: Any) -> None:
    """Print *text* in the colour of *style*; *kwargs* go to :func:`print`."""
    print(f"{style.value}{text}{_RESET}", **kwargs)


class ConsoleClosedError(RuntimeError):
    """Raised when the operator closes standard input (Ctrl+C / Ctrl+D)."""


def get_user_message() -> Tuple[str, bool]:
    """
    Get a message from the user via standard input.

    Returns:
        Tuple of (user_input, success_flag)
        The success_flag is False if input couldn't be read (e.g., Ctrl+C)
    """
    import signal  # pylint: disable=import-outside-toplevel

    # Ensure SIGINT breaks out of slow system calls such as read()
    signal.siginterrupt(signal.SIGINT, True)

    try:
        user_input = input().strip()
        return user_input, True
    except (EOFError, KeyboardInterrupt):
        return "", False


class ConsoleUI:
    """Line-based prompt/response terminal used by the orchestrator and the human proxy."""

    def print_header(self, text: str, char: str = "=") -> None:
        """Print *text* framed by lines of *char*."""
        line = char * 60
        styled_print(f"\n{line}\n {text}\n{line}", Style.HEADER)

    def display_entry(self, entry: HistoryEntry) -> None:
        """Print one log entry."""
        ts = f"[{datetime.now().strftime('%H:%M:%S')}]"
        if isinstance(entry, ToolResult):
            status = "ERROR" if entry.error else "SUCCESS"
            style = Style.ERROR if entry.error else Style.SUCCESS
            result = entry.result if isinstance(entry.result, str) else json.dumps(
                entry.result, ensure_ascii=False, default=str
            )
            if len(result) > _RESULT_PREVIEW:
                result = result[:_RESULT_PREVIEW] + " ..."
            styled_print(f"{ts} 🛠️  TOOL EXECUTED: {entry.tool_name} [{status}]", style)
            print(f"  Result: {result}\n")
            return

        sender = entry.sender or "System"
        styled_print(
            f"{ts} 💬 {sender} -> {entry.recipient} ({entry.target_type.value})", Style.MESSAGE
        )
        if entry.target_type == TargetType.TOOL:
            print(f"  {json.dumps(entry.tool_args, ensure_ascii=False)[:_RESULT_PREVIEW]}")
        if entry.message:
            print(f"  {entry.message}")
        print()

    def display_status(self, message: str) -> None:
        """Print an informational line."""
        styled_print(message, Style.STATUS)

    def display_error(self, message: str) -> None:
        """Print an error line."""
        styled_print(f"❌ Error: {message}", Style.ERROR)

    def get_user_input(self, prompt: str = "") -> str:
        """
        Ask the operator for one line.

        Raises:
            ConsoleClosedError: standard input was closed or interrupted.
        """
        styled_print(prompt, Style.MESSAGE, end="", flush=True)
        text, ok = get_user_message()
        if not ok:
            raise ConsoleClosedError("Input was closed by the user.")
        return text

"""Append-only JSONL event log: the authoritative transcript of a run."""

import logging
import os
from pathlib import Path
from typing import (
    Iterator,
    List,
    Optional,
)

from pydantic import ValidationError

from agentcrew.core.schema import (
    LOG_ENTRY_ADAPTER,
    HistoryEntry,
    Turn,
    wrap_entry,
)

logger = logging.getLogger(__name__)

LOG_FILE = "00_project_log.jsonl"


class EventLogError(RuntimeError):
    """Raised when the log file cannot be written or read."""


class EventLog:
    """
    Durable, append-only sequence of Turns and ToolResults.

    Each entry is written to disk (flushed and fsync'ed) before it becomes visible in the in-memory
    mirror, so readers only ever see a committed prefix of the file.
    """

    def __init__(self, path: Path, resume: bool = False):
        self.path = Path(path)
        self._entries: List[HistoryEntry] = []
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            if not resume:
                # Starting over: the only point where truncation is allowed
                self.path.write_text("", encoding="utf-8")
        except OSError as exc:
            raise EventLogError(f"Cannot initialise log file {self.path}: {exc}") from exc

    # ------------------------------------------------------------------ #
    # Writing
    # ------------------------------------------------------------------ #
    def append(self, entry: HistoryEntry) -> None:
        """Persist *entry*, then expose it to readers."""
        line = wrap_entry(entry).model_dump_json() + "\n"
        try:
            with self.path.open("a", encoding="utf-8") as f:
                f.write(line)
                f.flush()
                os.fsync(f.fileno())
        except OSError as exc:
            raise EventLogError(f"Cannot append to log file {self.path}: {exc}") from exc
        self._entries.append(entry)

    # ------------------------------------------------------------------ #
    # Reading
    # ------------------------------------------------------------------ #
    def load_all(self) -> None:
        """Rebuild the in-memory mirror from disk, skipping lines that do not parse."""
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            self._entries = []
            return
        except OSError as exc:
            raise EventLogError(f"Cannot read log file {self.path}: {exc}") from exc

        entries: List[HistoryEntry] = []
        for lineno, line in enumerate(raw.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                entries.append(LOG_ENTRY_ADAPTER.validate_json(line.decode("utf-8")).data)
            except (ValidationError, UnicodeDecodeError) as exc:
                logger.warning("Skipping corrupt log line %d in %s: %s", lineno, self.path, exc)
        self._entries = entries
        logger.info("Loaded %d log entries from %s", len(entries), self.path)

    def last(self) -> Optional[HistoryEntry]:
        """Most recent entry, or *None* when the log is empty."""
        return self._entries[-1] if self._entries else None

    def last_turn(self) -> Optional[Turn]:
        """Most recent Turn, looking past a trailing ToolResult."""
        for entry in reversed(self._entries):
            if isinstance(entry, Turn):
                return entry
        return None

    def full_history(self) -> List[HistoryEntry]:
        """The complete ordered transcript."""
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(list(self._entries))

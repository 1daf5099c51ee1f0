"""Project directory holding the team's artifacts."""

import base64
import logging
from pathlib import Path
from typing import (
    Dict,
    Iterable,
    List,
)

logger = logging.getLogger(__name__)

META_DIR = "_meta"


class WorkspaceAccessError(PermissionError):
    """Raised when a path would escape the project directory."""


class Workspace:
    """
    Filesystem area for one project.

    All paths handed in by agents are resolved relative to :attr:`project_path` and refused when
    they point outside of it or into ``_meta``.  That directory holds the event log and the
    kickoff plan; it is hidden from file listings and only reachable through
    ``sub_dir=META_DIR``.
    """

    def __init__(self, root: Path | str, project_name: str):
        self.root = Path(root).resolve()
        self.project_name = project_name
        self.project_path = self._resolve_under(self.root, project_name)
        self.project_path.mkdir(parents=True, exist_ok=True)

    @property
    def meta_path(self) -> Path:
        """Directory for orchestration metadata."""
        return self.project_path / META_DIR

    @staticmethod
    def _resolve_under(base: Path, *parts: str) -> Path:
        target = base.joinpath(*parts).resolve()
        if target != base and base not in target.parents:
            raise WorkspaceAccessError(
                f"Access denied: only files inside the workspace can be used: {'/'.join(parts)}"
            )
        return target

    def resolve(self, *parts: str) -> Path:
        """Absolute path of *parts* inside the project directory, outside of ``_meta``."""
        target = self._resolve_under(self.project_path, *parts)
        if target == self.meta_path or self.meta_path in target.parents:
            raise WorkspaceAccessError(
                f"Access denied: {META_DIR} is reserved for the orchestrator: {'/'.join(parts)}"
            )
        return target

    def _artifact_path(self, filename: str, sub_dir: str) -> Path:
        if sub_dir == META_DIR:
            return self._resolve_under(self.meta_path, filename)
        return self.resolve(sub_dir, filename) if sub_dir else self.resolve(filename)

    # ------------------------------------------------------------------ #
    # Listing
    # ------------------------------------------------------------------ #
    def list_files(self) -> str:
        """Indented tree of the project files, directories suffixed with ``/``."""
        return "\n".join(self._walk(self.project_path, 0))

    def _walk(self, directory: Path, level: int) -> List[str]:
        lines: List[str] = []
        indent = " " * (4 * level)
        for entry in sorted(directory.iterdir(), key=lambda p: p.name):
            if entry.name == META_DIR:
                continue
            if entry.is_dir():
                lines.append(f"{indent}{entry.name}/")
                lines.extend(self._walk(entry, level + 1))
            else:
                lines.append(f"{indent}{entry.name}")
        return lines

    # ------------------------------------------------------------------ #
    # Reading / writing
    # ------------------------------------------------------------------ #
    def save_artifact(self, filename: str, content: str, sub_dir: str = "") -> Path:
        """Write *content* to *filename* (optionally under *sub_dir*), creating parents."""
        path = self._artifact_path(filename, sub_dir)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        logger.debug("Saved artifact %s", path)
        return path

    def read_artifact(self, filename: str, sub_dir: str = "") -> str:
        """Read a text artifact.  Raises ``FileNotFoundError`` when it does not exist."""
        path = self._artifact_path(filename, sub_dir)
        return path.read_text(encoding="utf-8")

    def read_files(self, filenames: Iterable[str]) -> Dict[str, str]:
        """Read several files; failures are reported per file instead of raised."""
        contents: Dict[str, str] = {}
        for filename in filenames:
            try:
                contents[filename] = self.resolve(filename).read_text(encoding="utf-8")
            except FileNotFoundError:
                contents[filename] = f"ERROR: file '{filename}' was not found."
            except (OSError, UnicodeDecodeError) as exc:
                contents[filename] = f"ERROR: failed to read file '{filename}': {exc}"
        return contents

    def read_base64(self, filename: str) -> str:
        """Base64 text of a binary file inside the project."""
        return base64.b64encode(self.resolve(filename).read_bytes()).decode("ascii")

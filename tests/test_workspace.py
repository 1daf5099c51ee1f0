"""Tests for the project workspace."""

import base64

import pytest

from agentcrew.core.workspace import (
    META_DIR,
    Workspace,
    WorkspaceAccessError,
)


def test_list_files_is_sorted_and_hides_meta(workspace: Workspace) -> None:
    """Directories are suffixed with ``/`` and nested entries indented."""

    workspace.save_artifact("README.md", "# demo")
    workspace.save_artifact("app.py", "print('hi')", "src")
    workspace.save_artifact("00_project_log.jsonl", "", META_DIR)

    assert workspace.list_files() == "README.md\nsrc/\n    app.py"


def test_paths_cannot_escape_the_project(workspace: Workspace) -> None:
    """Traversal outside the project directory is refused."""

    with pytest.raises(WorkspaceAccessError):
        workspace.resolve("..", "other", "secret.txt")
    with pytest.raises(WorkspaceAccessError):
        workspace.save_artifact("../../evil.txt", "x")
    with pytest.raises(WorkspaceAccessError):
        Workspace(workspace.root, "../outside")


def test_read_files_reports_errors_per_file(workspace: Workspace) -> None:
    """A missing or forbidden file does not prevent reading the others."""

    workspace.save_artifact("a.txt", "alpha")

    contents = workspace.read_files(["a.txt", "missing.txt", "../escape.txt"])

    assert contents["a.txt"] == "alpha"
    assert contents["missing.txt"] == "ERROR: file 'missing.txt' was not found."
    assert contents["../escape.txt"].startswith("ERROR: failed to read file '../escape.txt'")


def test_read_artifact_and_base64(workspace: Workspace) -> None:
    """Text and binary reads resolve inside the project."""

    workspace.save_artifact("plan.json", "{}", META_DIR)
    assert workspace.read_artifact("plan.json", META_DIR) == "{}"
    with pytest.raises(FileNotFoundError):
        workspace.read_artifact("nope.json", META_DIR)

    (workspace.project_path / "pixel.png").write_bytes(b"\x89PNG")
    assert workspace.read_base64("pixel.png") == base64.b64encode(b"\x89PNG").decode("ascii")


def test_meta_directory_is_reserved(workspace: Workspace) -> None:
    """Agent-facing paths cannot reach ``_meta``; the orchestrator's explicit route still can."""

    workspace.save_artifact("00_project_log.jsonl", "entry\n", META_DIR)

    for parts in ([META_DIR], [META_DIR, "00_project_log.jsonl"], ["src", "..", META_DIR, "x"]):
        with pytest.raises(WorkspaceAccessError):
            workspace.resolve(*parts)
    with pytest.raises(WorkspaceAccessError):
        workspace.save_artifact(f"{META_DIR}/00_project_log.jsonl", "")
    with pytest.raises(WorkspaceAccessError):
        workspace.read_artifact("00_project_log.jsonl", f"./{META_DIR}")

    contents = workspace.read_files([f"{META_DIR}/00_project_log.jsonl"])
    assert contents[f"{META_DIR}/00_project_log.jsonl"].startswith("ERROR")
    assert workspace.read_artifact("00_project_log.jsonl", META_DIR) == "entry\n"

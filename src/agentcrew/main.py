"""
agentcrew entry point.

This file handles startup concerns (arg-parsing, env setup, logging), wires the workspace, event
log, tools and generator together and hands control to the orchestrator.
"""

import argparse
import logging
import os
import sys
from pathlib import Path

from agentcrew.agent.generator import load_generator
from agentcrew.agent.orchestrator import Orchestrator
from agentcrew.client.console import (
    ConsoleClosedError,
    ConsoleUI,
)
from agentcrew.config import settings
from agentcrew.core.event_log import (
    LOG_FILE,
    EventLog,
)
from agentcrew.core.workspace import Workspace
from agentcrew.tools import build_tool_registry

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _init_logging(level: str) -> None:
    numeric = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric,
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
        stream=sys.stdout,
    )
    # Keep HTTP client chatter out of the transcript
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _ask_mode(console: ConsoleUI) -> bool:
    """Ask whether to start a new project or resume one; True means resume."""
    while True:
        mode = console.get_user_input("New project or resume an existing one? (new/resume): ")
        if mode.lower() in {"new", "resume"}:
            return mode.lower() == "resume"


def _ask_project_name(console: ConsoleUI) -> str:
    while True:
        name = console.get_user_input("Project name: ")
        if name:
            return name


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------
def main(argv: list[str] | None = None) -> None:
    """
    Main entry point for the agentcrew application.

    This function sets up the command-line interface, initializes logging, and runs one project
    either from scratch or from its persisted log.
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = argparse.ArgumentParser(description="Run an autonomous virtual software team")
    parser.add_argument("--project", help="Project name (a directory under the workspace root)")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--resume", action="store_true", default=None, help="Resume the project")
    mode.add_argument("--new", dest="resume", action="store_false", help="Start the project over")
    parser.add_argument(
        "--planner",
        choices=["openai", "anthropic"],
        type=str.lower,
        default=settings.PLANNER,
        help="Structured-generation back-end (default from env: %(default)s)",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error", "critical"],
        type=str.lower,
        default=settings.LOG_LEVEL,
        help="Logging level (default from env: %(default)s)",
    )
    parser.set_defaults(resume=None)
    args = parser.parse_args(argv)

    # Override settings with command-line arguments
    settings.LOG_LEVEL = args.log_level
    settings.PLANNER = args.planner

    _init_logging(settings.LOG_LEVEL)

    # Ensure the workspace root exists and is writable
    root = Path(settings.WORKSPACE_DIR)
    root.mkdir(parents=True, exist_ok=True)
    if not root.is_dir() or not os.access(root, os.W_OK):
        logger.error("Workspace directory is not writable: %s", root)
        sys.exit(1)

    console = ConsoleUI()
    try:
        resume = args.resume if args.resume is not None else _ask_mode(console)
        project_name = args.project or _ask_project_name(console)

        logger.info("Starting agentcrew [%s, %s]", project_name, "resume" if resume else "new")
        logger.debug(
            "Settings: %s", settings.model_dump(exclude={"OPENAI_API_KEY", "ANTHROPIC_API_KEY"})
        )

        workspace = Workspace(root, project_name)
        event_log = EventLog(workspace.meta_path / LOG_FILE, resume=resume)
        orchestrator = Orchestrator(
            project_name=project_name,
            workspace=workspace,
            event_log=event_log,
            tools=build_tool_registry(workspace),
            generator=load_generator(settings.PLANNER),
            console=console,
        )
        speaker = orchestrator.setup_resume() if resume else orchestrator.setup_new()
        orchestrator.run(speaker)
    except ConsoleClosedError:
        console.display_status("\nInput closed. The run can be resumed later with --resume.")
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("Run aborted")
        console.display_error(f"Unexpected error: {exc}")
        sys.exit(1)
    finally:
        console.display_status("\nExiting.")


if __name__ == "__main__":
    main()

"""Main orchestration loop for agentcrew."""

from __future__ import annotations

import logging
from enum import Enum
from typing import (
    Dict,
    List,
    Optional,
)

from pydantic import ValidationError

from agentcrew.agent.agents import (
    Agent,
    CoordinatorAgent,
    InputSource,
    coordinator_profile,
    create_agent,
    human_profile,
)
from agentcrew.agent.generator import BaseGenerator
from agentcrew.agent.tool_executor import dispatch_tool
from agentcrew.client.console import ConsoleUI
from agentcrew.config import settings
from agentcrew.core.event_log import (
    EventLog,
    EventLogError,
)
from agentcrew.core.history import project_history
from agentcrew.core.schema import (
    BROADCAST,
    AgentKind,
    AgentProfile,
    HistoryEntry,
    NewMember,
    ProjectPlan,
    SpecialAction,
    TargetType,
    ToolResult,
    Turn,
)
from agentcrew.core.workspace import (
    META_DIR,
    Workspace,
)
from agentcrew.tools import ToolRegistry

logger = logging.getLogger(__name__)

PLAN_FILE = "01_project_plan.json"


class Phase(str, Enum):
    """Project phases, in the only order a run may visit them."""

    GATHERING = "GATHERING"
    KICKOFF = "KICKOFF"
    DEVELOPMENT = "DEVELOPMENT"
    DONE = "DONE"


_PHASE_ORDER = list(Phase)


class AgentNotFoundError(RuntimeError):
    """Raised when the active speaker is not a team member."""


class PlanStoreError(RuntimeError):
    """Raised when the kickoff plan cannot be persisted."""


class Orchestrator:
    """
    Owns the event log, the team and the active-speaker pointer, and drives the turn loop.

    Exactly one agent acts at a time.  Its Turn is logged; a tool call is dispatched and its
    result logged before the same agent acts again; a message hands the floor to the recipient.
    """

    def __init__(
        self,
        project_name: str,
        workspace: Workspace,
        event_log: EventLog,
        tools: ToolRegistry,
        generator: BaseGenerator,
        console: ConsoleUI,
        input_source: InputSource | None = None,
        recent_window: int | None = None,
        coordinator_name: str | None = None,
        human_name: str | None = None,
    ):
        self.project_name = project_name
        self.workspace = workspace
        self.event_log = event_log
        self.tools = tools
        self.generator = generator
        self.console = console
        self.input_source = input_source or console
        self.recent_window = (
            settings.HISTORY_RECENT_WINDOW if recent_window is None else recent_window
        )
        self.coordinator_name = coordinator_name or settings.COORDINATOR_NAME
        self.human_name = human_name or settings.HUMAN_NAME

        self.team: Dict[str, AgentProfile] = {}
        self.agents: Dict[str, Agent] = {}
        self.phase = Phase.GATHERING
        self.phases_visited: List[Phase] = [Phase.GATHERING]

        self._add_member(coordinator_profile(self.coordinator_name))
        self._add_member(human_profile(self.human_name))

    # ------------------------------------------------------------------ #
    # Team and phase bookkeeping
    # ------------------------------------------------------------------ #
    def _add_member(self, profile: AgentProfile) -> bool:
        """Add *profile* unless the name is taken.  The team never shrinks or changes members."""
        if profile.name in self.team:
            return False
        self.team[profile.name] = profile
        self.agents[profile.name] = create_agent(
            profile,
            self.generator,
            self.input_source,
            self.recent_window,
            self.coordinator_name,
            self.human_name,
        )
        return True

    def _add_workers(self, members: List[NewMember]) -> List[str]:
        added = []
        for member in members:
            profile = AgentProfile(**member.model_dump(), kind=AgentKind.WORKER)
            if self._add_member(profile):
                added.append(member.name)
            else:
                logger.info("Team already has a member named '%s'; keeping it", member.name)
        return added

    def _enter_phase(self, phase: Phase) -> None:
        if _PHASE_ORDER.index(phase) < _PHASE_ORDER.index(self.phase):
            raise RuntimeError(f"Phase cannot go back from {self.phase.value} to {phase.value}")
        if phase == self.phase:
            return
        logger.info("Phase %s -> %s", self.phase.value, phase.value)
        self.phase = phase
        self.phases_visited.append(phase)

    def _record(self, entry: HistoryEntry) -> None:
        self.event_log.append(entry)
        self.console.display_entry(entry)

    # ------------------------------------------------------------------ #
    # Setup
    # ------------------------------------------------------------------ #
    def setup_new(self) -> str:
        """Seed a fresh log with the bootstrap Turns and return the first speaker."""
        self.console.display_status(f"📂 Workspace: {self.workspace.project_path}")
        self._record(
            Turn(
                sender="",
                target_type=TargetType.AGENT,
                recipient=self.coordinator_name,
                message=(
                    f"The project is starting. First, interview {self.human_name} about "
                    "what they want to build."
                ),
            )
        )
        self._record(
            Turn(
                sender=self.coordinator_name,
                target_type=TargetType.AGENT,
                recipient=self.human_name,
                message=(
                    "Hello! What kind of application would you like to build? Please describe it."
                ),
            )
        )
        return self.human_name

    def setup_resume(self) -> str:
        """Rebuild team, phase and active speaker from the persisted log and plan."""
        self.console.display_status("🔄 Restoring project state...")
        self.event_log.load_all()
        if not len(self.event_log):
            raise EventLogError(f"Nothing to resume: {self.event_log.path} holds no entries.")

        plan = self._load_plan()
        if plan is not None:
            self._add_workers(plan.team)
            self.console.display_status("✅ Restored the development team.")
        else:
            self.console.display_status("ℹ️ No team plan yet. Resuming requirements gathering.")

        history = self.event_log.full_history()
        last_turn = self.event_log.last_turn()
        finalized = any(
            isinstance(e, Turn) and e.special_action == SpecialAction.FINALIZE_REQUIREMENTS
            for e in history
        )
        if last_turn is not None and last_turn.special_action == SpecialAction.COMPLETE_PROJECT:
            self._enter_phase(Phase.DONE)
        elif finalized and last_turn is not None and (
            last_turn.special_action != SpecialAction.FINALIZE_REQUIREMENTS
        ):
            self._enter_phase(Phase.DEVELOPMENT)

        last = self.event_log.last()
        if isinstance(last, Turn) and last.target_type == TargetType.TOOL:
            # Crashed while the tool ran: close the call without running it again
            logger.warning(
                "Tool call to '%s' was interrupted; logging it as failed", last.recipient
            )
            self._record(
                ToolResult(
                    tool_name=last.recipient,
                    result="Error: the run was interrupted before this tool call completed.",
                    error=True,
                )
            )
            last = self.event_log.last()

        self.console.print_header("Resuming project", "*")
        if last is not None:
            self.console.display_entry(last)

        if isinstance(last, Turn) and last.target_type == TargetType.AGENT:
            if last.recipient in self.team:
                return last.recipient
            # ALL after a crash between the kickoff broadcast and the first directive
            logger.warning(
                "Last Turn addressed '%s'; resuming with %s", last.recipient, self.coordinator_name
            )
            return self.coordinator_name
        if isinstance(last, ToolResult) and last_turn is not None and last_turn.sender:
            return last_turn.sender
        return self.coordinator_name

    def _load_plan(self) -> Optional[ProjectPlan]:
        try:
            raw = self.workspace.read_artifact(PLAN_FILE, META_DIR)
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise PlanStoreError(f"Cannot read {PLAN_FILE}: {exc}") from exc
        try:
            return ProjectPlan.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("Ignoring unreadable plan file %s: %s", PLAN_FILE, exc)
            self.console.display_error(f"The saved plan could not be read: {exc}")
            return None

    # ------------------------------------------------------------------ #
    # Turn loop
    # ------------------------------------------------------------------ #
    def run(self, active_speaker: str) -> None:
        """Let agents act one at a time until a Turn completes the project."""
        while True:
            last_turn = self.event_log.last_turn()
            if last_turn is not None:
                if (
                    last_turn.special_action == SpecialAction.FINALIZE_REQUIREMENTS
                    and self.phase == Phase.GATHERING
                ):
                    active_speaker = self._kickoff()
                    continue
                if last_turn.special_action == SpecialAction.COMPLETE_PROJECT:
                    self._enter_phase(Phase.DONE)
                    self.console.print_header("🎉 Project complete! 🎉", "*")
                    logger.info("Project '%s' completed by %s", self.project_name, last_turn.sender)
                    return

            active_speaker = self.step(active_speaker)

    def step(self, active_speaker: str) -> str:
        """Let *active_speaker* act once and return who acts next."""
        agent = self.agents.get(active_speaker)
        if agent is None:
            raise AgentNotFoundError(f"Agent '{active_speaker}' is not part of the team.")

        history = project_history(self.event_log.full_history(), agent.name)
        file_tree = self.workspace.list_files()
        turn = agent.decide_next_action(
            history, self.project_name, file_tree, self.tools, dict(self.team)
        )
        turn.sender = agent.name
        self._record(turn)

        if turn.target_type == TargetType.TOOL:
            self._record(dispatch_tool(self.tools, turn.recipient, turn.tool_args))
            return agent.name

        if turn.target_type == TargetType.AGENT:
            if turn.recipient in self.team:
                return turn.recipient
            self._protocol_violation(
                f"{agent.name} addressed unknown agent '{turn.recipient}'."
            )
            return self.coordinator_name

        self._protocol_violation(f"{agent.name} produced invalid target_type {turn.target_type!r}.")
        return self.coordinator_name

    def _protocol_violation(self, message: str) -> None:
        logger.error("Protocol violation: %s Handing control to %s", message, self.coordinator_name)
        self.console.display_error(f"{message} Handing control to {self.coordinator_name}.")

    # ------------------------------------------------------------------ #
    # Kickoff
    # ------------------------------------------------------------------ #
    def _kickoff(self) -> str:
        """Form the team from the coordinator's plan and hand out the first task."""
        self._enter_phase(Phase.KICKOFF)
        self.console.print_header("Phase 2: team formation and kickoff", "-")

        coordinator = self.agents.get(self.coordinator_name)
        if not isinstance(coordinator, CoordinatorAgent):
            raise AgentNotFoundError(f"Coordinator '{self.coordinator_name}' is missing.")

        self.console.display_status(f"🤔 {self.coordinator_name} is drafting the project plan...")
        plan = coordinator.plan_kickoff(self.event_log.full_history(), dict(self.team))

        try:
            self.workspace.save_artifact(PLAN_FILE, plan.model_dump_json(indent=2), META_DIR)
        except OSError as exc:
            raise PlanStoreError(f"Cannot write {PLAN_FILE}: {exc}") from exc
        self.console.display_status(f"✅ Saved the project plan to '{PLAN_FILE}'.")

        added = self._add_workers(plan.team)
        logger.info("Kickoff added %d agent(s): %s", len(added), added)
        self.console.display_status("\n✅ The development team is ready:")
        for profile in self.team.values():
            self.console.display_status(f" - {profile.name} ({profile.role})")

        self._record(
            Turn(
                sender=self.coordinator_name,
                target_type=TargetType.AGENT,
                recipient=BROADCAST,
                message=plan.broadcast_message,
                thought=plan.thought,
            )
        )
        self._record(
            Turn(
                sender=self.coordinator_name,
                target_type=TargetType.AGENT,
                recipient=plan.first_directive.recipient,
                message=plan.first_directive.message,
            )
        )
        self._enter_phase(Phase.DEVELOPMENT)
        if plan.first_directive.recipient not in self.team:
            self._protocol_violation(
                "The first directive is addressed to unknown agent "
                f"'{plan.first_directive.recipient}'."
            )
            return self.coordinator_name
        return plan.first_directive.recipient

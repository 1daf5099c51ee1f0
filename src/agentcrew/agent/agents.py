"""
Team members.

Every agent implements one method, :meth:`Agent.decide_next_action`.  The orchestrator builds the
right implementation from the variant stored on each :class:`AgentProfile` via
:func:`create_agent`.
"""

import logging
from abc import (
    ABC,
    abstractmethod,
)
from typing import (
    Mapping,
    Protocol,
    Sequence,
)

from agentcrew.agent import prompts
from agentcrew.agent.generator import BaseGenerator
from agentcrew.core.history import compact_history
from agentcrew.core.schema import (
    AgentKind,
    AgentProfile,
    HistoryEntry,
    ProjectPlan,
    SpecialAction,
    TargetType,
    Turn,
    build_decision_model,
    decision_to_turn,
)
from agentcrew.tools import ToolRegistry

logger = logging.getLogger(__name__)

COORDINATOR_ROLE = "PM"
COORDINATOR_PROJECT_ROLE = (
    "Manages and drives the whole project: requirements definition and team formation, final "
    "review of every deliverable, and asking the client about open questions that come up "
    "during development."
)
COORDINATOR_INSTRUCTIONS = (
    "Do your utmost to build a system that satisfies the client, and keep going until every "
    "deliverable and the README and other manuals exist. Review deliverables during development "
    "and point out anything that should be improved, however small. Make sure no request from "
    "the client gets lost on its way to the other agents. Ask the client when anything is unclear."
)
HUMAN_ROLE = "Client"
HUMAN_PROJECT_ROLE = (
    "Represents the client. Requirements are gathered from this agent, and it answers questions "
    "about the specification that come up during development."
)


class InputSource(Protocol):
    """Anything that can ask the human operator for one line of text."""

    def get_user_input(self, prompt: str = "") -> str:
        """Return one line typed by the operator."""


class Agent(ABC):
    """A named participant that decides the next action from its own view of the log."""

    def __init__(self, profile: AgentProfile):
        self.profile = profile

    @property
    def name(self) -> str:
        """Unique agent name."""
        return self.profile.name

    @abstractmethod
    def decide_next_action(
        self,
        history: Sequence[HistoryEntry],
        project_name: str,
        file_tree: str,
        tools: ToolRegistry,
        team: Mapping[str, AgentProfile],
    ) -> Turn:
        """Return the agent's next Turn.  ``sender`` is stamped by the caller."""


class WorkerAgent(Agent):
    """Generic LLM-backed specialist."""

    def __init__(self, profile: AgentProfile, generator: BaseGenerator, recent_window: int):
        super().__init__(profile)
        self.generator = generator
        self.recent_window = recent_window

    def decide_next_action(
        self,
        history: Sequence[HistoryEntry],
        project_name: str,
        file_tree: str,
        tools: ToolRegistry,
        team: Mapping[str, AgentProfile],
    ) -> Turn:
        compacted = compact_history(history, tools, self.recent_window)
        prompt = prompts.worker_prompt(
            self.profile, project_name, compacted.entries, file_tree, tools.catalog(), team.values()
        )
        decision = self.generator.generate(
            prompt, build_decision_model(tools.args_models()), attachment=compacted.attachment
        )
        return decision_to_turn(decision)


class CoordinatorAgent(WorkerAgent):
    """
    The PM.

    Until it has finalized requirements it only talks to the client; afterwards it works like any
    other team member.  It also writes the kickoff plan.
    """

    def __init__(
        self,
        profile: AgentProfile,
        generator: BaseGenerator,
        recent_window: int,
        human_name: str,
    ):
        super().__init__(profile, generator, recent_window)
        self.human_name = human_name

    @staticmethod
    def requirements_finalized(history: Sequence[HistoryEntry]) -> bool:
        """True once any Turn in *history* carried FINALIZE_REQUIREMENTS."""
        return any(
            isinstance(entry, Turn)
            and entry.special_action == SpecialAction.FINALIZE_REQUIREMENTS
            for entry in history
        )

    def decide_next_action(
        self,
        history: Sequence[HistoryEntry],
        project_name: str,
        file_tree: str,
        tools: ToolRegistry,
        team: Mapping[str, AgentProfile],
    ) -> Turn:
        if self.requirements_finalized(history):
            return super().decide_next_action(history, project_name, file_tree, tools, team)

        compacted = compact_history(history, tools, self.recent_window)
        prompt = prompts.requirements_prompt(
            project_name, compacted.entries, file_tree, tools.catalog(), self.human_name
        )
        decision = self.generator.generate(
            prompt, build_decision_model(tools.args_models()), attachment=compacted.attachment
        )
        return decision_to_turn(decision)

    def plan_kickoff(
        self, full_history: Sequence[HistoryEntry], team: Mapping[str, AgentProfile]
    ) -> ProjectPlan:
        """Produce team formation, announcement and first task from the entire log."""
        prompt = prompts.kickoff_prompt(full_history, team.values())
        return self.generator.generate(prompt, ProjectPlan)


class HumanProxyAgent(Agent):
    """Relays the operator's console input; never calls a generator."""

    def __init__(self, profile: AgentProfile, console: InputSource, coordinator_name: str):
        super().__init__(profile)
        self.console = console
        self.coordinator_name = coordinator_name

    def decide_next_action(
        self,
        history: Sequence[HistoryEntry],
        project_name: str,
        file_tree: str,
        tools: ToolRegistry,
        team: Mapping[str, AgentProfile],
    ) -> Turn:
        reply_to = self.coordinator_name
        if history and isinstance(history[-1], Turn) and history[-1].sender:
            reply_to = history[-1].sender

        user_input = self.console.get_user_input("> ")
        return Turn(
            target_type=TargetType.AGENT,
            recipient=reply_to,
            message=user_input,
            special_action=SpecialAction.NONE,
            thought="(typed directly by the user)",
        )


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------
def coordinator_profile(name: str) -> AgentProfile:
    """Record of the built-in coordinator."""
    return AgentProfile(
        name=name,
        role=COORDINATOR_ROLE,
        project_role=COORDINATOR_PROJECT_ROLE,
        detailed_instructions=COORDINATOR_INSTRUCTIONS,
        kind=AgentKind.COORDINATOR,
    )


def human_profile(name: str) -> AgentProfile:
    """Record of the built-in human proxy."""
    return AgentProfile(
        name=name,
        role=HUMAN_ROLE,
        project_role=HUMAN_PROJECT_ROLE,
        kind=AgentKind.HUMAN_PROXY,
    )


def create_agent(
    profile: AgentProfile,
    generator: BaseGenerator,
    console: InputSource,
    recent_window: int,
    coordinator_name: str,
    human_name: str,
) -> Agent:
    """Build the implementation matching ``profile.kind``."""
    if profile.kind == AgentKind.COORDINATOR:
        return CoordinatorAgent(profile, generator, recent_window, human_name)
    if profile.kind == AgentKind.HUMAN_PROXY:
        return HumanProxyAgent(profile, console, coordinator_name)
    return WorkerAgent(profile, generator, recent_window)

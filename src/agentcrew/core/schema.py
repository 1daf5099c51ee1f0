"""
Schema definitions for agent <-> orchestrator <-> tool messages.

These data models serve as the contract between the structured-generation client, the
orchestration loop, the event log and individual tools.  We keep them separate from runtime logic
so they can be imported anywhere without side-effects.
"""

from enum import Enum
from typing import (
    Annotated,
    Any,
    Dict,
    List,
    Literal,
    Mapping,
    Optional,
    Type,
    Union,
)

from pydantic import (
    BaseModel,
    Field,
    TypeAdapter,
    create_model,
)

BROADCAST = "ALL"
"""Recipient name that makes a Turn visible to every agent."""


class TargetType(str, Enum):
    """What a Turn is addressed to."""

    AGENT = "AGENT"
    TOOL = "TOOL"


class SpecialAction(str, Enum):
    """Phase-transition signals an agent may attach to a Turn."""

    NONE = "NONE"
    FINALIZE_REQUIREMENTS = "FINALIZE_REQUIREMENTS"
    COMPLETE_PROJECT = "COMPLETE_PROJECT"


class AgentKind(str, Enum):
    """Behaviour variant stored with each team member."""

    COORDINATOR = "COORDINATOR"
    HUMAN_PROXY = "HUMAN_PROXY"
    WORKER = "WORKER"


# ---------------------------------------------------------------------------
# Log contents
# ---------------------------------------------------------------------------
class Turn(BaseModel):
    """One agent's decision: speak to an agent, or invoke a tool."""

    sender: str = Field("", description="Acting agent. Set by the orchestrator, never by the agent")
    target_type: TargetType
    recipient: str = Field(..., description="Agent name or tool name")
    special_action: SpecialAction = SpecialAction.NONE
    message: Optional[str] = Field(None, description="Text for the recipient agent")
    tool_args: Dict[str, Any] = Field(
        default_factory=dict, description="Arguments keyed by tool name (TOOL targets only)"
    )
    thought: str = Field("", description="Free-text rationale for the decision")


class ToolResult(BaseModel):
    """The logged outcome of a tool invocation."""

    tool_name: str
    result: Any = None
    error: bool = False


HistoryEntry = Union[Turn, ToolResult]


class TurnEntry(BaseModel):
    """Persisted form of a :class:`Turn`."""

    log_type: Literal["turn"] = "turn"
    data: Turn


class ToolResultEntry(BaseModel):
    """Persisted form of a :class:`ToolResult`."""

    log_type: Literal["tool_result"] = "tool_result"
    data: ToolResult


LogEntry = Annotated[Union[TurnEntry, ToolResultEntry], Field(discriminator="log_type")]
LOG_ENTRY_ADAPTER: TypeAdapter = TypeAdapter(LogEntry)


def wrap_entry(entry: HistoryEntry) -> Union[TurnEntry, ToolResultEntry]:
    """Tag *entry* with its ``log_type`` for persistence."""
    if isinstance(entry, Turn):
        return TurnEntry(data=entry)
    return ToolResultEntry(data=entry)


# ---------------------------------------------------------------------------
# Team and kickoff plan
# ---------------------------------------------------------------------------
class AgentProfile(BaseModel):
    """A named participant of the run."""

    name: str
    role: str
    project_role: str = ""
    detailed_instructions: str = ""
    kind: AgentKind = AgentKind.WORKER

    def overview(self) -> Dict[str, str]:
        """Short description used in team rosters embedded in prompts."""
        return {"name": self.name, "role": self.role, "project_role": self.project_role}


class NewMember(BaseModel):
    """A specialist the coordinator wants to add to the team."""

    name: str = Field(..., description="Unique agent name")
    role: str = Field(..., description="General role, e.g. 'Backend developer'")
    project_role: str = Field(
        ..., description="Concrete responsibilities of this agent within this project"
    )
    detailed_instructions: str = Field(
        ..., description="Standing instructions the agent must keep in mind for the whole project"
    )


class FirstDirective(BaseModel):
    """The first task handed out after kickoff."""

    recipient: str = Field(..., description="Agent that receives the first task")
    message: str = Field(..., description="Concrete instructions for the first task")


class ProjectPlan(BaseModel):
    """Team formation and kickoff produced when requirements are finalized."""

    team: List[NewMember] = Field(default_factory=list, description="Members to add to the team")
    broadcast_message: str = Field(..., description="Kickoff announcement sent to the whole team")
    first_directive: FirstDirective
    thought: str = Field("", description="Why this team and this first task were chosen")


# ---------------------------------------------------------------------------
# LLM-facing decision schema
# ---------------------------------------------------------------------------
class DecisionBase(BaseModel):
    """Fields shared by every decision model; ``tool_args`` is added per tool registry."""

    target_type: TargetType = Field(
        ..., description="Whether the next action targets an agent or a tool"
    )
    recipient: str = Field(..., description="Name of the agent or tool the action targets")
    special_action: SpecialAction = Field(
        SpecialAction.NONE, description="Project-level signal. Leave as NONE unless instructed"
    )
    message: Optional[str] = Field(
        None, description="Message for the recipient agent. Leave empty when targeting a tool"
    )
    thought: str = Field(..., description="Your reasoning for choosing this action")


def build_decision_model(args_models: Mapping[str, Type[BaseModel]]) -> Type[DecisionBase]:
    """
    Build the schema an LLM-backed agent fills in.

    ``tool_args`` gets one optional property per registered tool, typed by that tool's argument
    model, so the generator can only produce argument shapes the registry knows about.
    """
    tool_fields: Dict[str, Any] = {
        name: (Optional[model], Field(None, description=f"Arguments for {name}"))
        for name, model in args_models.items()
    }
    tool_args_model = create_model("ToolArgs", **tool_fields)  # type: ignore[call-overload]
    return create_model(  # type: ignore[call-overload]
        "Decision",
        __base__=DecisionBase,
        tool_args=(
            tool_args_model,
            Field(
                default_factory=tool_args_model,
                description="When targeting a tool, its arguments under the tool's name",
            ),
        ),
    )


def decision_to_turn(decision: DecisionBase) -> Turn:
    """Convert a generated decision into a Turn, keeping only the recipient's tool arguments."""
    tool_args: Dict[str, Any] = {}
    if decision.target_type == TargetType.TOOL:
        raw_args = getattr(decision, "tool_args", None)
        args = getattr(raw_args, decision.recipient, None) if raw_args is not None else None
        if isinstance(args, BaseModel):
            tool_args[decision.recipient] = args.model_dump()
        elif args is not None:
            tool_args[decision.recipient] = args
    return Turn(
        target_type=decision.target_type,
        recipient=decision.recipient,
        special_action=decision.special_action,
        message=decision.message if decision.target_type == TargetType.AGENT else None,
        tool_args=tool_args,
        thought=decision.thought,
    )

"""Prompt templates for the LLM-backed agents."""

import json
from typing import (
    Any,
    Iterable,
    List,
    Sequence,
)

from agentcrew.core.schema import (
    AgentProfile,
    HistoryEntry,
    ProjectPlan,
)


def _dump(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def _history_json(history: Sequence[HistoryEntry]) -> str:
    return _dump([entry.model_dump(mode="json") for entry in history])


def _roster_json(team: Iterable[AgentProfile]) -> str:
    return _dump([member.overview() for member in team])


def worker_prompt(
    profile: AgentProfile,
    project_name: str,
    history: Sequence[HistoryEntry],
    file_tree: str,
    tool_catalog: List[dict],
    team: Iterable[AgentProfile],
) -> str:
    """Development-phase prompt shared by workers and the coordinator after kickoff."""
    return f"""You are a member of an autonomous software development team.
Your name: {profile.name}
Your position in the project: {profile.role}
Your responsibilities in the project: {profile.project_role}
Standing instructions for the whole project: {profile.detailed_instructions}

[TASK]
Based on your role, decide the next action to take.
You cannot see the conversation log of the whole project. Your only inputs are your own past
exchanges and the current project files.
Older entries of your own history have file contents and web content omitted, so information you
gather is lost unless you write it down. Save what you learn into files frequently.

[PROJECT NAME]
{project_name}

[AVAILABLE TOOLS]
{_dump(tool_catalog)}

[CURRENT TEAM]
{_roster_json(team)}

[YOUR MESSAGE HISTORY]
{_history_json(history)}

[CURRENT PROJECT FILES]
{file_tree}

[POSSIBLE ACTIONS]
1. **Talk to another agent**: set `target_type` to "AGENT", `recipient` to the agent's name and
   write `message`. Address exactly one agent at a time and work by alternating requests and
   replies; nobody works in parallel. Never address "ALL".
2. **Use a tool**: set `target_type` to "TOOL", `recipient` to the tool name and put its
   arguments in `tool_args` under the tool's name.
3. **Complete the project**: only the PM, once the system is fully built, sets `special_action`
   to "COMPLETE_PROJECT".
"""


def requirements_prompt(
    project_name: str,
    history: Sequence[HistoryEntry],
    file_tree: str,
    tool_catalog: List[dict],
    human_name: str,
) -> str:
    """Requirements-gathering prompt for the coordinator before kickoff."""
    return f"""You are an excellent project manager, currently defining requirements one-on-one
with the client. You actually do the project manager's work: do not schedule imaginary meetings
or ask for reviews of files you have not written. Always take the action that is really needed.

[YOUR TASK]
Decide the next action from the conversation history below.
- **Interview**: if requirements are vague or missing, ask the client ({human_name}). Besides the
  system requirements, also agree on how detailed the questions during development should be and
  on the overall development flow, and write that down.
- **Use a tool**: set `target_type` to "TOOL", `recipient` to the tool name and put its
  arguments in `tool_args` under the tool's name.
- **Final check**: when requirements look complete, write initial documents (requirements,
  screen list, anything that lets the client picture the whole system) with the tools, then ask
  the client in a `message` whether requirements can be closed or need changes.
- **Finish requirements**: once requirements are complete and the client agreed, set
  `special_action` to "FINALIZE_REQUIREMENTS".

[PROJECT NAME]
{project_name}

[AVAILABLE TOOLS]
{_dump(tool_catalog)}

[MESSAGE HISTORY]
{_history_json(history)}

[CURRENT PROJECT FILES]
{file_tree}
"""


def kickoff_prompt(full_history: Sequence[HistoryEntry], team: Iterable[AgentProfile]) -> str:
    """Prompt asking the coordinator for the team formation and kickoff plan."""
    return f"""You are an outstanding PM. Requirements definition is complete.
Review the conversation and plan how to carry out this project.

[TEAM CHARACTERISTICS]
Keep these in mind when forming the team, instructing agents and announcing the kickoff; put the
points each agent must remember into that agent's instructions.
- Every member except the client is an AI. Do not schedule imaginary meetings, report results of
  tests that were never run, or ask for reviews of files that do not exist.
- The goal is a genuinely finished system, not role-playing a human team. Always take the action
  that is actually needed.
- When needed, members ask the client through the PM so the final system is as complete as
  possible.
- Think about real usage throughout and actively raise questions and improvement proposals.
- Design documents describe usage flows and what was done for the users' sake.

[YOUR TASK]
1. **Team formation**: add the specialists this project needs, each with a name, a general role
   (role), concrete project responsibilities (project_role) and standing instructions
   (detailed_instructions). Do not change members who are already on the team.
2. **Announcement**: a concise kickoff message that tells the whole team the project's goal.
3. **First directive**: pick one member and give them a concrete first task.

[CURRENT TEAM]
{_dump([member.model_dump(mode="json") for member in team])}

[CONVERSATION HISTORY]
{_history_json(full_history)}

[OUTPUT FORMAT]
{_dump(ProjectPlan.model_json_schema())}
"""

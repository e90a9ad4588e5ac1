"""Agent targets and multi-agent resolution.

Each agent is a consumer application with its own skills directory. Some
directories live under the user's home, others under the current project.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Tuple

if TYPE_CHECKING:
    from agent_skills.config import Configuration

logger = logging.getLogger(__name__)


class Agent(str, Enum):
    """Supported agents."""

    CLAUDE = "claude"
    CURSOR = "cursor"
    AMP = "amp"
    VSCODE = "vscode"
    COPILOT = "copilot"
    PROJECT = "project"
    GOOSE = "goose"
    OPENCODE = "opencode"
    CODEX = "codex"
    LETTA = "letta"


class Scope(str, Enum):
    """What an agent's skills directory is relative to."""

    HOME = "home"
    PROJECT = "project"


PRIMARY_AGENT = Agent.CLAUDE


@dataclass(frozen=True)
class AgentSpec:
    """Where an agent keeps its skills and what to tell the user afterwards.

    Attributes:
        scope: Whether ``parts`` is relative to home or the working directory.
        parts: Path components of the skills directory.
        instructions: Post-install guidance; ``{name}`` is the skill name.
    """

    scope: Scope
    parts: Tuple[str, ...]
    instructions: str

    @property
    def display_path(self) -> str:
        prefix = "~/" if self.scope is Scope.HOME else ""
        return prefix + "/".join(self.parts) + "/"


AGENT_SPECS: Dict[Agent, AgentSpec] = {
    Agent.CLAUDE: AgentSpec(
        Scope.HOME, (".claude", "skills"),
        "The skill is now available in Claude Code.\n"
        'Just mention "{name}" in your prompt and Claude will use it.',
    ),
    Agent.CURSOR: AgentSpec(
        Scope.PROJECT, (".cursor", "skills"),
        "The skill is installed in your project's .cursor/skills/ folder.\n"
        "Cursor will automatically detect and use it.",
    ),
    Agent.AMP: AgentSpec(
        Scope.HOME, (".amp", "skills"),
        "The skill is now available in Amp.",
    ),
    Agent.VSCODE: AgentSpec(
        Scope.PROJECT, (".github", "skills"),
        "The skill is installed in your project's .github/skills/ folder.",
    ),
    Agent.COPILOT: AgentSpec(
        Scope.PROJECT, (".github", "skills"),
        "The skill is installed in your project's .github/skills/ folder.",
    ),
    Agent.PROJECT: AgentSpec(
        Scope.PROJECT, (".skills",),
        "The skill is installed in .skills/ in your current directory.\n"
        "This makes it portable across all compatible agents.",
    ),
    Agent.GOOSE: AgentSpec(
        Scope.HOME, (".config", "goose", "skills"),
        "The skill is now available in Goose.",
    ),
    Agent.OPENCODE: AgentSpec(
        Scope.HOME, (".opencode", "skills"),
        "The skill is now available in OpenCode.",
    ),
    Agent.CODEX: AgentSpec(
        Scope.HOME, (".codex", "skills"),
        "The skill is now available in Codex.",
    ),
    Agent.LETTA: AgentSpec(
        Scope.HOME, (".letta", "skills"),
        "The skill is now available in Letta.",
    ),
}

_missing = set(Agent) - set(AGENT_SPECS)
if _missing:
    raise RuntimeError(f"No agent spec for: {sorted(a.value for a in _missing)}")


@dataclass(frozen=True)
class AgentDestination:
    """A resolved agent together with its absolute skills directory."""

    agent: Agent
    root: Path

    @property
    def name(self) -> str:
        return self.agent.value

    def skill_path(self, skill_name: str) -> Path:
        return self.root / skill_name

    def instructions(self, skill_name: str) -> str:
        return AGENT_SPECS[self.agent].instructions.format(name=skill_name)


def agent_names() -> List[str]:
    """All agent keys, in declaration order."""
    return [agent.value for agent in Agent]


def parse_agent(value: Optional[str]) -> Optional[Agent]:
    """Parse an agent key, tolerating leading dashes and case.

    Returns:
        The Agent, or None if the value is not a known agent.
    """
    if not value:
        return None
    key = value.strip().lstrip("-").lower()
    try:
        return Agent(key)
    except ValueError:
        return None


def agent_root(
    agent: Agent,
    home: Optional[Path] = None,
    cwd: Optional[Path] = None,
) -> Path:
    """Absolute skills directory of an agent.

    Args:
        agent: The agent.
        home: Home directory override (default: ``Path.home()``).
        cwd: Working directory override (default: ``Path.cwd()``).
    """
    spec = AGENT_SPECS[agent]
    if spec.scope is Scope.HOME:
        base = Path(home) if home is not None else Path.home()
    else:
        base = Path(cwd) if cwd is not None else Path.cwd()
    return base.joinpath(*spec.parts)


def destination_for(
    agent: Agent,
    home: Optional[Path] = None,
    cwd: Optional[Path] = None,
) -> AgentDestination:
    return AgentDestination(agent=agent, root=agent_root(agent, home, cwd))


def _parse_agent_list(values: Iterable[str]) -> List[Agent]:
    parsed = []
    for token in values:
        agent = parse_agent(token)
        if agent is None:
            logger.debug("Ignoring unknown agent %r", token)
            continue
        parsed.append(agent)
    return parsed


def resolve_agents(
    agent: Optional[str] = None,
    agents: Optional[str] = None,
    all_agents: bool = False,
    config: Optional["Configuration"] = None,
    home: Optional[Path] = None,
    cwd: Optional[Path] = None,
) -> List[AgentDestination]:
    """Resolve an agent selection to destination directories.

    Precedence: ``all_agents``, then the comma-separated ``agents`` list,
    then the single ``agent``, then the configured ``agents`` list, then the
    configured default agent, then the primary agent.

    Unknown names in a list are dropped. An unknown single agent falls back
    to the primary agent. The result is de-duplicated by agent and by
    directory (``vscode`` and ``copilot`` share one) in first-seen order and
    is never empty.

    Args:
        agent: Single agent flag value.
        agents: Comma-separated agent list flag value.
        all_agents: Select every known agent.
        config: Configuration supplying defaults.
        home: Home directory override.
        cwd: Working directory override.

    Returns:
        Ordered list of AgentDestination.
    """
    selected: List[Agent] = []

    if all_agents:
        selected = list(Agent)
    elif agents:
        selected = _parse_agent_list(agents.split(","))
    elif agent:
        selected = [parse_agent(agent) or PRIMARY_AGENT]
    elif config is not None and config.agents:
        selected = _parse_agent_list(config.agents)

    if not selected and config is not None and not (all_agents or agents or agent):
        default = parse_agent(config.default_agent)
        if default is not None:
            selected = [default]

    if not selected:
        selected = [PRIMARY_AGENT]

    destinations: List[AgentDestination] = []
    seen_agents = set()
    seen_roots = set()
    for item in selected:
        root = agent_root(item, home, cwd)
        if item in seen_agents or root in seen_roots:
            continue
        seen_agents.add(item)
        seen_roots.add(root)
        destinations.append(AgentDestination(agent=item, root=root))
    return destinations

"""Install, update, and remove AI agent skills across agents.

A skill is a directory with a ``SKILL.md`` marker file. Skills come from the
bundled catalog, a local path, or a GitHub repository and are copied into
each agent's skills directory.
"""

__version__ = "0.1.0"

from agent_skills.agents import Agent, AgentDestination, resolve_agents
from agent_skills.catalog import Catalog, load_catalog
from agent_skills.config import Configuration, ConfigStore
from agent_skills.installer import SkillInstaller
from agent_skills.models import OperationResult, OperationState, SkillRecord

__all__ = [
    "Agent",
    "AgentDestination",
    "Catalog",
    "ConfigStore",
    "Configuration",
    "OperationResult",
    "OperationState",
    "SkillInstaller",
    "SkillRecord",
    "load_catalog",
    "resolve_agents",
]

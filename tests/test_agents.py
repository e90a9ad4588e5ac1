"""Tests for agent targets and multi-agent resolution."""

import pytest

from agent_skills.agents import (
    AGENT_SPECS,
    PRIMARY_AGENT,
    Agent,
    agent_names,
    agent_root,
    destination_for,
    parse_agent,
    resolve_agents,
)
from agent_skills.config import Configuration


def _agents(destinations):
    return [d.agent for d in destinations]


class TestAgentTable:

    def test_every_agent_has_a_spec(self):
        assert set(AGENT_SPECS) == set(Agent)

    def test_home_scoped_root(self, home, project):
        assert agent_root(Agent.CLAUDE, home, project) == home / ".claude" / "skills"
        assert agent_root(Agent.GOOSE, home, project) == home / ".config" / "goose" / "skills"

    def test_project_scoped_root(self, home, project):
        assert agent_root(Agent.CURSOR, home, project) == project / ".cursor" / "skills"
        assert agent_root(Agent.PROJECT, home, project) == project / ".skills"

    def test_vscode_and_copilot_share_a_root(self, home, project):
        assert agent_root(Agent.VSCODE, home, project) == agent_root(Agent.COPILOT, home, project)

    def test_instructions_mention_skill(self, home, project):
        text = destination_for(Agent.CLAUDE, home, project).instructions("pdf")
        assert '"pdf"' in text
        assert ".cursor/skills/" in destination_for(Agent.CURSOR, home, project).instructions("pdf")

    def test_agent_names_order(self):
        assert agent_names()[0] == "claude"
        assert len(agent_names()) == len(Agent)


class TestParseAgent:

    @pytest.mark.parametrize("value, expected", [
        ("cursor", Agent.CURSOR),
        ("--cursor", Agent.CURSOR),
        ("Claude", Agent.CLAUDE),
        (" codex ", Agent.CODEX),
    ])
    def test_known(self, value, expected):
        assert parse_agent(value) is expected

    @pytest.mark.parametrize("value", ["", None, "emacs", "claude-code"])
    def test_unknown(self, value):
        assert parse_agent(value) is None


class TestResolveAgents:

    def test_default_is_primary(self, home, project):
        result = resolve_agents(home=home, cwd=project)
        assert _agents(result) == [PRIMARY_AGENT]

    def test_single_agent(self, home, project):
        result = resolve_agents(agent="cursor", home=home, cwd=project)
        assert _agents(result) == [Agent.CURSOR]
        assert result[0].root == project / ".cursor" / "skills"

    def test_unknown_single_agent_falls_back(self, home, project):
        result = resolve_agents(agent="emacs", home=home, cwd=project)
        assert _agents(result) == [Agent.CLAUDE]

    def test_list_drops_unknown(self, home, project):
        result = resolve_agents(agents="cursor,bogus,claude", home=home, cwd=project)
        assert _agents(result) == [Agent.CURSOR, Agent.CLAUDE]

    def test_list_of_only_unknown_is_never_empty(self, home, project):
        result = resolve_agents(agents="bogus,nope", home=home, cwd=project)
        assert _agents(result) == [Agent.CLAUDE]

    def test_list_wins_over_single(self, home, project):
        result = resolve_agents(agent="amp", agents="codex", home=home, cwd=project)
        assert _agents(result) == [Agent.CODEX]

    def test_all_agents_deduplicates_shared_roots(self, home, project):
        result = resolve_agents(all_agents=True, home=home, cwd=project)
        roots = [d.root for d in result]
        assert len(roots) == len(set(roots))
        assert Agent.VSCODE in _agents(result)
        assert Agent.COPILOT not in _agents(result)
        assert len(result) == len(Agent) - 1

    def test_duplicates_in_list_removed(self, home, project):
        result = resolve_agents(agents="cursor,cursor,vscode,copilot", home=home, cwd=project)
        assert _agents(result) == [Agent.CURSOR, Agent.VSCODE]

    def test_config_agents_used_without_flags(self, home, project):
        config = Configuration(agents=["amp", "letta"])
        result = resolve_agents(config=config, home=home, cwd=project)
        assert _agents(result) == [Agent.AMP, Agent.LETTA]

    def test_config_default_agent(self, home, project):
        config = Configuration(default_agent="goose")
        result = resolve_agents(config=config, home=home, cwd=project)
        assert _agents(result) == [Agent.GOOSE]

    def test_flag_overrides_config(self, home, project):
        config = Configuration(default_agent="goose", agents=["amp"])
        result = resolve_agents(agent="cursor", config=config, home=home, cwd=project)
        assert _agents(result) == [Agent.CURSOR]

    def test_invalid_config_default_falls_back(self, home, project):
        config = Configuration(default_agent="emacs")
        result = resolve_agents(config=config, home=home, cwd=project)
        assert _agents(result) == [Agent.CLAUDE]

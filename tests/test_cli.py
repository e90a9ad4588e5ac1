"""Tests for the command line interface."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from agent_skills.browser import BrowseAction, BrowseSelection
from agent_skills.cli import build_parser, main
from conftest import make_skill


@pytest.fixture
def env(tmp_path, home, project, manifest, skills_dir, monkeypatch):
    """Point HOME and the working directory at temporary folders."""
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("AGENT_SKILLS_CONFIG", raising=False)
    monkeypatch.delenv("AGENT_SKILLS_MANIFEST", raising=False)
    monkeypatch.delenv("AGENT_SKILLS_DIR", raising=False)
    monkeypatch.setenv("NO_COLOR", "1")
    monkeypatch.chdir(project)
    return tmp_path


@pytest.fixture
def run(env, manifest, skills_dir, home, capsys):
    """Run the CLI against the temporary catalog; returns (code, stdout)."""
    config = home / ".agent-skills.json"

    def _run(*argv):
        code = main([
            "--manifest", str(manifest),
            "--skills-dir", str(skills_dir),
            "--config", str(config),
            *argv,
        ])
        return code, capsys.readouterr().out

    return _run


class TestParser:

    @pytest.mark.parametrize("argv, command", [
        (["ls"], "ls"),
        (["i", "pdf"], "i"),
        (["add", "pdf"], "add"),
        (["rm", "pdf"], "rm"),
        (["upgrade", "--all"], "upgrade"),
        (["find", "pdf"], "find"),
        (["show", "pdf"], "show"),
        (["b"], "b"),
    ])
    def test_aliases(self, argv, command):
        args = build_parser().parse_args(argv)
        assert args.command == command
        assert args.handler is not None

    def test_agent_shorthand(self):
        args = build_parser().parse_args(["install", "pdf", "--cursor", "-n"])
        assert args.agent == "cursor"
        assert args.dry_run

    def test_agents_list(self):
        args = build_parser().parse_args(["install", "pdf", "--agents", "claude,cursor"])
        assert args.agents == "claude,cursor"

    def test_selection_before_command(self):
        args = build_parser().parse_args(["--agent", "cursor", "-n", "install", "pdf"])
        assert args.agent == "cursor"
        assert args.dry_run
        assert args.source == "pdf"

    def test_shorthand_before_command(self):
        args = build_parser().parse_args(["--cursor", "uninstall", "pdf"])
        assert args.agent == "cursor"

    def test_selection_defaults(self):
        args = build_parser().parse_args(["install", "pdf"])
        assert args.agent is None
        assert args.agents is None
        assert not args.all_agents
        assert not args.dry_run


class TestList:

    def test_list_groups_by_category(self, run):
        code, out = run("list")
        assert code == 0
        assert "Available Skills (4 total)" in out
        assert out.index("DEVELOPMENT") < out.index("DOCUMENT") < out.index("PRODUCTIVITY")
        assert "[pdf, Documents, forms]" in out

    def test_list_category(self, run):
        code, out = run("list", "--category", "document")
        assert code == 0
        assert "pdf" in out
        assert "frontend-design" not in out

    def test_list_tag(self, run):
        code, out = run("ls", "-t", "playwright")
        assert "webapp-testing" in out
        assert "pdf" not in out

    def test_list_no_match(self, run):
        code, out = run("list", "--category", "nothing")
        assert code == 0
        assert "No skills found matching filters" in out

    def test_list_installed(self, run):
        run("install", "pdf")
        code, out = run("list", "--installed")
        assert code == 0
        assert "Installed Skills (1 for claude)" in out
        assert "  pdf" in out

    def test_list_installed_empty(self, run):
        code, out = run("list", "-i", "--agent", "cursor")
        assert "No skills installed for cursor" in out


class TestInstall:

    def test_install_default_agent(self, run, home):
        code, out = run("install", "pdf")
        assert code == 0
        assert "Installed: pdf" in out
        assert 'mention "pdf"' in out
        assert (home / ".claude" / "skills" / "pdf" / "SKILL.md").is_file()

    def test_dry_run_for_cursor(self, run, project):
        code, out = run("install", "pdf", "--agent", "cursor", "--dry-run")
        assert code == 0
        assert "Dry Run" in out
        assert str(Path(".cursor") / "skills" / "pdf") in out
        assert not (project / ".cursor" / "skills" / "pdf").exists()

    def test_bare_skill_name_installs(self, run, home):
        code, out = run("pdf")
        assert code == 0
        assert (home / ".claude" / "skills" / "pdf").is_dir()

    def test_agent_before_command(self, run, home, project):
        code, out = run("--agent", "cursor", "install", "pdf")
        assert code == 0
        assert (project / ".cursor" / "skills" / "pdf").is_dir()
        assert not (home / ".claude" / "skills" / "pdf").exists()

    def test_shorthand_before_bare_skill_name(self, run, project):
        code, out = run("--cursor", "pdf")
        assert code == 0
        assert (project / ".cursor" / "skills" / "pdf").is_dir()

    def test_multiple_agents(self, run, home, project):
        code, out = run("install", "pdf", "--agents", "claude,cursor")
        assert code == 0
        assert (home / ".claude" / "skills" / "pdf").is_dir()
        assert (project / ".cursor" / "skills" / "pdf").is_dir()

    def test_local_path(self, run, project):
        make_skill(project / "my-skill")
        code, out = run("install", "./my-skill", "--project")
        assert code == 0
        assert (project / ".skills" / "my-skill" / "SKILL.md").is_file()

    def test_not_found_suggests(self, run):
        code, out = run("install", "pdf-toolz")
        assert code == 1
        assert "Did you mean: pdf" in out

    def test_missing_argument(self, run):
        code, out = run("install")
        assert code == 1
        assert "Usage:" in out

    def test_traversal_fails_cleanly(self, run, home):
        code, out = run("install", "../etc")
        assert code == 1
        assert not (home / ".claude" / "skills").exists()


class TestUninstallAndUpdate:

    def test_uninstall(self, run, home):
        run("install", "pdf")
        code, out = run("uninstall", "pdf")
        assert code == 0
        assert "Uninstalled: pdf" in out
        assert not (home / ".claude" / "skills" / "pdf").exists()

    def test_uninstall_not_installed(self, run):
        run("install", "frontend-design")
        code, out = run("rm", "pdf")
        assert code == 1
        assert "is not installed for claude" in out
        assert "frontend-design" in out

    def test_uninstall_missing_argument(self, run):
        code, out = run("uninstall")
        assert code == 1
        assert "Usage:" in out

    def test_update(self, run):
        run("install", "pdf")
        code, out = run("update", "pdf")
        assert code == 0
        assert "Updated: pdf" in out

    def test_update_not_installed(self, run):
        code, out = run("update", "pdf")
        assert code == 1
        assert "Use 'install' to add it first." in out

    def test_update_requires_name_or_all(self, run):
        code, out = run("update")
        assert code == 1
        assert "--all" in out

    def test_update_all(self, run):
        run("install", "pdf")
        run("install", "frontend-design")
        code, out = run("update", "--all")
        assert code == 0
        assert "2 updated, 0 failed" in out

    def test_update_all_nothing_installed(self, run):
        code, out = run("upgrade", "--all")
        assert code == 0
        assert "No skills installed for claude" in out


class TestSearchAndInfo:

    def test_search(self, run):
        code, out = run("search", "design")
        assert code == 0
        assert "frontend-design [development]" in out

    def test_search_no_match_suggests(self, run):
        code, out = run("s", "pdff")
        assert code == 0
        assert 'No skills found matching "pdff"' in out
        assert "Did you mean: pdf" in out

    def test_search_requires_query(self, run):
        code, out = run("search")
        assert code == 1

    def test_info(self, run):
        code, out = run("info", "pdf")
        assert code == 0
        assert "(featured)" in out
        assert "Proprietary" in out
        assert "Updated:" in out

    def test_info_unknown(self, run):
        code, out = run("show", "pdff")
        assert code == 1
        assert "Did you mean: pdf" in out


class TestConfig:

    def test_show(self, run):
        code, out = run("config")
        assert code == 0
        assert "defaultAgent: claude" in out

    def test_set_default_agent_flag(self, run, home, project):
        code, out = run("config", "--default-agent", "cursor")
        assert code == 0
        data = json.loads((home / ".agent-skills.json").read_text())
        assert data["defaultAgent"] == "cursor"

        run("install", "pdf")
        assert (project / ".cursor" / "skills" / "pdf").is_dir()

    def test_set_and_get(self, run):
        assert run("config", "set", "auto-update", "true")[0] == 0
        code, out = run("config", "get", "autoUpdate")
        assert out.strip() == "true"

    def test_invalid_agent(self, run):
        code, out = run("config", "--default-agent", "emacs")
        assert code == 1
        assert "Invalid agent" in out

    def test_unknown_action(self, run):
        code, out = run("config", "frobnicate")
        assert code == 1


class TestFatalErrors:

    def test_manifest_without_skills_array(self, env, tmp_path, capsys):
        bad = tmp_path / "bad.json"
        bad.write_text(json.dumps({"version": "1.0"}))

        code = main(["--manifest", str(bad), "list"])

        assert code != 0
        assert "missing skills array" in capsys.readouterr().out

    def test_manifest_env_override(self, env, tmp_path, monkeypatch, capsys):
        bad = tmp_path / "bad.json"
        bad.write_text("{oops")
        monkeypatch.setenv("AGENT_SKILLS_MANIFEST", str(bad))
        assert main(["search", "pdf"]) == 1

    def test_no_command_prints_help(self, env, capsys):
        assert main([]) == 0
        assert "usage:" in capsys.readouterr().out

    def test_unknown_command(self, env):
        with pytest.raises(SystemExit) as exc_info:
            main(["frobnicate"])
        assert exc_info.value.code != 0


class TestBrowse:

    def test_browse_install(self, run, home):
        selection = BrowseSelection(BrowseAction.INSTALL, "pdf")
        with patch("agent_skills.cli.run_browser", return_value=selection):
            code, out = run("browse")
        assert code == 0
        assert (home / ".claude" / "skills" / "pdf").is_dir()

    def test_browse_info(self, run):
        selection = BrowseSelection(BrowseAction.INFO, "frontend-design")
        with patch("agent_skills.cli.run_browser", return_value=selection):
            code, out = run("b")
        assert "Apache-2.0" in out

    def test_browse_quit(self, run):
        with patch("agent_skills.cli.run_browser", return_value=BrowseSelection(BrowseAction.QUIT)):
            code, out = run("browse")
        assert code == 0
        assert "Goodbye!" in out

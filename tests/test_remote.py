"""Tests for the git-based remote fetcher (subprocess is mocked)."""

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from agent_skills.errors import RemoteFetchError
from agent_skills.remote import TEMP_PREFIX, GitFetcher
from agent_skills.sources import RemoteRef


def _fake_clone(returncode=0, stderr=""):
    def run(cmd, **kwargs):
        target = Path(cmd[-1])
        if returncode == 0:
            target.mkdir(parents=True)
            (target / "SKILL.md").write_text("# cloned\n")
        return subprocess.CompletedProcess(cmd, returncode, stdout="", stderr=stderr)
    return run


@pytest.fixture
def ref() -> RemoteRef:
    return RemoteRef.parse("anthropics/skills")


class TestGitFetcher:

    def test_checkout_yields_clone_and_cleans_up(self, ref):
        with patch("agent_skills.remote.subprocess.run", side_effect=_fake_clone()) as run:
            with GitFetcher().checkout(ref) as repo_dir:
                assert (repo_dir / "SKILL.md").is_file()
                assert repo_dir.name == "skills"
                assert repo_dir.parent.name.startswith(TEMP_PREFIX)
                temp_dir = repo_dir.parent

        cmd = run.call_args.args[0]
        assert cmd[:4] == ["git", "clone", "--depth", "1"]
        assert cmd[4] == "https://github.com/anthropics/skills.git"
        assert not temp_dir.exists()

    def test_cleanup_after_error_in_body(self, ref):
        with patch("agent_skills.remote.subprocess.run", side_effect=_fake_clone()):
            with pytest.raises(RuntimeError):
                with GitFetcher().checkout(ref) as repo_dir:
                    temp_dir = repo_dir.parent
                    raise RuntimeError("boom")
        assert not temp_dir.exists()

    def test_clone_failure(self, ref):
        fake = _fake_clone(returncode=128, stderr="fatal: repository not found\n")
        with patch("agent_skills.remote.subprocess.run", side_effect=fake):
            with pytest.raises(RemoteFetchError, match="repository not found"):
                with GitFetcher().checkout(ref):
                    pass

    def test_git_missing(self, ref):
        with patch("agent_skills.remote.subprocess.run", side_effect=FileNotFoundError("git")):
            with pytest.raises(RemoteFetchError, match="git is not installed"):
                with GitFetcher().checkout(ref):
                    pass

    def test_timeout(self, ref):
        error = subprocess.TimeoutExpired(cmd="git", timeout=5)
        with patch("agent_skills.remote.subprocess.run", side_effect=error) as run:
            with pytest.raises(RemoteFetchError, match="timed out"):
                with GitFetcher(timeout=5).checkout(ref):
                    pass
        assert run.call_args.kwargs["timeout"] == 5

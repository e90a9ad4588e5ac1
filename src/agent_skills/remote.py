"""Fetch remote skill repositories with a shallow git clone."""

from __future__ import annotations

import logging
import shutil
import subprocess
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from agent_skills.errors import RemoteFetchError
from agent_skills.sources import RemoteRef

logger = logging.getLogger(__name__)

TEMP_PREFIX = "ai-skills-"


class GitFetcher:
    """Clones repositories into throwaway directories.

    Args:
        git: git executable.
        timeout: Optional clone timeout in seconds. None waits indefinitely.
    """

    def __init__(self, git: str = "git", timeout: Optional[float] = None):
        self._git = git
        self._timeout = timeout

    @contextmanager
    def checkout(self, ref: RemoteRef) -> Iterator[Path]:
        """Shallow-clone ``ref`` and yield the checkout directory.

        The temporary directory is removed on exit, success or failure.

        Raises:
            RemoteFetchError: If git is missing or the clone fails.
        """
        temp_dir = Path(tempfile.mkdtemp(prefix=TEMP_PREFIX))
        try:
            repo_dir = temp_dir / ref.repo
            self._clone(ref.url, repo_dir)
            yield repo_dir
        finally:
            shutil.rmtree(temp_dir, ignore_errors=True)

    def _clone(self, url: str, target: Path) -> None:
        cmd = [self._git, "clone", "--depth", "1", url, str(target)]
        logger.info("Cloning %s -> %s", url, target)

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self._timeout,
            )
        except FileNotFoundError:
            raise RemoteFetchError(
                url,
                "git is not installed. Install git to add skills from GitHub, "
                "or clone the repository and install it from a local path.",
            )
        except subprocess.TimeoutExpired:
            raise RemoteFetchError(url, f"timed out after {self._timeout}s")

        if result.returncode != 0:
            raise RemoteFetchError(url, result.stderr.strip())

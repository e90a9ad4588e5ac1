"""Classify install identifiers as catalog names, local paths, or remote repos."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from agent_skills.errors import InvalidSkillNameError
from agent_skills.validation import is_valid_repo_token, validate_repo_token, validate_skill_name

_DRIVE_PATH_RE = re.compile(r"^[A-Za-z]:[\\/]")
_LOCAL_PREFIXES = ("./", "../", "/", "~/", ".\\", "..\\", "~\\")
_LOCAL_EXACT = {".", "..", "~"}


class SourceKind(str, Enum):
    CATALOG = "catalog"
    LOCAL = "local"
    REMOTE = "remote"


@dataclass(frozen=True)
class RemoteRef:
    """``owner/repo`` or ``owner/repo/skill``."""

    owner: str
    repo: str
    skill: Optional[str] = None
    host: str = "github.com"

    @property
    def url(self) -> str:
        return f"https://{self.host}/{self.owner}/{self.repo}.git"

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"

    @classmethod
    def parse(cls, value: str) -> "RemoteRef":
        """Parse and validate a remote reference.

        Raises:
            InvalidSkillNameError: If a segment is unsafe or the shape is wrong.
        """
        parts = value.split("/")
        if len(parts) not in (2, 3):
            raise InvalidSkillNameError(value, "is not owner/repo or owner/repo/skill")
        owner = validate_repo_token(parts[0])
        repo = validate_repo_token(parts[1])
        if repo.endswith(".git"):
            repo = repo[: -len(".git")]
            validate_repo_token(repo)
        skill = validate_skill_name(parts[2]) if len(parts) == 3 else None
        return cls(owner=owner, repo=repo, skill=skill)


def is_local_path(value: str) -> bool:
    """Leading ``./``, ``../``, ``/``, ``~/``, or a drive letter."""
    return (
        value in _LOCAL_EXACT
        or value.startswith(_LOCAL_PREFIXES)
        or bool(_DRIVE_PATH_RE.match(value))
    )


def _looks_remote(value: str) -> bool:
    parts = value.split("/")
    if len(parts) not in (2, 3):
        return False
    if not (is_valid_repo_token(parts[0]) and is_valid_repo_token(parts[1])):
        return False
    return len(parts) == 2 or bool(parts[2])


def classify(identifier: str) -> SourceKind:
    """Decide where an install identifier points.

    Local paths win, then well-formed ``owner/repo[/skill]`` references;
    everything else is a catalog name (and gets validated as one).
    """
    if is_local_path(identifier):
        return SourceKind.LOCAL
    if "/" in identifier and _looks_remote(identifier):
        return SourceKind.REMOTE
    return SourceKind.CATALOG


def expand_local_path(value: str, home: Path, cwd: Path) -> Path:
    """Expand ``~`` to ``home`` and resolve relative paths against ``cwd``."""
    if value == "~" or value.startswith(("~/", "~\\")):
        path = Path(home) / value[2:] if len(value) > 1 else Path(home)
    else:
        path = Path(value)
        if not path.is_absolute():
            path = Path(cwd) / path
    return path.resolve()

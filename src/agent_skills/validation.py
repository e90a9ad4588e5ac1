"""Identifier validation.

Everything a user types that ends up in a filesystem path or a git URL goes
through here first.
"""

from __future__ import annotations

import re

from agent_skills.errors import InvalidSkillNameError

MAX_SKILL_NAME_LENGTH = 64
MAX_REPO_TOKEN_LENGTH = 100

_SKILL_NAME_RE = re.compile(r"^[a-z0-9][a-z0-9-]*[a-z0-9]$|^[a-z0-9]$")
_REPO_TOKEN_RE = re.compile(r"^[A-Za-z0-9._-]+$")


def validate_skill_name(name: object) -> str:
    """Validate a skill name.

    Args:
        name: Candidate name, usually straight from the command line.

    Returns:
        The name, unchanged.

    Raises:
        InvalidSkillNameError: If the name is missing, contains path
            characters, is not lowercase alphanumeric with hyphens, or is
            longer than 64 characters.
    """
    if not name or not isinstance(name, str):
        raise InvalidSkillNameError(name, "is required")

    if ".." in name or "/" in name or "\\" in name:
        raise InvalidSkillNameError(name, "contains path characters")

    if not _SKILL_NAME_RE.match(name):
        raise InvalidSkillNameError(
            name, "must be lowercase alphanumeric with hyphens",
        )

    if len(name) > MAX_SKILL_NAME_LENGTH:
        raise InvalidSkillNameError(
            name, f"is too long: {len(name)} > {MAX_SKILL_NAME_LENGTH} characters",
        )

    return name


def validate_repo_token(token: object) -> str:
    """Validate a remote repository owner or repository name.

    The token is later interpolated into a clone URL, so anything outside
    ``[A-Za-z0-9._-]`` is refused.

    Raises:
        InvalidSkillNameError: If the token is unsafe.
    """
    if not token or not isinstance(token, str):
        raise InvalidSkillNameError(token, "is not a valid repository token")

    if token in (".", "..") or not _REPO_TOKEN_RE.match(token):
        raise InvalidSkillNameError(token, "is not a valid repository token")

    if len(token) > MAX_REPO_TOKEN_LENGTH:
        raise InvalidSkillNameError(
            token,
            f"is too long: {len(token)} > {MAX_REPO_TOKEN_LENGTH} characters",
        )

    return token


def is_valid_skill_name(name: object) -> bool:
    """Return True if ``validate_skill_name`` would accept the name."""
    try:
        validate_skill_name(name)
    except InvalidSkillNameError:
        return False
    return True


def is_valid_repo_token(token: object) -> bool:
    """Return True if ``validate_repo_token`` would accept the token."""
    try:
        validate_repo_token(token)
    except InvalidSkillNameError:
        return False
    return True


def normalize_skill_name(raw: str) -> str:
    """Derive a skill name from a repository name.

    Lower-cases and collapses every run of non-alphanumeric characters to a
    single hyphen, trimming hyphens at both ends.

    Examples:
        My_Cool.Skill -> my-cool-skill
    """
    return re.sub(r"[^a-z0-9]+", "-", raw.lower()).strip("-")

"""Error types for the skill manager.

Per-skill errors are recoverable: the installer catches them and turns them
into a failed operation result. Only a corrupt manifest is fatal.
"""

from typing import List, Optional


class SkillStoreError(Exception):
    """Base exception for all skill manager errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidSkillNameError(SkillStoreError):
    """Raised when a skill name or repository token has an unsafe shape."""

    def __init__(self, value: object, reason: str):
        message = f"Invalid skill name: {value!r} {reason}"
        super().__init__(message, {"value": value, "reason": reason})
        self.value = value
        self.reason = reason


class SkillNotFoundError(SkillStoreError):
    """Raised when a skill is absent from the catalog, a path, or a repository."""

    def __init__(
        self,
        name: str,
        where: str = "",
        suggestions: Optional[List[str]] = None,
        message: Optional[str] = None,
    ):
        if message is None:
            message = f'Skill "{name}" not found'
            if where:
                message += f" in {where}"
            message += "."
        details = {"name": name}
        if suggestions:
            details["suggestions"] = list(suggestions)
        super().__init__(message, details)
        self.name = name
        self.suggestions = list(suggestions or [])


class SkillNotInstalledError(SkillStoreError):
    """Raised when the target of an uninstall or update is not installed."""

    def __init__(self, name: str, agent: str, installed: Optional[List[str]] = None):
        message = f'Skill "{name}" is not installed for {agent}.'
        details = {"name": name, "agent": agent}
        if installed is not None:
            details["installed"] = list(installed)
        super().__init__(message, details)
        self.name = name
        self.agent = agent
        self.installed = list(installed or [])


class SkillTooLargeError(SkillStoreError):
    """Raised when a copy exceeds the size budget."""

    def __init__(self, limit_bytes: int, total_bytes: int):
        limit_mb = limit_bytes / 1024 / 1024
        message = f"Skill exceeds maximum size of {limit_mb:g}MB"
        super().__init__(
            message, {"limit_bytes": limit_bytes, "total_bytes": total_bytes},
        )
        self.limit_bytes = limit_bytes
        self.total_bytes = total_bytes


class InstallIOError(SkillStoreError):
    """Raised for filesystem failures while installing or removing a skill."""


class RemoteFetchError(InstallIOError):
    """Raised when a remote repository cannot be cloned."""

    def __init__(self, repo_url: str, stderr: str = ""):
        message = f"git clone failed for {repo_url}"
        if stderr:
            message += f": {stderr}"
        super().__init__(message, {"repo_url": repo_url, "stderr": stderr})
        self.repo_url = repo_url


class ManifestCorruptError(SkillStoreError):
    """Raised when the skill manifest cannot be parsed or has no skills array.

    This one is fatal: every catalog query would silently run on wrong data.
    """

    def __init__(self, path: object, reason: str):
        message = f"Failed to load {path}: {reason}"
        super().__init__(message, {"path": str(path), "reason": reason})
        self.path = path
        self.reason = reason

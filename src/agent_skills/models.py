"""Data models for the skill manager."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from agent_skills.agents import Agent
from agent_skills.errors import SkillStoreError

logger = logging.getLogger(__name__)

MARKER_FILE = "SKILL.md"


def is_skill_dir(path: Path) -> bool:
    """A directory is a skill iff it directly contains ``SKILL.md``."""
    return path.is_dir() and (path / MARKER_FILE).is_file()


@dataclass(frozen=True)
class SkillRecord:
    """A skill available in the catalog.

    Attributes:
        name: Skill name (matches the folder name in the skills directory).
        category: Lower-cased category.
        description: Human-readable description.
        tags: Searchable tags, in manifest order.
        featured: Highlighted in listings.
        verified: Reviewed by the catalog maintainers.
        author: Author name or handle.
        license: License identifier.
        source: Where the skill originally comes from.
        last_updated: Optional timestamp string (manifest key ``lastUpdated``).
    """

    name: str
    category: str = "other"
    description: str = ""
    tags: Tuple[str, ...] = ()
    featured: bool = False
    verified: bool = False
    author: str = ""
    license: str = ""
    source: str = ""
    last_updated: Optional[str] = None

    @classmethod
    def from_dict(cls, item: Dict[str, Any]) -> "SkillRecord":
        """Build a record from a manifest entry.

        Raises:
            ValueError: If the entry has no usable name.
        """
        name = item.get("name")
        if not name or not isinstance(name, str):
            raise ValueError("entry without name")

        tags = item.get("tags") or []
        if isinstance(tags, str):
            tags = [tags]

        return cls(
            name=name,
            category=str(item.get("category") or "other").lower(),
            description=str(item.get("description") or ""),
            tags=tuple(str(t) for t in tags),
            featured=bool(item.get("featured", False)),
            verified=bool(item.get("verified", False)),
            author=str(item.get("author") or ""),
            license=str(item.get("license") or ""),
            source=str(item.get("source") or ""),
            last_updated=item.get("lastUpdated") or None,
        )

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match on name, description, category, or a tag."""
        q = query.lower()
        return (
            q in self.name.lower()
            or q in self.description.lower()
            or q in self.category.lower()
            or any(q in tag.lower() for tag in self.tags)
        )

    def has_any_tag(self, wanted: List[str]) -> bool:
        own = {tag.lower() for tag in self.tags}
        return any(tag in own for tag in wanted)

    def last_updated_at(self) -> Optional[datetime]:
        """Parse ``last_updated`` as an aware datetime (UTC if no offset)."""
        if not self.last_updated:
            return None
        text = str(self.last_updated).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.debug("Unparseable lastUpdated for %s: %r", self.name, self.last_updated)
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed


@dataclass(frozen=True)
class InstalledSkill:
    """A skill observed in an agent's skills directory.

    Attributes:
        name: Folder name.
        agent: Agent the directory belongs to.
        path: Skill directory.
        update_available: Catalog copy is newer than the installed one.
    """

    name: str
    agent: Agent
    path: Path
    update_available: bool = False


class OperationState(str, Enum):
    """Terminal state of one operation for one agent."""

    INSTALLED = "installed"
    UPDATED = "updated"
    UNINSTALLED = "uninstalled"
    DRY_RUN = "dry_run"
    FAILED = "failed"


@dataclass(frozen=True)
class SkillPlacement:
    """One skill directory that was (or would be) placed or removed.

    Attributes:
        name: Installed name.
        source: Source directory, or None for removals.
        destination: Destination directory.
        size_bytes: Size of the copied (or to be copied) files.
        replaced: An existing installation was (or would be) replaced.
    """

    name: str
    source: Optional[Path]
    destination: Path
    size_bytes: int = 0
    replaced: bool = False


@dataclass
class OperationResult:
    """Outcome of install / uninstall / update for one agent."""

    action: str
    identifier: str
    agent: Agent
    state: OperationState
    placements: List[SkillPlacement] = field(default_factory=list)
    error: Optional[SkillStoreError] = None
    origin: str = ""

    @property
    def ok(self) -> bool:
        return self.state is not OperationState.FAILED

    @property
    def dry_run(self) -> bool:
        return self.state is OperationState.DRY_RUN


@dataclass
class BatchSummary:
    """Outcome of updating every installed skill for one agent."""

    agent: Agent
    results: List[OperationResult] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.ok)

"""Skill catalog: load the manifest, then filter, search, and suggest."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import yaml

from agent_skills.errors import ManifestCorruptError
from agent_skills.models import SkillRecord

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 3
INSTALL_SUGGESTION_DISTANCE = 3
SEARCH_SUGGESTION_DISTANCE = 4

_YAML_SUFFIXES = (".yaml", ".yml")


def levenshtein(a: str, b: str) -> int:
    """Edit distance between two strings.

    Standard dynamic programming over a ``(len(a)+1) x (len(b)+1)`` table,
    kept one row at a time.
    """
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            if ca == cb:
                current.append(previous[j - 1])
            else:
                current.append(1 + min(previous[j - 1], current[j - 1], previous[j]))
        previous = current
    return previous[-1]


def suggest_names(
    query: str,
    names: Iterable[str],
    max_distance: int,
    limit: int = MAX_SUGGESTIONS,
) -> List[str]:
    """Rank names by edit distance to ``query``.

    A name is a candidate when its distance is within ``max_distance`` or
    when one of the two strings contains the other.

    Returns:
        Up to ``limit`` names, closest first (ties keep input order).
    """
    q = query.lower()
    scored: List[Tuple[int, int, str]] = []
    seen = set()
    for index, name in enumerate(names):
        if name in seen:
            continue
        seen.add(name)
        n = name.lower()
        distance = levenshtein(n, q)
        if distance <= max_distance or (q and (q in n or n in q)):
            scored.append((distance, index, name))
    scored.sort()
    return [name for _, _, name in scored[:limit]]


class Catalog:
    """Immutable, in-memory collection of SkillRecord.

    Args:
        records: Records in manifest order.
        path: Manifest the records came from, if any.
    """

    def __init__(self, records: Iterable[SkillRecord] = (), path: Optional[Path] = None):
        self._records: Tuple[SkillRecord, ...] = tuple(records)
        self._by_name: Dict[str, SkillRecord] = {}
        for record in self._records:
            self._by_name.setdefault(record.name, record)
        self._path = path

    @property
    def path(self) -> Optional[Path]:
        return self._path

    @property
    def records(self) -> Tuple[SkillRecord, ...]:
        return self._records

    def names(self) -> List[str]:
        return [r.name for r in self._records]

    def get(self, name: str) -> Optional[SkillRecord]:
        """Exact lookup by name."""
        return self._by_name.get(name)

    def categories(self) -> List[str]:
        """Distinct categories, sorted."""
        return sorted({r.category for r in self._records})

    def filter_by_category(
        self, category: str, records: Optional[Iterable[SkillRecord]] = None,
    ) -> List[SkillRecord]:
        """Records whose category equals ``category`` (case-insensitive)."""
        wanted = category.strip().lower()
        pool = self._records if records is None else records
        return [r for r in pool if r.category.lower() == wanted]

    def filter_by_tags(
        self, tags: str, records: Optional[Iterable[SkillRecord]] = None,
    ) -> List[SkillRecord]:
        """Records carrying any of the comma-separated ``tags`` (case-insensitive)."""
        wanted = [t.strip().lower() for t in tags.split(",") if t.strip()]
        pool = self._records if records is None else records
        return [r for r in pool if r.has_any_tag(wanted)]

    def filter(
        self, category: Optional[str] = None, tags: Optional[str] = None,
    ) -> List[SkillRecord]:
        """Apply the category and tag filters that are given."""
        results: List[SkillRecord] = list(self._records)
        if category:
            results = self.filter_by_category(category, results)
        if tags:
            results = self.filter_by_tags(tags, results)
        return results

    def search(self, query: str, category: Optional[str] = None) -> List[SkillRecord]:
        """Substring search on name, description, category, and tags.

        Args:
            query: Search text (case-insensitive).
            category: Optional category every result must belong to.
        """
        pool = self.filter_by_category(category) if category else self._records
        return [r for r in pool if r.matches(query)]

    def suggest_similar(
        self, name: str, max_distance: int = INSTALL_SUGGESTION_DISTANCE,
    ) -> List[str]:
        """Up to three catalog names close to ``name``, closest first."""
        return suggest_names(name, self.names(), max_distance)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self):
        return iter(self._records)


def _parse_manifest(path: Path) -> object:
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in _YAML_SUFFIXES:
        return yaml.safe_load(text)
    return json.loads(text)


def load_catalog(path: Path) -> Catalog:
    """Load the skill manifest.

    A missing manifest gives an empty catalog. Entries that are not objects
    or have no name are skipped with a warning.

    Args:
        path: JSON manifest, or YAML when the suffix is ``.yaml``/``.yml``.

    Returns:
        The loaded Catalog.

    Raises:
        ManifestCorruptError: If the file cannot be read or parsed, or has no
            top-level ``skills`` array.
    """
    path = Path(path)
    if not path.exists():
        logger.warning("%s not found, using empty list", path)
        return Catalog(path=path)

    try:
        raw = _parse_manifest(path)
    except (OSError, UnicodeDecodeError, ValueError, yaml.YAMLError) as e:
        raise ManifestCorruptError(path, str(e)) from e

    skills = raw.get("skills") if isinstance(raw, dict) else None
    if not isinstance(skills, list):
        raise ManifestCorruptError(path, "missing skills array")

    records = []
    for item in skills:
        if not isinstance(item, dict):
            logger.warning("Skipping non-object manifest entry: %r", item)
            continue
        try:
            records.append(SkillRecord.from_dict(item))
        except ValueError as e:
            logger.warning("Skipping manifest entry (%s): %r", e, item)

    logger.info("Loaded %d catalog entries from %s", len(records), path)
    return Catalog(records, path=path)

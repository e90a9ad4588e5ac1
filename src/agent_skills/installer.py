"""Skill installer: install, update, and uninstall skills per agent."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from agent_skills.agents import AgentDestination
from agent_skills.catalog import INSTALL_SUGGESTION_DISTANCE, Catalog, suggest_names
from agent_skills.copier import MAX_SKILL_SIZE, copy_tree, measure_tree, remove_tree
from agent_skills.errors import (
    InstallIOError,
    SkillNotFoundError,
    SkillNotInstalledError,
    SkillStoreError,
    SkillTooLargeError,
)
from agent_skills.models import (
    MARKER_FILE,
    BatchSummary,
    InstalledSkill,
    OperationResult,
    OperationState,
    SkillPlacement,
    is_skill_dir,
)
from agent_skills.remote import GitFetcher
from agent_skills.sources import RemoteRef, SourceKind, classify, expand_local_path
from agent_skills.validation import (
    is_valid_skill_name,
    normalize_skill_name,
    validate_skill_name,
)

logger = logging.getLogger(__name__)

# (installed name, source directory)
Candidate = Tuple[str, Path]


def _within(path: Path, root_real: Path) -> bool:
    """``path`` is not a symlink and its real path stays under ``root_real``."""
    if path.is_symlink():
        return False
    try:
        path.resolve().relative_to(root_real)
    except ValueError:
        return False
    return True


class SkillInstaller:
    """Installs, updates, and uninstalls skills for agents.

    Every public operation returns a result instead of raising, so one
    failing skill or agent never aborts a batch.

    Args:
        skills_dir: Directory holding the catalog's skill folders.
        catalog: Loaded catalog, used for suggestions and update checks.
        fetcher: Remote repository fetcher (default: GitFetcher).
        home: Home directory used to expand ``~`` in local paths.
        cwd: Directory relative local paths are resolved against.
        size_budget: Maximum size of one skill in bytes.
    """

    def __init__(
        self,
        skills_dir: Path,
        catalog: Optional[Catalog] = None,
        fetcher: Optional[GitFetcher] = None,
        home: Optional[Path] = None,
        cwd: Optional[Path] = None,
        size_budget: int = MAX_SKILL_SIZE,
    ):
        self._skills_dir = Path(skills_dir)
        self._catalog = catalog or Catalog()
        self._fetcher = fetcher or GitFetcher()
        self._home = Path(home) if home else Path.home()
        self._cwd = Path(cwd) if cwd else Path.cwd()
        self._size_budget = size_budget

    @property
    def skills_dir(self) -> Path:
        return self._skills_dir

    # ── Public API ──────────────────────────────────────────────────

    def install(
        self, identifier: str, target: AgentDestination, dry_run: bool = False,
    ) -> OperationResult:
        """Install a catalog skill, a local directory, or a GitHub repository.

        Args:
            identifier: Catalog name, local path (``./x``, ``~/x``, ``/x``),
                or ``owner/repo[/skill]``.
            target: Agent destination to install into.
            dry_run: Resolve and report without touching the destination.

        Returns:
            OperationResult in state INSTALLED, DRY_RUN, or FAILED.
        """
        kind = classify(identifier)
        origin = kind.value
        try:
            if kind is SourceKind.REMOTE:
                ref = RemoteRef.parse(identifier)
                origin = ref.slug
                with self._fetcher.checkout(ref) as repo_dir:
                    candidates = self._remote_candidates(ref, repo_dir)
                    placements = self._place(candidates, target, dry_run)
            elif kind is SourceKind.LOCAL:
                candidates = self._local_candidates(identifier)
                placements = self._place(candidates, target, dry_run)
            else:
                validate_skill_name(identifier)
                candidates = [(identifier, self.catalog_source(identifier))]
                placements = self._place(candidates, target, dry_run)
        except (SkillStoreError, OSError) as e:
            return self._failed("install", identifier, target, e, origin)

        state = OperationState.DRY_RUN if dry_run else OperationState.INSTALLED
        for placement in placements:
            logger.info(
                "%s skill '%s' for %s at %s",
                "Would install" if dry_run else "Installed",
                placement.name, target.name, placement.destination,
            )
        return OperationResult(
            action="install",
            identifier=identifier,
            agent=target.agent,
            state=state,
            placements=placements,
            origin=origin,
        )

    def uninstall(
        self, name: str, target: AgentDestination, dry_run: bool = False,
    ) -> OperationResult:
        """Remove an installed skill.

        Returns:
            OperationResult in state UNINSTALLED, DRY_RUN, or FAILED
            (SkillNotInstalledError lists what is installed).
        """
        try:
            validate_skill_name(name)
            dest = target.skill_path(name)
            self._require_installed(name, target)

            placement = SkillPlacement(name=name, source=None, destination=dest)
            if not dry_run:
                remove_tree(dest)
                logger.info("Uninstalled skill '%s' from %s", name, dest)
        except (SkillStoreError, OSError) as e:
            return self._failed("uninstall", name, target, e)

        return OperationResult(
            action="uninstall",
            identifier=name,
            agent=target.agent,
            state=OperationState.DRY_RUN if dry_run else OperationState.UNINSTALLED,
            placements=[placement],
        )

    def update(
        self, name: str, target: AgentDestination, dry_run: bool = False,
    ) -> OperationResult:
        """Replace an installed skill with the catalog copy.

        Not a merge: the installed directory is removed and copied again.

        Returns:
            OperationResult in state UPDATED, DRY_RUN, or FAILED.
        """
        try:
            validate_skill_name(name)
            source = self._skills_dir / name
            if not is_skill_dir(source):
                raise SkillNotFoundError(name, where="repository")
            dest = target.skill_path(name)
            self._require_installed(name, target)

            if dry_run:
                size = self._measure(source)
            else:
                remove_tree(dest)
                size = copy_tree(source, dest, self._size_budget).total_bytes
                logger.info("Updated skill '%s' at %s", name, dest)
        except (SkillStoreError, OSError) as e:
            return self._failed("update", name, target, e)

        return OperationResult(
            action="update",
            identifier=name,
            agent=target.agent,
            state=OperationState.DRY_RUN if dry_run else OperationState.UPDATED,
            placements=[SkillPlacement(
                name=name, source=source, destination=dest,
                size_bytes=size, replaced=True,
            )],
            origin=SourceKind.CATALOG.value,
        )

    def update_all(
        self, target: AgentDestination, dry_run: bool = False,
    ) -> BatchSummary:
        """Update every skill installed for ``target``, one at a time."""
        summary = BatchSummary(agent=target.agent)
        for skill in self.list_installed(target):
            summary.results.append(self.update(skill.name, target, dry_run))
        logger.info(
            "Update all for %s: %d updated, %d failed",
            target.name, summary.succeeded, summary.failed,
        )
        return summary

    def install_for_agents(
        self,
        identifier: str,
        targets: Sequence[AgentDestination],
        dry_run: bool = False,
    ) -> List[OperationResult]:
        """Install for each agent in turn; one agent's failure is not undone."""
        return [self.install(identifier, t, dry_run) for t in targets]

    def uninstall_for_agents(
        self,
        name: str,
        targets: Sequence[AgentDestination],
        dry_run: bool = False,
    ) -> List[OperationResult]:
        return [self.uninstall(name, t, dry_run) for t in targets]

    def update_for_agents(
        self,
        name: str,
        targets: Sequence[AgentDestination],
        dry_run: bool = False,
    ) -> List[OperationResult]:
        return [self.update(name, t, dry_run) for t in targets]

    def list_installed(self, target: AgentDestination) -> List[InstalledSkill]:
        """Skills installed for an agent, sorted by name."""
        if not target.root.is_dir():
            return []

        try:
            entries = sorted(target.root.iterdir(), key=lambda p: p.name)
        except OSError as e:
            logger.warning("Failed to read %s: %s", target.root, e)
            return []

        return [
            InstalledSkill(
                name=entry.name,
                agent=target.agent,
                path=entry,
                update_available=self.is_update_available(entry.name, target),
            )
            for entry in entries
            if is_skill_dir(entry)
        ]

    def is_installed(self, name: str, target: AgentDestination) -> bool:
        return is_skill_dir(target.skill_path(name))

    def is_update_available(self, name: str, target: AgentDestination) -> bool:
        """True if the catalog's ``lastUpdated`` is newer than the installed SKILL.md."""
        record = self._catalog.get(name)
        repo_time = record.last_updated_at() if record else None
        if repo_time is None:
            return False

        marker = target.skill_path(name) / MARKER_FILE
        try:
            mtime = marker.stat().st_mtime
        except OSError:
            return False
        return repo_time > datetime.fromtimestamp(mtime, tz=timezone.utc)

    def available_skills(self) -> List[str]:
        """Skill folders present in the skills directory."""
        if not self._skills_dir.is_dir():
            return []
        try:
            return sorted(p.name for p in self._skills_dir.iterdir() if is_skill_dir(p))
        except OSError as e:
            logger.warning("Failed to read skills directory %s: %s", self._skills_dir, e)
            return []

    def suggest(self, name: str, max_distance: int = INSTALL_SUGGESTION_DISTANCE) -> List[str]:
        """'Did you mean' candidates from the skills directory and the catalog."""
        names = self.available_skills() + self._catalog.names()
        return suggest_names(name, names, max_distance)

    def catalog_source(self, name: str) -> Path:
        """Source directory of a catalog skill.

        Raises:
            SkillNotFoundError: With suggestions, if there is no such skill.
        """
        source = self._skills_dir / name
        if not is_skill_dir(source):
            raise SkillNotFoundError(name, suggestions=self.suggest(name))
        return source

    # ── Source resolution ───────────────────────────────────────────

    def _local_candidates(self, value: str) -> List[Candidate]:
        """A skill directory, or a directory whose subdirectories are skills."""
        path = expand_local_path(value, self._home, self._cwd)
        if not path.is_dir():
            raise SkillNotFoundError(
                value, message=f"Path not found or not a directory: {path}",
            )

        if is_skill_dir(path):
            return [(validate_skill_name(path.name), path)]

        found = self._skill_subdirs(path)
        if not found:
            raise SkillNotFoundError(
                value, message=f"No {MARKER_FILE} found in {path} or its subdirectories",
            )
        return found

    def _remote_candidates(self, ref: RemoteRef, repo_dir: Path) -> List[Candidate]:
        """Pick skills out of a fresh checkout.

        A named skill is looked up under ``skills/`` first, then at the root.
        Without a name, a root that is itself a skill wins over any
        ``skills/`` folder; otherwise every marked subdirectory is taken.
        Symlinks and anything resolving outside the checkout are never used.
        """
        repo_real = repo_dir.resolve()
        skills_folder = repo_dir / "skills"
        if skills_folder.exists() and not _within(skills_folder, repo_real):
            logger.warning("Ignoring %s: resolves outside the checkout", skills_folder)
            skills_folder = None

        if ref.skill:
            bases = (skills_folder, repo_dir) if skills_folder else (repo_dir,)
            for base in bases:
                candidate = base / ref.skill
                if not is_skill_dir(candidate):
                    continue
                if not _within(candidate, repo_real):
                    logger.warning("Ignoring %s: resolves outside the checkout", candidate)
                    continue
                return [(ref.skill, candidate)]
            raise SkillNotFoundError(ref.skill, where=ref.slug)

        if is_skill_dir(repo_dir):
            return [(validate_skill_name(normalize_skill_name(ref.repo)), repo_dir)]

        base = skills_folder if skills_folder and skills_folder.is_dir() else repo_dir
        found = [
            (name, path) for name, path in self._skill_subdirs(base)
            if _within(path, repo_real)
        ]
        if not found:
            raise SkillNotFoundError(
                ref.slug, message=f"No skills found in repository {ref.slug}",
            )
        return found

    @staticmethod
    def _skill_subdirs(base: Path) -> List[Candidate]:
        found: List[Candidate] = []
        for entry in sorted(base.iterdir(), key=lambda p: p.name):
            if entry.is_symlink() or not is_skill_dir(entry):
                continue
            if not is_valid_skill_name(entry.name):
                logger.warning("Skipping %s: invalid skill name", entry)
                continue
            found.append((entry.name, entry))
        return found

    # ── Placement ───────────────────────────────────────────────────

    def _place(
        self,
        candidates: List[Candidate],
        target: AgentDestination,
        dry_run: bool,
    ) -> List[SkillPlacement]:
        placements = []
        for name, source in candidates:
            dest = target.skill_path(name)
            replaced = dest.exists()

            if dry_run:
                size = self._measure(source)
            else:
                target.root.mkdir(parents=True, exist_ok=True)
                size = copy_tree(source, dest, self._size_budget).total_bytes

            placements.append(SkillPlacement(
                name=name,
                source=source,
                destination=dest,
                size_bytes=size,
                replaced=replaced,
            ))
        return placements

    def _measure(self, source: Path) -> int:
        """Size a dry-run copy would take, held to the same budget as a real one."""
        total = measure_tree(source).total_bytes
        if total > self._size_budget:
            raise SkillTooLargeError(self._size_budget, total)
        return total

    def _require_installed(self, name: str, target: AgentDestination) -> None:
        if not self.is_installed(name, target):
            raise SkillNotInstalledError(
                name, target.name, [s.name for s in self.list_installed(target)],
            )

    @staticmethod
    def _failed(
        action: str,
        identifier: str,
        target: AgentDestination,
        error: Exception,
        origin: str = "",
    ) -> OperationResult:
        if not isinstance(error, SkillStoreError):
            error = InstallIOError(str(error))
        logger.warning("Failed to %s '%s' for %s: %s", action, identifier, target.name, error)
        return OperationResult(
            action=action,
            identifier=identifier,
            agent=target.agent,
            state=OperationState.FAILED,
            error=error,
            origin=origin,
        )

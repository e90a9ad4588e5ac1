"""Bounded, symlink- and traversal-safe directory copying."""

from __future__ import annotations

import logging
import os
import shutil
import stat
from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, List

from agent_skills.errors import InstallIOError, SkillTooLargeError

logger = logging.getLogger(__name__)

MAX_SKILL_SIZE = 50 * 1024 * 1024  # 50 MiB

# Skipped by exact name at every level of the tree
IGNORED_NAMES: FrozenSet[str] = frozenset({
    ".git",
    ".hg",
    ".svn",
    "node_modules",
    "__pycache__",
    ".DS_Store",
    "Thumbs.db",
    "desktop.ini",
})


@dataclass
class CopyStats:
    """Accumulator threaded through one recursive copy.

    Attributes:
        total_bytes: Bytes counted against the size budget so far.
        files: Number of regular files copied (or measured).
        skipped: Paths skipped as symlinks, escapes, or special files.
    """

    total_bytes: int = 0
    files: int = 0
    skipped: List[Path] = field(default_factory=list)


def _is_inside(path: Path, root: Path) -> bool:
    try:
        path.relative_to(root)
    except ValueError:
        return False
    return True


def _walk(
    src: Path,
    dest: Path | None,
    root_real: Path,
    stats: CopyStats,
    size_budget: int | None,
) -> None:
    """Walk ``src``; copy into ``dest`` unless it is None (measure only)."""
    if dest is not None:
        dest.mkdir(parents=True, exist_ok=True)

    for entry in sorted(src.iterdir(), key=lambda p: p.name):
        if entry.name in IGNORED_NAMES:
            continue

        if entry.is_symlink():
            logger.warning("Skipping symlink: %s", entry)
            stats.skipped.append(entry)
            continue

        real = entry.resolve()
        if not _is_inside(real, root_real):
            logger.warning("Skipping %s: resolves outside %s", entry, root_real)
            stats.skipped.append(entry)
            continue

        mode = entry.lstat().st_mode
        if stat.S_ISDIR(mode):
            _walk(
                entry,
                dest / entry.name if dest is not None else None,
                root_real,
                stats,
                size_budget,
            )
        elif stat.S_ISREG(mode):
            stats.total_bytes += entry.lstat().st_size
            if size_budget is not None and stats.total_bytes > size_budget:
                raise SkillTooLargeError(size_budget, stats.total_bytes)
            stats.files += 1
            if dest is not None:
                target = dest / entry.name
                shutil.copyfile(entry, target)
                shutil.copymode(entry, target)
        else:
            logger.debug("Skipping special file: %s", entry)
            stats.skipped.append(entry)


def copy_tree(
    source_root: Path,
    dest_root: Path,
    size_budget: int = MAX_SKILL_SIZE,
) -> CopyStats:
    """Copy a skill directory into its destination.

    An existing destination is removed first. Symlinks, noise entries,
    special files, and anything whose real path leaves ``source_root`` are
    skipped. If anything fails, whatever was written to ``dest_root`` is
    removed before the error propagates.

    Args:
        source_root: Directory to copy.
        dest_root: Destination directory (replaced, not merged).
        size_budget: Maximum cumulative size of copied files in bytes.

    Returns:
        CopyStats for the finished copy.

    Raises:
        SkillTooLargeError: If the files exceed ``size_budget``.
        InstallIOError: On any filesystem failure.
    """
    source_root = Path(source_root)
    dest_root = Path(dest_root)
    stats = CopyStats()
    touched = False

    try:
        root_real = source_root.resolve(strict=True)
        if not root_real.is_dir():
            raise InstallIOError(f"Source is not a directory: {source_root}")
        if _is_inside(dest_root.resolve(), root_real):
            raise InstallIOError(
                f"Destination {dest_root} is inside the source {source_root}"
            )

        touched = True
        if dest_root.exists() or dest_root.is_symlink():
            _remove(dest_root)

        _walk(source_root, dest_root, root_real, stats, size_budget)
    except Exception as exc:
        if touched and dest_root.exists():
            shutil.rmtree(dest_root, ignore_errors=True)
        if isinstance(exc, OSError):
            raise InstallIOError(f"Failed to copy {source_root}: {exc}") from exc
        raise

    logger.info(
        "Copied %s -> %s (%d files, %d bytes)",
        source_root, dest_root, stats.files, stats.total_bytes,
    )
    return stats


def measure_tree(source_root: Path) -> CopyStats:
    """Measure what ``copy_tree`` would copy, without a size budget.

    Args:
        source_root: Directory to measure.

    Returns:
        CopyStats with the byte total and file count.
    """
    source_root = Path(source_root)
    stats = CopyStats()
    _walk(source_root, None, source_root.resolve(), stats, None)
    return stats


def remove_tree(path: Path) -> None:
    """Remove an installed skill directory.

    Raises:
        InstallIOError: If the directory cannot be removed.
    """
    try:
        _remove(Path(path))
    except OSError as exc:
        raise InstallIOError(f"Failed to remove {path}: {exc}") from exc


def _remove(path: Path) -> None:
    if path.is_symlink() or not path.is_dir():
        os.unlink(path)
    else:
        shutil.rmtree(path)

import json
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from agent_skills.agents import Agent, destination_for
from agent_skills.catalog import load_catalog
from agent_skills.errors import RemoteFetchError
from agent_skills.installer import SkillInstaller

MANIFEST = {
    "skills": [
        {
            "name": "pdf",
            "description": "Extract text and tables from PDFs",
            "category": "document",
            "tags": ["pdf", "Documents", "forms"],
            "featured": True,
            "verified": True,
            "author": "anthropics",
            "license": "Proprietary",
            "source": "anthropics/skills",
            "lastUpdated": "2020-01-01T00:00:00Z",
        },
        {
            "name": "frontend-design",
            "description": "Create distinctive frontend interfaces",
            "category": "development",
            "tags": ["frontend", "ui", "design", "react"],
            "featured": True,
            "author": "anthropics",
            "license": "Apache-2.0",
            "source": "anthropics/skills",
        },
        {
            "name": "webapp-testing",
            "description": "Test web applications with Playwright",
            "category": "development",
            "tags": ["testing", "playwright"],
        },
        {
            "name": "meeting-notes",
            "description": "Structured notes from meeting transcripts",
            "category": "productivity",
            "tags": ["notes"],
        },
    ],
}


def make_skill(path: Path, files: Optional[Dict[str, str]] = None) -> Path:
    """Create a skill directory with a SKILL.md and optional extra files."""
    path.mkdir(parents=True, exist_ok=True)
    (path / "SKILL.md").write_text(f"# {path.name}\n", encoding="utf-8")
    for rel, content in (files or {}).items():
        target = path / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    return path


def tree_contents(root: Path) -> Dict[str, bytes]:
    """Relative path -> bytes for every regular file under ``root``."""
    return {
        p.relative_to(root).as_posix(): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file() and not p.is_symlink()
    }


class FakeFetcher:
    """Stands in for GitFetcher: serves prepared directories as checkouts."""

    def __init__(self):
        self.repos: Dict[str, Path] = {}
        self.calls: List[str] = []
        self.fail = False

    def add(self, slug: str, path: Path) -> None:
        self.repos[slug] = path

    @contextmanager
    def checkout(self, ref):
        self.calls.append(ref.slug)
        if self.fail or ref.slug not in self.repos:
            raise RemoteFetchError(ref.url, "repository not found")
        yield self.repos[ref.slug]


# ── Fixtures ────────────────────────────────────────────────────────


@pytest.fixture
def home(tmp_path: Path) -> Path:
    d = tmp_path / "home"
    d.mkdir()
    return d


@pytest.fixture
def project(tmp_path: Path) -> Path:
    d = tmp_path / "project"
    d.mkdir()
    return d


@pytest.fixture
def skills_dir(tmp_path: Path) -> Path:
    """Catalog skill folders for pdf, frontend-design, and webapp-testing."""
    d = tmp_path / "catalog-skills"
    make_skill(d / "pdf", {"reference.md": "pdf reference\n", "scripts/fill.sh": "echo fill\n"})
    make_skill(d / "frontend-design", {"guide.md": "design guide\n"})
    make_skill(d / "webapp-testing")
    return d


@pytest.fixture
def manifest(tmp_path: Path) -> Path:
    path = tmp_path / "skills.json"
    path.write_text(json.dumps(MANIFEST), encoding="utf-8")
    return path


@pytest.fixture
def catalog(manifest: Path):
    return load_catalog(manifest)


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def installer(skills_dir, catalog, fetcher, home, project) -> SkillInstaller:
    return SkillInstaller(
        skills_dir=skills_dir,
        catalog=catalog,
        fetcher=fetcher,
        home=home,
        cwd=project,
    )


@pytest.fixture
def claude(home, project):
    return destination_for(Agent.CLAUDE, home, project)


@pytest.fixture
def cursor(home, project):
    return destination_for(Agent.CURSOR, home, project)

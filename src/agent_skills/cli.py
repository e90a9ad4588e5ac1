"""Command line interface.

Provides subcommands: browse, list, install, uninstall, update, search,
info, config. Invoked via ``ai-agent-skills <command> [args]``.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from agent_skills import __version__
from agent_skills.agents import AGENT_SPECS, AgentDestination, agent_names, resolve_agents
from agent_skills.browser import BrowseAction, run_browser
from agent_skills.catalog import SEARCH_SUGGESTION_DISTANCE, Catalog, load_catalog
from agent_skills.config import ConfigError, ConfigStore
from agent_skills.console import Console
from agent_skills.errors import ManifestCorruptError, SkillNotFoundError, SkillNotInstalledError
from agent_skills.installer import SkillInstaller
from agent_skills.models import OperationResult, OperationState, SkillRecord
from agent_skills.validation import is_valid_skill_name

logger = logging.getLogger(__name__)

PROG = "ai-agent-skills"
DATA_DIR = Path(__file__).parent / "data"
MANIFEST_ENV_VAR = "AGENT_SKILLS_MANIFEST"
SKILLS_DIR_ENV_VAR = "AGENT_SKILLS_DIR"

LIST_DESCRIPTION_WIDTH = 65
SEARCH_DESCRIPTION_WIDTH = 75
SHOWN_TAGS = 3

# canonical command -> aliases
COMMANDS = {
    "browse": ["b"],
    "list": ["ls"],
    "install": ["i", "add"],
    "uninstall": ["remove", "rm"],
    "update": ["upgrade"],
    "search": ["s", "find"],
    "info": ["show"],
    "config": [],
    "help": [],
}

# options that take a value, before the command
_GLOBAL_VALUE_OPTIONS = ("--config", "--manifest", "--skills-dir", "--agent", "-a", "--agents")


def _resolve_paths(args: argparse.Namespace) -> Tuple[Path, Path]:
    """Resolve manifest and skills directory.

    CLI options win over environment variables, which win over the data
    bundled with the package.

    Returns:
        (manifest_path, skills_dir)
    """
    manifest = args.manifest or os.environ.get(MANIFEST_ENV_VAR)
    skills_dir = args.skills_dir or os.environ.get(SKILLS_DIR_ENV_VAR)
    return (
        Path(manifest).expanduser() if manifest else DATA_DIR / "skills.json",
        Path(skills_dir).expanduser() if skills_dir else DATA_DIR / "skills",
    )


def _make_installer(args: argparse.Namespace) -> Tuple[SkillInstaller, Catalog]:
    """Load the catalog and create an installer on top of it.

    Raises:
        ManifestCorruptError: If the manifest cannot be used.
    """
    manifest, skills_dir = _resolve_paths(args)
    catalog = load_catalog(manifest)
    installer = SkillInstaller(skills_dir=skills_dir, catalog=catalog)
    return installer, catalog


def _config_store(args: argparse.Namespace) -> ConfigStore:
    return ConfigStore(args.config)


def _targets(args: argparse.Namespace) -> List[AgentDestination]:
    return resolve_agents(
        agent=getattr(args, "agent", None),
        agents=getattr(args, "agents", None),
        all_agents=getattr(args, "all_agents", False),
        config=_config_store(args).load(),
    )


def _usage_error(out: Console, message: str, *usage: str) -> int:
    out.error(message)
    for line in usage:
        out.log(line)
    return 1


def _truncate(text: str, width: int) -> str:
    return text[:width] + "..." if len(text) > width else text


# ── Formatting helpers ──────────────────────────────────────────────


def _tag_suffix(out: Console, record: SkillRecord, color: str) -> str:
    if not record.tags:
        return ""
    return f" {color}[{', '.join(record.tags[:SHOWN_TAGS])}]{out.c.reset}"


def _did_you_mean(out: Console, names: Sequence[str]) -> None:
    if names:
        out.dim(f"\nDid you mean: {', '.join(names)}?")


def _size_kb(size_bytes: int) -> str:
    return f"{size_bytes / 1024:.1f} KB"


def _report_failure(out: Console, result: OperationResult) -> None:
    err = result.error
    out.error(f"Failed to {result.action} {result.identifier} for {result.agent.value}: {err}")

    if isinstance(err, SkillNotFoundError):
        _did_you_mean(out, err.suggestions)
    elif isinstance(err, SkillNotInstalledError):
        if result.action == "update":
            out.log("\nUse 'install' to add it first.")
        else:
            out.log(f"\nInstalled skills for {err.agent}:")
            for name in err.installed or ["(none)"]:
                out.log(f"  {name}")


def _report_result(
    out: Console,
    result: OperationResult,
    target: AgentDestination,
) -> None:
    """Print one operation result."""
    if result.state is OperationState.FAILED:
        _report_failure(out, result)
        return

    if result.state is OperationState.DRY_RUN:
        out.heading("Dry Run", "(no changes made)")
        for placement in result.placements:
            if result.action == "install":
                out.info(f"Would install: {placement.name}")
            else:
                out.info(f"Would {result.action}: {placement.name}")
            out.info(f"Agent: {target.name}")
            if placement.source is not None:
                out.info(f"Source: {placement.source}")
            out.info(f"Destination: {placement.destination}")
            if result.action != "uninstall":
                out.info(f"Size: {_size_kb(placement.size_bytes)}")
            if result.action == "install" and placement.replaced:
                out.warn("Note: Would overwrite existing installation")
        return

    verb = {
        OperationState.INSTALLED: "Installed",
        OperationState.UPDATED: "Updated",
        OperationState.UNINSTALLED: "Uninstalled",
    }[result.state]
    origin = f" from {result.origin}" if "/" in result.origin else ""

    for placement in result.placements:
        out.success(f"\n{verb}: {placement.name}{origin}")
        out.info(f"Agent: {target.name}")
        if result.state is OperationState.UNINSTALLED:
            out.info(f"Removed from: {placement.destination}")
            continue
        out.info(f"Location: {placement.destination}")
        out.info(f"Size: {_size_kb(placement.size_bytes)}")
        if result.state is OperationState.INSTALLED:
            out.log()
            out.dim(target.instructions(placement.name))


def _show_info(out: Console, catalog: Catalog, name: str) -> int:
    record = catalog.get(name)
    if record is None:
        out.error(f'Skill "{name}" not found.')
        _did_you_mean(out, catalog.suggest_similar(name))
        return 1

    c = out.c
    badges = ""
    if record.featured:
        badges += f" {c.yellow}(featured){c.reset}"
    if record.verified:
        badges += f" {c.green}(verified){c.reset}"

    out.log(f"\n{c.bold}{record.name}{c.reset}{badges}\n")
    out.dim(record.description)
    out.log()
    rows = [
        ("Category", record.category),
        ("Tags", ", ".join(record.tags) if record.tags else "none"),
        ("Author", record.author),
        ("License", record.license),
        ("Source", record.source),
    ]
    if record.last_updated:
        rows.append(("Updated", str(record.last_updated)))
    for label, value in rows:
        out.log(f"{c.bold}{label + ':':<12}{c.reset} {value}")

    out.log(f"\n{c.bold}Install:{c.reset}")
    out.log(f"  {PROG} install {record.name}")
    out.log(f"  {PROG} install {record.name} --agent cursor")
    out.log(f"  {PROG} install {record.name} --dry-run")
    return 0


def _run_for_targets(
    out: Console,
    results: Iterable[OperationResult],
    targets: Sequence[AgentDestination],
) -> int:
    exit_code = 0
    for result, target in zip(results, targets):
        _report_result(out, result, target)
        if not result.ok:
            exit_code = 1
    return exit_code


# ── Subcommand handlers ────────────────────────────────────────────


def cmd_browse(args: argparse.Namespace) -> int:
    """Browse categories interactively and install or inspect a skill."""
    out = Console()
    installer, catalog = _make_installer(args)
    if not len(catalog):
        out.warn("No skills available")
        return 0

    selection = run_browser(catalog)
    if selection.action is BrowseAction.INSTALL:
        targets = _targets(args)
        results = installer.install_for_agents(selection.name, targets, args.dry_run)
        return _run_for_targets(out, results, targets)
    if selection.action is BrowseAction.INFO:
        return _show_info(out, catalog, selection.name)

    out.log("Goodbye!")
    return 0


def _list_installed(out: Console, installer: SkillInstaller, targets: Sequence[AgentDestination]) -> int:
    c = out.c
    for target in targets:
        installed = installer.list_installed(target)
        if not installed:
            out.warn(f"No skills installed for {target.name}")
            out.info(f"Location: {target.root}")
            continue

        out.heading("Installed Skills", f"({len(installed)} for {target.name})")
        out.dim(f"Location: {target.root}\n")
        updates = 0
        for skill in installed:
            if skill.update_available:
                updates += 1
                out.log(f"  {c.green}{skill.name}{c.reset} {c.yellow}(update available){c.reset}")
            else:
                out.log(f"  {c.green}{skill.name}{c.reset}")

        if updates:
            out.warn(f"\n{updates} update(s) available.")
            out.dim(f"Run: {PROG} update <name> --agent {target.name}")
        out.dim(f"\nUninstall: {PROG} uninstall <name> --agent {target.name}")
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    """List catalog skills grouped by category, or installed skills."""
    out = Console()
    installer, catalog = _make_installer(args)

    if args.installed:
        return _list_installed(out, installer, _targets(args))

    records = catalog.filter(category=args.category, tags=args.tag)
    if not records:
        if args.category or args.tag:
            out.warn("No skills found matching filters")
            out.dim(f"\nTry: {PROG} list")
        else:
            out.warn("No skills found in the catalog")
        return 0

    c = out.c
    out.heading("Available Skills", f"({len(records)} total)")
    for category in sorted({r.category for r in records}):
        out.log(f"{c.blue}{c.bold}{category.upper()}{c.reset}")
        for record in records:
            if record.category != category:
                continue
            featured = f" {c.yellow}*{c.reset}" if record.featured else ""
            verified = f" {c.green}✓{c.reset}" if record.verified else ""
            tags = _tag_suffix(out, record, c.dim)
            out.log(f"  {c.green}{record.name}{c.reset}{featured}{verified}{tags}")
            out.dim(f"    {_truncate(record.description, LIST_DESCRIPTION_WIDTH)}")
        out.log()

    out.dim("* = featured  ✓ = verified")
    out.log(f"\nInstall: {c.cyan}{PROG} install <skill-name>{c.reset}")
    out.log(f"Filter:  {c.cyan}{PROG} list --category development{c.reset}")
    return 0


def cmd_install(args: argparse.Namespace) -> int:
    """Install a skill from the catalog, a local path, or GitHub."""
    out = Console()
    if not args.source:
        return _usage_error(
            out,
            "Please specify a skill name, GitHub repo, or local path.",
            f"Usage: {PROG} install <skill-name|owner/repo|./path> [--agent <agent>] [--dry-run]",
        )

    installer, _catalog = _make_installer(args)
    targets = _targets(args)
    results = installer.install_for_agents(args.source, targets, args.dry_run)
    return _run_for_targets(out, results, targets)


def cmd_uninstall(args: argparse.Namespace) -> int:
    """Remove an installed skill."""
    out = Console()
    if not args.name:
        return _usage_error(
            out,
            "Please specify a skill name.",
            f"Usage: {PROG} uninstall <skill-name> [--agent <agent>]",
        )

    installer, _catalog = _make_installer(args)
    targets = _targets(args)
    results = installer.uninstall_for_agents(args.name, targets, args.dry_run)
    return _run_for_targets(out, results, targets)


def cmd_update(args: argparse.Namespace) -> int:
    """Update one installed skill, or all of them with --all."""
    out = Console()
    if not args.all and not args.name:
        return _usage_error(
            out,
            "Please specify a skill name or use --all.",
            f"Usage: {PROG} update <skill-name> [--agent <agent>]",
            f"       {PROG} update --all [--agent <agent>]",
        )

    installer, _catalog = _make_installer(args)
    targets = _targets(args)

    if not args.all:
        results = installer.update_for_agents(args.name, targets, args.dry_run)
        return _run_for_targets(out, results, targets)

    c = out.c
    exit_code = 0
    for target in targets:
        if not installer.list_installed(target):
            out.warn(f"No skills installed for {target.name}")
            continue

        summary = installer.update_all(target, args.dry_run)
        out.heading(f"Updating {len(summary.results)} skill(s) for {target.name}...")
        for result in summary.results:
            if result.ok:
                note = " (dry run)" if result.dry_run else ""
                out.log(f"  {c.green}✓{c.reset} {result.identifier}{note}")
            else:
                out.log(f"  {c.red}✗{c.reset} {result.identifier}: {result.error}")
        out.log(
            f"\n{c.bold}Summary:{c.reset} {summary.succeeded} updated, {summary.failed} failed"
        )
        if summary.failed:
            exit_code = 1
    return exit_code


def cmd_search(args: argparse.Namespace) -> int:
    """Search the catalog by name, description, category, and tags."""
    out = Console()
    query = " ".join(args.query).strip()
    if not query:
        return _usage_error(out, "Please specify a search query.", f"Usage: {PROG} search <query>")

    _installer, catalog = _make_installer(args)
    matches = catalog.search(query, category=args.category)
    if not matches:
        out.warn(f'No skills found matching "{query}"')
        _did_you_mean(out, catalog.suggest_similar(query, SEARCH_SUGGESTION_DISTANCE))
        return 0

    c = out.c
    out.heading("Search Results", f"({len(matches)} matches)")
    for record in matches:
        tags = _tag_suffix(out, record, c.magenta)
        out.log(f"{c.green}{record.name}{c.reset} {c.dim}[{record.category}]{c.reset}{tags}")
        out.log(f"  {_truncate(record.description, SEARCH_DESCRIPTION_WIDTH)}")
        out.log()
    return 0


def cmd_info(args: argparse.Namespace) -> int:
    """Show the full catalog record of a skill."""
    out = Console()
    if not args.name:
        return _usage_error(out, "Please specify a skill name.", f"Usage: {PROG} info <skill-name>")

    _installer, catalog = _make_installer(args)
    return _show_info(out, catalog, args.name)


def _show_config(out: Console, store: ConfigStore) -> None:
    config = store.load()
    c = out.c
    out.heading("Configuration")
    out.dim(f"File: {store.path}\n")
    out.log(f"{c.bold}defaultAgent:{c.reset} {config.default_agent}")
    out.log(f"{c.bold}agents:{c.reset}       {', '.join(config.agents or []) or '(not set)'}")
    out.log(f"{c.bold}autoUpdate:{c.reset}   {str(config.auto_update).lower()}")
    out.dim(f"\nEdit with: {PROG} config --default-agent <agent>")


def cmd_config(args: argparse.Namespace) -> int:
    """Show, get, or set configuration values."""
    out = Console()
    store = _config_store(args)

    updates = [
        (key, value)
        for key, value in (
            ("default-agent", args.default_agent),
            ("agents", args.agents),
            ("auto-update", args.auto_update),
        )
        if value is not None
    ]
    words = list(args.words)

    if words and words[0] == "get":
        if len(words) != 2:
            return _usage_error(out, "Please specify a config key.", f"Usage: {PROG} config get <key>")
        try:
            value = store.get(words[1])
        except ConfigError as e:
            out.error(str(e))
            return 1
        if isinstance(value, list):
            value = ",".join(value)
        elif isinstance(value, bool):
            value = str(value).lower()
        out.log("" if value is None else str(value))
        return 0

    if words and words[0] == "set":
        if len(words) != 3:
            return _usage_error(
                out, "Please specify a key and a value.", f"Usage: {PROG} config set <key> <value>",
            )
        updates.append((words[1], words[2]))
    elif words:
        return _usage_error(
            out,
            f"Unknown config action: {words[0]}",
            f"Usage: {PROG} config [get <key> | set <key> <value>]",
        )

    if not updates:
        _show_config(out, store)
        return 0

    for key, value in updates:
        try:
            store.set(key, value)
        except ConfigError as e:
            out.error(str(e))
            return 1
        except OSError as e:
            out.error(f"Failed to save config: {e}")
            return 1
        out.success(f"Config updated: {key} = {value}")
    return 0


# ── Argument parser ─────────────────────────────────────────────────


def _agents_epilog() -> str:
    width = max(len(name) for name in agent_names())
    lines = ["agents:"]
    for agent, spec in AGENT_SPECS.items():
        where = "" if spec.scope.value == "home" else " (in current project)"
        lines.append(f"  {agent.value:<{width}}  {spec.display_path}{where}")
    lines += [
        "",
        "examples:",
        f"  {PROG} browse",
        f"  {PROG} install frontend-design",
        f"  {PROG} install anthropics/skills/pdf",
        f"  {PROG} install ./my-skill --agent cursor",
        f"  {PROG} install pdf --agents claude,cursor --dry-run",
        f"  {PROG} list --category development",
        f"  {PROG} update --all",
        f"  {PROG} config --default-agent cursor",
    ]
    return "\n".join(lines)


def _add_selection_options(parser: argparse.ArgumentParser, top_level: bool) -> None:
    """Agent selection and dry-run options.

    They are accepted both before and after the subcommand. Only the top
    level sets defaults, so a value given before the subcommand is not
    reset by the subcommand's parser.
    """
    def default(value):
        return value if top_level else argparse.SUPPRESS

    group = parser.add_argument_group("agent selection")
    group.add_argument(
        "--agent", "-a", default=default(None), metavar="AGENT",
        help="Target agent (default: configured default agent, else claude)",
    )
    group.add_argument(
        "--agents", default=default(None), metavar="LIST",
        help="Comma-separated list of target agents",
    )
    group.add_argument(
        "--all-agents", action="store_true", default=default(False),
        help="Target every known agent",
    )
    for name in agent_names():
        group.add_argument(
            f"--{name}", dest="agent", action="store_const", const=name,
            default=default(None), help=argparse.SUPPRESS,
        )
    group.add_argument(
        "--dry-run", "-n", action="store_true", default=default(False),
        help="Preview changes without applying them",
    )


def _selection_parent() -> argparse.ArgumentParser:
    """Selection options shared by most subcommands."""
    parent = argparse.ArgumentParser(add_help=False)
    _add_selection_options(parent, top_level=False)
    return parent


def _global_parser(add_help: bool) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="Homebrew for AI agent skills. One command, every agent.",
        epilog=_agents_epilog(),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=add_help,
    )
    parser.add_argument(
        "--config", type=Path, default=None,
        help="Config file path (default: ~/.agent-skills.json)",
    )
    parser.add_argument(
        "--manifest", type=Path, default=None,
        help="Skill manifest (default: bundled skills.json)",
    )
    parser.add_argument(
        "--skills-dir", type=Path, default=None,
        help="Directory holding catalog skill folders",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Enable debug logging",
    )
    _add_selection_options(parser, top_level=True)
    return parser


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser.

    Returns:
        Configured ArgumentParser.
    """
    parser = _global_parser(add_help=True)
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    selection = _selection_parent()

    sub = parser.add_subparsers(dest="command")

    # browse
    p_browse = sub.add_parser(
        "browse", aliases=COMMANDS["browse"], parents=[selection],
        help="Interactive skill browser",
    )
    p_browse.set_defaults(handler=cmd_browse)

    # list
    p_list = sub.add_parser(
        "list", aliases=COMMANDS["list"], parents=[selection],
        help="List available skills",
    )
    p_list.add_argument(
        "--installed", "-i", action="store_true",
        help="List skills installed for the target agents",
    )
    p_list.add_argument("--category", "-c", default=None, help="Filter by category")
    p_list.add_argument("--tag", "-t", default=None, help="Filter by comma-separated tags")
    p_list.set_defaults(handler=cmd_list)

    # install
    p_install = sub.add_parser(
        "install", aliases=COMMANDS["install"], parents=[selection],
        help="Install from the catalog, GitHub (owner/repo[/skill]), or a local path",
    )
    p_install.add_argument("source", nargs="?", default=None, help="Skill name, owner/repo, or ./path")
    p_install.set_defaults(handler=cmd_install)

    # uninstall
    p_uninstall = sub.add_parser(
        "uninstall", aliases=COMMANDS["uninstall"], parents=[selection],
        help="Remove an installed skill",
    )
    p_uninstall.add_argument("name", nargs="?", default=None, help="Skill name")
    p_uninstall.set_defaults(handler=cmd_uninstall)

    # update
    p_update = sub.add_parser(
        "update", aliases=COMMANDS["update"], parents=[selection],
        help="Update an installed skill from the catalog",
    )
    p_update.add_argument("name", nargs="?", default=None, help="Skill name")
    p_update.add_argument("--all", action="store_true", help="Update all installed skills")
    p_update.set_defaults(handler=cmd_update)

    # search
    p_search = sub.add_parser(
        "search", aliases=COMMANDS["search"],
        help="Search skills by name, description, or tags",
    )
    p_search.add_argument("query", nargs="*", help="Search terms")
    p_search.add_argument("--category", "-c", default=None, help="Restrict to a category")
    p_search.set_defaults(handler=cmd_search)

    # info
    p_info = sub.add_parser("info", aliases=COMMANDS["info"], help="Show skill details")
    p_info.add_argument("name", nargs="?", default=None, help="Skill name")
    p_info.set_defaults(handler=cmd_info)

    # config
    p_config = sub.add_parser(
        "config", help="Show or edit configuration",
        description="Show configuration, or: config get KEY | config set KEY VALUE",
    )
    p_config.add_argument("words", nargs="*", metavar="ARG", help="get KEY | set KEY VALUE")
    p_config.add_argument("--default-agent", dest="default_agent", default=None, metavar="AGENT")
    p_config.add_argument("--agents", default=None, metavar="LIST")
    p_config.add_argument("--auto-update", dest="auto_update", default=None, metavar="BOOL")
    p_config.set_defaults(handler=cmd_config)

    # help
    sub.add_parser("help", help="Show this help")

    return parser


def _known_commands() -> set:
    known = set(COMMANDS)
    for aliases in COMMANDS.values():
        known.update(aliases)
    return known


def _command_index(argv: Sequence[str]) -> Optional[int]:
    """Index of the first positional token, skipping global options."""
    i = 0
    while i < len(argv):
        token = argv[i]
        if token in _GLOBAL_VALUE_OPTIONS:
            i += 2
            continue
        if token.startswith("-"):
            i += 1
            continue
        return i
    return None


def _rewrite_bare_skill(argv: List[str]) -> List[str]:
    """``ai-agent-skills pdf`` installs ``pdf`` when it is a catalog skill."""
    index = _command_index(argv)
    if index is None:
        return argv
    token = argv[index]
    if token in _known_commands() or not is_valid_skill_name(token):
        return argv

    globals_args, _rest = _global_parser(add_help=False).parse_known_args(argv[:index])
    _manifest, skills_dir = _resolve_paths(globals_args)
    installer = SkillInstaller(skills_dir=skills_dir)
    if token in installer.available_skills():
        return argv[:index] + ["install"] + argv[index:]
    return argv


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point.

    Args:
        argv: Command line arguments. None = sys.argv[1:].

    Returns:
        Exit code.
    """
    argv = list(sys.argv[1:] if argv is None else argv)
    argv = _rewrite_bare_skill(argv)

    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return 0

    try:
        return handler(args)
    except ManifestCorruptError as e:
        Console().error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())

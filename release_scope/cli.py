"""CLI entry point for release-scope."""

from __future__ import annotations

import argparse
import json
from importlib.metadata import version as pkg_version
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from . import shell
from .choices import filter_matching
from .config import Settings, load_settings
from .errors import ConfigError, ReleaseScopeError
from .history import CommitAssembler
from .impact import aggregate, summarize
from .manifest import ManifestReader
from .models import CommitRecord, PackageImpact, WorkspaceMember
from .shell import fatal, step, warn
from .tags import latest_version_tag, parse_tags
from .vcs import GitRepository
from .versions import bump_version
from .workspace import WorkspaceResolver

__version__ = pkg_version("release-scope")


def _root(args: argparse.Namespace) -> Path:
    """Repository root: --path if given, else the enclosing git toplevel."""
    if args.path:
        return Path(args.path).resolve()
    return GitRepository(Path.cwd()).toplevel()


def _settings(args: argparse.Namespace, root: Path) -> Settings:
    """Load settings and apply command-line overrides.

    Overrides go through the same validation as the config file.

    Raises:
        ConfigError: If an override is invalid (e.g. ``--workers 0``).
    """
    settings = load_settings(root)
    overrides: dict[str, Any] = {}
    if getattr(args, "manifest", None) is not None:
        overrides["manifest"] = args.manifest
    if getattr(args, "workers", None) is not None:
        overrides["workers"] = args.workers
    if not overrides:
        return settings
    try:
        return Settings.model_validate({**settings.model_dump(), **overrides})
    except ValidationError as e:
        raise ConfigError(f"Invalid command-line option:\n{e}") from e


def _resolver(root: Path, settings: Settings) -> WorkspaceResolver:
    return WorkspaceResolver(root, reader=ManifestReader(settings.manifest))


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2))


def _next_version(member: WorkspaceMember, impact: PackageImpact) -> str | None:
    try:
        return bump_version(member.version, impact.release_type)
    except ValueError:
        warn(f"{member.name}: cannot bump non-semver version {member.version!r}")
        return None


def _format_commit(commit: CommitRecord) -> str:
    scope = f"({commit.scope})" if commit.scope else ""
    breaking = "!" if commit.is_breaking else ""
    return (
        f"{commit.short_hash} [{commit.release_type}] "
        f"{commit.type}{scope}{breaking}: {commit.description}"
    )


def cmd_packages(args: argparse.Namespace) -> None:
    """List workspace members, or the root package of a single-package repo."""
    root = _root(args)
    resolver = _resolver(root, _settings(args, root))

    step("Discovering workspace packages")
    targets = filter_matching(resolver.release_targets(), args.search)

    if args.json:
        _print_json([m.model_dump(mode="json") for m in targets])
        return

    for member in targets:
        flags = [f for f in ("private", "publishable") if getattr(member, f)]
        suffix = f" [{', '.join(flags)}]" if flags else ""
        print(f"  {member.name} {member.version} ({member.relative_path}){suffix}")
    if not targets:
        print("  <no packages>")


def cmd_tags(args: argparse.Namespace) -> None:
    """List tags newest first, or only the latest version tag."""
    repo = GitRepository(_root(args))

    step("Reading tags")
    tags = parse_tags(repo.list_tags_raw()).items
    if args.latest:
        latest = latest_version_tag(tags)
        tags = [latest] if latest else []

    if args.json:
        _print_json([t.model_dump(mode="json") for t in tags])
        return

    for tag in tags:
        version = f" → {tag.version}" if tag.version else ""
        print(f"  {tag.name} {tag.hash} {tag.date.isoformat()}{version}")
    if not tags:
        print("  <none>")


def cmd_commits(args: argparse.Namespace) -> None:
    """List classified commits in a range."""
    root = _root(args)
    settings = _settings(args, root)
    assembler = CommitAssembler(GitRepository(root), workers=settings.workers)

    step("Reading commits")
    collected = assembler.collect_range(args.from_ref, args.to_ref)

    if args.json:
        _print_json([c.model_dump(mode="json") for c in collected.items])
        return

    for commit in collected.items:
        print(f"  {_format_commit(commit)}")
    if collected.skipped:
        print(f"  ({len(collected.skipped)} malformed records skipped)")
    if not collected.items:
        print("  <no commits in range>")


def cmd_plan(args: argparse.Namespace) -> None:
    """Recommend a release type and next version for each affected package."""
    root = _root(args)
    settings = _settings(args, root)
    resolver = _resolver(root, settings)
    assembler = CommitAssembler(GitRepository(root), workers=settings.workers)

    step("Discovering workspace packages")
    targets = resolver.release_targets()
    if not args.json:
        for member in targets:
            print(f"  {member.name} {member.version} ({member.relative_path})")

    step("Reading commits")
    commits = assembler.assemble_range(args.from_ref, args.to_ref)
    if not args.json:
        print(f"  {len(commits)} commits")

    if resolver.is_monorepo():
        impacts = aggregate(commits, targets)
    else:
        impacts = summarize(commits, targets[0])

    members = {m.relative_path: m for m in targets}
    plan = []
    for impact in impacts:
        member = members[impact.package_path]
        plan.append(
            {
                "package": impact.package_name,
                "path": impact.package_path,
                "release_type": str(impact.release_type),
                "current_version": member.version,
                "next_version": _next_version(member, impact),
                "commits": [c.short_hash for c in impact.commits],
            }
        )

    if args.json:
        _print_json(plan)
        return

    step("Release plan")
    if not plan:
        print("  Nothing changed since last release.")
    for entry in plan:
        print(
            f"  {entry['package']}: {entry['release_type']} "
            f"{entry['current_version']} → {entry['next_version'] or '?'} "
            f"({len(entry['commits'])} commits)"
        )


def cmd_tag(args: argparse.Namespace) -> None:
    """Create a release tag at HEAD."""
    root = _root(args)
    settings = _settings(args, root)
    repo = GitRepository(root)

    # Advisory only: the tree can still change between check and tag
    if not args.allow_dirty and repo.has_uncommitted_changes():
        fatal(
            "Repository has uncommitted changes.\n"
            "Commit or stash them, or pass --allow-dirty."
        )

    message = args.message or settings.tag_message
    if message:
        message = message.replace("{tag}", args.name)
    repo.create_tag(args.name, message)
    branch = repo.current_branch() or "<detached HEAD>"
    print(f"✓ Tagged {args.name} on {branch}")


def _add_range_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--from",
        dest="from_ref",
        default=None,
        help="Start of the range (exclusive). Defaults to the latest version tag.",
    )
    parser.add_argument(
        "--to",
        dest="to_ref",
        default="HEAD",
        help="End of the range. (default: %(default)s)",
    )
    parser.add_argument(
        "--workers", type=int, default=None, help="Concurrent changed-file lookups."
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="release-scope",
        description="Classify commits and recommend releases per workspace package.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "-C",
        "--path",
        default=None,
        help="Repository root. Defaults to the enclosing git toplevel.",
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Do not print step headers."
    )
    parser.add_argument(
        "--manifest",
        choices=["auto", "pyproject", "package-json"],
        default=None,
        help="Which manifest files describe packages.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    packages_parser = subparsers.add_parser("packages", help="List workspace packages.")
    packages_parser.add_argument("--search", default=None, help="Filter by text.")
    packages_parser.add_argument("--json", action="store_true", help="Print JSON.")
    packages_parser.set_defaults(func=cmd_packages)

    tags_parser = subparsers.add_parser("tags", help="List tags, newest first.")
    tags_parser.add_argument(
        "--latest", action="store_true", help="Only the latest version tag."
    )
    tags_parser.add_argument("--json", action="store_true", help="Print JSON.")
    tags_parser.set_defaults(func=cmd_tags)

    commits_parser = subparsers.add_parser("commits", help="List classified commits.")
    _add_range_args(commits_parser)
    commits_parser.add_argument("--json", action="store_true", help="Print JSON.")
    commits_parser.set_defaults(func=cmd_commits)

    plan_parser = subparsers.add_parser(
        "plan", help="Recommend a release for each changed package."
    )
    _add_range_args(plan_parser)
    plan_parser.add_argument("--json", action="store_true", help="Print JSON.")
    plan_parser.set_defaults(func=cmd_plan)

    tag_parser = subparsers.add_parser("tag", help="Create a release tag at HEAD.")
    tag_parser.add_argument("name", help="Tag name, e.g. v1.2.0.")
    tag_parser.add_argument("-m", "--message", default=None, help="Annotate the tag.")
    tag_parser.add_argument(
        "--allow-dirty",
        action="store_true",
        help="Tag even if the working tree has uncommitted changes.",
    )
    tag_parser.set_defaults(func=cmd_tag)

    return parser


def cli(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    shell.QUIET = args.quiet or getattr(args, "json", False)
    try:
        args.func(args)
    except ReleaseScopeError as e:
        fatal(str(e))

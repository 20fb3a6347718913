"""CLI interface for duscan."""

from __future__ import annotations

import json
import logging
import sys

import click

from duscan.core.scanner import ScanError, scan as scan_tree
from duscan.core.stats import ScanStats
from duscan.settings import DEFAULTS, Settings
from duscan.utils import display_path, format_size, tree_lines


def _setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _pick(value, settings: Settings, key: str):
    """Return a command-line value, or the configured one when it was not given."""
    return value if value is not None else settings.option(key)


@click.group()
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug)")
@click.version_option(package_name="duscan")
def main(verbose: int) -> None:
    """duscan: find out where the disk space went."""
    _setup_logging(verbose)


# ── scan ─────────────────────────────────────────────────────────────────

@main.command()
@click.argument("path", default=".", type=click.Path())
@click.option("--max-children", "-n", type=click.IntRange(min=0), default=None,
              help="Children kept per directory; the rest are summarised")
@click.option("--depth", "-d", type=click.IntRange(min=0), default=None, help="Levels of the tree to print")
@click.option("--top", "-t", type=click.IntRange(min=1), default=None, help="Entries printed per directory")
@click.option("--all", "-a", "show_all", is_flag=True, help="Print every kept entry per directory")
@click.option("--workers", "-j", type=click.IntRange(min=1), default=None, help="Parallel scanning threads")
@click.option("--follow-symlinks/--no-follow-symlinks", default=None, help="Descend into symbolic links")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def scan(
    path: str,
    max_children: int | None,
    depth: int | None,
    top: int | None,
    show_all: bool,
    workers: int | None,
    follow_symlinks: bool | None,
    as_json: bool,
) -> None:
    """Scan PATH and show the largest entries."""
    settings = Settings.instance()
    max_children = _pick(max_children, settings, "scan.max_children")
    workers = _pick(workers, settings, "scan.workers")
    follow_symlinks = _pick(follow_symlinks, settings, "scan.follow_symlinks")
    depth = _pick(depth, settings, "display.depth")
    top = None if show_all else _pick(top, settings, "display.top")

    if not as_json:
        click.echo(f"Scanning: {display_path(path)}")

    stats = ScanStats()
    try:
        root = scan_tree(
            path,
            stats,
            max_children,
            workers=workers,
            follow_symlinks=follow_symlinks,
        )
    except ScanError as exc:
        click.echo(f"Failed to scan {exc.path}: {exc.cause.strerror or exc.cause}", err=True)
        sys.exit(1)

    if as_json:
        data = {
            "path": display_path(path),
            "stats": stats.as_dict(),
            "tree": root.to_dict(),
        }
        click.echo(json.dumps(data, indent=2))
        return

    click.echo("Scan complete")
    click.echo(f"  Files:       {stats.files_scanned:,}")
    click.echo(f"  Directories: {stats.dirs_scanned:,}")
    errors = stats.errors
    click.echo(f"  Errors:      {click.style(f'{errors:,}', fg='red') if errors else errors}")
    click.echo(f"  Total size:  {click.style(format_size(root.size), fg='green', bold=True)}")
    click.echo()

    for line in tree_lines(root, root.size, max_depth=depth, top=top):
        click.echo(line)


# ── config ───────────────────────────────────────────────────────────────

@main.command()
@click.argument("key", required=False, type=click.Choice(sorted(DEFAULTS)))
@click.argument("value", required=False)
def config(key: str | None, value: str | None) -> None:
    """Show or change configuration values.

    With no arguments every key is listed.  VALUE is parsed as JSON when
    possible, so ``10``, ``true`` and ``null`` keep their types.
    """
    settings = Settings.instance()

    if key is None:
        click.echo(f"# {settings.path}")
        for name in sorted(DEFAULTS):
            click.echo(f"{name} = {json.dumps(settings.option(name))}")
        return

    if value is None:
        click.echo(json.dumps(settings.option(key)))
        return

    try:
        parsed = json.loads(value)
    except json.JSONDecodeError:
        parsed = value
    try:
        settings.set(key, parsed)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="'VALUE'") from exc
    click.echo(f"{key} = {json.dumps(parsed)}")

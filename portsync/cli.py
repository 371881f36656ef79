"""portsync CLI — the main entry point for planning and tracking a sync cycle."""

import functools
import sys
import warnings
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from portsync import __version__
from portsync.errors import EmptyRangeWarning, PortsyncError

console = Console()

STATUS_STYLES = {
    "pending": "yellow",
    "done": "green",
    "skipped": "dim",
    "gap": "red",
}


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Config file (default: ./portsync.yaml)",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, verbose: bool):
    """portsync — keep a port in step with its upstream.

    Inventory upstream changes between two revisions, decide which ones to
    mirror, map them onto the target tree, and track the work through to a
    final report.
    """
    from portsync.log import configure_logging

    configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


def _handle_errors(func):
    """Report portsync failures to the operator and exit non-zero."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (PortsyncError, ValueError) as e:
            console.print(f"[red]Error:[/] {escape(str(e))}")
            sys.exit(1)

    return wrapper


def _load_config(ctx: click.Context):
    from portsync.config import DEFAULT_CONFIG_FILE, SyncConfig, load_config

    path = ctx.obj.get("config_path")
    if path:
        return load_config(path)
    if Path(DEFAULT_CONFIG_FILE).exists():
        return load_config(DEFAULT_CONFIG_FILE)
    return SyncConfig()


def _range_options(func):
    """Options shared by the commands that read the upstream range."""
    options = [
        click.option("--repo", "-r", default=None, help="Upstream Git repository"),
        click.option("--base", "-b", default=None, help="Base revision (default: last synced head)"),
        click.option("--head", default=None, help="Head revision (default: HEAD)"),
        click.option("--source-root", "-s", default=None, help="Only consider files under this path"),
        click.option("--map", "-m", "mappings", multiple=True, help="Mapping rule FROM=TO (repeatable)"),
        click.option("--ext", "extensions", multiple=True, help="Extension rule FROM=TO, e.g. .py=.rs"),
        click.option("--exclude", "-x", "excludes", multiple=True, help="Exclude pattern (repeatable)"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _resolve_config(ctx: click.Context, repo, base, head, source_root, mappings, extensions, excludes):
    from portsync.config import parse_pair_option
    from portsync.models import ExtensionRule, MappingRule
    from portsync.sync.history import SyncHistory

    config = _load_config(ctx)
    config = config.with_overrides(
        repo=repo,
        base=base,
        head=head,
        source_root=source_root,
        mapping_rules=tuple(MappingRule(*parse_pair_option(m, "--map")) for m in mappings),
        extension_rules=tuple(ExtensionRule(*parse_pair_option(e, "--ext")) for e in extensions),
        exclude_patterns=tuple(excludes),
    )
    if not config.base:
        last = SyncHistory(config.history_path).last_head()
        if last:
            console.print(f"  Using last synced head as base: [cyan]{last[:12]}[/]")
            config = config.with_overrides(base=last)
    return config


# ── Inventory ────────────────────────────────────────────────────────


@main.command()
@_range_options
@click.pass_context
@_handle_errors
def inventory(ctx, repo, base, head, source_root, mappings, extensions, excludes):
    """List the files that changed upstream in BASE..HEAD."""
    from portsync.sync.inventory import ChangeInventory

    config = _resolve_config(ctx, repo, base, head, source_root, mappings, extensions, excludes)
    console.print(f"\n[bold blue]portsync[/] — Inventory: {config.base}..{config.head}\n")

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", EmptyRangeWarning)
        changes = ChangeInventory(config.repo).collect(config.base, config.head, config.source_root)

    if not changes:
        for w in caught:
            console.print(f"[yellow]{escape(str(w.message))}[/]")
        return

    table = Table(title=f"Changed files ({len(changes)})")
    table.add_column("Path", style="cyan")
    table.add_column("Kind")
    table.add_column("+", justify="right", style="green")
    table.add_column("-", justify="right", style="red")
    for changed in changes:
        table.add_row(changed.path, changed.kind.value, str(changed.insertions), str(changed.deletions))
    console.print(table)


# ── Plan ─────────────────────────────────────────────────────────────


@main.command()
@_range_options
@click.option("--checklist", "checklist_path", default=None, help="Checklist file to write")
@click.option("--fresh", is_flag=True, help="Discard decisions from an existing checklist")
@click.pass_context
@_handle_errors
def plan(ctx, repo, base, head, source_root, mappings, extensions, excludes, checklist_path, fresh):
    """Build the sync checklist: inventory, classify, and map every change."""
    from portsync.sync.checklist import ChecklistStore
    from portsync.sync.pipeline import build_checklist

    config = _resolve_config(ctx, repo, base, head, source_root, mappings, extensions, excludes)
    store = ChecklistStore(checklist_path or config.checklist_path)
    console.print(f"\n[bold blue]portsync[/] — Planning: {config.base}..{config.head}\n")

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", EmptyRangeWarning)
        checklist = build_checklist(config)

    for w in caught:
        console.print(f"[yellow]{escape(str(w.message))}[/]")

    if store.exists() and not fresh:
        previous = store.load()
        if checklist.same_range(previous):
            checklist.merge(previous)
            console.print("  Kept decisions from the existing checklist")

    store.save(checklist)
    _print_checklist(checklist)
    console.print(f"\n[green]Checklist written to:[/] {store.path}")


# ── Status ───────────────────────────────────────────────────────────


@main.command()
@click.option("--checklist", "checklist_path", default=None, help="Checklist file")
@click.pass_context
@_handle_errors
def status(ctx, checklist_path):
    """Show the checklist and progress counts."""
    from portsync.sync.checklist import ChecklistStore

    config = _load_config(ctx)
    checklist = ChecklistStore(checklist_path or config.checklist_path).load()
    _print_checklist(checklist)


@main.command()
@click.argument("path")
@click.argument("verdict", type=click.Choice(["mirror", "exclude"]))
@click.option("--checklist", "checklist_path", default=None, help="Checklist file")
@click.pass_context
@_handle_errors
def resolve(ctx, path, verdict, checklist_path):
    """Decide the verdict for a file flagged for manual review."""
    from portsync.models import SyncStatus, Verdict
    from portsync.sync.checklist import ChecklistStore

    config = _load_config(ctx)
    store = ChecklistStore(checklist_path or config.checklist_path)
    checklist = store.load()
    entry = checklist.resolve(path, Verdict(verdict))
    if entry.verdict == Verdict.EXCLUDE and entry.status == SyncStatus.PENDING:
        checklist.transition(path, SyncStatus.SKIPPED)
    store.save(checklist)
    console.print(f"  [green]v[/] {path}: {verdict} ({entry.status.value})")


@main.command()
@click.argument("path")
@click.argument("new_status", metavar="STATUS", type=click.Choice(["pending", "done", "skipped", "gap"]))
@click.option("--note", "-n", default="", help="Note shown in the report")
@click.option("--checklist", "checklist_path", default=None, help="Checklist file")
@click.pass_context
@_handle_errors
def mark(ctx, path, new_status, note, checklist_path):
    """Move a checklist entry to STATUS."""
    from portsync.models import SyncStatus
    from portsync.sync.checklist import ChecklistStore

    config = _load_config(ctx)
    store = ChecklistStore(checklist_path or config.checklist_path)
    checklist = store.load()
    checklist.transition(path, SyncStatus(new_status), note=note)
    store.save(checklist)
    console.print(f"  [green]v[/] {path}: {new_status}")


# ── Test ─────────────────────────────────────────────────────────────


@main.command(name="test")
@click.argument("paths", nargs=-1)
@click.option("--filter", "-k", "name_filter", default="", help="Test name filter (default: target file stem)")
@click.option("--target-root", "-t", default=None, help="Directory to run test commands in")
@click.option("--checklist", "checklist_path", default=None, help="Checklist file")
@click.pass_context
@_handle_errors
def run_tests(ctx, paths, name_filter, target_root, checklist_path):
    """Run the target's tests for mirrored entries and record the results.

    With no PATHS, every mirrored entry that has a target is tested.
    """
    from portsync.models import TestOutcome, Verdict
    from portsync.sync.checklist import ChecklistStore
    from portsync.sync.target_tests import TestRunner

    config = _load_config(ctx)
    if not config.test_commands:
        console.print("[yellow]No test-commands configured.[/]")
        return

    store = ChecklistStore(checklist_path or config.checklist_path)
    checklist = store.load()
    runner = TestRunner(
        config.test_commands,
        working_dir=target_root or config.target_root,
        timeout=config.test_timeout,
    )

    if paths:
        entries = [checklist.get(p) for p in paths]
    else:
        entries = [e for e in checklist.entries if e.verdict == Verdict.MIRROR and e.target]

    if not entries:
        console.print("[yellow]Nothing to test.[/]")
        return

    for entry in entries:
        console.print(f"\n[bold]{entry.file}[/]")
        for result in runner.run_entry(entry, name_filter):
            checklist.record_test(entry.file, result)
            if result.outcome == TestOutcome.NOT_APPLICABLE:
                console.print(f"  [dim]-[/] {result.level.value}: not applicable")
                continue
            label = "[green]PASS[/]" if result.outcome == TestOutcome.PASSED else "[red]FAIL[/]"
            console.print(f"  {label} {result.level.value} ({result.duration_ms}ms)")
            if result.error:
                console.print(f"       [red]{escape(result.error)}[/]")
        store.save(checklist)


# ── Report ───────────────────────────────────────────────────────────


@main.command()
@click.option("--output", "-o", default=None, help="Write the report to this file")
@click.option("--table", "table_only", is_flag=True, help="Only print the checklist table")
@click.option("--checklist", "checklist_path", default=None, help="Checklist file")
@click.pass_context
@_handle_errors
def report(ctx, output, table_only, checklist_path):
    """Render the final sync report (Markdown)."""
    from portsync.sync.checklist import ChecklistStore
    from portsync.sync.report import ReportGenerator

    config = _load_config(ctx)
    checklist = ChecklistStore(checklist_path or config.checklist_path).load()
    generator = ReportGenerator(checklist)
    text = generator.checklist_table() if table_only else generator.render()

    if output:
        Path(output).write_text(text + "\n")
        console.print(f"[green]Report written to:[/] {output}")
    else:
        click.echo(text)


# ── Finish ───────────────────────────────────────────────────────────


@main.command()
@click.option("--force", is_flag=True, help="Finish even with pending entries")
@click.option("--checklist", "checklist_path", default=None, help="Checklist file")
@click.pass_context
@_handle_errors
def finish(ctx, force, checklist_path):
    """Record the sync as complete; its head becomes the next default base."""
    from portsync.errors import ChecklistError
    from portsync.sync.checklist import ChecklistStore
    from portsync.sync.history import SyncHistory, SyncRecord

    config = _load_config(ctx)
    store_path = checklist_path or config.checklist_path
    checklist = ChecklistStore(store_path).load()

    open_entries = checklist.open_entries
    if open_entries and not force:
        names = ", ".join(e.file for e in open_entries[:5])
        raise ChecklistError(f"{len(open_entries)} entries still pending ({names}); use --force to finish anyway")

    head_sha = checklist.head_sha
    if not head_sha:
        raise ChecklistError(f"{store_path} does not record the planned head commit; run 'portsync plan' again")
    SyncHistory(config.history_path).record(
        SyncRecord(
            base=checklist.base,
            head=checklist.head,
            source_root=checklist.source_root,
            head_sha=head_sha,
            counts=checklist.counts(),
        )
    )
    console.print(f"[green]Sync {checklist.base}..{checklist.head} recorded.[/] Next base: {head_sha[:12]}")


def _print_checklist(checklist) -> None:
    from portsync.models import TestLevel
    from portsync.sync.report import NO_CHANGES, OUTCOME_LABELS, UNMAPPED

    if not checklist.entries:
        console.print(f"[yellow]{NO_CHANGES}[/]")
        return

    table = Table(title=f"Checklist {checklist.base}..{checklist.head} ({len(checklist.entries)} files)")
    table.add_column("File", style="cyan")
    table.add_column("Summary")
    table.add_column("Target")
    table.add_column("Verdict")
    table.add_column("Status")
    for level in TestLevel:
        table.add_column(level.value, justify="center")

    for entry in checklist.entries:
        verdict = entry.verdict.value if entry.verdict else "[magenta]review[/]"
        target = escape(entry.target) if entry.target else f"[red]{UNMAPPED}[/]"
        style = STATUS_STYLES[entry.status.value]
        table.add_row(
            escape(entry.file),
            escape(entry.summary[:60]),
            target,
            verdict,
            f"[{style}]{entry.status.value}[/]",
            *[OUTCOME_LABELS[entry.tests[level].outcome] for level in TestLevel],
        )
    console.print(table)

    counts = checklist.counts()
    console.print(
        Panel(
            f"done {counts['done']}  pending {counts['pending']}  gap {counts['gap']}  "
            f"skipped {counts['skipped']}  review {counts['ambiguous']}  unmapped {counts['unmapped']}",
            title="Progress",
        )
    )


if __name__ == "__main__":
    main()

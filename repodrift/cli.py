"""drift CLI: detect and fix configuration drift across repositories."""

from __future__ import annotations

import logging
import sys
import tempfile
from io import StringIO
from pathlib import Path
from threading import Lock

import click
from rich.console import Console
from rich.markup import escape

from repodrift import __version__
from repodrift._config import CONFIG_FILENAMES, find_config, load_baseline, load_config
from repodrift._types import DRIFT, ERROR, FAIL, MATCH, MISSING, PASS, SKIP
from repodrift.engine import DEFAULT_WORKERS, fix_repo, load_org_config, scan_org, scan_repo
from repodrift.exceptions import ConfigNotFoundError, DriftError, TargetError
from repodrift.github import GitHubCLI
from repodrift.output import OrgScanResult, RepoResult, RepoScanResult, format_json

logger = logging.getLogger(__name__)

console = Console()
err_console = Console(stderr=True)
print_lock = Lock()  # Keeps one repository's block together

DEFAULT_CONFIG_REPO = "drift-config"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

INTEGRITY_TAGS = {
    MATCH: "[green]MATCH  [/green]",
    DRIFT: "[red]DRIFT  [/red]",
    MISSING: "[red]MISSING[/red]",
    ERROR: "[yellow]ERROR  [/yellow]",
}

SCAN_TAGS = {
    PASS: "[green]PASS [/green]",
    FAIL: "[red]FAIL [/red]",
    SKIP: "[dim]SKIP [/dim]",
    ERROR: "[yellow]ERROR[/yellow]",
}


def _configure_logging(verbose: bool) -> None:
    """Send log records to stderr so stdout stays clean for --json."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )


def _fail(exc: DriftError) -> None:
    logger.debug("Aborting: %s", exc.to_dict())
    err_console.print(f"[red]Error:[/red] {escape(exc.message)}")
    sys.exit(1)


# ── Shared options ──────────────────────────────────────────────────────────


def common_options(f):
    """Options shared by every subcommand."""
    f = click.option("--verbose", "-v", is_flag=True, help="Show debug logging and full diffs")(f)
    return f


def local_options(f):
    """Local repository options for scan/fix."""
    f = click.option("--path", "-p", default=None, help="Local repository path (default: current directory)")(f)
    f = click.option(
        "--config",
        "-c",
        "config_path",
        default=None,
        help=f"Path to drift config (default: {CONFIG_FILENAMES[0]} in the repository root)",
    )(f)
    return f


# ── CLI group ───────────────────────────────────────────────────────────────

MAIN_HELP_EPILOG = """
\b
Examples:
  drift scan
  drift scan --path ../service --config ../drift-config/drift.config.yaml --json
  drift scan --org acme --config-repo drift-config -w 8
  drift scan --org acme --repo billing-api --json
  drift fix --path ../service --config ../drift-config/drift.config.yaml --dry-run
  drift fix --file .github/workflows/ci.yml
"""


@click.group(epilog=MAIN_HELP_EPILOG, context_settings={"max_content_width": 120})
@click.version_option(version=__version__, prog_name="drift")
def main():
    """drift - configuration drift detection for repositories."""
    pass


# ── scan ────────────────────────────────────────────────────────────────────


@main.command()
@click.option("--org", "-o", default=None, help="GitHub organization to scan")
@click.option(
    "--config-repo",
    default=DEFAULT_CONFIG_REPO,
    show_default=True,
    help="Repository in the org holding drift.config.yaml and approved/",
)
@click.option("--repo", "-r", default=None, help="Scan only this repository of the org")
@local_options
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
@click.option("--exclude", "-e", multiple=True, help="Skip org repositories matching this glob (repeatable)")
@click.option(
    "--workers",
    "-w",
    default=DEFAULT_WORKERS,
    type=click.IntRange(1, 32),
    help=f"Repositories scanned in parallel (default: {DEFAULT_WORKERS}, max: 32)",
)
@common_options
def scan(org, config_repo, repo, path, config_path, as_json, exclude, workers, verbose):
    """Check protected files and run scans on a repository or a whole org."""
    _configure_logging(verbose)

    if repo and not org:
        _fail(TargetError("--repo requires --org"))
    if org and (path or config_path):
        _fail(TargetError("--org cannot be combined with --path or --config"))

    if org:
        _scan_org(org, config_repo, repo, exclude, workers, as_json=as_json, verbose=verbose)
    else:
        _scan_local(path or ".", config_path, as_json=as_json, verbose=verbose)


def _scan_local(path: str, config_path: str | None, *, as_json: bool, verbose: bool) -> None:
    root = Path(path)
    if not root.is_dir():
        _fail(TargetError(f"Path not found: {path}"))

    found = find_config(root, config_path)
    if found is None or not found.is_file():
        if config_path:
            message = f"Config file not found: {config_path}, nothing to check"
        else:
            message = f"No {CONFIG_FILENAMES[0]} found in {path}, nothing to check"
        if as_json:
            err_console.print(message)
        else:
            console.print(f"[yellow]{message}[/yellow]")
        return

    try:
        config = load_config(found)
        result = scan_repo(config, root, load_baseline(config), label=path)
    except DriftError as exc:
        _fail(exc)

    if as_json:
        click.echo(format_json(result))
    else:
        _print_repo_scan(console, result, title=path, verbose=verbose)

    if result.has_issues:
        sys.exit(1)


def _scan_org(
    org: str,
    config_repo: str,
    only: str | None,
    exclude: tuple[str, ...],
    workers: int,
    *,
    as_json: bool,
    verbose: bool,
) -> None:
    source = GitHubCLI()

    def _print_result(result: RepoResult) -> None:
        if as_json:
            return
        buf = StringIO()
        buf_console = Console(file=buf, force_terminal=console.is_terminal, width=120)
        if result.results is None:
            buf_console.rule(f"[bold]Repository: {result.repo}[/bold]")
            buf_console.print(f"  [red]Skipped:[/red] {escape(result.error or 'unknown error')}")
        else:
            _print_repo_scan(buf_console, result.results, title=result.repo, verbose=verbose)
        with print_lock:
            sys.stdout.write(buf.getvalue())
            sys.stdout.flush()

    with tempfile.TemporaryDirectory(prefix="drift-config-") as tmp:
        try:
            config = load_org_config(source, org, config_repo, tmp)
            baseline = load_baseline(config)
            run = scan_org(
                source,
                org,
                config,
                config_repo=config_repo,
                only=only,
                exclude=exclude,
                workers=workers,
                baseline=baseline,
                on_result=_print_result,
            )
        except DriftError as exc:
            _fail(exc)

    if as_json:
        click.echo(format_json(run))
    else:
        _print_org_summary(run)

    if run.has_issues:
        sys.exit(1)


# ── fix ─────────────────────────────────────────────────────────────────────


@main.command()
@local_options
@click.option("--file", "-f", "file_filter", default=None, help="Fix only this protected file")
@click.option("--dry-run", is_flag=True, help="Show what would change without writing")
@common_options
def fix(path, config_path, file_filter, dry_run, verbose):
    """Restore drifted and missing protected files from the approved baseline."""
    _configure_logging(verbose)
    path = path or "."
    root = Path(path)

    try:
        if not root.is_dir():
            raise TargetError(f"Path not found: {path}")
        found = find_config(root, config_path)
        if found is None:
            raise ConfigNotFoundError(f"No {CONFIG_FILENAMES[0]} found in {path}")
        config = load_config(found)
        baseline = load_baseline(config)
    except DriftError as exc:
        _fail(exc)

    if file_filter and config.rule_for(file_filter) is None:
        console.print(f"[yellow]Warning:[/yellow] {escape(file_filter)} is not a protected file, nothing to fix")
        return

    if dry_run:
        console.print("[yellow]DRY RUN - no changes will be made[/yellow]\n")

    results = fix_repo(config, root, baseline, file_filter=file_filter, dry_run=dry_run)
    if not results:
        console.print("[green]All protected files match the approved baseline[/green]")
        return

    for r in results:
        if not r.success:
            tag = "[red]FAIL [/red]"
        elif dry_run:
            tag = "[yellow]DRY  [/yellow]"
        else:
            tag = "[green]FIXED[/green]"
        console.print(f"  {tag} {escape(r.file):<40s}  [dim]{escape(r.detail)}[/dim]")

    failed = sum(1 for r in results if not r.success)
    console.print()
    if dry_run:
        console.print(f"  [bold]{len(results)} file(s) would be changed[/bold]")
    else:
        console.print(
            f"  [bold]{len(results)} file(s)[/bold] | "
            f"[green]{len(results) - failed} fixed[/green]" + (f" | [red]{failed} failed[/red]" if failed else "")
        )

    if failed:
        sys.exit(1)


# ── Output helpers ─────────────────────────────────────────────────────────


def _print_repo_scan(con: Console, result: RepoScanResult, *, title: str, verbose: bool = False) -> None:
    """Print one repository's integrity, discovery and scan results."""
    con.rule(f"[bold]Repository: {escape(title)}[/bold]")
    if result.metadata.tier:
        con.print(f"  [dim]tier: {escape(result.metadata.tier)}[/dim]")

    for item in result.integrity:
        note = item.error or item.severity
        con.print(f"  {INTEGRITY_TAGS[item.status]} {escape(item.file):<40s}  [dim]({escape(note)})[/dim]")
        if verbose and item.diff:
            con.print(escape(item.diff), style="dim", highlight=False)

    unprotected = [d for d in result.discovered if not d.is_protected]
    for d in unprotected:
        suggestion = f"  [dim]{escape(d.suggestion)}[/dim]" if d.suggestion else ""
        con.print(f"  [cyan]FOUND  [/cyan] {escape(d.file):<40s}{suggestion}")

    for s in result.scans:
        if s.status == SKIP:
            detail = f"  [dim]({escape(s.skipped_reason or '')})[/dim]"
        else:
            extra = f", {escape(s.detail)}" if s.detail else ""
            detail = f"  [dim]({s.duration}ms{extra})[/dim]"
        con.print(f"  {SCAN_TAGS[s.status]} {escape(s.scan):<40s}{detail}")

    summary = result.summary
    con.print(
        f"  [bold]{len(result.integrity)} files[/bold] | "
        f"[green]{summary.integrity_passed} match[/green] | "
        f"[red]{summary.integrity_failed} drift[/red] | "
        f"[red]{summary.integrity_missing} missing[/red]"
        + (f" | [cyan]{summary.discovered_files} discovered[/cyan]" if summary.discovered_files else "")
    )
    if result.scans:
        con.print(
            f"  [bold]{len(result.scans)} scans[/bold] | "
            f"[green]{summary.scans_passed} pass[/green] | "
            f"[red]{summary.scans_failed} fail[/red]"
            + (f" | [dim]{summary.scans_skipped} skip[/dim]" if summary.scans_skipped else "")
        )


def _print_org_summary(run: OrgScanResult) -> None:
    summary = run.summary
    console.print()
    console.rule("[bold]Summary[/bold]")
    console.print(
        f"  {summary.repos_scanned} repos scanned | "
        f"[red]{summary.repos_with_issues} with issues[/red]"
        + (f" | [dim]{summary.repos_skipped} skipped[/dim]" if summary.repos_skipped else "")
    )
    console.print(
        f"  [green]{summary.total_integrity_passed} match[/green] | "
        f"[red]{summary.total_integrity_failed} drift[/red] | "
        f"[red]{summary.total_integrity_missing} missing[/red] | "
        f"[green]{summary.total_scans_passed} scans pass[/green] | "
        f"[red]{summary.total_scans_failed} scans fail[/red]"
    )

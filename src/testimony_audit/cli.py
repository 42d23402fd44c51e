"""Command-line interface for testimony-audit.

Uses Typer for a modern, type-hinted CLI experience.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, NoReturn, Optional

import typer
from dotenv import load_dotenv
from rich.console import Console

# Load environment variables from .env files
# Priority: local .env > ~/.testimony-audit/.env
_user_env = Path.home() / ".testimony-audit" / ".env"
if _user_env.exists():
    load_dotenv(_user_env)
load_dotenv()
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from testimony_audit import __version__
from testimony_audit.audit import apply_repairs, plan_repairs, run_validation
from testimony_audit.config import ValidationThresholds, resolve_thresholds
from testimony_audit.errors import TestimonyAuditError, format_error_for_display
from testimony_audit.formatting import format_signed_duration, format_timestamp
from testimony_audit.logging import LogLevel, enable_file_logging, set_verbosity
from testimony_audit.models.clip import normalize_clip_record
from testimony_audit.repair.heuristics import propose_repair
from testimony_audit.storage import ClipStore
from testimony_audit.validation.aggregator import ValidationReport, sort_by_severity
from testimony_audit.validation.checker import validate_clip_time
from testimony_audit.validation.criteria import Severity

app = typer.Typer(
    name="testimony-audit",
    help="Validate and repair the time ranges of testimony clips.",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()

SEVERITY_STYLES = {
    Severity.HIGH: "bold red",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "cyan",
}

ClipsOption = Annotated[
    Optional[Path],
    typer.Option("--clips", "-c", help="Clip store JSON file (default: ./clips.json)"),
]
ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", help="Thresholds JSON file"),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"testimony-audit version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option("--version", callback=version_callback, is_eager=True, help="Show version and exit."),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show progress logging."),
    ] = False,
    log_file: Annotated[
        Optional[Path],
        typer.Option("--log-file", help="Also write debug logs to this file."),
    ] = None,
) -> None:
    """Testimony clip time-range audit."""
    set_verbosity(LogLevel.VERBOSE if verbose else LogLevel.NORMAL)
    if log_file:
        enable_file_logging(log_file)


def _fail(error: Exception) -> NoReturn:
    console.print(f"[red]Error:[/red] {escape(format_error_for_display(error))}")
    raise typer.Exit(1)


def _open_store(clips: Path | None) -> ClipStore:
    store = ClipStore(clips or Path.cwd() / "clips.json")
    if not store.exists():
        console.print(f"[red]Error:[/red] Clip store not found: {store.path}")
        raise typer.Exit(1)
    return store


def _thresholds(config: Path | None) -> ValidationThresholds:
    try:
        return resolve_thresholds(config)
    except TestimonyAuditError as e:
        _fail(e)


def _validate(
    store: ClipStore,
    thresholds: ValidationThresholds,
    episode: str | None,
    include_resolved: bool,
) -> ValidationReport:
    try:
        return run_validation(
            store, thresholds, episode=episode, include_resolved=include_resolved
        )
    except TestimonyAuditError as e:
        _fail(e)


def _findings_table(findings, title: str) -> Table:
    table = Table(title=title)
    table.add_column("Severity")
    table.add_column("Clip ID", style="cyan", max_width=24)
    table.add_column("Episode", style="dim")
    table.add_column("Start", justify="right")
    table.add_column("End", justify="right")
    table.add_column("Duration", justify="right", style="green")
    table.add_column("Issue", max_width=50)

    for finding in findings:
        style = SEVERITY_STYLES[finding.severity]
        table.add_row(
            f"[{style}]{finding.severity.value.upper()}[/{style}]",
            finding.clip_id,
            finding.episode or "",
            format_timestamp(finding.start_time_seconds),
            format_timestamp(finding.end_time_seconds),
            format_signed_duration(finding.duration),
            escape(finding.message),
        )
    return table


@app.command()
def validate(
    clips: ClipsOption = None,
    config: ConfigOption = None,
    episode: Annotated[
        Optional[str],
        typer.Option("--episode", "-e", help="Only validate clips from this episode"),
    ] = None,
    severity: Annotated[
        Optional[Severity],
        typer.Option("--severity", "-s", help="Only show findings of this severity"),
    ] = None,
    include_resolved: Annotated[
        bool,
        typer.Option("--include-resolved", help="Also check clips already approved or re-cut"),
    ] = False,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the report as JSON"),
    ] = False,
) -> None:
    """Validate clip time ranges and list flagged clips.

    Findings are shown most severe first; within a severity they keep
    the stored clip order.
    """
    store = _open_store(clips)
    thresholds = _thresholds(config)
    report = _validate(store, thresholds, episode, include_resolved)

    findings = report.flagged_clips
    if severity is not None:
        findings = report.by_severity(severity)

    if as_json:
        data = report.to_dict()
        data["flagged_clips"] = [f.to_dict() for f in findings]
        typer.echo(json.dumps(data, indent=2))
        return

    summary = report.summary
    console.print(
        f"{summary.total} clips considered, {summary.skipped} already resolved, "
        f"{summary.flagged} flagged"
    )

    if not findings:
        console.print("[green]No flagged clips.[/green]")
        return

    console.print(_findings_table(sort_by_severity(findings), f"Flagged Clips ({len(findings)})"))


@app.command()
def repair(
    clips: ClipsOption = None,
    config: ConfigOption = None,
    episode: Annotated[
        Optional[str],
        typer.Option("--episode", "-e", help="Only repair clips from this episode"),
    ] = None,
    apply: Annotated[
        bool,
        typer.Option("--apply", help="Write safe proposals back to the clip store"),
    ] = False,
    accept_manual: Annotated[
        bool,
        typer.Option("--accept-manual", help="Also apply low-confidence proposals"),
    ] = False,
    applied_by: Annotated[
        Optional[str],
        typer.Option("--by", help="Who is accepting the repairs (required with --apply)"),
    ] = None,
) -> None:
    """Propose repairs for flagged clips, and optionally apply them."""
    if apply and not applied_by:
        console.print("[red]Error:[/red] --by is required with --apply.")
        raise typer.Exit(1)

    store = _open_store(clips)
    thresholds = _thresholds(config)
    report = _validate(store, thresholds, episode, include_resolved=False)
    proposals = plan_repairs(report, thresholds)

    if not proposals:
        console.print("[green]No flagged clips, nothing to repair.[/green]")
        return

    table = Table(title=f"Repair Proposals ({len(proposals)})")
    table.add_column("Clip ID", style="cyan", max_width=24)
    table.add_column("Kind", style="yellow")
    table.add_column("Recorded", justify="right")
    table.add_column("Proposed", justify="right", style="green")
    table.add_column("Confidence")
    table.add_column("Rationale", max_width=50)

    for proposal in proposals:
        recorded = (
            f"{format_timestamp(proposal.original_start_time_seconds)} - "
            f"{format_timestamp(proposal.original_end_time_seconds)}"
        )
        if proposal.has_times:
            proposed = (
                f"{format_timestamp(proposal.proposed_start_time_seconds)} - "
                f"{format_timestamp(proposal.proposed_end_time_seconds)}"
            )
        else:
            proposed = "[dim]manual review[/dim]"
        table.add_row(
            proposal.clip_id,
            proposal.kind.value,
            recorded,
            proposed,
            proposal.confidence.value,
            escape(proposal.rationale),
        )

    console.print(table)

    if not apply:
        console.print("[dim]Dry run. Use --apply --by NAME to write safe proposals.[/dim]")
        return

    try:
        outcome = apply_repairs(store, proposals, applied_by=applied_by, accept_manual=accept_manual)
    except TestimonyAuditError as e:
        _fail(e)

    console.print(
        f"[green]Applied {outcome.applied_count} repairs.[/green] "
        f"{outcome.deferred_count} left for manual review."
    )


@app.command()
def accept(
    clip_id: Annotated[str, typer.Argument(help="Clip ID whose proposal to accept")],
    applied_by: Annotated[str, typer.Option("--by", help="Who is accepting the repair")],
    clips: ClipsOption = None,
    config: ConfigOption = None,
    comments: Annotated[
        Optional[str],
        typer.Option("--comments", help="Reviewer comments"),
    ] = None,
) -> None:
    """Accept the repair proposal for a single clip, even a low-confidence one."""
    store = _open_store(clips)
    thresholds = _thresholds(config)

    try:
        record = normalize_clip_record(store.get(clip_id))
        finding = validate_clip_time(record, thresholds)
        if finding is None:
            console.print(f"[green]Clip {clip_id} is not flagged.[/green]")
            return

        proposal = propose_repair(finding, thresholds)
        if not proposal.has_times:
            console.print(
                f"[yellow]No automatic repair for clip {clip_id}:[/yellow] {proposal.rationale}"
            )
            raise typer.Exit(1)

        store.apply_proposal(proposal, applied_by=applied_by, comments=comments)
    except TestimonyAuditError as e:
        _fail(e)

    console.print(
        f"[green]Clip {clip_id} updated:[/green] "
        f"{format_timestamp(proposal.proposed_start_time_seconds)} - "
        f"{format_timestamp(proposal.proposed_end_time_seconds)}"
    )


@app.command()
def okay(
    clip_id: Annotated[str, typer.Argument(help="Clip ID to mark as a false positive")],
    reviewed_by: Annotated[str, typer.Option("--by", help="Who reviewed the clip")],
    clips: ClipsOption = None,
    comments: Annotated[
        Optional[str],
        typer.Option("--comments", help="Reviewer comments"),
    ] = None,
) -> None:
    """Mark a flagged clip as okay so future runs skip it."""
    store = _open_store(clips)
    try:
        store.mark_false_positive(clip_id, reviewed_by=reviewed_by, comments=comments)
    except TestimonyAuditError as e:
        _fail(e)
    console.print(f"[green]Clip {clip_id} marked as okay.[/green]")


@app.command()
def undo(
    clip_id: Annotated[str, typer.Argument(help="Clip ID to revert")],
    clips: ClipsOption = None,
) -> None:
    """Revert the last repair applied to a clip."""
    store = _open_store(clips)
    try:
        document = store.undo_last_repair(clip_id)
    except TestimonyAuditError as e:
        _fail(e)
    record = normalize_clip_record(document)
    console.print(
        f"[green]Clip {clip_id} restored:[/green] "
        f"{format_timestamp(record.start_time_seconds)} - "
        f"{format_timestamp(record.end_time_seconds)}"
    )


@app.command()
def summary(
    clips: ClipsOption = None,
    config: ConfigOption = None,
    episode: Annotated[
        Optional[str],
        typer.Option("--episode", "-e", help="Only count clips from this episode"),
    ] = None,
) -> None:
    """Show finding counts by severity and by kind."""
    store = _open_store(clips)
    thresholds = _thresholds(config)
    report = _validate(store, thresholds, episode, include_resolved=False)
    counts = report.summary

    console.print(Panel(
        f"[bold]Clips considered:[/bold] {counts.total}\n"
        f"[bold]Already resolved:[/bold] {counts.skipped}\n"
        f"[bold]Flagged:[/bold] {counts.flagged}",
        title="Clip Validation Summary",
    ))

    if counts.flagged == 0:
        return

    severity_table = Table(show_header=True, header_style="bold")
    severity_table.add_column("Severity")
    severity_table.add_column("Count", style="cyan", justify="right")
    for level in sorted(Severity, reverse=True):
        style = SEVERITY_STYLES[level]
        severity_table.add_row(f"[{style}]{level.value}[/{style}]", str(counts.by_severity[level.value]))
    console.print(severity_table)

    kind_table = Table(show_header=True, header_style="bold")
    kind_table.add_column("Kind", style="yellow")
    kind_table.add_column("Count", style="cyan", justify="right")
    for kind, count in sorted(counts.by_kind.items(), key=lambda x: -x[1]):
        kind_table.add_row(kind, str(count))
    console.print(kind_table)


if __name__ == "__main__":
    app()

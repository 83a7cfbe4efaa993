"""Command-line tools for corroboration scoring using Typer and Rich."""

import asyncio
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from credibility_system.config.logging import get_logger
from credibility_system.config.settings import settings
from credibility_system.data_management.profile_store import ProfileStore
from credibility_system.data_management.report_store import ReportStore
from credibility_system.scoring.corroboration_scorer import (
    CorroborationOutcome,
    CorroborationScorer,
)
from credibility_system.scoring.geo import haversine_km

app = typer.Typer(
    help="Community report corroboration and credibility tools",
    add_completion=False,
)

console = Console()

logger = get_logger("cli")


@app.command()
def status() -> None:
    """
    Display scoring configuration and backend status.
    """
    logger.info("Displaying system status")

    table = Table(title="Credibility System Status", show_header=True, header_style="bold magenta")
    table.add_column("Component", style="cyan", width=20)
    table.add_column("Status", style="green", width=15)
    table.add_column("Details", style="yellow")

    backend_status = "✓ Configured" if settings.backend_configured else "⚠ Not Configured"
    backend_details = settings.supabase_url or "local JSON stores only"
    table.add_row("Backend", backend_status, backend_details)

    table.add_row(
        "Adjacency",
        "✓ Active",
        f"{settings.adjacency_threshold_meters:g} m (inclusive)",
    )

    increment_mode = "atomic" if settings.atomic_credibility_increment else "read-then-upsert"
    table.add_row("Credibility", "✓ Active", f"+1 per corroboration, {increment_mode}")

    log_details = f"Level: {settings.log_level}, Format: {settings.log_format}"
    table.add_row("Logging", "✓ Active", log_details)

    console.print(table)


@app.command()
def evaluate(
    report_id: str = typer.Argument(..., help="Id of the report to score"),
    reports_file: Optional[Path] = typer.Option(
        None, "--reports", help="JSON file with reports (default: REPORTS_PERSISTENCE_PATH)"
    ),
    profiles_file: Optional[Path] = typer.Option(
        None,
        "--profiles",
        help="JSON profile file, updated in place (default: PROFILES_PERSISTENCE_PATH)",
    ),
    threshold: Optional[float] = typer.Option(
        None, "--threshold", help="Adjacency radius in metres (default from settings)"
    ),
) -> None:
    """
    Score one stored report against the others.
    """
    reports_file = _resolve_path(reports_file, settings.reports_persistence_path, "Reports")
    if not reports_file.exists():
        console.print(f"[red]✗[/red] Reports file not found: {reports_file}")
        raise typer.Exit(code=1)
    if threshold is not None and threshold <= 0:
        console.print("[red]✗[/red] Threshold must be positive")
        raise typer.Exit(code=1)

    profiles_path = profiles_file or settings.profiles_persistence_path
    report_store = _load_store(ReportStore, reports_file, "reports")
    profile_store = _load_store(ProfileStore, profiles_path, "profiles")

    outcome = asyncio.run(
        _evaluate(
            report_store,
            profile_store,
            report_id,
            threshold or settings.adjacency_threshold_meters,
        )
    )
    if outcome is None:
        console.print(f"[red]✗[/red] Unknown report id: {report_id}")
        raise typer.Exit(code=1)

    _print_outcome(outcome)


def _resolve_path(explicit: Optional[Path], configured: Optional[str], label: str) -> Path:
    """Use the explicit path, else the configured one, else exit."""
    if explicit is not None:
        return explicit
    if configured:
        return Path(configured)
    console.print(
        f"[red]✗[/red] {label} file not given and {label.upper()}_PERSISTENCE_PATH is not set"
    )
    raise typer.Exit(code=1)


def _load_store(store_cls, path, label: str):
    store = store_cls(persistence_path=str(path) if path else None)
    if store.load_error:
        console.print(
            f"[red]✗[/red] Could not read {label} file {escape(str(path))}: "
            f"{escape(store.load_error)}"
        )
        raise typer.Exit(code=1)
    return store


async def _evaluate(
    report_store: ReportStore,
    profile_store: ProfileStore,
    report_id: str,
    threshold: float,
) -> Optional[CorroborationOutcome]:
    report = await report_store.get_report(report_id)
    if report is None:
        return None

    scorer = CorroborationScorer(
        report_store,
        profile_store,
        threshold_meters=threshold,
        atomic_increment=settings.atomic_credibility_increment,
    )
    return await scorer.evaluate_detailed(report)


def _print_outcome(outcome: CorroborationOutcome) -> None:
    if outcome.matches:
        table = Table(title=f"Corroborating reports for {outcome.report_id}")
        table.add_column("Report", style="cyan")
        table.add_column("User", style="magenta")
        table.add_column("Type")
        table.add_column("Problem", style="yellow")
        for match in outcome.matches:
            table.add_row(match.id, match.user_id, match.type or "-", match.problem[:60])
        console.print(table)

    if outcome.skipped_reason:
        console.print(
            Panel(
                f"No credibility awarded ({outcome.skipped_reason.replace('_', ' ')})",
                border_style="yellow",
            )
        )
        return

    lines = [f"[green]✓[/green] {uid}" for uid in outcome.awarded_users]
    lines += [f"[red]✗[/red] {uid}" for uid in outcome.failed_users]
    console.print(
        Panel(
            "\n".join(lines),
            title=f"Awarded {outcome.awarded_count} of {len(outcome.distinct_users)} users",
            border_style="green",
        )
    )


@app.command()
def credibility(
    user_ids: List[str] = typer.Argument(..., help="User ids (space or comma separated)"),
    profiles_file: Optional[Path] = typer.Option(
        None, "--profiles", help="JSON profile file (default: PROFILES_PERSISTENCE_PATH)"
    ),
) -> None:
    """
    Show credibility for a batch of users.
    """
    profiles_file = _resolve_path(profiles_file, settings.profiles_persistence_path, "Profiles")
    if not profiles_file.exists():
        console.print(f"[red]✗[/red] Profiles file not found: {profiles_file}")
        raise typer.Exit(code=1)

    ids = [part for raw in user_ids for part in raw.split(",")]
    store = _load_store(ProfileStore, profiles_file, "profiles")
    summaries = asyncio.run(store.get_credibility_batch(ids))

    table = Table(title="Credibility")
    table.add_column("User", style="cyan")
    table.add_column("Name")
    table.add_column("Credibility", justify="right", style="green")
    for summary in summaries.values():
        table.add_row(summary.user_id, summary.full_name or "-", str(summary.credibility))
    console.print(table)


@app.command()
def distance(
    lat1: float = typer.Argument(...),
    lng1: float = typer.Argument(...),
    lat2: float = typer.Argument(...),
    lng2: float = typer.Argument(...),
) -> None:
    """
    Haversine distance between two points and whether they are adjacent.
    """
    meters = haversine_km(lat1, lng1, lat2, lng2) * 1000.0
    threshold = settings.adjacency_threshold_meters
    adjacent = meters <= threshold
    mark = "[green]adjacent[/green]" if adjacent else "[yellow]not adjacent[/yellow]"
    console.print(f"{meters:.1f} m ({mark} at {threshold:g} m)")


if __name__ == "__main__":
    app()

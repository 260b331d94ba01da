"""CLI entry point for DistroVitals."""

import asyncio
import logging
from pathlib import Path

# Load .env file if it exists
from dotenv import load_dotenv
load_dotenv()

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from distrovitals.analyzers.pipeline import HealthPipeline
from distrovitals.collectors import CollectorError, GitHubCollector, RedditCollector
from distrovitals.models.schemas import CollectorConfig, Distribution, HealthScore, Trend
from distrovitals.storage import DistributionNotFoundError, SQLiteStore, StoreError

app = typer.Typer(help="DistroVitals - Linux distribution health tracker.")

console = Console()

TREND_ICONS = {
    Trend.UP: "[green]↑[/green]",
    Trend.DOWN: "[red]↓[/red]",
    Trend.STABLE: "→",
    Trend.UNKNOWN: "[dim]?[/dim]",
}


@app.callback()
def main(
    ctx: typer.Context,
    database: Path = typer.Option(
        Path("distrovitals.db"), "--database", "-d", envvar="DISTROVITALS_DB", help="Database file path"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Track the health of Linux distributions."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)
    ctx.obj = {"database": database}


def _open_store(ctx: typer.Context) -> SQLiteStore:
    try:
        return SQLiteStore(ctx.obj["database"])
    except StoreError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


def _select_distros(store: SQLiteStore, distro_slug: str) -> list[Distribution]:
    """Resolve "all" or a single slug, exiting on unknown slugs."""
    if distro_slug == "all":
        return store.get_distributions()
    try:
        return [store.get_distribution_by_slug(distro_slug)]
    except DistributionNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


def _score_color(score: float) -> str:
    return "green" if score >= 70 else "yellow" if score >= 50 else "red"


def _format_score(score: HealthScore) -> str:
    return (
        f"[{_score_color(score.overall_score)}]{score.overall_score:.1f}[/{_score_color(score.overall_score)}] "
        f"(Dev: {score.development_score:.1f}, Community: {score.community_score:.1f}, "
        f"Maint: {score.maintenance_score:.1f}) {TREND_ICONS[score.trend]}"
    )


@app.command("list")
def list_distros(ctx: typer.Context) -> None:
    """List tracked distributions."""
    with _open_store(ctx) as store:
        distros = store.get_distributions()

    table = Table(title=f"{len(distros)} Tracked Distributions")
    table.add_column("Slug", style="cyan")
    table.add_column("Name")
    table.add_column("GitHub Org", style="dim")
    table.add_column("Subreddit", style="dim")

    for distro in distros:
        table.add_row(distro.slug, distro.name, distro.github_org or "-", distro.subreddit or "-")

    console.print(table)


@app.command()
def collect(
    ctx: typer.Context,
    distro: str = typer.Argument("all", help='Distribution slug, or "all"'),
) -> None:
    """Collect GitHub activity and releases."""
    asyncio.run(_collect(ctx, distro))


async def _collect(ctx: typer.Context, distro_slug: str) -> None:
    """Async implementation of collect."""
    config = CollectorConfig.from_env()
    if config.github_token is None:
        console.print("[yellow]Warning: GITHUB_TOKEN not set. API rate limits will be restricted.[/yellow]")

    collector = GitHubCollector(config)

    with _open_store(ctx) as store:
        for distro in _select_distros(store, distro_slug):
            console.print(f"[bold]Collecting data for {distro.name}...[/bold]")

            if not distro.github_org:
                console.print("  [dim]GitHub: No org configured, skipping[/dim]")
                continue

            try:
                ids = await collector.collect_org_repos(store, distro.id, distro.github_org)
                console.print(f"  GitHub: {len(ids)} snapshots collected")
            except CollectorError as e:
                console.print(f"  [red]GitHub: Error - {e}[/red]")
                continue

            try:
                ids = await collector.collect_org_releases(store, distro.id, distro.github_org)
                console.print(f"  Releases: {len(ids)} collected")
            except CollectorError as e:
                console.print(f"  [red]Releases: Error - {e}[/red]")

    console.print("\n[green]Collection complete![/green]")


@app.command()
def collect_reddit(
    ctx: typer.Context,
    distro: str = typer.Argument("all", help='Distribution slug, or "all"'),
) -> None:
    """Collect Reddit community data."""
    asyncio.run(_collect_reddit(ctx, distro))


async def _collect_reddit(ctx: typer.Context, distro_slug: str) -> None:
    """Async implementation of collect_reddit."""
    collector = RedditCollector(CollectorConfig.from_env())

    with _open_store(ctx) as store:
        if distro_slug == "all":
            console.print("[bold]Collecting Reddit data for all distributions...[/bold]")
            ids = await collector.collect_all(store)
            console.print(f"Reddit: {len(ids)} snapshots collected")
        else:
            distro = _select_distros(store, distro_slug)[0]
            console.print(f"[bold]Collecting Reddit data for {distro.name}...[/bold]")
            if not distro.subreddit:
                console.print("  [dim]Reddit: No subreddit configured, skipping[/dim]")
            else:
                try:
                    await collector.collect_subreddit(store, distro.id, distro.subreddit)
                    console.print(f"  Reddit: r/{distro.subreddit} collected")
                except CollectorError as e:
                    console.print(f"  [red]Reddit: Error - {e}[/red]")

    console.print("\n[green]Reddit collection complete![/green]")


@app.command()
def analyze(
    ctx: typer.Context,
    distro: str = typer.Argument("all", help='Distribution slug, or "all"'),
) -> None:
    """Calculate health scores from the latest snapshots."""
    with _open_store(ctx) as store:
        pipeline = HealthPipeline(store)
        for d in _select_distros(store, distro):
            try:
                score = pipeline.calculate_health_score(d.id)
            except StoreError as e:
                console.print(f"Analyzing {d.name}... [red]Error: {e}[/red]")
                continue
            console.print(f"Analyzing {d.name}... Score: {_format_score(score)}")


@app.command()
def rankings(ctx: typer.Context) -> None:
    """Show health rankings."""
    with _open_store(ctx) as store:
        ranked = HealthPipeline(store).rankings()

    scored = [r for r in ranked if r.trend != Trend.UNKNOWN]
    if not scored:
        console.print("No scores yet. Run 'dv collect' and 'dv analyze' first.")
        return

    table = Table(title="Distribution Health Rankings")
    table.add_column("Rank", style="dim", width=6)
    table.add_column("Distro", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Dev", justify="right", style="dim")
    table.add_column("Community", justify="right", style="dim")
    table.add_column("Maint", justify="right", style="dim")
    table.add_column("Trend", justify="center")

    for row in scored:
        color = _score_color(row.overall_score)
        table.add_row(
            str(row.rank),
            row.slug,
            f"[{color}]{row.overall_score:.1f}[/{color}]",
            f"{row.development_score:.1f}",
            f"{row.community_score:.1f}",
            f"{row.maintenance_score:.1f}",
            TREND_ICONS[row.trend],
        )

    console.print(table)

    unscored = len(ranked) - len(scored)
    if unscored:
        console.print(f"[dim]{unscored} distributions have no score yet[/dim]")


@app.command()
def status(
    ctx: typer.Context,
    distro: str = typer.Argument(..., help="Distribution slug"),
) -> None:
    """Show the latest score and metrics of a distribution."""
    with _open_store(ctx) as store:
        pipeline = HealthPipeline(store)
        try:
            d, score, snapshots = pipeline.status(distro)
        except DistributionNotFoundError as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(1)
        metrics = pipeline.metrics_for(d.id)

    console.print(f"[bold cyan]{d.name}[/bold cyan] ({d.slug})")
    console.print(f"Homepage: {d.homepage or '-'}")
    console.print(f"GitHub Org: {d.github_org or '-'}")
    console.print(f"Subreddit: {'r/' + d.subreddit if d.subreddit else '-'}")
    console.print()

    if score:
        console.print(
            Panel(
                f"[bold]{score.overall_score:.1f}[/bold] / 100  {TREND_ICONS[score.trend]}\n"
                f"Development:  {score.development_score:.1f}\n"
                f"Community:    {score.community_score:.1f}\n"
                f"Maintenance:  {score.maintenance_score:.1f}\n"
                f"[dim]Last updated: {score.calculated_at:%Y-%m-%d %H:%M} UTC[/dim]",
                title="Health Score",
                expand=False,
            )
        )
    else:
        console.print("No health score available yet.")

    info_table = Table(show_header=False, box=None)
    info_table.add_column("Key", style="bold")
    info_table.add_column("Value", justify="right")
    info_table.add_row("Repos tracked", str(metrics.repos_tracked))
    info_table.add_row("Stars", f"{metrics.total_stars:,}")
    info_table.add_row("Commits (30d)", f"{metrics.commits_30d:,}")
    info_table.add_row("Contributors (30d)", str(metrics.total_contributors))
    info_table.add_row("Open issues / PRs", f"{metrics.open_issues} / {metrics.open_prs}")
    info_table.add_row("Latest release", metrics.latest_release or "-")
    if metrics.days_since_release is not None:
        info_table.add_row("Days since release", str(metrics.days_since_release))
    info_table.add_row("Reddit subscribers", f"{metrics.reddit_subscribers:,}")
    console.print(info_table)

    if snapshots:
        console.print("\n[bold]GitHub Metrics:[/bold]")
        for snap in snapshots[:5]:
            console.print(
                f"  {snap.repo_name} - stars {snap.stars}, forks {snap.forks}, "
                f"issues {snap.open_issues}, PRs {snap.open_prs}"
            )
        if len(snapshots) > 5:
            console.print(f"  [dim]... and {len(snapshots) - 5} more repos[/dim]")


@app.command()
def history(
    ctx: typer.Context,
    distro: str = typer.Argument(..., help="Distribution slug"),
    days: int = typer.Option(30, "--days", "-n", min=1, help="Trailing window in days"),
) -> None:
    """Show the score history of a distribution."""
    with _open_store(ctx) as store:
        try:
            scores = HealthPipeline(store).history(distro, days)
        except DistributionNotFoundError as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(1)

    if not scores:
        console.print(f"No scores for {distro} in the last {days} days.")
        return

    table = Table(title=f"{distro} - last {days} days")
    table.add_column("Calculated", style="dim")
    table.add_column("Overall", justify="right")
    table.add_column("Dev", justify="right")
    table.add_column("Community", justify="right")
    table.add_column("Maint", justify="right")
    table.add_column("Trend", justify="center")

    for score in scores:
        table.add_row(
            f"{score.calculated_at:%Y-%m-%d %H:%M}",
            f"{score.overall_score:.1f}",
            f"{score.development_score:.1f}",
            f"{score.community_score:.1f}",
            f"{score.maintenance_score:.1f}",
            TREND_ICONS[score.trend],
        )

    console.print(table)


@app.command()
def version() -> None:
    """Show version information."""
    from distrovitals import __version__

    console.print(f"distrovitals v{__version__}")


if __name__ == "__main__":
    app()

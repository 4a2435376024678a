"""
ATS Connect Command Line Interface

Provides CLI commands for managing provider connections, running syncs,
working through the webhook backlog and serving the HTTP API.
"""

from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="ats-connect",
    help="Applicant Tracking System integration engine CLI",
    add_completion=False,
)
console = Console()


def _require_database() -> None:
    from ats_connect.data.database import get_database_manager

    if not get_database_manager().check_sync_connection():
        console.print("[red]Error: Could not connect to MongoDB. Run 'init-db' first.[/red]")
        raise typer.Exit(1)


@app.command()
def version():
    """Show application version."""
    from ats_connect import __version__, __app_name__

    console.print(f"[bold blue]{__app_name__}[/bold blue] version [green]{__version__}[/green]")


@app.command()
def info():
    """Show system information and configuration."""
    from ats_connect.utils.config import get_settings

    settings = get_settings()

    table = Table(title="ATS Connect Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Environment", settings.environment)
    table.add_row("Debug Mode", str(settings.debug))
    table.add_row("Database Host", settings.database.host)
    table.add_row("Database Name", settings.database.name)
    table.add_row("Request Timeout", f"{settings.sync.request_timeout:.0f}s")
    table.add_row("Sync Workers", str(settings.sync.max_workers))
    table.add_row("Encryption Key", "configured" if settings.security.encryption_key else "[yellow]ephemeral[/yellow]")
    table.add_row("Log Level", settings.logging.level)

    console.print(table)


@app.command()
def init_db():
    """Initialize the database with required collections and indexes."""
    from ats_connect.data.database import get_database_manager

    console.print("[yellow]Initializing database...[/yellow]")

    db_manager = get_database_manager()

    console.print("  Checking database connection...")
    if not db_manager.check_sync_connection():
        console.print("[red]Error: Could not connect to MongoDB.[/red]")
        console.print("[dim]Make sure MongoDB is running and connection settings are correct.[/dim]")
        raise typer.Exit(1)

    console.print("  [green]✓[/green] Connected to MongoDB")

    try:
        console.print("  Creating indexes...")
        db_manager.ensure_indexes()
        console.print("  [green]✓[/green] Indexes created")
    except Exception as e:
        console.print(f"[red]Error initializing database: {e}[/red]")
        raise typer.Exit(1)

    console.print("\n[green]Database initialized successfully![/green]")


@app.command()
def connections(
    provider: Optional[str] = typer.Option(None, "--provider", "-p", help="Filter by provider"),
    active_only: bool = typer.Option(False, "--active", help="Only show active connections"),
):
    """List configured ATS connections."""
    from ats_connect.services import get_integration_service

    _require_database()
    service = get_integration_service()

    rows = service.list_connections(active_only=active_only)
    if provider:
        rows = [c for c in rows if c.provider == provider.lower()]

    if not rows:
        console.print("[yellow]No connections found.[/yellow]")
        raise typer.Exit(0)

    table = Table(title=f"ATS Connections ({len(rows)} total)")
    table.add_column("ID", style="dim", width=24)
    table.add_column("Name", style="cyan")
    table.add_column("Provider")
    table.add_column("Active", justify="center")
    table.add_column("Last Sync")
    table.add_column("Synced", justify="right")
    table.add_column("Success", justify="right")
    table.add_column("Budget", justify="right")

    for connection in rows:
        stats = connection.sync_stats
        table.add_row(
            str(connection.id),
            connection.name[:30] + "..." if len(connection.name) > 30 else connection.name,
            connection.provider_display_name,
            "[green]yes[/green]" if connection.is_active else "[red]no[/red]",
            connection.last_sync_at.strftime("%Y-%m-%d %H:%M") if connection.last_sync_at else "never",
            str(stats.total_synced),
            f"{stats.success_rate:.1f}%",
            f"{service.remaining_syncs(connection)}/{connection.hourly_rate_limit}",
        )

    console.print(table)


@app.command()
def sync_logs(
    connection_id: str = typer.Argument(..., help="Connection ID"),
    limit: int = typer.Option(10, "--limit", "-l", help="Number of runs to show"),
):
    """Show the most recent sync runs of a connection."""
    from ats_connect.core.exceptions import NotFoundError
    from ats_connect.services import get_integration_service

    _require_database()

    try:
        logs = get_integration_service().sync_history(connection_id, limit=limit)
    except NotFoundError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    if not logs:
        console.print("[yellow]No sync runs recorded.[/yellow]")
        raise typer.Exit(0)

    table = Table(title="Sync History")
    table.add_column("Started", style="dim")
    table.add_column("Type")
    table.add_column("Status", justify="center")
    table.add_column("Processed", justify="right")
    table.add_column("Created", justify="right")
    table.add_column("Updated", justify="right")
    table.add_column("Failed", justify="right")
    table.add_column("Duration", justify="right")

    for log in logs:
        status_color = {"completed": "green", "failed": "red"}.get(log.status, "yellow")
        table.add_row(
            log.started_at.strftime("%Y-%m-%d %H:%M:%S"),
            log.sync_type,
            f"[{status_color}]{log.status.upper()}[/{status_color}]",
            str(log.records_processed),
            str(log.records_created),
            str(log.records_updated),
            str(log.records_failed),
            log.formatted_duration,
        )

    console.print(table)


def _print_sync_results(results: dict) -> bool:
    table = Table(title="Sync Results")
    table.add_column("Connection", style="cyan")
    table.add_column("Status", justify="center")
    table.add_column("Processed", justify="right")
    table.add_column("Created", justify="right")
    table.add_column("Updated", justify="right")
    table.add_column("Failed", justify="right")
    table.add_column("Duration", justify="right")

    all_ok = True
    for result in results.values():
        if result.success:
            status = "[green]COMPLETED[/green]"
        elif result.rate_limited:
            status = "[yellow]RATE LIMITED[/yellow]"
        else:
            status = "[red]FAILED[/red]"
        all_ok = all_ok and result.success
        duration = f"{result.duration_seconds:.1f}s" if result.duration_seconds is not None else "-"
        table.add_row(
            result.connection_name,
            status,
            str(result.records_processed),
            str(result.records_created),
            str(result.records_updated),
            str(result.records_failed),
            duration,
        )

    console.print(table)

    for result in results.values():
        for error in result.errors[:5]:
            console.print(f"  [dim]{result.connection_name}:[/dim] [red]{error}[/red]")
    return all_ok


@app.command()
def sync(
    connection_id: Optional[str] = typer.Option(None, "--connection", "-c", help="Sync one connection"),
    provider: Optional[str] = typer.Option(None, "--provider", "-p", help="Sync every connection of a provider"),
    location: Optional[str] = typer.Option(None, "--location", help="Filter jobs by location"),
    keywords: Optional[str] = typer.Option(None, "--keywords", help="Filter jobs by keywords"),
    department: Optional[str] = typer.Option(None, "--department", help="Filter jobs by department"),
    sync_type: str = typer.Option("full", "--type", "-t", help="jobs, candidates, applications or full"),
    force: bool = typer.Option(False, "--force", help="Sync even when rate limited"),
):
    """Sync data from ATS connections."""
    from ats_connect.core.exceptions import NotFoundError, RateLimitedError
    from ats_connect.services import get_integration_service
    from ats_connect.utils.constants import AtsProvider, SyncType

    try:
        run_type = SyncType(sync_type.lower())
    except ValueError:
        console.print(f"[red]Invalid sync type: {sync_type}[/red]")
        console.print(f"[dim]Valid types: {', '.join(t.value for t in SyncType)}[/dim]")
        raise typer.Exit(1)

    if provider and AtsProvider.from_value(provider) is None:
        console.print(f"[red]Unknown provider: {provider}[/red]")
        console.print(f"[dim]Valid providers: {', '.join(p.value for p in AtsProvider)}[/dim]")
        raise typer.Exit(1)

    _require_database()
    service = get_integration_service()
    filters = {
        k: v
        for k, v in {"location": location, "keywords": keywords, "department": department}.items()
        if v
    }

    console.print("[yellow]Starting ATS synchronization...[/yellow]")

    if connection_id:
        try:
            result = service.sync_connection(connection_id, filters, sync_type=run_type, force=force)
        except NotFoundError:
            console.print(f"[red]ATS connection with ID {connection_id} not found.[/red]")
            raise typer.Exit(1)
        except RateLimitedError as e:
            console.print(f"[yellow]{e}[/yellow]")
            console.print("[dim]Use --force to override rate limiting.[/dim]")
            raise typer.Exit(1)
        results = {connection_id: result}
    else:
        results = service.sync_all(filters, provider=provider, force=force)

    if not results:
        console.print("[yellow]No active connections to sync.[/yellow]")
        raise typer.Exit(0)

    if not _print_sync_results(results):
        raise typer.Exit(1)
    console.print("\n[green]Synchronization completed.[/green]")


@app.command()
def process_webhooks(
    connection_id: Optional[str] = typer.Option(None, "--connection", "-c", help="Only this connection's webhooks"),
    event_type: Optional[str] = typer.Option(None, "--event-type", "-e", help="Only this event type"),
    failed: bool = typer.Option(False, "--failed", help="Process failed webhooks instead of pending ones"),
    retry: bool = typer.Option(False, "--retry", help="Reset and retry failed webhooks"),
    limit: int = typer.Option(100, "--limit", "-l", help="Maximum number of webhooks to process"),
):
    """Process pending ATS webhooks."""
    from ats_connect.core.exceptions import NotFoundError
    from ats_connect.services import get_integration_service

    _require_database()
    service = get_integration_service()

    console.print("[yellow]Starting ATS webhook processing...[/yellow]")
    try:
        batch = service.process_webhooks(
            limit=limit,
            connection_id=connection_id,
            event_type=event_type,
            failed_only=failed,
            retry=retry,
        )
    except NotFoundError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    if batch.total == 0:
        console.print("No webhooks to process.")
        raise typer.Exit(0)

    for result in batch.results:
        if result.status == "processed":
            console.print(f"  [green]✓[/green] {result.webhook_id} ({result.event_type})")
        else:
            console.print(f"  [red]✗[/red] {result.webhook_id} ({result.event_type}): {result.error}")

    console.print("\nWebhook processing completed:")
    console.print(f"  [green]Processed:[/green] {batch.processed}")
    console.print(f"  [red]Failed:[/red] {batch.failed}")

    if batch.failed:
        raise typer.Exit(1)


@app.command()
def stats():
    """Show mirror store statistics."""
    from ats_connect.services import get_integration_service

    _require_database()
    service = get_integration_service()

    table = Table(title="Database Counts")
    table.add_column("Collection", style="cyan")
    table.add_column("Count", justify="right", style="green")

    table.add_row("Connections", str(service.connections.count({})))
    table.add_row("Job Postings", str(service.job_postings.count({})))
    table.add_row("Candidates", str(service.candidates.count({})))
    table.add_row("Applications", str(service.applications.count({})))
    table.add_row("Sync Logs", str(service.sync_logs.count({})))
    table.add_row("Webhooks", str(service.webhooks.count({})))

    console.print(table)

    webhook_counts = service.webhooks.count_by_status()
    if any(webhook_counts.values()):
        console.print("\n[bold]Webhooks by Status:[/bold]")
        for status, count in webhook_counts.items():
            console.print(f"  {status}: {count}")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port"),
):
    """Serve the HTTP API."""
    from ats_connect.main import run_server

    run_server(host=host, port=port)


if __name__ == "__main__":
    app()

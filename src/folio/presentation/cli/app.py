"""Folio CLI application using Typer.

Operator utilities for the Folio backend: secret generation for
deployment configuration, serving the API, schema creation, and one-off
cleanup runs.
"""

import asyncio
import secrets

import typer
import uvicorn
from rich.console import Console
from rich.table import Table

from folio.presentation.api.app import build_account_service
from folio_config.settings import get_settings
from folio_identity.infrastructure.persistence.sqlalchemy import (
    create_engine,
    create_session_maker,
    create_tables,
)
from folio_identity.infrastructure.scheduling import AccountCleanupScheduler

app = typer.Typer(
    name="folio",
    help="Folio - student portfolio platform backend CLI",
    no_args_is_help=True,
)
console = Console()


# Create secrets subcommand group
secrets_app = typer.Typer(
    name="secrets",
    help="Secret generation utilities",
    no_args_is_help=True,
)
app.add_typer(secrets_app)

db_app = typer.Typer(
    name="db",
    help="Database schema utilities",
    no_args_is_help=True,
)
app.add_typer(db_app)

cleanup_app = typer.Typer(
    name="cleanup",
    help="Account cleanup",
    no_args_is_help=True,
)
app.add_typer(cleanup_app)


@secrets_app.command("generate")
def generate_secrets() -> None:
    """Generate secure secrets for Folio configuration.

    Generates the required secrets:
    - JWT_SECRET_KEY: Secret for signing JWT authentication tokens
    - POSTGRES_PASSWORD: Database password

    Copy the output to your .env file.
    """
    console.print("\n[bold green]Folio Secret Generation[/bold green]")
    console.print("=" * 60)
    console.print(
        "\nGenerated secrets for your [bold].env[/bold] configuration file:\n"
    )

    # 64 bytes of entropy for HS256
    jwt_secret = secrets.token_urlsafe(64)
    console.print(f"[cyan]JWT_SECRET_KEY[/cyan]={jwt_secret}")

    db_password = secrets.token_urlsafe(32)
    console.print(f"[cyan]POSTGRES_PASSWORD[/cyan]={db_password}")

    console.print("\n" + "=" * 60)
    console.print(
        "[yellow]⚠  Keep these secrets secure and never commit them "
        "to version control![/yellow]"
    )
    console.print(
        "[dim]Copy the above values to your config/.env (Docker) or "
        "config/.env.dev (local) file.[/dim]\n"
    )


@app.command("serve")
def serve(
    reload: bool = typer.Option(False, "--reload", help="Restart on code changes"),
) -> None:
    """Run the API server on API_HOST:API_PORT."""
    settings = get_settings()
    console.print(
        f"[green]Serving Folio on {settings.api_host}:{settings.api_port}[/green]"
    )
    uvicorn.run(
        "folio.presentation.api.app:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@db_app.command("init")
def db_init() -> None:
    """Create missing database tables (idempotent)."""

    async def _init() -> None:
        engine = create_engine(get_settings())
        try:
            await create_tables(engine)
        finally:
            await engine.dispose()

    asyncio.run(_init())
    console.print("[green]Database schema is up to date.[/green]")


@cleanup_app.command("run")
def run_cleanup() -> None:
    """Run both cleanup jobs once.

    Soft-deletes accounts unverified for more than 7 days, then permanently
    deletes accounts soft-deleted more than 23 days ago.
    """
    results = asyncio.run(_run_cleanup())

    table = Table(title="Account cleanup")
    table.add_column("Job")
    table.add_column("Rows affected", justify="right")
    failed = False
    for job, count in results.items():
        table.add_row(job, "[red]failed[/red]" if count is None else str(count))
        failed = failed or count is None
    console.print(table)

    if failed:
        raise typer.Exit(code=1)


async def _run_cleanup() -> dict[str, int | None]:
    settings = get_settings()
    engine = create_engine(settings)
    scheduler = AccountCleanupScheduler(
        session_maker=create_session_maker(engine),
        service_factory=lambda session: build_account_service(session, settings),
    )
    try:
        return {
            "Soft-delete unverified users": await scheduler.run_soft_delete(),
            "Permanently delete users": await scheduler.run_permanent_delete(),
        }
    finally:
        await engine.dispose()


def cli() -> None:
    """Entry point for the CLI application."""
    app()


if __name__ == "__main__":
    cli()

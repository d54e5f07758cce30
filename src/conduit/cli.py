"""Command line interface for Conduit."""

import os

import click

# Set CLI mode before importing other modules to keep import-time logging quiet
os.environ['CONDUIT_CLI_MODE'] = '1'

from conduit.core.config import settings
from conduit.core.database import SessionLocal, drop_tables, init_db
from conduit.core.logging import get_logger, setup_logging
from conduit.store import RelationalStore, count_rows, find_dangling_references

logger = get_logger(__name__)


def get_store() -> RelationalStore:
    """Store bound to the configured database."""
    return RelationalStore(SessionLocal)


@click.group()
@click.version_option(version=settings.app.version)
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
def main(verbose):
    """Conduit - relational store for the article-publishing platform."""
    setup_logging(cli_mode=not verbose)


@main.command()
def init_database():
    """Initialize the database."""
    click.echo("Initializing database...")
    init_db()
    click.echo("Database initialized successfully!")


@main.command()
@click.confirmation_option(prompt="Are you sure you want to drop all tables?")
def reset_database():
    """Reset the database (drop all tables)."""
    click.echo("Dropping all database tables...")
    drop_tables()
    init_db()
    click.echo("Database reset successfully!")


@main.command()
def stats():
    """Show the number of rows in every table."""
    store = get_store()
    with store.transaction() as session:
        counts = count_rows(session, store.graph)

    click.echo("Table Rows:")
    for table, rows in counts.items():
        click.echo(f"  {table}: {rows}")


@main.command()
def check():
    """Audit foreign keys and report rows pointing at missing parents."""
    store = get_store()
    with store.transaction() as session:
        dangling = find_dangling_references(session, store.graph)

    if not dangling:
        click.echo("✅ No dangling references found")
        return

    click.echo(f"❌ Found {len(dangling)} dangling references:")
    for item in dangling:
        click.echo(f"  {item.reference}: {item.row}")
    raise click.ClickException("Referential integrity check failed")


@main.command()
def config():
    """Show current configuration."""
    click.echo("Conduit Configuration:")
    click.echo(f"  Version: {settings.app.version}")
    click.echo(f"  Environment: {settings.app.environment}")
    click.echo(f"  Debug: {settings.app.debug}")
    click.echo(f"  Database URL: {settings.database.url}")
    click.echo(f"  Foreign Keys: {settings.database.foreign_keys}")
    click.echo(f"  Log Level: {settings.logging.level}")


if __name__ == "__main__":
    main()

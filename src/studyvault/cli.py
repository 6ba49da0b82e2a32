"""Command-line interface for StudyVault.

This module provides CLI commands for initializing and inspecting the
embedded store.
"""

import asyncio
import json
from collections.abc import Awaitable, Callable
from typing import Any, NoReturn, TypeVar

import click

from studyvault.application.services import VaultService
from studyvault.core.config import Settings, get_settings
from studyvault.core.exceptions import StoreError
from studyvault.core.logging import configure_logging, get_logger
from studyvault.core.timeouts import wait_with_timeout
from studyvault.infrastructure.persistence.database import EmbeddedStore, create_store

T = TypeVar("T")


def _json_default(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return f"<{len(value)} bytes>"
    return str(value)


def _dump(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False, default=_json_default)


def _parse_key(raw: str, string_key: bool) -> str | int:
    """Digit-only keys are integers unless --string-key is given."""
    if not string_key and raw.isdigit():
        return int(raw)
    return raw


def _run(settings: Settings, work: Callable[[EmbeddedStore], Awaitable[T]]) -> T:
    """Run one unit of work against a fresh store, then close it."""
    logger = get_logger(__name__)

    async def runner() -> T:
        store = create_store(settings)
        try:
            return await wait_with_timeout(work(store), settings.op_timeout_seconds)
        finally:
            await store.close()

    try:
        return asyncio.run(runner())
    except StoreError as e:
        click.echo(f"Error: {e.message}", err=True)
        logger.error("CLI command failed", error=e.message, collection=e.collection)
        raise SystemExit(1)


@click.group()
@click.version_option(version="0.1.0", prog_name="StudyVault")
@click.option(
    "--database-url",
    type=str,
    default=None,
    help="SQLite database URL (overrides config)",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    default=None,
    help="Set log level (overrides config)",
)
@click.pass_context
def cli(ctx: click.Context, database_url: str | None, log_level: str | None) -> None:
    """StudyVault - embedded object store for the study hub."""
    settings = get_settings()
    overrides: dict[str, Any] = {}
    if database_url:
        overrides["database_url"] = database_url
    if log_level:
        overrides["log_level"] = log_level
    if overrides:
        settings = Settings(**{**settings.model_dump(), **overrides})

    configure_logging(settings)
    ctx.obj = settings


@cli.command("init-db")
@click.pass_obj
def init_db(settings: Settings) -> None:
    """Open the store and create or upgrade its collections."""

    async def work(store: EmbeddedStore) -> list[str]:
        await store.init()
        return store.collections

    collections = _run(settings, work)
    click.echo(f"Store initialized at version {settings.schema_version}.")
    click.echo(f"Collections: {', '.join(collections)}")


@cli.command()
@click.pass_obj
def collections(settings: Settings) -> None:
    """List collections and their record counts."""

    async def work(store: EmbeddedStore) -> dict[str, int]:
        await store.init()
        return {name: await store.count(name) for name in store.collections}

    for name, total in _run(settings, work).items():
        click.echo(f"{name:<16}{total}")


@cli.command("list")
@click.argument("collection")
@click.option("--type", "record_type", default=None, help="Only records of this type")
@click.pass_obj
def list_records(settings: Settings, collection: str, record_type: str | None) -> None:
    """Print every record in COLLECTION as JSON."""

    async def work(store: EmbeddedStore) -> list[dict[str, Any]]:
        if record_type is None:
            return await store.get_all(collection)
        return await store.find_by_type(collection, record_type)

    click.echo(_dump(_run(settings, work)))


@cli.command()
@click.argument("collection")
@click.argument("record_id")
@click.option("--string-key", is_flag=True, help="Treat a digit-only ID as a string")
@click.pass_obj
def get(settings: Settings, collection: str, record_id: str, string_key: bool) -> None:
    """Print the record RECORD_ID from COLLECTION."""
    key = _parse_key(record_id, string_key)
    record = _run(settings, lambda store: store.get(collection, key))
    if record is None:
        click.echo(f"Not found: {record_id}", err=True)
        raise SystemExit(2)
    click.echo(_dump(record))


@cli.command()
@click.argument("collection")
@click.argument("record_id")
@click.option("--string-key", is_flag=True, help="Treat a digit-only ID as a string")
@click.pass_obj
def delete(settings: Settings, collection: str, record_id: str, string_key: bool) -> None:
    """Delete the record RECORD_ID from COLLECTION (no-op if missing)."""
    key = _parse_key(record_id, string_key)
    _run(settings, lambda store: store.delete(collection, key))
    click.echo(f"Deleted {record_id} from {collection}.")


@cli.command()
@click.pass_obj
def stats(settings: Settings) -> None:
    """Show vault item count and storage used."""
    vault_stats = _run(settings, lambda store: VaultService(store).stats())
    click.echo(f"{vault_stats.count} Items")
    click.echo(f"Used: {vault_stats.total_bytes} bytes")


@cli.command()
@click.pass_obj
def info(settings: Settings) -> None:
    """Display StudyVault configuration."""
    click.echo(f"""
StudyVault v{settings.app_version}
{'=' * 40}

Configuration:
  Environment:  {settings.environment}
  Debug:        {settings.debug}

Store:
  URL:          {settings.database_url}
  Name:         {settings.store_name}
  Version:      {settings.schema_version}
  Journal:      {settings.db_journal_mode}
  Quota:        {settings.max_record_bytes} bytes per record

Logging:
  Level:        {settings.log_level}
  Format:       {settings.log_format}
""")


def main() -> NoReturn:
    """Main entry point for the CLI.

    Called by the `studyvault` command and by `python -m studyvault`.
    """
    cli()


if __name__ == "__main__":
    main()

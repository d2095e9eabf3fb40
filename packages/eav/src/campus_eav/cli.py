"""
cli.py — Click CLI entrypoint for inspecting and administering the EAV store.

Usage:
    campus-eav init-db
    campus-eav types
    campus-eav attributes course
    campus-eav show subject 12
    campus-eav query course -f semester=Fall --page 1 --limit 20
    campus-eav delete 12
"""

from __future__ import annotations

import json
import sys

import click

from campus_shared.config import settings
from campus_shared.db import ConnectionPool

from campus_eav.errors import EntityTypeNotFoundError
from campus_eav.query import QueryEngine
from campus_eav.registry import TypeRegistry
from campus_eav.schema import create_schema, seed_entity_types
from campus_eav.store import EntityStore
from campus_eav.utils.logging import configure_logging, get_logger

log = get_logger(__name__)


def _dump(data: object) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


def _parse_filters(raw: tuple[str, ...]) -> dict[str, str]:
    filters: dict[str, str] = {}
    for item in raw:
        name, sep, value = item.partition("=")
        if not sep or not name:
            raise click.BadParameter(f"expected name=value, got {item!r}", param_hint="--filter")
        filters[name.strip()] = value
    return filters


@click.group()
@click.option(
    "--log-level",
    default=settings.log_level,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Log level",
)
@click.option(
    "--database",
    default=settings.database_path,
    show_default=True,
    help="DuckDB database file (or :memory:)",
)
@click.pass_context
def main(ctx: click.Context, log_level: str, database: str) -> None:
    """campus-eav entity-attribute-value store."""
    configure_logging(log_level=log_level)
    pool = ConnectionPool(database)
    ctx.call_on_close(pool.close)
    ctx.obj = pool


@main.command("init-db")
@click.option("--seed/--no-seed", default=True, help="Declare the default entity types")
@click.pass_obj
def init_db(pool: ConnectionPool, seed: bool) -> None:
    """Create the EAV tables (idempotent) and seed default entity types."""
    create_schema(pool)
    click.echo(f"Schema ready: {pool.database_path}")
    if seed:
        type_ids = seed_entity_types(TypeRegistry(pool))
        for code, type_id in type_ids.items():
            click.echo(f"  {code:24s} id={type_id}")


@main.command()
@click.pass_obj
def types(pool: ConnectionPool) -> None:
    """List registered entity types."""
    entity_types = TypeRegistry(pool).list_entity_types()
    if not entity_types:
        click.echo("No entity types registered.")
        return
    for entity_type in entity_types:
        click.echo(f"  {entity_type.id:>4}  {entity_type.code:24s} {entity_type.label or ''}")


@main.command()
@click.argument("entity_type")
@click.pass_obj
def attributes(pool: ConnectionPool, entity_type: str) -> None:
    """List the attributes declared for ENTITY_TYPE."""
    registry = TypeRegistry(pool)
    try:
        type_id = registry.require_entity_type_id(entity_type)
    except EntityTypeNotFoundError as exc:
        raise click.ClickException(str(exc)) from exc
    for attribute in registry.list_attributes(type_id):
        flags = [
            flag
            for flag, on in (("required", attribute.is_required), ("unique", attribute.is_unique))
            if on
        ]
        click.echo(
            f"  {attribute.name:28s} {attribute.data_type.value:8s} {','.join(flags)}"
        )


@main.command()
@click.argument("entity_type")
@click.argument("entity_id", type=int)
@click.pass_obj
def show(pool: ConnectionPool, entity_type: str, entity_id: int) -> None:
    """Print one entity document as JSON."""
    try:
        doc = EntityStore(pool).fetch(entity_id, entity_type)
    except EntityTypeNotFoundError as exc:
        raise click.ClickException(str(exc)) from exc
    if doc is None:
        click.echo(f"{entity_type} #{entity_id} not found", err=True)
        sys.exit(1)
    _dump(doc)


@main.command()
@click.argument("entity_type")
@click.option("-f", "--filter", "filters", multiple=True, help="name=value equality filter")
@click.option("--page", default=1, show_default=True, type=click.IntRange(min=1))
@click.option("--limit", default=settings.default_page_size, show_default=True,
              type=click.IntRange(1, settings.max_page_size))
@click.pass_obj
def query(
    pool: ConnectionPool,
    entity_type: str,
    filters: tuple[str, ...],
    page: int,
    limit: int,
) -> None:
    """Print one page of ENTITY_TYPE entities matching every filter."""
    try:
        result = QueryEngine(pool).query(
            entity_type, _parse_filters(filters), page=page, limit=limit
        )
    except (EntityTypeNotFoundError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc
    if result.ignored_filters:
        click.echo(f"Ignored undeclared filters: {', '.join(result.ignored_filters)}", err=True)
    _dump(result.to_dict())


@main.command()
@click.argument("entity_id", type=int)
@click.pass_obj
def delete(pool: ConnectionPool, entity_id: int) -> None:
    """Delete an entity and all of its values."""
    EntityStore(pool).delete(entity_id)
    log.info("cli_delete", entity_id=entity_id)
    click.echo(f"Deleted entity #{entity_id}")


if __name__ == "__main__":
    main()

"""
CLI: ``chronicle db`` — database management commands.
"""

from __future__ import annotations

import typer

from chronicle.cli.utils import get_connection, load_settings, output

app = typer.Typer(no_args_is_help=True)


@app.command()
def init(
    database: str | None = typer.Option(None, "--database", "-d", help="Database URL or SQLite path"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Initialise database schema (create tables)."""
    from chronicle.core.schema import CORE_TABLES, create_tables

    settings = load_settings(database)
    conn = get_connection(settings, init_schema=False)
    try:
        created = create_tables(conn)
    finally:
        conn.close()
    output(
        {"database_url": settings.database_url, "tables": created, "names": sorted(CORE_TABLES.values())},
        as_json=json_out,
        title="Database Init",
    )

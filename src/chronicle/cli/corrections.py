"""
CLI: ``chronicle corrections`` — review task commands.
"""

from __future__ import annotations

import typer

from chronicle.cli.utils import fail, get_connection, load_settings, output

app = typer.Typer(no_args_is_help=True)

CORRECTION_COLUMNS = ["id", "item_type", "item_id", "correction_type", "status", "created_by", "created_at"]


@app.command("list")
def list_corrections(
    status: str | None = typer.Option("pending", "--status", "-s", help="pending, applied, rejected, reviewed"),
    item_type: str | None = typer.Option(None, "--item-type", help="knowledge, journal, doc"),
    all_statuses: bool = typer.Option(False, "--all", help="Ignore --status"),
    limit: int = typer.Option(100, "--limit", "-n"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List corrections (pending by default)."""
    from chronicle.core.repositories import CorrectionRepository

    conn = get_connection(load_settings(database))
    try:
        items = CorrectionRepository(conn).list_corrections(
            status=None if all_statuses else status,
            item_type=item_type,
            limit=limit,
        )
    finally:
        conn.close()
    output(items, as_json=json_out, title="Corrections", columns=CORRECTION_COLUMNS)


def _resolve(correction_id: int, action: str, actor: str, database: str | None, json_out: bool) -> None:
    from chronicle.core.errors import ChronicleError
    from chronicle.lifecycle.corrections import CorrectionApplier

    conn = get_connection(load_settings(database))
    try:
        applier = CorrectionApplier(conn, actor=actor)
        record = applier.apply(correction_id) if action == "apply" else applier.reject(correction_id)
    except ChronicleError as e:
        fail(e.message, e.category.value)
    finally:
        conn.close()
    output(record, as_json=json_out, title=f"Correction {correction_id}")


@app.command("apply")
def apply_correction(
    correction_id: int = typer.Argument(..., help="Correction ID"),
    actor: str = typer.Option("operator", "--actor", help="Recorded as applied_by"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Apply a pending correction."""
    _resolve(correction_id, "apply", actor, database, json_out)


@app.command("reject")
def reject_correction(
    correction_id: int = typer.Argument(..., help="Correction ID"),
    actor: str = typer.Option("operator", "--actor", help="Recorded as applied_by"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Reject a pending correction."""
    _resolve(correction_id, "reject", actor, database, json_out)

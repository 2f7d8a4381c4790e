"""
CLI: ``chronicle scheduler`` — run the agent.
"""

from __future__ import annotations

import time

import typer

from chronicle.cli.utils import console, fail, get_connection, load_settings, output

app = typer.Typer(no_args_is_help=True)


@app.command("run")
def run_scheduler(
    database: str | None = typer.Option(None, "--database", "-d"),
    once: bool = typer.Option(False, "--once", help="Run a single tick and exit"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Seed the jobs and fire them on their cron schedules until interrupted."""
    from chronicle.core.errors import ChronicleError
    from chronicle.lifecycle.pipelines import build_runtime

    settings = load_settings(database)
    conn = get_connection(settings)
    try:
        runtime = build_runtime(settings, conn=conn, init_schema=False)
        runtime.seed_jobs()
    except ChronicleError as e:
        conn.close()
        fail(e.message, e.category.value)

    scheduler = runtime.scheduler
    if once:
        try:
            outcomes = scheduler.tick()
        finally:
            conn.close()
        output(outcomes, as_json=json_out, title="Tick")
        return

    scheduler.start()
    console.print(
        f"[green]Scheduler running[/green] ({settings.scheduler_backend}, "
        f"every {settings.scheduler_interval_seconds}s). Ctrl+C to stop."
    )
    try:
        while scheduler.is_running:
            time.sleep(1.0)
    except KeyboardInterrupt:
        console.print("[dim]Stopping...[/dim]")
    finally:
        runtime.close()

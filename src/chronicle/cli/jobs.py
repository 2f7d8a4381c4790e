"""
CLI: ``chronicle jobs`` — Job Ledger commands.
"""

from __future__ import annotations

import typer

from chronicle.cli.utils import fail, get_connection, load_settings, output

app = typer.Typer(no_args_is_help=True)

JOB_COLUMNS = ["job_name", "job_type", "cron_expression", "enabled", "status", "last_run_at", "next_run_at"]


@app.command("seed")
def seed_jobs(
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Register the daytime and nightly jobs (idempotent)."""
    from chronicle.core.errors import ScheduleError
    from chronicle.lifecycle.pipelines import job_specs
    from chronicle.scheduling import JobLedger

    settings = load_settings(database)
    conn = get_connection(settings)
    try:
        ledger = JobLedger(conn)
        jobs = [ledger.register(spec) for spec in job_specs(settings)]
    except ScheduleError as e:
        fail(e.message, "SCHEDULE")
    finally:
        conn.close()
    output(jobs, as_json=json_out, title="Jobs", columns=JOB_COLUMNS)


@app.command("list")
def list_jobs(
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List all ledger jobs."""
    from chronicle.scheduling import JobLedger

    conn = get_connection(load_settings(database))
    try:
        jobs = JobLedger(conn).list_all()
    finally:
        conn.close()
    output(jobs, as_json=json_out, title="Jobs", columns=JOB_COLUMNS)


@app.command("show")
def show_job(
    job_name: str = typer.Argument(..., help="Job name"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show one job, including its last result or error."""
    from chronicle.scheduling import JobLedger

    conn = get_connection(load_settings(database))
    try:
        job = JobLedger(conn).get_by_name(job_name)
    finally:
        conn.close()
    if job is None:
        fail(f"Job not found: {job_name}", "NOT_FOUND")
    output(job, as_json=json_out, title=f"Job: {job_name}")


@app.command("trigger")
def trigger_job(
    job_name: str = typer.Argument(..., help="Job name"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Run a job now (skipped if it is already running)."""
    from chronicle.core.errors import ChronicleError
    from chronicle.lifecycle.pipelines import build_runtime

    settings = load_settings(database)
    conn = get_connection(settings)
    try:
        runtime = build_runtime(settings, conn=conn, init_schema=False)
        outcome = runtime.scheduler.trigger(job_name)
    except KeyError:
        fail(f"Job not found: {job_name}", "NOT_FOUND")
    except ChronicleError as e:
        fail(e.message, e.category.value)
    finally:
        conn.close()
    output(outcome, as_json=json_out, title=f"Trigger: {job_name}")
    if outcome.error:
        raise typer.Exit(code=1)


def _set_enabled(job_name: str, enabled: bool, database: str | None, json_out: bool) -> None:
    from chronicle.scheduling import JobLedger

    conn = get_connection(load_settings(database))
    try:
        ledger = JobLedger(conn)
        if not ledger.set_enabled(job_name, enabled):
            fail(f"Job not found: {job_name}", "NOT_FOUND")
        job = ledger.get_by_name(job_name)
    finally:
        conn.close()
    output(job, as_json=json_out, title=f"Job: {job_name}")


@app.command("pause")
def pause_job(
    job_name: str = typer.Argument(..., help="Job name"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Stop cron firing for a job."""
    _set_enabled(job_name, False, database, json_out)


@app.command("resume")
def resume_job(
    job_name: str = typer.Argument(..., help="Job name"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Re-enable a job; its next firing is computed from now."""
    _set_enabled(job_name, True, database, json_out)

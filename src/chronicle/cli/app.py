"""
Root Typer application for the chronicle CLI.
"""

from __future__ import annotations

import sys

import typer
from typer import Typer

app = Typer(
    name="chronicle",
    help="chronicle — scheduled maintenance of project knowledge and journals.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        try:
            v = pkg_version("chronicle")
        except PackageNotFoundError:
            from chronicle import __version__ as v
        typer.echo(f"chronicle {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """chronicle CLI — manage jobs, run the scheduler, review corrections."""
    from chronicle.core.logging import configure_logging
    from chronicle.core.settings import get_settings

    settings = get_settings()
    configure_logging(settings.log_level, settings.json_logs, stream=sys.stderr)


# ── Sub-command registration ─────────────────────────────────────────────

from chronicle.cli.corrections import app as corrections_app  # noqa: E402
from chronicle.cli.db import app as db_app  # noqa: E402
from chronicle.cli.jobs import app as jobs_app  # noqa: E402
from chronicle.cli.scheduler import app as scheduler_app  # noqa: E402

app.add_typer(db_app, name="db", help="Database operations.")
app.add_typer(jobs_app, name="jobs", help="Job Ledger management.")
app.add_typer(scheduler_app, name="scheduler", help="Run the scheduler.")
app.add_typer(corrections_app, name="corrections", help="Review task management.")

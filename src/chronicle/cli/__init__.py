"""
CLI layer for chronicle.

Provides a Typer application with sub-commands over the Job Ledger, the
scheduler and the corrections queue. Business logic lives in
``chronicle.lifecycle`` and ``chronicle.scheduling``; this package handles
only terminal transport: argument parsing, coloured output, and table
formatting.

Entry point::

    chronicle --help
"""

from chronicle.cli.app import app

__all__ = ["app"]

"""
NARDA CLI Wrapper (Typer + Rich)

Turns vendor warranty-credit invoices (rendered token documents or order CSV
exports) into journal-entry and vendor-credit intents, reconciled against a
local snapshot of the ledger.

All paths are resolved from a single workspace root:
  --data-dir / NARDA_DATA env var / current working directory
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.logging import RichHandler

from narda.workspace import Workspace

HELP_WRITE = "Persist reports (default: dry-run)"
HELP_LIMIT = "Maximum documents to process this run (default from settings)"

APP_HELP = "NARDA warranty-credit pipeline (local-only)"

app = typer.Typer(no_args_is_help=True, add_completion=False, help=APP_HELP)


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )


@app.callback()
def main(
    ctx: typer.Context,
    data_dir: Optional[Path] = typer.Option(
        None,
        "--data-dir",
        envvar="NARDA_DATA",
        help="Workspace root directory (default: current directory)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    """NARDA CLI: all paths resolved from a single workspace root."""
    configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["workspace"] = Workspace.resolve(data_dir)


def _ws(ctx: typer.Context) -> Workspace:
    return ctx.obj["workspace"]


@app.command()
def init(ctx: typer.Context):
    """Initialize a workspace with directories, starter settings and empty snapshots.

    Safe to run on an existing workspace: skips anything that already exists.

    Examples:
      narda --data-dir ~/credits init
      narda init
    """
    from narda.cli.command import init as cmd_init

    code = cmd_init.run(workspace=_ws(ctx))
    raise typer.Exit(code=code)


@app.command()
def extract(
    ctx: typer.Context,
    path: Optional[Path] = typer.Argument(None, help="Token document (default: every inbox/*.json)"),
):
    """Show invoice fields, columns and line items found in token documents."""
    from narda.cli.command import extract as cmd_extract

    code = cmd_extract.run(workspace=_ws(ctx), path=path)
    raise typer.Exit(code=code)


@app.command()
def classify(
    ctx: typer.Context,
    codes: list[str] = typer.Argument(..., help="NARDA codes to classify"),
    csv: bool = typer.Option(False, "--csv", help="Use the order CSV vocabulary"),
):
    """Show how NARDA codes would be posted.

    Examples:
      narda classify J1234 CONCDA SHORT
      narda classify --csv J12 REBATE
    """
    from narda.cli.command import classify as cmd_classify

    code = cmd_classify.run(workspace=_ws(ctx), codes=codes, csv=csv)
    raise typer.Exit(code=code)


@app.command()
def process(
    ctx: typer.Context,
    path: Optional[Path] = typer.Argument(None, help="Token document (default: every inbox/*.json)"),
    limit: Optional[int] = typer.Option(None, "--limit", min=1, help=HELP_LIMIT),
    write: bool = typer.Option(False, "--write", help=HELP_WRITE),
):
    """Plan journal entries and vendor credits for token documents.

    Safety: dry-run by default. Use --write to save reports under reports/.
    """
    from narda.cli.command import process as cmd_process

    code = cmd_process.run(workspace=_ws(ctx), path=path, limit=limit, write=write)
    raise typer.Exit(code=code)


@app.command("process-csv")
def process_csv(
    ctx: typer.Context,
    path: Optional[Path] = typer.Argument(None, help="Order CSV (default: every inbox/csv/*.csv)"),
    limit: Optional[int] = typer.Option(None, "--limit", min=1, help=HELP_LIMIT),
    write: bool = typer.Option(False, "--write", help=HELP_WRITE),
):
    """Plan journal entries and vendor credits for warranty order CSV exports.

    Safety: dry-run by default. Use --write to save reports under reports/.
    """
    from narda.cli.command import process_csv as cmd_process_csv

    code = cmd_process_csv.run(workspace=_ws(ctx), path=path, limit=limit, write=write)
    raise typer.Exit(code=code)


if __name__ == "__main__":
    app()

"""Run the pipeline over warranty order CSV exports."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from narda.model.document_io import DocumentFormatError, load_order_csv, scan_order_files
from narda.services.csv_order_service import CsvOrder
from narda.services.pipeline import BatchProcessor
from narda.workspace import Workspace

from .util import build_pipeline, console, persist_summary, print_summary


def run(
    *,
    workspace: Workspace,
    path: Optional[Path] = None,
    limit: Optional[int] = None,
    write: bool = False,
) -> int:
    """Split each export into orders and plan transactions for them.

    Returns:
        Exit code (0 = success, 1 = a file or the ledger snapshot could not be read)
    """
    try:
        context = build_pipeline(workspace)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        return 1

    paths = [path] if path is not None else scan_order_files(workspace.csv_inbox_dir)
    if not paths:
        console.print(f"[yellow]No order CSVs found in {workspace.csv_inbox_dir}[/yellow]")
        return 0

    exit_code = 0
    orders: list[CsvOrder] = []
    for csv_path in paths:
        try:
            frame = load_order_csv(csv_path)
        except (FileNotFoundError, DocumentFormatError) as e:
            console.print(f"[red]Error:[/red] {e}")
            exit_code = 1
            continue
        file_orders = context.pipeline.csv_orders.split_orders(frame)
        console.print(f"[cyan]{csv_path.name}[/]: {len(file_orders)} order(s)")
        orders.extend(file_orders)

    summary = BatchProcessor(context.pipeline).run(orders, limit)
    print_summary(summary, title="CSV orders")

    if not write:
        console.print("[dim]Dry run: use --write to save reports[/dim]")
        return exit_code

    intents_path, skips_path = persist_summary(workspace, context, summary, prefix="orders")
    console.print(f"[green]Wrote[/] {intents_path}")
    console.print(f"[green]Wrote[/] {skips_path}")
    return exit_code

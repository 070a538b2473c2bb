"""Show what the extractor finds in token documents (read-only)."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from rich.table import Table

from narda.extraction import extract_document
from narda.model.document_io import DocumentFormatError, load_token_document, scan_token_documents
from narda.model.settings_io import load_settings
from narda.workspace import Workspace

from .util import console, fmt_amount


def _document_paths(workspace: Workspace, path: Optional[Path]) -> list[Path]:
    if path is not None:
        return [path]
    return scan_token_documents(workspace.inbox_dir)


def run(*, workspace: Workspace, path: Optional[Path] = None) -> int:
    """Print fields, column positions and line items per token document.

    Returns:
        Exit code (0 = success, 1 = a file could not be read or nothing to do)
    """
    try:
        settings = load_settings(workspace.settings_config)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        return 1

    paths = _document_paths(workspace, path)
    if not paths:
        console.print(f"[yellow]No token documents found in {workspace.inbox_dir}[/yellow]")
        return 1

    exit_code = 0
    for doc_path in paths:
        try:
            document = load_token_document(doc_path)
        except (FileNotFoundError, DocumentFormatError) as e:
            console.print(f"[red]Error:[/red] {e}")
            exit_code = 1
            continue

        extracted = extract_document(document, settings)
        fields = extracted.fields
        columns = extracted.columns
        console.print(f"\n[bold cyan]{document.document_id}[/]")
        console.print(
            f"  Invoice: {fields.invoice_number or '[dim]none[/dim]'}  "
            f"Date: {fields.invoice_date or '[dim]none[/dim]'}  "
            f"Delivery: {fields.delivery_amount or '[dim]none[/dim]'}"
        )
        console.print(
            f"  Columns: code={columns.code_x} amount={columns.amount_x} "
            f"description={columns.description_x}"
        )

        table = Table(show_lines=False)
        table.add_column("Row y", justify="right")
        table.add_column("Code", style="cyan")
        table.add_column("Amount", justify="right")
        table.add_column("Bill number")
        for item in extracted.line_items:
            table.add_row(
                f"{item.row_coordinate:.1f}",
                item.code,
                fmt_amount(item.absolute_amount),
                item.original_bill_number or "",
            )
        if extracted.line_items:
            console.print(table)
        else:
            console.print("  [yellow]No line items extracted[/yellow]")

    return exit_code

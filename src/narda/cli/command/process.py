"""Run the full pipeline over the token documents in the inbox."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from narda.model.document import TokenDocument
from narda.model.document_io import DocumentFormatError, load_token_document, scan_token_documents
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
    """Plan transactions for token documents.

    Dry-run by default; with ``write`` the intents and skips reports are saved
    under reports/ and planned transaction ids are recorded in the registry.

    Returns:
        Exit code (0 = success, 1 = a file or the ledger snapshot could not be read)
    """
    try:
        context = build_pipeline(workspace)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        return 1

    paths = [path] if path is not None else scan_token_documents(workspace.inbox_dir)
    if not paths:
        console.print(f"[yellow]No token documents found in {workspace.inbox_dir}[/yellow]")
        return 0

    exit_code = 0
    documents: list[TokenDocument] = []
    for doc_path in paths:
        try:
            documents.append(load_token_document(doc_path))
        except (FileNotFoundError, DocumentFormatError) as e:
            console.print(f"[red]Error:[/red] {e}")
            exit_code = 1

    summary = BatchProcessor(context.pipeline).run(documents, limit)
    print_summary(summary, title="Token documents")

    if not write:
        console.print("[dim]Dry run: use --write to save reports[/dim]")
        return exit_code

    intents_path, skips_path = persist_summary(workspace, context, summary, prefix="documents")
    console.print(f"[green]Wrote[/] {intents_path}")
    console.print(f"[green]Wrote[/] {skips_path}")
    return exit_code

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from narda.config import NardaSettings
from narda.model.settings_io import load_settings
from narda.services.application_service import ApplicationPlanner
from narda.services.pipeline import BatchSummary, DocumentPipeline
from narda.services.transaction_planning_service import TransactionPlanner
from narda.storage.ledger_snapshot import (
    CsvAuthorizationLookup,
    CsvCustomerLookup,
    CsvTransactionRegistry,
    write_intents_report,
    write_skips_report,
)
from narda.workspace import Workspace

console = Console()


def fmt_amount(amt: Optional[Decimal]) -> Text:
    if amt is None:
        return Text("")
    s = f"{amt:,.2f}"
    if amt < 0:
        return Text(s, style="bold red")
    return Text(s)


@dataclass
class PipelineContext:
    settings: NardaSettings
    pipeline: DocumentPipeline
    registry: CsvTransactionRegistry


def build_pipeline(workspace: Workspace) -> PipelineContext:
    """Wire the pipeline to the workspace's ledger snapshot files.

    Raises:
        ValueError: If the settings file or a snapshot file is malformed.
    """
    settings = load_settings(workspace.settings_config)
    registry = CsvTransactionRegistry(workspace.transactions_path)
    customers = CsvCustomerLookup(workspace.open_invoices_path)
    planner = TransactionPlanner(
        authorizations=CsvAuthorizationLookup(workspace.authorizations_path),
        registry=registry,
        customers=customers,
        settings=settings,
    )
    pipeline = DocumentPipeline(planner, settings, applications=ApplicationPlanner(customers))
    return PipelineContext(settings=settings, pipeline=pipeline, registry=registry)


def print_summary(summary: BatchSummary, title: str) -> None:
    table = Table(title=title, show_lines=False)
    table.add_column("Document", style="cyan")
    table.add_column("Kind")
    table.add_column("Tran ID")
    table.add_column("Codes")
    table.add_column("Amount", justify="right")
    table.add_column("Detail", overflow="fold")

    for result in summary.results:
        for intent in result.intents:
            table.add_row(
                result.document_id,
                f"[green]{intent.kind.value}[/]",
                intent.tran_id,
                "+".join(intent.codes),
                fmt_amount(intent.total),
                intent.memo,
            )
        for skip in result.skips:
            table.add_row(
                result.document_id,
                f"[yellow]{skip.category.value}[/]",
                "",
                skip.code or "",
                fmt_amount(skip.amount),
                skip.reason,
            )
    console.print(table)

    counts = summary.category_counts()
    console.print(
        f"Processed {summary.processed_count} document(s): "
        f"[green]{len(summary.intents)} intent(s)[/], [yellow]{len(summary.skips)} skip(s)[/]"
    )
    for category, count in sorted(counts.items(), key=lambda kv: kv[0].value):
        console.print(f"  {category.value}: {count}  [dim]{category.description}[/dim]")
    if summary.deferred_ids:
        console.print(
            f"[yellow]Run limit reached; deferred {len(summary.deferred_ids)} document(s):[/] "
            + ", ".join(summary.deferred_ids)
        )


def persist_summary(
    workspace: Workspace, context: PipelineContext, summary: BatchSummary, prefix: str
) -> tuple[Path, Path]:
    """Write the intents and skips reports and record planned tran ids."""
    stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    intents_path = workspace.reports_dir / f"{prefix}-intents-{stamp}.json"
    skips_path = workspace.reports_dir / f"{prefix}-skips-{stamp}.csv"
    write_intents_report(intents_path, summary.intents)
    write_skips_report(skips_path, summary.skips)
    context.registry.record(summary.intents)
    return intents_path, skips_path

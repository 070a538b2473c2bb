"""Classify NARDA codes against the configured vocabulary."""

from __future__ import annotations

from rich.table import Table

from narda.model.settings_io import load_settings
from narda.model.verdict import VerdictKind
from narda.services.classification_service import ClassificationService
from narda.workspace import Workspace

from .util import console

_STYLES = {
    VerdictKind.journal_entry: "green",
    VerdictKind.vendor_credit: "cyan",
    VerdictKind.skip_short_ship: "yellow",
    VerdictKind.skip_unidentified: "red",
}


def run(*, workspace: Workspace, codes: list[str], csv: bool = False) -> int:
    """Print the verdict for each code.

    Args:
        workspace: Workspace whose settings supply the vocabulary
        codes: Codes to classify
        csv: Use the CSV export vocabulary instead of the invoice one

    Returns:
        Exit code (0 = success)
    """
    try:
        settings = load_settings(workspace.settings_config)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        return 1

    vocabulary = settings.csv_vocabulary if csv else settings.vocabulary
    service = ClassificationService(vocabulary)

    table = Table(title="NARDA classification")
    table.add_column("Code", style="bold")
    table.add_column("Verdict")
    for code in codes:
        verdict = service.classify(code)
        style = _STYLES[verdict.kind]
        table.add_row(code, f"[{style}]{verdict.kind.value}[/]")
    console.print(table)
    return 0

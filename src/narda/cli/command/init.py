"""Initialize a new NARDA workspace directory."""

from __future__ import annotations

from narda.workspace import Workspace

from .util import console

_STARTER_SETTINGS_YML = """\
# NARDA credit pipeline settings
# Every key is optional; omitted keys use the built-in defaults.
#
# Example:
#   vendor_name: MARCONE
#   tolerances:
#     row: 2.0          # same row when |y1 - y2| < row
#     column: 5.0       # inside a column when |x - column_x| < column
#     next_line: 15.0   # continuation line when 0 < dy <= next_line
#     amount: '0.01'
#   vocabulary:
#     vendor_credit: [CONCDA, CONCDAM, NF, CORE, CONCESSION]
#     journal_entry: ['^J\\d{4,6}$', '^INV\\d+$']
#     short_ship: [SHORT, BOX]
#   accounts:
#     accounts_payable: '111'
#     accounts_receivable: '119'
#     freight_in: '367'
#   max_documents_per_run: 75

vendor_name: MARCONE
"""

_SNAPSHOT_HEADERS = {
    "authorizations_path": "parent_id,parent_tranid,line_number,amount,item_identity,memo,status_text\n",
    "transactions_path": "tran_id,kind\n",
    "open_invoices_path": "code,entity_id,tranid,tran_date,amount_remaining\n",
}


def run(*, workspace: Workspace) -> int:
    """Create the workspace directories, starter settings and empty ledger snapshots.

    Skips anything that already exists (safe to run on an existing workspace).

    Returns:
        Exit code (0 = success)
    """
    root = workspace.root
    console.print(f"[bold cyan]Initializing workspace:[/] {root}\n")

    created = []
    skipped = []

    for directory in [
        workspace.inbox_dir,
        workspace.csv_inbox_dir,
        workspace.ledger_data_dir,
        workspace.reports_dir,
        workspace.settings_config.parent,
    ]:
        label = str(directory.relative_to(root)) + "/"
        if directory.exists():
            skipped.append(label)
        else:
            directory.mkdir(parents=True, exist_ok=True)
            created.append(label)

    files = [(workspace.settings_config, _STARTER_SETTINGS_YML)]
    files += [(getattr(workspace, attr), header) for attr, header in _SNAPSHOT_HEADERS.items()]
    for path, content in files:
        label = str(path.relative_to(root))
        if path.exists():
            skipped.append(label)
        else:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
            created.append(label)

    if created:
        console.print("[green]Created:[/]")
        for item in created:
            console.print(f"  {item}")
    if skipped:
        console.print("[dim]Already exists (skipped):[/dim]")
        for item in skipped:
            console.print(f"  [dim]{item}[/dim]")

    if not created:
        console.print("[green]Workspace already fully initialized.[/]")
    else:
        console.print(f"\n[green]Workspace ready at {root}[/]")
        console.print("\n[dim]Next steps:[/dim]")
        console.print("  1. Export authorizations, transactions and open invoices into data/")
        console.print("  2. Drop token documents (*.json) into inbox/ and order CSVs into inbox/csv/")
        console.print("  3. Run: narda process        (dry-run)")
        console.print("  4. Run: narda process --write")

    return 0

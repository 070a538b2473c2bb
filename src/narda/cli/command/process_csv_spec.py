from __future__ import annotations

import json
from pathlib import Path

from narda.cli.command.init import run as init_workspace
from narda.cli.command.process_csv import run
from narda.workspace import Workspace

HEADER = "OrderNo,NARDA Number,Part,Description,Price,Quantity,Total,Date Ordered\n"


def _workspace(tmp_path: Path, rows: str) -> Workspace:
    workspace = Workspace(root=tmp_path)
    init_workspace(workspace=workspace)
    workspace.open_invoices_path.write_text(
        "code,entity_id,tranid,tran_date\nJ12,C-1,INV9,2025-03-01\n"
    )
    (workspace.csv_inbox_dir / "orders.csv").write_text(HEADER + rows)
    return workspace


def it_should_plan_orders_and_write_reports(tmp_path: Path):
    workspace = _workspace(
        tmp_path,
        "7001,J12,A,,10.00,1,$10.00,3/2/2025\n"
        "7002,J12,A,,10.00,1,$99.00,3/2/2025\n",
    )

    assert run(workspace=workspace, write=True) == 0

    intents = json.loads(next(workspace.reports_dir.glob("orders-intents-*.json")).read_text())
    assert [(i["kind"], i["tran_id"]) for i in intents] == [
        ("journal_entry", "7001 CM"),
        ("application", "7001 CM"),
    ]
    skips = next(workspace.reports_dir.glob("orders-skips-*.csv")).read_text()
    assert "ORDER_TOTAL_MISMATCH" in skips


def it_should_honour_the_run_limit(tmp_path: Path, capsys):
    workspace = _workspace(
        tmp_path,
        "7001,J12,A,,10.00,1,$10.00,3/2/2025\n"
        "7002,J12,A,,10.00,1,$10.00,3/2/2025\n",
    )

    assert run(workspace=workspace, limit=1) == 0

    assert "order-7002" in capsys.readouterr().out


def it_should_fail_for_exports_missing_columns(tmp_path: Path):
    workspace = Workspace(root=tmp_path)
    bad = tmp_path / "bad.csv"
    bad.write_text("OrderNo,Part\n1,A\n")

    assert run(workspace=workspace, path=bad) == 1

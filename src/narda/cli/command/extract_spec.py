from __future__ import annotations

import json
from pathlib import Path

from narda.cli.command.extract import run
from narda.workspace import Workspace


def _write_invoice(path: Path) -> None:
    tokens = [
        ("Invoice Number", 10, 20),
        ("61234567", 120, 20),
        ("Invoice Date", 10, 35),
        ("3/14/2025", 120, 35),
        ("NARDA #", 50, 80),
        ("Description", 200, 80),
        ("Total", 500, 80),
        ("J1683", 50, 100),
        ("$50.00", 500, 100),
        ("6", 50, 112),
    ]
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps({"tokens": [{"text": t, "x": x, "y": y} for t, x, y in tokens]}))


def it_should_print_fields_and_line_items(tmp_path: Path, capsys):
    workspace = Workspace(root=tmp_path)
    _write_invoice(workspace.inbox_dir / "6123.json")

    code = run(workspace=workspace)

    out = capsys.readouterr().out
    assert code == 0
    assert "61234567" in out
    assert "J16836" in out


def it_should_fail_when_there_is_nothing_to_extract(tmp_path: Path):
    assert run(workspace=Workspace(root=tmp_path)) == 1


def it_should_fail_on_unreadable_documents(tmp_path: Path):
    bad = tmp_path / "bad.json"
    bad.write_text("{not json")

    assert run(workspace=Workspace(root=tmp_path), path=bad) == 1

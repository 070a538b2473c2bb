"""
File-backed ledger collaborators and run reports.

The planning service only sees three protocols (authorization lookup,
transaction registry, customer lookup). Here they are backed by CSV snapshots
exported from the ledger into the workspace data/ directory:

- data/authorizations.csv  parent_id,parent_tranid,line_number,amount,item_identity,memo,status_text
- data/transactions.csv    tran_id,kind
- data/open_invoices.csv   code,entity_id,tranid,tran_date[,amount_remaining]

A missing snapshot behaves as an empty ledger. Files are read with pandas,
every cell as text, once per collaborator instance.

Privacy:
- Local file I/O only; no network access.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, Optional

import pandas as pd

from narda.model.document import parse_amount
from narda.model.transaction import (
    AuthorizationLine,
    OpenInvoice,
    SkipRecord,
    TransactionIntent,
    TransactionKind,
)

logger = logging.getLogger(__name__)

AUTHORIZATION_COLUMNS = [
    "parent_id",
    "parent_tranid",
    "line_number",
    "amount",
    "item_identity",
    "memo",
    "status_text",
]
TRANSACTION_COLUMNS = ["tran_id", "kind"]
OPEN_INVOICE_COLUMNS = ["code", "entity_id", "tranid", "tran_date"]
OPTIONAL_OPEN_INVOICE_COLUMNS = ["amount_remaining"]
SKIP_REPORT_COLUMNS = [
    "document_id",
    "category",
    "description",
    "code",
    "bill_number",
    "amount",
    "reason",
    "details",
]


def read_snapshot(path: Path, columns: list[str]) -> pd.DataFrame:
    """Read a snapshot CSV as text; a missing file is an empty frame.

    Raises:
        ValueError: If the file lacks one of ``columns``.
    """
    if not path.exists():
        return pd.DataFrame(columns=columns)
    df = pd.read_csv(path, encoding="utf-8-sig", dtype=str, keep_default_na=False)
    df.columns = [str(c).strip() for c in df.columns]
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns in {path.name}: {', '.join(missing)}")
    return df


class CsvAuthorizationLookup:
    """Authorization lines whose memo mentions a bill number."""

    def __init__(self, path: Path):
        self.path = path
        self._frame: Optional[pd.DataFrame] = None

    @property
    def frame(self) -> pd.DataFrame:
        if self._frame is None:
            self._frame = read_snapshot(self.path, AUTHORIZATION_COLUMNS)
        return self._frame

    def find_lines(self, bill_number: str) -> list[AuthorizationLine]:
        df = self.frame
        if df.empty or not bill_number:
            return []
        hits = df[df["memo"].astype(str).str.contains(bill_number, regex=False)]
        lines: list[AuthorizationLine] = []
        for _, row in hits.iterrows():
            amount = parse_amount(row["amount"])
            if amount is None:
                logger.warning(
                    "Authorization %s line %s has unreadable amount %r",
                    row["parent_id"],
                    row["line_number"],
                    row["amount"],
                )
                continue
            lines.append(
                AuthorizationLine(
                    parent_id=str(row["parent_id"]).strip(),
                    parent_tranid=str(row["parent_tranid"]).strip() or None,
                    line_number=str(row["line_number"]).strip(),
                    amount=amount,
                    item_identity=str(row["item_identity"]).strip() or None,
                    memo=str(row["memo"]),
                    status_text=str(row["status_text"]).strip(),
                )
            )
        return lines


class CsvTransactionRegistry:
    """Transaction ids already present in the ledger, plus ones recorded this run."""

    def __init__(self, path: Path):
        self.path = path
        frame = read_snapshot(path, TRANSACTION_COLUMNS)
        self._known: set[tuple[str, str]] = {
            (str(t).strip(), str(k).strip()) for t, k in zip(frame["tran_id"], frame["kind"])
        }

    def exists(self, tran_id: str, kind: TransactionKind) -> bool:
        return (tran_id.strip(), str(kind)) in self._known

    def record(self, intents: Iterable[TransactionIntent]) -> int:
        """Append planned intents to the snapshot so later runs see them.

        Applications carry no transaction id of their own and are not recorded.
        Returns the number of rows written.
        """
        new_rows = []
        for intent in intents:
            if intent.kind == TransactionKind.application:
                continue
            key = (intent.tran_id, str(intent.kind))
            if key in self._known:
                continue
            self._known.add(key)
            new_rows.append({"tran_id": intent.tran_id, "kind": str(intent.kind)})
        if not new_rows:
            return 0
        self.path.parent.mkdir(parents=True, exist_ok=True)
        out = pd.DataFrame(new_rows, columns=TRANSACTION_COLUMNS)
        out.to_csv(self.path, mode="a", header=not self.path.exists(), index=False)
        return len(new_rows)


class CsvCustomerLookup:
    """Open customer invoices, most recent first.

    Serves both the credit-line customer lookup (by code) and the open
    invoice lookup used to apply journal entry credits (by job id or tranid).
    """

    def __init__(self, path: Path):
        self.path = path
        frame = read_snapshot(path, OPEN_INVOICE_COLUMNS).copy()
        for column in OPTIONAL_OPEN_INVOICE_COLUMNS:
            if column not in frame.columns:
                frame[column] = ""
        frame["_code"] = frame["code"].astype(str).str.strip().str.upper()
        frame["_tranid"] = frame["tranid"].astype(str).str.strip().str.upper()
        frame["_date"] = pd.to_datetime(frame["tran_date"], errors="coerce")
        # Stable sort keeps file order among equal dates; undated rows last
        self._frame = frame.sort_values("_date", ascending=False, na_position="last", kind="stable")

    def find_credit_entity(self, code: str) -> Optional[str]:
        hits = self._frame[self._frame["_code"] == code.strip().upper()]
        for entity in hits["entity_id"]:
            entity = str(entity).strip()
            if entity:
                return entity
        return None

    def find_open_invoices(self, job_id: str) -> list[OpenInvoice]:
        key = job_id.strip().upper()
        if not key:
            return []
        hits = self._frame[(self._frame["_code"] == key) | (self._frame["_tranid"] == key)]
        invoices: list[OpenInvoice] = []
        for _, row in hits.iterrows():
            entity = str(row["entity_id"]).strip()
            if not entity:
                continue
            invoices.append(
                OpenInvoice(
                    tranid=str(row["tranid"]).strip(),
                    entity_id=entity,
                    job_id=str(row["code"]).strip() or None,
                    tran_date=None if pd.isna(row["_date"]) else row["_date"].date(),
                    amount_remaining=parse_amount(row["amount_remaining"]),
                )
            )
        return invoices


# ---- Run reports ----


def write_intents_report(path: Path, intents: Iterable[TransactionIntent]) -> int:
    """Write intents as a JSON array. Returns the number written."""
    payload = [intent.model_dump(mode="json") for intent in intents]
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return len(payload)


def write_skips_report(path: Path, skips: Iterable[SkipRecord]) -> int:
    """Write skip records as CSV, one row per skip. Returns the number written."""
    rows = [
        {
            "document_id": s.document_id,
            "category": s.category.value,
            "description": s.category.description,
            "code": s.code or "",
            "bill_number": s.bill_number or "",
            "amount": "" if s.amount is None else str(s.amount),
            "reason": s.reason,
            "details": json.dumps(s.details, sort_keys=True) if s.details else "",
        }
        for s in skips
    ]
    path.parent.mkdir(parents=True, exist_ok=True)
    pd.DataFrame(rows, columns=SKIP_REPORT_COLUMNS).to_csv(path, index=False)
    return len(rows)


__all__ = [
    "AUTHORIZATION_COLUMNS",
    "TRANSACTION_COLUMNS",
    "OPEN_INVOICE_COLUMNS",
    "OPTIONAL_OPEN_INVOICE_COLUMNS",
    "read_snapshot",
    "CsvAuthorizationLookup",
    "CsvTransactionRegistry",
    "CsvCustomerLookup",
    "write_intents_report",
    "write_skips_report",
]

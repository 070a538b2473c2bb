"""
Application planning service - applies journal entry credits to open invoices.

Each credit line of a planned journal entry lowers the customer's balance.
The application planner finds the open invoice that credit belongs to and
plans how much of it to apply:

- Job ids come from the credit line memo: words starting with ``j``, or when
  there are none, words starting with ``inv`` (case-insensitive).
- A job id matches an open invoice by job code or by invoice tranid. The most
  recent invoice with a balance left is used.
- The applied amount is the smaller of the credit still unapplied and the
  invoice balance. An invoice without a known balance takes the whole credit.

A credit line with nothing to apply to becomes a NO_INVOICE_TO_APPLY skip.
Like planning, this never writes to the ledger.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional, Protocol

from narda.model.transaction import (
    ApplicationIntent,
    JournalEntryIntent,
    JournalLine,
    OpenInvoice,
    SkipCategory,
    SkipRecord,
)

from .transaction_planning_service import PlanResult

logger = logging.getLogger(__name__)


class OpenInvoiceLookup(Protocol):
    def find_open_invoices(self, job_id: str) -> list[OpenInvoice]: ...


def extract_job_ids(memo: Optional[str]) -> list[str]:
    """Job ids named in a memo, in order of appearance."""
    words = (memo or "").split()
    job_ids = [w for w in words if w.lower().startswith("j")]
    if not job_ids:
        job_ids = [w for w in words if w.lower().startswith("inv")]
    return job_ids


def _has_balance(invoice: OpenInvoice) -> bool:
    return invoice.amount_remaining is None or invoice.amount_remaining > 0


class ApplicationPlanner:
    def __init__(self, invoices: OpenInvoiceLookup):
        self.invoices = invoices

    def plan(self, entry: JournalEntryIntent) -> PlanResult:
        result = PlanResult()
        for line in entry.credit_lines:
            self._plan_line(entry, line, result)
        return result

    def _plan_line(self, entry: JournalEntryIntent, line: JournalLine, result: PlanResult) -> None:
        credit = line.credit or Decimal("0")
        if credit <= 0:
            return
        job_ids = extract_job_ids(line.memo)
        unapplied = credit
        for job_id in job_ids:
            invoice = self._most_recent_open(job_id)
            if invoice is None:
                logger.debug("%s: no open invoice for job %s", entry.document_id, job_id)
                continue
            applied = unapplied
            if invoice.amount_remaining is not None:
                applied = min(unapplied, invoice.amount_remaining)
            result.intents.append(
                ApplicationIntent(
                    document_id=entry.document_id,
                    tran_id=entry.tran_id,
                    tran_date=entry.tran_date,
                    memo=f"Auto-applied from JE transaction {entry.tran_id} for Job ID match",
                    job_id=job_id,
                    codes=[line.code] if line.code else [],
                    invoice_tranid=invoice.tranid,
                    entity=invoice.entity_id,
                    credit_amount=credit,
                    applied_amount=applied,
                )
            )
            logger.info(
                "%s: applying %s of %s to invoice %s (job %s)",
                entry.document_id,
                applied,
                credit,
                invoice.tranid,
                job_id,
            )
            unapplied -= applied
            if unapplied <= 0:
                return
        if unapplied == credit:
            reason = (
                f"No open invoice for job {', '.join(job_ids)}"
                if job_ids
                else f"No job id in memo {line.memo!r}"
            )
            logger.info("%s skipped %s: %s", entry.document_id, SkipCategory.no_invoice_to_apply.value, reason)
            result.skips.append(
                SkipRecord(
                    document_id=entry.document_id,
                    category=SkipCategory.no_invoice_to_apply,
                    reason=reason,
                    code=line.code,
                    amount=credit,
                    details={"journal_entry": entry.tran_id, "job_ids": ",".join(job_ids)},
                )
            )

    def _most_recent_open(self, job_id: str) -> Optional[OpenInvoice]:
        for invoice in self.invoices.find_open_invoices(job_id):
            if _has_balance(invoice):
                return invoice
        return None


__all__ = ["OpenInvoiceLookup", "ApplicationPlanner", "extract_job_ids"]

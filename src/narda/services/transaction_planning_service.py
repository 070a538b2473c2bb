"""
Transaction planning service - turns classified groups into transaction intents.

This is the functional core between reconciliation and the ledger. It decides
what should be created and why anything is skipped; it never writes. Ledger
knowledge comes in through three small collaborator protocols:

- AuthorizationLookup: candidate vendor return authorization lines for a bill
- TransactionRegistry: whether a transaction id already exists
- CustomerLookup: the customer entity a journal-entry credit line posts to

Journal entries
- All journal-entry codes of a document go into one entry: one debit line
  for the grand total, one credit line per code.
- Tran id is ``{invoice} CM``.

Vendor credits
- One per BillNumberGroup, sourced from the first authorization that
  reconciles. Tran id is the invoice number.
- A bill with any unreadable line amount is skipped whole.

A failure inside one group becomes a PROCESSING_ERROR skip for that group.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import StrEnum
from typing import Optional, Protocol

from narda.config import NardaSettings
from narda.model.document import BillNumberGroup, CodeGroup, DocumentFields, LineItem, parse_amount
from narda.model.transaction import (
    AuthorizationLine,
    JournalEntryIntent,
    JournalEntryLabel,
    JournalLine,
    SkipCategory,
    SkipRecord,
    TransactionIntent,
    TransactionKind,
    VendorCreditIntent,
    VendorCreditLine,
)
from narda.model.verdict import ClassificationVerdict, VerdictKind

from .classification_service import ClassificationService, journal_entry_label
from .reconciliation_service import (
    MatchMode,
    ReconciliationOutcome,
    ReconciliationService,
    ReconciliationStatus,
)

logger = logging.getLogger(__name__)

_DATE_PATTERN = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})")


class AuthorizationLookup(Protocol):
    def find_lines(self, bill_number: str) -> list[AuthorizationLine]: ...


class TransactionRegistry(Protocol):
    def exists(self, tran_id: str, kind: TransactionKind) -> bool: ...


class CustomerLookup(Protocol):
    def find_credit_entity(self, code: str) -> Optional[str]: ...


class DocumentSource(StrEnum):
    tokens = "tokens"
    csv = "csv"


@dataclass
class CreditDocument:
    """Everything planning needs to know about one extracted document."""

    document_id: str
    fields: DocumentFields
    code_groups: dict[str, CodeGroup]
    bill_groups: dict[str, BillNumberGroup]
    source: DocumentSource = DocumentSource.tokens


@dataclass
class PlanResult:
    intents: list[TransactionIntent] = field(default_factory=list)
    skips: list[SkipRecord] = field(default_factory=list)


def parse_invoice_date(text: Optional[str]) -> Optional[date]:
    """Read the first M/D/YYYY date in ``text``; None when absent or impossible."""
    if not text:
        return None
    match = _DATE_PATTERN.search(text)
    if match is None:
        return None
    month, day, year = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


class TransactionPlanner:
    """Plans intents for the documents of one run.

    Transaction ids planned earlier in the same run count as duplicates, so a
    single planner instance should live for exactly one batch.
    """

    def __init__(
        self,
        authorizations: AuthorizationLookup,
        registry: TransactionRegistry,
        customers: CustomerLookup,
        settings: Optional[NardaSettings] = None,
    ):
        self.settings = settings or NardaSettings()
        self.authorizations = authorizations
        self.registry = registry
        self.customers = customers
        self.reconciler = ReconciliationService(
            tolerance=self.settings.tolerances.amount,
            invalid_statuses=self.settings.invalid_authorization_statuses,
        )
        self._classifiers = {
            DocumentSource.tokens: ClassificationService(self.settings.vocabulary),
            DocumentSource.csv: ClassificationService(self.settings.csv_vocabulary),
        }
        self._planned: set[tuple[TransactionKind, str]] = set()

    def classifier_for(self, source: DocumentSource) -> ClassificationService:
        return self._classifiers[source]

    def plan(self, document: CreditDocument) -> PlanResult:
        result = PlanResult()
        classifier = self.classifier_for(document.source)
        verdicts = classifier.classify_all(document.code_groups)

        journal_groups: list[CodeGroup] = []
        for code, group in document.code_groups.items():
            verdict = verdicts[code]
            if verdict.is_skip:
                result.skips.append(self._skip_for_verdict(document, verdict, group))
            elif verdict.is_journal_entry:
                journal_groups.append(group)
            else:
                result.skips.extend(self._unbilled_items(document, group))

        if journal_groups:
            codes_label = "+".join(g.code for g in journal_groups)
            try:
                self._plan_journal_entry(document, journal_groups, result)
            except Exception as exc:
                result.skips.append(self._processing_error(document, exc, codes_label, None))

        for bill_number, bill_group in document.bill_groups.items():
            try:
                self._plan_vendor_credit(document, bill_group, result)
            except Exception as exc:
                result.skips.append(
                    self._processing_error(document, exc, bill_group.codes_label, bill_number)
                )
        return result

    # ---- Skips ----

    def _skip(
        self,
        document: CreditDocument,
        category: SkipCategory,
        reason: str,
        *,
        code: Optional[str] = None,
        bill_number: Optional[str] = None,
        amount: Optional[Decimal] = None,
        details: Optional[dict[str, str]] = None,
    ) -> SkipRecord:
        logger.info("%s skipped %s: %s", document.document_id, category.value, reason)
        return SkipRecord(
            document_id=document.document_id,
            category=category,
            reason=reason,
            code=code,
            bill_number=bill_number,
            amount=amount,
            details=details or {},
        )

    def _skip_for_verdict(
        self, document: CreditDocument, verdict: ClassificationVerdict, group: CodeGroup
    ) -> SkipRecord:
        if verdict.kind == VerdictKind.skip_short_ship:
            category = (
                SkipCategory.narda_skip_pattern
                if document.source == DocumentSource.csv
                else SkipCategory.short_ship
            )
        else:
            category = SkipCategory.unidentified_narda
        return self._skip(
            document,
            category,
            f"{category.description}: {group.code}",
            code=group.code,
            amount=group.total_amount,
        )

    def _unbilled_items(self, document: CreditDocument, group: CodeGroup) -> list[SkipRecord]:
        missing = [item for item in group.line_items if not item.original_bill_number]
        if not missing:
            return []
        total = sum((i.absolute_amount or Decimal("0") for i in missing), Decimal("0"))
        return [
            self._skip(
                document,
                SkipCategory.no_authorization_match,
                f"No original bill number found for {group.code}",
                code=group.code,
                amount=total,
            )
        ]

    def _processing_error(
        self,
        document: CreditDocument,
        exc: Exception,
        code: Optional[str],
        bill_number: Optional[str],
    ) -> SkipRecord:
        logger.exception("Planning failed for %s (%s)", document.document_id, code)
        return self._skip(
            document,
            SkipCategory.processing_error,
            f"{type(exc).__name__}: {exc}",
            code=code,
            bill_number=bill_number,
        )

    def _document_keys(self, document: CreditDocument) -> tuple[Optional[str], Optional[date]]:
        return document.fields.invoice_number, parse_invoice_date(document.fields.invoice_date)

    def _is_duplicate(self, tran_id: str, kind: TransactionKind) -> bool:
        return (kind, tran_id) in self._planned or self.registry.exists(tran_id, kind)

    # ---- Journal entries ----

    def _plan_journal_entry(
        self, document: CreditDocument, groups: list[CodeGroup], result: PlanResult
    ) -> None:
        codes = [g.code for g in groups]
        codes_label = "+".join(codes)
        total = sum((g.total_amount for g in groups), Decimal("0"))
        invoice, tran_date = self._document_keys(document)
        if not invoice or tran_date is None:
            result.skips.append(
                self._skip(
                    document,
                    SkipCategory.missing_document_fields,
                    "Invoice number or date not found; journal entry not planned",
                    code=codes_label,
                    amount=total,
                )
            )
            return

        tran_id = f"{invoice} CM"
        if self._is_duplicate(tran_id, TransactionKind.journal_entry):
            result.skips.append(
                self._skip(
                    document,
                    SkipCategory.duplicate_journal_entry,
                    f"Journal entry {tran_id} already exists",
                    code=codes_label,
                    amount=total,
                    details={"tran_id": tran_id},
                )
            )
            return

        vendor = self.settings.vendor_name
        accounts = self.settings.accounts
        credit_lines: list[JournalLine] = []
        unmatched: list[str] = []
        for group in groups:
            entity = self.customers.find_credit_entity(group.code)
            if entity is None:
                unmatched.append(group.code)
                continue
            credit_lines.append(
                JournalLine(
                    account=accounts.accounts_receivable,
                    credit=group.total_amount,
                    memo=f"{vendor} CM{invoice} {group.code}",
                    entity=entity,
                    code=group.code,
                )
            )
        if unmatched:
            result.skips.append(
                self._skip(
                    document,
                    SkipCategory.no_matching_open_invoice,
                    f"No open invoice for {', '.join(unmatched)}",
                    code=codes_label,
                    amount=total,
                    details={"unmatched_codes": "+".join(unmatched)},
                )
            )
            return

        label = journal_entry_label(groups)
        memo = _journal_entry_memo(vendor, invoice, label, codes)
        intent = JournalEntryIntent(
            document_id=document.document_id,
            tran_id=tran_id,
            tran_date=tran_date,
            memo=memo,
            label=label,
            codes=codes,
            debit_line=JournalLine(
                account=accounts.accounts_payable,
                debit=total,
                memo=memo,
                entity=accounts.vendor_entity,
            ),
            credit_lines=credit_lines,
        )
        self._planned.add((TransactionKind.journal_entry, tran_id))
        result.intents.append(intent)

    # ---- Vendor credits ----

    def _plan_vendor_credit(
        self, document: CreditDocument, group: BillNumberGroup, result: PlanResult
    ) -> None:
        bill = group.bill_number
        codes_label = group.codes_label
        invoice, tran_date = self._document_keys(document)
        if not invoice or tran_date is None:
            result.skips.append(
                self._skip(
                    document,
                    SkipCategory.missing_document_fields,
                    "Invoice number or date not found; vendor credit not planned",
                    code=codes_label,
                    bill_number=bill,
                    amount=group.total_amount,
                )
            )
            return

        if self._is_duplicate(invoice, TransactionKind.vendor_credit):
            result.skips.append(
                self._skip(
                    document,
                    SkipCategory.duplicate_vendor_credit,
                    f"Vendor credit {invoice} already exists",
                    code=codes_label,
                    bill_number=bill,
                    amount=group.total_amount,
                    details={"tran_id": invoice},
                )
            )
            return

        unreadable = [item for item in group.line_items if item.absolute_amount is None]
        if unreadable:
            result.skips.append(
                self._skip(
                    document,
                    SkipCategory.no_amount_match,
                    f"{len(unreadable)} line(s) on bill {bill} have no readable amount",
                    code=codes_label,
                    bill_number=bill,
                    amount=group.total_amount,
                    details={
                        "unreadable_amounts": "; ".join(f"{i.code}: {i.amount}" for i in unreadable)
                    },
                )
            )
            return

        candidates = self.authorizations.find_lines(bill)
        if not candidates:
            result.skips.append(
                self._skip(
                    document,
                    SkipCategory.no_authorization_match,
                    f"No vendor return authorization references bill {bill}",
                    code=codes_label,
                    bill_number=bill,
                    amount=group.total_amount,
                )
            )
            return

        mode = MatchMode.identity if document.source == DocumentSource.csv else MatchMode.amount
        outcome = self.reconciler.reconcile(group.line_items, candidates, mode, group.total_amount)
        if not outcome.is_matched:
            result.skips.append(self._skip_for_outcome(document, group, outcome))
            return

        delivery: Optional[Decimal] = None
        if document.source == DocumentSource.tokens:
            delivery = parse_amount(document.fields.delivery_amount)
            if delivery is not None and delivery <= 0:
                delivery = None
        intent = VendorCreditIntent(
            document_id=document.document_id,
            tran_id=invoice,
            tran_date=tran_date,
            memo=self._vendor_credit_memo(document, group, invoice, outcome),
            bill_number=bill,
            codes=list(group.codes),
            authorization_parent_id=outcome.parent_id or "",
            authorization_tranid=outcome.parent_tranid,
            matched_lines=[_credit_line(p.line_item, p.authorization_line) for p in outcome.pairs],
            delivery_amount=delivery,
            delivery_account=self.settings.accounts.freight_in if delivery is not None else None,
            department=self.settings.accounts.service_department,
        )
        self._planned.add((TransactionKind.vendor_credit, invoice))
        result.intents.append(intent)

    def _skip_for_outcome(
        self, document: CreditDocument, group: BillNumberGroup, outcome: ReconciliationOutcome
    ) -> SkipRecord:
        category = {
            ReconciliationStatus.total_mismatch: SkipCategory.vc_total_mismatch,
            ReconciliationStatus.invalid_status: SkipCategory.authorization_invalid_status,
        }.get(outcome.status, SkipCategory.no_amount_match)
        details = {
            "expected_total": str(outcome.expected_total),
            "matched_total": str(outcome.matched_total),
            "attempted_authorizations": ",".join(a.parent_id for a in outcome.attempts),
        }
        if outcome.status == ReconciliationStatus.total_mismatch:
            details["discrepancy"] = str(outcome.discrepancy)
            reason = (
                f"Matched {outcome.matched_total} of {outcome.expected_total} "
                f"(difference {outcome.discrepancy}) on authorization {outcome.parent_tranid or outcome.parent_id}"
            )
        elif outcome.status == ReconciliationStatus.invalid_status:
            reason = f"Authorization {outcome.parent_tranid or outcome.parent_id} is closed, rejected or cancelled"
        else:
            reason = f"No authorization line amounts match bill {group.bill_number}"
        return self._skip(
            document,
            category,
            reason,
            code=group.codes_label,
            bill_number=group.bill_number,
            amount=group.total_amount,
            details=details,
        )

    def _vendor_credit_memo(
        self,
        document: CreditDocument,
        group: BillNumberGroup,
        invoice: str,
        outcome: ReconciliationOutcome,
    ) -> str:
        tranid = outcome.parent_tranid or outcome.parent_id or ""
        if document.source == DocumentSource.csv:
            return (
                f"CSV Import: {group.codes_label} Credit - {invoice} - "
                f"Original Bill: {group.bill_number} - VRA: {tranid}"
            )
        return f"{group.codes_label} Credit - {invoice} - Bill: {group.bill_number} - VRMA: {tranid}"


def _journal_entry_memo(vendor: str, invoice: str, label: JournalEntryLabel, codes: list[str]) -> str:
    prefix = f"{vendor} CM{invoice}"
    if label == JournalEntryLabel.multi_group:
        return f"{prefix} Multi-NARDA Groups"
    if label == JournalEntryLabel.consolidated:
        return f"{prefix} Consolidated {codes[0]}"
    return f"{prefix} {codes[0]}"


def _credit_line(item: LineItem, line: AuthorizationLine) -> VendorCreditLine:
    amount = item.absolute_amount or Decimal("0")
    quantity = item.quantity or 1
    return VendorCreditLine(
        line_number=line.line_number,
        amount=amount,
        quantity=quantity,
        rate=amount / quantity,
        item_identity=line.item_identity or item.part_number,
    )


__all__ = [
    "AuthorizationLookup",
    "TransactionRegistry",
    "CustomerLookup",
    "DocumentSource",
    "CreditDocument",
    "PlanResult",
    "TransactionPlanner",
    "parse_invoice_date",
]

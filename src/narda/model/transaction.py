"""
Transaction intent models (what the ledger collaborator is asked to create).

Scope
- Pure Pydantic v2 models; no ledger I/O happens here.
- Journal entries debit accounts payable once and credit accounts receivable
  per code; vendor credits are sourced from a vendor return authorization.
- Applications settle a planned journal entry credit against the open
  customer invoice its memo names.
- SkipRecord captures everything that was not turned into an intent, with a
  category the batch report can group on.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import StrEnum
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .document import LineItem


class TransactionKind(StrEnum):
    journal_entry = "journal_entry"
    vendor_credit = "vendor_credit"
    application = "application"


class JournalEntryLabel(StrEnum):
    """How many codes and rows a journal entry was built from."""

    multi_group = "multi-group"
    consolidated = "consolidated"
    single = "single"


class AuthorizationLine(BaseModel):
    """One line of an externally sourced vendor return authorization."""

    model_config = ConfigDict(frozen=True)

    parent_id: str
    parent_tranid: Optional[str] = None
    line_number: str
    amount: Decimal
    item_identity: Optional[str] = None
    memo: Optional[str] = None
    status_text: str = ""


class MatchedPair(BaseModel):
    """A line item paired with the authorization line that sources its credit."""

    model_config = ConfigDict(frozen=True)

    line_item: LineItem
    authorization_line: AuthorizationLine


class JournalLine(BaseModel):
    account: str
    debit: Optional[Decimal] = None
    credit: Optional[Decimal] = None
    memo: str = ""
    entity: Optional[str] = None
    code: Optional[str] = None


class JournalEntryIntent(BaseModel):
    kind: Literal[TransactionKind.journal_entry] = TransactionKind.journal_entry
    document_id: str
    tran_id: str
    tran_date: date
    memo: str
    label: JournalEntryLabel
    codes: list[str]
    debit_line: JournalLine
    credit_lines: list[JournalLine]

    @property
    def total(self) -> Decimal:
        return self.debit_line.debit or Decimal("0")


class VendorCreditLine(BaseModel):
    """An authorization line kept on the credit, restated with invoice values."""

    line_number: str
    amount: Decimal
    quantity: Optional[int] = None
    rate: Optional[Decimal] = None
    item_identity: Optional[str] = None


class VendorCreditIntent(BaseModel):
    kind: Literal[TransactionKind.vendor_credit] = TransactionKind.vendor_credit
    document_id: str
    tran_id: str
    tran_date: date
    memo: str
    bill_number: str
    codes: list[str]
    authorization_parent_id: str
    authorization_tranid: Optional[str] = None
    matched_lines: list[VendorCreditLine]
    delivery_amount: Optional[Decimal] = None
    delivery_account: Optional[str] = None
    department: Optional[str] = None

    @property
    def total(self) -> Decimal:
        lines = sum((line.amount for line in self.matched_lines), Decimal("0"))
        return lines + (self.delivery_amount or Decimal("0"))


class OpenInvoice(BaseModel):
    """An open customer invoice, as listed in the ledger snapshot."""

    model_config = ConfigDict(frozen=True)

    tranid: str
    entity_id: str
    job_id: Optional[str] = None
    tran_date: Optional[date] = None
    amount_remaining: Optional[Decimal] = None


class ApplicationIntent(BaseModel):
    kind: Literal[TransactionKind.application] = TransactionKind.application
    document_id: str
    tran_id: str
    tran_date: date
    memo: str
    job_id: str
    codes: list[str]
    invoice_tranid: str
    entity: str
    credit_amount: Decimal
    applied_amount: Decimal

    @property
    def total(self) -> Decimal:
        return self.applied_amount


TransactionIntent = Union[JournalEntryIntent, VendorCreditIntent, ApplicationIntent]


class SkipCategory(StrEnum):
    short_ship = "SHORT_SHIP"
    unidentified_narda = "UNIDENTIFIED_NARDA"
    narda_skip_pattern = "NARDA_SKIP_PATTERN"
    missing_document_fields = "MISSING_DOCUMENT_FIELDS"
    no_line_items = "NO_LINE_ITEMS"
    order_total_mismatch = "ORDER_TOTAL_MISMATCH"
    duplicate_journal_entry = "DUPLICATE_JOURNAL_ENTRY"
    duplicate_vendor_credit = "DUPLICATE_VENDOR_CREDIT"
    no_matching_open_invoice = "NO_MATCHING_OPEN_INVOICE"
    no_authorization_match = "NO_AUTHORIZATION_MATCH"
    no_amount_match = "NO_AMOUNT_MATCH"
    vc_total_mismatch = "VC_TOTAL_MISMATCH"
    authorization_invalid_status = "AUTHORIZATION_INVALID_STATUS"
    no_invoice_to_apply = "NO_INVOICE_TO_APPLY"
    processing_error = "PROCESSING_ERROR"

    @property
    def description(self) -> str:
        return _SKIP_DESCRIPTIONS.get(self, self.value)


_SKIP_DESCRIPTIONS = {
    SkipCategory.short_ship: "Short Ship - Manual Processing Required",
    SkipCategory.unidentified_narda: "Unidentified NARDA - Manual Review Required",
    SkipCategory.narda_skip_pattern: "NARDA Pattern Requires Manual Review",
    SkipCategory.missing_document_fields: "Invoice Number or Date Not Found",
    SkipCategory.no_line_items: "No Line Items Extracted",
    SkipCategory.order_total_mismatch: "Order Total Does Not Match Line Items",
    SkipCategory.duplicate_journal_entry: "Journal Entry Already Exists",
    SkipCategory.duplicate_vendor_credit: "Vendor Credit Already Exists",
    SkipCategory.no_matching_open_invoice: "No Open Invoice For Credit Line Customer",
    SkipCategory.no_authorization_match: "No Vendor Return Authorization Found",
    SkipCategory.no_amount_match: "Line Amounts Unreadable Or Not Found On Authorization",
    SkipCategory.vc_total_mismatch: "Matched Lines Do Not Cover The Bill Total",
    SkipCategory.authorization_invalid_status: "Authorization Closed, Rejected or Cancelled",
    SkipCategory.no_invoice_to_apply: "No Open Invoice To Apply Journal Entry Credit To",
    SkipCategory.processing_error: "Unexpected Processing Error",
}


class SkipRecord(BaseModel):
    """Anything not converted into an intent, with the reason it was skipped."""

    document_id: str
    category: SkipCategory
    reason: str
    code: Optional[str] = None
    bill_number: Optional[str] = None
    amount: Optional[Decimal] = None
    details: dict[str, str] = Field(default_factory=dict)


__all__ = [
    "TransactionKind",
    "JournalEntryLabel",
    "AuthorizationLine",
    "MatchedPair",
    "JournalLine",
    "JournalEntryIntent",
    "VendorCreditLine",
    "VendorCreditIntent",
    "OpenInvoice",
    "ApplicationIntent",
    "TransactionIntent",
    "SkipCategory",
    "SkipRecord",
]

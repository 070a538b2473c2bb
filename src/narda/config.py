"""
Central configuration for the NARDA credit pipeline.

Tolerances, code patterns and vocabularies are specific to one vendor's
warranty-credit invoice family. They are kept as named constants here and
gathered into a Pydantic ``NardaSettings`` model so a workspace can override
them from config/narda.yml (see narda.model.settings_io).

Path resolution lives in narda.workspace.Workspace.
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

# Coordinate tolerances (page units of the rendered token stream)
ROW_TOLERANCE = 2.0  # |y1 - y2| < ROW_TOLERANCE -> same row
COLUMN_TOLERANCE = 5.0  # |x - column_x| < COLUMN_TOLERANCE -> inside column
NEXT_LINE_DISTANCE = 15.0  # 0 < next.y - y <= NEXT_LINE_DISTANCE -> continuation line

# Money comparisons
AMOUNT_TOLERANCE = Decimal("0.01")

# Batch driver
MAX_DOCUMENTS_PER_RUN = 75

COMPLETE_CODE_PATTERNS = [
    r"CONCDA",
    r"CONCDAM",
    r"NF",
    r"CORE",
    r"CONCES",
    r"CONCESSION",
    r"J\d{4,6}",
    r"INV\d+",
    r"SHORT",
    r"BOX",
]
PARTIAL_CODE_PATTERNS = [r"INV\d+", r"J\d+", r"CONCES"]

VENDOR_CREDIT_CODES = ["CONCDA", "CONCDAM", "NF", "CORE", "CONCESSION"]
JOURNAL_ENTRY_PATTERNS = [r"^J\d{4,6}$", r"^INV\d+$"]
SHORT_SHIP_CODES = ["SHORT", "BOX"]

# Authorization parents in these states cannot be credited
INVALID_AUTHORIZATION_STATUSES = ["Closed", "Rejected", "Cancelled"]


class Tolerances(BaseModel):
    """Coordinate and money tolerances used across extraction and matching."""

    model_config = ConfigDict(frozen=True)

    row: float = Field(default=ROW_TOLERANCE, gt=0)
    column: float = Field(default=COLUMN_TOLERANCE, gt=0)
    next_line: float = Field(default=NEXT_LINE_DISTANCE, gt=0)
    amount: Decimal = Field(default=AMOUNT_TOLERANCE, ge=0)


class CodePatterns(BaseModel):
    """Regular expressions recognising NARDA codes in the code column.

    Patterns are matched in full against the uppercased token text.
    """

    model_config = ConfigDict(frozen=True)

    complete: tuple[str, ...] = tuple(COMPLETE_CODE_PATTERNS)
    partial: tuple[str, ...] = tuple(PARTIAL_CODE_PATTERNS)


class CodeVocabulary(BaseModel):
    """Immutable classification vocabulary handed to the classification service."""

    model_config = ConfigDict(frozen=True)

    vendor_credit: tuple[str, ...] = tuple(VENDOR_CREDIT_CODES)
    journal_entry: tuple[str, ...] = tuple(JOURNAL_ENTRY_PATTERNS)
    short_ship: tuple[str, ...] = tuple(SHORT_SHIP_CODES)

    @classmethod
    def csv_default(cls) -> CodeVocabulary:
        """Vocabulary used by the CSV export, which writes bare J-numbers of any length."""
        return cls(
            journal_entry=(r"^J\d+$", r"^INV\d+$"),
            short_ship=("SHORT", "BOX", "REBATE"),
        )


class BillNumberRule(BaseModel):
    """How an original bill number is recognised inside description text.

    ``prefix_classes`` are tried in order; the prefixes inside one class share
    a priority. Within a class, ``prefer_last`` picks the last occurrence.
    """

    model_config = ConfigDict(frozen=True)

    prefix_classes: tuple[tuple[str, ...], ...] = (("HN",), ("W",), ("N",))
    min_digits: int = Field(default=7, ge=1)
    max_digits: int = Field(default=10, ge=1)
    prefer_last: bool = True

    @classmethod
    def csv_default(cls) -> BillNumberRule:
        return cls(prefix_classes=(("N", "W"),), min_digits=8, max_digits=10, prefer_last=False)


class LedgerAccounts(BaseModel):
    """Ledger identifiers stamped onto transaction intents."""

    model_config = ConfigDict(frozen=True)

    accounts_payable: str = "111"
    accounts_receivable: str = "119"
    freight_in: str = "367"
    vendor_entity: str = "2106"
    service_department: str = "13"


class NardaSettings(BaseModel):
    """Root settings object; mirrors config/narda.yml."""

    model_config = ConfigDict(frozen=True)

    vendor_name: str = "MARCONE"
    tolerances: Tolerances = Field(default_factory=Tolerances)
    code_patterns: CodePatterns = Field(default_factory=CodePatterns)
    vocabulary: CodeVocabulary = Field(default_factory=CodeVocabulary)
    csv_vocabulary: CodeVocabulary = Field(default_factory=CodeVocabulary.csv_default)
    bill_number: BillNumberRule = Field(default_factory=BillNumberRule)
    csv_bill_number: BillNumberRule = Field(default_factory=BillNumberRule.csv_default)
    accounts: LedgerAccounts = Field(default_factory=LedgerAccounts)
    invalid_authorization_statuses: tuple[str, ...] = tuple(INVALID_AUTHORIZATION_STATUSES)
    max_documents_per_run: int = Field(default=MAX_DOCUMENTS_PER_RUN, ge=1)


__all__ = [
    "ROW_TOLERANCE",
    "COLUMN_TOLERANCE",
    "NEXT_LINE_DISTANCE",
    "AMOUNT_TOLERANCE",
    "MAX_DOCUMENTS_PER_RUN",
    "Tolerances",
    "CodePatterns",
    "CodeVocabulary",
    "BillNumberRule",
    "LedgerAccounts",
    "NardaSettings",
]

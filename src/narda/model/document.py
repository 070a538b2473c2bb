"""
Document models for warranty-credit invoices.

Scope
- Pure Pydantic v2 models; no I/O.
- PositionedToken is the atomic unit produced by the external renderer.
- LineItem / CodeGroup / BillNumberGroup form the two grouping dimensions used
  by classification and reconciliation. Both groupings hold references to the
  same LineItem instances; nothing is copied between them.
"""

from __future__ import annotations

import math
import re
from decimal import Decimal, InvalidOperation
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

_CURRENCY_PUNCTUATION = re.compile(r"[$,()\s]")


def parse_amount(text: Optional[str]) -> Optional[Decimal]:
    """Parse signed currency text such as ``$1,234.50`` or ``($75.00)``.

    Parenthesised values are negative. Returns None when the text is empty or
    not numeric once currency punctuation is stripped.
    """
    if text is None:
        return None
    raw = str(text).strip()
    if not raw:
        return None
    negative = raw.startswith("(") and raw.endswith(")")
    cleaned = _CURRENCY_PUNCTUATION.sub("", raw)
    if not cleaned:
        return None
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return -abs(value) if negative else value


class PositionedToken(BaseModel):
    """One text fragment with its rendered page position (y grows downward)."""

    model_config = ConfigDict(frozen=True)

    text: str
    x: float
    y: float


class TokenDocument(BaseModel):
    """A document identifier plus its flat token stream."""

    document_id: str = Field(min_length=1)
    tokens: list[PositionedToken] = Field(default_factory=list)


class DocumentFields(BaseModel):
    """Document-level scalars. Absence of any field is a valid outcome."""

    invoice_number: Optional[str] = None
    invoice_date: Optional[str] = None
    delivery_amount: Optional[str] = None


class ColumnPositions(BaseModel):
    """Header x-coordinates of the table columns, plus the header row y."""

    code_x: Optional[float] = None
    amount_x: Optional[float] = None
    description_x: Optional[float] = None
    header_y: Optional[float] = None

    @property
    def can_extract(self) -> bool:
        return self.code_x is not None and self.amount_x is not None


class LineItem(BaseModel):
    """One table row: a code, its signed amount text and an optional bill number.

    ``row_coordinate`` is the row identity used for deduplication. CSV-sourced
    items additionally carry the part number (item identity), description and
    quantity of the row.
    """

    model_config = ConfigDict(frozen=True)

    code: str
    amount: str
    original_bill_number: Optional[str] = None
    row_coordinate: float
    part_number: Optional[str] = None
    description: Optional[str] = None
    quantity: Optional[int] = None

    @property
    def absolute_amount(self) -> Optional[Decimal]:
        value = parse_amount(self.amount)
        return abs(value) if value is not None else None

    @property
    def row_key(self) -> int:
        # Halves round up, so 100.5 and 101.4 share a row
        return math.floor(self.row_coordinate + 0.5)


class CodeGroup(BaseModel):
    """All line items sharing one code, with a running absolute total."""

    code: str
    line_items: list[LineItem] = Field(default_factory=list)
    total_amount: Decimal = Decimal("0")
    original_bill_numbers: list[str] = Field(default_factory=list)

    def add(self, item: LineItem) -> None:
        self.line_items.append(item)
        amount = item.absolute_amount
        if amount is not None:
            self.total_amount += amount
        bill = item.original_bill_number
        if bill and bill not in self.original_bill_numbers:
            self.original_bill_numbers.append(bill)


class BillNumberGroup(BaseModel):
    """Vendor-credit line items from any code that reference one original bill."""

    bill_number: str
    line_items: list[LineItem] = Field(default_factory=list)
    total_amount: Decimal = Decimal("0")
    codes: list[str] = Field(default_factory=list)

    @property
    def codes_label(self) -> str:
        return "+".join(self.codes)


__all__ = [
    "parse_amount",
    "PositionedToken",
    "TokenDocument",
    "DocumentFields",
    "ColumnPositions",
    "LineItem",
    "CodeGroup",
    "BillNumberGroup",
]

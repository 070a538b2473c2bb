"""
Field locator: document-level scalars found by label-anchored row scanning.

Each field has a label predicate and a value predicate. Every label hit is
tried in token order; for a hit, the first token on the same row and strictly
to its right whose text passes the value predicate is the field value.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Optional

from narda.model.document import DocumentFields, PositionedToken

from .token_index import SpatialTokenIndex

INVOICE_NUMBER_PATTERN = re.compile(r"^[67]\d{7}$")
INVOICE_DATE_PATTERN = re.compile(r"\d{1,2}/\d{1,2}/\d{4}")
DELIVERY_AMOUNT_PATTERN = re.compile(r"\$\d+\.\d{2}")


@dataclass(frozen=True)
class FieldRule:
    """Label and value predicates for one document field."""

    name: str
    is_label: Callable[[str], bool]
    is_value: Callable[[str], bool]


def _invoice_number_label(text: str) -> bool:
    lowered = text.lower()
    return "invoice number" in lowered or lowered == "invoice:"


def _invoice_date_label(text: str) -> bool:
    lowered = text.lower()
    return "invoice date" in lowered or lowered == "date:"


def _delivery_label(text: str) -> bool:
    return "delivery" in text.lower()


INVOICE_NUMBER = FieldRule(
    name="invoice_number",
    is_label=_invoice_number_label,
    is_value=lambda text: bool(INVOICE_NUMBER_PATTERN.match(text.strip())),
)
INVOICE_DATE = FieldRule(
    name="invoice_date",
    is_label=_invoice_date_label,
    is_value=lambda text: bool(INVOICE_DATE_PATTERN.search(text)),
)
DELIVERY_AMOUNT = FieldRule(
    name="delivery_amount",
    is_label=_delivery_label,
    is_value=lambda text: bool(DELIVERY_AMOUNT_PATTERN.search(text)),
)


def locate_field(index: SpatialTokenIndex, rule: FieldRule) -> Optional[str]:
    """Return the first accepted value for ``rule``, or None when absent."""
    for label in index.find(lambda t: rule.is_label(t.text)):
        value = _value_for_label(index, label, rule)
        if value is not None:
            return value
    return None


def _value_for_label(
    index: SpatialTokenIndex, label: PositionedToken, rule: FieldRule
) -> Optional[str]:
    for candidate in index.right_of_on_row(label):
        if rule.is_value(candidate.text):
            return candidate.text.strip()
    return None


def locate_document_fields(index: SpatialTokenIndex) -> DocumentFields:
    return DocumentFields(
        invoice_number=locate_field(index, INVOICE_NUMBER),
        invoice_date=locate_field(index, INVOICE_DATE),
        delivery_amount=locate_field(index, DELIVERY_AMOUNT),
    )


__all__ = [
    "FieldRule",
    "INVOICE_NUMBER",
    "INVOICE_DATE",
    "DELIVERY_AMOUNT",
    "locate_field",
    "locate_document_fields",
]

"""
CSV order service - warranty order exports as line items.

An export holds rows for many orders. Each distinct OrderNo (first-seen
order) becomes one CsvOrder whose invoice number is the OrderNo and whose
date and reported total come from the order's first row. Rows without a NARDA
value are not line items. A line amount is |price x quantity|; the part number
is the item identity used by reconciliation.

Before planning, the line amounts must add up to the reported order total.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

import pandas as pd

from narda.config import NardaSettings
from narda.extraction.bill_numbers import extract_bill_number
from narda.model.document import DocumentFields, LineItem, parse_amount

logger = logging.getLogger(__name__)


@dataclass
class CsvOrder:
    order_number: str
    invoice_date: Optional[str]
    reported_total: Optional[str]
    line_items: list[LineItem] = field(default_factory=list)

    @property
    def document_id(self) -> str:
        return f"order-{self.order_number}"

    @property
    def fields(self) -> DocumentFields:
        return DocumentFields(invoice_number=self.order_number, invoice_date=self.invoice_date)

    @property
    def computed_total(self) -> Decimal:
        return sum((i.absolute_amount or Decimal("0") for i in self.line_items), Decimal("0"))


@dataclass
class OrderTotalCheck:
    is_valid: bool
    computed_total: Decimal
    reported_total: Optional[Decimal]

    @property
    def difference(self) -> Optional[Decimal]:
        if self.reported_total is None:
            return None
        return abs(self.computed_total - self.reported_total)


def _cell(row: pd.Series, column: str) -> str:
    value = row.get(column, "")
    return "" if pd.isna(value) else str(value).strip()


def _parse_quantity(text: str) -> Optional[int]:
    value = parse_amount(text)
    if value is None:
        return None
    return int(value)


class CsvOrderService:
    def __init__(self, settings: Optional[NardaSettings] = None):
        self.settings = settings or NardaSettings()

    def split_orders(self, frame: pd.DataFrame) -> list[CsvOrder]:
        """Build one CsvOrder per OrderNo, in first-seen order."""
        numbers = frame["OrderNo"].astype(str).str.strip()
        orders: list[CsvOrder] = []
        for order_number in numbers.unique():
            if not order_number:
                continue
            rows = frame[numbers == order_number]
            orders.append(self.build_order(order_number, rows))
        return orders

    def build_order(self, order_number: str, rows: pd.DataFrame) -> CsvOrder:
        first = rows.iloc[0]
        order = CsvOrder(
            order_number=order_number,
            invoice_date=_cell(first, "Date Ordered") or None,
            reported_total=_cell(first, "Total") or None,
        )
        for position, (_, row) in enumerate(rows.iterrows()):
            try:
                item = self.build_line_item(row, position)
            except Exception:
                logger.warning("Order %s row %d could not be read", order_number, position, exc_info=True)
                continue
            if item is not None:
                order.line_items.append(item)
        return order

    def build_line_item(self, row: pd.Series, position: int) -> Optional[LineItem]:
        code = _cell(row, "NARDA Number").upper()
        if not code:
            return None
        price = parse_amount(_cell(row, "Price"))
        quantity = _parse_quantity(_cell(row, "Quantity"))
        if price is None or quantity is None:
            logger.debug("Row %d (%s) has no usable price or quantity", position, code)
            return None
        description = _cell(row, "Description")
        return LineItem(
            code=code,
            amount=str(abs(price * quantity)),
            original_bill_number=extract_bill_number(description, self.settings.csv_bill_number),
            row_coordinate=float(position),
            part_number=_cell(row, "Part") or None,
            description=description or None,
            quantity=quantity,
        )

    def check_total(self, order: CsvOrder) -> OrderTotalCheck:
        """Compare line amounts with the reported order total.

        A missing or unreadable reported total fails the check.
        """
        computed = order.computed_total
        reported = parse_amount(order.reported_total)
        if reported is None:
            return OrderTotalCheck(is_valid=False, computed_total=computed, reported_total=None)
        reported = abs(reported)
        is_valid = abs(computed - reported) < self.settings.tolerances.amount
        return OrderTotalCheck(is_valid=is_valid, computed_total=computed, reported_total=reported)


__all__ = ["CsvOrder", "OrderTotalCheck", "CsvOrderService"]

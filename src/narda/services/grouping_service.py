"""
Grouping service - the two grouping dimensions over extracted line items.

- CodeGroup: every line item under its code, with an absolute-amount total.
- BillNumberGroup: vendor-credit items from any code that reference the same
  original bill number.

Both groupings reference the same LineItem objects.
"""

from __future__ import annotations

import logging
from typing import Iterable

from narda.model.document import BillNumberGroup, CodeGroup, LineItem

from .classification_service import ClassificationService

logger = logging.getLogger(__name__)


def group_by_code(items: Iterable[LineItem]) -> dict[str, CodeGroup]:
    """Group items by code in first-seen order.

    Amounts that do not parse are left out of the total but the item is kept.
    """
    groups: dict[str, CodeGroup] = {}
    for item in items:
        group = groups.get(item.code)
        if group is None:
            group = CodeGroup(code=item.code)
            groups[item.code] = group
        if item.absolute_amount is None:
            logger.debug("Non-numeric amount %r for code %s left out of total", item.amount, item.code)
        group.add(item)
    return groups


def group_by_bill_number(
    code_groups: dict[str, CodeGroup], classifier: ClassificationService
) -> dict[str, BillNumberGroup]:
    """Consolidate vendor-credit code groups that share an original bill number.

    Items without a bill number cannot be reconciled and are not grouped.
    """
    groups: dict[str, BillNumberGroup] = {}
    for code, code_group in code_groups.items():
        if not classifier.classify(code).is_vendor_credit:
            continue
        for item in code_group.line_items:
            bill = item.original_bill_number
            if not bill:
                continue
            group = groups.get(bill)
            if group is None:
                group = BillNumberGroup(bill_number=bill)
                groups[bill] = group
            group.line_items.append(item)
            amount = item.absolute_amount
            if amount is not None:
                group.total_amount += amount
            if code not in group.codes:
                group.codes.append(code)
    return groups


__all__ = ["group_by_code", "group_by_bill_number"]

"""
Original bill number recognition inside free-text descriptions.

A bill number is a run of digits directly after a known prefix (e.g. HN, W,
N). Prefix classes are tried in priority order; only digit runs whose length
is inside the rule's bounds count. Within one class the rule decides whether
the first or the last occurrence wins. The digits are returned without the
prefix.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Optional

from narda.config import BillNumberRule


@lru_cache(maxsize=32)
def _prefix_pattern(prefixes: tuple[str, ...]) -> re.Pattern[str]:
    alternation = "|".join(re.escape(p.upper()) for p in sorted(prefixes, key=len, reverse=True))
    return re.compile(rf"(?:{alternation})(\d+)")


def extract_bill_number(text: Optional[str], rule: Optional[BillNumberRule] = None) -> Optional[str]:
    """Return the bill number digits found in ``text`` under ``rule``, or None."""
    if not text:
        return None
    rule = rule or BillNumberRule()
    upper = text.upper()
    for prefixes in rule.prefix_classes:
        digits = [m.group(1) for m in _prefix_pattern(tuple(prefixes)).finditer(upper)]
        valid = [d for d in digits if rule.min_digits <= len(d) <= rule.max_digits]
        if valid:
            return valid[-1] if rule.prefer_last else valid[0]
    return None


__all__ = ["extract_bill_number"]

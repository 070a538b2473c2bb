"""
Reconciliation service - pairs a bill number's line items with authorization lines.

Candidate authorization lines are partitioned by parent authorization and the
parents are tried in the order the candidates were supplied. For each parent:

1. Pair every line item with an unused line (one-to-one), by absolute amount
   or, for CSV orders, by item identity.
2. No pairs at all: the parent has no overlap; try the next one.
3. Pairs found: the matched total must equal the group's own total within the
   amount tolerance, otherwise the parent is rejected with its discrepancy.
4. A parent whose status is closed, rejected or cancelled is rejected.

The first parent that passes is the match; every earlier rejection travels
with the outcome. Exhausting all parents yields a typed no-match outcome.
Data problems never raise.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from enum import StrEnum
from typing import Iterable, Optional, Sequence

from narda.config import AMOUNT_TOLERANCE, INVALID_AUTHORIZATION_STATUSES
from narda.model.document import LineItem
from narda.model.transaction import AuthorizationLine, MatchedPair

logger = logging.getLogger(__name__)


class MatchMode(StrEnum):
    amount = "amount"
    identity = "identity"


class ReconciliationStatus(StrEnum):
    matched = "matched"
    no_candidates = "no_candidates"
    no_overlap = "no_overlap"
    total_mismatch = "total_mismatch"
    invalid_status = "invalid_status"


@dataclass
class ReconciliationAttempt:
    """The result of trying one parent authorization."""

    parent_id: str
    parent_tranid: Optional[str]
    status: ReconciliationStatus
    pairs: list[MatchedPair]
    matched_total: Decimal
    expected_total: Decimal
    status_text: str = ""

    @property
    def discrepancy(self) -> Decimal:
        return self.expected_total - self.matched_total


@dataclass
class ReconciliationOutcome:
    status: ReconciliationStatus
    expected_total: Decimal
    parent_id: Optional[str] = None
    parent_tranid: Optional[str] = None
    pairs: list[MatchedPair] = field(default_factory=list)
    matched_total: Decimal = Decimal("0")
    attempts: list[ReconciliationAttempt] = field(default_factory=list)

    @property
    def is_matched(self) -> bool:
        return self.status == ReconciliationStatus.matched

    @property
    def discrepancy(self) -> Decimal:
        return self.expected_total - self.matched_total

    @property
    def rejected_attempts(self) -> list[ReconciliationAttempt]:
        return [a for a in self.attempts if a.status != ReconciliationStatus.matched]


def _item_value(item: LineItem) -> Decimal:
    return item.absolute_amount or Decimal("0")


def _same_identity(left: Optional[str], right: Optional[str]) -> bool:
    return (left or "").strip() == (right or "").strip()


def partition_by_parent(lines: Iterable[AuthorizationLine]) -> dict[str, list[AuthorizationLine]]:
    """Group lines by parent id, parents in first-seen order."""
    parents: dict[str, list[AuthorizationLine]] = {}
    for line in lines:
        parents.setdefault(line.parent_id, []).append(line)
    return parents


class ReconciliationService:
    def __init__(
        self,
        tolerance: Decimal = AMOUNT_TOLERANCE,
        invalid_statuses: Sequence[str] = tuple(INVALID_AUTHORIZATION_STATUSES),
    ):
        self.tolerance = tolerance
        self.invalid_statuses = tuple(invalid_statuses)

    # ---- Pairing ----

    def _lines_match(self, item: LineItem, line: AuthorizationLine, mode: MatchMode) -> bool:
        if mode == MatchMode.identity:
            return bool(item.part_number) and _same_identity(item.part_number, line.item_identity)
        amount = item.absolute_amount
        if amount is None:
            return False
        if abs(amount - abs(line.amount)) >= self.tolerance:
            return False
        if item.part_number and line.item_identity:
            return _same_identity(item.part_number, line.item_identity)
        return True

    def pair_lines(
        self,
        items: Sequence[LineItem],
        lines: Sequence[AuthorizationLine],
        mode: MatchMode = MatchMode.amount,
    ) -> list[MatchedPair]:
        """Pair each item with the first unused matching line."""
        used: set[int] = set()
        pairs: list[MatchedPair] = []
        for item in items:
            for position, line in enumerate(lines):
                if position in used or not self._lines_match(item, line, mode):
                    continue
                used.add(position)
                pairs.append(MatchedPair(line_item=item, authorization_line=line))
                break
        return pairs

    def is_invalid_status(self, status_text: str) -> bool:
        lowered = (status_text or "").lower()
        return any(s.lower() in lowered for s in self.invalid_statuses)

    # ---- Retry over parents ----

    def attempt(
        self,
        items: Sequence[LineItem],
        lines: Sequence[AuthorizationLine],
        expected_total: Decimal,
        mode: MatchMode = MatchMode.amount,
    ) -> ReconciliationAttempt:
        first = lines[0]
        pairs = self.pair_lines(items, lines, mode)
        matched_total = sum((_item_value(p.line_item) for p in pairs), Decimal("0"))
        if not pairs:
            status = ReconciliationStatus.no_overlap
        elif abs(expected_total - matched_total) > self.tolerance:
            status = ReconciliationStatus.total_mismatch
        elif self.is_invalid_status(first.status_text):
            status = ReconciliationStatus.invalid_status
        else:
            status = ReconciliationStatus.matched
        return ReconciliationAttempt(
            parent_id=first.parent_id,
            parent_tranid=first.parent_tranid,
            status=status,
            pairs=pairs,
            matched_total=matched_total,
            expected_total=expected_total,
            status_text=first.status_text,
        )

    def reconcile(
        self,
        items: Sequence[LineItem],
        candidates: Iterable[AuthorizationLine],
        mode: MatchMode = MatchMode.amount,
        expected_total: Optional[Decimal] = None,
    ) -> ReconciliationOutcome:
        """Find the first parent authorization that fully covers ``items``.

        ``expected_total`` defaults to the sum of the items' absolute amounts.
        """
        if expected_total is None:
            expected_total = sum((_item_value(i) for i in items), Decimal("0"))
        parents = partition_by_parent(candidates)
        if not parents:
            return ReconciliationOutcome(
                status=ReconciliationStatus.no_candidates, expected_total=expected_total
            )

        attempts: list[ReconciliationAttempt] = []
        for parent_id, lines in parents.items():
            attempt = self.attempt(items, lines, expected_total, mode)
            attempts.append(attempt)
            if attempt.status == ReconciliationStatus.matched:
                return ReconciliationOutcome(
                    status=ReconciliationStatus.matched,
                    expected_total=expected_total,
                    parent_id=attempt.parent_id,
                    parent_tranid=attempt.parent_tranid,
                    pairs=attempt.pairs,
                    matched_total=attempt.matched_total,
                    attempts=attempts,
                )
            logger.info(
                "Authorization %s rejected (%s): matched %s of %s",
                parent_id,
                attempt.status.value,
                attempt.matched_total,
                expected_total,
            )
        return self._exhausted(attempts, expected_total)

    def _exhausted(
        self, attempts: list[ReconciliationAttempt], expected_total: Decimal
    ) -> ReconciliationOutcome:
        reported = _last_with(attempts, ReconciliationStatus.total_mismatch) or _last_with(
            attempts, ReconciliationStatus.invalid_status
        )
        if reported is None:
            return ReconciliationOutcome(
                status=ReconciliationStatus.no_overlap,
                expected_total=expected_total,
                attempts=attempts,
            )
        return ReconciliationOutcome(
            status=reported.status,
            expected_total=expected_total,
            parent_id=reported.parent_id,
            parent_tranid=reported.parent_tranid,
            pairs=reported.pairs,
            matched_total=reported.matched_total,
            attempts=attempts,
        )


def _last_with(
    attempts: Sequence[ReconciliationAttempt], status: ReconciliationStatus
) -> Optional[ReconciliationAttempt]:
    for attempt in reversed(attempts):
        if attempt.status == status:
            return attempt
    return None


__all__ = [
    "MatchMode",
    "ReconciliationStatus",
    "ReconciliationAttempt",
    "ReconciliationOutcome",
    "ReconciliationService",
    "partition_by_parent",
]

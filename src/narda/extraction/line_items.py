"""
Line-item extractor - rebuilds the credit table from the positioned token stream.

For every token in the code column the extractor:
- recognises a complete or partial NARDA code,
- stitches a code broken across two physical lines (``J1683`` + ``6``),
- finds the row's amount in the amount column,
- resolves the original bill number from the description column.

When the code column yields no code at all, codes embedded in the description
text of each amount row are used instead. Candidate rows are deduplicated by
rounded row coordinate.

A failure while resolving one row drops that row only.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from narda.config import BillNumberRule, CodePatterns, NardaSettings
from narda.model.document import ColumnPositions, LineItem, PositionedToken, parse_amount

from .bill_numbers import extract_bill_number
from .token_index import SpatialTokenIndex

logger = logging.getLogger(__name__)

_REPEATED_S = re.compile(r"CONCES{3,}ION")


def normalize_code(text: str) -> str:
    """Uppercase and collapse the ``CONCESSSION`` misspelling."""
    return _REPEATED_S.sub("CONCESSION", text.strip().upper())


class CodeMatcher:
    """Full-match tests against the complete and partial code patterns."""

    def __init__(self, patterns: Optional[CodePatterns] = None):
        patterns = patterns or CodePatterns()
        self._complete = [re.compile(p) for p in patterns.complete]
        self._partial = [re.compile(p) for p in patterns.partial]
        # Longest alternatives first so CONCESSION wins over CONCES
        alternation = "|".join(sorted(set(patterns.complete), key=len, reverse=True))
        self._embedded = re.compile(rf"\b(?:{alternation})\b")

    def is_complete(self, text: str) -> bool:
        value = normalize_code(text)
        return any(p.fullmatch(value) for p in self._complete)

    def is_partial(self, text: str) -> bool:
        value = normalize_code(text)
        return any(p.fullmatch(value) for p in self._partial)

    def is_candidate(self, text: str) -> bool:
        return self.is_complete(text) or self.is_partial(text)

    def find_embedded(self, text: str) -> Optional[str]:
        """Last code embedded anywhere in ``text``, or None."""
        matches = self._embedded.findall(normalize_code(text))
        return matches[-1] if matches else None


class LineItemExtractor:
    """Extracts deduplicated LineItems from one document's token index."""

    def __init__(
        self,
        index: SpatialTokenIndex,
        columns: ColumnPositions,
        code_patterns: Optional[CodePatterns] = None,
        bill_rule: Optional[BillNumberRule] = None,
    ):
        self.index = index
        self.columns = columns
        self.matcher = CodeMatcher(code_patterns)
        self.bill_rule = bill_rule or BillNumberRule()

    @classmethod
    def from_settings(
        cls, index: SpatialTokenIndex, columns: ColumnPositions, settings: NardaSettings
    ) -> LineItemExtractor:
        return cls(index, columns, settings.code_patterns, settings.bill_number)

    # ---- Two-line stitching ----

    def stitch_code(self, token: PositionedToken) -> str:
        """Combine ``token`` with the nearest next-line token in the code column.

        Returns the normalized combination when it is a complete code, otherwise
        the token's own text unchanged.
        """
        code_x = self.columns.code_x
        if code_x is None:
            return token.text
        continuation = self.index.next_line_token(token.y, code_x)
        if continuation is None:
            return token.text
        combined = normalize_code(token.text + continuation.text)
        if self.matcher.is_complete(combined):
            return combined
        return token.text

    def resolve_code(self, token: PositionedToken) -> Optional[str]:
        if not self.matcher.is_candidate(token.text):
            return None
        value = normalize_code(self.stitch_code(token))
        return value if self.matcher.is_complete(value) else None

    # ---- Row lookups ----

    def find_amount(self, y: float) -> Optional[str]:
        amount_x = self.columns.amount_x
        if amount_x is None:
            return None
        for token in self.index.column_tokens(amount_x):
            if self.index.same_row(token.y, y):
                return token.text.strip()
        return None

    def _row_window(self, y: float) -> tuple[str, str]:
        """Description text of the row plus its continuation line.

        The next line only counts as a continuation when it has no amount of its
        own; otherwise it is the following table row.
        """
        description_x = self.columns.description_x
        if description_x is None:
            return "", ""
        same_row = self.index.row_text(y, description_x)
        below = self.index.next_line_tokens(y, description_x)
        if not below or self.find_amount(below[0].y) is not None:
            return same_row, ""
        return same_row, " ".join(t.text for t in below)

    def find_bill_number(self, y: float) -> Optional[str]:
        same_row, next_line = self._row_window(y)
        # Digits may wrap onto the next line, so the halves are joined directly
        return extract_bill_number(same_row + next_line, self.bill_rule)

    # ---- Extraction ----

    def extract(self) -> list[LineItem]:
        if not self.columns.can_extract:
            logger.debug("Code or amount column missing; no line items extracted")
            return []
        candidates, saw_code = self._scan_code_column()
        if not saw_code:
            candidates = self._scan_description_column()
        return deduplicate_line_items(candidates)

    def _scan_code_column(self) -> tuple[list[LineItem], bool]:
        items: list[LineItem] = []
        saw_code = False
        for token in self.index.column_tokens(self.columns.code_x):  # type: ignore[arg-type]
            try:
                code = self.resolve_code(token)
                if code is None:
                    continue
                saw_code = True
                amount = self.find_amount(token.y)
                if amount is None:
                    logger.debug("No amount on row y=%.1f for code %s; row dropped", token.y, code)
                    continue
                items.append(
                    LineItem(
                        code=code,
                        amount=amount,
                        original_bill_number=self.find_bill_number(token.y),
                        row_coordinate=token.y,
                    )
                )
            except Exception:
                logger.warning("Failed to resolve row at y=%.1f", token.y, exc_info=True)
        return items, saw_code

    def _scan_description_column(self) -> list[LineItem]:
        if self.columns.description_x is None:
            return []
        items: list[LineItem] = []
        header_y = self.columns.header_y
        for token in self.index.column_tokens(self.columns.amount_x):  # type: ignore[arg-type]
            if header_y is not None and token.y <= header_y:
                continue
            try:
                if parse_amount(token.text) is None:
                    continue
                same_row, next_line = self._row_window(token.y)
                code = self.matcher.find_embedded(f"{same_row} {next_line}")
                if code is None:
                    continue
                items.append(
                    LineItem(
                        code=code,
                        amount=token.text.strip(),
                        original_bill_number=self.find_bill_number(token.y),
                        row_coordinate=token.y,
                    )
                )
            except Exception:
                logger.warning("Failed to resolve description row at y=%.1f", token.y, exc_info=True)
        if items:
            logger.info("Recovered %d line items from description text", len(items))
        return items


def deduplicate_line_items(items: list[LineItem]) -> list[LineItem]:
    """Keep one item per rounded row coordinate.

    A later item replaces the kept one only when its bill number is strictly
    longer. Output follows first-seen row order.
    """
    kept: dict[int, LineItem] = {}
    for item in items:
        current = kept.get(item.row_key)
        if current is None:
            kept[item.row_key] = item
        elif len(item.original_bill_number or "") > len(current.original_bill_number or ""):
            kept[item.row_key] = item
    return list(kept.values())


def extract_line_items(
    index: SpatialTokenIndex,
    columns: ColumnPositions,
    settings: Optional[NardaSettings] = None,
) -> list[LineItem]:
    settings = settings or NardaSettings()
    return LineItemExtractor.from_settings(index, columns, settings).extract()


__all__ = [
    "CodeMatcher",
    "LineItemExtractor",
    "normalize_code",
    "deduplicate_line_items",
    "extract_line_items",
]

"""
Spatial token index: the flat, read-only token collection every locator queries.

Tokens keep the order the renderer emitted them in. No ordering by position is
assumed; every query is by coordinate band or by content. Coordinates follow
page convention (y grows downward, so the "next line" has a larger y).
"""

from __future__ import annotations

import logging
import math
from typing import Callable, Iterable, Iterator, Mapping, Optional, Sequence, Union

from narda.config import Tolerances
from narda.model.document import PositionedToken

logger = logging.getLogger(__name__)

RawToken = Union[PositionedToken, Mapping[str, object]]


def normalize_token(raw: RawToken) -> Optional[PositionedToken]:
    """Coerce a raw ``{text, x, y}`` mapping into a PositionedToken.

    Returns None for tokens without text or without finite coordinates.
    """
    if isinstance(raw, PositionedToken):
        return raw if raw.text.strip() else None
    text = raw.get("text")
    if text is None:
        return None
    text = str(text).strip()
    if not text:
        return None
    try:
        x = float(raw.get("x"))  # type: ignore[arg-type]
        y = float(raw.get("y"))  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if not (math.isfinite(x) and math.isfinite(y)):
        return None
    return PositionedToken(text=text, x=x, y=y)


class SpatialTokenIndex:
    """Read-only coordinate queries over one document's tokens."""

    def __init__(self, tokens: Iterable[RawToken], tolerances: Optional[Tolerances] = None):
        self.tolerances = tolerances or Tolerances()
        normalized: list[PositionedToken] = []
        dropped = 0
        for raw in tokens:
            token = normalize_token(raw)
            if token is None:
                dropped += 1
                continue
            normalized.append(token)
        if dropped:
            logger.debug("Dropped %d empty or unpositioned tokens", dropped)
        self._tokens: tuple[PositionedToken, ...] = tuple(normalized)

    @property
    def tokens(self) -> Sequence[PositionedToken]:
        return self._tokens

    def __len__(self) -> int:
        return len(self._tokens)

    def __iter__(self) -> Iterator[PositionedToken]:
        return iter(self._tokens)

    # ---- Geometry predicates ----

    def same_row(self, y1: float, y2: float) -> bool:
        return abs(y1 - y2) < self.tolerances.row

    def in_column(self, token: PositionedToken, column_x: float) -> bool:
        return abs(token.x - column_x) < self.tolerances.column

    def is_next_line(self, y: float, candidate_y: float) -> bool:
        dy = candidate_y - y
        return 0 < dy <= self.tolerances.next_line

    # ---- Queries ----

    def find(self, predicate: Callable[[PositionedToken], bool]) -> list[PositionedToken]:
        return [t for t in self._tokens if predicate(t)]

    def first(self, predicate: Callable[[PositionedToken], bool]) -> Optional[PositionedToken]:
        for t in self._tokens:
            if predicate(t):
                return t
        return None

    def column_tokens(self, column_x: float) -> list[PositionedToken]:
        return [t for t in self._tokens if self.in_column(t, column_x)]

    def row_tokens(self, y: float, column_x: Optional[float] = None) -> list[PositionedToken]:
        """Tokens on the row at ``y``, optionally restricted to one column, in token order."""
        return [
            t
            for t in self._tokens
            if self.same_row(t.y, y) and (column_x is None or self.in_column(t, column_x))
        ]

    def right_of_on_row(self, anchor: PositionedToken) -> list[PositionedToken]:
        return [t for t in self._tokens if self.same_row(t.y, anchor.y) and t.x > anchor.x]

    def next_line_tokens(self, y: float, column_x: float) -> list[PositionedToken]:
        """Tokens in the column on the nearest line strictly below ``y``.

        Only lines within the next-line distance qualify. Tokens sharing the
        nearest line (within row tolerance) are returned in left-to-right order.
        """
        below = [
            t
            for t in self._tokens
            if self.in_column(t, column_x) and self.is_next_line(y, t.y)
        ]
        if not below:
            return []
        nearest_y = min(t.y for t in below)
        line = [t for t in below if self.same_row(t.y, nearest_y)]
        return sorted(line, key=lambda t: t.x)

    def next_line_token(self, y: float, column_x: float) -> Optional[PositionedToken]:
        """The single nearest token below ``y`` in the column, or None."""
        below = [
            t
            for t in self._tokens
            if self.in_column(t, column_x) and self.is_next_line(y, t.y)
        ]
        if not below:
            return None
        return min(below, key=lambda t: t.y - y)

    def row_text(self, y: float, column_x: float) -> str:
        """Concatenated text of the column's tokens on the row, left to right."""
        return " ".join(t.text for t in sorted(self.row_tokens(y, column_x), key=lambda t: t.x))


__all__ = ["SpatialTokenIndex", "normalize_token", "RawToken"]

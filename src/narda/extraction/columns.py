"""Column locator: header-token lookup for the code, amount and description columns."""

from __future__ import annotations

from typing import Callable, Optional

from narda.model.document import ColumnPositions, PositionedToken

from .token_index import SpatialTokenIndex


def is_code_header(text: str) -> bool:
    return text.strip().upper().startswith("NARDA")


def is_amount_header(text: str) -> bool:
    return text.strip().upper() == "TOTAL"


def is_description_header(text: str) -> bool:
    return text.strip().upper() == "DESCRIPTION"


def _first_header(
    index: SpatialTokenIndex, predicate: Callable[[str], bool]
) -> Optional[PositionedToken]:
    return index.first(lambda t: predicate(t.text))


def locate_columns(index: SpatialTokenIndex) -> ColumnPositions:
    """Find the x of each known header; missing headers stay None."""
    code = _first_header(index, is_code_header)
    amount = _first_header(index, is_amount_header)
    description = _first_header(index, is_description_header)
    header_y = code.y if code is not None else (amount.y if amount is not None else None)
    return ColumnPositions(
        code_x=code.x if code is not None else None,
        amount_x=amount.x if amount is not None else None,
        description_x=description.x if description is not None else None,
        header_y=header_y,
    )


__all__ = [
    "is_code_header",
    "is_amount_header",
    "is_description_header",
    "locate_columns",
]

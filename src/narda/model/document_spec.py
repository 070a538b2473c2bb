from __future__ import annotations

from decimal import Decimal

import pytest
from pydantic import ValidationError

from narda.model.document import (
    BillNumberGroup,
    CodeGroup,
    ColumnPositions,
    LineItem,
    PositionedToken,
    TokenDocument,
    parse_amount,
)


class DescribeParseAmount:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("$1,234.50", Decimal("1234.50")),
            ("($75.00)", Decimal("-75.00")),
            ("-12.5", Decimal("-12.5")),
            (" 40 ", Decimal("40")),
        ],
    )
    def it_should_parse_currency_text(self, text, expected):
        assert parse_amount(text) == expected

    @pytest.mark.parametrize("text", [None, "", "  ", "$", "abc", "NaN", "Infinity"])
    def it_should_return_none_for_non_numeric_text(self, text):
        assert parse_amount(text) is None


class DescribeModels:
    def it_should_freeze_tokens(self):
        token = PositionedToken(text="NF", x=1, y=2)

        with pytest.raises(ValidationError):
            token.text = "CORE"

    def it_should_require_a_document_id(self):
        with pytest.raises(ValidationError):
            TokenDocument(document_id="", tokens=[])

    def it_should_need_code_and_amount_columns_to_extract(self):
        assert ColumnPositions(code_x=1, amount_x=2).can_extract
        assert not ColumnPositions(code_x=1, description_x=2).can_extract

    def it_should_key_line_items_by_rounded_row(self):
        item = LineItem(code="NF", amount="($5.00)", row_coordinate=99.6)

        assert item.row_key == 100
        assert item.absolute_amount == Decimal("5.00")

    def it_should_track_code_group_totals_and_bills(self):
        group = CodeGroup(code="NF")
        group.add(LineItem(code="NF", amount="$5.00", original_bill_number="1234567", row_coordinate=1))
        group.add(LineItem(code="NF", amount="bad", original_bill_number="1234567", row_coordinate=2))

        assert group.total_amount == Decimal("5.00")
        assert group.original_bill_numbers == ["1234567"]
        assert len(group.line_items) == 2

    def it_should_join_bill_group_codes_with_plus(self):
        assert BillNumberGroup(bill_number="1", codes=["NF", "CORE"]).codes_label == "NF+CORE"

    @pytest.mark.parametrize("y, key", [(100.5, 101), (101.4, 101), (102.5, 103), (99.49, 99)])
    def it_should_round_half_rows_up(self, y, key):
        assert LineItem(code="NF", amount="$1.00", row_coordinate=y).row_key == key

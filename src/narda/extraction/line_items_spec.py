from __future__ import annotations

import logging

import pytest

from narda.extraction.columns import locate_columns
from narda.extraction.line_items import (
    CodeMatcher,
    LineItemExtractor,
    deduplicate_line_items,
    extract_line_items,
    normalize_code,
)
from narda.extraction.token_index import SpatialTokenIndex
from narda.model.document import ColumnPositions, LineItem, PositionedToken

HEADER = [("NARDA #", 50, 80), ("Description", 200, 80), ("Total", 500, 80)]


def _index(*tokens: tuple[str, float, float]) -> SpatialTokenIndex:
    return SpatialTokenIndex([PositionedToken(text=t, x=x, y=y) for t, x, y in tokens])


def _extract(*rows: tuple[str, float, float]) -> list[LineItem]:
    index = _index(*HEADER, *rows)
    return extract_line_items(index, locate_columns(index))


def _extractor(*rows: tuple[str, float, float]) -> LineItemExtractor:
    index = _index(*HEADER, *rows)
    return LineItemExtractor(index, locate_columns(index))


class DescribeCodeMatcher:
    def it_should_full_match_complete_codes(self):
        matcher = CodeMatcher()

        assert matcher.is_complete("concda")
        assert matcher.is_complete("J12345")
        assert not matcher.is_complete("J123")
        assert not matcher.is_complete("XNF")

    def it_should_recognise_partial_codes(self):
        matcher = CodeMatcher()

        assert matcher.is_partial("J12")
        assert not matcher.is_complete("J12")
        assert matcher.is_candidate("J12")

    def it_should_find_last_embedded_code(self):
        matcher = CodeMatcher()

        assert matcher.find_embedded("Core return NF then CONCESSION adj") == "CONCESSION"
        assert matcher.find_embedded("no codes here") is None

    def it_should_normalize_triple_s_concession(self):
        assert normalize_code(" concesssion ") == "CONCESSION"


class DescribeTwoLineStitching:
    def it_should_combine_split_journal_code(self):
        items = _extract(("J1683", 50, 100), ("6", 50, 112), ("$50.00", 500, 100))

        assert [i.code for i in items] == ["J16836"]

    def it_should_return_original_text_when_no_continuation_exists(self):
        extractor = _extractor(("Core", 50, 100))
        token = extractor.index.first(lambda t: t.text == "Core")

        assert extractor.stitch_code(token) == "Core"

    def it_should_return_original_text_when_combination_does_not_validate(self):
        extractor = _extractor(("J1001", 50, 100), ("J1002", 50, 110))
        token = extractor.index.first(lambda t: t.text == "J1001")

        assert extractor.stitch_code(token) == "J1001"

    def it_should_normalize_misspelled_concession(self):
        items = _extract(("CONCES", 50, 100), ("SSION", 51, 109), ("$10.00", 500, 100))

        assert [i.code for i in items] == ["CONCESSION"]

    def it_should_complete_partial_codes_from_next_line(self):
        items = _extract(("J12", 50, 100), ("345", 50, 111), ("$10.00", 500, 100))

        assert [i.code for i in items] == ["J12345"]

    def it_should_reject_partial_code_without_continuation(self):
        assert _extract(("J12", 50, 100), ("$10.00", 500, 100)) == []


class DescribeRowResolution:
    def it_should_drop_rows_without_amount_and_keep_the_rest(self):
        items = _extract(
            ("NF", 50, 100),
            ("$20.00", 500, 100),
            ("CORE", 50, 130),
            ("$99.00", 500, 133),
            ("J1001", 50, 160),
            ("($30.00)", 500, 160.5),
        )

        assert [(i.code, i.amount) for i in items] == [("NF", "$20.00"), ("J1001", "($30.00)")]

    def it_should_return_nothing_when_amount_column_missing(self):
        index = _index(("NARDA", 50, 80), ("NF", 50, 100), ("$20.00", 500, 100))

        assert extract_line_items(index, locate_columns(index)) == []

    def it_should_return_nothing_when_code_column_missing(self):
        index = _index(("Total", 500, 80), ("NF", 50, 100), ("$20.00", 500, 100))

        assert extract_line_items(index, locate_columns(index)) == []

    def it_should_resolve_bill_number_from_description(self):
        items = _extract(
            ("NF", 50, 100), ("Credit for W7654321 HN1234567", 200, 100), ("$20.00", 500, 100)
        )

        assert items[0].original_bill_number == "1234567"

    def it_should_join_bill_number_digits_wrapped_to_next_line(self):
        items = _extract(
            ("CORE", 50, 100),
            ("Orig bill HN12345", 200, 100),
            ("678", 200, 110),
            ("$20.00", 500, 100),
        )

        assert items[0].original_bill_number == "12345678"

    def it_should_not_take_the_bill_number_of_a_closely_spaced_next_row(self):
        items = _extract(
            ("NF", 50, 100),
            ("Credit HN1234567", 200, 100),
            ("$20.00", 500, 100),
            ("CORE", 50, 112),
            ("Credit HN7654321", 200, 112),
            ("$30.00", 500, 112),
        )

        assert [(i.code, i.original_bill_number) for i in items] == [
            ("NF", "1234567"),
            ("CORE", "7654321"),
        ]

    def it_should_leave_bill_number_empty_without_description_column(self):
        index = _index(("NARDA", 50, 80), ("Total", 500, 80), ("NF", 50, 100), ("$5.00", 500, 100))

        items = extract_line_items(index, locate_columns(index))

        assert items[0].original_bill_number is None

    def it_should_omit_a_row_that_raises_and_continue(self, monkeypatch, caplog):
        extractor = _extractor(
            ("NF", 50, 100), ("$20.00", 500, 100), ("CORE", 50, 130), ("$40.00", 500, 130)
        )
        original = extractor.find_bill_number

        def flaky(y: float):
            if y == 100:
                raise RuntimeError("bad row")
            return original(y)

        monkeypatch.setattr(extractor, "find_bill_number", flaky)

        with caplog.at_level(logging.WARNING):
            items = extractor.extract()

        assert [i.code for i in items] == ["CORE"]
        assert "Failed to resolve row" in caplog.text


class DescribeDescriptionFallback:
    def it_should_use_embedded_code_when_code_column_is_empty(self):
        items = _extract(
            ("Part 123 CORE J1234", 200, 100),
            ("$40.00", 500, 100),
            ("Widget NF", 200, 130),
            ("$15.00", 500, 130),
        )

        assert [(i.code, i.amount) for i in items] == [("J1234", "$40.00"), ("NF", "$15.00")]

    def it_should_search_next_line_description_too(self):
        items = _extract(("Widget credit", 200, 100), ("CONCDAM W12345678", 200, 110), ("$9.00", 500, 100))

        assert items[0].code == "CONCDAM"
        assert items[0].original_bill_number == "12345678"

    def it_should_not_borrow_the_code_of_a_closely_spaced_next_row(self):
        items = _extract(
            ("Core return part A", 200, 100),
            ("$40.00", 500, 100),
            ("NF credit part B", 200, 112),
            ("$15.00", 500, 112),
        )

        assert [(i.code, i.amount) for i in items] == [("CORE", "$40.00"), ("NF", "$15.00")]

    def it_should_not_fall_back_when_code_column_has_codes(self):
        items = _extract(
            ("NF", 50, 100),
            ("$20.00", 500, 100),
            ("CORE in text", 200, 130),
            ("$40.00", 500, 130),
        )

        assert [i.code for i in items] == ["NF"]

    def it_should_skip_non_amount_rows(self):
        items = _extract(("CORE", 200, 100), ("n/a", 500, 100))

        assert items == []


class DescribeDeduplication:
    def _item(self, y: float, bill: str | None, code: str = "NF") -> LineItem:
        return LineItem(code=code, amount="$1.00", original_bill_number=bill, row_coordinate=y)

    def it_should_keep_one_item_per_rounded_row(self):
        items = deduplicate_line_items([self._item(100.2, "1234567"), self._item(99.8, "1234567")])

        assert len(items) == 1
        assert items[0].row_coordinate == 100.2

    def it_should_replace_with_strictly_longer_bill_number(self):
        first = self._item(100.0, "1234567", "NF")
        second = self._item(100.3, "123456789", "CORE")

        assert deduplicate_line_items([first, second]) == [second]

    def it_should_keep_first_on_equal_or_shorter_bill_number(self):
        first = self._item(100.0, "1234567", "NF")

        assert deduplicate_line_items([first, self._item(100.1, "7654321")]) == [first]
        assert deduplicate_line_items([first, self._item(100.1, None)]) == [first]

    def it_should_preserve_first_seen_row_order(self):
        a = self._item(100.0, None, "NF")
        b = self._item(130.0, None, "CORE")
        a2 = self._item(100.2, "12345678", "J1001")

        assert [i.code for i in deduplicate_line_items([a, b, a2])] == ["J1001", "CORE"]

    def it_should_share_a_row_for_half_coordinates(self):
        items = deduplicate_line_items([self._item(100.5, "1234567"), self._item(101.4, "12345678")])

        assert [i.original_bill_number for i in items] == ["12345678"]

    @pytest.mark.parametrize("y1, y2", [(10.0, 10.4), (55.6, 56.2), (200.0, 199.9)])
    def it_should_hold_longest_bill_for_shared_rows(self, y1, y2):
        items = deduplicate_line_items([self._item(y1, "1234567"), self._item(y2, "1234567890")])

        assert len(items) == 1
        assert items[0].original_bill_number == "1234567890"


class DescribeColumnPositionsGuard:
    def it_should_short_circuit_without_positions(self):
        extractor = LineItemExtractor(_index(("NF", 50, 100)), ColumnPositions())

        assert extractor.extract() == []

from __future__ import annotations

import pytest

from narda.config import CodeVocabulary
from narda.model.document import CodeGroup, LineItem
from narda.model.transaction import JournalEntryLabel
from narda.model.verdict import VerdictKind
from narda.services.classification_service import ClassificationService, journal_entry_label


class DescribeClassificationService:
    @pytest.fixture
    def service(self):
        return ClassificationService()

    @pytest.mark.parametrize(
        "code, kind",
        [
            ("CONCDA", VerdictKind.vendor_credit),
            ("concdam", VerdictKind.vendor_credit),
            ("NF", VerdictKind.vendor_credit),
            ("CORE", VerdictKind.vendor_credit),
            ("CONCESSION", VerdictKind.vendor_credit),
            ("J1234", VerdictKind.journal_entry),
            ("J123456", VerdictKind.journal_entry),
            ("INV42", VerdictKind.journal_entry),
            ("SHORT", VerdictKind.skip_short_ship),
            ("box", VerdictKind.skip_short_ship),
            ("J123", VerdictKind.skip_unidentified),
            ("J1234567", VerdictKind.skip_unidentified),
            ("CONCES", VerdictKind.skip_unidentified),
            ("REBATE", VerdictKind.skip_unidentified),
            ("", VerdictKind.skip_unidentified),
        ],
    )
    def it_should_map_every_code_to_exactly_one_verdict(self, service, code, kind):
        verdict = service.classify(code)

        assert verdict.kind == kind
        assert verdict.code == code

    def it_should_be_stable_for_repeated_codes(self, service):
        assert service.classify("NF") == service.classify("NF")

    def it_should_check_vendor_credit_before_journal_patterns(self):
        service = ClassificationService(
            CodeVocabulary(vendor_credit=("J1234",), journal_entry=(r"^J\d{4,6}$",))
        )

        assert service.classify("J1234").kind == VerdictKind.vendor_credit

    def it_should_accept_any_length_j_codes_with_csv_vocabulary(self):
        service = ClassificationService(CodeVocabulary.csv_default())

        assert service.classify("J12").kind == VerdictKind.journal_entry
        assert service.classify("REBATE").kind == VerdictKind.skip_short_ship

    def it_should_classify_many_codes_at_once(self, service):
        verdicts = service.classify_all(["NF", "J1001"])

        assert {c: v.kind for c, v in verdicts.items()} == {
            "NF": VerdictKind.vendor_credit,
            "J1001": VerdictKind.journal_entry,
        }


class DescribeJournalEntryLabel:
    def _group(self, code: str, rows: int) -> CodeGroup:
        group = CodeGroup(code=code)
        for y in range(rows):
            group.add(LineItem(code=code, amount="$1.00", row_coordinate=float(y)))
        return group

    def it_should_label_several_codes_multi_group(self):
        assert journal_entry_label([self._group("J1001", 1), self._group("J1002", 1)]) == (
            JournalEntryLabel.multi_group
        )

    def it_should_label_one_code_with_several_rows_consolidated(self):
        assert journal_entry_label([self._group("J1001", 2)]) == JournalEntryLabel.consolidated

    def it_should_label_one_code_with_one_row_single(self):
        assert journal_entry_label([self._group("J1001", 1)]) == JournalEntryLabel.single

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional

import pytest

from narda.model.transaction import (
    JournalEntryIntent,
    JournalEntryLabel,
    JournalLine,
    OpenInvoice,
    SkipCategory,
)
from narda.services.application_service import ApplicationPlanner, extract_job_ids


class FakeInvoices:
    def __init__(self, invoices: Optional[dict[str, list[OpenInvoice]]] = None):
        self.invoices = invoices or {}
        self.requests: list[str] = []

    def find_open_invoices(self, job_id: str) -> list[OpenInvoice]:
        self.requests.append(job_id)
        return self.invoices.get(job_id, [])


def _invoice(tranid: str, remaining: Optional[str] = None, entity: str = "C-1") -> OpenInvoice:
    return OpenInvoice(
        tranid=tranid,
        entity_id=entity,
        amount_remaining=None if remaining is None else Decimal(remaining),
    )


def _entry(*credits: tuple[str, str]) -> JournalEntryIntent:
    lines = [
        JournalLine(account="119", credit=Decimal(amount), memo=memo, entity="C-1", code=memo.split()[-1])
        for memo, amount in credits
    ]
    total = sum((line.credit for line in lines), Decimal("0"))
    return JournalEntryIntent(
        document_id="doc-1",
        tran_id="61234567 CM",
        tran_date=date(2025, 3, 14),
        memo="MARCONE CM61234567",
        label=JournalEntryLabel.single,
        codes=[line.code for line in lines],
        debit_line=JournalLine(account="111", debit=total, entity="2106"),
        credit_lines=lines,
    )


class DescribeExtractJobIds:
    @pytest.mark.parametrize(
        "memo, expected",
        [
            ("MARCONE CM61234567 J1001", ["J1001"]),
            ("credit j12 and J13", ["j12", "J13"]),
            ("Refund INV4411 partial", ["INV4411"]),
            ("job J77 for inv12", ["job", "J77"]),
            ("MARCONE CM61234567", []),
            (None, []),
        ],
    )
    def it_should_take_j_words_then_fall_back_to_inv_words(self, memo, expected):
        assert extract_job_ids(memo) == expected


class DescribeApplicationPlanner:
    def it_should_apply_the_credit_to_the_matching_invoice(self):
        invoices = FakeInvoices({"J1001": [_invoice("INV9", "80.00")]})

        result = ApplicationPlanner(invoices).plan(_entry(("MARCONE CM61234567 J1001", "50.00")))

        assert result.skips == []
        (application,) = result.intents
        assert application.invoice_tranid == "INV9"
        assert application.entity == "C-1"
        assert application.job_id == "J1001"
        assert application.codes == ["J1001"]
        assert application.credit_amount == Decimal("50.00")
        assert application.applied_amount == Decimal("50.00")
        assert application.tran_date == date(2025, 3, 14)
        assert application.memo == "Auto-applied from JE transaction 61234567 CM for Job ID match"

    def it_should_cap_the_application_at_the_invoice_balance(self):
        invoices = FakeInvoices({"J1001": [_invoice("INV9", "30.00")]})

        result = ApplicationPlanner(invoices).plan(_entry(("MARCONE CM61234567 J1001", "50.00")))

        assert result.intents[0].applied_amount == Decimal("30.00")
        assert result.intents[0].total == Decimal("30.00")

    def it_should_use_the_most_recent_invoice_with_a_balance(self):
        invoices = FakeInvoices(
            {"J1001": [_invoice("INV3", "0.00"), _invoice("INV2", "20.00"), _invoice("INV1", "90.00")]}
        )

        result = ApplicationPlanner(invoices).plan(_entry(("MARCONE CM61234567 J1001", "50.00")))

        assert [(a.invoice_tranid, a.applied_amount) for a in result.intents] == [("INV2", Decimal("20.00"))]

    def it_should_apply_the_whole_credit_when_the_balance_is_unknown(self):
        invoices = FakeInvoices({"J1001": [_invoice("INV9")]})

        result = ApplicationPlanner(invoices).plan(_entry(("MARCONE CM61234567 J1001", "50.00")))

        assert result.intents[0].applied_amount == Decimal("50.00")

    def it_should_spread_the_remaining_credit_over_later_job_ids(self):
        invoices = FakeInvoices({"J1": [_invoice("INV1", "20.00")], "J2": [_invoice("INV2", "100.00")]})

        result = ApplicationPlanner(invoices).plan(_entry(("credit J1 J2", "50.00")))

        assert [(a.invoice_tranid, a.applied_amount) for a in result.intents] == [
            ("INV1", Decimal("20.00")),
            ("INV2", Decimal("30.00")),
        ]

    def it_should_plan_each_credit_line_on_its_own(self):
        invoices = FakeInvoices({"J1001": [_invoice("INV1")], "J1002": [_invoice("INV2")]})

        result = ApplicationPlanner(invoices).plan(
            _entry(("MARCONE CM61234567 J1001", "50.00"), ("MARCONE CM61234567 J1002", "75.00"))
        )

        assert [(a.invoice_tranid, a.applied_amount) for a in result.intents] == [
            ("INV1", Decimal("50.00")),
            ("INV2", Decimal("75.00")),
        ]

    def it_should_skip_a_credit_line_without_an_open_invoice(self):
        invoices = FakeInvoices({"J1001": [_invoice("INV1", "0.00")]})

        result = ApplicationPlanner(invoices).plan(_entry(("MARCONE CM61234567 J1001", "50.00")))

        assert result.intents == []
        (skip,) = result.skips
        assert skip.category == SkipCategory.no_invoice_to_apply
        assert skip.code == "J1001"
        assert skip.amount == Decimal("50.00")
        assert skip.details == {"journal_entry": "61234567 CM", "job_ids": "J1001"}

    def it_should_skip_a_credit_line_whose_memo_names_no_job(self):
        invoices = FakeInvoices()

        result = ApplicationPlanner(invoices).plan(_entry(("MARCONE CM61234567 CORE", "50.00")))

        assert [s.category for s in result.skips] == [SkipCategory.no_invoice_to_apply]
        assert invoices.requests == []

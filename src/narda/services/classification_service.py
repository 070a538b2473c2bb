"""
Classification service - maps each NARDA code to one posting strategy.

Rule order is fixed: vendor-credit vocabulary, then journal-entry patterns,
then short-ship vocabulary; anything else is unidentified. Matching is
case-insensitive and stateless, so the same code always gets the same verdict.

The vocabulary is immutable configuration passed in at construction (see
narda.config.CodeVocabulary), which lets tests and workspaces supply their own
codes without touching module state.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional

from narda.config import CodeVocabulary
from narda.model.document import CodeGroup
from narda.model.transaction import JournalEntryLabel
from narda.model.verdict import ClassificationVerdict, VerdictKind


class ClassificationService:
    def __init__(self, vocabulary: Optional[CodeVocabulary] = None):
        self.vocabulary = vocabulary or CodeVocabulary()
        self._vendor_credit = {c.upper() for c in self.vocabulary.vendor_credit}
        self._journal_entry = [re.compile(p, re.IGNORECASE) for p in self.vocabulary.journal_entry]
        self._short_ship = {c.upper() for c in self.vocabulary.short_ship}

    def classify(self, code: str) -> ClassificationVerdict:
        value = code.strip().upper()
        if value in self._vendor_credit:
            kind = VerdictKind.vendor_credit
        elif any(p.search(value) for p in self._journal_entry):
            kind = VerdictKind.journal_entry
        elif value in self._short_ship:
            kind = VerdictKind.skip_short_ship
        else:
            kind = VerdictKind.skip_unidentified
        return ClassificationVerdict(kind=kind, code=code)

    def classify_all(self, codes: Iterable[str]) -> dict[str, ClassificationVerdict]:
        return {code: self.classify(code) for code in codes}


def journal_entry_label(groups: list[CodeGroup]) -> JournalEntryLabel:
    """Label for a journal entry built from ``groups``.

    Several codes are a multi-group entry; one code with several rows is
    consolidated; one code with one row is single.
    """
    if len(groups) > 1:
        return JournalEntryLabel.multi_group
    if groups and len(groups[0].line_items) > 1:
        return JournalEntryLabel.consolidated
    return JournalEntryLabel.single


__all__ = ["ClassificationService", "journal_entry_label"]

"""Classification verdicts: one per code, computed once."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class VerdictKind(StrEnum):
    journal_entry = "journal_entry"
    vendor_credit = "vendor_credit"
    skip_short_ship = "skip_short_ship"
    skip_unidentified = "skip_unidentified"


class ClassificationVerdict(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: VerdictKind
    code: str

    @property
    def is_vendor_credit(self) -> bool:
        return self.kind == VerdictKind.vendor_credit

    @property
    def is_journal_entry(self) -> bool:
        return self.kind == VerdictKind.journal_entry

    @property
    def is_skip(self) -> bool:
        return self.kind in (VerdictKind.skip_short_ship, VerdictKind.skip_unidentified)


__all__ = ["VerdictKind", "ClassificationVerdict"]

from .document import (
    BillNumberGroup,
    CodeGroup,
    ColumnPositions,
    DocumentFields,
    LineItem,
    PositionedToken,
    TokenDocument,
    parse_amount,
)
from .transaction import (
    ApplicationIntent,
    AuthorizationLine,
    JournalEntryIntent,
    JournalEntryLabel,
    JournalLine,
    MatchedPair,
    OpenInvoice,
    SkipCategory,
    SkipRecord,
    TransactionIntent,
    TransactionKind,
    VendorCreditIntent,
    VendorCreditLine,
)
from .verdict import ClassificationVerdict, VerdictKind

__all__ = [
    # document models
    "PositionedToken",
    "TokenDocument",
    "DocumentFields",
    "ColumnPositions",
    "LineItem",
    "CodeGroup",
    "BillNumberGroup",
    "parse_amount",
    # classification
    "ClassificationVerdict",
    "VerdictKind",
    # transaction intents
    "AuthorizationLine",
    "MatchedPair",
    "JournalLine",
    "JournalEntryIntent",
    "JournalEntryLabel",
    "VendorCreditLine",
    "VendorCreditIntent",
    "OpenInvoice",
    "ApplicationIntent",
    "TransactionIntent",
    "TransactionKind",
    "SkipCategory",
    "SkipRecord",
]

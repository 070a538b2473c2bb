"""
Service layer for the NARDA credit pipeline.

This module contains the functional core business logic separated from the
imperative shell (CLI). Services are pure business logic with no file I/O.

Principles:
- No UI framework imports (Rich, Typer)
- Ledger access only through injected collaborator protocols
- Functions return data structures, not void
- Fully testable with simple unit tests
"""

from narda.services.application_service import (
    ApplicationPlanner,
    OpenInvoiceLookup,
    extract_job_ids,
)
from narda.services.classification_service import ClassificationService, journal_entry_label
from narda.services.csv_order_service import CsvOrder, CsvOrderService, OrderTotalCheck
from narda.services.grouping_service import group_by_bill_number, group_by_code
from narda.services.pipeline import (
    BatchProcessor,
    BatchSummary,
    DocumentPipeline,
    DocumentResult,
)
from narda.services.reconciliation_service import (
    MatchMode,
    ReconciliationAttempt,
    ReconciliationOutcome,
    ReconciliationService,
    ReconciliationStatus,
)
from narda.services.transaction_planning_service import (
    AuthorizationLookup,
    CreditDocument,
    CustomerLookup,
    DocumentSource,
    PlanResult,
    TransactionPlanner,
    TransactionRegistry,
)

__all__ = [
    "ApplicationPlanner",
    "OpenInvoiceLookup",
    "extract_job_ids",
    "ClassificationService",
    "journal_entry_label",
    "CsvOrder",
    "CsvOrderService",
    "OrderTotalCheck",
    "group_by_code",
    "group_by_bill_number",
    "DocumentPipeline",
    "DocumentResult",
    "BatchProcessor",
    "BatchSummary",
    "MatchMode",
    "ReconciliationAttempt",
    "ReconciliationOutcome",
    "ReconciliationService",
    "ReconciliationStatus",
    "AuthorizationLookup",
    "CreditDocument",
    "CustomerLookup",
    "DocumentSource",
    "PlanResult",
    "TransactionPlanner",
    "TransactionRegistry",
]

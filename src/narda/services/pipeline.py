"""
Document pipeline - runs every stage for one document, and the batch driver.

Stages run strictly in order per document: extraction, grouping,
classification and reconciliation (inside planning), then application of
journal entry credits to open invoices when an application planner is set.
A document always yields a DocumentResult; an unexpected failure becomes a
single PROCESSING_ERROR skip for that document and never stops the batch.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Optional, Union

from narda.config import NardaSettings
from narda.extraction import extract_document
from narda.model.document import (
    BillNumberGroup,
    CodeGroup,
    ColumnPositions,
    DocumentFields,
    LineItem,
    TokenDocument,
)
from narda.model.transaction import (
    JournalEntryIntent,
    SkipCategory,
    SkipRecord,
    TransactionIntent,
)

from .application_service import ApplicationPlanner
from .csv_order_service import CsvOrder, CsvOrderService
from .grouping_service import group_by_bill_number, group_by_code
from .transaction_planning_service import CreditDocument, DocumentSource, TransactionPlanner

logger = logging.getLogger(__name__)

PipelineInput = Union[TokenDocument, CsvOrder]


@dataclass
class DocumentResult:
    document_id: str
    source: DocumentSource
    fields: DocumentFields = field(default_factory=DocumentFields)
    columns: Optional[ColumnPositions] = None
    line_items: list[LineItem] = field(default_factory=list)
    code_groups: dict[str, CodeGroup] = field(default_factory=dict)
    bill_groups: dict[str, BillNumberGroup] = field(default_factory=dict)
    intents: list[TransactionIntent] = field(default_factory=list)
    skips: list[SkipRecord] = field(default_factory=list)

    @property
    def is_all_skip(self) -> bool:
        return not self.intents


@dataclass
class BatchSummary:
    results: list[DocumentResult] = field(default_factory=list)
    deferred_ids: list[str] = field(default_factory=list)

    @property
    def processed_count(self) -> int:
        return len(self.results)

    @property
    def intents(self) -> list[TransactionIntent]:
        return [intent for r in self.results for intent in r.intents]

    @property
    def skips(self) -> list[SkipRecord]:
        return [skip for r in self.results for skip in r.skips]

    @property
    def skips_by_category(self) -> dict[SkipCategory, list[SkipRecord]]:
        grouped: dict[SkipCategory, list[SkipRecord]] = {}
        for skip in self.skips:
            grouped.setdefault(skip.category, []).append(skip)
        return grouped

    def category_counts(self) -> Counter[SkipCategory]:
        return Counter(skip.category for skip in self.skips)


class DocumentPipeline:
    def __init__(
        self,
        planner: TransactionPlanner,
        settings: Optional[NardaSettings] = None,
        csv_orders: Optional[CsvOrderService] = None,
        applications: Optional[ApplicationPlanner] = None,
    ):
        self.settings = settings or planner.settings
        self.planner = planner
        self.applications = applications
        self.csv_orders = csv_orders or CsvOrderService(self.settings)

    def process(self, document: PipelineInput) -> DocumentResult:
        if isinstance(document, CsvOrder):
            return self.process_order(document)
        return self.process_tokens(document)

    def process_tokens(self, document: TokenDocument) -> DocumentResult:
        result = DocumentResult(document_id=document.document_id, source=DocumentSource.tokens)
        try:
            extracted = extract_document(document, self.settings)
            result.fields = extracted.fields
            result.columns = extracted.columns
            result.line_items = extracted.line_items
            logger.debug(
                "%s: %d line items, invoice %s",
                document.document_id,
                len(extracted.line_items),
                extracted.fields.invoice_number,
            )
            self._group_and_plan(result)
        except Exception as exc:
            self._fail(result, exc)
        return result

    def process_order(self, order: CsvOrder) -> DocumentResult:
        result = DocumentResult(
            document_id=order.document_id,
            source=DocumentSource.csv,
            fields=order.fields,
            line_items=list(order.line_items),
        )
        try:
            check = self.csv_orders.check_total(order)
            if not check.is_valid:
                result.skips.append(
                    SkipRecord(
                        document_id=order.document_id,
                        category=SkipCategory.order_total_mismatch,
                        reason=(
                            f"Line items total {check.computed_total} but order reports "
                            f"{order.reported_total or 'no total'}"
                        ),
                        amount=check.computed_total,
                        details={
                            "computed_total": str(check.computed_total),
                            "reported_total": str(check.reported_total or ""),
                        },
                    )
                )
                return result
            self._group_and_plan(result)
        except Exception as exc:
            self._fail(result, exc)
        return result

    def _group_and_plan(self, result: DocumentResult) -> None:
        if not result.line_items:
            result.skips.append(
                SkipRecord(
                    document_id=result.document_id,
                    category=SkipCategory.no_line_items,
                    reason="No line items could be extracted",
                )
            )
            return
        classifier = self.planner.classifier_for(result.source)
        result.code_groups = group_by_code(result.line_items)
        result.bill_groups = group_by_bill_number(result.code_groups, classifier)
        plan = self.planner.plan(
            CreditDocument(
                document_id=result.document_id,
                fields=result.fields,
                code_groups=result.code_groups,
                bill_groups=result.bill_groups,
                source=result.source,
            )
        )
        result.intents.extend(plan.intents)
        result.skips.extend(plan.skips)
        if self.applications is None:
            return
        for intent in plan.intents:
            if isinstance(intent, JournalEntryIntent):
                applied = self.applications.plan(intent)
                result.intents.extend(applied.intents)
                result.skips.extend(applied.skips)

    def _fail(self, result: DocumentResult, exc: Exception) -> None:
        logger.exception("Processing failed for %s", result.document_id)
        result.intents.clear()
        result.skips = [
            SkipRecord(
                document_id=result.document_id,
                category=SkipCategory.processing_error,
                reason=f"{type(exc).__name__}: {exc}",
            )
        ]


class BatchProcessor:
    """Processes documents one after another, up to a per-run limit."""

    def __init__(self, pipeline: DocumentPipeline, limit: Optional[int] = None):
        self.pipeline = pipeline
        self.limit = pipeline.settings.max_documents_per_run if limit is None else limit

    def run(self, documents: Iterable[PipelineInput], limit: Optional[int] = None) -> BatchSummary:
        if limit is None:
            limit = self.limit
        summary = BatchSummary()
        for document in documents:
            if summary.processed_count >= limit:
                summary.deferred_ids.append(document.document_id)
                continue
            summary.results.append(self.pipeline.process(document))
        if summary.deferred_ids:
            logger.warning(
                "Run limit of %d reached; %d document(s) deferred", limit, len(summary.deferred_ids)
            )
        return summary


__all__ = [
    "DocumentResult",
    "BatchSummary",
    "DocumentPipeline",
    "BatchProcessor",
    "PipelineInput",
]

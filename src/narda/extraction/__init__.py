"""
Spatial extraction over rendered token streams.

``extract_document`` runs the locators and the line-item extractor in order
over one document's index and returns everything they found.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from narda.config import NardaSettings
from narda.model.document import ColumnPositions, DocumentFields, LineItem, TokenDocument

from .bill_numbers import extract_bill_number
from .columns import locate_columns
from .fields import locate_document_fields, locate_field
from .line_items import (
    CodeMatcher,
    LineItemExtractor,
    deduplicate_line_items,
    extract_line_items,
    normalize_code,
)
from .token_index import SpatialTokenIndex, normalize_token


@dataclass
class ExtractedDocument:
    document_id: str
    fields: DocumentFields
    columns: ColumnPositions
    line_items: list[LineItem] = field(default_factory=list)


def extract_document(
    document: TokenDocument, settings: Optional[NardaSettings] = None
) -> ExtractedDocument:
    settings = settings or NardaSettings()
    index = SpatialTokenIndex(document.tokens, settings.tolerances)
    columns = locate_columns(index)
    return ExtractedDocument(
        document_id=document.document_id,
        fields=locate_document_fields(index),
        columns=columns,
        line_items=extract_line_items(index, columns, settings),
    )


__all__ = [
    "ExtractedDocument",
    "extract_document",
    "SpatialTokenIndex",
    "normalize_token",
    "locate_field",
    "locate_document_fields",
    "locate_columns",
    "CodeMatcher",
    "LineItemExtractor",
    "normalize_code",
    "deduplicate_line_items",
    "extract_line_items",
    "extract_bill_number",
]

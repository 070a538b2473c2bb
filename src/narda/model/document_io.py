"""
Input document I/O: token documents (JSON) and warranty order exports (CSV).

A token document is the renderer's output for one invoice:

    {"document_id": "6123456.pdf", "tokens": [{"text": "NARDA", "x": 50, "y": 80}, ...]}

Order exports are read with pandas, all cells as strings.

Privacy
- Local file I/O only; no network access.
"""

from __future__ import annotations

import json
from pathlib import Path

import pandas as pd
from pydantic import ValidationError

from narda.model.document import TokenDocument


class DocumentFormatError(ValueError):
    """Raised when a token document file cannot be parsed into a TokenDocument."""


def load_token_document(path: Path) -> TokenDocument:
    """Load and validate one token document.

    A file without a ``document_id`` uses its file name instead.

    Raises:
        FileNotFoundError: If the file does not exist.
        DocumentFormatError: If the JSON is invalid or does not fit the schema.
    """
    if not path.exists():
        raise FileNotFoundError(f"Token document not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise DocumentFormatError(f"{path.name}: invalid JSON ({e.msg})") from e
    if not isinstance(data, dict):
        raise DocumentFormatError(f"{path.name}: expected a JSON object")
    data.setdefault("document_id", path.name)
    try:
        return TokenDocument.model_validate(data)
    except ValidationError as e:
        raise DocumentFormatError(f"{path.name}: {e.error_count()} schema error(s)") from e


def scan_token_documents(source_dir: Path) -> list[Path]:
    """Return token document paths in source_dir, sorted by name."""
    if not source_dir.is_dir():
        return []
    return sorted(p for p in source_dir.glob("*.json") if p.is_file())


def save_token_document(path: Path, document: TokenDocument) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(document.model_dump_json(indent=2), encoding="utf-8")


ORDER_CSV_COLUMNS = [
    "OrderNo",
    "NARDA Number",
    "Part",
    "Description",
    "Price",
    "Quantity",
    "Total",
    "Date Ordered",
]


def load_order_csv(path: Path) -> pd.DataFrame:
    """Read a warranty order export with every cell kept as text.

    Raises:
        FileNotFoundError: If the file does not exist.
        DocumentFormatError: If the file is empty or lacks a required column.
    """
    if not path.exists():
        raise FileNotFoundError(f"Order CSV not found: {path}")
    try:
        df = pd.read_csv(path, encoding="utf-8-sig", dtype=str, keep_default_na=False)
    except pd.errors.EmptyDataError as e:
        raise DocumentFormatError(f"{path.name}: empty file") from e
    df.columns = [str(c).strip() for c in df.columns]
    missing = [c for c in ORDER_CSV_COLUMNS if c not in df.columns]
    if missing:
        raise DocumentFormatError(f"{path.name}: missing required columns: {', '.join(missing)}")
    return df


def scan_order_files(source_dir: Path) -> list[Path]:
    if not source_dir.is_dir():
        return []
    return sorted(p for p in source_dir.glob("*.csv") if p.is_file())


__all__ = [
    "DocumentFormatError",
    "ORDER_CSV_COLUMNS",
    "load_token_document",
    "scan_token_documents",
    "save_token_document",
    "load_order_csv",
    "scan_order_files",
]

"""
Workspace - centralized data path resolution for the NARDA credit pipeline.

A Workspace represents the root directory holding incoming documents, the
ledger snapshot used by the file-backed collaborators, configuration and
generated reports. All paths are computed relative to this root.

Resolution priority:
1. Explicit path (--data-dir CLI option)
2. NARDA_DATA environment variable
3. Current working directory
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass
class Workspace:
    """Root directory for all pipeline data paths."""

    root: Path

    @classmethod
    def resolve(cls, explicit: Path | None = None) -> Workspace:
        """Resolve workspace root from explicit path, env var, or CWD.

        Args:
            explicit: Explicitly provided path (highest priority)

        Returns:
            Workspace with resolved root
        """
        if explicit is not None:
            return cls(root=explicit)
        env = os.environ.get("NARDA_DATA")
        if env:
            return cls(root=Path(env))
        return cls(root=Path.cwd())

    @property
    def inbox_dir(self) -> Path:
        """Token documents (*.json) waiting to be processed."""
        return self.root / "inbox"

    @property
    def csv_inbox_dir(self) -> Path:
        return self.root / "inbox" / "csv"

    @property
    def ledger_data_dir(self) -> Path:
        return self.root / "data"

    @property
    def authorizations_path(self) -> Path:
        return self.root / "data" / "authorizations.csv"

    @property
    def transactions_path(self) -> Path:
        return self.root / "data" / "transactions.csv"

    @property
    def open_invoices_path(self) -> Path:
        return self.root / "data" / "open_invoices.csv"

    @property
    def settings_config(self) -> Path:
        return self.root / "config" / "narda.yml"

    @property
    def reports_dir(self) -> Path:
        return self.root / "reports"


__all__ = ["Workspace"]

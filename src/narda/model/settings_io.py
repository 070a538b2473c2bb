"""
Settings I/O (YAML loading and saving of config/narda.yml).

Privacy
- All operations are local file I/O only
- No network access
"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import ValidationError

from narda.config import NardaSettings


def load_settings(path: Path) -> NardaSettings:
    """Load pipeline settings from YAML (safe loader).

    A missing or empty file yields the built-in defaults; keys that are present
    override the matching defaults.

    Raises:
        ValueError: If the YAML cannot be parsed or does not fit the settings schema.
    """
    if not path.exists():
        return NardaSettings()

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Settings file must contain a mapping: {path}")

    try:
        return NardaSettings.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid settings in {path}: {e}") from e


def save_settings(path: Path, settings: NardaSettings) -> None:
    """Write settings to YAML, creating parent directories if needed."""
    path.parent.mkdir(parents=True, exist_ok=True)

    # mode="json" serializes Decimals and tuples into YAML-friendly values
    data = settings.model_dump(mode="json")

    with path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(
            data,
            f,
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
        )


__all__ = ["load_settings", "save_settings"]

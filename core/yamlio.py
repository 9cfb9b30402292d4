"""Shared YAML read/write helpers for record snapshots and settings."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

__all__ = ["load_config", "dump_config", "load_list"]


def load_config(path: Optional[str]) -> Dict[str, Any]:
    """Load a YAML file into a dict; returns {} if missing/empty.

    Raises:
        ValueError: if the file is not valid YAML or its root is not a mapping.
    """
    if not path:
        return {}
    p = Path(path)
    if not p.exists():
        return {}
    text = p.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {p}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Top-level YAML must be a mapping (dict): {p}")
    return data


def load_list(path: str, key: str) -> List[Any]:
    """Load ``key`` from a YAML mapping file, requiring it to be a list.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the document or the key has the wrong shape.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"YAML file not found: {p}")
    data = load_config(str(p))
    items = data.get(key)
    if items is None:
        return []
    if not isinstance(items, list):
        raise ValueError(f"Invalid document: '{key}' must be a list")
    return items


def dump_config(path: str, data: Dict[str, Any]) -> None:
    """Write a dict to YAML with stable ordering for humans."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(
        yaml.safe_dump(data, sort_keys=False, allow_unicode=True), encoding="utf-8"
    )

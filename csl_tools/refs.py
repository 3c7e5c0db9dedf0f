"""Loading CSL-JSON references from a JSON array or JSONL file."""
from __future__ import annotations

import json
from pathlib import Path


class RefsError(Exception):
    pass


def normalize_refs(content: str) -> list[dict]:
    trimmed = content.strip()
    if not trimmed:
        return []

    if trimmed.startswith("["):
        try:
            value = json.loads(trimmed)
        except json.JSONDecodeError as exc:
            raise RefsError(f"Invalid JSON: {exc}") from exc
        if not isinstance(value, list):
            raise RefsError("References must be a JSON array")
        for index, entry in enumerate(value):
            if not isinstance(entry, dict):
                raise RefsError(f"Invalid JSON array element {index}: expected an object")
        return value

    # Anything else is JSONL: one reference object per non-blank line.
    refs: list[dict] = []
    for line_num, line in enumerate(content.splitlines(), 1):
        line = line.strip()
        if not line:
            continue
        try:
            value = json.loads(line)
        except json.JSONDecodeError as exc:
            raise RefsError(f"Invalid JSONL at line {line_num}: {exc}") from exc
        if not isinstance(value, dict):
            raise RefsError(f"Invalid JSONL at line {line_num}: expected an object")
        refs.append(value)
    return refs


def load_refs(path: str | Path) -> list[dict]:
    try:
        content = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise RefsError(f"Failed to read file: {exc}") from exc
    return normalize_refs(content)

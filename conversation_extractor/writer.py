"""Append-only output log writer."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any

BLOCK_SEPARATOR = "\n" + "=" * 80 + "\n"


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def append_block(path: Path, payload: dict[str, Any]) -> None:
    """Append a separator line and a pretty-printed JSON document."""
    _ensure_parent(path)
    text = BLOCK_SEPARATOR + json.dumps(payload, indent=2, ensure_ascii=False) + "\n"
    with path.open("a", encoding="utf-8") as handle:
        handle.write(text)


def append_line(path: Path, payload: dict[str, Any]) -> None:
    """Append one compact JSON line."""
    _ensure_parent(path)
    text = json.dumps(payload, ensure_ascii=False, separators=(",", ":")) + "\n"
    with path.open("a", encoding="utf-8") as handle:
        handle.write(text)


def append_lines(path: Path, payloads: list[dict[str, Any]]) -> None:
    """Append several compact JSON lines in a single write."""
    if not payloads:
        return
    _ensure_parent(path)
    text = "".join(json.dumps(p, ensure_ascii=False, separators=(",", ":")) + "\n" for p in payloads)
    with path.open("a", encoding="utf-8") as handle:
        handle.write(text)

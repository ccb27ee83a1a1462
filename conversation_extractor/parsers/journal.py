"""Read line-delimited JSON session journals."""
from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger("conversation_extractor.journal")


def parse_journal_text(raw: str) -> list[dict[str, Any]]:
    """Parse journal text, dropping blank and unparsable lines.

    A partially written trailing line from a concurrent writer is just another
    unparsable line.
    """
    entries: list[dict[str, Any]] = []
    for line in raw.split("\n"):
        if not line.strip():
            continue
        try:
            entry = json.loads(line)
        except ValueError:
            continue
        if isinstance(entry, dict):
            entries.append(entry)
    return entries


def read_journal_entries(path: Path) -> list[dict[str, Any]]:
    # A split multibyte character only spoils its own line.
    try:
        raw = path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        logger.debug("Journal unavailable at %s: %s", path, exc)
        return []
    return parse_journal_text(raw)


async def aread_journal_entries(path: Path) -> list[dict[str, Any]]:
    return await asyncio.to_thread(read_journal_entries, path)

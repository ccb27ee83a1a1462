"""Find the last turn already persisted for a session.

Every incremental run rescans the output file, so overlapping or repeated
runs against the same journal append each turn exactly once.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path

from conversation_extractor.models import TURN_SCHEMA

logger = logging.getLogger("conversation_extractor.dedup")


def last_written_turn_index(path: Path, session_id: str) -> int:
    """Highest `turn.index` written for `session_id`, or -1 if none."""
    try:
        raw = path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        logger.debug("No previous output at %s: %s", path, exc)
        return -1

    last = -1
    for line in raw.split("\n"):
        if not line.strip():
            continue
        try:
            record = json.loads(line)
        except ValueError:
            continue
        if not isinstance(record, dict) or record.get("schema") != TURN_SCHEMA:
            continue
        session = record.get("session")
        if not isinstance(session, dict) or session.get("sessionId") != session_id:
            continue
        turn = record.get("turn")
        index = turn.get("index") if isinstance(turn, dict) else None
        if isinstance(index, int) and not isinstance(index, bool) and index > last:
            last = index
    return last

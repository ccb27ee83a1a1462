"""Incremental payload: one line per newly observed turn."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from pydantic import BaseModel

from conversation_extractor import config
from conversation_extractor.assemblers.base import PayloadAssembler, utc_now_iso
from conversation_extractor.dedup import last_written_turn_index
from conversation_extractor.models import SessionMeta, Turn, TurnPayload

logger = logging.getLogger("conversation_extractor.assemblers.incremental")


class IncrementalAssembler(PayloadAssembler):
    mode = "incremental"
    line_format = True

    def output_path(self) -> Path:
        return config.JSONL_FILE

    def select_turns(self, meta: SessionMeta, turns: Sequence[Turn], output_path: Path) -> list[Turn]:
        if not meta.sessionId:
            return list(turns)
        last_written = last_written_turn_index(output_path, meta.sessionId)
        fresh = [turn for turn in turns if turn.index > last_written]
        logger.debug(
            "Session %s: %d turns, last written index %d, %d new",
            meta.sessionId,
            len(turns),
            last_written,
            len(fresh),
        )
        return fresh

    def assemble(self, meta: SessionMeta, turns: Sequence[Turn], entry_count: int) -> list[BaseModel]:
        extracted_at = utc_now_iso()
        return [TurnPayload(extractedAt=extracted_at, session=meta, turn=turn) for turn in turns]

"""Full payload: every turn, untruncated."""
from __future__ import annotations

from pathlib import Path
from typing import Sequence

from pydantic import BaseModel

from conversation_extractor import config
from conversation_extractor.assemblers.base import PayloadAssembler, conversation_stats, utc_now_iso
from conversation_extractor.models import ConversationPayload, SessionMeta, Turn


class FullAssembler(PayloadAssembler):
    mode = "full"

    def output_path(self) -> Path:
        return config.LOG_FILE

    def assemble(self, meta: SessionMeta, turns: Sequence[Turn], entry_count: int) -> list[BaseModel]:
        return [
            ConversationPayload(
                extractedAt=utc_now_iso(),
                session=meta,
                stats=conversation_stats(turns, entry_count),
                turns=list(turns),
            )
        ]

"""Payload assembler strategy interface and shared helpers."""
from __future__ import annotations

import json
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Sequence

from pydantic import BaseModel

from conversation_extractor.models import ConversationStats, SessionMeta, Turn


def utc_now_iso() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a `Z` suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def truncate(value: Optional[str], budget: int) -> Optional[str]:
    """Cut `value` to `budget` characters, noting how many were dropped."""
    if not value:
        return value
    if len(value) <= budget:
        return value
    return f"{value[:budget]}… [+{len(value) - budget}]"


def compact_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)


def conversation_stats(turns: Sequence[Turn], entry_count: int) -> ConversationStats:
    total_cost = 0
    for turn in turns:
        if turn.usage is not None:
            total_cost += turn.usage.cost.total
    return ConversationStats(
        totalEntries=entry_count,
        turns=len(turns),
        toolCallCount=sum(len(turn.toolCalls) for turn in turns),
        thinkingTurnCount=sum(1 for turn in turns if turn.thinking),
        totalCost=total_cost,
    )


class PayloadAssembler(ABC):
    """Maps reconstructed turns to output documents.

    `line_format` selects the writer: compact JSON lines when true, separated
    pretty-printed blocks otherwise.
    """

    mode: str = ""
    line_format: bool = False

    @abstractmethod
    def output_path(self) -> Path:
        ...

    def select_turns(self, meta: SessionMeta, turns: Sequence[Turn], output_path: Path) -> list[Turn]:
        """Turns that still need to be written. All of them by default."""
        return list(turns)

    @abstractmethod
    def assemble(self, meta: SessionMeta, turns: Sequence[Turn], entry_count: int) -> list[BaseModel]:
        ...

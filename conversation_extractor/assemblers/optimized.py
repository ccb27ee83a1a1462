"""Size-optimized payload.

Keeps the shape of every turn but truncates free text and reduces tool calls
to their name, input keys and short previews, so large tool payloads (file
contents and the like) are not shipped to a remote collector.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

from pydantic import BaseModel

from conversation_extractor import config
from conversation_extractor.assemblers.base import (
    PayloadAssembler,
    compact_json,
    conversation_stats,
    truncate,
    utc_now_iso,
)
from conversation_extractor.models import (
    ConversationPayload,
    SessionMeta,
    ToolCall,
    ToolCallPreview,
    Turn,
    TurnPreview,
)


class OptimizedAssembler(PayloadAssembler):
    mode = "optimized"

    def __init__(
        self,
        thinking_budget: Optional[int] = None,
        response_budget: Optional[int] = None,
        tool_input_budget: Optional[int] = None,
        tool_result_budget: Optional[int] = None,
    ) -> None:
        self.thinking_budget = thinking_budget if thinking_budget is not None else config.THINKING_PREVIEW
        self.response_budget = response_budget if response_budget is not None else config.RESPONSE_PREVIEW
        self.tool_input_budget = tool_input_budget if tool_input_budget is not None else config.TOOL_INPUT_PREVIEW
        self.tool_result_budget = tool_result_budget if tool_result_budget is not None else config.TOOL_RESULT_PREVIEW

    def output_path(self) -> Path:
        return config.LOG_FILE

    def preview_tool_call(self, call: ToolCall) -> ToolCallPreview:
        return ToolCallPreview(
            name=call.name,
            inputKeys=list(call.input.keys()),
            inputPreview=truncate(compact_json(call.input), self.tool_input_budget),
            resultPreview=truncate(call.result, self.tool_result_budget),
            isError=call.isError,
        )

    def preview_turn(self, turn: Turn) -> TurnPreview:
        return TurnPreview(
            index=turn.index,
            timestamp=turn.timestamp,
            userMessage=truncate(turn.userMessage, self.response_budget),
            thinking=truncate(turn.thinking, self.thinking_budget) or None,
            toolCalls=[self.preview_tool_call(call) for call in turn.toolCalls],
            response=truncate(turn.response, self.response_budget),
        )

    def assemble(self, meta: SessionMeta, turns: Sequence[Turn], entry_count: int) -> list[BaseModel]:
        return [
            ConversationPayload(
                extractedAt=utc_now_iso(),
                session=meta,
                stats=conversation_stats(turns, entry_count),
                turns=[self.preview_turn(turn) for turn in turns],
            )
        ]

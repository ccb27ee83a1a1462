"""Reconstruct conversation turns from session journal entries.

A turn is one user message plus everything the assistant did in response:
thinking, tool calls (with their results), text and usage, up to the next
user message. Tool results are correlated to calls by id through a pending
table that lives for the whole pass, so a result can still resolve a call
whose turn has already been closed.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional

from conversation_extractor.models import ToolCall, Turn
from conversation_extractor.parsers.content import extract_text
from conversation_extractor.parsers.usage import UsageAccumulator

_TOOL_CALL_BLOCK_TYPES = {"toolCall", "tool_use"}
# Checked in order; the first non-null value wins.
_TOOL_ARGUMENT_KEYS = ("arguments", "input", "parameters")
_TOOL_NAME_KEYS = ("name", "toolName")
_TOOL_RESULT_ID_KEYS = ("toolCallId", "toolUseId")


def _first_present(source: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        value = source.get(key)
        if value is not None:
            return value
    return None


def _normalize_tool_input(raw: Any) -> dict[str, Any]:
    if raw is None:
        return {}
    if isinstance(raw, Mapping):
        return dict(raw)
    if isinstance(raw, str):
        try:
            parsed = json.loads(raw)
        except ValueError:
            parsed = None
        if isinstance(parsed, dict):
            return parsed
    return {"value": raw}


def tool_call_from_block(block: Mapping[str, Any]) -> ToolCall:
    raw_id = block.get("id")
    name = _first_present(block, _TOOL_NAME_KEYS)
    return ToolCall(
        id=str(raw_id) if raw_id is not None and raw_id != "" else None,
        name=str(name) if name is not None else "unknown",
        input=_normalize_tool_input(_first_present(block, _TOOL_ARGUMENT_KEYS)),
    )


@dataclass
class _OpenTurn:
    index: int
    timestamp: Any
    user_message: str
    thinking: list[str] = field(default_factory=list)
    tool_calls: list[ToolCall] = field(default_factory=list)
    response: list[str] = field(default_factory=list)
    model: Optional[str] = None
    stop_reason: Optional[str] = None
    usage: UsageAccumulator = field(default_factory=UsageAccumulator)

    def finalize(self) -> Turn:
        thinking = "\n\n".join(self.thinking)
        response = "".join(self.response)
        return Turn(
            index=self.index,
            timestamp=self.timestamp,
            model=self.model,
            stopReason=self.stop_reason,
            usage=self.usage.result(),
            userMessage=self.user_message,
            thinking=thinking or None,
            toolCalls=self.tool_calls,
            response=response or None,
        )


class TurnBuilder:
    """Single-pass state machine over journal entries.

    Feed entries in journal order with `feed`, then call `finish` to close the
    trailing open turn and collect the result. One builder serves one pass.
    """

    def __init__(self) -> None:
        self._turns: list[Turn] = []
        self._current: Optional[_OpenTurn] = None
        self._pending: dict[str, ToolCall] = {}

    @property
    def has_open_turn(self) -> bool:
        return self._current is not None

    @property
    def pending_tool_call_ids(self) -> list[str]:
        return list(self._pending)

    def feed(self, entry: Mapping[str, Any]) -> None:
        message = entry.get("message")
        if entry.get("type") != "message" or not isinstance(message, Mapping):
            return

        role = message.get("role")
        if role == "user":
            self._open_turn(entry, message)
        elif role == "assistant" and self._current is not None:
            self._apply_assistant(self._current, message)
        elif role == "toolResult" and self._current is not None:
            self._apply_tool_result(entry, message)

    def finish(self) -> list[Turn]:
        self._close_turn()
        return list(self._turns)

    def _close_turn(self) -> None:
        if self._current is not None:
            self._turns.append(self._current.finalize())
            self._current = None

    def _open_turn(self, entry: Mapping[str, Any], message: Mapping[str, Any]) -> None:
        self._close_turn()
        self._current = _OpenTurn(
            index=len(self._turns),
            timestamp=entry.get("timestamp"),
            user_message=extract_text(message.get("content")),
        )

    def _apply_assistant(self, turn: _OpenTurn, message: Mapping[str, Any]) -> None:
        turn.usage.add(message.get("usage"))
        if message.get("model"):
            turn.model = str(message["model"])
        if message.get("stopReason"):
            turn.stop_reason = str(message["stopReason"])

        content = message.get("content")
        blocks = content if isinstance(content, list) else []
        for block in blocks:
            if not isinstance(block, Mapping) or not block.get("type"):
                continue
            block_type = block["type"]
            if block_type == "thinking":
                thinking = block.get("thinking")
                if thinking:
                    turn.thinking.append(str(thinking))
            elif block_type in _TOOL_CALL_BLOCK_TYPES:
                call = tool_call_from_block(block)
                turn.tool_calls.append(call)
                if call.id is not None:
                    self._pending[call.id] = call
            elif block_type == "text":
                text = block.get("text")
                if isinstance(text, str):
                    turn.response.append(text)

    def _apply_tool_result(self, entry: Mapping[str, Any], message: Mapping[str, Any]) -> None:
        call_id = _first_present(message, _TOOL_RESULT_ID_KEYS)
        if call_id is None:
            return
        call = self._pending.pop(str(call_id), None)
        if call is None:
            return
        content = message.get("content")
        if content is None:
            content = entry.get("content")
        is_error = message.get("isError")
        call.result = extract_text(content)
        call.isError = bool(is_error) if is_error is not None else False


def build_turns(entries: Iterable[Mapping[str, Any]]) -> list[Turn]:
    """Run one full pass over `entries` and return the finalized turns."""
    builder = TurnBuilder()
    for entry in entries:
        builder.feed(entry)
    return builder.finish()

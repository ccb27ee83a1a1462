"""Pydantic models matching the extractor's output wire shapes."""
from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional, Union

Number = Union[int, float]

CONVERSATION_SCHEMA = "openclaw-conversation-v1"
TURN_SCHEMA = "openclaw-turn-v1"
SESSION_START_SCHEMA = "openclaw-session-start-v1"
RAW_SCHEMA = "openclaw-conversation-raw-v1"

# ── Usage ───────────────────────────────────────────────────────────

class UsageCost(BaseModel):
    input: Number = 0
    output: Number = 0
    cacheRead: Number = 0
    cacheWrite: Number = 0
    total: Number = 0


class UsageRecord(BaseModel):
    input: Number = 0
    output: Number = 0
    cacheRead: Number = 0
    cacheWrite: Number = 0
    totalTokens: Number = 0
    cost: UsageCost = Field(default_factory=UsageCost)


# ── Turn-related models ─────────────────────────────────────────────

class ToolCall(BaseModel):
    id: Optional[str] = None
    name: str = "unknown"
    input: dict[str, Any] = Field(default_factory=dict)
    result: Optional[str] = None
    isError: Optional[bool] = None


class Turn(BaseModel):
    index: int
    timestamp: Optional[Any] = None
    model: Optional[str] = None
    stopReason: Optional[str] = None
    usage: Optional[UsageRecord] = None
    userMessage: str = ""
    thinking: Optional[str] = None
    toolCalls: list[ToolCall] = Field(default_factory=list)
    response: Optional[str] = None


class SessionMeta(BaseModel):
    agentId: Optional[str] = None
    sessionId: Optional[str] = None
    sessionKey: Optional[str] = None
    channel: Optional[str] = None
    cwd: Optional[str] = None


class ConversationStats(BaseModel):
    totalEntries: int = 0
    turns: int = 0
    toolCallCount: int = 0
    thinkingTurnCount: int = 0
    totalCost: Optional[float] = None


# ── Optimized (truncated) shapes ────────────────────────────────────

class ToolCallPreview(BaseModel):
    name: str = "unknown"
    inputKeys: list[str] = Field(default_factory=list)
    inputPreview: Optional[str] = None
    resultPreview: Optional[str] = None
    isError: Optional[bool] = None


class TurnPreview(BaseModel):
    index: int
    timestamp: Optional[Any] = None
    userMessage: Optional[str] = None
    thinking: Optional[str] = None
    toolCalls: list[ToolCallPreview] = Field(default_factory=list)
    response: Optional[str] = None


# ── Output documents ────────────────────────────────────────────────

class ConversationPayload(BaseModel):
    schema_: str = Field(default=CONVERSATION_SCHEMA, alias="schema")
    extractedAt: str
    session: SessionMeta
    stats: ConversationStats
    turns: list[Turn | TurnPreview] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


class TurnPayload(BaseModel):
    schema_: str = Field(default=TURN_SCHEMA, alias="schema")
    extractedAt: str
    session: SessionMeta
    turn: Turn

    model_config = ConfigDict(populate_by_name=True)


class SessionStartInfo(BaseModel):
    agentId: Optional[str] = None
    sessionId: Optional[str] = None
    cwd: Optional[str] = None


class SessionStartPayload(BaseModel):
    schema_: str = Field(default=SESSION_START_SCHEMA, alias="schema")
    extractedAt: str
    session: SessionStartInfo

    model_config = ConfigDict(populate_by_name=True)


class RawDumpPayload(BaseModel):
    schema_: str = Field(default=RAW_SCHEMA, alias="schema")
    session: SessionMeta
    extractedAt: str
    entries: list[dict[str, Any]] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


# ── Lifecycle events ────────────────────────────────────────────────

class LifecycleEvent(BaseModel):
    """Hook event delivered by the runtime.

    `context` is kept as an opaque bag; only identifying fields are read from it.
    """
    type: str
    action: str
    sessionKey: Optional[str] = None
    context: Optional[dict[str, Any]] = Field(default_factory=dict)

    model_config = ConfigDict(extra="ignore")

    @property
    def key(self) -> str:
        return f"{self.type}:{self.action}"


def dump_payload(payload: BaseModel) -> dict[str, Any]:
    """Serialize an output document with wire-format keys."""
    return payload.model_dump(mode="json", by_alias=True)

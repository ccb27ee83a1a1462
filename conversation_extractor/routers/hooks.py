"""Hook ingress API: lets the runtime deliver lifecycle events over HTTP."""
from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from conversation_extractor.hooks.handlers import dispatch
from conversation_extractor.models import LifecycleEvent
from conversation_extractor.pipeline import ExtractionResult

logger = logging.getLogger("conversation_extractor.routers.hooks")

hooks_router = APIRouter(prefix="/api/hooks", tags=["hooks"])


class ExtractionSummary(BaseModel):
    mode: str
    status: str
    sessionFile: str
    sessionId: Optional[str] = None
    entryCount: int = 0
    turnCount: int = 0
    turnsWritten: int = 0
    outputPath: Optional[str] = None


class HookEventResponse(BaseModel):
    event: str
    handled: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)
    extraction: Optional[ExtractionSummary] = None


def _summarize(result: Any) -> Optional[ExtractionSummary]:
    if not isinstance(result, ExtractionResult):
        return None
    return ExtractionSummary(
        mode=result.mode,
        status=result.status,
        sessionFile=str(result.session_file),
        sessionId=result.session.sessionId if result.session else None,
        entryCount=result.entry_count,
        turnCount=result.turn_count,
        turnsWritten=result.turns_written,
        outputPath=str(result.output_path) if result.output_path else None,
    )


@hooks_router.post("/events", response_model=HookEventResponse)
async def receive_event(event: LifecycleEvent):
    try:
        outcome = await dispatch(event)
    except OSError as exc:
        raise HTTPException(status_code=500, detail=f"Failed to write extractor output: {exc}") from exc
    return HookEventResponse(
        event=outcome.event,
        handled=outcome.handled,
        failed=outcome.failed,
        extraction=_summarize(outcome.results.get("conversation-extractor")),
    )

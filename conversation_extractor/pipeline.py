"""One extraction run: journal -> turns -> payload -> output log."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from conversation_extractor import config
from conversation_extractor.assemblers import PayloadAssembler, get_assembler
from conversation_extractor.assemblers.base import utc_now_iso
from conversation_extractor.models import LifecycleEvent, RawDumpPayload, SessionMeta, Turn, dump_payload
from conversation_extractor.observability import (
    record_extraction,
    record_token_cost,
    record_turns_written,
    start_span,
)
from conversation_extractor.parsers.journal import aread_journal_entries
from conversation_extractor.parsers.turns import build_turns
from conversation_extractor.sessions import resolve_session_meta
from conversation_extractor.writer import append_block, append_lines

logger = logging.getLogger("conversation_extractor.pipeline")


@dataclass
class ExtractionResult:
    mode: str
    session_file: Path
    entry_count: int = 0
    turn_count: int = 0
    turns_written: int = 0
    documents_written: int = 0
    output_path: Optional[Path] = None
    session: Optional[SessionMeta] = None

    @property
    def status(self) -> str:
        if self.entry_count == 0:
            return "empty"
        if self.documents_written == 0:
            return "unchanged"
        return "written"


def _record_usage(meta: SessionMeta, turns: list[Turn]) -> None:
    for turn in turns:
        if turn.usage is None:
            continue
        record_token_cost(
            agent_id=meta.agentId or "",
            model=turn.model or "",
            token_input=turn.usage.input,
            token_output=turn.usage.output,
            cost=turn.usage.cost.total,
        )


def _write_documents(assembler: PayloadAssembler, output_path: Path, documents: list[dict]) -> None:
    if assembler.line_format:
        append_lines(output_path, documents)
        return
    for document in documents:
        append_block(output_path, document)


async def _run(
    result: ExtractionResult,
    assembler: PayloadAssembler,
    event: LifecycleEvent,
    verbose: bool,
) -> None:
    entries = await aread_journal_entries(result.session_file)
    result.entry_count = len(entries)
    if not entries:
        return

    turns = build_turns(entries)
    result.turn_count = len(turns)
    if not turns:
        return

    meta = resolve_session_meta(event, entries, session_id=result.session_file.stem)
    result.session = meta
    output_path = assembler.output_path()
    result.output_path = output_path

    selected = assembler.select_turns(meta, turns, output_path)
    if selected:
        documents = [dump_payload(doc) for doc in assembler.assemble(meta, selected, len(entries))]
        _write_documents(assembler, output_path, documents)
        result.turns_written = len(selected)
        result.documents_written = len(documents)
        record_turns_written(assembler.mode, len(selected), agent_id=meta.agentId or "")
        _record_usage(meta, selected)

    if verbose:
        raw = RawDumpPayload(session=meta, extractedAt=utc_now_iso(), entries=entries)
        append_block(config.VERBOSE_LOG_FILE, dump_payload(raw))


async def extract_session(
    session_file: Path,
    event: LifecycleEvent,
    *,
    mode: Optional[str] = None,
    verbose: Optional[bool] = None,
    assembler: Optional[PayloadAssembler] = None,
) -> ExtractionResult:
    """Extract turns from one journal and append them to the mode's output.

    Read-side problems (missing journal, bad lines, missing previous output)
    end the run quietly. Write failures propagate.
    """
    assembler = assembler or get_assembler(mode)
    result = ExtractionResult(mode=assembler.mode, session_file=session_file)
    started = time.monotonic()

    with start_span("extractor.run", {"extractor.mode": assembler.mode, "extractor.session_file": str(session_file)}):
        try:
            await _run(result, assembler, event, config.VERBOSE if verbose is None else verbose)
        except Exception:
            record_extraction(assembler.mode, "error", (time.monotonic() - started) * 1000)
            raise

    record_extraction(assembler.mode, result.status, (time.monotonic() - started) * 1000)
    logger.info(
        "Extraction %s (mode=%s session=%s entries=%d turns=%d written=%d)",
        result.status,
        result.mode,
        result.session.sessionId if result.session else session_file.stem,
        result.entry_count,
        result.turn_count,
        result.turns_written,
    )
    return result

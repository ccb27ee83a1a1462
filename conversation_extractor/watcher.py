"""Journal watcher using watchfiles.

Turns modifications of session journals into extraction runs, for
deployments where the runtime does not deliver `message:sent` hooks.
"""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

from watchfiles import Change, awatch

from conversation_extractor import config
from conversation_extractor.models import LifecycleEvent
from conversation_extractor.pipeline import extract_session
from conversation_extractor.sessions import sessions_dir

logger = logging.getLogger("conversation_extractor.watcher")


class JournalWatcher:
    """Background watcher that runs the extractor on journal change."""

    def __init__(self, agent_id: str = "", mode: str = "incremental"):
        self.agent_id = agent_id or config.DEFAULT_AGENT_ID
        self.mode = mode
        self._task: Optional[asyncio.Task] = None
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        if self._running:
            logger.warning("Journal watcher already running")
            return
        self._running = True
        self._task = asyncio.create_task(self.run())
        logger.info("Journal watcher started for agent %s", self.agent_id)

    async def stop(self) -> None:
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Journal watcher stopped")

    def changed_journals(self, changes: set[tuple[Change, str]]) -> list[Path]:
        """Added or modified `.jsonl` journals, deduplicated, in sorted order."""
        paths = {
            Path(path_str)
            for change_type, path_str in changes
            if change_type in (Change.added, Change.modified) and path_str.endswith(".jsonl")
        }
        return sorted(paths)

    def event_for(self, journal: Path) -> LifecycleEvent:
        return LifecycleEvent(
            type="message",
            action="sent",
            context={"agentId": self.agent_id, "sessionId": journal.stem},
        )

    async def process(self, journals: list[Path]) -> None:
        for journal in journals:
            try:
                await extract_session(journal, self.event_for(journal), mode=self.mode)
            except OSError as exc:
                logger.error("Extraction failed for %s: %s", journal, exc)
            except Exception:
                logger.exception("Unexpected error extracting %s", journal)

    async def run(self) -> None:
        self._running = True
        watch_path = sessions_dir(self.agent_id)
        if not watch_path.exists():
            logger.warning("Sessions directory %s does not exist, watcher has nothing to monitor", watch_path)
            self._running = False
            return

        logger.info("Watching %s", watch_path)
        try:
            async for changes in awatch(watch_path, debounce=config.WATCH_DEBOUNCE_MS):
                if not self._running:
                    break
                journals = self.changed_journals(changes)
                if journals:
                    logger.info("Detected %d changed journals", len(journals))
                    await self.process(journals)
        except asyncio.CancelledError:
            logger.info("Journal watcher task cancelled")
        finally:
            self._running = False

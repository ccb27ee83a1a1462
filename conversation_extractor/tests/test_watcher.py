import json
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from watchfiles import Change

from conversation_extractor import config
from conversation_extractor.watcher import JournalWatcher


class JournalWatcherTests(unittest.IsolatedAsyncioTestCase):
    def test_only_added_or_modified_journals_are_selected(self) -> None:
        watcher = JournalWatcher(agent_id="main")
        changes = {
            (Change.modified, "/s/a.jsonl"),
            (Change.added, "/s/b.jsonl"),
            (Change.modified, "/s/a.jsonl.tmp"),
            (Change.deleted, "/s/c.jsonl"),
            (Change.modified, "/s/notes.md"),
        }

        self.assertEqual(watcher.changed_journals(changes), [Path("/s/a.jsonl"), Path("/s/b.jsonl")])

    def test_synthetic_event_identifies_the_session(self) -> None:
        event = JournalWatcher(agent_id="ops").event_for(Path("/s/abc.jsonl"))

        self.assertEqual(event.key, "message:sent")
        self.assertEqual(event.context, {"agentId": "ops", "sessionId": "abc"})

    async def test_process_runs_incremental_extraction(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            journal = root / "abc.jsonl"
            journal.write_text(
                json.dumps({"type": "message", "message": {"role": "user", "content": "hi"}}) + "\n",
                encoding="utf-8",
            )
            out = root / "out.jsonl"
            with patch.object(config, "JSONL_FILE", out), patch.object(config, "VERBOSE", False):
                watcher = JournalWatcher(agent_id="main")
                await watcher.process([journal])
                await watcher.process([journal])

            lines = out.read_text(encoding="utf-8").splitlines()
        self.assertEqual(len(lines), 1)
        self.assertEqual(json.loads(lines[0])["session"]["sessionId"], "abc")

    async def test_process_continues_after_unexpected_error(self) -> None:
        calls = []

        async def flaky(journal, event, mode=None):
            calls.append(journal)
            if journal.stem == "bad":
                raise ValueError("Unknown extractor mode")

        watcher = JournalWatcher(agent_id="main")
        with patch("conversation_extractor.watcher.extract_session", side_effect=flaky):
            with self.assertLogs("conversation_extractor.watcher", level="ERROR"):
                await watcher.process([Path("/s/bad.jsonl"), Path("/s/good.jsonl")])

        self.assertEqual(calls, [Path("/s/bad.jsonl"), Path("/s/good.jsonl")])

    async def test_run_without_sessions_dir_returns(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            with patch.object(config, "STATE_DIR", Path(tmpdir)):
                watcher = JournalWatcher(agent_id="main")
                await watcher.run()
        self.assertFalse(watcher.is_running)


if __name__ == "__main__":
    unittest.main()

import os
import tempfile
import time
import unittest
from pathlib import Path
from unittest.mock import patch

from conversation_extractor import config
from conversation_extractor.models import LifecycleEvent
from conversation_extractor.sessions import (
    channel_from_session_key,
    event_identity,
    find_newest_session_file,
    resolve_session_file,
    resolve_session_meta,
)


class SessionMetaTests(unittest.TestCase):
    def test_channel_is_segment_after_agent_prefix(self) -> None:
        self.assertEqual(channel_from_session_key("agent:main:matrix:!room:server", "main"), "matrix")
        self.assertEqual(channel_from_session_key("agent:main:main", "main"), "main")
        self.assertIsNone(channel_from_session_key(None, "main"))

    def test_meta_reads_context_and_session_header(self) -> None:
        event = LifecycleEvent(
            type="agent",
            action="bootstrap",
            sessionKey="agent:ops:telegram:chat-1",
            context={"agentId": "ops", "sessionId": "abc"},
        )
        meta = resolve_session_meta(event, [{"type": "session", "cwd": "/srv/work"}])

        self.assertEqual(meta.agentId, "ops")
        self.assertEqual(meta.sessionId, "abc")
        self.assertEqual(meta.channel, "telegram")
        self.assertEqual(meta.cwd, "/srv/work")

    def test_session_key_can_come_from_context(self) -> None:
        event = LifecycleEvent(type="agent", action="bootstrap", context={"sessionKey": "agent:main:slack:x"})
        meta = resolve_session_meta(event, [], session_id="from-file")

        self.assertEqual(meta.agentId, "main")
        self.assertEqual(meta.sessionId, "from-file")
        self.assertEqual(meta.channel, "slack")
        self.assertIsNone(meta.cwd)

    def test_credential_config_is_never_read(self) -> None:
        event = LifecycleEvent(
            type="agent",
            action="bootstrap",
            context={"agentId": "main", "sessionId": "s", "cfg": {"providers": {"apiKey": "secret"}}},
        )

        identity = event_identity(event)
        meta = resolve_session_meta(event, [])

        self.assertNotIn("cfg", identity)
        self.assertNotIn("secret", meta.model_dump_json())


class SessionFileTests(unittest.TestCase):
    def test_journal_path_layout(self) -> None:
        with patch.object(config, "STATE_DIR", Path("/state")):
            self.assertEqual(resolve_session_file("main", "s1"), Path("/state/agents/main/sessions/s1.jsonl"))

    def test_newest_journal_wins(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            sessions = root / "agents" / "main" / "sessions"
            sessions.mkdir(parents=True)
            older = sessions / "old.jsonl"
            newer = sessions / "new.jsonl"
            older.write_text("{}\n", encoding="utf-8")
            newer.write_text("{}\n", encoding="utf-8")
            (sessions / "notes.txt").write_text("x", encoding="utf-8")
            now = time.time()
            os.utime(older, (now - 100, now - 100))
            os.utime(newer, (now, now))

            self.assertEqual(find_newest_session_file("main", root), newer)
            self.assertIsNone(find_newest_session_file("other", root))


if __name__ == "__main__":
    unittest.main()

"""Session identity: journal location and session metadata."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

from conversation_extractor import config
from conversation_extractor.models import LifecycleEvent, SessionMeta

logger = logging.getLogger("conversation_extractor.sessions")

# Context keys read from a lifecycle event. Anything else in the bag (notably
# `cfg`, which can carry provider credentials) is never touched.
_CONTEXT_IDENTITY_KEYS = ("agentId", "sessionId", "sessionKey", "cwd")


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def event_identity(event: LifecycleEvent) -> dict[str, Optional[str]]:
    """Pull only the identifying fields out of an event's context."""
    ctx = event.context if isinstance(event.context, Mapping) else {}
    identity = {key: _clean(ctx.get(key)) for key in _CONTEXT_IDENTITY_KEYS}
    identity["sessionKey"] = _clean(event.sessionKey) or identity["sessionKey"]
    return identity


def channel_from_session_key(session_key: Optional[str], agent_id: Optional[str]) -> Optional[str]:
    """Channel segment of `agent:<agentId>:<channel>[:<scope>...]`."""
    if not session_key:
        return None
    remainder = session_key
    prefix = f"agent:{agent_id}:"
    if agent_id and remainder.startswith(prefix):
        remainder = remainder[len(prefix):]
    return remainder.split(":", 1)[0]


def session_header_cwd(entries: Iterable[Mapping[str, Any]]) -> Optional[str]:
    for entry in entries:
        if entry.get("type") == "session":
            return _clean(entry.get("cwd"))
    return None


def resolve_session_meta(
    event: LifecycleEvent,
    entries: Iterable[Mapping[str, Any]] = (),
    session_id: Optional[str] = None,
) -> SessionMeta:
    """Build SessionMeta from event context and the journal's session header.

    `session_id` fills in for events that do not carry one (the journal stem
    of the newest session file on `message:sent`).
    """
    identity = event_identity(event)
    agent_id = identity["agentId"] or config.DEFAULT_AGENT_ID
    session_key = identity["sessionKey"]
    return SessionMeta(
        agentId=agent_id,
        sessionId=identity["sessionId"] or session_id,
        sessionKey=session_key,
        channel=channel_from_session_key(session_key, agent_id),
        cwd=session_header_cwd(entries) or identity["cwd"],
    )


def sessions_dir(agent_id: str, state_dir: Path | None = None) -> Path:
    root = state_dir if state_dir is not None else config.STATE_DIR
    return root / "agents" / agent_id / "sessions"


def resolve_session_file(agent_id: str, session_id: str, state_dir: Path | None = None) -> Path:
    return sessions_dir(agent_id, state_dir) / f"{session_id}.jsonl"


def find_newest_session_file(agent_id: str, state_dir: Path | None = None) -> Optional[Path]:
    """Most recently modified journal for an agent, or None."""
    directory = sessions_dir(agent_id, state_dir)
    try:
        candidates = [(path.stat().st_mtime, path) for path in directory.glob("*.jsonl")]
    except OSError as exc:
        logger.debug("Cannot scan sessions dir %s: %s", directory, exc)
        return None
    if not candidates:
        return None
    candidates.sort(key=lambda item: item[0], reverse=True)
    return candidates[0][1]

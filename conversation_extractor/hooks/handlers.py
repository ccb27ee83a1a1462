"""Lifecycle hook handlers.

The runtime fires a hook event at moments where a session may have new data.
Each handler decides whether the event concerns it, and does nothing when the
session has no readable journal yet.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

from conversation_extractor import config
from conversation_extractor.assemblers.base import utc_now_iso
from conversation_extractor.models import LifecycleEvent, SessionStartInfo, SessionStartPayload, dump_payload
from conversation_extractor.pipeline import ExtractionResult, extract_session
from conversation_extractor.sessions import event_identity, find_newest_session_file, resolve_session_file
from conversation_extractor.writer import append_line

logger = logging.getLogger("conversation_extractor.hooks")

AGENT_BOOTSTRAP = "agent:bootstrap"
COMMAND_NEW = "command:new"
MESSAGE_SENT = "message:sent"

HookHandler = Callable[..., Awaitable[Any]]


@dataclass
class HookRegistration:
    name: str
    events: frozenset[str]
    handler: HookHandler
    # Handler takes the mode/verbose overrides as keyword arguments.
    takes_options: bool = False


@dataclass
class DispatchOutcome:
    event: str
    handled: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    results: dict[str, Any] = field(default_factory=dict)


def locate_session_file(event: LifecycleEvent) -> Optional[Path]:
    """Journal path for the session an event refers to.

    `message:sent` events may lack a session id; the newest journal of the
    agent stands in for it.
    """
    identity = event_identity(event)
    agent_id = identity["agentId"] or config.DEFAULT_AGENT_ID
    session_id = identity["sessionId"]
    if session_id:
        return resolve_session_file(agent_id, session_id)
    if event.key == MESSAGE_SENT:
        return find_newest_session_file(agent_id)
    return None


async def conversation_extractor(
    event: LifecycleEvent,
    *,
    mode: Optional[str] = None,
    verbose: Optional[bool] = None,
) -> Optional[ExtractionResult]:
    session_file = locate_session_file(event)
    if session_file is None:
        logger.debug("No session journal for %s event", event.key)
        return None
    return await extract_session(session_file, event, mode=mode, verbose=verbose)


async def session_start(event: LifecycleEvent) -> SessionStartPayload:
    identity = event_identity(event)
    payload = SessionStartPayload(
        extractedAt=utc_now_iso(),
        session=SessionStartInfo(
            agentId=identity["agentId"] or config.DEFAULT_AGENT_ID,
            sessionId=identity["sessionId"],
            cwd=identity["cwd"],
        ),
    )
    append_line(config.JSONL_FILE, dump_payload(payload))
    logger.info("Session start recorded (agent=%s session=%s)", payload.session.agentId, payload.session.sessionId)
    return payload


HOOKS: list[HookRegistration] = [
    HookRegistration(
        name="session-start",
        events=frozenset({AGENT_BOOTSTRAP}),
        handler=session_start,
    ),
    HookRegistration(
        name="conversation-extractor",
        events=frozenset({AGENT_BOOTSTRAP, COMMAND_NEW, MESSAGE_SENT}),
        handler=conversation_extractor,
        takes_options=True,
    ),
]


async def dispatch(
    event: LifecycleEvent,
    hooks: Optional[list[HookRegistration]] = None,
    *,
    mode: Optional[str] = None,
    verbose: Optional[bool] = None,
) -> DispatchOutcome:
    """Run every hook registered for the event, in registration order.

    `mode` and `verbose` override the configured values for hooks that take
    them. Write failures are logged and re-raised. Any other handler failure
    is logged, recorded in `failed`, and the remaining hooks still run.
    """
    outcome = DispatchOutcome(event=event.key)
    for hook in hooks if hooks is not None else HOOKS:
        if event.key not in hook.events:
            continue
        try:
            if hook.takes_options:
                outcome.results[hook.name] = await hook.handler(event, mode=mode, verbose=verbose)
            else:
                outcome.results[hook.name] = await hook.handler(event)
        except OSError:
            logger.exception("Hook %s failed writing output for %s", hook.name, event.key)
            raise
        except Exception:
            logger.exception("Hook %s failed handling %s", hook.name, event.key)
            outcome.failed.append(hook.name)
            continue
        outcome.handled.append(hook.name)
    return outcome

"""Command line entry points: one-shot extraction, ingress server, watcher."""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from conversation_extractor import config
from conversation_extractor.assemblers import available_modes
from conversation_extractor.hooks.handlers import dispatch
from conversation_extractor.models import LifecycleEvent
from conversation_extractor.pipeline import extract_session

logger = logging.getLogger("conversation_extractor.cli")


def _event_from_args(args: argparse.Namespace) -> LifecycleEvent:
    if args.event:
        raw = Path(args.event).read_text(encoding="utf-8") if args.event != "-" else sys.stdin.read()
        return LifecycleEvent.model_validate_json(raw)
    context = {"agentId": args.agent}
    if args.session:
        context["sessionId"] = args.session
    return LifecycleEvent(type="agent", action="bootstrap", sessionKey=args.session_key, context=context)


async def _extract(args: argparse.Namespace) -> int:
    event = _event_from_args(args)
    if args.file:
        result = await extract_session(Path(args.file), event, mode=args.mode, verbose=args.verbose or None)
        summary = {
            "mode": result.mode,
            "status": result.status,
            "entries": result.entry_count,
            "turns": result.turn_count,
            "turnsWritten": result.turns_written,
            "output": str(result.output_path) if result.output_path else None,
        }
    else:
        outcome = await dispatch(event, mode=args.mode, verbose=args.verbose or None)
        summary = {"event": outcome.event, "handled": outcome.handled, "failed": outcome.failed}
    print(json.dumps(summary, indent=2))
    return 0


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("conversation_extractor.main:app", host=args.host, port=args.port)
    return 0


async def _watch(args: argparse.Namespace) -> int:
    from conversation_extractor.watcher import JournalWatcher

    watcher = JournalWatcher(agent_id=args.agent, mode=args.mode)
    await watcher.run()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="conversation-extractor")
    sub = parser.add_subparsers(dest="command", required=True)

    extract = sub.add_parser("extract", help="Run the lifecycle hooks once")
    extract.add_argument("--agent", default=config.DEFAULT_AGENT_ID)
    extract.add_argument("--session", default="")
    extract.add_argument("--session-key", default=None)
    extract.add_argument("--file", default="", help="Extract this journal directly instead of dispatching hooks")
    extract.add_argument("--event", default="", help="Path to a lifecycle event JSON file, or - for stdin")
    extract.add_argument("--mode", choices=available_modes(), default=None)
    extract.add_argument("--verbose", action="store_true")

    serve = sub.add_parser("serve", help="Run the hook ingress server")
    serve.add_argument("--host", default=config.HOST)
    serve.add_argument("--port", type=int, default=config.PORT)

    watch = sub.add_parser("watch", help="Extract whenever a journal changes")
    watch.add_argument("--agent", default=config.DEFAULT_AGENT_ID)
    watch.add_argument("--mode", choices=available_modes(), default="incremental")
    return parser


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO)
    args = build_parser().parse_args(argv)
    try:
        if args.command == "extract":
            return asyncio.run(_extract(args))
        if args.command == "serve":
            return _serve(args)
        return asyncio.run(_watch(args))
    except OSError as exc:
        logger.error("Extraction failed: %s", exc)
        return 1
    except ValidationError as exc:
        logger.error("Invalid lifecycle event: %s", exc)
        return 2
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())

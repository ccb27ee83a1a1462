"""Conversation extractor configuration."""
import os
from pathlib import Path


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return Path(value).expanduser()


# Runtime state root; journals live under <STATE_DIR>/agents/<agentId>/sessions/
STATE_DIR = _env_path("OPENCLAW_STATE_DIR", Path.home() / ".openclaw")

# Output location (Docker deployments mount /logs here)
OUTPUT_DIR = _env_path("OPENCLAW_EXTRACTOR_OUTPUT", STATE_DIR)
LOG_FILE = OUTPUT_DIR / "conversation-extractor.log"
JSONL_FILE = OUTPUT_DIR / "conversation-extractor.jsonl"
VERBOSE_LOG_FILE = OUTPUT_DIR / "conversation-extractor-verbose.log"

# Extraction mode: "full" | "optimized" | "incremental"
EXTRACTOR_MODE = os.getenv("OPENCLAW_EXTRACTOR_MODE", "optimized").strip().lower()
VERBOSE = _env_bool("OPENCLAW_EXTRACTOR_VERBOSE", False)
DEFAULT_AGENT_ID = os.getenv("OPENCLAW_DEFAULT_AGENT_ID", "main")

# Truncation budgets (characters) for the optimized payload
THINKING_PREVIEW = _env_int("OPENCLAW_EXTRACTOR_THINKING_PREVIEW", 400)
RESPONSE_PREVIEW = _env_int("OPENCLAW_EXTRACTOR_RESPONSE_PREVIEW", 600)
TOOL_INPUT_PREVIEW = _env_int("OPENCLAW_EXTRACTOR_TOOL_INPUT_PREVIEW", 200)
TOOL_RESULT_PREVIEW = _env_int("OPENCLAW_EXTRACTOR_TOOL_RESULT_PREVIEW", 300)

# Telemetry
OTEL_ENABLED = _env_bool("OPENCLAW_EXTRACTOR_OTEL_ENABLED", False)
OTEL_ENDPOINT = os.getenv("OPENCLAW_EXTRACTOR_OTEL_ENDPOINT", "http://localhost:4318")
OTEL_SERVICE_NAME = os.getenv("OPENCLAW_EXTRACTOR_OTEL_SERVICE_NAME", "conversation-extractor")
PROM_PORT = _env_int("OPENCLAW_EXTRACTOR_PROM_PORT", 0)

# Hook ingress server
HOST = os.getenv("OPENCLAW_EXTRACTOR_HOST", "127.0.0.1")
PORT = _env_int("OPENCLAW_EXTRACTOR_PORT", 8787)

# Journal watcher debounce, milliseconds
WATCH_DEBOUNCE_MS = _env_int("OPENCLAW_EXTRACTOR_WATCH_DEBOUNCE_MS", 1600)

# Run the journal watcher alongside the ingress server
WATCH_ON_SERVE = _env_bool("OPENCLAW_EXTRACTOR_WATCH_ON_SERVE", False)

"""Observability helpers."""

from conversation_extractor.observability.otel import (
    initialize,
    shutdown,
    start_span,
    record_extraction,
    record_turns_written,
    record_token_cost,
)

__all__ = [
    "initialize",
    "shutdown",
    "start_span",
    "record_extraction",
    "record_turns_written",
    "record_token_cost",
]

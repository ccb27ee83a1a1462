"""Assembler registry keyed by extraction mode."""
from __future__ import annotations

from typing import Callable

from conversation_extractor import config
from conversation_extractor.assemblers.base import PayloadAssembler
from conversation_extractor.assemblers.full import FullAssembler
from conversation_extractor.assemblers.incremental import IncrementalAssembler
from conversation_extractor.assemblers.optimized import OptimizedAssembler

_ASSEMBLERS: dict[str, Callable[[], PayloadAssembler]] = {
    FullAssembler.mode: FullAssembler,
    OptimizedAssembler.mode: OptimizedAssembler,
    IncrementalAssembler.mode: IncrementalAssembler,
}


def available_modes() -> list[str]:
    return sorted(_ASSEMBLERS)


def get_assembler(mode: str | None = None) -> PayloadAssembler:
    """Instantiate the assembler for `mode` (defaults to the configured mode)."""
    key = (mode or config.EXTRACTOR_MODE or "").strip().lower()
    factory = _ASSEMBLERS.get(key)
    if factory is None:
        raise ValueError(f"Unknown extractor mode {key!r}; expected one of {', '.join(available_modes())}")
    return factory()

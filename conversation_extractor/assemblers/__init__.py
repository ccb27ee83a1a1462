"""Payload assembler strategies."""

from conversation_extractor.assemblers.base import PayloadAssembler, truncate
from conversation_extractor.assemblers.full import FullAssembler
from conversation_extractor.assemblers.incremental import IncrementalAssembler
from conversation_extractor.assemblers.optimized import OptimizedAssembler
from conversation_extractor.assemblers.registry import available_modes, get_assembler

__all__ = [
    "PayloadAssembler",
    "FullAssembler",
    "OptimizedAssembler",
    "IncrementalAssembler",
    "available_modes",
    "get_assembler",
    "truncate",
]

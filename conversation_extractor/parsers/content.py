"""Plain-text extraction from message content."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class PlainText:
    text: str


@dataclass(frozen=True)
class Blocks:
    items: tuple[Any, ...]


Content = Union[PlainText, Blocks, None]


def as_content(raw: Any) -> Content:
    """Classify a raw content value as plain text or a block list."""
    if isinstance(raw, str):
        return PlainText(raw)
    if isinstance(raw, list):
        return Blocks(tuple(raw))
    return None


def extract_text(raw: Any) -> str:
    """Concatenate the text portion of a content value.

    Strings pass through; for block lists only `text` blocks contribute, in
    order. Anything else yields an empty string.
    """
    content = as_content(raw)
    if isinstance(content, PlainText):
        return content.text
    if isinstance(content, Blocks):
        parts: list[str] = []
        for block in content.items:
            if isinstance(block, dict) and block.get("type") == "text":
                text = block.get("text")
                parts.append(text if isinstance(text, str) else "")
        return "".join(parts)
    return ""

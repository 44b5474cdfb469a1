"""Splits replies into transport-sized message parts."""

from __future__ import annotations

from typing import List

from settings import DEFAULT_CHUNK_LIMIT


def split_message(text: str, limit: int = DEFAULT_CHUNK_LIMIT) -> List[str]:
    """
    Split text into consecutive slices of at most `limit` characters.

    Word and sentence boundaries are ignored; joining the parts gives back
    the input exactly. Empty text yields no parts.
    """
    if limit <= 0:
        raise ValueError(f"limit must be positive, got {limit}")
    return [text[i:i + limit] for i in range(0, len(text), limit)]

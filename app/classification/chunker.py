from __future__ import annotations

from collections.abc import Sequence


def chunk_texts(texts: Sequence[str], size: int) -> list[list[str]]:
    """Split texts into contiguous sub-batches of at most `size` items, in order."""
    if size < 1:
        raise ValueError(f"chunk size must be >= 1, got {size}")
    return [list(texts[i : i + size]) for i in range(0, len(texts), size)]

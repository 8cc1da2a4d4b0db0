from __future__ import annotations

import re

from docqa.errors import InvalidArgument

SENTENCE_TERMINATORS = (".", "?", "!", "\n")

_WHITESPACE = re.compile(r"\s+")


def normalize_whitespace(text: str | None) -> str:
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text).strip()


def _last_sentence_end(text: str, end: int) -> int:
    # Index of the last terminator at or before ``end``; -1 if none.
    return max(text.rfind(mark, 0, end + 1) for mark in SENTENCE_TERMINATORS)


def split_into_chunks(text: str | None, target_size: int) -> list[str]:
    """Split text into greedy, non-overlapping chunks of about ``target_size`` characters.

    Cuts prefer the last sentence terminator in the second half of the window,
    then the last space, then a hard cut at ``target_size``.
    """
    if target_size <= 0:
        raise InvalidArgument(f"target_size must be > 0, got: {target_size}")
    clean = normalize_whitespace(text)
    if not clean:
        return []

    chunks: list[str] = []
    length = len(clean)
    start = 0
    while start < length:
        end = min(start + target_size, length)
        if end < length:
            sentence_end = _last_sentence_end(clean, end)
            if sentence_end > start + target_size // 2:
                end = sentence_end + 1
            else:
                last_space = clean.rfind(" ", 0, end + 1)
                if last_space > start:
                    end = last_space
        chunk = clean[start:end].strip()
        if chunk:
            chunks.append(chunk)
        start = end
    return chunks

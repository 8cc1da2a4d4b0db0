from __future__ import annotations

import pytest

from docqa.chunking import normalize_whitespace, split_into_chunks
from docqa.errors import InvalidArgument

SENTENCES = (
    "The quick brown fox jumps over the lazy dog. "
    "Pack my box with five dozen liquor jugs! "
    "How vexingly quick daft zebras jump? "
    "Sphinx of black quartz, judge my vow.\n\n"
    "Bright vixens jump; dozy fowl quack."
)


def test_sentence_boundaries_split_short_document() -> None:
    text = "Cats are mammals. Dogs are mammals too. Fish are not mammals."
    chunks = split_into_chunks(text, target_size=30)
    assert chunks == ["Cats are mammals.", "Dogs are mammals too.", "Fish are not mammals."]
    assert 2 <= len(chunks) <= 3
    assert all(chunk and len(chunk) <= 35 for chunk in chunks)


def test_empty_and_blank_input() -> None:
    assert split_into_chunks("", target_size=10) == []
    assert split_into_chunks(None, target_size=10) == []
    assert split_into_chunks(" \n\t ", target_size=10) == []


@pytest.mark.parametrize("size", [0, -5])
def test_non_positive_size_is_rejected(size: int) -> None:
    with pytest.raises(InvalidArgument):
        split_into_chunks("some text", target_size=size)


def test_short_text_is_one_chunk() -> None:
    assert split_into_chunks("  hello\n   world  ", target_size=100) == ["hello world"]


def test_falls_back_to_space_when_no_late_sentence_end() -> None:
    chunks = split_into_chunks("aaaa bbbb cccc dddd", target_size=12)
    assert chunks == ["aaaa bbbb", "cccc dddd"]


def test_hard_cut_without_spaces() -> None:
    assert split_into_chunks("abcdefghijklmnopqrstuvwxyz", target_size=10) == [
        "abcdefghij",
        "klmnopqrst",
        "uvwxyz",
    ]


@pytest.mark.parametrize("size", range(10, 60, 7))
def test_chunks_partition_normalized_text(size: int) -> None:
    chunks = split_into_chunks(SENTENCES, target_size=size)
    assert chunks
    assert all(chunk == chunk.strip() and chunk for chunk in chunks)
    assert all(len(chunk) <= size + 1 for chunk in chunks)
    assert " ".join(chunks) == normalize_whitespace(SENTENCES)

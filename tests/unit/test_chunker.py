"""Unit tests for the chunker module."""

import pytest

from askdocs.ingestion.chunker import Chunk, chunk_text, join_chunks

SAMPLE = (
    "Kubernetes schedules containers onto nodes. "
    "Each pod gets its own IP address.\n\n"
    "Services give pods a stable virtual IP and DNS name. "
) * 7


def test_chunk_text_splits_long_text() -> None:
    """A text longer than size should be split."""
    long_text = "word " * 500  # 2500 chars
    chunks = chunk_text(long_text, size=256, overlap=32)
    assert len(chunks) > 1
    assert all(len(c.content) <= 256 for c in chunks)


def test_short_text_is_a_single_chunk() -> None:
    chunks = chunk_text("The sky is blue.", size=800, overlap=100)
    assert chunks == [Chunk(content="The sky is blue.", tokens=16, start=0)]


def test_text_of_exactly_size_is_a_single_chunk() -> None:
    assert len(chunk_text("x" * 50, size=50, overlap=10)) == 1


def test_empty_input() -> None:
    """An empty string should return an empty list."""
    assert chunk_text("") == []


def test_tokens_is_character_count() -> None:
    chunks = chunk_text(SAMPLE, size=100, overlap=20)
    assert all(c.tokens == len(c.content) for c in chunks)


def test_consecutive_chunks_share_exactly_overlap() -> None:
    chunks = chunk_text(SAMPLE, size=100, overlap=20)
    for prev, nxt in zip(chunks, chunks[1:]):
        assert prev.content[-20:] == nxt.content[:20]
        assert nxt.start - prev.start == 80


def test_only_last_chunk_may_be_short() -> None:
    chunks = chunk_text(SAMPLE, size=100, overlap=20)
    assert all(len(c.content) == 100 for c in chunks[:-1])
    assert chunks[-1].start + len(chunks[-1].content) == len(SAMPLE)


@pytest.mark.parametrize(
    ("text", "size", "overlap"),
    [
        (SAMPLE, 800, 100),
        (SAMPLE, 97, 13),
        (SAMPLE, 10, 0),
        ("abcdefghij", 3, 2),
        ("ünïcødé ✓ text " * 11, 17, 5),
    ],
)
def test_join_reconstructs_original(text: str, size: int, overlap: int) -> None:
    assert join_chunks(chunk_text(text, size=size, overlap=overlap)) == text


def test_overlap_not_smaller_than_size_still_terminates() -> None:
    chunks = chunk_text("abcdef", size=3, overlap=5)
    assert [c.start for c in chunks] == [0, 1, 2, 3]
    assert join_chunks(chunks) == "abcdef"


def test_default_parameters() -> None:
    chunks = chunk_text("a" * 1500)
    assert [c.start for c in chunks] == [0, 700]
    assert [c.tokens for c in chunks] == [800, 800]


@pytest.mark.parametrize(("size", "overlap"), [(0, 0), (-5, 0), (10, -1)])
def test_invalid_arguments(size: int, overlap: int) -> None:
    with pytest.raises(ValueError):
        chunk_text("some text", size=size, overlap=overlap)

"""
Tests for services/ingest/chunking.py
Word-window chunking with overlap.
"""

import pytest

from services.ingest.chunking import WordWindows, chunk_text
from shared.errors import InvalidParametersError, InvalidRequestError


def _words(n: int) -> list[str]:
    return [f"w{i}" for i in range(n)]


class TestWindowBoundaries:
    """Window starts, sizes and overlaps."""

    def test_800_words_default_parameters(self):
        """800 tokens with size 700 / overlap 80 give [0:700) and [620:800)."""
        tokens = _words(800)
        windows = chunk_text(" ".join(tokens))

        chunks = list(windows)
        assert len(windows) == 2
        assert chunks[0].split() == tokens[0:700]
        assert chunks[1].split() == tokens[620:800]

    def test_chunks_never_exceed_size(self):
        """No chunk holds more than `size` words."""
        for chunk in chunk_text(" ".join(_words(123)), size=10, overlap=4):
            assert len(chunk.split()) <= 10

    def test_consecutive_chunks_share_overlap(self):
        """Each chunk starts with the last `overlap` words of its predecessor."""
        chunks = [c.split() for c in chunk_text(" ".join(_words(35)), size=10, overlap=3)]
        assert len(chunks) == 5
        for prev, nxt in zip(chunks, chunks[1:]):
            assert prev[-3:] == nxt[:3]

    def test_unique_spans_reconstruct_tokens(self):
        """Dropping the overlap of every chunk but the first yields the token sequence."""
        tokens = _words(47)
        chunks = [c.split() for c in chunk_text(" ".join(tokens), size=9, overlap=2)]
        rebuilt = chunks[0] + [word for chunk in chunks[1:] for word in chunk[2:]]
        assert rebuilt == tokens

    def test_short_text_is_single_chunk(self):
        assert list(chunk_text("only a few words", size=10, overlap=2)) == ["only a few words"]

    def test_whitespace_is_normalized(self):
        """Runs of whitespace collapse to single spaces and empty tokens vanish."""
        assert list(chunk_text("  alpha\n\n beta\tgamma  ", size=5, overlap=1)) == ["alpha beta gamma"]

    def test_zero_overlap(self):
        assert list(chunk_text("a b c d e", size=2, overlap=0)) == ["a b", "c d", "e"]


class TestLaziness:
    """WordWindows is a restartable, sized sequence."""

    def test_iteration_is_restartable(self):
        windows = chunk_text(" ".join(_words(30)), size=8, overlap=2)
        assert list(windows) == list(windows)

    def test_len_matches_iteration(self):
        for n in (1, 7, 8, 9, 50, 51):
            windows = chunk_text(" ".join(_words(n)), size=8, overlap=3)
            assert len(windows) == len(list(windows))

    def test_returns_word_windows(self):
        assert isinstance(chunk_text("a b"), WordWindows)


class TestEdgeCases:
    """Empty input and invalid parameters."""

    @pytest.mark.parametrize("text", ["", "   ", "\n\t \n"])
    def test_blank_text_yields_nothing(self, text):
        windows = chunk_text(text)
        assert len(windows) == 0
        assert list(windows) == []

    @pytest.mark.parametrize("size,overlap", [(10, 10), (10, 11), (0, 0), (-5, 0), (10, -1)])
    def test_invalid_parameters_fail_fast(self, size, overlap):
        """overlap >= size, non-positive size or negative overlap raise at construction."""
        with pytest.raises(InvalidParametersError):
            chunk_text("some text here", size=size, overlap=overlap)

    def test_invalid_parameters_is_invalid_request(self):
        with pytest.raises(InvalidRequestError):
            WordWindows("text", size=5, overlap=5)

"""Word-window chunking of document text.

A document is split on whitespace into tokens, then cut into windows of
`size` tokens where consecutive windows share `overlap` tokens.
"""

from collections.abc import Iterator

from shared.errors import InvalidParametersError

CHUNK_SIZE = 700     # words per chunk
CHUNK_OVERLAP = 80   # words shared by consecutive chunks


class WordWindows:
    """Lazy, restartable sequence of overlapping word windows.

    Every iteration starts from the first window again. len() is computed
    from the token count without building any window.
    """

    def __init__(self, text: str, size: int = CHUNK_SIZE, overlap: int = CHUNK_OVERLAP) -> None:
        if size <= 0:
            raise InvalidParametersError(f"Chunk size must be positive, got {size}.")
        if overlap < 0:
            raise InvalidParametersError(f"Chunk overlap must not be negative, got {overlap}.")
        if overlap >= size:
            raise InvalidParametersError(
                f"Chunk overlap ({overlap}) must be smaller than chunk size ({size})."
            )
        self.size = size
        self.overlap = overlap
        self.stride = size - overlap
        self._tokens = (text or "").split()

    def __iter__(self) -> Iterator[str]:
        for start in range(0, len(self._tokens), self.stride):
            yield " ".join(self._tokens[start:start + self.size])

    def __len__(self) -> int:
        if not self._tokens:
            return 0
        return (len(self._tokens) - 1) // self.stride + 1

    def __repr__(self) -> str:
        return f"WordWindows(tokens={len(self._tokens)}, size={self.size}, overlap={self.overlap})"


def chunk_text(text: str, size: int = CHUNK_SIZE, overlap: int = CHUNK_OVERLAP) -> WordWindows:
    """Split text into overlapping word windows.

    Args:
        text (str): The raw document text.
        size (int): Maximum number of words per chunk.
        overlap (int): Number of words shared by consecutive chunks.

    Returns:
        WordWindows: The windows, in document order. Empty for blank text.

    Raises:
        InvalidParametersError: If size <= 0, overlap < 0 or overlap >= size.
    """
    return WordWindows(text, size=size, overlap=overlap)

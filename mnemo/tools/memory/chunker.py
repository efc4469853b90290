"""Text chunking with overlap and natural-boundary awareness."""

import re
from dataclasses import dataclass
from typing import List, Optional

DEFAULT_CHUNK_SIZE = 1024
DEFAULT_OVERLAP = 100

# Sentence terminator followed by whitespace; the whitespace stays with the sentence
SENTENCE_END = re.compile(r'[.!?]["\')\]]*\s')
WHITESPACE = re.compile(r'\s')


@dataclass(frozen=True)
class Chunk:
    """A contiguous piece of a source text."""
    text: str
    ordinal: int  # zero-based position in the document's chunk sequence
    start: int = 0  # character offset in the source text

    @property
    def end(self) -> int:
        return self.start + len(self.text)


class TextChunker:
    """Splits text into bounded, overlapping chunks."""

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE, overlap: int = DEFAULT_OVERLAP):
        """
        Initialize chunker.

        Args:
            chunk_size: Maximum chunk size in characters
            overlap: Characters each chunk repeats from the end of the previous one

        Raises:
            ValueError: Unless 0 <= overlap < chunk_size
        """
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        if not 0 <= overlap < chunk_size:
            raise ValueError(f"overlap must be in [0, chunk_size), got {overlap}")

        self.chunk_size = chunk_size
        self.overlap = overlap
        # Shortest chunk a soft boundary may produce; keeps chunks reasonably
        # full and guarantees the next start moves forward past the overlap
        self.min_chunk = max(overlap + 1, chunk_size // 2)

    def _last_match_end(self, pattern: re.Pattern, window: str) -> Optional[int]:
        end = None
        for match in pattern.finditer(window):
            end = match.end()
        return end

    def _find_boundary(self, text: str, start: int) -> int:
        """
        Find where the chunk starting at ``start`` should end.

        Tries paragraph, then sentence, then word boundaries inside the window,
        and falls back to a hard cut at ``start + chunk_size``.
        """
        window = text[start:start + self.chunk_size]

        # Priority 1: paragraph boundary (double newline)
        last_para = window.rfind('\n\n')
        if last_para != -1 and last_para + 2 >= self.min_chunk:
            return start + last_para + 2

        # Priority 2: sentence boundary
        sentence_end = self._last_match_end(SENTENCE_END, window)
        if sentence_end is not None and sentence_end >= self.min_chunk:
            return start + sentence_end

        # Priority 3: word boundary
        word_end = self._last_match_end(WHITESPACE, window)
        if word_end is not None and word_end >= self.min_chunk:
            return start + word_end

        # Last resort: hard cut
        return start + self.chunk_size

    def split(self, text: str) -> List[Chunk]:
        """
        Split text into overlapping chunks.

        Each chunk after the first starts exactly ``overlap`` characters before
        the end of the previous one, so dropping the first ``overlap``
        characters of every later chunk and concatenating reconstructs the text.

        Args:
            text: Text to chunk

        Returns:
            Chunks in document order (empty for empty text)
        """
        if not text:
            return []

        if len(text) <= self.chunk_size:
            return [Chunk(text=text, ordinal=0, start=0)]

        chunks = []
        start = 0

        while True:
            if len(text) - start <= self.chunk_size:
                chunks.append(Chunk(text=text[start:], ordinal=len(chunks), start=start))
                break

            end = self._find_boundary(text, start)
            chunks.append(Chunk(text=text[start:end], ordinal=len(chunks), start=start))

            # Move to next chunk with overlap
            start = end - self.overlap

        return chunks

    def chunk_text(self, text: str) -> List[str]:
        """Chunk text and return just the chunk strings."""
        return [chunk.text for chunk in self.split(text)]

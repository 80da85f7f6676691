"""Text chunking strategies.

:class:`RecursiveTextSplitter` works in three passes, falling back to the
next one only for the pieces that are still too large:

1. paragraphs (blank-line separated),
2. sentences greedily packed up to ``chunk_size`` tokens,
3. fixed token windows with ``chunk_overlap`` tokens of overlap.

Fragments shorter than ``min_chunk_chars`` are dropped at every level so
stray headings, page numbers and similar debris never become chunks.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Iterator

from ragstore.config import settings
from ragstore.ingestion.tokenizer import Tokenizer

_PARAGRAPH_RE = re.compile(r"\n\s*\n")
_SENTENCE_RE = re.compile(r"(?<=[.!?])\s+")
_REPLACEMENT_CHAR = "\ufffd"


class TextSplitter(ABC):
    """Splits a document's text into ordered chunk strings."""

    @abstractmethod
    def split(self, text: str) -> Iterator[str]:
        """Yield chunks of *text* in document order."""
        ...


class RecursiveTextSplitter(TextSplitter):
    """Paragraph → sentence → token-window splitter measured in tokens.

    Parameters
    ----------
    tokenizer:
        Used to count tokens and, for the window fallback, to cut and
        decode token ranges.
    chunk_size:
        Maximum number of tokens per chunk.
    chunk_overlap:
        Tokens shared by consecutive windows of the fallback pass.
    min_chunk_chars:
        Minimum stripped length for a fragment to be emitted.
    """

    def __init__(
        self,
        tokenizer: Tokenizer,
        chunk_size: int = settings.chunk_size,
        chunk_overlap: int = settings.chunk_overlap,
        *,
        min_chunk_chars: int = settings.min_chunk_chars,
    ) -> None:
        if tokenizer is None:
            raise ValueError("tokenizer is required")
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be > 0, got {chunk_size}")
        if chunk_overlap < 0 or chunk_overlap >= chunk_size:
            raise ValueError(
                f"chunk_overlap ({chunk_overlap}) must be >= 0 and < chunk_size ({chunk_size})"
            )
        if min_chunk_chars < 0:
            raise ValueError(f"min_chunk_chars must be >= 0, got {min_chunk_chars}")

        self._tokenizer = tokenizer
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.min_chunk_chars = min_chunk_chars

    def split(self, text: str) -> Iterator[str]:
        if not text or not text.strip():
            return

        normalized = text.replace("\r\n", "\n").replace("\r", "\n")

        for paragraph in _PARAGRAPH_RE.split(normalized):
            paragraph = paragraph.strip()
            if not paragraph:
                continue

            if len(self._tokenizer.encode(paragraph)) <= self.chunk_size:
                if self._long_enough(paragraph):
                    yield paragraph
                continue

            for group in self._pack_sentences(paragraph):
                yield from self._token_windows(group)

    # -- internals ------------------------------------------------------------

    def _long_enough(self, fragment: str) -> bool:
        return len(fragment) >= self.min_chunk_chars

    def _pack_sentences(self, paragraph: str) -> Iterator[str]:
        """Greedily join sentences while the result fits in ``chunk_size``.

        A sentence that alone exceeds the budget is yielded by itself and
        gets windowed by the caller.
        """
        buffer = ""
        for sentence in _SENTENCE_RE.split(paragraph):
            if not sentence.strip():
                continue

            candidate = f"{buffer} {sentence}".strip()
            if len(self._tokenizer.encode(candidate)) > self.chunk_size:
                if buffer.strip():
                    yield buffer
                buffer = sentence.strip()
            else:
                buffer = candidate

        if buffer.strip():
            yield buffer

    def _token_windows(self, text: str) -> Iterator[str]:
        tokens = self._tokenizer.encode(text)

        if len(tokens) <= self.chunk_size:
            fragment = text.strip()
            if self._long_enough(fragment):
                yield fragment
            return

        stride = self.chunk_size - self.chunk_overlap
        for start in range(0, len(tokens), stride):
            end = min(start + self.chunk_size, len(tokens))
            fragment = self._decode_window(tokens[start:end])
            if self._long_enough(fragment):
                yield fragment
            if end == len(tokens):
                break

    def _decode_window(self, window: list[int]) -> str:
        """Decode a token window, dropping characters cut at its edges.

        A window boundary can fall inside a multi-byte character, which
        decodes to U+FFFD and may re-encode to more than ``chunk_size``
        tokens.
        """
        fragment = self._tokenizer.decode(window).strip().strip(_REPLACEMENT_CHAR).strip()
        while fragment and len(self._tokenizer.encode(fragment)) > self.chunk_size:
            fragment = fragment[:-1].rstrip()
        return fragment

"""Tokenizers used by the splitter to measure and window text."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

import tiktoken

from ragstore.config import settings


@runtime_checkable
class Tokenizer(Protocol):
    """Converts between text and token ids.

    ``decode(encode(text))`` must give back *text*; the splitter's token
    windows rely on it.
    """

    def encode(self, text: str) -> list[int]:
        ...

    def decode(self, tokens: Sequence[int]) -> str:
        ...


class TiktokenTokenizer:
    """BPE tokenizer backed by :mod:`tiktoken`.

    Parameters
    ----------
    encoding_name:
        A tiktoken encoding such as ``"cl100k_base"``.
    model:
        Optional model name (``"gpt-3.5-turbo"``, ``"gpt-4o"`` …).  When
        given, the encoding registered for that model wins over
        *encoding_name*.
    """

    def __init__(
        self,
        encoding_name: str = settings.tokenizer_encoding,
        *,
        model: str | None = None,
    ) -> None:
        if model is not None:
            self._encoding = tiktoken.encoding_for_model(model)
        else:
            self._encoding = tiktoken.get_encoding(encoding_name)

    @property
    def name(self) -> str:
        return self._encoding.name

    def encode(self, text: str) -> list[int]:
        # Special-token text in documents is ordinary content here.
        return self._encoding.encode(text, disallowed_special=())

    def decode(self, tokens: Sequence[int]) -> str:
        return self._encoding.decode(list(tokens))

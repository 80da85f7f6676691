"""Content-addressed chunk identifiers."""

from __future__ import annotations

import hashlib
import re
import unicodedata

_WHITESPACE_RE = re.compile(r"\s+")


def canonicalize(text: str) -> str:
    """NFC-normalise, lowercase, and collapse whitespace runs to one space."""
    normalized = unicodedata.normalize("NFC", text).lower()
    return _WHITESPACE_RE.sub(" ", normalized).strip()


def compute_id(text: str) -> str:
    """Return the lowercase hex SHA-256 of the canonical form of *text*.

    Texts that differ only in letter case or whitespace share an id, which
    is what lets ingestion skip chunks it has already embedded.

    Raises
    ------
    TypeError
        If *text* is ``None``.
    """
    if text is None:
        raise TypeError("text must not be None")
    return hashlib.sha256(canonicalize(text).encode("utf-8")).hexdigest()

"""File and directory loaders built on LangChain's document loaders.

Loaders turn files into :class:`~ragstore.retrieval.models.Document`
values.  Each document carries its absolute path as ``source`` and the
conventional metadata keys ``file_name``, ``size_bytes``, ``extension``
and ``last_modified``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol, runtime_checkable

from langchain_community.document_loaders import DirectoryLoader as LangChainDirectoryLoader
from langchain_community.document_loaders import TextLoader
from langchain_core.document_loaders import BaseLoader
from langchain_core.documents import Document as LangChainDocument

from ragstore.config import settings
from ragstore.retrieval.models import Document

logger = logging.getLogger(__name__)

_INLINE_SPACE_RE = re.compile(r"[ \t]+")
_LEADING_SPACE_RE = re.compile(r"^[ \t]+", re.MULTILINE)
_TRAILING_SPACE_RE = re.compile(r"[ \t]+$", re.MULTILINE)
_EXTRA_NEWLINES_RE = re.compile(r"\n{3,}")


@runtime_checkable
class DocumentLoader(Protocol):
    """Anything that can turn a path into documents."""

    def load(self, path: str | Path) -> list[Document]:
        ...


def clean_text(text: str) -> str:
    """Tidy whitespace while keeping paragraph breaks.

    Line endings become ``\\n``, runs of spaces/tabs collapse to one space,
    lines are trimmed, and three or more newlines shrink to a blank line.
    """
    if not text or not text.strip():
        return ""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _INLINE_SPACE_RE.sub(" ", text)
    text = _LEADING_SPACE_RE.sub("", text)
    text = _TRAILING_SPACE_RE.sub("", text)
    text = _EXTRA_NEWLINES_RE.sub("\n\n", text)
    return text.strip()


class FileLoader:
    """Load one text file into a single :class:`Document`.

    The file is read as UTF-8; anything else goes through ``TextLoader``'s
    encoding detection.

    Parameters
    ----------
    max_file_bytes:
        Files larger than this are rejected with :class:`OSError`.
    normalize_whitespace:
        Run :func:`clean_text` over the content.
    """

    def __init__(
        self,
        max_file_bytes: int = settings.loader_max_file_bytes,
        *,
        normalize_whitespace: bool = True,
    ) -> None:
        if max_file_bytes <= 0:
            raise ValueError(f"max_file_bytes must be positive, got {max_file_bytes}")
        self.max_file_bytes = max_file_bytes
        self.normalize_whitespace = normalize_whitespace

    def load(self, path: str | Path) -> list[Document]:
        if not str(path).strip():
            raise ValueError("path must not be empty")

        file_path = Path(path)
        if not file_path.is_file():
            raise FileNotFoundError(f"File not found: {file_path}")

        stat = file_path.stat()
        if stat.st_size > self.max_file_bytes:
            raise OSError(
                f"File '{file_path}' exceeds maximum allowed size ({self.max_file_bytes} bytes)"
            )

        docs = TextLoader(str(file_path), encoding="utf-8", autodetect_encoding=True).load()
        text = "".join(d.page_content for d in docs)
        if self.normalize_whitespace:
            text = clean_text(text)
        if not text.strip():
            return []

        metadata = {
            "file_name": file_path.name,
            "size_bytes": str(stat.st_size),
            "extension": file_path.suffix,
            "last_modified": datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc).isoformat(),
        }
        return [Document(content=text, source=str(file_path.resolve()), metadata=metadata)]


class _LangChainAdapter(BaseLoader):
    """Exposes a :class:`DocumentLoader` as a LangChain ``loader_cls``."""

    def __init__(self, file_path: str, file_loader: DocumentLoader) -> None:
        self.file_path = file_path
        self._file_loader = file_loader

    def lazy_load(self) -> Iterator[LangChainDocument]:
        for doc in self._file_loader.load(self.file_path):
            yield LangChainDocument(
                page_content=doc.content,
                metadata={**doc.metadata, "source": doc.source},
            )


def _from_langchain(doc: LangChainDocument) -> Document:
    metadata = {k: str(v) for k, v in doc.metadata.items()}
    source = metadata.pop("source", "")
    return Document(content=doc.page_content, source=source, metadata=metadata)


class DirectoryLoader:
    """Load every matching file under a directory.

    Walking, threading and error skipping are delegated to LangChain's
    ``DirectoryLoader``; each file goes through *file_loader*.

    Parameters
    ----------
    file_loader:
        Loader applied to each file (defaults to :class:`FileLoader`).
    glob:
        Pattern relative to the directory; ``"**/*"`` recurses.  Hidden
        files are skipped.
    max_workers:
        Files read concurrently.

    A file that fails to load is logged and skipped; the rest of the
    directory still loads.  Documents come back sorted by source path.
    """

    def __init__(
        self,
        file_loader: DocumentLoader | None = None,
        *,
        glob: str = "**/*",
        max_workers: int = 4,
    ) -> None:
        if max_workers <= 0:
            raise ValueError(f"max_workers must be positive, got {max_workers}")
        self._file_loader = file_loader or FileLoader()
        self.glob = glob
        self.max_workers = max_workers

    def load(self, path: str | Path) -> list[Document]:
        if not str(path).strip():
            raise ValueError("path must not be empty")

        root = Path(path)
        if not root.is_dir():
            raise FileNotFoundError(f"Directory not found: {root}")

        loader = LangChainDirectoryLoader(
            str(root),
            glob=self.glob,
            loader_cls=_LangChainAdapter,  # type: ignore[arg-type]
            loader_kwargs={"file_loader": self._file_loader},
            silent_errors=True,
            use_multithreading=True,
            max_concurrency=self.max_workers,
        )
        docs = sorted((_from_langchain(d) for d in loader.load()), key=lambda d: d.source)
        logger.info("Loaded %d documents from %s", len(docs), root)
        return docs

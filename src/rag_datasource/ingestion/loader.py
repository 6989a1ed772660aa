"""Document loading — one text document per file in a directory."""

from __future__ import annotations

from pathlib import Path

from langchain_community.document_loaders import TextLoader

from rag_datasource.errors import InvalidInput
from rag_datasource.ingestion.models import SourceDocument


def list_source_files(path: str | Path) -> list[Path]:
    """Return the regular, non-hidden files directly inside *path*.

    Raises
    ------
    InvalidInput
        If *path* is not an existing directory.
    """
    directory = Path(path)
    if not directory.is_dir():
        raise InvalidInput(f"Not a directory: {directory}")
    return sorted(p for p in directory.iterdir() if p.is_file() and not p.name.startswith("."))


def load_document(path: str | Path, encoding: str = "utf-8") -> SourceDocument:
    """Read a single file into a :class:`SourceDocument` keyed by its file name."""
    path = Path(path)
    docs = TextLoader(str(path), encoding=encoding).load()
    text = "".join(doc.page_content for doc in docs)
    return SourceDocument(document_id=path.name, path=path, text=text)

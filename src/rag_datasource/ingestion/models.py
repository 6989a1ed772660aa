"""Models for source documents, their chunks and ingestion runs."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field


def make_record_id(document_id: str, index: int) -> str:
    """Return the deterministic vector-record id for chunk *index* of *document_id*."""
    return f"{document_id}_chunk_{index}"


class SourceDocument(BaseModel):
    """A unit of source text read once at ingestion time.

    Attributes
    ----------
    document_id:
        File name; record ids are derived from it.
    path:
        Location the text was read from.
    text:
        Full text content.
    """

    document_id: str
    path: Path
    text: str


class Chunk(BaseModel):
    """A bounded, overlapping slice of a :class:`SourceDocument`.

    Attributes
    ----------
    document_id:
        Identifier of the parent document.
    index:
        Ordinal position of the chunk within the document.
    text:
        Chunk content, including the overlap copied from the predecessor.
    overlap:
        Number of leading characters of ``text`` repeated from the previous
        chunk.  ``text[overlap:]`` is the chunk's novel content.
    """

    document_id: str
    index: int
    text: str
    overlap: int = 0

    @property
    def record_id(self) -> str:
        return make_record_id(self.document_id, self.index)

    @property
    def novel_text(self) -> str:
        return self.text[self.overlap :]


class IngestionReport(BaseModel):
    """Summary of one :meth:`IngestionPipeline.ingest` run."""

    files_processed: int = 0
    chunks_stored: int = 0
    failures: dict[str, str] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures

"""Sentence-aware text chunking with overlap."""

from __future__ import annotations

import re

from rag_datasource.errors import InvalidInput
from rag_datasource.ingestion.models import Chunk

# A unit is a run of non-terminators followed by its terminators.  The
# second alternative catches leading terminators and the last alternative
# a trailing remainder, so the units always concatenate back to the input.
_SENTENCE_RE = re.compile(r"[^.?!\n]*[.?!\n]+|[^.?!\n]+")


def split_sentences(text: str) -> list[str]:
    """Split *text* into sentence-like units ending in ``.``, ``?``, ``!`` or newline."""
    return _SENTENCE_RE.findall(text)


def validate_chunk_sizes(max_chunk_size: int, min_overlap_size: int) -> None:
    if max_chunk_size <= 0:
        raise InvalidInput(f"max_chunk_size must be > 0, got {max_chunk_size}")
    if min_overlap_size < 0:
        raise InvalidInput(f"min_overlap_size must be >= 0, got {min_overlap_size}")
    if min_overlap_size >= max_chunk_size:
        raise InvalidInput(
            f"min_overlap_size ({min_overlap_size}) must be < max_chunk_size ({max_chunk_size})"
        )


def _tail(text: str, size: int) -> str:
    if size <= 0:
        return ""
    return text[-size:]


def _split_with_overlap(text: str, max_chunk_size: int, min_overlap_size: int) -> list[tuple[str, int]]:
    """Return ``(chunk_text, overlap_length)`` pairs."""
    validate_chunk_sizes(max_chunk_size, min_overlap_size)
    if not text:
        return [(text, 0)]

    chunks: list[tuple[str, int]] = []
    buffer = ""
    overlap = 0

    for unit in split_sentences(text):
        if buffer and len(buffer) + len(unit) > max_chunk_size:
            chunks.append((buffer, overlap))
            # Seed with the emitted chunk's tail, shortened so that the
            # pending unit still fits.  Oversized units start unseeded.
            seed_size = min(min_overlap_size, max_chunk_size - len(unit))
            buffer = _tail(buffer, seed_size)
            overlap = len(buffer)
        buffer += unit

    if buffer:
        chunks.append((buffer, overlap))
    return chunks


def split_text(text: str, max_chunk_size: int = 2000, min_overlap_size: int = 300) -> list[str]:
    """Split *text* into bounded, overlapping chunks.

    Parameters
    ----------
    text:
        Raw document text.
    max_chunk_size:
        Maximum number of characters per chunk.  A single sentence longer
        than this becomes a chunk of its own rather than being split.
    min_overlap_size:
        Maximum number of characters carried over from the end of one chunk
        to the start of the next.

    Returns
    -------
    list[str]
        Chunks in document order.  Empty input yields ``[""]``.

    Raises
    ------
    InvalidInput
        If the size parameters are inconsistent.
    """
    return [chunk for chunk, _ in _split_with_overlap(text, max_chunk_size, min_overlap_size)]


def chunk_document(
    document_id: str,
    text: str,
    max_chunk_size: int = 2000,
    min_overlap_size: int = 300,
) -> list[Chunk]:
    """Split *text* into :class:`Chunk` objects tagged with *document_id*."""
    return [
        Chunk(document_id=document_id, index=i, text=chunk, overlap=overlap)
        for i, (chunk, overlap) in enumerate(_split_with_overlap(text, max_chunk_size, min_overlap_size))
    ]

"""Models for vector records and retrieval results."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class VectorRecord(BaseModel):
    """The persisted unit in a vector store."""

    id: str
    vector: list[float]
    metadata: dict[str, Any] = Field(default_factory=dict)


class QueryMatch(BaseModel):
    """A single scored match from a nearest-neighbour query.

    ``score`` is higher-is-more-similar and may be ``None`` when a backend
    does not report one.
    """

    id: str
    score: float | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class AssembledContext(BaseModel):
    """Concatenated, cleaned match content ready for the prompt renderer."""

    text: str = ""
    length: int = 0
    too_long: bool = False
    match_count: int = 0

    def __str__(self) -> str:
        return self.text

"""Pydantic models for indexed invoice documents.

Hierarchy:
  Document       : one searchable record per indexed invoice image.
  DocumentMatch  : a Document as returned by the similarity ranking function.
"""

from typing import Any

from pydantic import BaseModel, field_validator


class Document(BaseModel):
    """A stored invoice text with its embedding.

    The id is caller-supplied and globally unique; upserting the same id
    replaces content, metadata and embedding (last write wins).
    """

    id: str
    content: str
    metadata: dict[str, Any] = {}
    embedding: list[float] | None = None

    @field_validator("metadata", mode="before")
    @classmethod
    def null_metadata_is_empty(cls, value: Any) -> Any:
        # rows written before the column had a default carry NULL
        return {} if value is None else value


class DocumentMatch(Document):
    """A Document returned by the vector store, ranked by similarity to a query."""

    similarity: float | None = None

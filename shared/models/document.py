"""Pydantic models for document data.

Hierarchy:
  Document       : parent record, upserted once per ingestion.
  DocumentChunk  : one embedded word-window of a document's text.
  IngestRequest  : incoming ingestion payload.
  IngestResponse : result returned to the caller after ingestion.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Document(BaseModel):
    """Parent document record.

    Re-ingesting with the same id overwrites every field and replaces all
    derived chunks.
    """

    id: str
    owner_id: str
    project_id: str | None = None
    title: str
    description: str | None = None
    tags: list[str] = []
    source_url: str | None = None
    metadata: dict[str, Any] = {}


class DocumentChunk(BaseModel):
    """A chunk exclusively owned by one document.

    owner_id, title, tags and project_id are denormalized from the parent so
    searches can filter on them without a join.
    """

    document_id: str
    chunk_index: int = Field(ge=0)
    content: str = Field(min_length=1)
    embedding: list[float]
    metadata: dict[str, Any] = {}
    owner_id: str
    title: str = ""
    tags: list[str] = []
    project_id: str | None = None


class IngestRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    title: str = ""
    content: str = ""
    description: str | None = None
    tags: list[str] = []
    metadata: dict[str, Any] = {}
    project_id: str | None = None
    source_url: str | None = None
    document_id: str | None = None
    chunk_size: int | None = None
    chunk_overlap: int | None = None


class IngestResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    document_id: str
    chunks: int
    embedding_model: str

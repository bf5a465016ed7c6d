"""ChunkPoint model: metadata stored alongside each chunk vector in a RAG backend."""

from typing import Any

from pydantic import BaseModel


class ChunkPoint(BaseModel):
    """Payload stored next to each chunk vector.

    Besides the chunk's own fields it denormalizes the parent document's
    tags, project and title so that searches can filter on them without a
    second lookup.

    Attributes:
        document_id:  Id of the parent document (caller-supplied or generated).
        chunk_index:  Zero-based position of this chunk within the document.
        content:      Raw text content of this chunk.
        owner_id:     Owner of the parent document; used for owner filtering.
        title:        Title of the parent document, for display purposes.
        tags:         Tags of the parent document; search requires all filter tags.
        project_id:   Optional project/group of the parent document.
        metadata:     Arbitrary metadata inherited from the ingestion call.
    """

    document_id: str
    chunk_index: int
    content: str
    owner_id: str
    title: str = ""
    tags: list[str] = []
    project_id: str | None = None
    metadata: dict[str, Any] = {}


class SearchFilters(BaseModel):
    """Optional restrictions for a nearest-neighbour search.

    Attributes:
        tags:         Parent document must carry all of these tags.
        owner_id:     Chunk owner must match.
        document_ids: Parent document id must be one of these.
    """

    tags: list[str] | None = None
    owner_id: str | None = None
    document_ids: list[str] | None = None


class SearchHit(BaseModel):
    """A ranked row returned by the store's similarity search."""

    document_id: str
    chunk_id: str
    content: str
    similarity: float

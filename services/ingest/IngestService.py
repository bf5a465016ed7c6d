"""Ingestion service.

Stores a document record, splits its text into word windows, embeds all
windows in one batch call and replaces the document's chunk set in the
document store.
"""

import uuid

from services.ingest.chunking import CHUNK_OVERLAP, CHUNK_SIZE, WordWindows
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.errors import InvalidRequestError, InvariantViolationError
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import Document, DocumentChunk, IngestRequest, IngestResponse


class IngestService:
    """Orchestrates the ingestion pipeline for a single document."""

    def __init__(
        self,
        helper_config: HelperConfig,
        embed_client: EmbedClientInterface,
        rag_client: RAGClientInterface,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._embed_client = embed_client
        self._rag_client = rag_client
        self._chunk_size = int(helper_config.get_number_val("INGEST_CHUNK_SIZE", default=CHUNK_SIZE))
        self._chunk_overlap = int(helper_config.get_number_val("INGEST_CHUNK_OVERLAP", default=CHUNK_OVERLAP))

    ##########################################
    ############### CORE INGEST ##############
    ##########################################

    async def do_ingest(self, request: IngestRequest, owner_id: str) -> IngestResponse:
        """Ingest one document and replace all of its chunks.

        Re-ingesting with the same document id overwrites the record and its
        chunk set.

        Args:
            request (IngestRequest): Title, content and metadata of the document.
            owner_id (str): Identity of the ingesting user.

        Returns:
            IngestResponse: The document id, number of chunks and embedding model.

        Raises:
            InvalidRequestError: If title or content is blank or the text produces no chunks.
            InvalidParametersError: If the chunk size/overlap combination is invalid.
            InvariantViolationError: If the embedding count does not match the chunk count.
            UpstreamError: If the embedding call fails.
            StorageError: If a store write fails (ChunkReplacementError when the
                old chunks were already deleted).
        """
        title = (request.title or "").strip()
        content = (request.content or "").strip()
        if not title or not content:
            raise InvalidRequestError("title and content are required")

        # fails fast on bad chunk parameters before anything is written
        windows = WordWindows(
            content,
            size=request.chunk_size if request.chunk_size is not None else self._chunk_size,
            overlap=request.chunk_overlap if request.chunk_overlap is not None else self._chunk_overlap,
        )

        document = Document(
            id=request.document_id or str(uuid.uuid4()),
            owner_id=owner_id,
            project_id=request.project_id,
            title=title,
            description=request.description,
            tags=list(request.tags),
            source_url=request.source_url,
            metadata=dict(request.metadata),
        )
        self.logging.info("Ingesting document id=%s ('%s') for owner %s.", document.id, title, owner_id)
        await self._rag_client.do_upsert_document(document)

        chunks = list(windows)
        if not chunks:
            raise InvalidRequestError("content produced no chunks")

        # batch embed: one HTTP request for all chunks of this document
        vectors = await self._embed_client.do_embed(chunks)
        if len(vectors) != len(chunks):
            self.logging.error(
                "Embedding count mismatch for document id=%s: %d chunks, %d vectors.",
                document.id, len(chunks), len(vectors),
            )
            raise InvariantViolationError(
                f"Embedding service returned {len(vectors)} vectors for {len(chunks)} chunks."
            )

        rows = [
            DocumentChunk(
                document_id=document.id,
                chunk_index=chunk_index,
                content=chunk,
                embedding=vector,
                metadata=document.metadata,
                owner_id=owner_id,
                title=document.title,
                tags=document.tags,
                project_id=document.project_id,
            )
            for chunk_index, (chunk, vector) in enumerate(zip(chunks, vectors))
        ]
        stored = await self._rag_client.do_replace_chunks(document.id, rows)

        self.logging.info("Ingested document id=%s ('%s'): %d chunks stored.", document.id, title, stored)
        return IngestResponse(
            document_id=document.id,
            chunks=len(rows),
            embedding_model=self._embed_client.embed_model,
        )

from abc import abstractmethod
from typing import Any
import json
import uuid

import httpx
from shared.clients.ClientInterface import ClientInterface
from shared.clients.rag.models.ChunkPoint import ChunkPoint, SearchFilters, SearchHit
from shared.errors import AssistantError, ChunkReplacementError, StorageError
from shared.models.assistant import AuditRecord
from shared.models.document import Document, DocumentChunk

from shared.helper.HelperConfig import HelperConfig

UPSERT_BATCH_SIZE = 100  # max points per upsert call

# Fixed namespace for deterministic UUIDv5 point IDs.
# Changing this value would invalidate all existing point IDs in the store.
_POINT_ID_NAMESPACE = uuid.UUID("3b8c5e0a-7d2f-4c61-9a4e-2f6d8b1c0e57")


def make_document_point_id(document_id: str) -> str:
    """Map an opaque document id onto a stable UUID point id."""
    return str(uuid.uuid5(_POINT_ID_NAMESPACE, f"document:{document_id}"))


def make_chunk_point_id(document_id: str, chunk_index: int) -> str:
    """Build a deterministic UUID point id for one chunk of a document."""
    return str(uuid.uuid5(_POINT_ID_NAMESPACE, f"chunk:{document_id}:{chunk_index}"))


class RAGClientInterface(ClientInterface):
    """Document store gateway.

    Owns three collections: chunks (vectors plus ChunkPoint payload),
    documents (one vectorless point per document) and runs (vectorless audit
    records). All failures surface as StorageError.
    """

    error_class = StorageError

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "rag"
        """
        return "rag"

    @abstractmethod
    def get_chunks_collection(self) -> str:
        """Returns the name of the collection holding chunk vectors."""
        pass

    @abstractmethod
    def get_documents_collection(self) -> str:
        """Returns the name of the collection holding document records."""
        pass

    @abstractmethod
    def get_runs_collection(self) -> str:
        """Returns the name of the collection holding audit records."""
        pass

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_points(self, collection: str) -> str:
        """
        Returns the endpoint path for points upsert requests (e.g. "/collections/my_col/points").
        """
        pass

    @abstractmethod
    def _get_endpoint_delete_points(self, collection: str) -> str:
        """
        Returns the endpoint path for deleting points by filter (e.g. "/collections/my_col/points/delete").
        """
        pass

    @abstractmethod
    def _get_endpoint_search(self, collection: str) -> str:
        """
        Returns the endpoint path for nearest-neighbour search (e.g. "/collections/my_col/points/search").
        """
        pass

    @abstractmethod
    def _get_endpoint_check_collection_existence(self, collection: str) -> str:
        """
        Returns the endpoint path for collection existence checks (e.g. "/collections/my_col/exists").
        """
        pass

    @abstractmethod
    def _get_endpoint_create_collection(self, collection: str) -> str:
        """
        Returns the endpoint path for collection creation (e.g. "/collections/my_col").
        """
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_create_collection_payload(self, vector_size: int | None, distance: str) -> dict:
        """
        Builds the payload for creating a collection.

        Args:
            vector_size (int | None): Dimension of the stored vectors; None creates a vectorless collection.
            distance (str): Distance metric (e.g. "Cosine").

        Returns:
            dict: The payload for the create collection request.
        """
        pass

    @abstractmethod
    def build_point(self, point_id: str, vector: list[float] | None, payload: dict) -> dict:
        """
        Builds one backend-specific point for an upsert.

        Args:
            point_id (str): The point id.
            vector (list[float] | None): The vector; None for records without one.
            payload (dict): The metadata payload.

        Returns:
            dict: The point as expected by the upsert endpoint.
        """
        pass

    @abstractmethod
    def get_delete_payload(self, document_id: str) -> dict:
        """
        Builds the payload deleting every chunk of one document.

        Args:
            document_id (str): The parent document id.

        Returns:
            dict: The payload for the delete request.
        """
        pass

    @abstractmethod
    def get_search_payload(self, query_vector: list[float], limit: int, filters: SearchFilters) -> dict:
        """
        Builds the payload for a nearest-neighbour search.

        Args:
            query_vector (list[float]): The embedded query.
            limit (int): Maximum number of hits.
            filters (SearchFilters): Tag (all-of), owner and document id (any-of) restrictions.

        Returns:
            dict: The payload for the search request.
        """
        pass

    ################ RESPONSE PARSER ##################
    @abstractmethod
    def extract_search_hits(self, raw_response: dict) -> list[SearchHit]:
        """
        Extracts ranked hits from a raw search response.

        Args:
            raw_response (dict): The raw JSON response from the search endpoint.

        Returns:
            list[SearchHit]: Hits with similarity clamped into [0, 1].
        """
        pass

    @abstractmethod
    def extract_existence(self, raw_response: dict) -> bool:
        """
        Extracts the existence flag from a raw collection existence response.
        """
        pass

    def _read_json(self, response: httpx.Response) -> dict:
        """Decode a successful store response, which must be a JSON object.

        Raises:
            StorageError: If the body is not JSON or not an object.
        """
        try:
            data = response.json()
        except ValueError as e:
            raise StorageError("Document store returned a non-JSON body.") from e
        if not isinstance(data, dict):
            raise StorageError("Document store returned a JSON body that is not an object.")
        return data

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_existence_check(self, collection: str) -> bool:
        """Check if a collection exists in the store.

        Returns:
            bool: True if the collection exists, False otherwise.
        """
        resp = await self.do_request(
            method="GET",
            endpoint=self._get_endpoint_check_collection_existence(collection),
            raise_on_error=True,
        )
        return self.extract_existence(self._read_json(resp))

    async def do_create_collection(self, collection: str, vector_size: int | None = None, distance: str = "Cosine") -> httpx.Response:
        """Create a collection in the store.

        Args:
            collection (str): Name of the collection.
            vector_size (int | None): Size of the vectors; None for a vectorless collection.
            distance (str): The distance metric for the vectors.

        Returns:
            httpx.Response: The response from the create collection request.
        """
        return await self.do_request(
            method="PUT",
            json=self.get_create_collection_payload(vector_size, distance),
            endpoint=self._get_endpoint_create_collection(collection),
            raise_on_error=True,
        )

    async def do_ensure_collections(self, vector_size: int, distance: str = "Cosine") -> None:
        """Create the chunks, documents and runs collections if they are missing.

        Args:
            vector_size (int): Dimension of the chunk embeddings.
            distance (str): Distance metric of the chunk embeddings.
        """
        wanted = [
            (self.get_chunks_collection(), vector_size),
            (self.get_documents_collection(), None),
            (self.get_runs_collection(), None),
        ]
        for collection, size in wanted:
            if await self.do_existence_check(collection):
                self.logging.info("Collection %r already exists.", collection)
                continue
            await self.do_create_collection(collection, vector_size=size, distance=distance)
            self.logging.info("Created collection %r (vector size: %s).", collection, size)

    async def do_upsert_points(self, collection: str, points: list[dict[str, Any]]) -> httpx.Response:
        """Upsert points into a collection and wait until they are visible.

        Inserts new points or replaces existing ones with the same ID.

        Args:
            collection (str): The target collection.
            points (list[dict[str, Any]]): The points to upsert.

        Returns:
            httpx.Response: The response from the upsert request.
        """
        return await self.do_request(
            method="PUT",
            content=json.dumps({"points": points}),
            params={"wait": "true"},
            endpoint=self._get_endpoint_points(collection),
            additional_headers={"Content-Type": "application/json"},
            raise_on_error=True,
        )

    async def do_upsert_document(self, document: Document) -> None:
        """Create or overwrite the document record with the same id.

        Args:
            document (Document): The document record.

        Raises:
            StorageError: If the store rejects the write.
        """
        point = self.build_point(
            point_id=make_document_point_id(document.id),
            vector=None,
            payload=document.model_dump(),
        )
        await self.do_upsert_points(self.get_documents_collection(), [point])
        self.logging.debug("Upserted document record id=%s.", document.id)

    async def do_replace_chunks(self, document_id: str, chunks: list[DocumentChunk]) -> int:
        """Replace the full chunk set of a document (delete, then insert).

        Must run after a successful do_upsert_document() for the same id.
        Concurrent calls for one document id are last-writer-wins.

        Args:
            document_id (str): The parent document id.
            chunks (list[DocumentChunk]): The new chunk generation.

        Returns:
            int: Number of chunks inserted.

        Raises:
            StorageError: If deleting the old generation fails (nothing changed).
            ChunkReplacementError: If the delete succeeded but the insert failed;
                the document has no retrievable chunks until ingestion is repeated.
        """
        # every point is built before the delete; a bad chunk must leave the old generation in place
        points: list[dict] = []
        for chunk in chunks:
            payload = ChunkPoint(
                document_id=chunk.document_id,
                chunk_index=chunk.chunk_index,
                content=chunk.content,
                owner_id=chunk.owner_id,
                title=chunk.title,
                tags=chunk.tags,
                project_id=chunk.project_id,
                metadata=chunk.metadata,
            )
            points.append(self.build_point(
                point_id=make_chunk_point_id(document_id, chunk.chunk_index),
                vector=chunk.embedding,
                payload=payload.model_dump(),
            ))

        await self.do_request(
            method="POST",
            content=json.dumps(self.get_delete_payload(document_id)),
            params={"wait": "true"},
            endpoint=self._get_endpoint_delete_points(self.get_chunks_collection()),
            additional_headers={"Content-Type": "application/json"},
            raise_on_error=True,
        )

        try:
            for batch_start in range(0, len(points), UPSERT_BATCH_SIZE):
                await self.do_upsert_points(
                    self.get_chunks_collection(),
                    points[batch_start: batch_start + UPSERT_BATCH_SIZE],
                )
        except AssistantError as exc:
            self.logging.error(
                "Chunk insert failed for document id=%s after old chunks were deleted: %s",
                document_id, exc.message,
            )
            raise ChunkReplacementError(
                f"Old chunks of document '{document_id}' were deleted but the new chunks could not be stored: "
                f"{exc.message}. Re-run ingestion for this document."
            ) from exc

        return len(points)

    async def do_search(self, query_vector: list[float], k: int, filters: SearchFilters | None = None) -> list[SearchHit]:
        """Return up to k chunks ranked by descending similarity to the query vector.

        Args:
            query_vector (list[float]): The embedded query.
            k (int): Maximum number of hits.
            filters (SearchFilters | None): Optional tag/owner/document id restrictions.

        Returns:
            list[SearchHit]: Ranked hits; empty when nothing matches.
        """
        resp = await self.do_request(
            method="POST",
            content=json.dumps(self.get_search_payload(query_vector, k, filters or SearchFilters())),
            endpoint=self._get_endpoint_search(self.get_chunks_collection()),
            additional_headers={"Content-Type": "application/json"},
            raise_on_error=True,
        )
        hits = self.extract_search_hits(self._read_json(resp))
        # stable: equal scores keep backend order
        return sorted(hits, key=lambda hit: -hit.similarity)[:k]

    async def do_insert_audit_record(self, record: AuditRecord) -> None:
        """Append one audit record to the runs collection.

        Args:
            record (AuditRecord): The record to store.
        """
        point = self.build_point(point_id=str(uuid.uuid4()), vector=None, payload=record.model_dump())
        await self.do_upsert_points(self.get_runs_collection(), [point])

import httpx

from shared.helper.HelperConfig import HelperConfig
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.clients.rag.models.ChunkPoint import SearchFilters, SearchHit
from shared.errors import StorageError
from shared.models.config import EnvConfig


class RAGClientQdrant(RAGClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default="http://localhost:6333", val_type="string")
        self._api_key = self.get_config_val("API_KEY", default="", val_type="string")
        self._chunks_collection = self.get_config_val("COLLECTION", default="ai_document_chunks", val_type="string")
        self._documents_collection = self.get_config_val("DOCUMENTS_COLLECTION", default="ai_documents", val_type="string")
        self._runs_collection = self.get_config_val("RUNS_COLLECTION", default="ai_runs", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Qdrant"

    def get_chunks_collection(self) -> str:
        return self._chunks_collection

    def get_documents_collection(self) -> str:
        return self._documents_collection

    def get_runs_collection(self) -> str:
        return self._runs_collection

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default="http://localhost:6333"),
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
            EnvConfig(env_key="COLLECTION", val_type="string", default="ai_document_chunks"),
            EnvConfig(env_key="DOCUMENTS_COLLECTION", val_type="string", default="ai_documents"),
            EnvConfig(env_key="RUNS_COLLECTION", val_type="string", default="ai_runs"),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if self._api_key:
            return {"api-key": f"{self._api_key}"}
        return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/healthz"

    def _get_endpoint_points(self, collection: str) -> str:
        return f"/collections/{collection}/points"

    def _get_endpoint_delete_points(self, collection: str) -> str:
        return f"/collections/{collection}/points/delete"

    def _get_endpoint_search(self, collection: str) -> str:
        return f"/collections/{collection}/points/search"

    def _get_endpoint_check_collection_existence(self, collection: str) -> str:
        return f"/collections/{collection}/exists"

    def _get_endpoint_create_collection(self, collection: str) -> str:
        return f"/collections/{collection}"

    ################ ERRORS ##################
    def extract_error_message(self, response: httpx.Response) -> str:
        # qdrant wraps errors as {"status": {"error": "..."}}
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and isinstance(body.get("status"), dict) and body["status"].get("error"):
            return f"Qdrant error: {body['status']['error']}"
        return super().extract_error_message(response)

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    def get_create_collection_payload(self, vector_size: int | None, distance: str) -> dict:
        if vector_size is None:
            # empty named-vector map: payload-only collection
            return {"vectors": {}}
        return {"vectors": {"size": vector_size, "distance": distance}}

    def build_point(self, point_id: str, vector: list[float] | None, payload: dict) -> dict:
        return {
            "id": point_id,
            "vector": vector if vector is not None else {},
            "payload": payload,
        }

    def get_delete_payload(self, document_id: str) -> dict:
        return {"filter": {"must": [{"key": "document_id", "match": {"value": document_id}}]}}

    def get_search_payload(self, query_vector: list[float], limit: int, filters: SearchFilters) -> dict:
        must: list[dict] = []
        # one condition per tag: the document must carry all of them
        for tag in filters.tags or []:
            must.append({"key": "tags", "match": {"value": tag}})
        if filters.owner_id:
            must.append({"key": "owner_id", "match": {"value": filters.owner_id}})
        if filters.document_ids:
            must.append({"key": "document_id", "match": {"any": list(filters.document_ids)}})

        payload: dict = {
            "vector": query_vector,
            "limit": limit,
            "with_payload": ["document_id", "content"],
            "with_vector": False,
        }
        if must:
            payload["filter"] = {"must": must}
        return payload

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def extract_search_hits(self, raw_response: dict) -> list[SearchHit]:
        result = raw_response.get("result")
        if not isinstance(result, list):
            raise StorageError("Qdrant search response does not contain a result list.")
        hits: list[SearchHit] = []
        for point in result:
            if not isinstance(point, dict):
                raise StorageError("Qdrant search response contains a result row that is not an object.")
            payload = point.get("payload") or {}
            score = point.get("score") or 0.0
            if not isinstance(payload, dict) or not isinstance(score, (int, float)):
                raise StorageError(f"Qdrant search result {point.get('id')!r} has a malformed payload or score.")
            hits.append(SearchHit(
                document_id=str(payload.get("document_id", "")),
                chunk_id=str(point.get("id", "")),
                content=str(payload.get("content") or ""),
                similarity=min(1.0, max(0.0, float(score))),
            ))
        return hits

    def extract_existence(self, raw_response: dict) -> bool:
        result = raw_response.get("result")
        if not isinstance(result, dict):
            raise StorageError("Qdrant existence response does not contain a result object.")
        return bool(result.get("exists"))

from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.errors import UpstreamError
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class EmbedClientOpenai(EmbedClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default="https://api.openai.com/v1", val_type="string", fallback_keys=["OPENAI_BASE_URL"])
        self._api_key = self.get_config_val("API_KEY", default="", val_type="string", fallback_keys=["OPENAI_API_KEY"])

    ##########################################
    ############### CHECKER ##################
    ##########################################

    def has_credentials(self) -> bool:
        return bool(self._api_key)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "OpenAI"

    def _get_default_model(self) -> str:
        return "text-embedding-3-small"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default="https://api.openai.com/v1", fallback_keys=["OPENAI_BASE_URL"]),
            EnvConfig(env_key="API_KEY", val_type="string", default="", fallback_keys=["OPENAI_API_KEY"]),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if self._api_key:
            return {"Authorization": f"Bearer {self._api_key}"}
        return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        # no dedicated health route; listing models proves reachability and auth
        return "/models"

    def get_endpoint_embedding(self) -> str:
        return "/embeddings"

    ################ PAYLOAD BUILDER ##################
    def get_embed_payload(self, texts: list[str]) -> dict:
        """Build the OpenAI embedding request body.

        Returns:
            dict: {"model": "...", "input": [...]}
        """
        return {"model": self.embed_model, "input": texts}

    ##########################################
    ################# OTHER ##################
    ##########################################

    def extract_embeddings_from_response(self, response_data: dict) -> list[list[float]]:
        """Extract embedding vectors from an OpenAI /embeddings response.

        The provider answers {"data": [{"embedding": [...], "index": 0}, ...]};
        items are re-ordered by index when one is present.

        Raises:
            UpstreamError: If "data" is missing, an item has no embedding, or a
                vector holds non-numeric components.
        """
        items = response_data.get("data") if isinstance(response_data, dict) else None
        if not isinstance(items, list):
            raise UpstreamError(
                "Embedding response does not contain a 'data' list. "
                f"Response keys: {list(response_data.keys()) if isinstance(response_data, dict) else type(response_data).__name__}"
            )
        if all(isinstance(item, dict) and isinstance(item.get("index"), int) for item in items):
            items = sorted(items, key=lambda item: item["index"])
        vectors: list[list[float]] = []
        for item in items:
            embedding = item.get("embedding") if isinstance(item, dict) else None
            if not isinstance(embedding, list):
                raise UpstreamError("Embedding response contains an item without an 'embedding' vector.")
            # bool is an int subclass but never a valid component
            if not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in embedding):
                raise UpstreamError("Embedding response contains a vector with non-numeric components.")
            vectors.append([float(v) for v in embedding])
        return vectors

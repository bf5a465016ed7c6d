from abc import abstractmethod

from shared.clients.ClientInterface import ClientInterface
from shared.errors import ConfigurationError, UpstreamError

from shared.helper.HelperConfig import HelperConfig


class EmbedClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

        # model and embedding config
        self.embed_distance = helper_config.get_string_val(f"{self.get_client_type().upper()}_DISTANCE", default="Cosine")
        self.embed_model = helper_config.get_string_val(f"{self.get_client_type().upper()}_MODEL", default=self._get_default_model())
        self.embed_vector_size = int(helper_config.get_number_val(f"{self.get_client_type().upper()}_VECTOR_SIZE", default=1536))

    ##########################################
    ############### CHECKER ##################
    ##########################################

    @abstractmethod
    def has_credentials(self) -> bool:
        """
        Returns whether an API credential is configured for the backend.
        """
        pass

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "embed"
        """
        return "embed"

    @abstractmethod
    def _get_default_model(self) -> str:
        """
        Returns the embedding model used when EMBED_MODEL is not set.
        """
        pass

    def get_vector_size(self) -> tuple[int, str]:
        """
        Returns the output vector dimension and distance metric of the configured embedding model.

        Returns:
            tuple[int, str]: (vector_dimension, distance_metric), e.g. (1536, "Cosine")
        """
        return self.embed_vector_size, self.embed_distance

    ################ ENDPOINTS ##################
    @abstractmethod
    def get_endpoint_embedding(self) -> str:
        """
        Returns the endpoint path for embedding requests.

        Returns:
            str: The endpoint path for embedding requests (e.g. "/embeddings")
        """
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_embed_payload(self, texts: list[str]) -> dict:
        """Build the backend-specific request body for an embedding request.

        Args:
            texts (list[str]): The texts to embed.

        Returns:
            dict: JSON-serialisable request body (e.g. {"model": "...", "input": [...]}).
        """
        pass

    ##########################################
    ################# OTHER ##################
    ##########################################

    @abstractmethod
    def extract_embeddings_from_response(self, response_data: dict) -> list[list[float]]:
        """Extract embedding vectors from a raw embedding API response.

        Args:
            response_data (dict): The parsed JSON response body.

        Returns:
            list[list[float]]: Embedding vectors in the same order as the input texts.

        Raises:
            UpstreamError: If the response format is invalid.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_embed(self, texts: list[str] | str) -> list[list[float]]:
        """Send one embedding request for all texts and return the vectors.

        An empty input returns an empty list without touching the network.
        The credential is checked before any call is made.

        Args:
            texts (list[str] | str): One or more texts to embed.

        Returns:
            list[list[float]]: One vector per input, in input order.

        Raises:
            ConfigurationError: If no API credential is configured.
            UpstreamError: If the provider call fails or returns a malformed body.
        """
        texts = [texts] if isinstance(texts, str) else list(texts)
        if not texts:
            return []
        if not self.has_credentials():
            raise ConfigurationError(
                f"Missing API key for embedding engine '{self.get_engine_name()}' "
                f"({self._get_config_key_name('API_KEY')})."
            )

        body = self.get_embed_payload(texts)
        response = await self.do_request(method="POST", endpoint=self.get_endpoint_embedding(), json=body)
        if response.status_code >= 300:
            message = self.extract_error_message(response)
            self.logging.error(
                "Embedding request failed: status %d, message: %s",
                response.status_code,
                message[:200],
            )
            raise UpstreamError(message)
        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError("Embedding service returned a non-JSON body.") from e
        vectors = self.extract_embeddings_from_response(data)
        self.logging.debug("Embedded %d text(s) with model %s.", len(vectors), self.embed_model)
        return vectors

from abc import abstractmethod

from shared.clients.ClientInterface import ClientInterface
from shared.errors import ConfigurationError, UpstreamError
from shared.helper.HelperConfig import HelperConfig
from shared.models.assistant import ChatMessage, CompletionOptions, CompletionResult


class LLMClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

        # chat / completion config
        self.chat_model = helper_config.get_string_val(f"{self.get_client_type().upper()}_CHAT_MODEL", default=self._get_default_model())

    ##########################################
    ############### CHECKER ##################
    ##########################################

    @abstractmethod
    def has_credentials(self) -> bool:
        """Returns whether an API credential is configured for the backend."""
        pass

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "llm"

    @abstractmethod
    def _get_default_model(self) -> str:
        """Returns the chat model used when LLM_CHAT_MODEL is not set."""
        pass

    def get_chat_model(self) -> str:
        """Returns the configured default chat model."""
        return self.chat_model

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_chat(self) -> str:
        """Returns the endpoint path for chat/completion requests (e.g. "/chat/completions")."""
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_chat_payload(self, messages: list[ChatMessage], options: CompletionOptions) -> dict:
        """Build the backend-specific request body for a chat/completion request.

        Args:
            messages (list[ChatMessage]): The ordered conversation to send.
            options (CompletionOptions): Model, temperature, response format and token cap.

        Returns:
            dict: JSON-serialisable request body.
        """
        pass

    ##########################################
    ################# OTHER ##################
    ##########################################

    @abstractmethod
    def extract_chat_response(self, response_data: dict) -> CompletionResult:
        """Extract the single assistant reply (and usage, if any) from a raw chat API response.

        Args:
            response_data (dict): The parsed JSON response body.

        Returns:
            CompletionResult: The reply message and the opaque usage block.

        Raises:
            UpstreamError: If the response does not contain a reply.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_complete(self, messages: list[ChatMessage], options: CompletionOptions | None = None) -> CompletionResult:
        """Send a chat/completion request and return the assistant reply.

        No retry is attempted; a failed call surfaces immediately.

        Args:
            messages (list[ChatMessage]): The ordered conversation to send.
            options (CompletionOptions | None): Per-call directives; defaults when None.

        Returns:
            CompletionResult: Exactly one reply message plus usage metadata if present.

        Raises:
            ConfigurationError: If no API credential is configured.
            UpstreamError: If the HTTP request fails or the response is malformed.
        """
        if not self.has_credentials():
            raise ConfigurationError(
                f"Missing API key for LLM engine '{self.get_engine_name()}' "
                f"({self._get_config_key_name('API_KEY')})."
            )
        options = options or CompletionOptions()
        body = self.get_chat_payload(messages, options)
        response = await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_chat(),
            json=body,
            raise_on_error=True,
        )
        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError("Completion service returned a non-JSON body.") from e
        return self.extract_chat_response(data)

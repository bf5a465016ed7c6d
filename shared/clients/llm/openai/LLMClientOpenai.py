from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.errors import UpstreamError
from shared.helper.HelperConfig import HelperConfig
from shared.models.assistant import ChatMessage, CompletionOptions, CompletionResult
from shared.models.config import EnvConfig


class LLMClientOpenai(LLMClientInterface):
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
        return "gpt-4o-mini"

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
        return "/models"

    def _get_endpoint_chat(self) -> str:
        return "/chat/completions"

    ################ PAYLOAD BUILDER ##################
    def get_chat_payload(self, messages: list[ChatMessage], options: CompletionOptions) -> dict:
        """Build the OpenAI chat request body.

        Returns:
            dict: {"model", "messages", "temperature"} plus "response_format"
                and "max_tokens" when set.
        """
        body: dict = {
            "model": options.model or self.chat_model,
            "messages": [m.model_dump() for m in messages],
            "temperature": options.temperature,
        }
        if options.response_format:
            body["response_format"] = options.response_format
        if options.max_output_tokens:
            body["max_tokens"] = options.max_output_tokens
        return body

    ##########################################
    ################# OTHER ##################
    ##########################################

    def extract_chat_response(self, response_data: dict) -> CompletionResult:
        """Extract the first choice from an OpenAI /chat/completions response.

        A missing role defaults to "assistant" and a null content (e.g. a
        refusal) to an empty string. usage is passed through untouched.

        Raises:
            UpstreamError: If the body has no choices[0].message or its
                content is neither a string nor null.
        """
        choices = response_data.get("choices") if isinstance(response_data, dict) else None
        message = choices[0].get("message") if isinstance(choices, list) and choices and isinstance(choices[0], dict) else None
        if not isinstance(message, dict):
            raise UpstreamError("Completion response does not contain a reply message.")
        content = message.get("content")
        if content is None:
            content = ""
        if not isinstance(content, str):
            raise UpstreamError(f"Completion reply content is a {type(content).__name__}, expected a string.")
        role = message.get("role") if message.get("role") in ("system", "user", "assistant") else "assistant"
        usage = response_data.get("usage")
        return CompletionResult(
            message=ChatMessage(role=role, content=content),
            usage=usage if isinstance(usage, dict) else None,
        )

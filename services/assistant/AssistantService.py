"""Assistant service: runs one action request end to end.

Validate → (Retrieve) → BuildPrompt → Complete → Log → Respond.
Retrieval only happens for "search"; the audit write is best-effort.
"""

import json

from services.assistant.PromptBuilder import build_prompt
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.clients.rag.models.ChunkPoint import SearchFilters
from shared.errors import InvalidRequestError
from shared.helper.HelperConfig import HelperConfig
from shared.models.assistant import (
    ActionRequest,
    AssistantResponse,
    AuditRecord,
    CompletionOptions,
    CompletionResult,
    ContextBlock,
)

DEFAULT_TOP_K = 5
DEFAULT_TEMPERATURE = 0.3


class AssistantService:
    """Orchestrates retrieval, prompt assembly, completion and audit logging."""

    def __init__(
        self,
        helper_config: HelperConfig,
        embed_client: EmbedClientInterface,
        llm_client: LLMClientInterface,
        rag_client: RAGClientInterface,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._embed = embed_client
        self._llm = llm_client
        self._rag = rag_client
        self._default_top_k = int(helper_config.get_number_val("ASSISTANT_DEFAULT_TOP_K", default=DEFAULT_TOP_K))
        self._default_temperature = float(helper_config.get_number_val("ASSISTANT_DEFAULT_TEMPERATURE", default=DEFAULT_TEMPERATURE))

    ##########################################
    ################ CORE ####################
    ##########################################

    async def do_action(self, request: ActionRequest, user_id: str | None = None) -> AssistantResponse:
        """Serve one assistant action.

        Args:
            request (ActionRequest): The incoming action request.
            user_id (str | None): Resolved caller identity; scopes search and is recorded in the audit log.

        Returns:
            AssistantResponse: The reply, the provider's usage block and the context used.

        Raises:
            InvalidRequestError: If the action is missing, a search has no query,
                or the extraction schema is not valid JSON or has a malformed
                required list.
            ConfigurationError: If a provider credential is missing.
            UpstreamError: If the embedding or completion call fails.
            StorageError: If the similarity search fails.
        """
        request = self._validate(request)
        action = request.action
        self.logging.info("Assistant action %r received (user=%s).", action, user_id or "anonymous")

        context: list[ContextBlock] = []
        if action == "search":
            context = await self._retrieve(request, user_id)

        plan = build_prompt(request, context)
        model = request.model or self._llm.get_chat_model()
        options = CompletionOptions(
            model=model,
            temperature=request.temperature if request.temperature is not None else self._default_temperature,
            response_format=plan.response_format,
            max_output_tokens=request.max_tokens,
        )
        completion = await self._llm.do_complete(plan.messages, options)

        await self._log_run(request, user_id, model, completion, context)

        self.logging.info(
            "Assistant action %r complete: %d context block(s), model %s.",
            action, len(context), model,
        )
        return AssistantResponse(message=completion.message, usage=completion.usage, context=context)

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _validate(self, request: ActionRequest) -> ActionRequest:
        """Check the request and return a copy with a parsed extraction schema."""
        if not request.action or not request.action.strip():
            raise InvalidRequestError("action is required")
        update: dict = {"action": request.action.strip().lower()}

        if update["action"] == "search" and not (request.query and request.query.strip()):
            raise InvalidRequestError("query is required for search")

        extraction = request.output_schema
        if extraction is not None and isinstance(extraction.json_schema, str):
            try:
                parsed = json.loads(extraction.json_schema)
            except json.JSONDecodeError as e:
                raise InvalidRequestError(f"schema is not valid JSON: {e.msg}") from e
            if not isinstance(parsed, dict):
                raise InvalidRequestError("schema must be a JSON object")
            extraction = extraction.model_copy(update={"json_schema": parsed})
            update["output_schema"] = extraction

        if extraction is not None and isinstance(extraction.json_schema, dict):
            required = extraction.json_schema.get("required")
            if required is not None and not (
                isinstance(required, list) and all(isinstance(name, str) for name in required)
            ):
                raise InvalidRequestError("schema 'required' must be a list of property names")

        return request.model_copy(update=update)

    async def _retrieve(self, request: ActionRequest, user_id: str | None) -> list[ContextBlock]:
        """Embed the query and fetch the nearest chunks as context blocks."""
        vectors = await self._embed.do_embed([request.query])
        if not vectors:
            return []
        filters = SearchFilters(
            tags=request.tags or None,
            owner_id=user_id,
            document_ids=request.document_ids or None,
        )
        hits = await self._rag.do_search(vectors[0], request.top_k or self._default_top_k, filters)
        self.logging.debug("Retrieved %d chunk(s) for query %r.", len(hits), request.query[:80])
        return [
            ContextBlock(
                document_id=hit.document_id,
                chunk_id=hit.chunk_id,
                content=hit.content,
                similarity=hit.similarity,
            )
            for hit in hits
        ]

    async def _log_run(
        self,
        request: ActionRequest,
        user_id: str | None,
        model: str,
        completion: CompletionResult,
        context: list[ContextBlock],
    ) -> None:
        """Write the audit record. Failures are logged and never reach the caller."""
        usage = completion.usage or {}
        tokens = usage.get("total_tokens")
        record = AuditRecord(
            action=request.action,
            user_id=user_id,
            function_id=request.function_id,
            project_id=request.project_id,
            request_payload=request.model_dump(mode="json", by_alias=True, exclude_none=True),
            response_payload={
                "message": completion.message.model_dump(),
                "context_used": [
                    {"document_id": block.document_id, "similarity": block.similarity}
                    for block in context
                ],
            },
            model=model,
            tokens_used=tokens if isinstance(tokens, int) else None,
        )
        try:
            await self._rag.do_insert_audit_record(record)
        except Exception as exc:
            self.logging.warning("Audit log write failed for action %r: %s", request.action, exc)

"""Pydantic models for assistant actions.

Hierarchy:
  ChatMessage       : one role-tagged turn, the unit of every prompt.
  ExtractionSchema  : caller-supplied JSON schema for the "extract" action.
  ActionRequest     : incoming request, tagged by its action name.
  ContextBlock      : a retrieved chunk injected into a "search" prompt.
  CompletionOptions : per-call directives for the completion client.
  CompletionResult  : the single reply returned by the completion client.
  AssistantResponse : payload returned to the caller.
  AuditRecord       : one append-only entry per served request.

Request models accept both snake_case names and the camelCase aliases used
by the browser client (topK, documentIds, projectId, ...).
"""

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ChatRole = Literal["system", "user", "assistant"]


class ChatMessage(BaseModel):
    role: ChatRole
    content: str


class ExtractionSchema(BaseModel):
    """Output schema for structured extraction.

    json_schema may arrive as a JSON string from form-based callers; the
    assistant service parses it before the prompt is built.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str | None = None
    json_schema: dict[str, Any] | str | None = Field(default=None, alias="schema")
    strict: bool | None = None


class ActionRequest(BaseModel):
    """Tagged request over the assistant actions.

    The action stays a plain string so that unknown actions reach the prompt
    builder's fallback instead of failing validation.
    """

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    action: str | None = None
    messages: list[ChatMessage] | None = None
    prompt: str | None = None
    query: str | None = None
    variables: dict[str, str] | None = None
    output_schema: ExtractionSchema | None = Field(default=None, alias="schema")
    top_k: int | None = Field(default=None, ge=1, le=100)
    tags: list[str] | None = None
    document_ids: list[str] | None = None
    model: str | None = None
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=None, ge=1)
    project_id: str | None = None
    function_id: str | None = None


class ContextBlock(BaseModel):
    document_id: str
    chunk_id: str | None = None
    content: str
    similarity: float = Field(ge=0.0, le=1.0)


class CompletionOptions(BaseModel):
    """
    Attributes:
        model (str | None): Model override; the client's configured chat model when None.
        temperature (float): Sampling temperature.
        response_format (dict | None): None for free text, {"type": "json_object"}, or a json_schema directive.
        max_output_tokens (int | None): Optional cap, sent as max_tokens.
    """

    model: str | None = None
    temperature: float = 0.3
    response_format: dict[str, Any] | None = None
    max_output_tokens: int | None = None


class CompletionResult(BaseModel):
    message: ChatMessage
    usage: dict[str, Any] | None = None


class AssistantResponse(BaseModel):
    message: ChatMessage
    usage: dict[str, Any] | None = None
    context: list[ContextBlock] = []


class AuditRecord(BaseModel):
    """Audit entry for one served request.

    response_payload holds the reply and, for search, the document ids and
    similarities of the context used; never the chunk text.
    """

    action: str
    user_id: str | None = None
    function_id: str | None = None
    project_id: str | None = None
    request_payload: dict[str, Any]
    response_payload: dict[str, Any]
    model: str
    tokens_used: int | None = None
    created_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

"""Prompt builder: turns an action request into the message list sent to the LLM.

Dispatch is a plain mapping from action name to builder function. Every
builder is pure; nothing here talks to the network or mutates its input.
"""

import copy
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from shared.models.assistant import ActionRequest, ChatMessage, ContextBlock

DEFAULT_SCHEMA_NAME = "extraction"

DEFAULT_EXTRACTION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "summary": {"type": "string"},
        "key_facts": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["summary"],
}

JSON_OBJECT_FORMAT: dict[str, Any] = {"type": "json_object"}

CHAT_SYSTEM_PROMPT = "You are a concise, helpful assistant."
GENERATE_SYSTEM_PROMPT = "You create on-brand, concise content. Keep answers actionable and avoid fluff."
CODE_SYSTEM_PROMPT = (
    "You generate working code snippets and short explanations. "
    "Prefer modern, idiomatic patterns and safe defaults."
)
EXTRACT_SYSTEM_PROMPT = "Extract structured data. Return only valid JSON that matches the provided schema."
SEARCH_SYSTEM_PROMPT = (
    "You answer questions using only the provided context. "
    "If context is missing, say you don't have enough information."
)

NO_CONTEXT_TEXT = "No context found."
CONTEXT_SEPARATOR = "\n\n---\n\n"


@dataclass
class PromptPlan:
    """Messages plus the response-format directive for one completion call."""

    messages: list[ChatMessage]
    response_format: dict[str, Any] | None = None


##########################################
################ HELPERS #################
##########################################

def render_variables(variables: dict[str, str] | None) -> str:
    """Render variables as "key: value" lines in insertion order."""
    if not variables:
        return ""
    return "\n".join(f"{key}: {value}" for key, value in variables.items())


def render_context(blocks: list[ContextBlock]) -> str:
    """Render retrieved chunks as labelled blocks, or the no-context marker."""
    if not blocks:
        return NO_CONTEXT_TEXT
    return CONTEXT_SEPARATOR.join(
        f"Document: {block.document_id}\nRelevance: {block.similarity * 100:.1f}%\n{block.content}"
        for block in blocks
    )


def normalize_schema(schema: dict[str, Any] | None) -> dict[str, Any]:
    """Return a strict-mode copy of a JSON schema.

    Adds additionalProperties: false when absent and appends every declared
    property that is missing from required. A required value that is not a
    list is discarded and rebuilt from the properties. The input is never
    mutated.

    Args:
        schema (dict[str, Any] | None): Caller schema; the default extraction schema when None.

    Returns:
        dict[str, Any]: A new, normalized schema.
    """
    normalized = copy.deepcopy(schema if schema is not None else DEFAULT_EXTRACTION_SCHEMA)
    if "additionalProperties" not in normalized:
        normalized["additionalProperties"] = False

    properties = normalized.get("properties")
    if isinstance(properties, dict):
        declared = normalized.get("required")
        required = list(declared) if isinstance(declared, list) else []
        for name in properties:
            if name not in required:
                required.append(name)
        normalized["required"] = required
    return normalized


def _with_details(text: str, variables: dict[str, str] | None) -> str:
    details = render_variables(variables)
    if not details:
        return text
    return f"{text}\nDetails:\n{details}"


##########################################
############### BUILDERS #################
##########################################

def _build_chat(request: ActionRequest, context: list[ContextBlock]) -> PromptPlan:
    if request.messages:
        return PromptPlan(messages=list(request.messages))
    return PromptPlan(messages=[
        ChatMessage(role="system", content=CHAT_SYSTEM_PROMPT),
        ChatMessage(role="user", content=request.prompt or "Answer the user."),
    ])


def _build_generate(request: ActionRequest, context: list[ContextBlock]) -> PromptPlan:
    user = _with_details(f"Create content for: {request.prompt or 'my product'}", request.variables)
    return PromptPlan(messages=[
        ChatMessage(role="system", content=GENERATE_SYSTEM_PROMPT),
        ChatMessage(role="user", content=user),
    ])


def _build_code(request: ActionRequest, context: list[ContextBlock]) -> PromptPlan:
    user = _with_details(f"Write code for: {request.prompt or 'the described task'}", request.variables)
    user += "\nRespond with JSON containing 'explanation' and 'code'."
    return PromptPlan(
        messages=[
            ChatMessage(role="system", content=CODE_SYSTEM_PROMPT),
            ChatMessage(role="user", content=user),
        ],
        response_format=dict(JSON_OBJECT_FORMAT),
    )


def _build_extract(request: ActionRequest, context: list[ContextBlock]) -> PromptPlan:
    extraction = request.output_schema
    raw_schema = extraction.json_schema if extraction is not None else None
    # string schemas are parsed by the service before we get here
    schema = normalize_schema(raw_schema if isinstance(raw_schema, dict) else None)
    name = (extraction.name if extraction is not None and extraction.name else DEFAULT_SCHEMA_NAME)
    strict = extraction.strict if extraction is not None and extraction.strict is not None else True

    user = request.prompt or "Extract the required fields."
    payload = render_variables(request.variables)
    if payload:
        user = f"{user}\nPayload:\n{payload}"

    return PromptPlan(
        messages=[
            ChatMessage(role="system", content=EXTRACT_SYSTEM_PROMPT),
            ChatMessage(role="user", content=user),
        ],
        response_format={
            "type": "json_schema",
            "json_schema": {"name": name, "schema": schema, "strict": strict},
        },
    )


def _build_search(request: ActionRequest, context: list[ContextBlock]) -> PromptPlan:
    user = (
        f"Question: {request.query or ''}\n\n"
        f"Context:\n{render_context(context)}\n\n"
        "Respond with JSON containing 'answer' and 'sources' (chunk IDs used)."
    )
    return PromptPlan(
        messages=[
            ChatMessage(role="system", content=SEARCH_SYSTEM_PROMPT),
            ChatMessage(role="user", content=user),
        ],
        response_format=dict(JSON_OBJECT_FORMAT),
    )


def _build_fallback(request: ActionRequest, context: list[ContextBlock]) -> PromptPlan:
    return PromptPlan(messages=[ChatMessage(role="user", content=request.prompt or "Respond to the user.")])


PROMPT_BUILDERS: dict[str, Callable[[ActionRequest, list[ContextBlock]], PromptPlan]] = {
    "chat": _build_chat,
    "generate": _build_generate,
    "code": _build_code,
    "extract": _build_extract,
    "search": _build_search,
}


def build_prompt(request: ActionRequest, context: list[ContextBlock] | None = None) -> PromptPlan:
    """Build the messages and response format for an action.

    Unknown actions get a single user turn with the raw prompt.

    Args:
        request (ActionRequest): The validated action request.
        context (list[ContextBlock] | None): Retrieved chunks (search only).

    Returns:
        PromptPlan: The message list and the response-format directive.
    """
    builder = PROMPT_BUILDERS.get((request.action or "").lower(), _build_fallback)
    return builder(request, list(context or []))

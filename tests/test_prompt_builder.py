"""
Tests for services/assistant/PromptBuilder.py
Action-specific message assembly and schema normalization.
"""

import copy

import pytest

from services.assistant.PromptBuilder import (
    DEFAULT_EXTRACTION_SCHEMA,
    build_prompt,
    normalize_schema,
    render_context,
)
from shared.models.assistant import ActionRequest, ChatMessage, ContextBlock, ExtractionSchema


def _user_turn(plan) -> str:
    return [m for m in plan.messages if m.role == "user"][-1].content


class TestChat:
    def test_prompt_only(self):
        """A bare prompt yields exactly a system turn and the prompt as user turn."""
        plan = build_prompt(ActionRequest(action="chat", prompt="Hi"))

        assert plan.messages == [
            ChatMessage(role="system", content="You are a concise, helpful assistant."),
            ChatMessage(role="user", content="Hi"),
        ]
        assert plan.response_format is None

    def test_conversation_is_used_verbatim(self):
        conversation = [
            ChatMessage(role="user", content="Hello"),
            ChatMessage(role="assistant", content="Hi there"),
            ChatMessage(role="user", content="Tell me more"),
        ]
        plan = build_prompt(ActionRequest(action="chat", messages=conversation, prompt="ignored"))
        assert plan.messages == conversation

    def test_default_prompt(self):
        assert _user_turn(build_prompt(ActionRequest(action="chat"))) == "Answer the user."


class TestGenerateAndCode:
    def test_generate_with_details(self):
        plan = build_prompt(ActionRequest(action="generate", prompt="a launch tweet", variables={"tone": "playful", "product": "Orbit"}))

        assert plan.messages[0].role == "system"
        assert _user_turn(plan) == "Create content for: a launch tweet\nDetails:\ntone: playful\nproduct: Orbit"
        assert plan.response_format is None

    def test_generate_without_details(self):
        assert _user_turn(build_prompt(ActionRequest(action="generate", prompt="x"))) == "Create content for: x"

    def test_code_requests_json(self):
        """Code action asks for a JSON object and carries the variables."""
        plan = build_prompt(ActionRequest(action="code", prompt="validate email", variables={"language": "Go"}))

        assert plan.response_format == {"type": "json_object"}
        user = _user_turn(plan)
        assert "validate email" in user
        assert "language: Go" in user
        assert user.endswith("Respond with JSON containing 'explanation' and 'code'.")


class TestExtract:
    def test_default_schema(self):
        plan = build_prompt(ActionRequest(action="extract", prompt="Pull the facts", variables={"text": "Q3 revenue grew"}))

        fmt = plan.response_format
        assert fmt["type"] == "json_schema"
        assert fmt["json_schema"]["name"] == "extraction"
        assert fmt["json_schema"]["strict"] is True
        schema = fmt["json_schema"]["schema"]
        assert schema["additionalProperties"] is False
        assert schema["required"] == ["summary", "key_facts"]
        assert _user_turn(plan) == "Pull the facts\nPayload:\ntext: Q3 revenue grew"

    def test_caller_schema_name_and_strict(self):
        caller_schema = {"type": "object", "properties": {"total": {"type": "number"}}}
        request = ActionRequest(action="extract", schema=ExtractionSchema(name="invoice", schema=caller_schema, strict=False))

        fmt = build_prompt(request).response_format["json_schema"]
        assert fmt["name"] == "invoice"
        assert fmt["strict"] is False
        assert fmt["schema"]["required"] == ["total"]
        assert "required" not in caller_schema
        assert "additionalProperties" not in caller_schema

    def test_default_prompt(self):
        assert _user_turn(build_prompt(ActionRequest(action="extract"))) == "Extract the required fields."


class TestSearch:
    def test_no_context(self):
        plan = build_prompt(ActionRequest(action="search", query="What is the refund policy?"), [])

        assert plan.response_format == {"type": "json_object"}
        user = _user_turn(plan)
        assert user.startswith("Question: What is the refund policy?\n\nContext:\nNo context found.")
        assert "'answer' and 'sources'" in user

    def test_context_blocks(self):
        blocks = [
            ContextBlock(document_id="doc-1", chunk_id="c1", content="Refunds within 30 days.", similarity=0.912),
            ContextBlock(document_id="doc-2", chunk_id="c2", content="Store credit otherwise.", similarity=0.5),
        ]
        user = _user_turn(build_prompt(ActionRequest(action="search", query="refunds?"), blocks))

        assert (
            "Document: doc-1\nRelevance: 91.2%\nRefunds within 30 days."
            "\n\n---\n\n"
            "Document: doc-2\nRelevance: 50.0%\nStore credit otherwise."
        ) in user

    def test_render_context_empty(self):
        assert render_context([]) == "No context found."


class TestFallback:
    def test_unknown_action(self):
        plan = build_prompt(ActionRequest(action="summarize", prompt="Shorten this"))
        assert plan.messages == [ChatMessage(role="user", content="Shorten this")]
        assert plan.response_format is None

    def test_unknown_action_default_prompt(self):
        plan = build_prompt(ActionRequest(action="other"))
        assert plan.messages == [ChatMessage(role="user", content="Respond to the user.")]


class TestNormalizeSchema:
    """normalize_schema() is a pure transform."""

    def test_adds_strict_fields(self):
        schema = {"type": "object", "properties": {"a": {"type": "string"}, "b": {"type": "string"}}, "required": ["b"]}
        original = copy.deepcopy(schema)

        normalized = normalize_schema(schema)

        assert normalized["additionalProperties"] is False
        assert normalized["required"] == ["b", "a"]
        assert schema == original

    def test_keeps_explicit_additional_properties(self):
        normalized = normalize_schema({"type": "object", "properties": {}, "additionalProperties": True})
        assert normalized["additionalProperties"] is True

    def test_default_is_not_shared(self):
        normalize_schema(None)["properties"]["extra"] = {}
        assert "extra" not in DEFAULT_EXTRACTION_SCHEMA["properties"]
        assert "additionalProperties" not in DEFAULT_EXTRACTION_SCHEMA

    def test_string_required_is_rebuilt(self):
        normalized = normalize_schema({"type": "object", "properties": {"summary": {"type": "string"}}, "required": "summary"})
        assert normalized["required"] == ["summary"]

    def test_is_idempotent(self):
        once = normalize_schema(None)
        assert normalize_schema(once) == once

    @pytest.mark.parametrize("schema", [{"type": "string"}, {"type": "array", "items": {"type": "number"}}])
    def test_schema_without_properties(self, schema):
        normalized = normalize_schema(schema)
        assert "required" not in normalized
        assert normalized["additionalProperties"] is False

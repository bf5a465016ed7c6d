"""
Tests for shared/errors.py and shared/logging/logging_setup.py
Status mapping and credential redaction.
"""

import logging

import pytest

from shared.errors import (
    AssistantError,
    ChunkReplacementError,
    ConfigurationError,
    InvalidParametersError,
    InvalidRequestError,
    InvariantViolationError,
    StorageError,
    UpstreamError,
    redact_secrets,
)
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import ColorLogger, SecretRedactionFilter


class TestStatusCodes:
    @pytest.mark.parametrize("error_class,status", [
        (InvalidRequestError, 400),
        (InvalidParametersError, 400),
        (UpstreamError, 400),
        (ConfigurationError, 500),
        (StorageError, 500),
        (ChunkReplacementError, 500),
        (InvariantViolationError, 500),
    ])
    def test_status(self, error_class, status):
        error = error_class("boom")
        assert isinstance(error, AssistantError)
        assert error.status_code == status

    def test_chunk_replacement_is_storage_error(self):
        assert issubclass(ChunkReplacementError, StorageError)
        assert ChunkReplacementError("x").chunks_deleted is True


class TestRedaction:
    def test_bearer_token(self):
        assert redact_secrets("Authorization: Bearer abc.def-123") == "Authorization: Bearer ***"

    def test_provider_key(self):
        assert redact_secrets("Incorrect API key provided: sk-proj-AbC123xyz.") == "Incorrect API key provided: sk-***."

    def test_api_key_assignment(self):
        assert redact_secrets("connect with api_key=hunter2 now") == "connect with api_key=*** now"

    def test_plain_text_untouched(self):
        assert redact_secrets("Rate limit reached for gpt-4o-mini") == "Rate limit reached for gpt-4o-mini"

    def test_error_message_is_redacted(self):
        assert "sk-live123456789" not in UpstreamError("bad key sk-live123456789").message


class TestLogging:
    def test_filter_redacts_record(self):
        record = logging.LogRecord("test", logging.ERROR, __file__, 1, "calling with %s", ("Bearer secret-token",), None)
        assert SecretRedactionFilter().filter(record) is True
        assert record.getMessage() == "calling with Bearer ***"

    def test_color_logger_accepts_color(self, caplog):
        logger = ColorLogger(logging.getLogger("test.color"))
        with caplog.at_level(logging.INFO, logger="test.color"):
            logger.info("ready", color="green")
        assert caplog.records[-1].color == "green"


class TestHelperConfig:
    @pytest.fixture
    def config(self):
        return HelperConfig(logger=ColorLogger(logging.getLogger("test")))

    def test_blank_counts_as_unset(self, config, monkeypatch):
        monkeypatch.setenv("INGEST_CHUNK_SIZE", "   ")
        assert config.get_number_val("INGEST_CHUNK_SIZE", default=700) == 700

    def test_missing_without_default(self, config):
        with pytest.raises(ValueError):
            config.get_string_val("APP_API_KEY")

    def test_first_string_val(self, config, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "shared")
        assert config.get_first_string_val(["EMBED_OPENAI_API_KEY", "OPENAI_API_KEY"]) == "shared"

    def test_invalid_number(self, config, monkeypatch):
        monkeypatch.setenv("EMBED_VECTOR_SIZE", "wide")
        with pytest.raises(ValueError):
            config.get_number_val("EMBED_VECTOR_SIZE", default=1536)

    def test_list_and_bool(self, config, monkeypatch):
        monkeypatch.setenv("ASSISTANT_TAGS", "[a, b]")
        monkeypatch.setenv("ASSISTANT_FLAG", "yes")
        assert config.get_list_val("ASSISTANT_TAGS") == ["a", "b"]
        assert config.get_bool_val("ASSISTANT_FLAG") is True

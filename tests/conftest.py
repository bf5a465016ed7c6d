"""
Pytest configuration for the AI Assistant Bridge test suite.

Configures:
- pytest-asyncio (auto mode, see pyproject.toml) for async test support
- a clean environment (no provider keys leak in from the host)
- helpers to boot HTTP clients against an httpx.MockTransport
"""
import json
import logging
import os

# keep test runs from writing logs/app.log; must be set before server modules import
os.environ.setdefault("LOG_TO_FILE", "false")

import httpx
import pytest

from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import ColorLogger


_ENV_PREFIXES = ("EMBED_", "LLM_", "RAG_", "OPENAI_", "INGEST_", "ASSISTANT_")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove every setting the bridge reads so each test starts from defaults."""
    for key in list(os.environ):
        if key.startswith(_ENV_PREFIXES) or key == "APP_API_KEY":
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def helper_config():
    return HelperConfig(logger=ColorLogger(logging.getLogger("test")))


class RecordingTransport:
    """Collects every request and answers it with a user-supplied handler."""

    def __init__(self, handler):
        self.handler = handler
        self.requests: list[httpx.Request] = []
        self.transport = httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    def json_bodies(self) -> list:
        return [json.loads(r.content) if r.content else None for r in self.requests]


@pytest.fixture
async def boot_with():
    """Boot a client against a handler; clients are closed after the test."""
    booted = []

    async def _boot(client, handler) -> RecordingTransport:
        recorder = RecordingTransport(handler)
        await client.boot(transport=recorder.transport)
        booted.append(client)
        return recorder

    yield _boot

    for client in booted:
        await client.close()

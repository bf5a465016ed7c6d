"""
Tests for services/ingest/ingest_runner.py
Command-line ingestion.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from services.ingest import ingest_runner
from shared.errors import UpstreamError
from shared.models.document import IngestResponse


@pytest.fixture
def clients():
    embed_client = MagicMock()
    embed_client.boot = AsyncMock()
    embed_client.close = AsyncMock()
    embed_client.get_vector_size.return_value = (1536, "Cosine")
    rag_client = MagicMock()
    rag_client.boot = AsyncMock()
    rag_client.close = AsyncMock()
    rag_client.do_ensure_collections = AsyncMock()

    with patch.object(ingest_runner, "EmbedClientManager") as embed_manager, \
            patch.object(ingest_runner, "RAGClientManager") as rag_manager:
        embed_manager.return_value.get_client.return_value = embed_client
        rag_manager.return_value.get_client.return_value = rag_client
        yield embed_client, rag_client


class TestParser:
    def test_repeated_tags(self):
        args = ingest_runner.build_parser().parse_args(["doc.txt", "--title", "T", "--owner", "u", "--tag", "a", "--tag", "b"])
        assert args.tags == ["a", "b"]
        assert args.document_id is None


class TestMain:
    @pytest.mark.asyncio
    async def test_ingests_file(self, tmp_path, clients):
        path = tmp_path / "handbook.txt"
        path.write_text("one two three", encoding="utf-8")
        embed_client, rag_client = clients

        with patch.object(ingest_runner, "IngestService") as service_class:
            service_class.return_value.do_ingest = AsyncMock(return_value=IngestResponse(
                document_id="doc-1", chunks=1, embedding_model="text-embedding-3-small",
            ))
            code = await ingest_runner.main([str(path), "--title", "Handbook", "--owner", "user-1", "--tag", "hr"])

        assert code == 0
        rag_client.do_ensure_collections.assert_awaited_once_with(1536, "Cosine")
        request = service_class.return_value.do_ingest.call_args.args[0]
        assert request.content == "one two three"
        assert request.tags == ["hr"]
        assert service_class.return_value.do_ingest.call_args.kwargs["owner_id"] == "user-1"
        embed_client.close.assert_awaited_once()
        rag_client.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failure_exit_code(self, tmp_path, clients):
        path = tmp_path / "doc.txt"
        path.write_text("text", encoding="utf-8")
        embed_client, rag_client = clients

        with patch.object(ingest_runner, "IngestService") as service_class:
            service_class.return_value.do_ingest = AsyncMock(side_effect=UpstreamError("Rate limit reached"))
            code = await ingest_runner.main([str(path), "--title", "T", "--owner", "u"])

        assert code == 1
        rag_client.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path, clients):
        code = await ingest_runner.main([str(tmp_path / "absent.txt"), "--title", "T", "--owner", "u"])
        assert code == 1

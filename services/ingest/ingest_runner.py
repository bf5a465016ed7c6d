"""Ingest runner entry point.

Ingests a plain-text file through the same pipeline as POST /ingest.

Usage:
    python -m services.ingest.ingest_runner --title "Handbook" --owner user-1 handbook.txt
"""

import argparse
import asyncio
from pathlib import Path

from services.ingest.IngestService import IngestService
from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.rag.RAGClientManager import RAGClientManager
from shared.errors import AssistantError
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging
from shared.models.document import IngestRequest


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Ingest a text file into the document store.")
    parser.add_argument("file", type=Path, help="Path to a UTF-8 text file")
    parser.add_argument("--title", required=True, help="Document title")
    parser.add_argument("--owner", required=True, help="Owner (user id) of the document")
    parser.add_argument("--tag", action="append", default=[], dest="tags", help="Tag; may be repeated")
    parser.add_argument("--document-id", default=None, help="Re-ingest into an existing document id")
    parser.add_argument("--project-id", default=None)
    parser.add_argument("--source-url", default=None)
    parser.add_argument("--description", default=None)
    return parser


async def main(argv: list[str] | None = None) -> int:
    """Run one ingestion and return the process exit code."""
    args = build_parser().parse_args(argv)
    logger = setup_logging()
    config = HelperConfig(logger=logger)

    try:
        content = args.file.read_text(encoding="utf-8")
    except OSError as e:
        logger.error(f"Cannot read {args.file}: {e}")
        return 1

    embed_client = EmbedClientManager(helper_config=config).get_client()
    rag_client = RAGClientManager(helper_config=config).get_client()

    try:
        await embed_client.boot()
        await rag_client.boot()

        # create all store collections, if not already existing
        vector_size, distance = embed_client.get_vector_size()
        await rag_client.do_ensure_collections(vector_size, distance)

        ingest_service = IngestService(
            helper_config=config,
            embed_client=embed_client,
            rag_client=rag_client,
        )
        request = IngestRequest(
            title=args.title,
            content=content,
            description=args.description,
            tags=args.tags,
            project_id=args.project_id,
            source_url=args.source_url,
            document_id=args.document_id,
        )
        result = await ingest_service.do_ingest(request, owner_id=args.owner)
        logger.info(
            f"Ingested {args.file} as document {result.document_id}: {result.chunks} chunks ({result.embedding_model}).",
            color="green",
        )
        return 0
    except AssistantError as e:
        logger.error(f"Ingestion failed: {e.message}")
        return 1
    finally:
        await embed_client.close()
        await rag_client.close()


def cli() -> None:
    raise SystemExit(asyncio.run(main()))


if __name__ == "__main__":
    cli()

"""FastAPI application entry point for the AI Assistant Bridge API."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import os
from server.api.errors import register_exception_handlers
from server.api.routers.AssistantRouter import assistant_router
from server.api.routers.IngestRouter import ingest_router
from services.assistant.AssistantService import AssistantService
from services.ingest.IngestService import IngestService
from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.llm.LLMClientManager import LLMClientManager
from shared.clients.rag.RAGClientManager import RAGClientManager
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging

logging = setup_logging()
app_version = os.getenv("APP_VERSION", "unknown")

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application startup and shutdown."""
    app.state.logging = setup_logging()
    app.state.config = HelperConfig(logger=app.state.logging)

    # Initialise clients
    embed_client = EmbedClientManager(helper_config=app.state.config).get_client()
    llm_client = LLMClientManager(helper_config=app.state.config).get_client()
    rag_client = RAGClientManager(helper_config=app.state.config).get_client()
    await embed_client.boot()
    await llm_client.boot()
    await rag_client.boot()

    try:
        # Ensure store collections exist
        vector_size, distance = embed_client.get_vector_size()
        await rag_client.do_ensure_collections(vector_size, distance)

        # Wire up services
        app.state.ingest_service = IngestService(
            helper_config=app.state.config,
            embed_client=embed_client,
            rag_client=rag_client,
        )
        app.state.assistant_service = AssistantService(
            helper_config=app.state.config,
            embed_client=embed_client,
            llm_client=llm_client,
            rag_client=rag_client,
        )

        app.state.logging.info("AI Assistant Bridge API ready.", color="green")
        yield
    finally:
        # Shutdown
        await embed_client.close()
        await llm_client.close()
        await rag_client.close()
        app.state.logging.info("AI Assistant Bridge API shut down.")


app = FastAPI(
    title="AI Assistant Bridge",
    description="Chat, content generation, structured extraction and retrieval-augmented search over your own documents.",
    version=app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)
app.include_router(assistant_router)
app.include_router(ingest_router)


@app.get("/health", tags=["Health"])
async def health() -> dict:
    """Liveness probe; needs no API key."""
    return {"status": "ok", "version": app_version}


# Server Start
if __name__ == "__main__":
    # start server
    import uvicorn
    logging.info(f"Starting AI Assistant Bridge API Server v{app_version} from root dir: {os.getenv('ROOT_DIR', os.getcwd())} on port 8000...")
    uvicorn.run(app, host="0.0.0.0", port=8000)

"""Ingest router: stores a document and (re)builds its chunks."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from shared.dependencies.auth import require_user, verify_api_key
from shared.models.document import IngestRequest

ingest_router = APIRouter()


@ingest_router.post(
    "/ingest",
    dependencies=[Depends(verify_api_key)],
    tags=["Ingest"],
)
async def handle_ingest(
    request: Request,
    body: IngestRequest,
    user_id: str = Depends(require_user),
) -> JSONResponse:
    """Ingest a document for the calling user.

    Returns:
        JSONResponse: {documentId, chunks, embeddingModel}.
    """
    request.app.state.logging.info("Ingest request received: title=%r owner=%s", body.title[:80], user_id)
    result = await request.app.state.ingest_service.do_ingest(body, owner_id=user_id)
    return JSONResponse(content=result.model_dump(by_alias=True))

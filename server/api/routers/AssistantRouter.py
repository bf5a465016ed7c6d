"""Assistant router: chat, generate, code, extract and search actions."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from shared.dependencies.auth import get_optional_user, verify_api_key
from shared.models.assistant import ActionRequest

assistant_router = APIRouter()


@assistant_router.post(
    "/assistant",
    dependencies=[Depends(verify_api_key)],
    tags=["Assistant"],
)
async def handle_assistant(
    request: Request,
    body: ActionRequest,
    user_id: str | None = Depends(get_optional_user),
) -> JSONResponse:
    """Run one assistant action.

    The optional X-User-Id header identifies the caller; for search it
    restricts retrieval to the caller's own documents.

    Args:
        request (Request): The incoming FastAPI request (carries app state).
        body (ActionRequest): The parsed action request.
        user_id (str | None): The caller identity, if any.

    Returns:
        JSONResponse: {message, usage, context}.
    """
    request.app.state.logging.info("Assistant request received: action=%r", body.action)
    result = await request.app.state.assistant_service.do_action(body, user_id=user_id)
    return JSONResponse(content=result.model_dump(mode="json"))

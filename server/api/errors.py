"""Maps errors onto the JSON error envelope {"error": message}."""

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from shared.errors import AssistantError, redact_secrets


async def handle_assistant_error(request: Request, exc: AssistantError) -> JSONResponse:
    body: dict = {"error": exc.message}
    if getattr(exc, "chunks_deleted", False):
        body["chunksDeleted"] = True
    request.app.state.logging.error("%s (%d): %s", type(exc).__name__, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=body)


async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    # first problem only, e.g. "body.topK: Input should be less than or equal to 100"
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        message = f"{location}: {first.get('msg', 'invalid value')}" if location else first.get("msg", "invalid value")
    else:
        message = "Invalid request body"
    return JSONResponse(status_code=400, content={"error": redact_secrets(message)})


def register_exception_handlers(app: FastAPI) -> None:
    """Install the error envelope handlers on the app."""
    app.add_exception_handler(AssistantError, handle_assistant_error)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)

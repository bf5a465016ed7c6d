"""FastAPI authentication dependencies."""

from fastapi import HTTPException, Request

from shared.errors import ConfigurationError


async def verify_api_key(request: Request) -> None:
    """Verify the API key provided in the request header.

    Args:
        request (Request): The incoming FastAPI request.

    Raises:
        ConfigurationError: If APP_API_KEY is not configured (500).
        HTTPException: If the API key is missing or invalid (401).
    """
    config = request.app.state.config
    try:
        expected_key = config.get_string_val("APP_API_KEY")
    except ValueError as e:
        raise ConfigurationError(str(e)) from e
    provided_key = request.headers.get("X-API-Key")
    if not provided_key or provided_key != expected_key:
        raise HTTPException(status_code=401, detail="Invalid or missing API key.")


async def get_optional_user(request: Request) -> str | None:
    """Return the caller identity from the X-User-Id header, if any."""
    user_id = (request.headers.get("X-User-Id") or "").strip()
    return user_id or None


async def require_user(request: Request) -> str:
    """Return the caller identity, rejecting anonymous requests.

    Raises:
        HTTPException: If no X-User-Id header is present (401).
    """
    user_id = await get_optional_user(request)
    if user_id is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user_id

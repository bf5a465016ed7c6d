"""Error taxonomy shared by clients, services and the API layer.

Every error carries the HTTP status the API surfaces it with. Messages are
passed through redact_secrets() so upstream error texts never echo a
credential back to the caller or into the logs.
"""

import re

_SECRET_PATTERNS = [
    re.compile(r"(Bearer\s+)[A-Za-z0-9._\-]+", re.IGNORECASE),
    re.compile(r"\bsk-[A-Za-z0-9_\-*]{6,}"),
    re.compile(r"((?:api[-_]?key|apikey)[\"']?\s*[:=]\s*[\"']?)[^\s\"',}]+", re.IGNORECASE),
]


def redact_secrets(text: str) -> str:
    """Mask bearer tokens, provider keys and api-key assignments in a text.

    Args:
        text (str): Any message that may contain a credential.

    Returns:
        str: The text with every credential replaced by "***".
    """
    if not text:
        return text
    redacted = _SECRET_PATTERNS[0].sub(r"\1***", text)
    redacted = _SECRET_PATTERNS[1].sub("sk-***", redacted)
    return _SECRET_PATTERNS[2].sub(r"\1***", redacted)


class AssistantError(Exception):
    """Base class of all caller-visible errors."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        self.message = redact_secrets(message)
        super().__init__(self.message)


class InvalidRequestError(AssistantError):
    """Caller input failed validation. Never retried."""

    status_code = 400


class InvalidParametersError(InvalidRequestError):
    """Numeric parameters that cannot produce a valid result (e.g. chunk overlap >= size)."""


class ConfigurationError(AssistantError):
    """A required setting or credential is missing. Operator-actionable."""

    status_code = 500


class UpstreamError(AssistantError):
    """The embedding or completion provider call failed.

    The provider's message is preserved. Treated as non-retryable; retry is a
    caller decision.
    """

    status_code = 400


class StorageError(AssistantError):
    """Persisting or querying documents and chunks failed."""

    status_code = 500


class ChunkReplacementError(StorageError):
    """The old chunk set was deleted but the new one could not be inserted.

    The document stays retrievable-but-empty until ingestion is repeated with
    the same document id.
    """

    chunks_deleted = True


class InvariantViolationError(AssistantError):
    """An upstream contract was breached (e.g. embedding count != chunk count)."""

    status_code = 500

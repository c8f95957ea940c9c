"""
Provider Error Classification

Maps raw SDK/HTTP failures onto the small taxonomy the reply retry policy
understands.
"""
from enum import Enum
from typing import Any, Optional


class GenerationFailureKind(str, Enum):
    """Classified reason a generation attempt failed"""
    RATE_LIMITED = "rate_limited"            # TooManyRequests / quota exhausted
    TRANSIENT_SERVER = "transient_server"    # ServerUnavailable / ServiceOverloaded
    EMPTY_RESPONSE = "empty_response"        # Backend returned no text
    OTHER = "other"

    @property
    def retryable(self) -> bool:
        return self in (GenerationFailureKind.RATE_LIMITED, GenerationFailureKind.TRANSIENT_SERVER)


class GenerationError(Exception):
    """Terminal failure of one reply generation call."""

    def __init__(
        self,
        kind: GenerationFailureKind,
        message: str,
        *,
        attempts: int = 1,
        status: Optional[int] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.attempts = attempts
        self.status = status


_STATUS_KINDS = {
    429: GenerationFailureKind.RATE_LIMITED,
    500: GenerationFailureKind.TRANSIENT_SERVER,
    503: GenerationFailureKind.TRANSIENT_SERVER,
}

_RESOURCE_EXHAUSTED_MARKER = "RESOURCE_EXHAUSTED"

# Attributes SDK exceptions use to carry the HTTP/gRPC status.
_STATUS_ATTRS = ("status_code", "status", "code", "http_status")


def _coerce_status(raw: Any) -> Optional[int]:
    if raw is None or isinstance(raw, bool):
        return None
    if callable(raw):
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


def extract_status(error: BaseException) -> Optional[int]:
    """Best-effort HTTP status of an SDK exception."""
    for attr in _STATUS_ATTRS:
        status = _coerce_status(getattr(error, attr, None))
        if status is not None:
            return status
    response = getattr(error, "response", None)
    if response is not None:
        return _coerce_status(getattr(response, "status_code", None))
    return None


def _classify_single(error: BaseException) -> Optional[GenerationFailureKind]:
    if isinstance(error, GenerationError):
        return error.kind

    status = extract_status(error)
    if status in _STATUS_KINDS:
        return _STATUS_KINDS[status]

    for attr in ("status", "code"):
        raw = getattr(error, attr, None)
        if isinstance(raw, str) and _RESOURCE_EXHAUSTED_MARKER in raw.upper():
            return GenerationFailureKind.RATE_LIMITED
    if _RESOURCE_EXHAUSTED_MARKER in str(error).upper():
        return GenerationFailureKind.RATE_LIMITED
    return None


def classify_generation_error(error: BaseException, *, max_depth: int = 4) -> GenerationFailureKind:
    """Classify a generation failure, following wrapped causes.

    LangChain integrations often re-raise SDK errors, so the explicit
    ``__cause__``/``__context__`` chain is inspected too.
    """
    current: Optional[BaseException] = error
    depth = 0
    while current is not None and depth <= max_depth:
        kind = _classify_single(current)
        if kind is not None:
            return kind
        current = current.__cause__ or current.__context__
        depth += 1
    return GenerationFailureKind.OTHER

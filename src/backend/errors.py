# error helpers shared by the backend package and the views
import asyncio

import httpx


class ValidationError(ValueError):
    """Client-side input problem, raised before any network call."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message


class ProductNotFoundError(LookupError):
    def __init__(self, product_id: str) -> None:
        super().__init__(f"Product not found: {product_id}")
        self.product_id = product_id


RETRYABLE_STATUSES = {408, 429}

# PostgREST connection, pool and schema cache failures
RETRYABLE_CODES = {"PGRST000", "PGRST001", "PGRST002", "PGRST003"}


def _as_status(value) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, str) and value.isdigit():
        value = int(value)
    # SQLSTATE codes such as "23505" are digit strings too
    if isinstance(value, int) and 100 <= value <= 599:
        return value
    return None


def status_of(exc: BaseException) -> int | None:
    """Best-effort HTTP status of a backend client error."""
    for attr in ("status", "status_code", "statusCode"):
        status = _as_status(getattr(exc, attr, None))
        if status is not None:
            return status
    response = getattr(exc, "response", None)
    if isinstance(response, httpx.Response):
        return response.status_code
    # PostgREST puts the HTTP status in `code` when the body was not JSON
    return _as_status(getattr(exc, "code", None))


def is_retryable(exc: BaseException) -> bool:
    """
    Transient failures are worth another attempt: transport problems, timeouts,
    5xx answers, 408 and 429. Anything else (bad credentials, constraint
    violations, validation) fails the same way every time.
    """
    if isinstance(exc, ValidationError):
        return False
    if isinstance(
        exc, (httpx.TransportError, asyncio.TimeoutError, TimeoutError, ConnectionError)
    ):
        return True
    if getattr(exc, "code", None) in RETRYABLE_CODES:
        return True
    status = status_of(exc)
    if status is None:
        return False
    return status >= 500 or status in RETRYABLE_STATUSES


def error_message(exc: BaseException, fallback: str) -> str:
    """Human-readable text for a notification; fallback when the error has none."""
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message.strip():
        return message
    text = str(exc).strip()
    return text or fallback

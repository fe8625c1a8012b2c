from datetime import datetime, timezone
from typing import Any, Optional

from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalise a datetime to aware UTC.

    SQLite hands back naive datetimes; those are stored as UTC so they are
    tagged rather than converted.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_iso_utc(value: datetime) -> str:
    """Render a datetime as ISO-8601 UTC with millisecond precision and a Z suffix."""
    return ensure_utc(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def generate_response(
    status_code: int,
    response_message: str,
    customer_message: str,
    body: Any = None,
) -> JSONResponse:
    """
    Build the standard API response envelope.

    Args:
        status_code: HTTP status code
        response_message: Developer-facing message
        customer_message: User-facing message
        body: Response payload

    Returns:
        JSONResponse with the envelope
    """
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder({
            "status_code": status_code,
            "response_message": response_message,
            "customer_message": customer_message,
            "body": body,
        }),
    )

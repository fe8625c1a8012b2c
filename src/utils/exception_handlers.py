import logging
from typing import Any, Dict, List

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from src.utils.custom_utils import generate_response
from src.utils.logging.error_logger import error_logger

logger = logging.getLogger(__name__)

INVALID_QUERY_MESSAGE = "Invalid query parameters"


def format_validation_errors(errors: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    """Flatten pydantic error entries to {field, message} pairs."""
    return [
        {
            "field": ".".join(str(part) for part in error.get("loc", ())),
            "message": error.get("msg", ""),
        }
        for error in errors
    ]


async def http_exception_handler(request: Request, exc: HTTPException):
    """Render HTTPException in the standard envelope."""
    detail = exc.detail
    body = None
    if isinstance(detail, dict):
        message = detail.get("error", "Request failed")
        body = detail.get("details")
    else:
        message = str(detail)

    return generate_response(
        status_code=exc.status_code,
        response_message=message,
        customer_message=message,
        body=body,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Request parameter validation failures are client errors (400)."""
    return generate_response(
        status_code=status.HTTP_400_BAD_REQUEST,
        response_message=INVALID_QUERY_MESSAGE,
        customer_message="The request contains invalid parameters",
        body=format_validation_errors(exc.errors()),
    )


async def pydantic_validation_error_handler(request: Request, exc: ValidationError):
    return generate_response(
        status_code=status.HTTP_400_BAD_REQUEST,
        response_message=INVALID_QUERY_MESSAGE,
        customer_message="The request contains invalid parameters",
        body=format_validation_errors(exc.errors()),
    )


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError):
    """Log database errors and hide their details from the client."""
    logger.error(f"Database error on {request.url.path}: {type(exc).__name__}")
    await error_logger.log_error(exc, request)
    return generate_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        response_message="Database error",
        customer_message="An unexpected error occurred",
        body=None,
    )

"""Domain error to response status mapping.

This module translates KNN errors into HTTP statuses and JSON-safe
payloads for the request router. Storage and internal failures are
logged here and reported to clients with a generic message.
"""

from __future__ import annotations

from http import HTTPStatus

from core.errors import KnnError
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)
_GENERIC_SERVER_MESSAGE = "Internal server error."
_STATUS_BY_CODE = {
    "NOT_FOUND": HTTPStatus.NOT_FOUND,
    "DB": HTTPStatus.INTERNAL_SERVER_ERROR,
    "INTERNAL": HTTPStatus.INTERNAL_SERVER_ERROR,
}


def error_code(error: Exception) -> str:
    """Return the domain code for an error, ``INTERNAL`` for foreign ones."""
    return error.code if isinstance(error, KnnError) else "INTERNAL"


def status_for_error(error: Exception) -> HTTPStatus:
    """Return the response status for an error; unmapped codes are bad requests."""
    return _STATUS_BY_CODE.get(error_code(error), HTTPStatus.BAD_REQUEST)


def error_payload(error: Exception) -> dict[str, object]:
    """Build a response payload for an error.

    Args:
        error: Raised exception.

    Returns:
        Payload with ``status`` and a one-element ``errors`` list.
    """
    code = error_code(error)
    status = status_for_error(error)
    message = str(error)
    if status == HTTPStatus.INTERNAL_SERVER_ERROR:
        _LOGGER.error(
            "request_failed",
            code=code,
            error_type=type(error).__name__,
            error=message,
        )
        message = _GENERIC_SERVER_MESSAGE
    return {"status": int(status), "errors": [{"code": code, "message": message}]}

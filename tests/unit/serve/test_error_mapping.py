"""Unit tests for error status mapping."""

from __future__ import annotations

from http import HTTPStatus

import pytest

from core.errors import (
    KnnBadFormatError,
    KnnBadRequestError,
    KnnBadValueError,
    KnnDatabaseError,
    KnnInternalError,
    KnnNotFoundError,
)
from serve.error_mapping import error_payload, status_for_error


@pytest.mark.parametrize(
    ("error", "status"),
    [
        (KnnNotFoundError("missing"), HTTPStatus.NOT_FOUND),
        (KnnDatabaseError("db down"), HTTPStatus.INTERNAL_SERVER_ERROR),
        (KnnInternalError("bug"), HTTPStatus.INTERNAL_SERVER_ERROR),
        (KnnBadValueError("bad magic"), HTTPStatus.BAD_REQUEST),
        (KnnBadFormatError("bad length"), HTTPStatus.BAD_REQUEST),
        (KnnBadRequestError("ambiguous"), HTTPStatus.BAD_REQUEST),
        (RuntimeError("unexpected"), HTTPStatus.INTERNAL_SERVER_ERROR),
    ],
)
def test_status_for_error_maps_each_kind(error: Exception, status: HTTPStatus) -> None:
    """Each error kind should map to its response status."""
    assert status_for_error(error) == status


def test_error_payload_keeps_client_error_message() -> None:
    """Client errors should carry their own message and code."""
    payload = error_payload(KnnNotFoundError("No features found for id 'x'."))

    assert payload == {
        "status": 404,
        "errors": [{"code": "NOT_FOUND", "message": "No features found for id 'x'."}],
    }


def test_error_payload_hides_database_details() -> None:
    """Server errors should be reported with a generic message."""
    payload = error_payload(KnnDatabaseError("disk I/O error at /secret/path"))

    assert "secret" not in str(payload) and payload["status"] == 500

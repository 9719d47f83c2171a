"""KNN service exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each error kind carries a stable code used by the request boundary
to pick a response status.
"""

from __future__ import annotations


class KnnError(Exception):
    """Base exception for all KNN service failures."""

    code = "INTERNAL"


class KnnBadValueError(KnnError):
    """Raised when a field value violates a format constraint."""

    code = "BAD_VAL"


class KnnBadFormatError(KnnError):
    """Raised for structural inconsistencies in corpus or feature input."""

    code = "BAD_FMT"


class KnnBadRequestError(KnnError):
    """Raised when a request cannot be resolved unambiguously."""

    code = "BAD_REQ"


class KnnNotFoundError(KnnError):
    """Raised when an identifier lookup matches nothing."""

    code = "NOT_FOUND"


class KnnDatabaseError(KnnError):
    """Raised for feature store storage failures."""

    code = "DB"


class KnnInternalError(KnnError):
    """Raised for programming or contract violations."""

    code = "INTERNAL"


class KnnConfigError(KnnInternalError):
    """Raised for invalid runtime configuration."""

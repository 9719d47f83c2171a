"""Base64 transport encoding for feature vectors.

Feature bytes cross the store and request boundaries as standard
base64 text. Both directions round-trip every byte sequence.
"""

from __future__ import annotations

import base64
import binascii

from core.errors import KnnBadValueError


def encode_features(features: bytes) -> str:
    """Encode raw feature bytes as standard base64 text."""
    return base64.b64encode(bytes(features)).decode("ascii")


def decode_features(encoded: str) -> bytes:
    """Decode standard base64 text into raw feature bytes.

    Args:
        encoded: Base64 text.

    Returns:
        Raw feature bytes.

    Raises:
        KnnBadValueError: If the text is not valid base64.
    """
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as error:
        raise KnnBadValueError(
            f"Invalid base64 feature encoding: {error}. "
            "Send features as standard base64 text."
        ) from error

"""Unit tests for base64 transport encoding."""

from __future__ import annotations

import pytest

from codec.transport import decode_features, encode_features
from core.errors import KnnBadValueError


@pytest.mark.parametrize("raw", [b"", bytes(range(256)), bytes([0, 2, 4, 5, 255])])
def test_decode_inverts_encode(raw: bytes) -> None:
    """Every byte sequence should survive an encode/decode round trip."""
    assert decode_features(encode_features(raw)) == raw


def test_encode_uses_standard_alphabet() -> None:
    """Encoding should use the standard base64 alphabet with padding."""
    assert encode_features(bytes([251, 255])) == "+/8="


def test_decode_rejects_invalid_text() -> None:
    """Non-base64 text should be rejected as a bad value."""
    with pytest.raises(KnnBadValueError):
        decode_features("not base64!")

from __future__ import annotations

import base64
import binascii
import re

from hsjwt.core.errors import DecodeError

_ALPHABET = re.compile(r"[A-Za-z0-9_-]*")


def encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def decode(data: str) -> bytes:
    """Decode unpadded base64url, rejecting anything a strict decoder would."""
    if not isinstance(data, str):
        raise DecodeError("Segment must be a string")
    if _ALPHABET.fullmatch(data) is None:
        raise DecodeError("Segment contains characters outside the base64url alphabet")
    if len(data) % 4 == 1:
        raise DecodeError("Segment length does not map to whole bytes")
    padding = "=" * (-len(data) % 4)
    try:
        result = base64.urlsafe_b64decode(data + padding)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError("Invalid base64url segment") from exc
    # unused trailing bits must be zero so each value has exactly one spelling
    if encode(result) != data:
        raise DecodeError("Segment is not canonical base64url")
    return result

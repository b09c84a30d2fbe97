"""Image byte helpers shared by providers and the stream codec."""

import base64
import binascii

from .errors import DecodeError


def bytes_to_base64(image_bytes: bytes) -> str:
    """Standard base64 of raw image bytes."""
    return base64.b64encode(image_bytes).decode('utf-8')


def base64_to_bytes(base64_string: str) -> bytes:
    """
    Decode a base64 string, accepting an optional ``data:`` URL prefix.

    Raises:
        DecodeError: If the payload is not valid base64
    """
    if base64_string.startswith("data:") and "," in base64_string:
        base64_string = base64_string.split(",", 1)[1]

    try:
        return base64.b64decode(base64_string, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Invalid base64 image payload: {e}")


def to_data_url(base64_string: str, media_type: str = "image/png") -> str:
    """Build a ``data:`` URL a renderer can use directly."""
    return f"data:{media_type};base64,{base64_string}"

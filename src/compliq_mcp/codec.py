"""
Base64 decoding for file attachments.

Large payloads are decoded in fixed-size segments so that a single oversized
input never needs one huge intermediate allocation.
"""

from __future__ import annotations

import base64
import binascii
import re

from compliq_mcp.types import DecodeError

# Characters per segment; must stay a multiple of 4
CHUNK_SIZE = 1024

_WHITESPACE = re.compile(r"\s+")


def decode_base64(data: str, chunk_size: int = CHUNK_SIZE) -> bytes:
    """
    Decode a base64 string into bytes.

    Args:
        data: Base64 text; whitespace and line breaks are ignored
        chunk_size: Segment length in characters (multiple of 4)

    Returns:
        The decoded bytes

    Raises:
        DecodeError: If the input is not valid base64
    """
    if chunk_size <= 0 or chunk_size % 4:
        raise ValueError(f"chunk_size must be a positive multiple of 4, got {chunk_size}")

    text = _WHITESPACE.sub("", data)
    if not text:
        return b""

    if len(text) % 4:
        raise DecodeError(f"invalid base64 length {len(text)}", {"length": len(text)})

    # Padding may only close the final quantum
    if "=" in text[:-2] or "=" in text.rstrip("="):
        raise DecodeError("invalid base64 padding")

    buffer = bytearray()
    for start in range(0, len(text), chunk_size):
        segment = text[start : start + chunk_size]
        try:
            buffer += base64.b64decode(segment, validate=True)
        except (binascii.Error, ValueError) as e:
            raise DecodeError(f"invalid base64 data at offset {start}: {e}", {"offset": start}) from e
    return bytes(buffer)

"""Strict text encodings for wire values."""

import base64


def b64decode_strict(text: str) -> bytes:
    """
    Decode base64, rejecting any text that is not the canonical encoding.

    Non-canonical text (unused trailing bits set) decodes to the same bytes
    as its canonical form, which would let a single edited character pass
    unnoticed.

    Raises:
        binascii.Error, ValueError: If the text is invalid or non-canonical
    """
    raw = base64.b64decode(text, validate=True)
    if base64.b64encode(raw).decode('ascii') != text:
        raise ValueError("non-canonical base64")
    return raw

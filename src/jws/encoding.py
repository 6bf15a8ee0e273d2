"""
Base64url helpers (RFC 7515 section 2, no padding).
"""

import base64
import binascii
from typing import Union

from .errors import InvalidMessageError


def b64url_encode(data: bytes) -> bytes:
    """Base64url encode without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=")


def b64url_decode(data: Union[str, bytes]) -> bytes:
    """
    Base64url decode, restoring any stripped padding.

    Characters outside the URL-safe alphabet are rejected rather than
    silently discarded.
    """
    if isinstance(data, str):
        try:
            data = data.encode("ascii")
        except UnicodeEncodeError:
            raise InvalidMessageError("base64url data must be ASCII")

    data = data.rstrip(b"=")
    if b"+" in data or b"/" in data:
        raise InvalidMessageError("invalid base64url data: standard alphabet used")
    if len(data) % 4 == 1:
        raise InvalidMessageError("invalid base64url length")
    padded = data + b"=" * (-len(data) % 4)
    try:
        return base64.b64decode(padded, altchars=b"-_", validate=True)
    except binascii.Error as e:
        raise InvalidMessageError(f"invalid base64url data: {e}")


def signing_input(protected, payload: bytes) -> bytes:
    """
    Bytes covered by the signature: b64url(protected) "." b64url(payload).

    ``protected`` is anything with an ``encode()`` returning header bytes,
    normally an EncodedHeader.
    """
    return b64url_encode(protected.encode()) + b"." + b64url_encode(payload)

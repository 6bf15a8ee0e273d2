"""
JWS Error Kinds

Every failure raised by this package is a JWSError carrying an ErrorKind,
so callers can branch on the kind of failure instead of matching messages.
"""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Closed set of failure categories."""
    INVALID_COMPACT_PARTS_COUNT = "invalid_compact_parts_count"
    INVALID_HEADER_VALUE = "invalid_header_value"
    INVALID_ECDSA_SIGNATURE_SIZE = "invalid_ecdsa_signature_size"
    INVALID_SIGNATURE = "invalid_signature"
    MISSING_PRIVATE_KEY = "missing_private_key"
    MISSING_PUBLIC_KEY = "missing_public_key"
    UNSUPPORTED_ALGORITHM = "unsupported_algorithm"
    INVALID_MESSAGE = "invalid_message"


class JWSError(Exception):
    """Base class for all JWS failures."""
    kind: ErrorKind = ErrorKind.INVALID_MESSAGE
    default_message = "jws error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)


class InvalidCompactPartsCountError(JWSError):
    """Compact input did not split into exactly three segments."""
    kind = ErrorKind.INVALID_COMPACT_PARTS_COUNT
    default_message = "compact JWS format must have three parts"


class InvalidHeaderValueError(JWSError):
    """A header field has the wrong shape for its name."""
    kind = ErrorKind.INVALID_HEADER_VALUE
    default_message = "invalid value for header key"


class InvalidEcdsaSignatureSizeError(JWSError):
    """ECDSA signature length does not match the curve's fixed width."""
    kind = ErrorKind.INVALID_ECDSA_SIGNATURE_SIZE
    default_message = "invalid signature size of ecdsa algorithm"


class InvalidSignatureError(JWSError):
    """Signature does not verify against the payload and key."""
    kind = ErrorKind.INVALID_SIGNATURE
    default_message = "invalid signature"


class MissingPrivateKeyError(JWSError):
    kind = ErrorKind.MISSING_PRIVATE_KEY
    default_message = "missing private key"


class MissingPublicKeyError(JWSError):
    kind = ErrorKind.MISSING_PUBLIC_KEY
    default_message = "missing public key"


class UnsupportedAlgorithmError(JWSError):
    """Algorithm tag is not recognized, not allowed, or not handled here."""
    kind = ErrorKind.UNSUPPORTED_ALGORITHM
    default_message = "unsupported algorithm"


class InvalidMessageError(JWSError):
    """Wire input or message shape is structurally broken."""
    kind = ErrorKind.INVALID_MESSAGE
    default_message = "invalid JWS message"

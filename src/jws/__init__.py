"""
JSON Web Signature (RFC 7515) envelope

Supports:
- RSA (RS*/PS*), ECDSA (ES*) and HMAC (HS*) signatures
- Multiple signatures per message
- Compact and general JSON serialization
"""

from .algorithms import KeyFamily, SignatureAlgorithm
from .config import JWSSettings, get_settings, reset_settings
from .errors import (
    ErrorKind,
    JWSError,
    InvalidCompactPartsCountError,
    InvalidHeaderValueError,
    InvalidEcdsaSignatureSizeError,
    InvalidSignatureError,
    MissingPrivateKeyError,
    MissingPublicKeyError,
    UnsupportedAlgorithmError,
    InvalidMessageError,
)
from .header import EssentialHeader, Header, EncodedHeader, MergedHeader, check_critical
from .message import Message, Signature
from .signer import (
    PayloadSigner,
    RsaSigner,
    EcdsaSigner,
    HmacSigner,
    MultiSigner,
    get_signer,
)
from .verifier import (
    Verifier,
    RsaVerifier,
    EcdsaVerifier,
    HmacVerifier,
    VerificationResult,
    VerificationPolicy,
    enforce,
    get_verifier,
)
from .serializer import Serializer, CompactSerializer, JSONSerializer, parse
from .operations import sign, verify

__all__ = [
    "KeyFamily",
    "SignatureAlgorithm",
    "JWSSettings",
    "get_settings",
    "reset_settings",
    "ErrorKind",
    "JWSError",
    "InvalidCompactPartsCountError",
    "InvalidHeaderValueError",
    "InvalidEcdsaSignatureSizeError",
    "InvalidSignatureError",
    "MissingPrivateKeyError",
    "MissingPublicKeyError",
    "UnsupportedAlgorithmError",
    "InvalidMessageError",
    "EssentialHeader",
    "Header",
    "EncodedHeader",
    "MergedHeader",
    "check_critical",
    "Message",
    "Signature",
    "PayloadSigner",
    "RsaSigner",
    "EcdsaSigner",
    "HmacSigner",
    "MultiSigner",
    "get_signer",
    "Verifier",
    "RsaVerifier",
    "EcdsaVerifier",
    "HmacVerifier",
    "VerificationResult",
    "VerificationPolicy",
    "enforce",
    "get_verifier",
    "Serializer",
    "CompactSerializer",
    "JSONSerializer",
    "parse",
    "sign",
    "verify",
]

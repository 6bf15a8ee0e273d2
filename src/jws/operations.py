"""
One-call signing and verification.

sign() produces wire bytes for a single signer; verify() parses wire
bytes and returns the payload once an entry verifies under the given key.
"""

from typing import Any, Optional

import structlog

from .header import Header
from .serializer import CompactSerializer, Serializer, parse
from .signer import MultiSigner, get_signer
from .verifier import VerificationPolicy, enforce, get_verifier

logger = structlog.get_logger()


def sign(
    payload: bytes,
    algorithm: Any,
    key: Any,
    protected: Optional[Header] = None,
    public: Optional[Header] = None,
    serializer: Optional[Serializer] = None,
) -> bytes:
    """
    Sign ``payload`` with one key and serialize the result.

    Compact serialization is used unless another serializer is given.
    """
    signer = get_signer(algorithm, key, protected=protected, public=public)
    message = MultiSigner([signer]).sign(payload)
    return (serializer or CompactSerializer()).serialize(message)


def verify(data: Any, algorithm: Any, key: Any, **options: Any) -> bytes:
    """
    Parse ``data`` (compact or JSON) and verify it with ``key``.

    Returns the payload when at least one entry verifies. Otherwise raises
    the error of the first entry.
    """
    message = parse(data)
    verifier = get_verifier(algorithm, key, **options)
    results = verifier.verify(message)
    enforce(results, VerificationPolicy.ANY)
    logger.debug(
        "jws_verified",
        algorithm=verifier.algorithm.value,
        valid=sum(1 for r in results if r.valid),
        signatures=len(results),
    )
    return message.payload

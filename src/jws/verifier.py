"""
JWS Verifiers

Each verifier is bound to one algorithm and one key. The algorithm of an
entry is always read from its protected header; an unprotected ``alg`` is
never consulted.

Verification of a multi-signature Message yields one result per entry.
Whether all or any of them must be valid is decided by the caller through
enforce() and an explicit VerificationPolicy.
"""

import hmac
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, List, Optional

import structlog
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.hazmat.primitives.asymmetric.utils import encode_dss_signature

from .algorithms import KeyFamily, SignatureAlgorithm
from .config import get_settings
from .errors import (
    InvalidEcdsaSignatureSizeError,
    InvalidHeaderValueError,
    InvalidMessageError,
    InvalidSignatureError,
    JWSError,
    MissingPublicKeyError,
    UnsupportedAlgorithmError,
)
from .header import check_critical
from .message import Message, Signature
from .signer import HmacSigner, check_curve, ecdsa_coordinate_size, rsa_padding

logger = structlog.get_logger()


@dataclass
class VerificationResult:
    """Outcome of verifying one Signature entry."""
    index: int
    valid: bool
    algorithm: Optional[str]
    key_id: Optional[str]
    error: Optional[JWSError] = None


class VerificationPolicy(Enum):
    """How per-entry outcomes combine into a decision."""
    ALL = "all"
    ANY = "any"


def enforce(results: List[VerificationResult], policy: VerificationPolicy) -> None:
    """
    Apply ``policy`` to per-entry results.

    Raises the first failing entry's error when the policy is not met, or
    InvalidMessageError when there are no entries at all.
    """
    if not results:
        raise InvalidMessageError("message has no signatures")

    failures = [r for r in results if not r.valid]
    if policy == VerificationPolicy.ALL:
        if failures:
            raise failures[0].error
        return
    if len(failures) == len(results):
        raise failures[0].error


class Verifier(ABC):
    """Abstract base class for JWS verifiers."""

    family: KeyFamily

    def __init__(
        self,
        algorithm: Any,
        allowed_algorithms: Optional[Iterable[Any]] = None,
        enforce_critical: Optional[bool] = None,
        understood_critical: Optional[Iterable[str]] = None,
    ):
        settings = get_settings()
        resolved = SignatureAlgorithm.resolve(algorithm)
        if resolved.family != self.family:
            raise UnsupportedAlgorithmError(
                f"{type(self).__name__} cannot verify {resolved.value}"
            )
        self._algorithm = resolved
        if allowed_algorithms is None:
            allowed_algorithms = settings.allowed_algorithms
        self.allowed_algorithms = [SignatureAlgorithm.resolve(a) for a in allowed_algorithms]
        self.enforce_critical = (
            settings.enforce_critical if enforce_critical is None else enforce_critical
        )
        self.understood_critical = set(
            settings.understood_critical if understood_critical is None else understood_critical
        )

    @property
    def algorithm(self) -> SignatureAlgorithm:
        return self._algorithm

    @abstractmethod
    def payload_verify(self, data: bytes, signature: bytes) -> None:
        """Check ``signature`` over ``data``; raise a JWSError on failure."""
        pass

    def resolve_algorithm(self, signature: Signature) -> SignatureAlgorithm:
        """Algorithm of an entry, from its protected header only."""
        tag = signature.merged_headers().algorithm
        if tag is not None and not isinstance(tag, str):
            raise InvalidHeaderValueError("invalid value for header key 'alg'")
        algorithm = SignatureAlgorithm.resolve(
            tag,
            self.allowed_algorithms or None,
        )
        if algorithm != self._algorithm:
            raise UnsupportedAlgorithmError(
                f"{self._algorithm.value} verifier cannot check {algorithm.value} signature"
            )
        return algorithm

    def verify_entry(self, payload: bytes, signature: Signature) -> None:
        """Verify one entry; raise a JWSError on any failure."""
        self.resolve_algorithm(signature)
        if self.enforce_critical:
            check_critical(signature.merged_headers(), self.understood_critical)
        self.payload_verify(signature.signing_input(payload), signature.signature)

    def verify(self, message: Message) -> List[VerificationResult]:
        """Verify every entry independently, in message order."""
        results = []
        for index, signature in enumerate(message.signatures):
            merged = signature.merged_headers()
            algorithm = merged.algorithm if isinstance(merged.algorithm, str) else None
            try:
                self.verify_entry(message.payload, signature)
            except JWSError as e:
                logger.warning(
                    "jws_signature_rejected",
                    index=index,
                    algorithm=algorithm,
                    key_id=merged.key_id,
                    kind=e.kind.value,
                )
                results.append(VerificationResult(
                    index=index,
                    valid=False,
                    algorithm=algorithm,
                    key_id=merged.key_id,
                    error=e,
                ))
                continue

            logger.debug("jws_signature_verified", index=index, algorithm=algorithm)
            results.append(VerificationResult(
                index=index,
                valid=True,
                algorithm=algorithm,
                key_id=merged.key_id,
            ))
        return results


class RsaVerifier(Verifier):
    """RSA verifier for RS* and PS* algorithms."""

    family = KeyFamily.RSA

    def __init__(self, algorithm: Any, public_key: Optional[rsa.RSAPublicKey], **options: Any):
        super().__init__(algorithm, **options)
        if isinstance(public_key, rsa.RSAPrivateKey):
            public_key = public_key.public_key()
        self.public_key = public_key

    def payload_verify(self, data: bytes, signature: bytes) -> None:
        if self.public_key is None:
            raise MissingPublicKeyError()
        try:
            self.public_key.verify(
                signature,
                data,
                rsa_padding(self._algorithm),
                self._algorithm.spec.new_hash(),
            )
        except InvalidSignature:
            raise InvalidSignatureError()


class EcdsaVerifier(Verifier):
    """ECDSA verifier expecting the fixed-width r||s encoding."""

    family = KeyFamily.EC

    def __init__(self, algorithm: Any, public_key: Optional[ec.EllipticCurvePublicKey], **options: Any):
        super().__init__(algorithm, **options)
        if isinstance(public_key, ec.EllipticCurvePrivateKey):
            public_key = public_key.public_key()
        self.public_key = public_key

    def payload_verify(self, data: bytes, signature: bytes) -> None:
        if self.public_key is None:
            raise MissingPublicKeyError()

        check_curve(self._algorithm, self.public_key.curve)
        size = ecdsa_coordinate_size(self.public_key.curve)
        if len(signature) != 2 * size:
            raise InvalidEcdsaSignatureSizeError(
                f"invalid signature size of ecdsa algorithm: "
                f"expected {2 * size} bytes, got {len(signature)}"
            )

        r = int.from_bytes(signature[:size], "big")
        s = int.from_bytes(signature[size:], "big")
        try:
            self.public_key.verify(
                encode_dss_signature(r, s),
                data,
                ec.ECDSA(self._algorithm.spec.new_hash()),
            )
        except InvalidSignature:
            raise InvalidSignatureError()


class HmacVerifier(Verifier):
    """
    Verifies by recomputing the MAC with the matching HmacSigner and
    comparing in constant time.
    """

    family = KeyFamily.OCT

    def __init__(self, signer: HmacSigner, **options: Any):
        super().__init__(signer.algorithm, **options)
        self.signer = signer

    def payload_verify(self, data: bytes, signature: bytes) -> None:
        if not self.signer.key:
            raise MissingPublicKeyError("missing shared secret")
        expected = self.signer.payload_sign(data)
        if not hmac.compare_digest(expected, signature):
            raise InvalidSignatureError()


def get_verifier(algorithm: Any, key: Any, **options: Any) -> Verifier:
    """
    Factory function to get a verifier instance.

    Args:
        algorithm: Algorithm tag or SignatureAlgorithm
        key: RSA/EC public key object, or shared secret bytes for HMAC
        options: allowed_algorithms, enforce_critical, understood_critical

    Returns:
        Verifier instance
    """
    resolved = SignatureAlgorithm.resolve(algorithm)
    if resolved.family == KeyFamily.RSA:
        return RsaVerifier(resolved, key, **options)
    if resolved.family == KeyFamily.EC:
        return EcdsaVerifier(resolved, key, **options)
    return HmacVerifier(HmacSigner(resolved, key), **options)

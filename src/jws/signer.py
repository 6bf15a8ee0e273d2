"""
JWS Signers

Supports:
- RSA (RS256/384/512 with PKCS#1 v1.5, PS256/384/512 with PSS)
- ECDSA (ES256/384/512, fixed-width r||s output)
- HMAC (HS256/384/512, shared secret)

The family set is closed: get_signer() dispatches over it and nothing
registers new variants at runtime.
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence

import structlog
from cryptography.hazmat.primitives import hmac as crypto_hmac
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa
from cryptography.hazmat.primitives.asymmetric.utils import decode_dss_signature

from .algorithms import KeyFamily, SignatureAlgorithm, SignatureEncoding
from .errors import JWSError, MissingPrivateKeyError, UnsupportedAlgorithmError
from .header import EncodedHeader, Header
from .message import Message, Signature
from .encoding import signing_input

logger = structlog.get_logger()


def pss_padding(algorithm: SignatureAlgorithm) -> padding.PSS:
    """PSS with MGF1 over the same hash and a digest-sized salt (RFC 7518 3.5)."""
    hash_algorithm = algorithm.spec.new_hash()
    return padding.PSS(
        mgf=padding.MGF1(hash_algorithm),
        salt_length=hash_algorithm.digest_size,
    )


def rsa_padding(algorithm: SignatureAlgorithm) -> padding.AsymmetricPadding:
    if algorithm.spec.encoding == SignatureEncoding.PSS:
        return pss_padding(algorithm)
    return padding.PKCS1v15()


def ecdsa_coordinate_size(curve: ec.EllipticCurve) -> int:
    """Byte width of r (and s) for a curve, e.g. 32 for P-256, 66 for P-521."""
    return (curve.key_size + 7) // 8


def check_curve(algorithm: SignatureAlgorithm, curve: ec.EllipticCurve) -> None:
    """Each ES* tag is bound to one curve; any other key is rejected."""
    expected = algorithm.spec.curve
    if expected is not None and not isinstance(curve, expected):
        raise UnsupportedAlgorithmError(
            f"{algorithm.value} requires curve {expected.name}, got {curve.name}"
        )


class PayloadSigner(ABC):
    """Abstract base class for JWS signers."""

    family: KeyFamily

    def __init__(
        self,
        algorithm: Any,
        protected: Optional[Header] = None,
        public: Optional[Header] = None,
    ):
        resolved = SignatureAlgorithm.resolve(algorithm)
        if resolved.family != self.family:
            raise UnsupportedAlgorithmError(
                f"{type(self).__name__} cannot sign with {resolved.value}"
            )
        self._algorithm = resolved
        self._protected = protected.copy() if protected is not None else Header()
        self._public = public.copy() if public is not None else Header()

    @property
    def algorithm(self) -> SignatureAlgorithm:
        return self._algorithm

    @property
    def protected_headers(self) -> Header:
        """Template for the protected header of each produced entry."""
        return self._protected

    @protected_headers.setter
    def protected_headers(self, header: Optional[Header]) -> None:
        self._protected = header.copy() if header is not None else Header()

    @property
    def public_headers(self) -> Header:
        """Template for the unprotected header of each produced entry."""
        return self._public

    @public_headers.setter
    def public_headers(self, header: Optional[Header]) -> None:
        self._public = header.copy() if header is not None else Header()

    @abstractmethod
    def payload_sign(self, data: bytes) -> bytes:
        """Sign raw bytes (normally the signing input) and return the signature."""
        pass

    def protected_header(self) -> EncodedHeader:
        """Fresh protected header for one entry, with ``alg`` set to ours."""
        header = EncodedHeader.from_header(self._protected)
        header.algorithm = self._algorithm.value
        return header

    def sign(self, payload: bytes) -> bytes:
        """Signature over the signing input built from our protected header."""
        return self.payload_sign(signing_input(self.protected_header(), payload))

    def sign_entry(self, payload: bytes) -> Signature:
        """Build a complete Signature entry for ``payload``."""
        protected = self.protected_header()
        signature = self.payload_sign(signing_input(protected, payload))
        logger.debug(
            "jws_payload_signed",
            algorithm=self._algorithm.value,
            key_id=protected.key_id or self._public.key_id,
        )
        return Signature(
            public_header=self._public.copy(),
            protected_header=protected,
            signature=signature,
        )


class RsaSigner(PayloadSigner):
    """RSA signer using PKCS#1 v1.5 (RS*) or PSS (PS*) padding."""

    family = KeyFamily.RSA

    def __init__(
        self,
        algorithm: Any,
        private_key: Optional[rsa.RSAPrivateKey],
        protected: Optional[Header] = None,
        public: Optional[Header] = None,
    ):
        super().__init__(algorithm, protected, public)
        self.private_key = private_key

    def payload_sign(self, data: bytes) -> bytes:
        if self.private_key is None:
            raise MissingPrivateKeyError()
        return self.private_key.sign(
            data,
            rsa_padding(self._algorithm),
            self._algorithm.spec.new_hash(),
        )


class EcdsaSigner(PayloadSigner):
    """ECDSA signer producing the fixed-width r||s encoding, not DER."""

    family = KeyFamily.EC

    def __init__(
        self,
        algorithm: Any,
        private_key: Optional[ec.EllipticCurvePrivateKey],
        protected: Optional[Header] = None,
        public: Optional[Header] = None,
    ):
        super().__init__(algorithm, protected, public)
        self.private_key = private_key

    def payload_sign(self, data: bytes) -> bytes:
        if self.private_key is None:
            raise MissingPrivateKeyError()
        check_curve(self._algorithm, self.private_key.curve)
        der_signature = self.private_key.sign(
            data, ec.ECDSA(self._algorithm.spec.new_hash())
        )
        r, s = decode_dss_signature(der_signature)
        size = ecdsa_coordinate_size(self.private_key.curve)
        return r.to_bytes(size, "big") + s.to_bytes(size, "big")


class HmacSigner(PayloadSigner):
    """Symmetric signer over a shared secret."""

    family = KeyFamily.OCT

    def __init__(
        self,
        algorithm: Any,
        key: Optional[bytes],
        protected: Optional[Header] = None,
        public: Optional[Header] = None,
    ):
        super().__init__(algorithm, protected, public)
        if isinstance(key, str):
            key = key.encode("utf-8")
        self.key = bytes(key) if key else b""

    def payload_sign(self, data: bytes) -> bytes:
        if not self.key:
            raise MissingPrivateKeyError("missing shared secret")
        mac = crypto_hmac.HMAC(self.key, self._algorithm.spec.new_hash())
        mac.update(data)
        return mac.finalize()


class MultiSigner:
    """
    Produces one Message with an entry per signer, in signer order.

    The first signer failure aborts the whole operation.
    """

    def __init__(self, signers: Sequence[PayloadSigner] = ()):
        self.signers: List[PayloadSigner] = list(signers)

    def add_signer(self, signer: PayloadSigner) -> None:
        self.signers.append(signer)

    def sign(self, payload: bytes) -> Message:
        message = Message(payload=bytes(payload))
        for index, signer in enumerate(self.signers):
            try:
                message.signatures.append(signer.sign_entry(payload))
            except JWSError as e:
                logger.debug(
                    "jws_multi_sign_aborted",
                    index=index,
                    algorithm=signer.algorithm.value,
                    kind=e.kind.value,
                )
                raise
        logger.debug("jws_message_signed", signatures=len(message.signatures))
        return message


_SIGNERS = {
    KeyFamily.RSA: RsaSigner,
    KeyFamily.EC: EcdsaSigner,
    KeyFamily.OCT: HmacSigner,
}


def get_signer(
    algorithm: Any,
    key: Any,
    protected: Optional[Header] = None,
    public: Optional[Header] = None,
) -> PayloadSigner:
    """
    Factory function to get a signer instance.

    Args:
        algorithm: Algorithm tag or SignatureAlgorithm
        key: RSA/EC private key object, or shared secret bytes for HMAC
        protected: Optional protected header template
        public: Optional public header template

    Returns:
        PayloadSigner instance
    """
    resolved = SignatureAlgorithm.resolve(algorithm)
    return _SIGNERS[resolved.family](resolved, key, protected, public)

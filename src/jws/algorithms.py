"""
Signature Algorithms

Maps each JWS algorithm tag (RFC 7518 section 3.1) to the hash function,
key family and signature encoding used to produce it.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional, Set

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec

from .errors import UnsupportedAlgorithmError


class KeyFamily(Enum):
    """Key types a signer or verifier can hold."""
    RSA = "RSA"
    EC = "EC"
    OCT = "oct"  # shared secret


class SignatureEncoding(Enum):
    """How the signature bytes are produced for a family."""
    PKCS1_V15 = "PKCS1v15"
    PSS = "PSS"
    RAW_RS = "r||s"
    MAC = "MAC"


@dataclass(frozen=True)
class AlgorithmSpec:
    """Resolved parameters for an algorithm tag."""
    hash_algorithm: type
    family: KeyFamily
    encoding: SignatureEncoding
    curve: Optional[type] = None  # EC only (RFC 7518 3.4)

    def new_hash(self) -> hashes.HashAlgorithm:
        return self.hash_algorithm()


class SignatureAlgorithm(str, Enum):
    """Supported JWS signature algorithms."""
    HS256 = "HS256"
    HS384 = "HS384"
    HS512 = "HS512"
    RS256 = "RS256"
    RS384 = "RS384"
    RS512 = "RS512"
    PS256 = "PS256"
    PS384 = "PS384"
    PS512 = "PS512"
    ES256 = "ES256"
    ES384 = "ES384"
    ES512 = "ES512"

    @property
    def spec(self) -> AlgorithmSpec:
        return _SPECS[self]

    @property
    def family(self) -> KeyFamily:
        return _SPECS[self].family

    @classmethod
    def resolve(
        cls,
        tag: Any,
        allowed: Optional[Iterable["SignatureAlgorithm"]] = None,
    ) -> "SignatureAlgorithm":
        """
        Resolve a tag taken from a header or supplied by a caller.

        Raises UnsupportedAlgorithmError for an unknown tag, a missing tag,
        a non-string tag, or a tag outside ``allowed`` when one is given.
        """
        if isinstance(tag, cls):
            algorithm = tag
        elif isinstance(tag, str):
            try:
                algorithm = cls(tag)
            except ValueError:
                raise UnsupportedAlgorithmError(f"unsupported algorithm: {tag!r}")
        elif tag is None:
            raise UnsupportedAlgorithmError("missing algorithm")
        else:
            raise UnsupportedAlgorithmError(f"unsupported algorithm: {tag!r}")

        if allowed is not None:
            allowed_set: Set[SignatureAlgorithm] = {cls.resolve(a) for a in allowed}
            if allowed_set and algorithm not in allowed_set:
                raise UnsupportedAlgorithmError(
                    f"algorithm {algorithm.value} is not allowed"
                )
        return algorithm


_SPECS = {
    SignatureAlgorithm.HS256: AlgorithmSpec(hashes.SHA256, KeyFamily.OCT, SignatureEncoding.MAC),
    SignatureAlgorithm.HS384: AlgorithmSpec(hashes.SHA384, KeyFamily.OCT, SignatureEncoding.MAC),
    SignatureAlgorithm.HS512: AlgorithmSpec(hashes.SHA512, KeyFamily.OCT, SignatureEncoding.MAC),
    SignatureAlgorithm.RS256: AlgorithmSpec(hashes.SHA256, KeyFamily.RSA, SignatureEncoding.PKCS1_V15),
    SignatureAlgorithm.RS384: AlgorithmSpec(hashes.SHA384, KeyFamily.RSA, SignatureEncoding.PKCS1_V15),
    SignatureAlgorithm.RS512: AlgorithmSpec(hashes.SHA512, KeyFamily.RSA, SignatureEncoding.PKCS1_V15),
    SignatureAlgorithm.PS256: AlgorithmSpec(hashes.SHA256, KeyFamily.RSA, SignatureEncoding.PSS),
    SignatureAlgorithm.PS384: AlgorithmSpec(hashes.SHA384, KeyFamily.RSA, SignatureEncoding.PSS),
    SignatureAlgorithm.PS512: AlgorithmSpec(hashes.SHA512, KeyFamily.RSA, SignatureEncoding.PSS),
    SignatureAlgorithm.ES256: AlgorithmSpec(hashes.SHA256, KeyFamily.EC, SignatureEncoding.RAW_RS, ec.SECP256R1),
    SignatureAlgorithm.ES384: AlgorithmSpec(hashes.SHA384, KeyFamily.EC, SignatureEncoding.RAW_RS, ec.SECP384R1),
    SignatureAlgorithm.ES512: AlgorithmSpec(hashes.SHA512, KeyFamily.EC, SignatureEncoding.RAW_RS, ec.SECP521R1),
}


def algorithms_for(family: KeyFamily) -> Set[SignatureAlgorithm]:
    """All algorithm tags handled by a key family."""
    return {alg for alg, spec in _SPECS.items() if spec.family == family}

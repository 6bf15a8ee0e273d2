"""
Tests for JWS Signers

Tests RSA, ECDSA and HMAC signers plus multi-signature construction.
"""

import pytest
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, padding
from cryptography.hazmat.primitives.asymmetric.utils import encode_dss_signature

from jws.algorithms import KeyFamily, SignatureAlgorithm, algorithms_for
from jws.encoding import signing_input
from jws.errors import (
    ErrorKind,
    MissingPrivateKeyError,
    UnsupportedAlgorithmError,
)
from jws.header import Header
from jws.signer import (
    EcdsaSigner,
    HmacSigner,
    MultiSigner,
    RsaSigner,
    get_signer,
)


class TestSignatureAlgorithm:
    """Test algorithm tag resolution."""

    def test_resolve_string(self):
        assert SignatureAlgorithm.resolve("ES384") == SignatureAlgorithm.ES384

    def test_resolve_unknown(self):
        with pytest.raises(UnsupportedAlgorithmError) as exc:
            SignatureAlgorithm.resolve("XS256")
        assert exc.value.kind == ErrorKind.UNSUPPORTED_ALGORITHM

    def test_resolve_none_algorithm_is_unsupported(self):
        """The unsecured "none" algorithm is never accepted."""
        with pytest.raises(UnsupportedAlgorithmError):
            SignatureAlgorithm.resolve("none")

    def test_resolve_missing(self):
        with pytest.raises(UnsupportedAlgorithmError):
            SignatureAlgorithm.resolve(None)

    def test_resolve_allow_list(self):
        with pytest.raises(UnsupportedAlgorithmError):
            SignatureAlgorithm.resolve("HS256", allowed=["RS256"])

    def test_families(self):
        assert SignatureAlgorithm.PS256.family == KeyFamily.RSA
        assert SignatureAlgorithm.ES512.family == KeyFamily.EC
        assert algorithms_for(KeyFamily.OCT) == {
            SignatureAlgorithm.HS256,
            SignatureAlgorithm.HS384,
            SignatureAlgorithm.HS512,
        }


class TestRsaSigner:
    """Test RSA signatures."""

    def test_sign_pkcs1(self, rsa_key):
        """RS256 signatures verify with PKCS#1 v1.5 over the signing input."""
        signer = RsaSigner("RS256", rsa_key)
        payload = b"hello"

        signature = signer.sign(payload)

        data = signing_input(signer.protected_header(), payload)
        rsa_key.public_key().verify(signature, data, padding.PKCS1v15(), hashes.SHA256())
        assert len(signature) == 256

    def test_sign_pss(self, rsa_key):
        """PS256 signatures use PSS with a digest-sized salt."""
        signer = RsaSigner(SignatureAlgorithm.PS256, rsa_key)
        payload = b"hello"

        signature = signer.sign(payload)

        data = signing_input(signer.protected_header(), payload)
        rsa_key.public_key().verify(
            signature,
            data,
            padding.PSS(mgf=padding.MGF1(hashes.SHA256()), salt_length=32),
            hashes.SHA256(),
        )

    def test_missing_private_key(self):
        signer = RsaSigner("RS256", None)

        with pytest.raises(MissingPrivateKeyError) as exc:
            signer.sign(b"hello")
        assert exc.value.kind == ErrorKind.MISSING_PRIVATE_KEY

    def test_wrong_family(self, rsa_key):
        with pytest.raises(UnsupportedAlgorithmError):
            RsaSigner("ES256", rsa_key)


class TestEcdsaSigner:
    """Test ECDSA fixed-width signatures."""

    @pytest.mark.parametrize("algorithm,key_fixture,size", [
        ("ES256", "ec_key", 64),
        ("ES384", "ec_p384_key", 96),
        ("ES512", "ec_p521_key", 132),
    ])
    def test_signature_length(self, request, algorithm, key_fixture, size):
        """Output is raw r||s, sized by the curve."""
        key = request.getfixturevalue(key_fixture)
        signer = EcdsaSigner(algorithm, key)

        signature = signer.sign(b"payload")

        assert len(signature) == size

    def test_raw_signature_verifies(self, ec_key):
        """Splitting r||s back into integers gives a valid signature."""
        signer = EcdsaSigner("ES256", ec_key)
        payload = b"payload"

        signature = signer.sign(payload)

        r = int.from_bytes(signature[:32], "big")
        s = int.from_bytes(signature[32:], "big")
        ec_key.public_key().verify(
            encode_dss_signature(r, s),
            signing_input(signer.protected_header(), payload),
            ec.ECDSA(hashes.SHA256()),
        )

    def test_missing_private_key(self):
        with pytest.raises(MissingPrivateKeyError):
            EcdsaSigner("ES256", None).sign(b"payload")

    @pytest.mark.parametrize("algorithm,key_fixture", [
        ("ES256", "ec_p384_key"),
        ("ES384", "ec_key"),
        ("ES512", "ec_p384_key"),
    ])
    def test_curve_must_match_algorithm(self, request, algorithm, key_fixture):
        """Each ES algorithm is tied to a single curve."""
        signer = EcdsaSigner(algorithm, request.getfixturevalue(key_fixture))

        with pytest.raises(UnsupportedAlgorithmError):
            signer.sign(b"payload")


class TestHmacSigner:
    """Test HMAC signatures."""

    def test_deterministic(self, hmac_key):
        """HMAC over the same input is stable."""
        signer = HmacSigner("HS256", hmac_key)

        assert signer.sign(b"payload") == signer.sign(b"payload")
        assert len(signer.sign(b"payload")) == 32

    def test_hash_selection(self, hmac_key):
        assert len(HmacSigner("HS384", hmac_key).sign(b"x")) == 48
        assert len(HmacSigner("HS512", hmac_key).sign(b"x")) == 64

    def test_missing_key(self):
        with pytest.raises(MissingPrivateKeyError):
            HmacSigner("HS256", b"").sign(b"payload")

    def test_string_key(self, hmac_key):
        """A text secret is used as its UTF-8 bytes."""
        text = hmac_key.decode("utf-8")

        assert HmacSigner("HS256", text).sign(b"x") == HmacSigner("HS256", hmac_key).sign(b"x")


class TestHeaderTemplates:
    """Test how signer templates become entry headers."""

    def test_algorithm_forced_into_protected_header(self, hmac_key):
        """The signer's algorithm overrides whatever the template says."""
        signer = HmacSigner("HS256", hmac_key, protected=Header(algorithm="RS256", key_id="k1"))

        protected = signer.protected_header()

        assert protected.algorithm == "HS256"
        assert protected.key_id == "k1"
        assert signer.protected_headers.algorithm == "RS256"

    def test_entry_headers(self, hmac_key):
        signer = HmacSigner(
            "HS256",
            hmac_key,
            protected=Header(type="JWT"),
            public=Header(key_id="public-kid"),
        )

        entry = signer.sign_entry(b"payload")

        assert entry.protected_header.to_dict() == {"alg": "HS256", "typ": "JWT"}
        assert entry.public_header.key_id == "public-kid"
        assert entry.signature == signer.sign(b"payload")

    def test_templates_are_copied(self, hmac_key):
        """Changing the caller's header after construction has no effect."""
        template = Header(key_id="k1")
        signer = HmacSigner("HS256", hmac_key, protected=template)
        template.set("kid", "k2")

        assert signer.protected_header().key_id == "k1"

    def test_set_templates(self, hmac_key):
        signer = HmacSigner("HS256", hmac_key)
        signer.public_headers = Header(key_id="pub")
        signer.protected_headers = Header(type="JWT")

        entry = signer.sign_entry(b"x")

        assert entry.public_header.key_id == "pub"
        assert entry.protected_header.type == "JWT"


class TestMultiSigner:
    """Test multi-signature construction."""

    def test_one_entry_per_signer_in_order(self, rsa_key, ec_key, hmac_key):
        multi = MultiSigner([
            RsaSigner("RS256", rsa_key),
            EcdsaSigner("ES256", ec_key),
        ])
        multi.add_signer(HmacSigner("HS512", hmac_key))

        message = multi.sign(b"shared payload")

        assert message.payload == b"shared payload"
        assert [s.protected_header.algorithm for s in message.signatures] == [
            "RS256", "ES256", "HS512",
        ]

    def test_first_failure_aborts(self, rsa_key, hmac_key):
        """A failing signer surfaces its own error; no partial message."""
        multi = MultiSigner([
            HmacSigner("HS256", hmac_key),
            RsaSigner("RS256", None),
            RsaSigner("RS256", rsa_key),
        ])

        with pytest.raises(MissingPrivateKeyError):
            multi.sign(b"payload")

    def test_no_signers(self):
        message = MultiSigner().sign(b"payload")

        assert message.signatures == []


class TestGetSigner:
    """Test the signer factory function."""

    def test_get_rsa_signer(self, rsa_key):
        signer = get_signer("PS384", rsa_key)

        assert isinstance(signer, RsaSigner)
        assert signer.algorithm == SignatureAlgorithm.PS384

    def test_get_ecdsa_signer(self, ec_key):
        assert isinstance(get_signer("ES256", ec_key), EcdsaSigner)

    def test_get_hmac_signer(self, hmac_key):
        assert isinstance(get_signer(SignatureAlgorithm.HS256, hmac_key), HmacSigner)

    def test_unknown_algorithm(self, hmac_key):
        with pytest.raises(UnsupportedAlgorithmError):
            get_signer("HS999", hmac_key)

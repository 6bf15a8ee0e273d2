"""
Pytest Configuration and Fixtures
"""

import os
import sys
import pytest

from cryptography.hazmat.primitives.asymmetric import ec, rsa

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(__file__)), 'src'))

from jws.config import reset_settings  # noqa: E402


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Run every test against default settings."""
    for name in list(os.environ):
        if name.startswith("JWS_"):
            monkeypatch.delenv(name)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture(scope="session")
def rsa_key():
    """RSA private key used for signing."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def other_rsa_key():
    """Unrelated RSA private key."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def ec_key():
    """P-256 private key."""
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture(scope="session")
def other_ec_key():
    """Unrelated P-256 private key."""
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture(scope="session")
def ec_p384_key():
    return ec.generate_private_key(ec.SECP384R1())


@pytest.fixture(scope="session")
def ec_p521_key():
    return ec.generate_private_key(ec.SECP521R1())


@pytest.fixture
def hmac_key():
    """Shared secret for HMAC."""
    return b"a-shared-secret-that-is-at-least-32-bytes!"

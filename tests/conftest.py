"""Pytest configuration and shared fixtures for eryph-clientruntime tests."""

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from eryph_clientruntime.testing import FakeEnvironment, MockTokenEndpoint


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    """Auto-cleanup: Clear test-related environment variables before each test.

    This prevents test pollution when testing secret resolution.
    """
    import os

    test_prefixes = ("TEST_", "ERYPH_")

    for key in list(os.environ.keys()):
        if any(key.startswith(prefix) for prefix in test_prefixes):
            monkeypatch.delenv(key, raising=False)

    yield


@pytest.fixture(scope="session")
def rsa_private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_key_pem(rsa_private_key) -> str:
    """PEM encoded RSA key, as found in ``.eryph/private/<client>.key``."""
    return rsa_private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()


@pytest.fixture
def environment():
    return FakeEnvironment()


@pytest.fixture
def token_endpoint():
    return MockTokenEndpoint(access_token="tok1")


@pytest.fixture
def test_config():
    """Configuration ``test`` with one secret-based client."""
    return {
        "endpoints": {
            "identity": "https://test.local/identity",
            "compute": "https://test.local/compute",
        },
        "clients": [{"id": "client-a", "name": "Client A", "secret": "secret"}],
    }

"""Shared test fixtures for clientauth."""

import json
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey
from cryptography.x509.oid import NameOID

from clientauth.crypto.keys import material_from_private_key, material_to_jwk
from clientauth.crypto.types import PrivateKeyMaterial

FIXED_NOW = datetime(2026, 1, 15, 12, 0, tzinfo=UTC)


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> None:
        self.now += timedelta(**delta)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(FIXED_NOW)


@pytest.fixture(scope="session")
def rsa_key() -> RSAPrivateKey:
    """One RSA-2048 key shared by the whole session."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def other_rsa_key() -> RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def key_material(rsa_key: RSAPrivateKey) -> PrivateKeyMaterial:
    return material_from_private_key(rsa_key, kid="abc")


@pytest.fixture
def private_jwk(key_material: PrivateKeyMaterial) -> dict[str, str]:
    return material_to_jwk(key_material)


@pytest.fixture
def private_jwk_json(private_jwk: dict[str, str]) -> str:
    return json.dumps(private_jwk)


@pytest.fixture
def pkcs8_pem(rsa_key: RSAPrivateKey) -> str:
    return rsa_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()


@pytest.fixture
def certificate_factory(
    rsa_key: RSAPrivateKey,
) -> Callable[..., x509.Certificate]:
    """Build self-signed certificates valid around ``FIXED_NOW`` by default."""

    def _build(
        not_before: datetime = FIXED_NOW - timedelta(days=1),
        not_after: datetime = FIXED_NOW + timedelta(days=365),
        common_name: str = "clientauth-test",
        key: RSAPrivateKey | None = None,
    ) -> x509.Certificate:
        signing_key = key or rsa_key
        name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
        return (
            x509.CertificateBuilder()
            .subject_name(name)
            .issuer_name(name)
            .public_key(signing_key.public_key())
            .serial_number(x509.random_serial_number())
            .not_valid_before(not_before)
            .not_valid_after(not_after)
            .sign(signing_key, hashes.SHA256())
        )

    return _build

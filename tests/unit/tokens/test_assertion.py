"""Tests for client assertion creation."""

from datetime import timedelta

import jwt
import pytest
from conftest import FIXED_NOW, FakeClock
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from clientauth.core.errors import (
    InvalidExpirationError,
    InvalidInputError,
    UnsupportedAlgorithmError,
)
from clientauth.crypto.types import PrivateKeyMaterial
from clientauth.tokens.assertion import AssertionSigner
from clientauth.tokens.types import CLIENT_ASSERTION_TYPE

ISSUER = "https://issuer"
CLIENT_ID = "client-1"


def _claims(token: str) -> dict:
    return jwt.decode(token, options={"verify_signature": False})


@pytest.fixture
def signer(clock: FakeClock) -> AssertionSigner:
    return AssertionSigner(clock=clock)


class TestCreateAssertion:
    """Tests for assertion header and claims."""

    def test_exact_claim_set(
        self, signer: AssertionSigner, key_material: PrivateKeyMaterial
    ) -> None:
        assertion = signer.create_assertion(ISSUER, CLIENT_ID, key_material)
        claims = _claims(assertion.value)
        assert set(claims) == {"sub", "iss", "aud", "iat", "nbf", "exp", "jti"}
        assert claims["sub"] == CLIENT_ID
        assert claims["iss"] == CLIENT_ID
        assert claims["aud"] == ISSUER

    def test_exact_header(
        self, signer: AssertionSigner, key_material: PrivateKeyMaterial
    ) -> None:
        assertion = signer.create_assertion(ISSUER, CLIENT_ID, key_material)
        header = jwt.get_unverified_header(assertion.value)
        assert header == {
            "alg": "RS256",
            "typ": "client-authentication+jwt",
            "kid": "abc",
        }

    def test_time_claims(
        self, signer: AssertionSigner, key_material: PrivateKeyMaterial
    ) -> None:
        assertion = signer.create_assertion(
            ISSUER, CLIENT_ID, key_material, expiry_seconds=30
        )
        claims = _claims(assertion.value)
        now = int(FIXED_NOW.timestamp())
        assert claims["iat"] == now
        assert claims["nbf"] == now
        assert claims["exp"] == now + 30
        assert assertion.expires_at == FIXED_NOW + timedelta(seconds=30)

    def test_default_expiry_is_ten_seconds(
        self, signer: AssertionSigner, key_material: PrivateKeyMaterial
    ) -> None:
        claims = _claims(signer.create_assertion(ISSUER, CLIENT_ID, key_material).value)
        assert claims["exp"] - claims["iat"] == 10

    def test_zero_expiry_allowed(
        self, signer: AssertionSigner, key_material: PrivateKeyMaterial
    ) -> None:
        assertion = signer.create_assertion(
            ISSUER, CLIENT_ID, key_material, expiry_seconds=0
        )
        assert assertion.expires_at == FIXED_NOW

    def test_negative_expiry_rejected(
        self, signer: AssertionSigner, key_material: PrivateKeyMaterial
    ) -> None:
        with pytest.raises(InvalidExpirationError):
            signer.create_assertion(ISSUER, CLIENT_ID, key_material, expiry_seconds=-10)

    def test_assertion_type(
        self, signer: AssertionSigner, key_material: PrivateKeyMaterial
    ) -> None:
        assertion = signer.create_assertion(ISSUER, CLIENT_ID, key_material)
        assert assertion.type == CLIENT_ASSERTION_TYPE

    def test_key_id_override(
        self, signer: AssertionSigner, key_material: PrivateKeyMaterial
    ) -> None:
        assertion = signer.create_assertion(
            ISSUER, CLIENT_ID, key_material, key_id="override"
        )
        assert jwt.get_unverified_header(assertion.value)["kid"] == "override"

    def test_key_algorithm_used(
        self, signer: AssertionSigner, key_material: PrivateKeyMaterial
    ) -> None:
        key = key_material.model_copy(update={"alg": "PS256"})
        assertion = signer.create_assertion(ISSUER, CLIENT_ID, key)
        assert jwt.get_unverified_header(assertion.value)["alg"] == "PS256"

    def test_unsupported_algorithm(
        self, signer: AssertionSigner, key_material: PrivateKeyMaterial
    ) -> None:
        key = key_material.model_copy(update={"alg": "HS256"})
        with pytest.raises(UnsupportedAlgorithmError):
            signer.create_assertion(ISSUER, CLIENT_ID, key)

    def test_missing_issuer(
        self, signer: AssertionSigner, key_material: PrivateKeyMaterial
    ) -> None:
        with pytest.raises(InvalidInputError):
            signer.create_assertion("", CLIENT_ID, key_material)

    def test_jti_unique(
        self, signer: AssertionSigner, key_material: PrivateKeyMaterial
    ) -> None:
        jtis = {
            _claims(signer.create_assertion(ISSUER, CLIENT_ID, key_material).value)["jti"]
            for _ in range(20)
        }
        assert len(jtis) == 20


class TestAssertionSignature:
    """Tests that assertions verify with the public key."""

    def test_verifies(
        self, key_material: PrivateKeyMaterial, rsa_key: RSAPrivateKey
    ) -> None:
        assertion = AssertionSigner().create_assertion(ISSUER, CLIENT_ID, key_material)
        claims = jwt.decode(
            assertion.value,
            rsa_key.public_key(),
            algorithms=["RS256"],
            audience=ISSUER,
            issuer=CLIENT_ID,
        )
        assert claims["sub"] == CLIENT_ID

    def test_wrong_key_rejected(
        self, key_material: PrivateKeyMaterial, other_rsa_key: RSAPrivateKey
    ) -> None:
        assertion = AssertionSigner().create_assertion(ISSUER, CLIENT_ID, key_material)
        with pytest.raises(jwt.InvalidSignatureError):
            jwt.decode(
                assertion.value,
                other_rsa_key.public_key(),
                algorithms=["RS256"],
                audience=ISSUER,
            )

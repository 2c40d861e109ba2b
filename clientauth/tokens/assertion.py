"""Client assertion creation (RFC 7523 private_key_jwt)."""

from datetime import timedelta

import jwt
import uuid_utils

from clientauth.core.clock import Clock, unix_seconds, utc_now
from clientauth.core.errors import (
    InvalidExpirationError,
    InvalidInputError,
    UnsupportedAlgorithmError,
)
from clientauth.crypto.keys import private_key_from_material
from clientauth.crypto.types import RSA_SIGNING_ALGORITHMS, PrivateKeyMaterial
from clientauth.tokens.types import ClientAssertion

ASSERTION_TOKEN_TYPE = "client-authentication+jwt"
ASSERTION_DEFAULT_TTL = 10


def signing_algorithm(key: PrivateKeyMaterial) -> str:
    """Return the key's algorithm, defaulting to RS256."""
    algorithm = key.signing_algorithm
    if algorithm not in RSA_SIGNING_ALGORITHMS:
        raise UnsupportedAlgorithmError(f"Unsupported signing algorithm: {algorithm}")
    return algorithm


class AssertionSigner:
    """Creates short-lived signed client assertions."""

    def __init__(self, clock: Clock = utc_now) -> None:
        self._clock = clock

    def create_assertion(
        self,
        issuer: str,
        client_id: str,
        key: PrivateKeyMaterial,
        expiry_seconds: int = ASSERTION_DEFAULT_TTL,
        key_id: str | None = None,
    ) -> ClientAssertion:
        """Sign an assertion with ``iss = sub = client_id`` and ``aud = issuer``."""
        if expiry_seconds < 0:
            raise InvalidExpirationError(
                f"Assertion expiry must be >= 0 seconds, got {expiry_seconds}"
            )
        if not issuer:
            raise InvalidInputError("Issuer is required for a client assertion")
        if not client_id:
            raise InvalidInputError("Client id is required for a client assertion")

        algorithm = signing_algorithm(key)
        now = self._clock()
        expires_at = now + timedelta(seconds=expiry_seconds)
        payload = {
            "sub": client_id,
            "iss": client_id,
            "aud": issuer,
            "iat": unix_seconds(now),
            "nbf": unix_seconds(now),
            "exp": unix_seconds(expires_at),
            "jti": str(uuid_utils.uuid7()),
        }
        headers = {"typ": ASSERTION_TOKEN_TYPE}
        kid = key_id or key.kid
        if kid:
            headers["kid"] = kid

        token = jwt.encode(
            payload,
            private_key_from_material(key),
            algorithm=algorithm,
            headers=headers,
        )
        return ClientAssertion(value=token, expires_at=expires_at)

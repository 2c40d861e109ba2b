"""DPoP proof creation (RFC 9449)."""

import hashlib

import jwt
import uuid_utils

from clientauth.core.clock import Clock, unix_seconds, utc_now
from clientauth.core.errors import InvalidInputError
from clientauth.crypto.keys import base64url_encode, private_key_from_material, public_jwk
from clientauth.crypto.types import PrivateKeyMaterial
from clientauth.tokens.assertion import signing_algorithm
from clientauth.tokens.types import DPoPProof

DPOP_TOKEN_TYPE = "dpop+jwt"


def access_token_hash(access_token: str) -> str:
    """base64url(SHA-256(access_token)), the ``ath`` claim value."""
    digest = hashlib.sha256(access_token.encode("utf-8")).digest()
    return base64url_encode(digest)


class DPoPProofGenerator:
    """Creates one proof per HTTP request, embedding only the public key."""

    def __init__(self, clock: Clock = utc_now) -> None:
        self._clock = clock

    def create_proof(
        self,
        http_method: str,
        http_url: str,
        key: PrivateKeyMaterial,
        nonce: str | None = None,
        access_token: str | None = None,
    ) -> DPoPProof:
        """Sign a DPoP proof for ``http_method`` ``http_url``.

        ``nonce`` is the value from the server's ``DPoP-Nonce`` header;
        ``access_token`` binds the proof to a token via the ``ath`` claim.
        """
        if not http_method:
            raise InvalidInputError("HTTP method is required for a DPoP proof")
        if not http_url:
            raise InvalidInputError("HTTP URL is required for a DPoP proof")

        algorithm = signing_algorithm(key)
        now = self._clock()
        jti = str(uuid_utils.uuid7())
        payload: dict[str, str | int] = {
            "jti": jti,
            "htm": http_method,
            "htu": http_url,
            "iat": unix_seconds(now),
        }
        if nonce:
            payload["nonce"] = nonce
        ath = access_token_hash(access_token) if access_token else None
        if ath is not None:
            payload["ath"] = ath

        token = jwt.encode(
            payload,
            private_key_from_material(key),
            algorithm=algorithm,
            headers={"typ": DPOP_TOKEN_TYPE, "jwk": public_jwk(key)},
        )
        return DPoPProof(
            http_method=http_method,
            http_url=http_url,
            issued_at=now,
            jti=jti,
            nonce=nonce or None,
            access_token_hash=ath,
            value=token,
        )

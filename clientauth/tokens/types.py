"""Type definitions for signed client assertions and DPoP proofs."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

CLIENT_ASSERTION_TYPE = "urn:ietf:params:oauth:client-assertion-type:jwt-bearer"


class ClientAssertion(BaseModel):
    """Signed private_key_jwt assertion for one token request."""

    model_config = ConfigDict(frozen=True)

    type: str = CLIENT_ASSERTION_TYPE
    value: str
    expires_at: datetime


class DPoPProof(BaseModel):
    """Proof-of-possession JWT bound to one HTTP request."""

    model_config = ConfigDict(frozen=True)

    http_method: str
    http_url: str
    issued_at: datetime
    jti: str
    nonce: str | None = None
    access_token_hash: str | None = None
    value: str

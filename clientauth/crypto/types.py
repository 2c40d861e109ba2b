"""Type definitions for RSA private keys and JWK output."""

from pydantic import BaseModel, ConfigDict, Field

RSA_SIGNING_ALGORITHMS = frozenset(
    {"RS256", "RS384", "RS512", "PS256", "PS384", "PS512"}
)
DEFAULT_SIGNING_ALGORITHM = "RS256"


class PrivateKeyMaterial(BaseModel):
    """Normalized RSA private key expressed as JWK members (base64url)."""

    model_config = ConfigDict(frozen=True)

    kty: str = "RSA"
    n: str
    e: str
    d: str = Field(repr=False)
    p: str = Field(repr=False)
    q: str = Field(repr=False)
    dp: str = Field(repr=False)
    dq: str = Field(repr=False)
    qi: str = Field(repr=False)
    alg: str | None = None
    kid: str | None = None
    use: str | None = None

    @property
    def signing_algorithm(self) -> str:
        return self.alg or DEFAULT_SIGNING_ALGORITHM


class JwkKeyPair(BaseModel):
    """Serialized public and private JWK for a generated key."""

    public_jwk: str
    private_jwk: str = Field(repr=False)

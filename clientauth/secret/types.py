"""Type definitions for raw secret inputs, classified by format."""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class _SecretText(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str = Field(repr=False)


class JwkJson(_SecretText):
    """Inline JWK JSON object."""

    kind: Literal["jwk_json"] = "jwk_json"


class PemKey(_SecretText):
    """PEM-framed private key (PKCS#1 or PKCS#8)."""

    kind: Literal["pem_key"] = "pem_key"


class Base64Blob(_SecretText):
    """Base64 text expected to decode to a JWK JSON object."""

    kind: Literal["base64_blob"] = "base64_blob"


class CertificateThumbprint(_SecretText):
    """Normalized thumbprint of a certificate in a store."""

    kind: Literal["certificate_thumbprint"] = "certificate_thumbprint"


SecretInput = Annotated[
    JwkJson | PemKey | Base64Blob | CertificateThumbprint,
    Field(discriminator="kind"),
]

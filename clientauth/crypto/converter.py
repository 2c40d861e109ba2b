"""Conversion of certificate and PEM private keys into key material."""

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from clientauth.certs.types import CertificateHandle
from clientauth.core.errors import (
    InvalidInputError,
    NoPrivateKeyAvailableError,
    UnsupportedAlgorithmError,
)
from clientauth.crypto.keys import material_from_private_key
from clientauth.crypto.types import PrivateKeyMaterial


def key_material_from_certificate(handle: CertificateHandle) -> PrivateKeyMaterial:
    """Export a certificate's RSA private key; kid is the thumbprint."""
    if handle.private_key is None:
        raise NoPrivateKeyAvailableError(
            handle.thumbprint,
            f"Certificate {handle.subject} has no private key available",
        )
    if not isinstance(handle.private_key, RSAPrivateKey):
        raise UnsupportedAlgorithmError(
            f"Certificate {handle.thumbprint} does not hold an RSA private key"
        )
    return material_from_private_key(handle.private_key, kid=handle.thumbprint)


def key_material_from_pem(text: str) -> PrivateKeyMaterial:
    """Parse an unencrypted PKCS#1 or PKCS#8 RSA private key."""
    try:
        private_key = serialization.load_pem_private_key(
            text.strip().encode("utf-8"), password=None
        )
    except TypeError as exc:
        raise InvalidInputError("Encrypted PEM private keys are not supported") from exc
    except ValueError as exc:
        raise InvalidInputError(f"Invalid PEM private key: {exc}") from exc
    if not isinstance(private_key, RSAPrivateKey):
        raise UnsupportedAlgorithmError(
            f"Unsupported PEM key type: {type(private_key).__name__}"
        )
    return material_from_private_key(private_key)

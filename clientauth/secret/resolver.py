"""Resolve a configured secret of any supported format into key material."""

import base64
import binascii
import json
import logging

from clientauth.certs.provider import CertificateProvider, normalize_thumbprint
from clientauth.core.errors import InvalidInputError
from clientauth.crypto.converter import (
    key_material_from_certificate,
    key_material_from_pem,
)
from clientauth.crypto.keys import material_from_jwk
from clientauth.crypto.types import PrivateKeyMaterial
from clientauth.secret.detection import detect_secret_format
from clientauth.secret.types import (
    Base64Blob,
    CertificateThumbprint,
    JwkJson,
    PemKey,
)

logger = logging.getLogger(__name__)


def parse_jwk_json(text: str) -> PrivateKeyMaterial:
    """Parse and validate an RSA private JWK JSON document."""
    try:
        jwk = json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvalidInputError(f"Invalid JWK JSON: {exc.msg}") from exc
    if not isinstance(jwk, dict):
        raise InvalidInputError("JWK JSON must be an object")
    return material_from_jwk(jwk)


def _decode_base64_json(text: str) -> str | None:
    """Return the decoded JSON text, or None when it is not Base64 JSON."""
    try:
        decoded = base64.b64decode(text, validate=True).decode("utf-8")
        json.loads(decoded)
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError):
        return None
    return decoded


class SecretResolver:
    """Turns a secret string into a normalized RSA private key.

    Accepts inline JWK JSON, PEM, Base64-encoded JWK JSON, or a certificate
    thumbprint looked up through the injected provider.
    """

    def __init__(self, certificate_provider: CertificateProvider) -> None:
        self._certificate_provider = certificate_provider

    def resolve(self, secret: str) -> PrivateKeyMaterial:
        """Detect the secret format and return the private key it denotes."""
        detected = detect_secret_format(secret)

        if isinstance(detected, JwkJson):
            logger.debug("Resolving secret as JWK JSON")
            return parse_jwk_json(detected.text)

        if isinstance(detected, PemKey):
            logger.debug("Resolving secret as PEM private key")
            return key_material_from_pem(detected.text)

        if isinstance(detected, Base64Blob):
            decoded = _decode_base64_json(detected.text)
            if decoded is not None:
                logger.debug("Resolving secret as Base64-encoded JWK")
                return parse_jwk_json(decoded)
            logger.debug("Base64 secret did not decode to JSON, trying thumbprint")
            detected = CertificateThumbprint(text=normalize_thumbprint(detected.text))

        return self._resolve_thumbprint(detected)

    def _resolve_thumbprint(self, detected: CertificateThumbprint) -> PrivateKeyMaterial:
        logger.debug("Resolving secret as certificate thumbprint")
        handle = self._certificate_provider.get_certificate(detected.text)
        return key_material_from_certificate(handle)

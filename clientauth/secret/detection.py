"""Secret format sniffing."""

import re

from clientauth.certs.provider import normalize_thumbprint
from clientauth.core.errors import InvalidInputError
from clientauth.secret.types import (
    Base64Blob,
    CertificateThumbprint,
    JwkJson,
    PemKey,
    SecretInput,
)

PEM_PREFIX = "-----BEGIN"
BASE64_MIN_LENGTH = 100

_BASE64_ALPHABET = re.compile(r"^[A-Za-z0-9+/]*={0,2}$")


def is_base64_string(value: str) -> bool:
    """Base64 alphabet with at most two padding characters, length % 4 == 0."""
    value = value.strip()
    if not value:
        return False
    return len(value) % 4 == 0 and _BASE64_ALPHABET.match(value) is not None


def detect_secret_format(raw: str) -> SecretInput:
    """Classify a raw secret string. First matching rule wins."""
    if raw is None or not raw.strip():
        raise InvalidInputError("Secret cannot be empty")

    trimmed = raw.strip()
    if trimmed.startswith("{"):
        return JwkJson(text=trimmed)
    if trimmed[: len(PEM_PREFIX)].upper() == PEM_PREFIX:
        return PemKey(text=trimmed)
    if len(trimmed) > BASE64_MIN_LENGTH and is_base64_string(trimmed):
        return Base64Blob(text=trimmed)
    return CertificateThumbprint(text=normalize_thumbprint(trimmed))

"""Certificate lookup by thumbprint with validity checks.

``CertificateProvider`` is the capability interface the secret resolver
depends on. ``DirectoryCertificateProvider`` reads PEM certificates from a
per-location store directory; ``InMemoryCertificateProvider`` holds
certificates supplied by the caller.
"""

import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric.types import PrivateKeyTypes

from clientauth.certs.types import CertificateHandle, StoreLocation
from clientauth.core.clock import Clock, utc_now
from clientauth.core.errors import (
    CertificateExpiredError,
    CertificateNotFoundError,
    CertificateNotYetValidError,
    InvalidInputError,
    NoPrivateKeyAvailableError,
)
from clientauth.core.settings import CertificateStoreSettings
from clientauth.crypto.converter import key_material_from_certificate
from clientauth.crypto.types import PrivateKeyMaterial

logger = logging.getLogger(__name__)

CERTIFICATE_SUFFIXES = frozenset({".pem", ".crt", ".cer"})
KEY_SUFFIX = ".key"

_PEM_BLOCK = re.compile(
    rb"-----BEGIN ([A-Z0-9 ]+)-----.+?-----END \1-----", re.DOTALL
)


def normalize_thumbprint(thumbprint: str) -> str:
    """Strip whitespace and uppercase a thumbprint."""
    return "".join(thumbprint.split()).upper()


def certificate_thumbprint(certificate: x509.Certificate) -> str:
    """SHA-1 over the DER encoding, as certificate stores display it."""
    return certificate.fingerprint(hashes.SHA1()).hex().upper()


def _pem_blocks(data: bytes) -> dict[bytes, bytes]:
    """Return the first PEM block for each label found in ``data``."""
    blocks: dict[bytes, bytes] = {}
    for match in _PEM_BLOCK.finditer(data):
        blocks.setdefault(match.group(1), match.group(0))
    return blocks


def _private_key_block(blocks: dict[bytes, bytes]) -> bytes | None:
    for label, block in blocks.items():
        if label.endswith(b"PRIVATE KEY"):
            return block
    return None


def load_certificate_bundle(
    data: bytes,
) -> tuple[x509.Certificate, PrivateKeyTypes | None]:
    """Parse a PEM holding a certificate and, optionally, its private key."""
    blocks = _pem_blocks(data)
    certificate_block = blocks.get(b"CERTIFICATE")
    if certificate_block is None:
        raise InvalidInputError("PEM bundle contains no certificate")
    key_block = _private_key_block(blocks)
    try:
        certificate = x509.load_pem_x509_certificate(certificate_block)
        private_key = (
            serialization.load_pem_private_key(key_block, password=None)
            if key_block is not None
            else None
        )
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"Invalid PEM certificate bundle: {exc}") from exc
    return certificate, private_key


def certificate_handle(
    certificate: x509.Certificate,
    private_key: PrivateKeyTypes | None,
    store_location: StoreLocation,
) -> CertificateHandle:
    """Build a handle describing a loaded certificate."""
    return CertificateHandle(
        thumbprint=certificate_thumbprint(certificate),
        store_location=store_location,
        subject=certificate.subject.rfc4514_string(),
        not_before=certificate.not_valid_before_utc,
        not_after=certificate.not_valid_after_utc,
        private_key=private_key,
    )


def validate_certificate(handle: CertificateHandle, now: datetime) -> None:
    """Reject certificates outside their validity window or without a key."""
    if now > handle.not_after:
        logger.warning(
            "Certificate %s expired on %s", handle.thumbprint, handle.not_after
        )
        raise CertificateExpiredError(
            handle.thumbprint,
            f"Certificate {handle.subject} has expired on {handle.not_after:%Y-%m-%d %H:%M:%SZ}",
        )
    if now < handle.not_before:
        logger.warning(
            "Certificate %s not valid until %s", handle.thumbprint, handle.not_before
        )
        raise CertificateNotYetValidError(
            handle.thumbprint,
            f"Certificate {handle.subject} is not valid until {handle.not_before:%Y-%m-%d %H:%M:%SZ}",
        )
    if not handle.has_private_key:
        raise NoPrivateKeyAvailableError(
            handle.thumbprint,
            f"Certificate {handle.subject} has no private key available",
        )


class CertificateProvider(ABC):
    """Locates certificates in a store by normalized thumbprint."""

    def __init__(
        self,
        store_location: StoreLocation = StoreLocation.CURRENT_USER,
        clock: Clock = utc_now,
    ) -> None:
        self.store_location = store_location
        self._clock = clock

    @abstractmethod
    def find(self, thumbprint: str) -> CertificateHandle | None:
        """Return the certificate with this thumbprint, or None."""

    def get_certificate(self, thumbprint: str) -> CertificateHandle:
        """Find a certificate and validate it against the current time."""
        normalized = normalize_thumbprint(thumbprint)
        if not normalized:
            raise InvalidInputError("Certificate thumbprint cannot be empty")

        handle = self.find(normalized)
        if handle is None:
            logger.warning(
                "Certificate %s not found in %s store", normalized, self.store_location
            )
            raise CertificateNotFoundError(
                normalized,
                f"No certificate found for thumbprint {normalized} "
                f"in the {self.store_location} store",
            )

        validate_certificate(handle, self._clock())
        logger.info("Found certificate %s (%s)", handle.thumbprint, handle.subject)
        return handle

    def private_key(self, thumbprint: str) -> PrivateKeyMaterial | None:
        """Return the validated certificate's key, or None if absent or keyless."""
        try:
            handle = self.get_certificate(thumbprint)
        except (CertificateNotFoundError, NoPrivateKeyAvailableError):
            return None
        return key_material_from_certificate(handle)


class InMemoryCertificateProvider(CertificateProvider):
    """Certificates held in process memory."""

    def __init__(
        self,
        certificates: Iterable[tuple[x509.Certificate, PrivateKeyTypes | None]] = (),
        store_location: StoreLocation = StoreLocation.CURRENT_USER,
        clock: Clock = utc_now,
    ) -> None:
        super().__init__(store_location, clock)
        self._entries: dict[
            str, tuple[x509.Certificate, PrivateKeyTypes | None]
        ] = {}
        for certificate, private_key in certificates:
            self.add(certificate, private_key)

    def add(
        self,
        certificate: x509.Certificate,
        private_key: PrivateKeyTypes | None = None,
    ) -> str:
        """Store a certificate and return its thumbprint."""
        thumbprint = certificate_thumbprint(certificate)
        self._entries[thumbprint] = (certificate, private_key)
        return thumbprint

    def add_pem(self, data: bytes) -> str:
        """Store a combined certificate and key PEM."""
        return self.add(*load_certificate_bundle(data))

    def find(self, thumbprint: str) -> CertificateHandle | None:
        entry = self._entries.get(normalize_thumbprint(thumbprint))
        if entry is None:
            return None
        certificate, private_key = entry
        return certificate_handle(certificate, private_key, self.store_location)


class DirectoryCertificateProvider(CertificateProvider):
    """Reads PEM certificates from a store directory on every lookup.

    Each ``*.pem``/``*.crt``/``*.cer`` file holds one certificate, optionally
    followed by its private key; otherwise the key is read from a sibling
    ``<stem>.key`` file.
    """

    def __init__(
        self,
        directory: Path,
        store_location: StoreLocation = StoreLocation.CURRENT_USER,
        clock: Clock = utc_now,
    ) -> None:
        super().__init__(store_location, clock)
        self.directory = directory

    @classmethod
    def from_settings(
        cls, settings: CertificateStoreSettings, clock: Clock = utc_now
    ) -> "DirectoryCertificateProvider":
        location = settings.store_location
        return cls(settings.path_for(location), location, clock)

    def find(self, thumbprint: str) -> CertificateHandle | None:
        normalized = normalize_thumbprint(thumbprint)
        if not self.directory.is_dir():
            logger.warning("Certificate store %s does not exist", self.directory)
            return None

        for path in sorted(self.directory.iterdir()):
            if path.suffix.lower() not in CERTIFICATE_SUFFIXES or not path.is_file():
                continue
            try:
                blocks = _pem_blocks(path.read_bytes())
                certificate_block = blocks.get(b"CERTIFICATE")
                if certificate_block is None:
                    continue
                certificate = x509.load_pem_x509_certificate(certificate_block)
            except (OSError, ValueError) as exc:
                logger.warning("Skipping unreadable certificate %s: %s", path, exc)
                continue

            if certificate_thumbprint(certificate) != normalized:
                continue
            private_key = self._load_private_key(path, _private_key_block(blocks))
            return certificate_handle(certificate, private_key, self.store_location)
        return None

    def _load_private_key(
        self, path: Path, key_block: bytes | None
    ) -> PrivateKeyTypes | None:
        if key_block is None:
            key_path = path.with_suffix(KEY_SUFFIX)
            if not key_path.is_file():
                return None
            try:
                key_block = key_path.read_bytes()
            except OSError as exc:
                logger.warning("Cannot read private key %s: %s", key_path, exc)
                return None
        try:
            return serialization.load_pem_private_key(key_block, password=None)
        except (TypeError, ValueError) as exc:
            logger.warning("Cannot load private key for %s: %s", path, exc)
            return None

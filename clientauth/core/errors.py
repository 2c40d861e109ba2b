"""Error kinds raised by key resolution, signing, and discovery."""


class ClientAuthError(Exception):
    """Base exception for client authentication failures."""

    code = "client_auth_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidInputError(ClientAuthError, ValueError):
    """Empty or malformed secret, JWK, or PEM input."""

    code = "invalid_input"


class UnsupportedAlgorithmError(ClientAuthError, ValueError):
    """Key type or signing algorithm outside the RSA family."""

    code = "unsupported_algorithm"


class InvalidExpirationError(ClientAuthError, ValueError):
    """Negative assertion lifetime."""

    code = "invalid_expiration"


class CertificateError(ClientAuthError):
    """Certificate lookup or validation failure."""

    code = "certificate_error"

    def __init__(self, thumbprint: str, message: str) -> None:
        self.thumbprint = thumbprint
        super().__init__(message)


class CertificateNotFoundError(CertificateError):
    code = "certificate_not_found"


class CertificateExpiredError(CertificateError):
    code = "certificate_expired"


class CertificateNotYetValidError(CertificateError):
    code = "certificate_not_yet_valid"


class NoPrivateKeyAvailableError(CertificateError):
    code = "no_private_key_available"


class DiscoveryError(ClientAuthError):
    """Discovery document could not be obtained for an authority."""

    code = "discovery_error"

    def __init__(self, authority: str, message: str) -> None:
        self.authority = authority
        super().__init__(message)


class DiscoveryFetchFailedError(DiscoveryError):
    """Transient fetch failure; a later attempt may succeed."""

    code = "discovery_fetch_failed"


class MalformedAuthorityUrlError(DiscoveryError, ValueError):
    """Authority is not an absolute http(s) URL; never retried."""

    code = "malformed_authority_url"

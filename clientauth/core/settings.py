"""Client authentication settings loaded from environment variables."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from clientauth.certs.types import StoreLocation

ASSERTION_EXPIRATION_DEFAULT = 10
DISCOVERY_CACHE_DURATION_DEFAULT = 86_400
DISCOVERY_TIMEOUT_DEFAULT = 10.0


class AssertionSettings(BaseSettings):
    """Client assertion signing settings."""

    model_config = SettingsConfigDict(env_prefix="CLIENTAUTH_ASSERTION_")

    expiration_seconds: int = Field(default=ASSERTION_EXPIRATION_DEFAULT, ge=0)


class CertificateStoreSettings(BaseSettings):
    """Certificate store location and on-disk paths."""

    model_config = SettingsConfigDict(env_prefix="CLIENTAUTH_CERT_")

    store_location: StoreLocation = StoreLocation.CURRENT_USER
    current_user_path: Path = Path.home() / ".clientauth" / "certs"
    local_machine_path: Path = Path("/etc/clientauth/certs")

    def path_for(self, location: StoreLocation) -> Path:
        """Return the store directory for a location."""
        if location is StoreLocation.LOCAL_MACHINE:
            return self.local_machine_path
        return self.current_user_path


class DiscoverySettings(BaseSettings):
    """Discovery document fetching and caching settings."""

    model_config = SettingsConfigDict(env_prefix="CLIENTAUTH_DISCOVERY_")

    cache_duration_seconds: int = Field(default=DISCOVERY_CACHE_DURATION_DEFAULT, ge=0)
    cache_durations: dict[str, int] = Field(default_factory=dict)
    timeout_seconds: float = Field(default=DISCOVERY_TIMEOUT_DEFAULT, gt=0)

    def cache_duration_for(self, authority: str) -> int:
        """Return the configured TTL in seconds for an authority."""
        key = authority.rstrip("/")
        for configured, seconds in self.cache_durations.items():
            if configured.rstrip("/") == key:
                return seconds
        return self.cache_duration_seconds

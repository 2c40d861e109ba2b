"""OpenID Connect discovery document retrieval."""

from datetime import datetime
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from clientauth.core.errors import DiscoveryFetchFailedError, MalformedAuthorityUrlError

WELL_KNOWN_PATH = "/.well-known/openid-configuration"
ALLOWED_SCHEMES = frozenset({"http", "https"})


class DiscoveryMetadata(BaseModel):
    """Fields read from a .well-known/openid-configuration response."""

    model_config = ConfigDict(extra="ignore")

    issuer: str
    authorization_endpoint: str | None = None
    token_endpoint: str | None = None
    userinfo_endpoint: str | None = None
    jwks_uri: str | None = None
    end_session_endpoint: str | None = None


class DiscoveryDocument(BaseModel):
    """Cached authorization server metadata for one authority."""

    model_config = ConfigDict(frozen=True)

    authority: str
    issuer: str
    authorization_endpoint: str | None = None
    token_endpoint: str | None = None
    userinfo_endpoint: str | None = None
    jwks_uri: str | None = None
    end_session_endpoint: str | None = None
    fetched_at: datetime
    expires_at: datetime

    def is_fresh(self, now: datetime) -> bool:
        return now < self.expires_at


def normalize_authority(authority: str) -> str:
    """Validate an authority URL and strip its trailing slash."""
    if not authority or not authority.strip():
        raise MalformedAuthorityUrlError(str(authority), "Authority URL is empty")
    candidate = authority.strip()
    try:
        url = httpx.URL(candidate)
    except httpx.InvalidURL as exc:
        raise MalformedAuthorityUrlError(
            candidate, f"Malformed authority URL {candidate!r}: {exc}"
        ) from exc
    if url.scheme not in ALLOWED_SCHEMES or not url.host:
        raise MalformedAuthorityUrlError(
            candidate,
            f"Authority must be an absolute http(s) URL, got {candidate!r}",
        )
    if url.query or url.fragment:
        raise MalformedAuthorityUrlError(
            candidate, f"Authority must not carry a query or fragment: {candidate!r}"
        )
    return candidate.rstrip("/")


def discovery_url(authority: str) -> str:
    """Well-known discovery endpoint for an authority."""
    return normalize_authority(authority) + WELL_KNOWN_PATH


def parse_discovery_metadata(authority: str, payload: Any) -> DiscoveryMetadata:
    """Validate a decoded discovery response body."""
    if not isinstance(payload, dict):
        raise DiscoveryFetchFailedError(
            authority, f"Discovery response from {authority} is not a JSON object"
        )
    try:
        return DiscoveryMetadata.model_validate(payload)
    except ValidationError as exc:
        raise DiscoveryFetchFailedError(
            authority, f"Invalid discovery document from {authority}: {exc}"
        ) from exc


async def fetch_discovery_metadata(
    client: httpx.AsyncClient, authority: str
) -> DiscoveryMetadata:
    """GET and validate the discovery document for a normalized authority."""
    url = authority + WELL_KNOWN_PATH
    try:
        response = await client.get(url)
        response.raise_for_status()
        payload = response.json()
    except httpx.HTTPError as exc:
        raise DiscoveryFetchFailedError(
            authority, f"Error retrieving discovery document from {authority}: {exc}"
        ) from exc
    except ValueError as exc:
        raise DiscoveryFetchFailedError(
            authority, f"Discovery response from {authority} is not valid JSON"
        ) from exc
    return parse_discovery_metadata(authority, payload)

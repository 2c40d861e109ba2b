"""End-to-end client assertion creation for a token request."""

import asyncio
import logging

from clientauth.core.errors import ClientAuthError
from clientauth.core.settings import AssertionSettings
from clientauth.crypto.types import PrivateKeyMaterial
from clientauth.oidc.discovery_cache import DiscoveryDocumentCache
from clientauth.secret.resolver import SecretResolver
from clientauth.tokens.assertion import AssertionSigner
from clientauth.tokens.dpop import DPoPProofGenerator
from clientauth.tokens.types import ClientAssertion, DPoPProof

logger = logging.getLogger(__name__)


class ClientAssertionService:
    """Combines discovery, secret resolution, and signing for one client."""

    def __init__(
        self,
        discovery: DiscoveryDocumentCache,
        resolver: SecretResolver,
        signer: AssertionSigner | None = None,
        dpop: DPoPProofGenerator | None = None,
        settings: AssertionSettings | None = None,
    ) -> None:
        self._discovery = discovery
        self._resolver = resolver
        self._signer = signer or AssertionSigner()
        self._dpop = dpop or DPoPProofGenerator()
        self._settings = settings or AssertionSettings()

    async def resolve_key(self, secret: str) -> PrivateKeyMaterial:
        """Resolve a secret off the event loop; certificate stores may block."""
        return await asyncio.to_thread(self._resolver.resolve, secret)

    async def create_client_assertion(
        self,
        authority: str,
        client_id: str,
        secret: str,
        timeout: float | None = None,
    ) -> ClientAssertion:
        """Sign an assertion whose audience is the authority's issuer."""
        try:
            document = await self._discovery.get(authority, timeout=timeout)
            key = await self.resolve_key(secret)
            assertion = self._signer.create_assertion(
                document.issuer,
                client_id,
                key,
                expiry_seconds=self._settings.expiration_seconds,
            )
        except ClientAuthError as exc:
            logger.error(
                "Could not create client assertion for %s at %s: %s",
                client_id,
                authority,
                exc,
            )
            raise
        logger.debug("Created client assertion for %s", client_id)
        return assertion

    def create_dpop_proof(
        self,
        http_method: str,
        http_url: str,
        key: PrivateKeyMaterial,
        nonce: str | None = None,
        access_token: str | None = None,
    ) -> DPoPProof:
        return self._dpop.create_proof(
            http_method, http_url, key, nonce=nonce, access_token=access_token
        )

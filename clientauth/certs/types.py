"""Type definitions for certificate store lookups."""

from datetime import datetime
from enum import StrEnum

from cryptography.hazmat.primitives.asymmetric.types import PrivateKeyTypes
from pydantic import BaseModel, ConfigDict, Field


class StoreLocation(StrEnum):
    """Certificate store scope."""

    CURRENT_USER = "current_user"
    LOCAL_MACHINE = "local_machine"


class CertificateHandle(BaseModel):
    """A certificate found in a store, resolved fresh on every lookup."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    thumbprint: str
    store_location: StoreLocation
    subject: str
    not_before: datetime
    not_after: datetime
    private_key: PrivateKeyTypes | None = Field(default=None, repr=False, exclude=True)

    @property
    def has_private_key(self) -> bool:
        return self.private_key is not None

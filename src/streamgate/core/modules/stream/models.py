"""Stream session and payment log models."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Annotated, Literal
from uuid import UUID

from pydantic import BaseModel, Field

from streamgate.config import Config
from streamgate.core.db import MongoModel
from streamgate.core.modules.track.models import Track
from streamgate.utils import now


class TokenCredential(BaseModel):
    """Session unlocked by a bearer access token issued at settlement."""

    kind: Literal["token"] = "token"
    access_token: str


class LegacyWalletCredential(BaseModel):
    """Session recorded before tokens existed; access follows the payer wallet."""

    kind: Literal["legacy_wallet"] = "legacy_wallet"


Credential = Annotated[TokenCredential | LegacyWalletCredential, Field(discriminator="kind")]


class StreamSession(MongoModel):
    """Time-boxed authorization to stream one track.

    Written once at settlement and never updated. Indexed on
    credential.access_token - unique, track_id, expires_at (TTL housekeeping).
    """

    track_id: str
    payer_address: str | None = None  # Lower-cased wallet address
    credential: Credential
    created_at: datetime = Field(default_factory=now)
    expires_at: datetime

    def is_expired(self, at: datetime) -> bool:
        return at > self.expires_at


class PaymentRecord(MongoModel):
    """Flat audit entry for one settled payment."""

    track_id: str
    stream_id: UUID
    amount: Decimal  # Track price at settlement time
    network: str
    payer_address: str | None = None
    provider_reference: str | None = None  # Facilitator transaction hash
    created_at: datetime = Field(default_factory=now)


@dataclass(frozen=True)
class StreamPolicy:
    """Session lifetime and access rules fixed at startup."""

    ttl: timedelta
    token_bytes: int
    allowed_origins: frozenset[str]

    @classmethod
    def from_config(cls, config: Config) -> "StreamPolicy":
        return cls(
            ttl=timedelta(seconds=config.stream_ttl_seconds),
            token_bytes=config.access_token_bytes,
            allowed_origins=frozenset(origin.lower() for origin in config.allowed_origins),
        )


class IssuedStream(BaseModel):
    """Session descriptor returned once, to the payer, after settlement."""

    stream_id: UUID
    access_token: str
    expires_at: datetime
    tx_hash: str | None = None


@dataclass(frozen=True)
class StreamAccess:
    """Successful validation: the session and the track it unlocks."""

    stream: StreamSession
    track: Track


class StreamStatus(BaseModel):
    """Result of a session check (no bytes delivered)."""

    valid: bool = Field(..., description="Always true; invalid sessions produce an error response")
    stream_id: UUID = Field(..., serialization_alias="streamId")
    track_id: str = Field(..., serialization_alias="trackId")
    expires_at: datetime = Field(..., serialization_alias="expiresAt")
    title: str

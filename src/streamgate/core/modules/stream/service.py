import secrets
from functools import cached_property
from uuid import UUID, uuid4

import structlog

from streamgate.core.core import Service
from streamgate.core.modules.payment.models import Settled
from streamgate.core.modules.stream.access import check_access
from streamgate.core.modules.stream.models import (
    IssuedStream,
    PaymentRecord,
    StreamAccess,
    StreamPolicy,
    StreamSession,
    StreamStatus,
    TokenCredential,
)
from streamgate.core.modules.track.models import Track
from streamgate.errors import AccessDeniedError, DenyReason, StreamExpiredError, StreamNotFoundError
from streamgate.utils import now

logger = structlog.get_logger(__name__)

DENY_MESSAGES = {
    DenyReason.BAD_ORIGIN: "Unauthorized: invalid referrer",
    DenyReason.BAD_TOKEN: "Invalid access token",
    DenyReason.BAD_WALLET: "Unauthorized: wallet address does not match",
}


class StreamService(Service):
    """Issues stream sessions after settlement and validates them on every request."""

    @cached_property
    def policy(self) -> StreamPolicy:
        return StreamPolicy.from_config(self.core.config)

    async def issue(self, track: Track, settled: Settled) -> IssuedStream:
        """Create the session and payment record for a settled payment."""
        issued_at = now()
        access_token = secrets.token_hex(self.policy.token_bytes)
        stream = StreamSession(
            id=uuid4(),
            track_id=track.id,
            payer_address=settled.payer_address,
            credential=TokenCredential(access_token=access_token),
            created_at=issued_at,
            expires_at=issued_at + self.policy.ttl,
        )
        payment = PaymentRecord(
            track_id=track.id,
            stream_id=stream.id,
            amount=track.price,
            network=settled.network,
            payer_address=settled.payer_address,
            provider_reference=settled.provider_reference,
            created_at=issued_at,
        )
        await self.stores.streams.create(stream, payment)
        logger.info("Issued stream", stream_id=stream.id, track_id=track.id, expires_at=stream.expires_at.isoformat())

        return IssuedStream(
            stream_id=stream.id,
            access_token=access_token,
            expires_at=stream.expires_at,
            tx_hash=settled.provider_reference,
        )

    async def validate(
        self, stream_id: UUID, token: str | None = None, wallet: str | None = None, referer: str | None = None
    ) -> StreamAccess:
        """Authorize a request against a stream session.

        Raises:
            StreamNotFoundError: No session with this id
            StreamExpiredError: Session is past its expiry, whatever the credentials
            AccessDeniedError: Referer not allowed, or token/wallet mismatch
            NotFoundError: The session's track no longer exists
        """
        stream = await self.stores.streams.get_by_id(stream_id)
        reason = check_access(stream, token, wallet, referer, self.policy.allowed_origins, now())
        if reason is not None or stream is None:
            logger.debug("Stream access denied", stream_id=stream_id, reason=reason)
            raise _deny_error(reason or DenyReason.NOT_FOUND)

        track = await self.core.services.track.get_track(stream.track_id)
        return StreamAccess(stream=stream, track=track)

    async def check(
        self, stream_id: UUID, token: str | None = None, wallet: str | None = None, referer: str | None = None
    ) -> StreamStatus:
        """Validate a session without delivering anything, for restoring client state."""
        access = await self.validate(stream_id, token, wallet, referer)
        return StreamStatus(
            valid=True,
            stream_id=access.stream.id,
            track_id=access.track.id,
            expires_at=access.stream.expires_at,
            title=access.track.title,
        )


def _deny_error(reason: DenyReason) -> Exception:
    if reason == DenyReason.NOT_FOUND:
        return StreamNotFoundError()
    if reason == DenyReason.EXPIRED:
        return StreamExpiredError()
    return AccessDeniedError(DENY_MESSAGES[reason], reason=reason)

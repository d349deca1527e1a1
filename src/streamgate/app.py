from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from uuid import UUID

import httpx

from streamgate.config import Config
from streamgate.core.core import Core, Stores
from streamgate.core.modules.delivery.files import FileDelivery, prepare_delivery
from streamgate.core.modules.payment.models import PaymentRequired, ResourceDescriptor, Settled, SettlementFailed
from streamgate.core.modules.stream.models import IssuedStream, StreamStatus
from streamgate.core.modules.track.models import Track
from streamgate.errors import (
    AccessDeniedError,
    DenyReason,
    PaymentRequiredError,
    StreamExpiredError,
    StreamNotFoundError,
    UpstreamError,
    ValidationError,
)


class App:
    """Facade for all application operations, the only entry point of the web layer."""

    def __init__(
        self, config: Config, stores: Stores | None = None, http_transport: httpx.AsyncBaseTransport | None = None
    ) -> None:
        self._core = Core(config, stores, http_transport)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    async def purchase_stream(
        self, track_id: str, claim: str | None, resource: ResourceDescriptor, payer_hint: str | None = None
    ) -> tuple[IssuedStream, Settled]:
        """Settle a payment for one play of a track and issue the stream session.

        Raises:
            NotFoundError: Unknown track
            ValidationError: Track cannot receive payments
            PaymentRequiredError: No usable claim; carries the challenge
            UpstreamError: Facilitator unreachable or timed out
        """
        track = await self._core.services.track.get_track(track_id)
        result = await self._core.services.payment.settle(track, claim, resource, payer_hint)
        match result:
            case PaymentRequired(challenge=challenge):
                raise PaymentRequiredError(challenge.to_wire(), challenge.error or "Payment required")
            case SettlementFailed(reason="not payable"):
                raise ValidationError("Track artist wallet address not found")
            case SettlementFailed(reason=reason):
                raise UpstreamError(reason)
        issued = await self._core.services.stream.issue(track, result)
        return issued, result

    async def open_stream(
        self,
        stream_id: str,
        token: str | None,
        wallet: str | None,
        referer: str | None,
        range_header: str | None,
    ) -> FileDelivery:
        """Validate a stream session and prepare delivery of its track's audio."""
        access = await self._core.services.stream.validate(_parse_stream_id(stream_id), token, wallet, referer)
        audio_path = self._core.services.asset.resolve_audio_file(access.track)
        return prepare_delivery(audio_path, range_header, protected=True)

    async def check_stream(
        self, stream_id: str, token: str | None, wallet: str | None, referer: str | None = None
    ) -> StreamStatus:
        """Report whether a stream session is still usable.

        An expired session is reported as a denial so players drop it and buy again.

        Raises:
            StreamNotFoundError: Unknown or malformed session id
            AccessDeniedError: Expired session, or bad token, wallet or referer
        """
        try:
            return await self._core.services.stream.check(_parse_stream_id(stream_id), token, wallet, referer)
        except StreamExpiredError as e:
            raise AccessDeniedError(str(e), reason=DenyReason.EXPIRED) from e

    async def open_public_file(self, relative_path: str, range_header: str | None) -> FileDelivery:
        """Prepare delivery of a public cover image."""
        path: Path = await self._core.services.asset.resolve_public_file(relative_path)
        return prepare_delivery(path, range_header, protected=False)

    async def add_track(self, track: Track) -> Track:
        """Register a track (used by ingestion tooling)."""
        return await self._core.services.track.add_track(track)


def _parse_stream_id(stream_id: str) -> UUID:
    try:
        return UUID(stream_id)
    except ValueError as e:
        raise StreamNotFoundError from e

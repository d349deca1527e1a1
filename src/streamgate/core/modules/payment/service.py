from typing import Any

import httpx
import structlog

from streamgate.core.core import Service
from streamgate.core.modules.payment.models import (
    X402_VERSION,
    PaymentChallenge,
    PaymentRequired,
    PaymentRequirements,
    ResourceDescriptor,
    SettleResponse,
    Settled,
    SettlementFailed,
    SettlementResult,
)
from streamgate.core.modules.payment.x402 import (
    InvalidPaymentHeaderError,
    claim_payer,
    decode_payment_header,
    to_atomic_units,
)
from streamgate.core.modules.track.models import Track
from streamgate.utils import normalize_address

logger = structlog.get_logger(__name__)


class PaymentService(Service):
    """Settles payment claims for tracks through an x402 facilitator.

    Each call makes at most one settle request and never retries; idempotency of a
    claim is the facilitator's business.
    """

    _client: httpx.AsyncClient | None = None

    async def on_start(self) -> None:
        config = self.core.config
        headers = {}
        if config.facilitator_api_key:
            headers["Authorization"] = f"Bearer {config.facilitator_api_key}"
        self._client = httpx.AsyncClient(
            base_url=config.facilitator_url.rstrip("/"),
            headers=headers,
            timeout=httpx.Timeout(config.settlement_timeout_seconds),
            transport=self.core.http_transport,
        )

    async def on_stop(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("PaymentService not started")
        return self._client

    def build_requirements(self, track: Track, resource: ResourceDescriptor) -> PaymentRequirements:
        """Payment terms for one play of ``track``, priced from the track as it is now."""
        config = self.core.config
        return PaymentRequirements(
            network=config.payment_network,
            max_amount_required=to_atomic_units(track.price, config.payment_asset_decimals),
            resource=resource.url,
            description=f"Access to stream: {track.title}",
            pay_to=track.payout_address or "",
            max_timeout_seconds=config.settlement_timeout_seconds,
            asset=config.payment_asset,
            extra={"name": config.payment_asset_name, "version": config.payment_asset_version},
        )

    async def settle(
        self, track: Track, claim: str | None, resource: ResourceDescriptor, payer_hint: str | None = None
    ) -> SettlementResult:
        """Settle ``claim`` (a base64 X-PAYMENT header) for one play of ``track``.

        Returns PaymentRequired with a challenge when there is no usable claim or the
        facilitator rejects it, SettlementFailed when the track cannot be paid or the
        facilitator cannot be reached, and Settled on success.
        """
        if not track.is_payable:
            logger.warning("Track has no payout address", track_id=track.id)
            return SettlementFailed(reason="not payable")

        requirements = self.build_requirements(track, resource)
        if claim is None:
            return self._challenge(requirements)

        try:
            payload = decode_payment_header(claim)
        except InvalidPaymentHeaderError as e:
            return self._challenge(requirements, str(e))

        mismatch = _claim_mismatch(payload, requirements)
        if mismatch is not None:
            return self._challenge(requirements, mismatch)

        settle_request = {
            "x402Version": X402_VERSION,
            "paymentPayload": payload,
            "paymentRequirements": requirements.to_wire(),
        }
        logger.info(
            "Settling payment", track_id=track.id, method=resource.method, resource=resource.url, network=requirements.network
        )
        try:
            response = await self.client.post("/settle", json=settle_request)
        except httpx.TimeoutException:
            logger.warning("Facilitator timed out", track_id=track.id)
            return SettlementFailed(reason="timeout")
        except httpx.HTTPError as e:
            logger.warning("Facilitator unreachable", track_id=track.id, error=str(e))
            return SettlementFailed(reason="facilitator unavailable")

        if response.status_code >= 500:
            logger.warning("Facilitator error", track_id=track.id, status_code=response.status_code)
            return SettlementFailed(reason="facilitator unavailable")

        receipt = _parse_settle_response(response)
        if response.status_code != 200 or receipt is None or not receipt.success:
            reason = (receipt.error_reason if receipt else None) or "Settlement failed"
            logger.info("Settlement rejected", track_id=track.id, status_code=response.status_code, reason=reason)
            return self._challenge(requirements, reason)

        # Signed claim first, the unsigned body hint last
        payer = claim_payer(payload) or normalize_address(receipt.payer) or normalize_address(payer_hint)
        if payer is None:
            logger.warning("Settled payment has no payer address", track_id=track.id)
        logger.info("Payment settled", track_id=track.id, payer=payer, transaction=receipt.transaction)
        return Settled(
            payer_address=payer,
            provider_reference=receipt.transaction,
            network=receipt.network or requirements.network,
            receipt=receipt,
        )

    def _challenge(self, requirements: PaymentRequirements, error: str | None = None) -> PaymentRequired:
        return PaymentRequired(challenge=PaymentChallenge(accepts=[requirements], error=error))


def _claim_mismatch(payload: dict[str, Any], requirements: PaymentRequirements) -> str | None:
    """Describe why a claim cannot satisfy ``requirements``, or None if it might."""
    for key in ("scheme", "network"):
        if payload.get(key) != getattr(requirements, key):
            return f"Payment {key} does not match: expected {getattr(requirements, key)}"
    return None


def _parse_settle_response(response: httpx.Response) -> SettleResponse | None:
    try:
        data = response.json()
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    try:
        return SettleResponse.model_validate(data)
    except ValueError:
        return None

"""Payment challenge and settlement result models (x402 v1 wire shapes)."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

X402_VERSION = 1


class X402Model(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ResourceDescriptor(BaseModel):
    """The exact method and URL a payment buys access to."""

    method: str
    url: str


class PaymentRequirements(X402Model):
    """One accepted way to pay, offered in a 402 challenge."""

    scheme: str = "exact"
    network: str
    max_amount_required: str  # Price in the asset's atomic units
    resource: str
    description: str
    mime_type: str = "application/json"
    pay_to: str
    max_timeout_seconds: int
    asset: str
    extra: dict[str, Any] = Field(default_factory=dict)


class PaymentChallenge(X402Model):
    """Body of a 402 response."""

    x402_version: int = Field(default=X402_VERSION, alias="x402Version")
    accepts: list[PaymentRequirements]
    error: str | None = None


class SettleResponse(X402Model):
    """Facilitator answer to a settle request."""

    success: bool
    error_reason: str | None = None
    transaction: str | None = None
    network: str | None = None
    payer: str | None = None


class Settled(BaseModel):
    """Payment confirmed by the facilitator."""

    payer_address: str | None
    provider_reference: str | None
    network: str
    receipt: SettleResponse


class PaymentRequired(BaseModel):
    """No usable claim yet; the challenge tells the client what to sign."""

    challenge: PaymentChallenge


class SettlementFailed(BaseModel):
    """Settlement could not be attempted or completed."""

    reason: str


SettlementResult = Settled | PaymentRequired | SettlementFailed

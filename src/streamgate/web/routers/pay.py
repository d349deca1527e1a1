from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Body, Header, Response
from pydantic import BaseModel, ConfigDict, Field

from streamgate.core.modules.payment.x402 import encode_payment_response
from streamgate.web.deps import AppDep, ResourceDep
from streamgate.web.openapi import ErrorResponse

router = APIRouter(tags=["pay"])


class PayRequest(BaseModel):
    """Optional purchase details sent by the front end."""

    wallet_address: str | None = Field(None, alias="walletAddress", description="Payer wallet address")

    model_config = ConfigDict(populate_by_name=True)


class PayResponse(BaseModel):
    """Stream session issued for a settled payment. The access token is only ever returned here."""

    success: bool = True
    stream_id: UUID = Field(..., serialization_alias="streamId")
    access_token: str = Field(..., serialization_alias="accessToken")
    expires_at: datetime = Field(..., serialization_alias="expiresAt")
    tx_hash: str | None = Field(None, serialization_alias="txHash")
    message: str = "Payment successful"


@router.post(
    "/pay/{track_id}",
    summary="Purchase a stream",
    description=(
        "Settle an x402 payment for one play of a track. Without a valid `X-PAYMENT` header the "
        "response is 402 with the payment requirements to sign; retry with the signed payload."
    ),
    operation_id="purchaseStream",
    responses={
        200: {"description": "Payment settled, stream session issued"},
        400: {"model": ErrorResponse, "description": "Track cannot receive payments"},
        402: {"description": "Payment required: x402 challenge"},
        404: {"model": ErrorResponse, "description": "Track not found"},
        502: {"model": ErrorResponse, "description": "Payment facilitator unavailable"},
        504: {"model": ErrorResponse, "description": "Payment facilitator timed out"},
    },
)
async def purchase_stream(
    track_id: str,
    app: AppDep,
    resource: ResourceDep,
    response: Response,
    x_payment: Annotated[str | None, Header(alias="X-PAYMENT")] = None,
    body: Annotated[PayRequest | None, Body()] = None,
) -> PayResponse:
    payer_hint = body.wallet_address if body else None
    issued, settled = await app.purchase_stream(track_id, x_payment, resource, payer_hint)
    response.headers["X-PAYMENT-RESPONSE"] = encode_payment_response(settled.receipt.to_wire())
    return PayResponse(
        stream_id=issued.stream_id,
        access_token=issued.access_token,
        expires_at=issued.expires_at,
        tx_hash=issued.tx_hash,
    )

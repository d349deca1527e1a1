from typing import Annotated

from fastapi import APIRouter, Body, Header
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from streamgate.core.modules.delivery.files import FileDelivery
from streamgate.core.modules.stream.models import StreamStatus
from streamgate.web.deps import AppDep, RefererDep
from streamgate.web.openapi import ErrorResponse

router = APIRouter(tags=["stream"])

STREAM_RESPONSES: dict[int | str, dict[str, object]] = {
    200: {"description": "Full audio file", "content": {"audio/mpeg": {}}},
    206: {"description": "Requested byte range of the audio file", "content": {"audio/mpeg": {}}},
    403: {"model": ErrorResponse, "description": "Bad token, wallet or referer"},
    404: {"model": ErrorResponse, "description": "Stream, track or audio file not found"},
    410: {"model": ErrorResponse, "description": "Stream expired"},
    416: {"model": ErrorResponse, "description": "Range not satisfiable"},
}


class StreamRequest(BaseModel):
    """Credentials and range sent in the body by older clients."""

    token: str | None = Field(None, description="Stream access token")
    range: str | None = Field(None, description="Range header value, e.g. bytes=0-")


def delivery_response(delivery: FileDelivery) -> StreamingResponse:
    return StreamingResponse(delivery.iter_bytes(), status_code=delivery.status_code, headers=delivery.headers)


@router.get(
    "/stream/check/{stream_id}",
    summary="Check stream session",
    description="Confirm a stored stream session is still valid without streaming any audio.",
    operation_id="checkStream",
    responses={
        200: {"description": "Session is valid"},
        403: {"model": ErrorResponse, "description": "Expired session, or bad token, wallet or referer"},
        404: {"model": ErrorResponse, "description": "Stream or track not found"},
    },
)
async def check_stream(
    stream_id: str,
    app: AppDep,
    referer: RefererDep,
    token: str | None = None,
    wallet: str | None = None,
    x_payer_wallet: Annotated[str | None, Header()] = None,
) -> StreamStatus:
    return await app.check_stream(stream_id, token, wallet or x_payer_wallet, referer)


@router.get(
    "/stream/{stream_id}",
    summary="Stream audio",
    description="Stream a purchased track. Supports a single `Range: bytes=start-end` for seeking.",
    operation_id="streamAudio",
    response_class=StreamingResponse,
    responses=STREAM_RESPONSES,
)
async def stream_audio(
    stream_id: str,
    app: AppDep,
    referer: RefererDep,
    token: str | None = None,
    wallet: str | None = None,
    range_header: Annotated[str | None, Header(alias="Range")] = None,
) -> StreamingResponse:
    delivery = await app.open_stream(stream_id, token, wallet, referer, range_header)
    return delivery_response(delivery)


@router.post(
    "/stream/{stream_id}",
    summary="Stream audio (body credentials)",
    description="Same as the GET endpoint, for clients that send the token and range in a JSON body.",
    operation_id="streamAudioPost",
    response_class=StreamingResponse,
    responses=STREAM_RESPONSES,
)
async def stream_audio_post(
    stream_id: str,
    app: AppDep,
    referer: RefererDep,
    token: str | None = None,
    wallet: str | None = None,
    range_header: Annotated[str | None, Header(alias="Range")] = None,
    body: Annotated[StreamRequest | None, Body()] = None,
) -> StreamingResponse:
    body_token = body.token if body else None
    body_range = body.range if body else None
    delivery = await app.open_stream(stream_id, body_token or token, wallet, referer, body_range or range_header)
    return delivery_response(delivery)

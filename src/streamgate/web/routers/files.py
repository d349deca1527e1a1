from typing import Annotated

from fastapi import APIRouter, Header
from fastapi.responses import StreamingResponse

from streamgate.web.deps import AppDep
from streamgate.web.openapi import ErrorResponse
from streamgate.web.routers.stream import delivery_response

router = APIRouter(tags=["files"])


@router.get(
    "/file/{file_path:path}",
    summary="Download public file",
    description="Serve a track cover image (`<trackId>_cover.<ext>`). Audio files are never served here.",
    operation_id="downloadFile",
    response_class=StreamingResponse,
    responses={
        200: {"description": "Cover image", "content": {"image/jpeg": {}, "image/png": {}}},
        400: {"model": ErrorResponse, "description": "Invalid file path"},
        403: {"model": ErrorResponse, "description": "Audio file, non-cover file, or path outside uploads"},
        404: {"model": ErrorResponse, "description": "Track or file not found"},
        416: {"model": ErrorResponse, "description": "Range not satisfiable"},
    },
)
async def download_file(
    file_path: str, app: AppDep, range_header: Annotated[str | None, Header(alias="Range")] = None
) -> StreamingResponse:
    delivery = await app.open_public_file(file_path, range_header)
    return delivery_response(delivery)

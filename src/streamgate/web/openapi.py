from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from pydantic import BaseModel, Field


def set_custom_openapi(app: FastAPI) -> None:
    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title="StreamGate API",
            version="0.1.0",
            summary="Pay-per-play access control for streamed audio",
            routes=app.routes,
        )

        openapi_schema.setdefault("components", {})["securitySchemes"] = {
            "X402Payment": {
                "type": "apiKey",
                "in": "header",
                "name": "X-PAYMENT",
                "description": "Base64-encoded x402 payment payload signed against the 402 challenge",
            },
            "StreamToken": {
                "type": "apiKey",
                "in": "query",
                "name": "token",
                "description": "Access token returned once when the stream was purchased",
            },
        }

        # Only purchase and streaming endpoints carry credentials
        secured = {"/api/pay/{track_id}": "X402Payment", "/api/stream/{stream_id}": "StreamToken"}
        for path, scheme in secured.items():
            for operation in openapi_schema["paths"].get(path, {}).values():
                operation["security"] = [{scheme: []}]

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[method-assign]


class ErrorResponse(BaseModel):
    """Standard error response format."""

    message: str = Field(..., description="Human-readable error message")
    type: str = Field(..., description="Machine-readable error type")
    reason: str | None = Field(None, description="Denial reason for stream access errors")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"message": "Stream not found", "type": "not_found"},
                {"message": "Invalid access token", "type": "access_denied", "reason": "BAD_TOKEN"},
                {"message": "Stream expired", "type": "stream_expired", "reason": "EXPIRED"},
            ]
        }
    }

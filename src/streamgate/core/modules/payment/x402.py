"""Encoding helpers for x402 payment headers."""

import base64
import binascii
import json
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from streamgate.utils import normalize_address

# Claims larger than this are rejected before decoding
MAX_PAYMENT_HEADER_BYTES = 16 * 1024


class InvalidPaymentHeaderError(ValueError):
    """Raised when an X-PAYMENT header cannot be decoded into a payment payload."""


def to_atomic_units(price: Decimal, decimals: int) -> str:
    """Convert a decimal price into the integer amount of the smallest token unit."""
    scaled = (price * (Decimal(10) ** decimals)).to_integral_value(rounding=ROUND_HALF_UP)
    return str(int(scaled))


def decode_payment_header(header: str) -> dict[str, Any]:
    """Decode a base64 JSON ``X-PAYMENT`` header."""
    if len(header) > MAX_PAYMENT_HEADER_BYTES:
        raise InvalidPaymentHeaderError("Payment header too large")
    try:
        payload = json.loads(base64.b64decode(header, validate=True))
    except (binascii.Error, ValueError) as e:
        raise InvalidPaymentHeaderError(f"Invalid payment header: {e}") from e
    if not isinstance(payload, dict):
        raise InvalidPaymentHeaderError("Invalid payment header: payload must be an object")
    return payload


def encode_payment_response(data: dict[str, Any]) -> str:
    """Encode a settlement receipt for the ``X-PAYMENT-RESPONSE`` header."""
    return base64.b64encode(json.dumps(data, separators=(",", ":")).encode()).decode()


def claim_payer(payload: dict[str, Any]) -> str | None:
    """Wallet that signed the claim, if the payload names one."""
    inner = payload.get("payload")
    if not isinstance(inner, dict):
        return None
    authorization = inner.get("authorization")
    if isinstance(authorization, dict) and isinstance(authorization.get("from"), str):
        return normalize_address(authorization["from"])
    return None

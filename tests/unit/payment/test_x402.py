"""Tests for x402 header helpers."""

import base64
import json
from decimal import Decimal

import pytest

from streamgate.core.modules.payment.x402 import (
    InvalidPaymentHeaderError,
    claim_payer,
    decode_payment_header,
    encode_payment_response,
    to_atomic_units,
)


class TestAtomicUnits:
    """Tests for price conversion."""

    @pytest.mark.parametrize(
        ("price", "decimals", "expected"),
        [
            (Decimal("2.50"), 6, "2500000"),
            (Decimal("0.001"), 6, "1000"),
            (Decimal("1"), 18, "1000000000000000000"),
            (Decimal("0.0000005"), 6, "1"),  # half rounds up
        ],
    )
    def test_conversion(self, price, decimals, expected):
        assert to_atomic_units(price, decimals) == expected


class TestDecodePaymentHeader:
    """Tests for X-PAYMENT decoding."""

    def test_valid_header(self):
        header = base64.b64encode(json.dumps({"scheme": "exact"}).encode()).decode()
        assert decode_payment_header(header) == {"scheme": "exact"}

    @pytest.mark.parametrize("header", ["not base64!", base64.b64encode(b"{broken").decode(), base64.b64encode(b"[1]").decode()])
    def test_invalid_header(self, header):
        with pytest.raises(InvalidPaymentHeaderError):
            decode_payment_header(header)

    def test_oversized_header(self):
        with pytest.raises(InvalidPaymentHeaderError, match="too large"):
            decode_payment_header("A" * 20000)

    def test_response_header_decodes_back(self):
        header = encode_payment_response({"success": True, "transaction": "0x1"})
        assert json.loads(base64.b64decode(header)) == {"success": True, "transaction": "0x1"}


class TestClaimPayer:
    """Tests for extracting the signer of a claim."""

    def test_authorization_from(self):
        assert claim_payer({"payload": {"authorization": {"from": "0xABC"}}}) == "0xabc"

    def test_missing_parts(self):
        assert claim_payer({}) is None
        assert claim_payer({"payload": "x"}) is None
        assert claim_payer({"payload": {"authorization": {}}}) is None

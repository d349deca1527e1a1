"""End-to-end tests of the HTTP surface on in-memory stores."""

import base64
import json
from datetime import UTC, datetime, timedelta
from uuid import uuid4

import httpx
import pytest
from fastapi.testclient import TestClient

from streamgate.app import App
from streamgate.core.modules.stream.models import LegacyWalletCredential, StreamSession
from streamgate.web.server import create_fastapi_app
from tests.factories import AUDIO_BYTES, PAYER_ADDRESS, TRACK_ID, TX_HASH, make_claim


@pytest.fixture
def client(config, stores, track, facilitator):
    app = App(config, stores, http_transport=facilitator.transport)
    with TestClient(create_fastapi_app(app, config)) as client:
        client.portal.call(app.add_track, track)
        yield client


@pytest.fixture
def purchase(client):
    """Buy one stream and return the JSON body."""
    response = client.post(f"/api/pay/{TRACK_ID}", headers={"X-PAYMENT": make_claim()})
    assert response.status_code == 200
    return response.json()


@pytest.fixture
def legacy_stream(stores) -> StreamSession:
    """A session recorded before access tokens, bound to the payer wallet."""
    issued_at = datetime.now(UTC)
    stream = StreamSession(
        id=uuid4(),
        track_id=TRACK_ID,
        payer_address=PAYER_ADDRESS.lower(),
        credential=LegacyWalletCredential(),
        created_at=issued_at,
        expires_at=issued_at + timedelta(minutes=10),
    )
    stores.streams.streams[stream.id] = stream
    return stream


class TestPay:
    """Tests for POST /api/pay/{track_id}."""

    def test_challenge_without_claim(self, client, facilitator):
        response = client.post(f"/api/pay/{TRACK_ID}")

        assert response.status_code == 402
        body = response.json()
        assert body["x402Version"] == 1
        assert body["accepts"][0]["maxAmountRequired"] == "2500000"
        assert body["accepts"][0]["resource"] == f"http://testserver/api/pay/{TRACK_ID}"
        assert facilitator.requests == []

    def test_resource_follows_forwarded_proto(self, client):
        response = client.post(f"/api/pay/{TRACK_ID}", headers={"X-Forwarded-Proto": "https"})

        assert response.json()["accepts"][0]["resource"] == f"https://testserver/api/pay/{TRACK_ID}"

    def test_settled_payment_issues_stream(self, client, stores):
        before = datetime.now().astimezone()
        response = client.post(
            f"/api/pay/{TRACK_ID}", headers={"X-PAYMENT": make_claim()}, json={"walletAddress": PAYER_ADDRESS}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["txHash"] == TX_HASH
        assert len(body["accessToken"]) == 64
        expires_at = datetime.fromisoformat(body["expiresAt"])
        assert before + timedelta(seconds=599) < expires_at <= datetime.now().astimezone() + timedelta(seconds=600)

        receipt = json.loads(base64.b64decode(response.headers["X-PAYMENT-RESPONSE"]))
        assert receipt["transaction"] == TX_HASH

        assert len(stores.streams.streams) == 1
        assert len(stores.streams.payments) == 1

    def test_unknown_track(self, client):
        response = client.post("/api/pay/nope", headers={"X-PAYMENT": make_claim()})

        assert response.status_code == 404
        assert response.json()["type"] == "not_found"

    def test_track_without_payout_address(self, client, stores, track, facilitator):
        client.portal.call(stores.tracks.insert, track.model_copy(update={"id": "unpaid", "payout_address": None}))

        response = client.post("/api/pay/unpaid", headers={"X-PAYMENT": make_claim()})

        assert response.status_code == 400
        assert response.json()["message"] == "Track artist wallet address not found"
        assert facilitator.requests == []
        assert stores.streams.streams == {}

    def test_challenge_is_not_cached(self, client):
        response = client.post(f"/api/pay/{TRACK_ID}")

        assert response.status_code == 402
        assert "no-store" in response.headers["cache-control"]

    def test_facilitator_timeout(self, client, facilitator, stores):
        facilitator.error = httpx.ReadTimeout("timed out")
        response = client.post(f"/api/pay/{TRACK_ID}", headers={"X-PAYMENT": make_claim()})

        assert response.status_code == 504
        assert stores.streams.streams == {}
        assert stores.streams.payments == []


class TestStream:
    """Tests for GET/POST /api/stream/{stream_id}."""

    def test_full_body(self, client, purchase):
        response = client.get(f"/api/stream/{purchase['streamId']}", params={"token": purchase["accessToken"]})

        assert response.status_code == 200
        assert response.headers["content-length"] == "1000"
        assert response.headers["content-type"] == "audio/mpeg"
        assert response.headers["cache-control"] == "no-cache, no-store, must-revalidate, private"
        assert response.headers["x-frame-options"] == "DENY"
        assert response.content == AUDIO_BYTES

    def test_range(self, client, purchase):
        response = client.get(
            f"/api/stream/{purchase['streamId']}",
            params={"token": purchase["accessToken"]},
            headers={"Range": "bytes=0-99"},
        )

        assert response.status_code == 206
        assert response.headers["content-range"] == "bytes 0-99/1000"
        assert response.headers["content-length"] == "100"
        assert response.content == AUDIO_BYTES[:100]

    def test_seek_repeats_without_repurchase(self, client, purchase):
        for start in (0, 400, 900):
            response = client.get(
                f"/api/stream/{purchase['streamId']}",
                params={"token": purchase["accessToken"]},
                headers={"Range": f"bytes={start}-"},
            )
            assert response.status_code == 206
            assert response.content == AUDIO_BYTES[start:]

    def test_unsatisfiable_range(self, client, purchase):
        response = client.get(
            f"/api/stream/{purchase['streamId']}",
            params={"token": purchase["accessToken"]},
            headers={"Range": "bytes=0-10,20-30"},
        )

        assert response.status_code == 416
        assert response.headers["content-range"] == "bytes */1000"
        assert response.headers["cache-control"] == "no-cache, no-store, must-revalidate, private"
        assert response.headers["pragma"] == "no-cache"

    def test_bad_token(self, client, purchase):
        response = client.get(f"/api/stream/{purchase['streamId']}", params={"token": purchase["accessToken"][:-1] + "z"})

        assert response.status_code == 403
        assert response.json()["reason"] == "BAD_TOKEN"
        assert "no-store" in response.headers["cache-control"]

    def test_foreign_referer(self, client, purchase):
        response = client.get(
            f"/api/stream/{purchase['streamId']}",
            params={"token": purchase["accessToken"]},
            headers={"Referer": "https://evil.example/player"},
        )

        assert response.status_code == 403
        assert response.json()["reason"] == "BAD_ORIGIN"

    def test_allowed_referer(self, client, purchase):
        response = client.get(
            f"/api/stream/{purchase['streamId']}",
            params={"token": purchase["accessToken"]},
            headers={"Referer": "https://x402music.live/track/1"},
        )

        assert response.status_code == 200

    def test_referer_with_default_port(self, client, purchase):
        response = client.get(
            f"/api/stream/{purchase['streamId']}",
            params={"token": purchase["accessToken"]},
            headers={"Referer": "https://x402music.live:443/play"},
        )

        assert response.status_code == 200

    def test_legacy_session_by_wallet(self, client, legacy_stream):
        response = client.get(f"/api/stream/{legacy_stream.id}", params={"wallet": PAYER_ADDRESS.upper()})

        assert response.status_code == 200
        assert response.content == AUDIO_BYTES

    def test_legacy_session_other_wallet(self, client, legacy_stream):
        response = client.get(f"/api/stream/{legacy_stream.id}", params={"wallet": "0x" + "9" * 40})

        assert response.status_code == 403
        assert response.json()["reason"] == "BAD_WALLET"

    def test_unknown_and_malformed_ids(self, client):
        assert client.get("/api/stream/00000000-0000-4000-8000-000000000000", params={"token": "x"}).status_code == 404
        assert client.get("/api/stream/not-a-uuid", params={"token": "x"}).status_code == 404

    def test_expired(self, client, purchase, monkeypatch):
        expires_at = datetime.fromisoformat(purchase["expiresAt"])
        monkeypatch.setattr("streamgate.core.modules.stream.service.now", lambda: expires_at + timedelta(seconds=1))

        response = client.get(f"/api/stream/{purchase['streamId']}", params={"token": purchase["accessToken"]})

        assert response.status_code == 410
        assert response.json()["reason"] == "EXPIRED"
        assert "no-store" in response.headers["cache-control"]

    def test_post_with_body_credentials(self, client, purchase):
        response = client.post(
            f"/api/stream/{purchase['streamId']}", json={"token": purchase["accessToken"], "range": "bytes=10-19"}
        )

        assert response.status_code == 206
        assert response.content == AUDIO_BYTES[10:20]


class TestCheck:
    """Tests for GET /api/stream/check/{stream_id}."""

    def test_valid(self, client, purchase):
        response = client.get(f"/api/stream/check/{purchase['streamId']}", params={"token": purchase["accessToken"]})

        assert response.status_code == 200
        body = response.json()
        assert body["valid"] is True
        assert body["trackId"] == TRACK_ID
        assert body["streamId"] == purchase["streamId"]
        assert body["title"] == "Night Drive"
        assert "accessToken" not in body

    def test_missing_token(self, client, purchase):
        response = client.get(f"/api/stream/check/{purchase['streamId']}")

        assert response.status_code == 403

    def test_expired_session_is_forbidden(self, client, purchase, monkeypatch):
        expires_at = datetime.fromisoformat(purchase["expiresAt"])
        monkeypatch.setattr("streamgate.core.modules.stream.service.now", lambda: expires_at + timedelta(seconds=1))

        response = client.get(f"/api/stream/check/{purchase['streamId']}", params={"token": purchase["accessToken"]})

        assert response.status_code == 403
        assert response.json()["reason"] == "EXPIRED"

    def test_wallet_from_header(self, client, legacy_stream):
        response = client.get(f"/api/stream/check/{legacy_stream.id}", headers={"X-Payer-Wallet": PAYER_ADDRESS})

        assert response.status_code == 200
        assert response.json()["streamId"] == str(legacy_stream.id)

    def test_wrong_wallet_from_header(self, client, legacy_stream):
        response = client.get(f"/api/stream/check/{legacy_stream.id}", headers={"X-Payer-Wallet": "0x" + "9" * 40})

        assert response.status_code == 403
        assert response.json()["reason"] == "BAD_WALLET"


class TestPublicFiles:
    """Tests for GET /api/file/{path}."""

    def test_cover(self, client):
        response = client.get(f"/api/file/{TRACK_ID}_cover.jpg")

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/jpeg"
        assert response.content == b"\xff\xd8\xff\xe0cover"

    def test_audio_blocked(self, client):
        response = client.get(f"/api/file/{TRACK_ID}.mp3")

        assert response.status_code == 403

    def test_traversal_blocked(self, client):
        response = client.get("/api/file/..%2F..%2Fetc%2Fpasswd")

        assert response.status_code in (403, 404)

    def test_nul_byte_rejected(self, client):
        response = client.get(f"/api/file/{TRACK_ID}%00_cover.jpg")

        assert response.status_code == 400

    def test_cover_of_unknown_track(self, client, uploads):
        (uploads / "unknown_cover.jpg").write_bytes(b"\xff\xd8img")

        response = client.get("/api/file/unknown_cover.jpg")

        assert response.status_code == 404

    def test_cover_range(self, client):
        response = client.get(f"/api/file/{TRACK_ID}_cover.jpg", headers={"Range": "bytes=0-3"})

        assert response.status_code == 206
        assert response.headers["content-range"] == "bytes 0-3/9"
        assert response.headers["accept-ranges"] == "bytes"
        assert response.content == b"\xff\xd8\xff\xe0"


class TestService:
    """Tests for service-level endpoints and headers."""

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_request_id_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "abc123"})

        assert response.headers["x-request-id"] == "abc123"
        assert client.get("/health").headers["x-request-id"]

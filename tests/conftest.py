"""Shared pytest fixtures."""

from decimal import Decimal
from pathlib import Path

import pytest

from streamgate.config import Config
from streamgate.core.core import Core, Stores
from streamgate.core.modules.track.models import Track
from tests.factories import AUDIO_BYTES, PAYOUT_ADDRESS, TRACK_ID, FakeFacilitator


@pytest.fixture
def uploads(tmp_path) -> Path:
    """Uploads directory holding one track's audio and cover."""
    root = tmp_path / "uploads"
    root.mkdir()
    (root / f"{TRACK_ID}.mp3").write_bytes(AUDIO_BYTES)
    (root / f"{TRACK_ID}_cover.jpg").write_bytes(b"\xff\xd8\xff\xe0cover")
    return root


@pytest.fixture
def config(uploads) -> Config:
    return Config(
        _env_file=None,
        uploads_path=str(uploads),
        facilitator_url="https://facilitator.test",
        allowed_origins=["x402music.live", "localhost:3000"],
    )


@pytest.fixture
def track() -> Track:
    return Track(
        id=TRACK_ID,
        title="Night Drive",
        artist="The Testers",
        price=Decimal("2.50"),
        payout_address=PAYOUT_ADDRESS,
        audio_file=f"/uploads/{TRACK_ID}.mp3",
        cover_file=f"{TRACK_ID}_cover.jpg",
    )


@pytest.fixture
def facilitator() -> FakeFacilitator:
    return FakeFacilitator()


@pytest.fixture
def stores() -> Stores:
    return Stores.memory()


@pytest.fixture
async def core(config, stores, track, facilitator):
    """Started core on in-memory stores with the track registered."""
    core = Core(config, stores, http_transport=facilitator.transport)
    async with core.lifespan():
        await core.services.track.add_track(track)
        yield core

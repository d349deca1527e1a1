"""Tests for file delivery preparation and chunked reads."""

import pytest

from streamgate.core.modules.delivery.files import iter_file_range, prepare_delivery
from streamgate.core.modules.delivery.media import content_type_for, is_audio_file
from streamgate.errors import NotFoundError, RangeNotSatisfiableError


@pytest.fixture
def asset(tmp_path):
    path = tmp_path / "song.mp3"
    path.write_bytes(bytes(i % 251 for i in range(1000)))
    return path


class TestContentType:
    """Tests for extension based content types."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("a.mp3", "audio/mpeg"),
            ("a.WAV", "audio/wav"),
            ("a.ogg", "audio/ogg"),
            ("cover.jfif", "image/jpeg"),
            ("cover.png", "image/png"),
            ("archive.bin", "application/octet-stream"),
            ("noext", "application/octet-stream"),
        ],
    )
    def test_mapping(self, name, expected):
        assert content_type_for(name) == expected

    def test_audio_detection(self):
        assert is_audio_file("x.FLAC")
        assert is_audio_file("x_cover.m4a")
        assert not is_audio_file("x_cover.jpg")


class TestPrepareDelivery:
    """Tests for status codes and headers."""

    def test_full_body(self, asset):
        delivery = prepare_delivery(asset, None, protected=True)

        assert delivery.status_code == 200
        assert delivery.headers["Content-Length"] == "1000"
        assert delivery.headers["Content-Type"] == "audio/mpeg"
        assert "Content-Range" not in delivery.headers
        assert b"".join(delivery.iter_bytes()) == asset.read_bytes()

    def test_partial_body(self, asset):
        delivery = prepare_delivery(asset, "bytes=0-99", protected=True)

        assert delivery.status_code == 206
        assert delivery.headers["Content-Range"] == "bytes 0-99/1000"
        assert delivery.headers["Content-Length"] == "100"
        assert b"".join(delivery.iter_bytes()) == asset.read_bytes()[:100]

    def test_protected_headers(self, asset):
        headers = prepare_delivery(asset, None, protected=True).headers

        assert headers["Cache-Control"] == "no-cache, no-store, must-revalidate, private"
        assert headers["Content-Disposition"] == "inline"
        assert headers["X-Content-Type-Options"] == "nosniff"
        assert headers["X-Frame-Options"] == "DENY"
        assert headers["Referrer-Policy"] == "no-referrer"
        assert headers["Accept-Ranges"] == "bytes"

    def test_public_headers_are_minimal(self, asset):
        headers = prepare_delivery(asset, None, protected=False).headers

        assert headers["Accept-Ranges"] == "bytes"
        assert "Cache-Control" not in headers

    def test_missing_file(self, tmp_path):
        with pytest.raises(NotFoundError):
            prepare_delivery(tmp_path / "missing.mp3", None, protected=True)

    def test_bad_range(self, asset):
        with pytest.raises(RangeNotSatisfiableError):
            prepare_delivery(asset, "bytes=2000-", protected=True)


class TestIterFileRange:
    """Tests for chunked reads."""

    def test_small_chunks_cover_exact_slice(self, asset):
        chunks = list(iter_file_range(asset, 10, 109, chunk_size=30))

        assert [len(chunk) for chunk in chunks] == [30, 30, 30, 10]
        assert b"".join(chunks) == asset.read_bytes()[10:110]

    def test_early_close_releases_handle(self, asset):
        chunks = iter_file_range(asset, 0, 999, chunk_size=10)
        next(chunks)
        chunks.close()
        with pytest.raises(StopIteration):
            next(chunks)

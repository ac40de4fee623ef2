"""
Tests for reading audio through TidalClient.open_stream.
"""

import aiohttp
import pytest

from tidal_client.exceptions import (
    NetworkError,
    NoPrimaryUrlError,
    StreamInitializationError
)
from tidal_client.models.catalog_models import AudioQuality, TrackStream

from conftest import FakeResponse


@pytest.fixture
def track_stream():
    """Stream descriptor with one CDN URL."""
    return TrackStream(
        track_id=1,
        audio_quality=AudioQuality.LOSSLESS,
        urls=["https://cdn.example/1.flac", "https://cdn.example/1-backup.flac"]
    )


async def read_all(iterator):
    return [chunk async for chunk in iterator]


class TestOpenStream:
    """Test the byte stream handle."""

    @pytest.mark.asyncio
    async def test_yields_chunks_from_primary_url(self, make_client, track_stream):
        client = make_client([FakeResponse(chunks=[b"fLaC", b"\x00" * 16])])

        chunks = await read_all(client.open_stream(track_stream, chunk_size=16))

        assert chunks == [b"fLaC", b"\x00" * 16]
        request = client.session.requests[0]
        assert request.url == "https://cdn.example/1.flac"
        assert "Authorization" not in request.headers

    @pytest.mark.asyncio
    async def test_no_url_raises(self, make_client):
        client = make_client([])
        stream = TrackStream(track_id=1, audio_quality=AudioQuality.HIGH, urls=[])

        assert stream.primary_url() is None
        with pytest.raises(NoPrimaryUrlError):
            await read_all(client.open_stream(stream))

        assert client.session.requests == []

    @pytest.mark.asyncio
    async def test_error_status_raises_initialization_error(self, make_client, track_stream):
        client = make_client([FakeResponse(status=403)])

        with pytest.raises(StreamInitializationError):
            await read_all(client.open_stream(track_stream))

    @pytest.mark.asyncio
    async def test_connection_failure_raises_network_error(self, make_client, track_stream):
        client = make_client([aiohttp.ClientPayloadError("connection lost")])

        with pytest.raises(NetworkError):
            await read_all(client.open_stream(track_stream))

    @pytest.mark.asyncio
    async def test_chunk_size_must_be_positive(self, make_client, track_stream):
        client = make_client([])

        with pytest.raises(ValueError):
            await read_all(client.open_stream(track_stream, chunk_size=0))

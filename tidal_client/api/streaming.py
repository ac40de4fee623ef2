"""
Audio Streaming

Reads the audio bytes behind a TrackStream. Stream URLs are pre-signed, so
no credentials are attached and no refresh can happen here.
"""

import asyncio
from typing import AsyncIterator

import aiohttp
import structlog

from ..exceptions import (
    NetworkError,
    NoPrimaryUrlError,
    RequestTimeoutError,
    StreamInitializationError
)
from ..models.catalog_models import TrackStream

logger = structlog.get_logger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024


async def iter_track_stream(
    session: aiohttp.ClientSession,
    track_stream: TrackStream,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    read_timeout: float = 30.0
) -> AsyncIterator[bytes]:
    """
    Yield the audio bytes of a track stream in chunks.

    Args:
        session: Session to read with
        track_stream: Descriptor from ``TidalClient.track_stream``
        chunk_size: Maximum bytes per chunk
        read_timeout: Seconds to wait for each socket read

    Raises:
        NoPrimaryUrlError: the descriptor carries no URL
        StreamInitializationError: the CDN answered with an error status
        NetworkError: the connection failed mid-stream
    """
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    url = track_stream.primary_url()
    if url is None:
        raise NoPrimaryUrlError()

    log = logger.bind(track_id=track_stream.track_id, audio_quality=track_stream.audio_quality.value)
    log.debug("Opening audio stream")

    # Whole downloads can take far longer than one API call
    timeout = aiohttp.ClientTimeout(total=None, sock_read=read_timeout)
    total_bytes = 0

    try:
        async with session.get(url, timeout=timeout) as response:
            if response.status >= 400:
                log.warning("Audio stream rejected", status=response.status)
                raise StreamInitializationError(
                    f"Stream for track {track_stream.track_id} returned HTTP {response.status}"
                )

            async for chunk in response.content.iter_chunked(chunk_size):
                total_bytes += len(chunk)
                yield chunk
    except asyncio.TimeoutError as e:
        raise RequestTimeoutError(f"Audio stream for track {track_stream.track_id} timed out") from e
    except aiohttp.ClientError as e:
        log.warning("Audio stream failed", error=str(e), bytes_read=total_bytes)
        raise NetworkError(f"Audio stream for track {track_stream.track_id} failed: {e}") from e

    log.debug("Audio stream finished", bytes_read=total_bytes)

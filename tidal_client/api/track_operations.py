"""
Track Operations

Track lookups, recommendations, stream descriptors, playback info and the
user's favorite tracks.
"""

from typing import Union

import structlog

from ..models.catalog_models import (
    AudioQuality,
    FavoriteTrack,
    Order,
    OrderDirection,
    Page,
    SuggestedTrack,
    Track,
    TrackDashPlaybackInfo,
    TrackPlaybackInfo,
    TrackStream
)

logger = structlog.get_logger(__name__)


def _quality_param(audio_quality: Union[AudioQuality, str]) -> str:
    return AudioQuality(audio_quality).value


class TrackOperations:
    """Track endpoints, mixed into TidalClient."""

    async def track(self, track_id: int) -> Track:
        """Get track information by ID."""
        return await self._get_model(
            Track,
            f"tracks/{track_id}",
            self._context_params()
        )

    async def track_recommendations(
        self,
        track_id: int,
        offset: int = 0,
        limit: int = 5
    ) -> Page[SuggestedTrack]:
        """
        Get tracks TIDAL suggests alongside a track.

        Args:
            track_id: Seed track ID
            offset: Number of suggestions to skip
            limit: Maximum number of suggestions

        Returns:
            Page of suggested tracks with the sources behind each one
        """
        return await self._get_model(
            Page[SuggestedTrack],
            f"tracks/{track_id}/recommendations",
            self._paged_params(offset, limit)
        )

    async def track_stream(
        self,
        track_id: int,
        audio_quality: Union[AudioQuality, str] = AudioQuality.HIGH
    ) -> TrackStream:
        """
        Get the stream descriptor for a track.

        The returned ``TrackStream`` carries signed URLs; pass it to
        ``open_stream`` to read the audio bytes.
        """
        params = self._context_params(
            audioquality=_quality_param(audio_quality),
            urlusagemode="STREAM",
            assetpresentation="FULL"
        )
        return await self._get_model(
            TrackStream,
            f"tracks/{track_id}/urlpostpaywall",
            params
        )

    async def track_playback_info(
        self,
        track_id: int,
        audio_quality: Union[AudioQuality, str] = AudioQuality.HIGH
    ) -> TrackPlaybackInfo:
        """Get playback info (manifest, replay gain) for a track."""
        params = self._context_params(
            audioquality=_quality_param(audio_quality),
            playbackmode="STREAM",
            assetpresentation="FULL"
        )
        return await self._get_model(
            TrackPlaybackInfo,
            f"tracks/{track_id}/playbackinfo",
            params
        )

    async def track_dash_playback_info(
        self,
        track_id: int,
        audio_quality: Union[AudioQuality, str] = AudioQuality.HI_RES_LOSSLESS
    ) -> TrackDashPlaybackInfo:
        """Get playback info whose manifest is a DASH MPD."""
        params = self._context_params(
            audioquality=_quality_param(audio_quality),
            playbackmode="STREAM",
            assetpresentation="FULL"
        )
        return await self._get_model(
            TrackDashPlaybackInfo,
            f"tracks/{track_id}/playbackinfopostpaywall",
            params
        )

    async def favorite_tracks(
        self,
        offset: int = 0,
        limit: int = 100,
        order: Order = Order.DATE,
        order_direction: OrderDirection = OrderDirection.DESC
    ) -> Page[FavoriteTrack]:
        """List the authenticated user's favorite tracks."""
        user_id = self._require_user_id()
        params = self._paged_params(
            offset,
            limit,
            order=order,
            orderDirection=order_direction
        )
        return await self._get_model(
            Page[FavoriteTrack],
            f"users/{user_id}/favorites/tracks",
            params
        )

    async def add_favorite_track(self, track_id: int) -> None:
        user_id = self._require_user_id()
        await self._authorized_request(
            "POST",
            f"users/{user_id}/favorites/tracks",
            params=self._context_params(trackId=track_id)
        )
        logger.debug("Track added to favorites", track_id=track_id)

    async def remove_favorite_track(self, track_id: int) -> None:
        user_id = self._require_user_id()
        await self._authorized_request(
            "DELETE",
            f"users/{user_id}/favorites/tracks/{track_id}",
            params=self._context_params()
        )
        logger.debug("Track removed from favorites", track_id=track_id)

"""
Playlist Operations

Playlist lookups, playlist editing and recommendations.

Edits use optimistic concurrency: TIDAL hands out an ETag with every
playlist response and expects it back as ``If-None-Match`` on changes.
"""

from typing import Iterable

import structlog

from ..exceptions import PlaylistTrackNotFoundError
from ..models.catalog_models import (
    Page,
    Playlist,
    PlaylistRecommendationItem,
    Track
)

logger = structlog.get_logger(__name__)


class PlaylistOperations:
    """Playlist endpoints, mixed into TidalClient."""

    async def playlist(self, playlist_id: str) -> Playlist:
        """Get playlist information; ``etag`` is filled from the response header."""
        return await self._get_model(
            Playlist,
            f"playlists/{playlist_id}",
            self._context_params()
        )

    async def playlist_tracks(
        self,
        playlist_id: str,
        offset: int = 0,
        limit: int = 100
    ) -> Page[Track]:
        """Get one page of a playlist's tracks."""
        return await self._get_model(
            Page[Track],
            f"playlists/{playlist_id}/tracks",
            self._paged_params(offset, limit)
        )

    async def create_playlist(self, title: str, description: str = "") -> Playlist:
        """
        Create a playlist owned by the authenticated user.

        Args:
            title: Playlist title
            description: Playlist description

        Returns:
            The new playlist, including its ETag
        """
        user_id = self._require_user_id()
        playlist = await self._get_model(
            Playlist,
            f"users/{user_id}/playlists",
            self._context_params(title=title, description=description),
            method="POST"
        )
        logger.info("Playlist created", playlist_id=playlist.uuid, title=title)
        return playlist

    async def add_tracks_to_playlist(
        self,
        playlist_id: str,
        playlist_etag: str,
        track_ids: Iterable[int],
        add_dupes: bool = False
    ) -> None:
        """
        Append tracks to a playlist.

        Args:
            playlist_id: Playlist UUID
            playlist_etag: ETag of the playlist as last seen
            track_ids: Tracks to append
            add_dupes: Add tracks already on the playlist instead of failing
        """
        track_ids = [str(track_id) for track_id in track_ids]
        params = self._context_params(
            trackIds=",".join(track_ids),
            onDupes="ADD" if add_dupes else "FAIL"
        )
        await self._authorized_request(
            "POST",
            f"playlists/{playlist_id}/items",
            params=params,
            etag=playlist_etag
        )
        logger.debug("Tracks added to playlist", playlist_id=playlist_id, track_count=len(track_ids))

    async def remove_track_from_playlist_by_index(
        self,
        playlist_id: str,
        playlist_etag: str,
        index: int
    ) -> None:
        """Remove the track at a zero-based position."""
        if index < 0:
            raise ValueError(f"index must be >= 0, got {index}")

        await self._authorized_request(
            "DELETE",
            f"playlists/{playlist_id}/items/{index}",
            params=self._context_params(),
            etag=playlist_etag
        )
        logger.debug("Track removed from playlist", playlist_id=playlist_id, index=index)

    async def remove_track_from_playlist(
        self,
        playlist_id: str,
        playlist_etag: str,
        track_id: int
    ) -> None:
        """
        Remove the first occurrence of a track from a playlist.

        Pages through the playlist to find the track's position.

        Raises:
            PlaylistTrackNotFoundError: the track is not on the playlist
        """
        offset = 0
        while True:
            page = await self.playlist_tracks(playlist_id, offset=offset)

            for position, track in enumerate(page.items):
                if track.id == track_id:
                    await self.remove_track_from_playlist_by_index(
                        playlist_id,
                        playlist_etag,
                        offset + position
                    )
                    return

            if not page.items or page.num_left() == 0:
                raise PlaylistTrackNotFoundError(playlist_id, track_id)

            offset += len(page.items)

    async def user_playlists(self, offset: int = 0, limit: int = 100) -> Page[Playlist]:
        """List playlists owned by the authenticated user."""
        user_id = self._require_user_id()
        return await self._get_model(
            Page[Playlist],
            f"users/{user_id}/playlists",
            self._paged_params(offset, limit)
        )

    async def playlist_recommendations(
        self,
        playlist_id: str,
        offset: int = 0,
        limit: int = 50
    ) -> Page[Track]:
        """Get tracks TIDAL recommends adding to a playlist."""
        page = await self._get_model(
            Page[PlaylistRecommendationItem],
            f"playlists/{playlist_id}/recommendations/items",
            self._paged_params(offset, limit)
        )

        return Page[Track](
            items=[recommendation.item for recommendation in page.items],
            offset=page.offset,
            limit=page.limit,
            total=page.total,
            etag=page.etag
        )

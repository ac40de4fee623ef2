"""
Artist Operations

Artist lookups, artist discographies and the user's favorite artists.
"""

from typing import Optional

import structlog

from ..models.catalog_models import (
    Album,
    AlbumType,
    Artist,
    FavoriteArtist,
    Order,
    OrderDirection,
    Page
)

logger = structlog.get_logger(__name__)


class ArtistOperations:
    """Artist endpoints, mixed into TidalClient."""

    async def artist(self, artist_id: int) -> Artist:
        """Get artist information by ID."""
        return await self._get_model(
            Artist,
            f"artists/{artist_id}",
            self._context_params()
        )

    async def artist_albums(
        self,
        artist_id: int,
        album_type: Optional[AlbumType] = None,
        offset: int = 0,
        limit: int = 100
    ) -> Page[Album]:
        """
        Get an artist's albums.

        Args:
            artist_id: Artist ID
            album_type: Restrict to a release type (sent as ``filter``)
            offset: Number of albums to skip
            limit: Maximum number of albums

        Returns:
            Page of albums
        """
        params = self._paged_params(offset, limit)
        if album_type is not None:
            params["filter"] = AlbumType(album_type)

        return await self._get_model(
            Page[Album],
            f"artists/{artist_id}/albums",
            params
        )

    async def favorite_artists(
        self,
        offset: int = 0,
        limit: int = 100,
        order: Order = Order.DATE,
        order_direction: OrderDirection = OrderDirection.DESC
    ) -> Page[FavoriteArtist]:
        """List the authenticated user's favorite artists."""
        user_id = self._require_user_id()
        params = self._paged_params(
            offset,
            limit,
            order=order,
            orderDirection=order_direction
        )
        return await self._get_model(
            Page[FavoriteArtist],
            f"users/{user_id}/favorites/artists",
            params
        )

    async def add_favorite_artist(self, artist_id: int) -> None:
        user_id = self._require_user_id()
        await self._authorized_request(
            "POST",
            f"users/{user_id}/favorites/artists",
            params=self._context_params(artistId=artist_id)
        )
        logger.debug("Artist added to favorites", artist_id=artist_id)

    async def remove_favorite_artist(self, artist_id: int) -> None:
        user_id = self._require_user_id()
        await self._authorized_request(
            "DELETE",
            f"users/{user_id}/favorites/artists/{artist_id}",
            params=self._context_params()
        )
        logger.debug("Artist removed from favorites", artist_id=artist_id)

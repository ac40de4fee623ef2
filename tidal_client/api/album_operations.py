"""
Album Operations

Album lookups, album track listings and the user's favorite albums.
"""

import structlog

from ..models.catalog_models import (
    Album,
    FavoriteAlbum,
    Order,
    OrderDirection,
    Page,
    Track
)

logger = structlog.get_logger(__name__)


class AlbumOperations:
    """Album endpoints, mixed into TidalClient."""

    async def album(self, album_id: int) -> Album:
        """Get album information by ID."""
        return await self._get_model(
            Album,
            f"albums/{album_id}",
            self._context_params()
        )

    async def album_tracks(
        self,
        album_id: int,
        offset: int = 0,
        limit: int = 100
    ) -> Page[Track]:
        """
        Get the tracks of an album.

        Args:
            album_id: Album ID
            offset: Number of tracks to skip
            limit: Maximum number of tracks

        Returns:
            Page of tracks in album order
        """
        return await self._get_model(
            Page[Track],
            f"albums/{album_id}/tracks",
            self._paged_params(offset, limit)
        )

    async def favorite_albums(
        self,
        offset: int = 0,
        limit: int = 100,
        order: Order = Order.DATE,
        order_direction: OrderDirection = OrderDirection.DESC
    ) -> Page[FavoriteAlbum]:
        """List the authenticated user's favorite albums."""
        user_id = self._require_user_id()
        params = self._paged_params(
            offset,
            limit,
            order=order,
            orderDirection=order_direction
        )
        return await self._get_model(
            Page[FavoriteAlbum],
            f"users/{user_id}/favorites/albums",
            params
        )

    async def add_favorite_album(self, album_id: int) -> None:
        user_id = self._require_user_id()
        await self._authorized_request(
            "POST",
            f"users/{user_id}/favorites/albums",
            params=self._context_params(albumId=album_id)
        )
        logger.debug("Album added to favorites", album_id=album_id)

    async def remove_favorite_album(self, album_id: int) -> None:
        user_id = self._require_user_id()
        await self._authorized_request(
            "DELETE",
            f"users/{user_id}/favorites/albums/{album_id}",
            params=self._context_params()
        )
        logger.debug("Album removed from favorites", album_id=album_id)

"""
Models Module

Typed data models for TIDAL authentication, catalog payloads and client
configuration.
"""

from .auth_models import (
    TidalModel,
    DeviceAuthorization,
    User,
    Authz,
    AuthzToken,
    TidalApiErrorBody
)
from .catalog_models import (
    DeviceType,
    AudioQuality,
    Order,
    OrderDirection,
    AlbumType,
    ResourceType,
    MediaMetadata,
    ArtistRole,
    ArtistSummary,
    Artist,
    FavoriteArtist,
    AlbumSummary,
    Album,
    FavoriteAlbum,
    Track,
    FavoriteTrack,
    SuggestedTrack,
    TrackStream,
    TrackPlaybackInfo,
    TrackDashPlaybackInfo,
    PlaylistCreator,
    Playlist,
    PlaylistRecommendationItem,
    Page,
    TopHit,
    SearchResults
)
from .config_models import (
    ClientConfig,
    TIDAL_API_BASE_URL,
    TIDAL_AUTH_API_BASE_URL
)

__all__ = [
    # Authentication
    "TidalModel",
    "DeviceAuthorization",
    "User",
    "Authz",
    "AuthzToken",
    "TidalApiErrorBody",

    # Catalog
    "DeviceType",
    "AudioQuality",
    "Order",
    "OrderDirection",
    "AlbumType",
    "ResourceType",
    "MediaMetadata",
    "ArtistRole",
    "ArtistSummary",
    "Artist",
    "FavoriteArtist",
    "AlbumSummary",
    "Album",
    "FavoriteAlbum",
    "Track",
    "FavoriteTrack",
    "SuggestedTrack",
    "TrackStream",
    "TrackPlaybackInfo",
    "TrackDashPlaybackInfo",
    "PlaylistCreator",
    "Playlist",
    "PlaylistRecommendationItem",
    "Page",
    "TopHit",
    "SearchResults",

    # Configuration
    "ClientConfig",
    "TIDAL_API_BASE_URL",
    "TIDAL_AUTH_API_BASE_URL",
]

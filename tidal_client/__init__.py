"""
tidal-client - Asynchronous TIDAL API client

Device-flow authentication with transparent token refresh, plus typed
access to the TIDAL catalog, favorites, playlists, search and audio
streams.
"""

__version__ = "0.1.0"

from .api import (
    TidalClient,
    SearchQuery,
    SessionManager,
    TidalClientFactory,
    create_tidal_client
)
from .exceptions import (
    TidalError,
    NetworkError,
    RequestTimeoutError,
    TidalAPIError,
    TokenExpiredError,
    DecodeError,
    AuthenticationError,
    AuthenticationRequiredError,
    AuthenticationExpiredError,
    AuthorizationPendingError,
    DeviceCodeExpiredError,
    AuthorizationDeniedError,
    ConfigurationError,
    StreamError,
    NoPrimaryUrlError,
    StreamInitializationError,
    PlaylistTrackNotFoundError
)
from .models import (
    Authz,
    AuthzToken,
    DeviceAuthorization,
    User,
    ClientConfig,
    DeviceType,
    AudioQuality,
    Order,
    OrderDirection,
    AlbumType,
    ResourceType,
    Track,
    Album,
    Artist,
    Playlist,
    TrackStream,
    TrackPlaybackInfo,
    TrackDashPlaybackInfo,
    Page,
    SearchResults
)

__all__ = [
    # Client
    "TidalClient",
    "SearchQuery",
    "SessionManager",
    "TidalClientFactory",
    "create_tidal_client",

    # Errors
    "TidalError",
    "NetworkError",
    "RequestTimeoutError",
    "TidalAPIError",
    "TokenExpiredError",
    "DecodeError",
    "AuthenticationError",
    "AuthenticationRequiredError",
    "AuthenticationExpiredError",
    "AuthorizationPendingError",
    "DeviceCodeExpiredError",
    "AuthorizationDeniedError",
    "ConfigurationError",
    "StreamError",
    "NoPrimaryUrlError",
    "StreamInitializationError",
    "PlaylistTrackNotFoundError",

    # Models
    "Authz",
    "AuthzToken",
    "DeviceAuthorization",
    "User",
    "ClientConfig",
    "DeviceType",
    "AudioQuality",
    "Order",
    "OrderDirection",
    "AlbumType",
    "ResourceType",
    "Track",
    "Album",
    "Artist",
    "Playlist",
    "TrackStream",
    "TrackPlaybackInfo",
    "TrackDashPlaybackInfo",
    "Page",
    "SearchResults",
]

"""
TIDAL Client Exceptions

Exception hierarchy for every failure the client surfaces to callers.
Each failure kind is a distinct class so callers can branch on it.
"""

from typing import Optional


class TidalError(Exception):
    """Base exception for all TIDAL client errors."""
    pass


class NetworkError(TidalError):
    """Raised when the transport fails before a response is received."""
    pass


class RequestTimeoutError(NetworkError):
    """Raised when a request or a token refresh does not finish in time."""
    pass


class TidalAPIError(TidalError):
    """Raised when TIDAL answers with a non-success status and an error body."""

    def __init__(
        self,
        status: int,
        sub_status: Optional[int] = None,
        user_message: str = "",
        error: Optional[str] = None,
        url: Optional[str] = None
    ):
        self.status = status
        self.sub_status = sub_status
        self.user_message = user_message
        self.error = error
        self.url = url
        super().__init__(
            f"TIDAL API error: {status} {sub_status if sub_status is not None else '-'} "
            f"{user_message or error or ''}".rstrip()
        )


class TokenExpiredError(TidalAPIError):
    """Raised when TIDAL reports that the access token has expired."""
    pass


class DecodeError(TidalError):
    """Raised when a response body does not match the expected schema."""
    pass


class AuthenticationError(TidalError):
    """Base class for authentication failures."""
    pass


class AuthenticationRequiredError(AuthenticationError):
    """Raised when an authenticated operation is attempted without credentials."""

    def __init__(self, message: str = "User authentication required - authorize the client first"):
        super().__init__(message)


class AuthenticationExpiredError(AuthenticationError):
    """Raised when the access token expired and could not be refreshed.

    Callers should restart the device authorization flow.
    """
    pass


class AuthorizationPendingError(TidalError):
    """Raised while the user has not yet approved the device code."""

    def __init__(self, message: str = "Authorization pending", slow_down: bool = False):
        super().__init__(message)
        self.slow_down = slow_down


class DeviceCodeExpiredError(TidalError):
    """Raised when the device code expired before the user approved it."""
    pass


class AuthorizationDeniedError(TidalError):
    """Raised when the user declined the device authorization request."""
    pass


class ConfigurationError(TidalError):
    """Raised for missing or invalid client configuration."""
    pass


class StreamError(TidalError):
    """Base class for audio stream failures."""
    pass


class NoPrimaryUrlError(StreamError):
    """Raised when a track stream carries no URL to read from."""

    def __init__(self, message: str = "No primary streaming URL available"):
        super().__init__(message)


class StreamInitializationError(StreamError):
    """Raised when the audio stream cannot be opened."""
    pass


class PlaylistTrackNotFoundError(TidalError):
    """Raised when a track is not present on the given playlist."""

    def __init__(self, playlist_id: str, track_id: int):
        self.playlist_id = playlist_id
        self.track_id = track_id
        super().__init__(f"Track {track_id} not found on playlist {playlist_id}")

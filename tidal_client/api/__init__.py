"""
API Module

TIDAL API layer: HTTP transport, device authorization, session
management, endpoint groups and audio streaming.
"""

from .base_client import BaseAPIClient
from .auth import DeviceAuthorizer
from .session_manager import SessionManager, AuthzRefreshCallback
from .tidal_client import TidalClient
from .search_operations import SearchQuery
from .streaming import iter_track_stream
from .client_factory import (
    TidalClientFactory,
    get_client_factory,
    reset_client_factory,
    create_tidal_client
)

__all__ = [
    # Base infrastructure
    "BaseAPIClient",

    # Authentication
    "DeviceAuthorizer",
    "SessionManager",
    "AuthzRefreshCallback",

    # Client and request types
    "TidalClient",
    "SearchQuery",
    "iter_track_stream",

    # Client factory
    "TidalClientFactory",
    "get_client_factory",
    "reset_client_factory",
    "create_tidal_client",
]

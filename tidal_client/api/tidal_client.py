"""
TIDAL Client

Entry point of the library. Combines the HTTP transport, the device
authorization flow, the session manager and every endpoint group into a
single client object.
"""

import asyncio
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Mapping, Optional, Type, Union

import aiohttp
import structlog

from ..exceptions import (
    AuthenticationExpiredError,
    AuthorizationPendingError,
    ConfigurationError,
    DeviceCodeExpiredError,
    TokenExpiredError
)
from ..models.auth_models import Authz, AuthzToken, DeviceAuthorization
from ..models.catalog_models import DeviceType, TrackStream
from ..models.config_models import DEFAULT_COUNTRY_CODE, DEFAULT_LOCALE, ClientConfig
from .album_operations import AlbumOperations
from .artist_operations import ArtistOperations
from .auth import DeviceAuthorizer
from .base_client import BaseAPIClient, ModelT, decode_model, validate_paging
from .playlist_operations import PlaylistOperations
from .search_operations import SearchOperations
from .session_manager import AuthzRefreshCallback, SessionManager
from .streaming import DEFAULT_CHUNK_SIZE, iter_track_stream
from .track_operations import TrackOperations

logger = structlog.get_logger(__name__)

# Extra wait TIDAL asks for with a slow_down answer
SLOW_DOWN_INCREMENT = 5


class TidalClient(
    TrackOperations,
    AlbumOperations,
    ArtistOperations,
    PlaylistOperations,
    SearchOperations,
    BaseAPIClient
):
    """
    Asynchronous TIDAL API client.

    Configure with the ``with_*`` methods before the first request, then
    either restore saved credentials (``with_authz``) or run the device
    flow (``device_authorization`` + ``authorize``). Expired access tokens
    are refreshed transparently and the original request retried once.

    Example:
        async with TidalClient("client_id").with_authz(saved) as client:
            track = await client.track(123456789)
    """

    def __init__(
        self,
        client_id: Optional[str] = None,
        config: Optional[ClientConfig] = None,
        authz: Optional[Authz] = None,
        on_authz_refresh: Optional[AuthzRefreshCallback] = None,
        session: Optional[aiohttp.ClientSession] = None
    ):
        """
        Initialize TIDAL client.

        Args:
            client_id: TIDAL application client ID (overrides ``config.client_id``)
            config: Full client configuration
            authz: Previously saved credentials
            on_authz_refresh: Called with new credentials after each refresh
            session: Caller-owned aiohttp session to send requests with
        """
        if config is None:
            if not client_id:
                raise ConfigurationError("A TIDAL client_id is required")
            config = ClientConfig(client_id=client_id)
        elif client_id and client_id != config.client_id:
            config = config.model_copy(update={"client_id": client_id})

        super().__init__(
            timeout=config.timeout,
            user_agent=config.user_agent,
            service_name="TIDAL",
            session=session
        )

        self._config = config
        self.authorizer = DeviceAuthorizer(self)
        self.session_manager = SessionManager(
            exchange=self._refresh_credentials,
            refresh_timeout=config.refresh_timeout,
            credentials=authz,
            on_refresh=on_authz_refresh
        )

        self.logger = logger.bind(service="TIDAL", component="TidalClient")
        self.logger.info(
            "TIDAL client initialized",
            authorized=authz is not None,
            country_code=config.country_code
        )

    @property
    def config(self) -> ClientConfig:
        return self._config

    # Builder-style configuration

    def _ensure_not_started(self, setting: str) -> None:
        if self.request_count > 0:
            raise ConfigurationError(
                f"Cannot change {setting} after the client has sent requests"
            )

    def _update_config(self, setting: str, **changes) -> "TidalClient":
        self._ensure_not_started(setting)
        self._config = self._config.model_copy(update=changes)
        return self

    def with_client_secret(self, client_secret: str) -> "TidalClient":
        return self._update_config("client secret", client_secret=client_secret)

    def with_country_code(self, country_code: str) -> "TidalClient":
        """Override the country code, e.g. "US" or "GB"."""
        return self._update_config("country code", country_code=country_code)

    def with_locale(self, locale: str) -> "TidalClient":
        """Override the locale, e.g. "en_US" or "de_DE"."""
        return self._update_config("locale", locale=locale)

    def with_device_type(self, device_type: Union[DeviceType, str]) -> "TidalClient":
        return self._update_config("device type", device_type=DeviceType(device_type))

    def with_authz(self, authz: Authz) -> "TidalClient":
        """Restore credentials saved from an earlier session."""
        self._ensure_not_started("credentials")
        self.session_manager.set_credentials(authz)
        return self

    def with_authz_refresh_callback(self, callback: AuthzRefreshCallback) -> "TidalClient":
        self._ensure_not_started("refresh callback")
        self.session_manager.on_refresh(callback)
        return self

    def with_session(self, session: aiohttp.ClientSession) -> "TidalClient":
        """Send requests through a caller-owned aiohttp session."""
        self._ensure_not_started("HTTP session")
        self.session = session
        self._owns_session = False
        return self

    def on_authz_refresh(self, callback: Optional[AuthzRefreshCallback]) -> None:
        """Register the refresh callback; unlike the builders, allowed at any time."""
        self.session_manager.on_refresh(callback)

    # Effective request context

    def get_country_code(self) -> str:
        """Configured country code, else the credentials' one, else "US"."""
        if self._config.country_code:
            return self._config.country_code

        authz = self.session_manager.credentials
        if authz is not None and authz.country_code:
            return authz.country_code

        return DEFAULT_COUNTRY_CODE

    def get_locale(self) -> str:
        return self._config.locale or DEFAULT_LOCALE

    def get_device_type(self) -> DeviceType:
        return self._config.device_type or DeviceType.BROWSER

    def get_user_id(self) -> Optional[int]:
        authz = self.session_manager.credentials
        return authz.user_id if authz is not None else None

    def get_authz(self) -> Optional[Authz]:
        return self.session_manager.credentials

    # Device authorization flow

    async def device_authorization(self) -> DeviceAuthorization:
        """
        Start the device flow.

        Show ``url`` (or ``user_code``) to the user, then call ``authorize``
        with ``device_code`` until it succeeds.
        """
        return await self.authorizer.request_device_code()

    async def authorize(
        self,
        device_code: str,
        client_secret: Optional[str] = None
    ) -> AuthzToken:
        """
        Complete the device flow once the user has approved it.

        Args:
            device_code: Device code from ``device_authorization``
            client_secret: Overrides the configured client secret

        Returns:
            The token response; credentials are stored on the client

        Raises:
            AuthorizationPendingError: not approved yet, try again later
            DeviceCodeExpiredError: start over with ``device_authorization``
            AuthorizationDeniedError: the user declined
        """
        token = await self.authorizer.exchange_device_code(device_code, client_secret)

        authz = token.authz(country_code=self._config.country_code)
        self.session_manager.set_credentials(authz)
        self.logger.info(
            "Client authorized",
            user_id=authz.user_id,
            country_code=authz.country_code
        )
        return token

    async def poll_authorization(
        self,
        device_authorization: DeviceAuthorization,
        client_secret: Optional[str] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    ) -> AuthzToken:
        """
        Call ``authorize`` every ``interval`` seconds until the user decides.

        Raises:
            DeviceCodeExpiredError: ``expires_in`` elapsed without approval
            AuthorizationDeniedError: the user declined
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + device_authorization.expires_in
        interval = device_authorization.interval

        while True:
            try:
                return await self.authorize(device_authorization.device_code, client_secret)
            except AuthorizationPendingError as e:
                if e.slow_down:
                    interval += SLOW_DOWN_INCREMENT
                if loop.time() + interval > deadline:
                    raise DeviceCodeExpiredError(
                        "Device code expired before the user authorized it"
                    ) from e
                self.logger.debug("Waiting for user authorization", interval=interval)
                await sleep(interval)

    async def _refresh_credentials(self, current: Authz) -> Authz:
        token = await self.authorizer.exchange_refresh_token(current.refresh_token)

        user_id = token.resolved_user_id()
        country_code = current.country_code
        if country_code is None and token.user is not None:
            country_code = token.user.country_code

        return Authz(
            access_token=token.access_token,
            refresh_token=token.refresh_token or current.refresh_token,
            user_id=user_id if user_id is not None else current.user_id,
            country_code=country_code
        )

    # Authenticated transport

    def _api_url(self, path: str) -> str:
        return f"{self._config.api_base_url.rstrip('/')}/{path.lstrip('/')}"

    async def _authorized_request(
        self,
        method: str,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        etag: Optional[str] = None
    ) -> Any:
        """
        Send a request with the current credentials.

        An expired access token triggers one refresh and one retry; every
        other failure propagates unchanged.
        """
        authz = self.session_manager.require_credentials()
        url = self._api_url(path)

        try:
            return await self._make_request(
                method,
                url,
                params=params,
                headers=self.session_manager.authorization_header(authz),
                etag=etag
            )
        except TokenExpiredError:
            self.logger.info("Access token expired", method=method, url=url)

        refreshed = await self.session_manager.refresh(authz.access_token)

        try:
            return await self._make_request(
                method,
                url,
                params=params,
                headers=self.session_manager.authorization_header(refreshed),
                etag=etag
            )
        except TokenExpiredError as e:
            raise AuthenticationExpiredError(
                "Access token still expired after refresh - restart device authorization"
            ) from e

    async def _get_model(
        self,
        model: Type[ModelT],
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        method: str = "GET",
        etag: Optional[str] = None
    ) -> ModelT:
        data = await self._authorized_request(method, path, params=params, etag=etag)
        return decode_model(model, data)

    def _context_params(self, **extra: Any) -> Dict[str, Any]:
        """countryCode, locale and deviceType, plus endpoint-specific params."""
        params: Dict[str, Any] = dict(extra)
        params.update({
            "countryCode": self.get_country_code(),
            "locale": self.get_locale(),
            "deviceType": self.get_device_type(),
        })
        return params

    def _paged_params(self, offset: int, limit: int, **extra: Any) -> Dict[str, Any]:
        self._validate_paging(offset, limit)
        return self._context_params(offset=offset, limit=limit, **extra)

    @staticmethod
    def _validate_paging(offset: int, limit: int) -> None:
        validate_paging(offset, limit)

    def _require_user_id(self) -> int:
        return self.session_manager.require_credentials().user_id

    # Streaming

    def open_stream(
        self,
        track_stream: TrackStream,
        chunk_size: int = DEFAULT_CHUNK_SIZE
    ) -> AsyncIterator[bytes]:
        """
        Open the audio behind a stream descriptor.

        Example:
            stream = await client.track_stream(track_id, AudioQuality.LOSSLESS)
            async for chunk in client.open_stream(stream):
                sink.write(chunk)
        """
        return iter_track_stream(
            self._get_session(),
            track_stream,
            chunk_size=chunk_size,
            read_timeout=self.timeout
        )

    def get_service_info(self) -> Dict[str, Any]:
        info = super().get_service_info()
        info.update({
            "authorized": self.session_manager.credentials is not None,
            "refresh_count": self.session_manager.refresh_count,
            "country_code": self.get_country_code(),
            "locale": self.get_locale(),
            "component_type": "TidalClient"
        })
        return info

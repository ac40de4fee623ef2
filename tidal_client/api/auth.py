"""
Device Authorization

OAuth2 device flow against TIDAL's auth service: request a device code,
exchange it for tokens once the user has approved it, and exchange a
refresh token for a new access token.

These calls are unauthenticated and never go through the refresh path.
"""

from typing import TYPE_CHECKING, Optional

import structlog

from ..exceptions import (
    AuthorizationDeniedError,
    AuthorizationPendingError,
    DecodeError,
    DeviceCodeExpiredError,
    TidalAPIError
)
from ..models.auth_models import AuthzToken, DeviceAuthorization
from .base_client import decode_model

if TYPE_CHECKING:
    from .tidal_client import TidalClient

logger = structlog.get_logger(__name__)

DEVICE_CODE_GRANT = "urn:ietf:params:oauth:grant-type:device_code"
REFRESH_TOKEN_GRANT = "refresh_token"

# OAuth2 device flow error codes
PENDING_ERRORS = ("authorization_pending", "slow_down")
EXPIRED_ERROR = "expired_token"
DENIED_ERROR = "access_denied"


class DeviceAuthorizer:
    """
    Talks to ``{auth_base_url}/oauth2/*`` on behalf of a TidalClient.

    Stateless apart from the client it reads configuration from; storing
    the resulting credentials is the caller's job.
    """

    def __init__(self, client: "TidalClient"):
        self.client = client
        self.logger = logger.bind(service="TIDAL", component="DeviceAuthorizer")

    def _url(self, endpoint: str) -> str:
        return f"{self.client.config.auth_base_url.rstrip('/')}/oauth2/{endpoint}"

    async def request_device_code(self) -> DeviceAuthorization:
        """
        Start the device flow.

        Returns:
            DeviceAuthorization with the verification URL and user code
        """
        config = self.client.config
        data = await self.client._make_request(
            "POST",
            self._url("device_authorization"),
            params={
                "client_id": config.client_id,
                "scope": config.scope,
            }
        )

        device_auth = decode_model(DeviceAuthorization, data)
        self.logger.info(
            "Device authorization started",
            url=device_auth.url,
            expires_in=device_auth.expires_in,
            interval=device_auth.interval
        )
        return device_auth

    async def exchange_device_code(
        self,
        device_code: str,
        client_secret: Optional[str] = None
    ) -> AuthzToken:
        """
        Try to complete the device flow once.

        Args:
            device_code: Device code from ``request_device_code``
            client_secret: Overrides the configured client secret

        Returns:
            AuthzToken carrying a refresh token

        Raises:
            AuthorizationPendingError: user has not approved yet
            DeviceCodeExpiredError: device code is no longer valid
            AuthorizationDeniedError: user declined
            TidalAPIError: any other rejection
            DecodeError: approval carried no refresh token
        """
        config = self.client.config
        secret = client_secret if client_secret is not None else config.client_secret

        try:
            data = await self.client._make_request(
                "POST",
                self._url("token"),
                params={
                    "client_id": config.client_id,
                    "client_secret": secret,
                    "device_code": device_code,
                    "grant_type": DEVICE_CODE_GRANT,
                    "scope": config.scope,
                }
            )
        except TidalAPIError as e:
            mapped = self._map_device_flow_error(e)
            if mapped is None:
                raise
            raise mapped from e

        token = decode_model(AuthzToken, data)
        if not token.refresh_token:
            raise DecodeError("No refresh token received from TIDAL after authorization")
        if token.resolved_user_id() is None:
            raise DecodeError("No user id received from TIDAL after authorization")

        self.logger.info("Device authorization completed", user_id=token.resolved_user_id())
        return token

    async def exchange_refresh_token(self, refresh_token: str) -> AuthzToken:
        """Trade a refresh token for a fresh access token."""
        config = self.client.config
        params = {
            "client_id": config.client_id,
            "refresh_token": refresh_token,
            "grant_type": REFRESH_TOKEN_GRANT,
            "scope": config.scope,
        }
        if config.client_secret:
            params["client_secret"] = config.client_secret

        data = await self.client._make_request("POST", self._url("token"), params=params)
        return decode_model(AuthzToken, data)

    def _map_device_flow_error(self, error: TidalAPIError) -> Optional[Exception]:
        if error.error in PENDING_ERRORS:
            self.logger.debug("Device authorization pending", error=error.error)
            return AuthorizationPendingError(
                error.user_message or "Authorization pending",
                slow_down=error.error == "slow_down"
            )
        if error.error == EXPIRED_ERROR:
            self.logger.warning("Device code expired")
            return DeviceCodeExpiredError(error.user_message or "Device code expired")
        if error.error == DENIED_ERROR:
            self.logger.warning("Device authorization denied by user")
            return AuthorizationDeniedError(error.user_message or "Authorization denied")
        return None

"""
Session Manager

Holds the current credentials and serializes token refreshes. Concurrent
requests that all hit an expired token share a single refresh exchange;
requests that notice the expiry after a refresh already landed reuse the
new credentials without contacting TIDAL again.
"""

import asyncio
from typing import Awaitable, Callable, Dict, Optional

import structlog

from ..exceptions import (
    AuthenticationExpiredError,
    AuthenticationRequiredError,
    RequestTimeoutError,
    TidalAPIError
)
from ..models.auth_models import Authz

logger = structlog.get_logger(__name__)

AuthzRefreshCallback = Callable[[Authz], None]


def _consume_refresh_result(task: asyncio.Future) -> None:
    # Every waiter may have been cancelled; mark the outcome as retrieved
    if not task.cancelled():
        task.exception()
RefreshExchange = Callable[[Authz], Awaitable[Authz]]


class SessionManager:
    """
    Owner of the client's ``Authz``.

    The stored credentials are immutable and replaced wholesale, so readers
    always see either the old or the new value. The lock guards the
    credentials together with the in-flight refresh task.
    """

    def __init__(
        self,
        exchange: RefreshExchange,
        refresh_timeout: float = 30.0,
        credentials: Optional[Authz] = None,
        on_refresh: Optional[AuthzRefreshCallback] = None
    ):
        """
        Initialize the session manager.

        Args:
            exchange: Coroutine function trading the current credentials
                for refreshed ones
            refresh_timeout: Upper bound for one refresh exchange in seconds
            credentials: Initial credentials, if already authorized
            on_refresh: Called synchronously with the new credentials after
                every successful refresh
        """
        self._exchange = exchange
        self.refresh_timeout = refresh_timeout
        self._credentials = credentials
        self._on_refresh = on_refresh

        self._lock = asyncio.Lock()
        self._refresh_task: Optional[asyncio.Future] = None
        self.refresh_count = 0

        self.logger = logger.bind(service="TIDAL", component="SessionManager")

    @property
    def credentials(self) -> Optional[Authz]:
        return self._credentials

    def set_credentials(self, credentials: Optional[Authz]) -> None:
        self._credentials = credentials
        self.logger.debug(
            "Credentials updated",
            user_id=credentials.user_id if credentials else None
        )

    def clear(self) -> None:
        self.set_credentials(None)

    def require_credentials(self) -> Authz:
        credentials = self._credentials
        if credentials is None:
            raise AuthenticationRequiredError()
        return credentials

    def on_refresh(self, callback: Optional[AuthzRefreshCallback]) -> None:
        """Register (or clear) the refresh-notification callback."""
        self._on_refresh = callback

    @staticmethod
    def authorization_header(credentials: Authz) -> Dict[str, str]:
        return {"Authorization": f"Bearer {credentials.access_token}"}

    async def refresh(self, stale_access_token: str) -> Authz:
        """
        Obtain credentials newer than ``stale_access_token``.

        Args:
            stale_access_token: Access token TIDAL just reported as expired

        Returns:
            The refreshed credentials

        Raises:
            AuthenticationRequiredError: no credentials are held
            AuthenticationExpiredError: TIDAL rejected the refresh token
            RequestTimeoutError: the exchange exceeded ``refresh_timeout``
        """
        async with self._lock:
            current = self.require_credentials()
            if current.access_token != stale_access_token:
                self.logger.debug("Credentials already refreshed", user_id=current.user_id)
                return current

            if self._refresh_task is None or self._refresh_task.done():
                self._refresh_task = asyncio.ensure_future(self._run_refresh(current))
                self._refresh_task.add_done_callback(_consume_refresh_result)
            else:
                self.logger.debug("Joining in-flight token refresh")
            task = self._refresh_task

        # One cancelled waiter must not cancel the refresh for everyone else
        return await asyncio.shield(task)

    async def _run_refresh(self, current: Authz) -> Authz:
        self.logger.info("Refreshing access token", user_id=current.user_id)

        try:
            refreshed = await asyncio.wait_for(
                self._exchange(current),
                timeout=self.refresh_timeout
            )
        except asyncio.TimeoutError as e:
            self.logger.warning("Token refresh timed out", timeout=self.refresh_timeout)
            raise RequestTimeoutError(
                f"Token refresh did not complete within {self.refresh_timeout}s"
            ) from e
        except TidalAPIError as e:
            self.logger.warning(
                "Refresh token rejected",
                status=e.status,
                sub_status=e.sub_status
            )
            raise AuthenticationExpiredError(
                "Refresh token rejected by TIDAL - restart device authorization"
            ) from e

        self._credentials = refreshed
        self.refresh_count += 1
        self.logger.info("Access token refreshed", user_id=refreshed.user_id)

        callback = self._on_refresh
        if callback is not None:
            try:
                callback(refreshed)
            except Exception as e:
                self.logger.error(
                    "Authz refresh callback failed",
                    error=str(e),
                    error_type=type(e).__name__
                )
                raise

        return refreshed

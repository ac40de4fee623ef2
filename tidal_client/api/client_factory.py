"""
TIDAL Client Factory

Builds configured TidalClient instances from explicit arguments, a
ClientConfig, or TIDAL_* environment variables.
"""

from typing import Any, Dict, Optional

import aiohttp
import structlog
from pydantic import ValidationError

from ..exceptions import ConfigurationError
from ..models.auth_models import Authz
from ..models.config_models import ClientConfig
from .session_manager import AuthzRefreshCallback
from .tidal_client import TidalClient

logger = structlog.get_logger(__name__)


class TidalClientFactory:
    """
    Factory for creating configured TIDAL clients.

    Settings are resolved per call: explicit arguments win, then the
    factory's config, then the environment.
    """

    def __init__(self, config: Optional[ClientConfig] = None):
        """
        Initialize client factory.

        Args:
            config: Base configuration (optional; defaults to the environment)
        """
        self.config = config
        self.clients_created = 0
        self.logger = logger.bind(service="TidalClientFactory")

        self.logger.info("TIDAL client factory initialized", has_config=config is not None)

    async def create_tidal_client(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        authz: Optional[Authz] = None,
        authz_json: Optional[str] = None,
        on_authz_refresh: Optional[AuthzRefreshCallback] = None,
        session: Optional[aiohttp.ClientSession] = None
    ) -> TidalClient:
        """
        Create a configured TIDAL client.

        Args:
            client_id: TIDAL client ID (defaults to config or TIDAL_CLIENT_ID)
            client_secret: TIDAL client secret (defaults to config or TIDAL_CLIENT_SECRET)
            authz: Saved credentials to restore
            authz_json: Saved credentials as produced by ``Authz.model_dump_json()``
            on_authz_refresh: Called with new credentials after each refresh
            session: Caller-owned aiohttp session

        Returns:
            Configured TidalClient instance

        Raises:
            ConfigurationError: no client ID, or unreadable saved credentials
        """
        config = self._resolve_config(client_id, client_secret)

        if authz is None and authz_json:
            authz = self._load_authz(authz_json)

        client = TidalClient(
            config=config,
            authz=authz,
            on_authz_refresh=on_authz_refresh,
            session=session
        )
        self.clients_created += 1

        self.logger.info(
            "TIDAL client created",
            authorized=authz is not None,
            has_client_secret=bool(config.client_secret)
        )

        return client

    def get_factory_stats(self) -> Dict[str, Any]:
        return {
            "clients_created": self.clients_created,
            "has_config": self.config is not None
        }

    # Configuration resolution methods
    def _resolve_config(
        self,
        client_id: Optional[str],
        client_secret: Optional[str]
    ) -> ClientConfig:
        overrides = {}
        if client_id:
            overrides["client_id"] = client_id
        if client_secret:
            overrides["client_secret"] = client_secret

        if self.config is not None:
            return self.config.model_copy(update=overrides)

        try:
            return ClientConfig.from_env(**overrides)
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid TIDAL configuration (is TIDAL_CLIENT_ID set?): {e}"
            ) from e

    def _load_authz(self, authz_json: str) -> Authz:
        try:
            return Authz.model_validate_json(authz_json)
        except ValidationError as e:
            raise ConfigurationError(f"Saved TIDAL credentials are unreadable: {e}") from e


# Global factory instance for convenience
_global_factory: Optional[TidalClientFactory] = None


def get_client_factory(config: Optional[ClientConfig] = None) -> TidalClientFactory:
    """
    Get global client factory instance.

    Args:
        config: Base configuration (optional, used for initialization)

    Returns:
        Global TidalClientFactory instance
    """
    global _global_factory

    if _global_factory is None:
        _global_factory = TidalClientFactory(config)

    return _global_factory


def reset_client_factory():
    """Reset global client factory (useful for testing)."""
    global _global_factory
    _global_factory = None


async def create_tidal_client(
    client_id: Optional[str] = None,
    client_secret: Optional[str] = None,
    authz: Optional[Authz] = None,
    on_authz_refresh: Optional[AuthzRefreshCallback] = None
) -> TidalClient:
    """Create TIDAL client using global factory."""
    factory = get_client_factory()
    return await factory.create_tidal_client(
        client_id=client_id,
        client_secret=client_secret,
        authz=authz,
        on_authz_refresh=on_authz_refresh
    )

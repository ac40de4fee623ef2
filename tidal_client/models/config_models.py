"""
Client Configuration

Pydantic model holding everything a TidalClient needs besides credentials.
"""

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

from .catalog_models import DeviceType

TIDAL_AUTH_API_BASE_URL = "https://auth.tidal.com/v1"
TIDAL_API_BASE_URL = "https://api.tidal.com/v1"

DEFAULT_SCOPE = "r_usr w_usr w_sub"
DEFAULT_COUNTRY_CODE = "US"
DEFAULT_LOCALE = "en_US"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Linux; Android 12; wv) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Version/4.0 Chrome/91.0.4472.114 Safari/537.36"
)


class ClientConfig(BaseModel):
    """TIDAL client configuration"""

    model_config = ConfigDict(frozen=True)

    # Application credentials
    client_id: str = Field(..., min_length=1, description="TIDAL API client ID")
    client_secret: Optional[str] = Field(default=None, description="TIDAL API client secret")

    # Request context
    country_code: Optional[str] = Field(default=None, description="Two-letter country code override")
    locale: Optional[str] = Field(default=None, description="Locale such as en_US")
    device_type: Optional[DeviceType] = Field(default=None, description="Device type sent with requests")

    # Transport
    timeout: float = Field(default=30.0, gt=0, description="Per-request timeout in seconds")
    refresh_timeout: float = Field(default=30.0, gt=0, description="Upper bound for a token refresh in seconds")
    api_base_url: str = Field(default=TIDAL_API_BASE_URL, description="Catalog API base URL")
    auth_base_url: str = Field(default=TIDAL_AUTH_API_BASE_URL, description="OAuth2 base URL")
    scope: str = Field(default=DEFAULT_SCOPE, description="OAuth2 scope requested")
    user_agent: str = Field(default=DEFAULT_USER_AGENT, description="User-Agent header")

    @classmethod
    def from_env(cls, **overrides) -> "ClientConfig":
        """
        Build a configuration from TIDAL_* environment variables.

        A ``.env`` file in the working directory is loaded first. Keyword
        overrides win over the environment.
        """
        load_dotenv()

        values = {
            "client_id": os.getenv("TIDAL_CLIENT_ID"),
            "client_secret": os.getenv("TIDAL_CLIENT_SECRET"),
            "country_code": os.getenv("TIDAL_COUNTRY_CODE"),
            "locale": os.getenv("TIDAL_LOCALE"),
            "timeout": os.getenv("TIDAL_TIMEOUT"),
            "refresh_timeout": os.getenv("TIDAL_REFRESH_TIMEOUT"),
        }
        values.update(overrides)

        return cls(**{key: value for key, value in values.items() if value is not None})

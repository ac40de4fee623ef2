"""
Authentication Models

Pydantic models for the OAuth2 device flow, token responses, the stored
credentials and TIDAL's error body.
"""

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class TidalModel(BaseModel):
    """Base model for TIDAL JSON payloads (camelCase on the wire)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore"
    )


class DeviceAuthorization(TidalModel):
    """Device code pair returned when starting the device flow."""

    url: str = Field(..., alias="verificationUriComplete", description="URL the user visits to authorize")
    device_code: str = Field(..., description="Opaque code used to complete the flow")
    user_code: str = Field(..., description="Code the user enters on the authorization page")
    expires_in: int = Field(..., description="Seconds until the device code expires")
    interval: int = Field(default=5, description="Polling interval in seconds")

    @field_validator("url")
    @classmethod
    def _ensure_scheme(cls, value: str) -> str:
        # TIDAL returns link.tidal.com/XXXXX without a scheme
        if value.startswith(("http://", "https://")):
            return value
        return f"https://{value}"


class User(TidalModel):
    """TIDAL user profile returned alongside a token."""

    user_id: int
    username: Optional[str] = None
    country_code: str = "US"
    email: Optional[str] = None
    email_verified: bool = False
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    full_name: Optional[str] = None
    nickname: Optional[str] = None
    city: Optional[str] = None
    postalcode: Optional[str] = None
    us_state: Optional[str] = None
    phone_number: Optional[str] = None
    birthday: Optional[int] = None
    channel_id: Optional[int] = None
    parent_id: Optional[int] = None
    accepted_eula: bool = Field(default=False, alias="acceptedEULA")
    created: Optional[int] = None
    updated: Optional[int] = None
    new_user: bool = False


class Authz(BaseModel):
    """
    Credentials used to authenticate API requests.

    Immutable: a refresh replaces the whole object. Serialize with
    ``model_dump_json()`` to persist it and restore with
    ``Authz.model_validate_json()``.
    """

    model_config = ConfigDict(frozen=True)

    access_token: str
    refresh_token: str
    user_id: int
    country_code: Optional[str] = None


class AuthzToken(TidalModel):
    """Token endpoint response for both device completion and refresh."""

    access_token: str = Field(..., alias="access_token")
    refresh_token: Optional[str] = Field(default=None, alias="refresh_token")
    expires_in: int = Field(default=0, alias="expires_in")
    token_type: str = Field(default="Bearer", alias="token_type")
    scope: Optional[str] = None
    client_name: Optional[str] = None
    user_id: Optional[int] = Field(default=None, alias="user_id")
    user: Optional[User] = None

    def resolved_user_id(self) -> Optional[int]:
        if self.user is not None:
            return self.user.user_id
        return self.user_id

    def authz(self, country_code: Optional[str] = None) -> Optional[Authz]:
        """Build credentials from this token, or None without a refresh token."""
        if not self.refresh_token:
            return None

        user_id = self.resolved_user_id()
        if user_id is None:
            return None

        if country_code is None and self.user is not None:
            country_code = self.user.country_code

        return Authz(
            access_token=self.access_token,
            refresh_token=self.refresh_token,
            user_id=user_id,
            country_code=country_code
        )


class TidalApiErrorBody(TidalModel):
    """Error body TIDAL attaches to non-success responses."""

    status: int = 0
    sub_status: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("sub_status", "subStatus")
    )
    user_message: str = Field(
        default="",
        validation_alias=AliasChoices("userMessage", "user_message")
    )
    error: Optional[str] = None
    error_description: Optional[str] = Field(default=None, alias="error_description")

"""
Shared fixtures for the TIDAL client tests.

The aiohttp session is replaced by a small in-memory fake that records
every request and answers from a handler function, so tests can script
TIDAL's behavior (expired tokens, pending device codes, ETags) exactly.
"""

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import pytest

from tidal_client.api.tidal_client import TidalClient
from tidal_client.models.auth_models import Authz
from tidal_client.models.config_models import ClientConfig

API = "https://api.tidal.com/v1"
AUTH = "https://auth.tidal.com/v1"


@dataclass
class RecordedRequest:
    method: str
    url: str
    params: Optional[Dict[str, str]] = None
    data: Optional[Dict[str, str]] = None
    headers: Dict[str, str] = field(default_factory=dict)
    timeout: Any = None

    @property
    def access_token(self) -> Optional[str]:
        header = self.headers.get("Authorization")
        return header.split(" ", 1)[1] if header else None


class _ChunkReader:
    def __init__(self, chunks: List[bytes]):
        self._chunks = chunks

    async def iter_chunked(self, size: int):
        for chunk in self._chunks:
            yield chunk


class FakeResponse:
    """Stand-in for aiohttp.ClientResponse used as an async context manager."""

    def __init__(
        self,
        status: int = 200,
        json_body: Any = None,
        body: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
        chunks: Optional[List[bytes]] = None,
        delay: float = 0.0
    ):
        self.status = status
        self.headers = headers or {}
        if body is None:
            body = json.dumps(json_body).encode() if json_body is not None else b""
        self._body = body
        self.content = _ChunkReader(chunks or [])
        self._delay = delay

    async def read(self) -> bytes:
        if self._delay:
            await asyncio.sleep(self._delay)
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """
    Records requests and answers them with ``handler(request)``.

    The handler may return a FakeResponse or raise to simulate transport
    failures. A list of responses is served in order instead.
    """

    def __init__(self, handler):
        if isinstance(handler, list):
            queue = list(handler)

            def handler(request):
                item = queue.pop(0)
                if isinstance(item, BaseException):
                    raise item
                return item

        self.handler: Callable[[RecordedRequest], FakeResponse] = handler
        self.requests: List[RecordedRequest] = []
        self.closed = False

    def request(self, method, url, params=None, data=None, headers=None, timeout=None):
        recorded = RecordedRequest(
            method=method,
            url=url,
            params=params,
            data=data,
            headers=dict(headers or {}),
            timeout=timeout
        )
        self.requests.append(recorded)
        return self.handler(recorded)

    def get(self, url, timeout=None):
        return self.request("GET", url)

    async def close(self):
        self.closed = True


def api_error(status: int, sub_status: int, message: str = "", error: Optional[str] = None) -> FakeResponse:
    body = {"status": status, "subStatus": sub_status, "userMessage": message}
    if error is not None:
        body["error"] = error
    return FakeResponse(status=status, json_body=body)


def expired_token() -> FakeResponse:
    return FakeResponse(
        status=401,
        json_body={"status": 401, "subStatus": 11003, "userMessage": "The token has expired. (Expired on time)"}
    )


def token_body(
    access_token: str,
    refresh_token: Optional[str] = "refresh-1",
    user_id: int = 42,
    country_code: str = "NO"
) -> Dict[str, Any]:
    body = {
        "access_token": access_token,
        "expires_in": 604800,
        "token_type": "Bearer",
        "scope": "r_usr w_usr w_sub",
        "user": {
            "userId": user_id,
            "username": "listener@example.com",
            "countryCode": country_code,
            "email": "listener@example.com",
        },
        "user_id": user_id,
    }
    if refresh_token is not None:
        body["refresh_token"] = refresh_token
    return body


def track_body(track_id: int = 1, title: str = "Teardrop") -> Dict[str, Any]:
    return {
        "id": track_id,
        "title": title,
        "trackNumber": 1,
        "volumeNumber": 1,
        "duration": 330,
        "explicit": False,
        "audioQuality": "LOSSLESS",
        "artists": [{"id": 7, "name": "Massive Attack", "type": "MAIN"}],
        "album": {"id": 99, "title": "Mezzanine", "cover": "aa-bb-cc"},
    }


def page_body(items: List[Any], offset: int = 0, limit: int = 100, total: Optional[int] = None) -> Dict[str, Any]:
    return {
        "items": items,
        "offset": offset,
        "limit": limit,
        "totalNumberOfItems": len(items) if total is None else total,
    }


@pytest.fixture
def authz():
    """Saved credentials for user 42."""
    return Authz(
        access_token="access-old",
        refresh_token="refresh-1",
        user_id=42,
        country_code="NO"
    )


@pytest.fixture
def make_client():
    """Build a TidalClient wired to a FakeSession."""

    def _make(handler, authz: Optional[Authz] = None, **config_overrides) -> TidalClient:
        config = ClientConfig(client_id="test-client-id", **config_overrides)
        session = FakeSession(handler)
        return TidalClient(config=config, authz=authz, session=session)

    return _make

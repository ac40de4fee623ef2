"""
Tests for transparent token refresh.

Covers the authenticated request path of TidalClient and the
SessionManager on its own: single refresh with one retry, callback
ordering, failure handling, and refresh sharing between concurrent
requests.
"""

import asyncio
import gc
from unittest.mock import AsyncMock, Mock

import pytest

from tidal_client.api.session_manager import SessionManager
from tidal_client.exceptions import (
    AuthenticationExpiredError,
    AuthenticationRequiredError,
    NetworkError,
    RequestTimeoutError,
    TidalAPIError
)
from tidal_client.models.auth_models import Authz

from conftest import AUTH, FakeResponse, api_error, expired_token, token_body, track_body


def tidal_backend(events=None, refresh_response=None, valid_token="access-new"):
    """
    Handler emulating TIDAL: only ``valid_token`` is accepted by the API,
    and the token endpoint hands it out.
    """

    def handler(request):
        if request.url.startswith(AUTH):
            if events is not None:
                events.append("refresh")
            if refresh_response is not None:
                return refresh_response()
            return FakeResponse(json_body=token_body(valid_token, refresh_token="refresh-2"))

        if events is not None:
            events.append(f"request:{request.access_token}")
        if request.access_token != valid_token:
            return expired_token()
        return FakeResponse(json_body=track_body())

    return handler


class TestAuthenticatedRequests:
    """Test requests that need no refresh."""

    @pytest.mark.asyncio
    async def test_valid_token_sends_single_request(self, make_client, authz):
        client = make_client(tidal_backend(valid_token="access-old"), authz=authz)

        track = await client.track(1)

        assert track.title == "Teardrop"
        assert len(client.session.requests) == 1
        assert client.session.requests[0].headers["Authorization"] == "Bearer access-old"
        assert client.session_manager.refresh_count == 0

    @pytest.mark.asyncio
    async def test_no_credentials_sends_nothing(self, make_client):
        client = make_client(tidal_backend())

        with pytest.raises(AuthenticationRequiredError):
            await client.track(1)

        with pytest.raises(AuthenticationRequiredError):
            await client.favorite_tracks()

        assert client.session.requests == []

    @pytest.mark.asyncio
    async def test_other_errors_do_not_refresh(self, make_client, authz):
        client = make_client([api_error(404, 2001, "Track not found")], authz=authz)

        with pytest.raises(TidalAPIError):
            await client.track(1)

        assert len(client.session.requests) == 1
        assert client.get_authz() == authz


class TestRefreshOnExpiry:
    """Test the refresh-then-retry path."""

    @pytest.mark.asyncio
    async def test_expired_token_refreshes_and_retries_once(self, make_client, authz):
        events = []
        client = make_client(tidal_backend(events), authz=authz)

        track = await client.track(1)

        assert track.id == 1
        assert events == ["request:access-old", "refresh", "request:access-new"]

        refresh_request = client.session.requests[1]
        assert refresh_request.data == {
            "client_id": "test-client-id",
            "refresh_token": "refresh-1",
            "grant_type": "refresh_token",
            "scope": "r_usr w_usr w_sub",
        }

        new_authz = client.get_authz()
        assert new_authz.access_token == "access-new"
        assert new_authz.refresh_token == "refresh-2"
        assert new_authz.user_id == 42
        assert new_authz.country_code == "NO"

    @pytest.mark.asyncio
    async def test_callback_runs_before_retry(self, make_client, authz):
        events = []
        client = make_client(tidal_backend(events), authz=authz)
        received = []

        def on_refresh(new_authz):
            events.append("callback")
            received.append(new_authz)

        client.on_authz_refresh(on_refresh)

        await client.track(1)

        assert events == ["request:access-old", "refresh", "callback", "request:access-new"]
        assert received == [client.get_authz()]

    @pytest.mark.asyncio
    async def test_refresh_keeps_missing_refresh_token(self, make_client, authz):
        client = make_client(
            tidal_backend(
                refresh_response=lambda: FakeResponse(
                    json_body=token_body("access-new", refresh_token=None, country_code="SE")
                )
            ),
            authz=authz
        )

        await client.track(1)

        new_authz = client.get_authz()
        assert new_authz.refresh_token == "refresh-1"
        assert new_authz.country_code == "NO"

    @pytest.mark.asyncio
    async def test_refresh_takes_profile_country_when_none_stored(self, make_client):
        authz = Authz(access_token="access-old", refresh_token="refresh-1", user_id=42)
        client = make_client(
            tidal_backend(refresh_response=lambda: FakeResponse(json_body=token_body("access-new", country_code="SE"))),
            authz=authz
        )

        await client.track(1)

        assert client.get_authz().country_code == "SE"

    @pytest.mark.asyncio
    async def test_rejected_refresh_keeps_credentials(self, make_client, authz):
        callback = Mock()
        client = make_client(
            tidal_backend(
                refresh_response=lambda: FakeResponse(
                    status=400,
                    json_body={"status": 400, "error": "invalid_grant", "sub_status": 11101}
                )
            ),
            authz=authz
        )
        client.on_authz_refresh(callback)

        with pytest.raises(AuthenticationExpiredError):
            await client.track(1)

        assert client.get_authz() == authz
        callback.assert_not_called()

    @pytest.mark.asyncio
    async def test_still_expired_after_refresh(self, make_client, authz):
        """The retry happens exactly once."""
        client = make_client(
            tidal_backend(
                refresh_response=lambda: FakeResponse(json_body=token_body("access-new")),
                valid_token="never-issued"
            ),
            authz=authz
        )

        with pytest.raises(AuthenticationExpiredError):
            await client.track(1)

        api_requests = [r for r in client.session.requests if not r.url.startswith(AUTH)]
        assert len(api_requests) == 2

    @pytest.mark.asyncio
    async def test_network_failure_during_refresh_propagates(self, make_client, authz):
        def refresh_fails():
            raise NetworkError("connection reset")

        client = make_client(tidal_backend(refresh_response=refresh_fails), authz=authz)

        with pytest.raises(NetworkError):
            await client.track(1)

        assert client.get_authz() == authz

    @pytest.mark.asyncio
    async def test_concurrent_requests_share_one_refresh(self, make_client, authz):
        def handler(request):
            if request.url.startswith(AUTH):
                return FakeResponse(
                    json_body=token_body("access-new", refresh_token="refresh-2"),
                    delay=0.05
                )
            if request.access_token != "access-new":
                return expired_token()
            return FakeResponse(json_body=track_body())

        callback = Mock()
        client = make_client(handler, authz=authz)
        client.on_authz_refresh(callback)

        tracks = await asyncio.gather(*(client.track(1) for _ in range(5)))

        assert len(tracks) == 5
        refresh_requests = [r for r in client.session.requests if r.url.startswith(AUTH)]
        assert len(refresh_requests) == 1
        callback.assert_called_once()
        assert client.session_manager.refresh_count == 1


class TestSessionManager:
    """Test SessionManager in isolation."""

    @pytest.fixture
    def new_authz(self):
        return Authz(access_token="access-new", refresh_token="refresh-2", user_id=42, country_code="NO")

    def test_require_credentials_without_any(self):
        manager = SessionManager(exchange=AsyncMock())

        with pytest.raises(AuthenticationRequiredError):
            manager.require_credentials()

    def test_authorization_header(self, authz):
        assert SessionManager.authorization_header(authz) == {"Authorization": "Bearer access-old"}

    @pytest.mark.asyncio
    async def test_refresh_skipped_when_already_refreshed(self, new_authz):
        exchange = AsyncMock()
        manager = SessionManager(exchange=exchange, credentials=new_authz)

        result = await manager.refresh("access-old")

        assert result is new_authz
        exchange.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_refresh_stores_then_notifies(self, authz, new_authz):
        seen_by_callback = []
        manager = SessionManager(exchange=AsyncMock(return_value=new_authz), credentials=authz)
        manager.on_refresh(lambda value: seen_by_callback.append(manager.credentials))

        result = await manager.refresh("access-old")

        assert result == new_authz
        assert manager.credentials == new_authz
        assert seen_by_callback == [new_authz]

    @pytest.mark.asyncio
    async def test_timeout_fails_every_waiter(self, authz):
        calls = []

        async def slow_exchange(current):
            calls.append(current)
            await asyncio.sleep(1)

        manager = SessionManager(exchange=slow_exchange, refresh_timeout=0.05, credentials=authz)

        results = await asyncio.gather(
            manager.refresh("access-old"),
            manager.refresh("access-old"),
            return_exceptions=True
        )

        assert all(isinstance(result, RequestTimeoutError) for result in results)
        assert len(calls) == 1
        assert manager.credentials == authz

    @pytest.mark.asyncio
    async def test_failed_refresh_can_be_retried_later(self, authz, new_authz):
        exchange = AsyncMock(side_effect=[TidalAPIError(status=400, error="invalid_grant"), new_authz])
        manager = SessionManager(exchange=exchange, credentials=authz)

        with pytest.raises(AuthenticationExpiredError):
            await manager.refresh("access-old")

        assert await manager.refresh("access-old") == new_authz
        assert exchange.await_count == 2

    @pytest.mark.asyncio
    async def test_callback_error_propagates(self, authz, new_authz):
        manager = SessionManager(exchange=AsyncMock(return_value=new_authz), credentials=authz)
        manager.on_refresh(Mock(side_effect=IOError("disk full")))

        with pytest.raises(IOError):
            await manager.refresh("access-old")

        assert manager.credentials == new_authz

    @pytest.mark.asyncio
    async def test_failed_refresh_without_waiters_is_not_reported_unretrieved(self, authz):
        loop = asyncio.get_running_loop()
        reported = []
        loop.set_exception_handler(lambda loop, context: reported.append(context))
        release = asyncio.Event()

        async def failing_exchange(current):
            await release.wait()
            raise NetworkError("connection reset")

        manager = SessionManager(exchange=failing_exchange, credentials=authz)
        waiter = asyncio.ensure_future(manager.refresh("access-old"))
        while manager._refresh_task is None:
            await asyncio.sleep(0)

        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter

        release.set()
        while not manager._refresh_task.done():
            await asyncio.sleep(0)

        del manager, waiter
        gc.collect()
        loop.set_exception_handler(None)

        assert not any("never retrieved" in context.get("message", "") for context in reported)

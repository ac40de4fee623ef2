"""
Base API Client

Owns the aiohttp session and maps raw HTTP exchanges onto decoded JSON or
typed TIDAL errors. Nothing here retries: every failure propagates to the
caller as soon as it is observed.
"""

import asyncio
import json
from typing import Any, Dict, Mapping, Optional, Type, TypeVar
from enum import Enum

import aiohttp
import structlog
from pydantic import BaseModel, ValidationError

from ..exceptions import (
    DecodeError,
    NetworkError,
    RequestTimeoutError,
    TidalAPIError,
    TokenExpiredError
)
from ..models.auth_models import TidalApiErrorBody

logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

# TIDAL sub-status for "The token has expired."
EXPIRED_TOKEN_SUB_STATUS = 11003

MAX_PAGE_LIMIT = 10000


def encode_params(params: Optional[Mapping[str, Any]]) -> Optional[Dict[str, str]]:
    """Render query/form values the way TIDAL expects them."""
    if params is None:
        return None

    encoded = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            encoded[key] = "true" if value else "false"
        elif isinstance(value, Enum):
            encoded[key] = str(value.value)
        else:
            encoded[key] = str(value)
    return encoded


def validate_paging(offset: int, limit: int) -> None:
    if offset < 0:
        raise ValueError(f"offset must be >= 0, got {offset}")
    if limit < 1 or limit > MAX_PAGE_LIMIT:
        raise ValueError(f"limit must be between 1 and {MAX_PAGE_LIMIT}, got {limit}")


def parse_etag(raw: Optional[str]) -> Optional[str]:
    """ETags arrive either JSON-quoted or bare."""
    if raw is None:
        return None
    try:
        value = json.loads(raw)
    except ValueError:
        return raw
    return value if isinstance(value, str) else raw


def decode_model(model: Type[ModelT], data: Any) -> ModelT:
    """Validate decoded JSON against a model, raising DecodeError on mismatch."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.debug(
            "Response did not match schema",
            model=getattr(model, "__name__", str(model)),
            error=str(e)
        )
        raise DecodeError(f"Response did not match {getattr(model, '__name__', model)}: {e}") from e


class BaseAPIClient:
    """
    HTTP client with unified request handling and error mapping.

    The session is created lazily on first use, or supplied by the caller.
    Use as an async context manager (or call ``close()``) to release it.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        user_agent: Optional[str] = None,
        service_name: str = "api",
        session: Optional[aiohttp.ClientSession] = None
    ):
        """
        Initialize base API client.

        Args:
            timeout: Request timeout in seconds
            user_agent: User-Agent header sent with every request
            service_name: Service name for logging and identification
            session: Pre-built aiohttp session (the client will not close it)
        """
        self.timeout = timeout
        self.user_agent = user_agent
        self.service_name = service_name
        self.session: Optional[aiohttp.ClientSession] = session
        self._owns_session = session is None
        self.request_count = 0

        self.logger = logger.bind(
            service=service_name,
            component="BaseAPIClient"
        )

        self.logger.debug("Base API client initialized", timeout=timeout)

    async def __aenter__(self):
        """Async context manager entry."""
        self._get_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
            self._owns_session = True
            self.logger.debug("API client session started")
        return self.session

    async def close(self) -> None:
        if self.session is not None and self._owns_session and not self.session.closed:
            await self.session.close()
            self.logger.debug("API client session closed")
        self.session = None

    async def _make_request(
        self,
        method: str,
        url: str,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        etag: Optional[str] = None
    ) -> Any:
        """
        Send one HTTP request and return the decoded JSON body.

        GET and DELETE send ``params`` as the query string; POST sends them
        as a form body.

        Args:
            method: HTTP method (GET, POST, DELETE)
            url: Absolute URL
            params: Query or form parameters
            headers: Additional headers
            etag: Value for If-None-Match (playlist modifications)

        Returns:
            Decoded JSON (None for an empty body)

        Raises:
            NetworkError: transport failure
            RequestTimeoutError: request timed out
            TidalAPIError: non-success status
            DecodeError: body is not valid JSON
        """
        method = method.upper()
        session = self._get_session()

        request_headers = {}
        if self.user_agent:
            request_headers["User-Agent"] = self.user_agent
        if headers:
            request_headers.update(headers)
        if etag is not None:
            request_headers["If-None-Match"] = etag

        encoded = encode_params(params)
        query = encoded if method in ("GET", "DELETE") else None
        form = encoded if method == "POST" else None

        self.request_count += 1
        self.logger.debug(
            "Making API request",
            method=method,
            url=url,
            param_count=len(encoded or {})
        )

        try:
            async with session.request(
                method=method,
                url=url,
                params=query,
                data=form,
                headers=request_headers,
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as response:
                body = await response.read()
                return self._handle_response(
                    status=response.status,
                    headers=response.headers,
                    body=body,
                    url=url
                )
        except asyncio.TimeoutError as e:
            self.logger.warning("Request timeout", method=method, url=url, timeout=self.timeout)
            raise RequestTimeoutError(f"{self.service_name} request timed out: {method} {url}") from e
        except aiohttp.ClientError as e:
            self.logger.warning(
                "HTTP client error",
                method=method,
                url=url,
                error=str(e),
                error_type=type(e).__name__
            )
            raise NetworkError(f"{self.service_name} request failed: {e}") from e

    def _handle_response(
        self,
        status: int,
        headers: Mapping[str, str],
        body: bytes,
        url: str
    ) -> Any:
        if 200 <= status < 300:
            data = self._parse_body(body, url)

            etag = parse_etag(headers.get("ETag"))
            if etag is not None and isinstance(data, dict) and "etag" not in data:
                data["etag"] = etag

            self.logger.debug(
                "API request successful",
                url=url,
                status=status,
                response_size=len(body)
            )
            return data

        error = self._extract_api_error(status, body)
        self.logger.debug(
            f"{self.service_name} API error",
            url=url,
            status=error.status,
            sub_status=error.sub_status,
            error=error.error,
            user_message=error.user_message
        )

        error_cls = TidalAPIError
        if error.status == 401 and error.sub_status == EXPIRED_TOKEN_SUB_STATUS:
            error_cls = TokenExpiredError

        raise error_cls(
            status=error.status,
            sub_status=error.sub_status,
            user_message=error.user_message or (error.error_description or ""),
            error=error.error,
            url=url
        )

    def _parse_body(self, body: bytes, url: str) -> Any:
        if not body:
            return None
        try:
            return json.loads(body)
        except ValueError as e:
            self.logger.error(f"{self.service_name} invalid JSON response", url=url, error=str(e))
            raise DecodeError(f"{self.service_name} returned invalid JSON from {url}") from e

    def _extract_api_error(self, status: int, body: bytes) -> TidalApiErrorBody:
        """Decode TIDAL's error body, falling back to the bare status."""
        try:
            error = TidalApiErrorBody.model_validate(json.loads(body))
        except (ValueError, ValidationError):
            text = body.decode("utf-8", errors="replace") if body else ""
            return TidalApiErrorBody(status=status, user_message=text)

        if not error.status:
            error = error.model_copy(update={"status": status})
        return error

    def get_service_info(self) -> Dict[str, Any]:
        return {
            "service_name": self.service_name,
            "timeout": self.timeout,
            "session_active": self.session is not None and not self.session.closed,
            "request_count": self.request_count,
            "component_type": "BaseAPIClient"
        }

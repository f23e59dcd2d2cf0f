"""PhotoPrism REST API client adapter."""

import logging
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from photoprism_bridge.domain.photos import PhotoPrismSession
from photoprism_bridge.errors import (
    AuthenticationFailed,
    MalformedResponse,
    SessionHeaderMissing,
    TransportError,
)
from photoprism_bridge.services.session_cache import (
    DEFAULT_SESSION_TTL_SECONDS,
    SessionCache,
)

SESSION_HEADER = "X-Session-ID"

_logger = logging.getLogger(__name__)


class PhotoPrismClient(Protocol):
    """Interface for authenticated PhotoPrism API calls."""

    async def current_session(self) -> PhotoPrismSession:
        """Return the live session, authenticating if necessary."""

    async def send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send an authenticated request and return the raw response."""


def api_url(base_url: str, path: str) -> str:
    """Build an absolute API v1 URL from a server URL and a path."""
    return f"{base_url.rstrip('/')}/api/v1{path}"


@dataclass
class HttpxPhotoPrismAuthenticator:
    """Obtain PhotoPrism sessions with username and password."""

    base_url: str
    username: str
    password: str
    http_client: httpx.AsyncClient

    async def authenticate(self) -> PhotoPrismSession:
        """Create a new PhotoPrism session."""
        try:
            response = await self.http_client.post(
                api_url(self.base_url, "/session"),
                json={"username": self.username, "password": self.password},
            )
        except httpx.HTTPError as exc:
            raise TransportError(
                f"PhotoPrism authentication request failed: {exc}"
            ) from exc

        if response.status_code != httpx.codes.OK:
            raise AuthenticationFailed(response.text)

        session_id = response.headers.get(SESSION_HEADER)
        if not session_id:
            raise SessionHeaderMissing

        try:
            payload = response.json()
        except ValueError as exc:
            raise MalformedResponse(
                "Session response is not JSON", response.text
            ) from exc
        user = payload.get("user") if isinstance(payload, dict) else None
        user_uid = user.get("UID") if isinstance(user, dict) else None
        if not isinstance(user_uid, str):
            raise MalformedResponse("user.UID is missing in session response", payload)
        return PhotoPrismSession(session_id=session_id, user_uid=user_uid)


@dataclass
class HttpxPhotoPrismClient(PhotoPrismClient):
    """PhotoPrism client that attaches the cached session to every request."""

    base_url: str
    http_client: httpx.AsyncClient
    session_cache: SessionCache

    @classmethod
    def create(
        cls,
        base_url: str,
        username: str,
        password: str,
        session_ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS,
        http_client: httpx.AsyncClient | None = None,
    ) -> "HttpxPhotoPrismClient":
        """Create a client with a managed httpx session and session cache."""
        resolved_http_client = http_client or httpx.AsyncClient(timeout=60)
        authenticator = HttpxPhotoPrismAuthenticator(
            base_url=base_url,
            username=username,
            password=password,
            http_client=resolved_http_client,
        )
        return cls(
            base_url=base_url,
            http_client=resolved_http_client,
            session_cache=SessionCache(
                loader=authenticator.authenticate,
                ttl_seconds=session_ttl_seconds,
            ),
        )

    async def current_session(self) -> PhotoPrismSession:
        """Return the cached session."""
        return await self.session_cache.get_or_refresh()

    async def send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send a request with the X-Session-ID header; status is not checked."""
        session = await self.session_cache.get_or_refresh()
        headers = dict(kwargs.pop("headers", None) or {})
        headers[SESSION_HEADER] = session.session_id
        _logger.debug("PhotoPrism %s %s", method, path)
        try:
            return await self.http_client.request(
                method, api_url(self.base_url, path), headers=headers, **kwargs
            )
        except httpx.HTTPError as exc:
            raise TransportError(f"PhotoPrism {method} {path} failed: {exc}") from exc

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

"""Single-slot cache for the authenticated PhotoPrism session."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from photoprism_bridge.domain.photos import PhotoPrismSession

_logger = logging.getLogger(__name__)

DEFAULT_SESSION_TTL_SECONDS = 86400


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class _CacheEntry:
    session: PhotoPrismSession
    expires_at: datetime


@dataclass
class SessionCache:
    """Hold at most one live session and refresh it after the TTL elapses.

    Callers that observe a miss at the same time share a single in-flight
    load, so a burst of requests results in exactly one authentication call.
    The TTL must stay below PhotoPrism's own session timeout.
    """

    loader: Callable[[], Awaitable[PhotoPrismSession]]
    ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS
    clock: Callable[[], datetime] = _utcnow
    _entry: _CacheEntry | None = field(default=None, init=False, repr=False)
    _inflight: "asyncio.Task[PhotoPrismSession] | None" = field(
        default=None, init=False, repr=False
    )

    async def get_or_refresh(self) -> PhotoPrismSession:
        """Return the cached session, authenticating on a miss or expiry."""
        entry = self._entry
        if entry is not None and self.clock() < entry.expires_at:
            return entry.session
        self._entry = None
        # No await between the check and the assignment keeps this atomic.
        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._load())
            self._inflight.add_done_callback(self._clear_inflight)
        return await asyncio.shield(self._inflight)

    def invalidate(self) -> None:
        """Drop the cached session so the next call authenticates again."""
        self._entry = None

    async def _load(self) -> PhotoPrismSession:
        session = await self.loader()
        self._entry = _CacheEntry(
            session=session,
            expires_at=self.clock() + timedelta(seconds=self.ttl_seconds),
        )
        _logger.info(
            "PhotoPrism session refreshed for user %s (ttl=%ss)",
            session.user_uid,
            self.ttl_seconds,
        )
        return session

    def _clear_inflight(self, task: "asyncio.Task[PhotoPrismSession]") -> None:
        if self._inflight is task:
            self._inflight = None

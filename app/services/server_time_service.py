from typing import Optional, Tuple
from datetime import datetime, timedelta, timezone
import asyncio
import time
import logging

from ..core.config import settings
from ..database.database_service import database_service
from ..database.collections import COLLECTIONS

logger = logging.getLogger(__name__)


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class ServerTimeService:
    """Authoritative "now" read from Firestore's clock instead of the host clock.

    A fetch stamps ``_time/now`` with SERVER_TIMESTAMP and reads it back. The
    result is cached for a TTL (advanced by elapsed monotonic time on reuse) and
    concurrent callers share one in-flight fetch. When the store does not answer
    within the timeout, host UTC time is returned and nothing is cached.
    """

    def __init__(self, db=None, timeout_seconds: Optional[float] = None,
                 ttl_seconds: Optional[float] = None, clock=time.monotonic):
        self.db = db or database_service
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else settings.SERVER_TIME_TIMEOUT_SECONDS
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.SERVER_TIME_CACHE_TTL_SECONDS
        self._clock = clock
        self._cached: Optional[datetime] = None
        self._cached_at: float = 0.0
        self._inflight: Optional[asyncio.Future] = None

    async def _read_server_now(self) -> datetime:
        collection = COLLECTIONS['server_time']
        success, error = await self.db.set_document(
            collection, 'now', {'serverNow': self.db.server_timestamp()}, merge=True
        )
        if not success:
            raise RuntimeError(f"Failed to stamp server time: {error}")

        # Retry the read once if the timestamp is not resolved yet
        for _ in range(2):
            success, data, error = await self.db.get_document(collection, 'now')
            stamp = (data or {}).get('serverNow') if success else None
            if isinstance(stamp, datetime):
                return as_utc(stamp)

        raise RuntimeError("serverNow timestamp missing after retry")

    async def fetch_server_now(self) -> Tuple[datetime, bool]:
        """Single bounded fetch. Returns (instant, authoritative)."""
        try:
            value = await asyncio.wait_for(self._read_server_now(), timeout=self.timeout_seconds)
            return value, True
        except asyncio.TimeoutError:
            logger.warning(f"Server time fetch timed out after {self.timeout_seconds}s, using host clock")
        except Exception as e:
            logger.warning(f"Server time fetch failed, using host clock: {e}")
        return datetime.now(timezone.utc), False

    def is_fresh(self, ttl_seconds: Optional[float] = None) -> bool:
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        return self._cached is not None and (self._clock() - self._cached_at) < ttl

    def clear_cache(self) -> None:
        self._cached = None
        self._cached_at = 0.0

    async def _refresh(self) -> datetime:
        try:
            value, authoritative = await self.fetch_server_now()
            if authoritative:
                self._cached = value
                self._cached_at = self._clock()
            return value
        finally:
            self._inflight = None

    async def get_server_now(self, ttl_seconds: Optional[float] = None) -> datetime:
        if self.is_fresh(ttl_seconds):
            return self._cached + timedelta(seconds=self._clock() - self._cached_at)

        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._refresh())
        return await asyncio.shield(self._inflight)

    async def force_refresh(self) -> datetime:
        self.clear_cache()
        return await self.get_server_now(ttl_seconds=0)


server_time_service = ServerTimeService()

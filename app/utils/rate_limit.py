import time
import logging
import redis
from dataclasses import dataclass
from typing import Optional

from app.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

# Create Redis client
redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)


class RateLimitExceededError(Exception):
    """Exception raised when a caller has used up its quota for the window."""

    def __init__(self, retry_after: int):
        self.retry_after = retry_after
        super().__init__(f"Rate limit exceeded, retry in {retry_after} seconds")


@dataclass(frozen=True)
class RateLimitStatus:
    """Outcome of counting one request against a quota."""
    limit: int
    used: int
    retry_after: int

    @property
    def remaining(self) -> int:
        return max(self.limit - self.used, 0)

    @property
    def exceeded(self) -> bool:
        return self.used > self.limit


class RateLimiter:
    """
    Fixed-window request counter backed by Redis.

    Each caller key gets one counter per window. Every hit refreshes the
    counter's TTL to one window length, so stale counters expire on their own.
    When Redis is unreachable the limiter fails open and lets requests through.
    """

    PREFIX = "rate_limit"

    def __init__(
        self,
        client: redis.Redis = None,
        limit: int = None,
        window_seconds: int = None,
    ):
        self.client = client or redis_client
        self.limit = limit or settings.RATE_LIMIT_PER_MINUTE
        self.window_seconds = window_seconds or settings.RATE_LIMIT_WINDOW_SECONDS

    def _make_key(self, identity: str, window: int) -> str:
        """Create a namespaced counter key for one window."""
        return f"{self.PREFIX}:{identity}:{window}"

    def hit(self, identity: str) -> Optional[RateLimitStatus]:
        """
        Count one request for `identity`.

        Returns:
            The quota status, or None when Redis could not be reached
        """
        now = int(time.time())
        window = now // self.window_seconds
        key = self._make_key(identity, window)
        try:
            pipe = self.client.pipeline()
            pipe.incr(key)
            pipe.expire(key, self.window_seconds)
            used, _ = pipe.execute()
        except redis.RedisError as e:
            logger.warning(f"Rate limiter unavailable, allowing request: {e}")
            return None

        retry_after = (window + 1) * self.window_seconds - now
        return RateLimitStatus(limit=self.limit, used=int(used), retry_after=retry_after)

    def check(self, identity: str) -> Optional[RateLimitStatus]:
        """
        Count one request and enforce the quota.

        Raises:
            RateLimitExceededError: If the caller is over its quota
        """
        status = self.hit(identity)
        if status is not None and status.exceeded:
            logger.info(f"Rate limit exceeded for {identity}")
            raise RateLimitExceededError(status.retry_after)
        return status


# Singleton rate limiter instance
rate_limiter = RateLimiter()


def get_rate_limiter() -> RateLimiter:
    """Dependency returning the shared rate limiter."""
    return rate_limiter

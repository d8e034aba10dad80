from typing import Optional

from fastapi import HTTPException
from redis import Redis

from knowledgebase.utils.logger import get_logger

logger = get_logger("knowledgebase.core.rate_limit")


class RateLimiter:
    """
    Fixed-window request counter per user, backed by Redis.
    Without a reachable Redis every check is a no-op (graceful degradation).
    """

    def __init__(self, redis_url: str = "", client: Optional[Redis] = None):
        self.redis = client
        if self.redis is None and redis_url:
            try:
                self.redis = Redis.from_url(redis_url, decode_responses=True, socket_connect_timeout=1)
                self.redis.ping()
                logger.info("Redis connection established for rate limiting")
            except Exception as e:
                logger.warning(f"Redis not available - rate limiting disabled: {e}")
                self.redis = None

    @property
    def enabled(self) -> bool:
        return self.redis is not None

    def check(self, user_id: str, scope: str, limit: int = 30, window: int = 60) -> None:
        if not self.enabled:
            logger.debug(f"Rate limit check skipped (Redis unavailable) for user {user_id}")
            return

        try:
            key = f"rate:{scope}:{user_id}"
            count = self.redis.incr(key)
            if count == 1:
                self.redis.expire(key, window)
            if count > limit:
                logger.warning("Rate limit exceeded", extra={"user_id": user_id, "scope": scope, "count": count, "limit": limit})
                raise HTTPException(status_code=429, detail="Rate limit exceeded")
        except HTTPException:
            raise
        except Exception as e:
            # Redis hiccups must not block the request
            logger.error(f"Rate limit check failed: {e}", extra={"user_id": user_id})

    def close(self) -> None:
        if self.redis is not None:
            self.redis.close()

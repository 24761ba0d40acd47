"""클라이언트 주소별 고정 윈도우 rate limiter"""

import logging
import time
from collections.abc import Callable
from typing import Protocol

from redis.exceptions import RedisError

from signaling.core.redis import get_redis

logger = logging.getLogger(__name__)

RATE_LIMIT_KEY_PREFIX = "rate:turn:"


def make_rate_key(key: str) -> str:
    """클라이언트 주소별 Redis 카운터 키"""
    return f"{RATE_LIMIT_KEY_PREFIX}{key.lower()}"


class RateLimiter(Protocol):
    """rate limiter 프로토콜"""

    async def hit(self, key: str) -> bool:
        """요청 1회 기록

        Returns:
            허용 여부 (한도 초과 시 False)
        """
        ...


class InMemoryRateLimiter:
    """프로세스 메모리 기반 rate limiter (Redis 미설정 시)"""

    def __init__(self, limit: int, window: int, clock: Callable[[], float] = time.monotonic):
        self.limit = limit
        self.window = window
        self._clock = clock
        # key -> (count, reset_at)
        self._counters: dict[str, tuple[int, float]] = {}

    async def hit(self, key: str) -> bool:
        now = self._clock()
        count, reset_at = self._counters.get(key, (0, now + self.window))
        if now >= reset_at:
            count, reset_at = 0, now + self.window

        count += 1
        self._counters[key] = (count, reset_at)

        if len(self._counters) > 1024:
            self._purge(now)
        return count <= self.limit

    def _purge(self, now: float) -> None:
        expired = [key for key, (_, reset_at) in self._counters.items() if now >= reset_at]
        for key in expired:
            del self._counters[key]


class RedisRateLimiter:
    """Redis INCR + EXPIRE 기반 rate limiter"""

    def __init__(self, redis_url: str, limit: int, window: int):
        self.redis_url = redis_url
        self.limit = limit
        self.window = window

    async def hit(self, key: str) -> bool:
        redis_key = make_rate_key(key)
        try:
            client = await get_redis(self.redis_url)
            # TTL 은 매 요청마다 없을 때만 설정
            async with client.pipeline(transaction=True) as pipe:
                pipe.incr(redis_key)
                pipe.expire(redis_key, self.window, nx=True)
                count, _ = await pipe.execute()
        except RedisError as e:
            # 카운터 저장소 장애 시 요청은 허용
            logger.warning(f"Rate limit check failed for {key}: {e}")
            return True
        return count <= self.limit


def build_rate_limiter(redis_url: str, limit: int, window: int) -> RateLimiter | None:
    """설정에 맞는 rate limiter 생성 (limit 이 0 이하면 None)"""
    if limit <= 0:
        return None
    if redis_url:
        return RedisRateLimiter(redis_url, limit, window)
    return InMemoryRateLimiter(limit, window)

"""
Rate limiting for API endpoints
"""
import time
from collections import defaultdict
from fastapi import Request
from typing import Dict, Optional
import logging
import redis

from numbly.errors import RateLimitedError

logger = logging.getLogger(__name__)

WINDOWS = (("minute", 60), ("hour", 3600))


class RateLimiter:
    """
    Per-client request limiter

    Uses Redis fixed-window counters when a Redis URL is configured so limits
    hold across workers; otherwise keeps sliding windows in process memory.
    """
    
    def __init__(
        self,
        requests_per_minute: int = 60,
        requests_per_hour: int = 1000,
        redis_url: Optional[str] = None
    ):
        self.limits = {"minute": requests_per_minute, "hour": requests_per_hour}
        
        # Storage: {client_id: [timestamp, ...]}
        self.trackers: Dict[str, Dict[str, list]] = {
            name: defaultdict(list) for name, _ in WINDOWS
        }
        
        self.redis_client = None
        if redis_url:
            try:
                self.redis_client = redis.from_url(
                    redis_url,
                    decode_responses=True,
                    socket_connect_timeout=5
                )
                self.redis_client.ping()
                logger.info("Redis connection established for rate limiting")
            except redis.RedisError as e:
                logger.warning(f"Redis connection failed: {str(e)}. Using in-memory rate limiting.")
                self.redis_client = None
    
    def _get_client_id(self, request: Request) -> str:
        """Extract client identifier from request"""
        authorization = request.headers.get("authorization", "")
        if authorization.lower().startswith("bearer "):
            return f"token:{authorization[7:].strip()}"
        
        # Fallback to IP address
        client_ip = request.client.host if request.client else "unknown"
        return f"ip:{client_ip}"
    
    def _cleanup_old_entries(self, tracker: Dict[str, list], window_seconds: int, now: float):
        """Remove entries older than window"""
        cutoff_time = now - window_seconds
        
        for client_id in list(tracker.keys()):
            tracker[client_id] = [ts for ts in tracker[client_id] if ts > cutoff_time]
            
            # Remove empty entries
            if not tracker[client_id]:
                del tracker[client_id]
    
    def _hit_memory(self, client_id: str) -> None:
        now = time.time()
        
        for name, window_seconds in WINDOWS:
            self._cleanup_old_entries(self.trackers[name], window_seconds, now)
            if len(self.trackers[name][client_id]) >= self.limits[name]:
                self._reject(client_id, name, window_seconds)
        
        # Record this request
        for name, _ in WINDOWS:
            self.trackers[name][client_id].append(now)
    
    def _hit_redis(self, client_id: str) -> None:
        now = int(time.time())
        pipe = self.redis_client.pipeline()
        for name, window_seconds in WINDOWS:
            key = f"ratelimit:{name}:{now // window_seconds}:{client_id}"
            pipe.incr(key)
            pipe.expire(key, window_seconds)
        results = pipe.execute()
        
        # results alternate incr, expire per window
        for (name, window_seconds), count in zip(WINDOWS, results[::2]):
            if count > self.limits[name]:
                self._reject(client_id, name, window_seconds)
    
    def _reject(self, client_id: str, window: str, retry_after: int):
        logger.warning(f"Rate limit exceeded ({window}): {client_id}")
        error = RateLimitedError(
            f"Too many requests. Limit: {self.limits[window]} requests per {window}"
        )
        error.retry_after = retry_after
        raise error
    
    async def check_rate_limit(self, request: Request) -> None:
        """
        Check if request exceeds rate limits
        
        Raises:
            RateLimitedError: if a per-minute or per-hour limit is exceeded
        """
        client_id = self._get_client_id(request)
        
        if self.redis_client is not None:
            try:
                self._hit_redis(client_id)
                return
            except redis.RedisError as e:
                logger.error(f"Redis rate limit check failed: {str(e)}. Falling back to memory.")
        
        self._hit_memory(client_id)
        logger.debug(f"Rate limit check passed: {client_id}")


# Global instance
from numbly.config import settings
rate_limiter = RateLimiter(
    requests_per_minute=settings.RATE_LIMIT_PER_MINUTE,
    requests_per_hour=settings.RATE_LIMIT_PER_HOUR,
    redis_url=settings.REDIS_URL
)

"""Redis-backed rate limiter middleware."""
import logging
import time
from typing import Optional, Tuple

import redis
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from farmdirect.monitoring import rate_limit_exceeded_counter, suspicious_activity_counter

logger = logging.getLogger(__name__)

# (status predicate, redis key tag, threshold, activity type) over a 5 minute window
SUSPICIOUS_PATTERNS = (
    (lambda status: status == 401, "401", 5, "credential_stuffing"),
    (lambda status: status == 404, "404", 10, "endpoint_scanning"),
    (lambda status: 400 <= status < 500, "4xx", 20, "abuse"),
)


def token_fingerprint(token: str) -> str:
    """Short per-token key; JWT headers are identical, so use the signature tail."""
    return token[-16:]


class RedisRateLimiter(BaseHTTPMiddleware):
    """
    Rate limiter using Redis sorted sets as a sliding window.

    Two tiers:
    - Per IP: higher limit, tolerates shared addresses
    - Per bearer token: lower limit, stops individual abuse

    Redis errors fail open so an outage never takes the API down.
    """

    def __init__(
        self,
        app,
        redis_client: redis.Redis,
        requests_per_minute_ip: int = 600,
        requests_per_minute_user: int = 120,
        window_seconds: int = 60,
        suspicious_window_seconds: int = 300
    ):
        """
        Initialize Redis-backed rate limiter.

        Args:
            app: FastAPI application
            redis_client: Redis connection
            requests_per_minute_ip: Max requests per IP per window
            requests_per_minute_user: Max requests per token per window
            window_seconds: Sliding window size in seconds
            suspicious_window_seconds: Window for suspicious activity counting
        """
        super().__init__(app)
        self.redis = redis_client
        self.requests_per_minute_ip = requests_per_minute_ip
        self.requests_per_minute_user = requests_per_minute_user
        self.window_seconds = window_seconds
        self.suspicious_window_seconds = suspicious_window_seconds

    def _check_rate_limit(self, key: str, limit: int, window: int) -> Tuple[bool, int]:
        """
        Check rate limit using Redis sorted set (sliding window).

        Algorithm:
        1. Remove timestamps older than window
        2. Count requests in window
        3. Add current request
        4. Set TTL

        Returns:
            Tuple of (is_allowed, current_count)
        """
        try:
            current_time = time.time()
            window_start = current_time - window

            pipe = self.redis.pipeline()
            pipe.zremrangebyscore(key, 0, window_start)
            pipe.zcard(key)
            pipe.zadd(key, {str(current_time): current_time})
            pipe.expire(key, window + 1)
            results = pipe.execute()

            # Count before the current request
            count = results[1]
            return count < limit, count + 1

        except redis.RedisError as e:
            logger.error(f"Redis rate limit error: {e}")
            return True, 0

    def _reject(self, limit_type: str, limit: int) -> JSONResponse:
        return JSONResponse(
            status_code=429,
            content={
                "success": False,
                "message": f"Rate limit exceeded for {limit_type}. Maximum {limit} requests per minute."
            },
            headers={"Retry-After": str(self.window_seconds)}
        )

    async def dispatch(self, request: Request, call_next):
        """
        Process request with dual-tier rate limiting.

        Returns:
            Response, or a 429 envelope when a limit is exceeded
        """
        client_ip = request.client.host if request.client else "unknown"
        if "x-forwarded-for" in request.headers:
            client_ip = request.headers["x-forwarded-for"].split(",")[0].strip()

        user_key = None
        auth_header = request.headers.get("authorization")
        if auth_header and auth_header.startswith("Bearer "):
            user_key = token_fingerprint(auth_header.split(" ", 1)[1].strip())

        ip_allowed, ip_count = self._check_rate_limit(
            f"rate:ip:{client_ip}",
            self.requests_per_minute_ip,
            self.window_seconds
        )
        if not ip_allowed:
            rate_limit_exceeded_counter.add(1, {"limit_type": "ip"})
            logger.warning("Rate limit exceeded for IP", extra={
                "client_ip": client_ip,
                "count": ip_count,
                "limit": self.requests_per_minute_ip
            })
            return self._reject("IP", self.requests_per_minute_ip)

        if user_key:
            user_allowed, user_count = self._check_rate_limit(
                f"rate:user:{user_key}",
                self.requests_per_minute_user,
                self.window_seconds
            )
            if not user_allowed:
                rate_limit_exceeded_counter.add(1, {"limit_type": "user"})
                logger.warning("Rate limit exceeded for user", extra={
                    "client_ip": client_ip,
                    "count": user_count,
                    "limit": self.requests_per_minute_user
                })
                return self._reject("user", self.requests_per_minute_user)

        response = await call_next(request)

        self._detect_suspicious_activity(response.status_code, client_ip)

        return response

    def _detect_suspicious_activity(self, status_code: int, client_ip: str) -> Optional[str]:
        """
        Record error responses per IP and flag suspicious patterns.

        Patterns:
        - Credential stuffing: 5+ 401s in the window
        - Endpoint scanning: 10+ 404s in the window
        - Abuse: 20+ 4xx responses in the window

        Returns:
            The last pattern flagged for this response, if any
        """
        flagged = None
        try:
            current_time = time.time()
            window = self.suspicious_window_seconds

            for matches, tag, threshold, activity in SUSPICIOUS_PATTERNS:
                if not matches(status_code):
                    continue
                key = f"suspicious:{tag}:{client_ip}"
                self.redis.zadd(key, {str(current_time): current_time})
                self.redis.expire(key, window + 1)

                count = self.redis.zcount(key, current_time - window, current_time)
                if count >= threshold:
                    flagged = activity
                    suspicious_activity_counter.add(1, {"type": activity})
                    logger.warning(f"Suspicious activity: {activity} from {client_ip}", extra={
                        "client_ip": client_ip,
                        "count": count,
                        "window_seconds": window
                    })

        except redis.RedisError as e:
            logger.error(f"Error detecting suspicious activity: {e}")

        return flagged

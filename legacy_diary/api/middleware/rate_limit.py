"""Rate limiting middleware for the Legacy Diary API

Per-IP sliding windows (per minute and per hour) kept in TTLCaches so idle
IPs expire on their own. Legacy access endpoints get a tighter minute limit
because they accept guessable access codes.
"""

from __future__ import annotations

import ipaddress
import secrets
import time
from collections.abc import Callable
from typing import Any

from cachetools import TTLCache
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from legacy_diary.config import RATE_LIMIT_MAX_IPS, is_development
from legacy_diary.observability.telemetry import log_event

EXEMPT_PATHS = frozenset({"/", "/health", "/health/db"})
LEGACY_ACCESS_PREFIX = "/api/legacy/"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Request rate limiting per client IP.

    Single-process only; a multi-instance deployment needs a shared store.
    """

    def __init__(
        self,
        app: Any,
        requests_per_minute: int = 60,
        requests_per_hour: int = 1000,
        legacy_access_per_minute: int = 10,
        trusted_proxy_header: str | None = None,
    ) -> None:
        super().__init__(app)
        self.requests_per_minute = requests_per_minute
        self.requests_per_hour = requests_per_hour
        self.legacy_access_per_minute = legacy_access_per_minute

        self.minute_buckets: TTLCache[str, list[float]] = TTLCache(
            maxsize=RATE_LIMIT_MAX_IPS, ttl=120
        )
        self.hour_buckets: TTLCache[str, list[float]] = TTLCache(
            maxsize=RATE_LIMIT_MAX_IPS, ttl=7200
        )
        self.legacy_buckets: TTLCache[str, list[float]] = TTLCache(
            maxsize=RATE_LIMIT_MAX_IPS, ttl=120
        )

        # X-Forwarded-For is only trusted when the proxy marks the request
        self._trusted_proxy_header = trusted_proxy_header

    def _is_valid_ip(self, ip_str: str) -> bool:
        try:
            ipaddress.ip_address(ip_str)
            return True
        except ValueError:
            return False

    def _forwarded_ip(self, request: Request) -> str | None:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            ip = forwarded.split(",")[0].strip()
            if self._is_valid_ip(ip):
                return ip
        return None

    def _get_client_ip(self, request: Request) -> str:
        """Extract client IP with spoofing protection."""
        if self._trusted_proxy_header and self._trusted_proxy_header in request.headers:
            ip = self._forwarded_ip(request)
            if ip:
                return ip

        if is_development():
            ip = self._forwarded_ip(request)
            if ip:
                return ip

        return request.client.host if request.client else "unknown"

    def _clean_old_requests(self, bucket: list[float], max_age_seconds: int) -> list[float]:
        """Remove requests older than max_age_seconds"""
        now = time.time()
        return [ts for ts in bucket if now - ts < max_age_seconds]

    def _cleanup_old_buckets(self) -> None:
        """Drop IPs idle for two hours. TTLCache expires most of them already."""
        now = time.time()
        max_idle_time = 7200

        for ip in list(self.minute_buckets.keys()):
            bucket = self.minute_buckets.get(ip, [])
            if not bucket or now - max(bucket) > max_idle_time:
                self.minute_buckets.pop(ip, None)
                self.hour_buckets.pop(ip, None)

    def _too_many(self, client_ip: str, limit: int, window: str, retry_after: int) -> Response:
        log_event("api.rate_limit.request_exceeded", ip=client_ip, limit=window)
        return JSONResponse(
            status_code=429,
            content={
                "detail": f"Rate limit exceeded. Maximum {limit} requests per {window}.",
                "retry_after": retry_after,
            },
            headers={"Retry-After": str(retry_after)},
        )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in EXEMPT_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        if secrets.randbelow(100) == 0:
            self._cleanup_old_buckets()

        client_ip = self._get_client_ip(request)
        now = time.time()

        minute_bucket = self._clean_old_requests(self.minute_buckets.get(client_ip, []), 60)
        hour_bucket = self._clean_old_requests(self.hour_buckets.get(client_ip, []), 3600)

        if len(minute_bucket) >= self.requests_per_minute:
            self.minute_buckets[client_ip] = minute_bucket
            return self._too_many(client_ip, self.requests_per_minute, "minute", 60)

        if len(hour_bucket) >= self.requests_per_hour:
            self.hour_buckets[client_ip] = hour_bucket
            return self._too_many(client_ip, self.requests_per_hour, "hour", 3600)

        if request.url.path.startswith(LEGACY_ACCESS_PREFIX):
            legacy_bucket = self._clean_old_requests(self.legacy_buckets.get(client_ip, []), 60)
            if len(legacy_bucket) >= self.legacy_access_per_minute:
                self.legacy_buckets[client_ip] = legacy_bucket
                return self._too_many(client_ip, self.legacy_access_per_minute, "minute", 60)
            legacy_bucket.append(now)
            self.legacy_buckets[client_ip] = legacy_bucket

        minute_bucket.append(now)
        hour_bucket.append(now)
        self.minute_buckets[client_ip] = minute_bucket
        self.hour_buckets[client_ip] = hour_bucket

        response = await call_next(request)

        response.headers["X-RateLimit-Limit-Minute"] = str(self.requests_per_minute)
        response.headers["X-RateLimit-Remaining-Minute"] = str(
            max(0, self.requests_per_minute - len(minute_bucket))
        )
        response.headers["X-RateLimit-Limit-Hour"] = str(self.requests_per_hour)
        response.headers["X-RateLimit-Remaining-Hour"] = str(
            max(0, self.requests_per_hour - len(hour_bucket))
        )
        return response

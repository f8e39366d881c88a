"""Security headers middleware for the Legacy Diary API

Adds security headers to all responses:
- Content-Security-Policy
- X-Frame-Options
- X-Content-Type-Options
- Strict-Transport-Security (production only)
- Referrer-Policy
"""

from __future__ import annotations

from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from legacy_diary.config import is_production


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses"""

    def __init__(self, app, force_hsts: bool = False):
        super().__init__(app)
        self.enable_hsts = force_hsts or is_production()

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        # JSON API only: nothing may be loaded or framed
        response.headers["Content-Security-Policy"] = (
            "default-src 'none'; frame-ancestors 'none'; base-uri 'none'"
        )
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        if self.enable_hsts:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        response.headers["Permissions-Policy"] = (
            "geolocation=(), microphone=(), camera=(), "
            "payment=(), usb=(), magnetometer=(), gyroscope=()"
        )

        # Diary content, wills and legacy bundles are private
        if request.url.path.startswith("/api/"):
            response.headers["Cache-Control"] = "no-store"

        return response

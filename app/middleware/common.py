"""
Request logging and security header middleware
"""

from starlette.middleware.base import BaseHTTPMiddleware

from app.core.logger import get_logger

logger = get_logger(__name__)

SECURE_HEADERS = {
    "Content-Security-Policy": (
        "default-src 'self'; style-src 'self' fonts.googleapis.com; font-src fonts.gstatic.com"
    ),
    "Referrer-Policy": "origin-when-cross-origin",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "deny",
    "X-XSS-Protection": "0",
}


class SecureHeadersMiddleware(BaseHTTPMiddleware):
    """Adds browser security headers to every response"""

    async def dispatch(self, request, call_next):
        response = await call_next(request)
        for name, value in SECURE_HEADERS.items():
            response.headers[name] = value
        return response


class RequestLogMiddleware(BaseHTTPMiddleware):
    """Logs one line per incoming request"""

    async def dispatch(self, request, call_next):
        client = request.client.host if request.client else "-"
        http_version = request.scope.get("http_version", "1.1")
        uri = request.url.path
        if request.url.query:
            uri = f"{uri}?{request.url.query}"
        logger.info("%s - HTTP/%s %s %s", client, http_version, request.method, uri)
        return await call_next(request)

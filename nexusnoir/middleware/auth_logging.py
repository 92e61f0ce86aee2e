from fastapi import Request
import logging
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("nexusnoir")

# Paths that never need a bearer token
PUBLIC_PATH_SUFFIXES = ("/auth/login", "/auth/signup", "/docs", "/redoc", "/openapi.json", "/health")

class AuthLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        path = request.url.path

        if (
            path.startswith("/api/")
            and not request.headers.get("Authorization")
            and not path.endswith(PUBLIC_PATH_SUFFIXES)
        ):
            logger.debug(f"Protected endpoint {path} accessed without auth header")

        response = await call_next(request)

        # Log auth-related status codes
        if response.status_code in [401, 403]:
            logger.warning(f"Auth error: {response.status_code} on {request.method} {path}")

        return response

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from storeapi.core import responses
from storeapi.core.config import Settings, get_settings
from storeapi.core.errors import AppError, FailureKind
from storeapi.routers import auth as auth_router
from storeapi.routers import categories as categories_router
from storeapi.routers import coupons as coupons_router
from storeapi.services.auth_service import AuthService

logger = logging.getLogger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Inject baseline security headers (anti clickjacking, no sniffing, HSTS in prod)."""

    def __init__(self, app, *, enforce_hsts: bool) -> None:
        super().__init__(app)
        self._enforce_hsts = enforce_hsts

    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        # reset links carry the raw token in the query string
        response.headers.setdefault("Cache-Control", "no-store")
        if self._enforce_hsts:
            response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
        return response


async def _app_error_handler(request: Request, exc: AppError):
    return responses.failure(exc.message, exc.status)


async def _validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(part) for part in err.get("loc", ())[1:]), "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    kind = FailureKind.INVALID_INPUT
    return responses.failure(kind.default_message, kind.status, errors=errors)


async def _unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    kind = FailureKind.INTERNAL_FAILURE
    return responses.failure(kind.default_message, kind.status)


def create_app(settings: Optional[Settings] = None, auth_service: Optional[AuthService] = None) -> FastAPI:
    """Factory compatible with uvicorn/gunicorn (``uvicorn storeapi.app:create_app --factory``)."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="Store API")
    app.state.settings = settings
    app.state.auth_service = auth_service or AuthService(settings=settings)

    allowed_cors = {settings.frontend_url}
    if settings.app_env != "prod":
        allowed_cors.update({"http://localhost:3000", "http://127.0.0.1:3000", "http://localhost:5173"})
    allowed_cors = {origin for origin in allowed_cors if origin}
    if allowed_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=sorted(allowed_cors),
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            allow_headers=["*"],
        )
    app.add_middleware(SecurityHeadersMiddleware, enforce_hsts=settings.app_env == "prod")

    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)

    app.include_router(auth_router.router)
    app.include_router(categories_router.router)
    app.include_router(coupons_router.router)
    return app

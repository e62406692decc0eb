"""
Ads Platform Manager - FastAPI Application Entry Point
"""
import logging
from contextlib import asynccontextmanager
from urllib.parse import urlparse

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.middleware.sessions import SessionMiddleware

from ads_manager.core.config import settings
from ads_manager.core.exceptions import (
    ApiAuthorizationError,
    ApiNotFoundError,
    ApiTransientError,
    PlatformApiError,
    SessionRequired,
)
from ads_manager.core.logging import setup_logging
from ads_manager.core.session import SessionContext
from ads_manager.api.v1 import api_router, page_router
from ads_manager.api.v1.pages import render
from ads_manager.schemas.common import ErrorResponse
from ads_manager.services.campaign_builder import DraftStore
from ads_manager.services.query_cache import QueryCacheRegistry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Environment: {settings.ENVIRONMENT}, API: {settings.platform_api_url}")

    yield

    logger.info(f"Shutting down {settings.APP_NAME}")


def _is_api_request(request: Request) -> bool:
    return request.url.path.startswith(api_router.prefix)


def _error_json(status_code: int, message: str, detail=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message, detail=detail).model_dump(),
    )


def _back_url(request: Request) -> str:
    """Same-origin Referer, else the default authenticated view"""
    referer = request.headers.get("referer")
    if referer:
        parsed = urlparse(referer)
        if parsed.netloc in ("", request.url.netloc):
            return parsed.path + (f"?{parsed.query}" if parsed.query else "")
    return settings.DEFAULT_AUTHENTICATED_PATH


# ========================================
# Exception handlers
# ========================================

async def session_required_handler(request: Request, exc: SessionRequired):
    if _is_api_request(request):
        return _error_json(status.HTTP_401_UNAUTHORIZED, "Authentication required")
    return RedirectResponse(settings.LOGIN_PATH, status_code=status.HTTP_303_SEE_OTHER)


async def authorization_error_handler(request: Request, exc: ApiAuthorizationError):
    """
    The server no longer accepts the token: tear the session down and send
    the user to login once. The login view makes no authenticated calls.
    """
    session = SessionContext(request.session)
    request.app.state.cache_registry.drop(session.user_id)
    request.app.state.draft_store.discard_owner(session.user_id)
    session.clear()

    if _is_api_request(request):
        return _error_json(status.HTTP_401_UNAUTHORIZED, exc.message)
    return RedirectResponse(
        f"{settings.LOGIN_PATH}?expired=1", status_code=status.HTTP_303_SEE_OTHER
    )


async def not_found_handler(request: Request, exc: ApiNotFoundError):
    if _is_api_request(request):
        return _error_json(status.HTTP_404_NOT_FOUND, exc.message)
    return render(
        request,
        "error.html",
        {"title": "Not found", "message": exc.message, "retry_url": None},
        status_code=status.HTTP_404_NOT_FOUND,
    )


async def platform_error_handler(request: Request, exc: PlatformApiError):
    """Transient and unexpected API failures: error page, flash or JSON"""
    status_code = (
        status.HTTP_503_SERVICE_UNAVAILABLE
        if isinstance(exc, ApiTransientError)
        else status.HTTP_502_BAD_GATEWAY
    )
    logger.warning(f"{request.method} {request.url.path} failed: {exc.message}")

    if _is_api_request(request):
        return _error_json(status_code, exc.message)
    if request.method != "GET":
        SessionContext(request.session).flash(exc.message, "error")
        return RedirectResponse(_back_url(request), status_code=status.HTTP_303_SEE_OTHER)
    return render(
        request,
        "error.html",
        {"title": "Something went wrong", "message": exc.message, "retry_url": str(request.url)},
        status_code=status_code,
    )


def create_app() -> FastAPI:
    """Create FastAPI application"""
    setup_logging(settings.LOG_LEVEL, debug=settings.DEBUG)

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Meta advertising campaign management dashboard",
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        lifespan=lifespan,
    )

    app.state.cache_registry = QueryCacheRegistry(
        settings.QUERY_CACHE_TTL_SECONDS, max_users=settings.QUERY_CACHE_MAX_USERS
    )
    app.state.draft_store = DraftStore(settings.DRAFT_STORE_MAX_DRAFTS)

    # Signed cookie session (token, user, connect marker, draft id, flashes)
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SECRET_KEY,
        session_cookie=settings.SESSION_COOKIE_NAME,
        max_age=settings.SESSION_MAX_AGE_SECONDS,
        https_only=settings.SESSION_HTTPS_ONLY,
        same_site="lax",
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(SessionRequired, session_required_handler)
    app.add_exception_handler(ApiAuthorizationError, authorization_error_handler)
    app.add_exception_handler(ApiNotFoundError, not_found_handler)
    app.add_exception_handler(PlatformApiError, platform_error_handler)

    # Include API routers
    app.include_router(api_router)

    # Include page routes (HTML pages)
    app.include_router(page_router)

    return app


# Create app instance
app = create_app()

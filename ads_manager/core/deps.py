"""
Dependency injection for FastAPI
"""
import logging
from typing import AsyncGenerator

from fastapi import Depends, Request

from ads_manager.core.exceptions import SessionRequired
from ads_manager.core.session import SessionContext
from ads_manager.services.accounts import AccountService
from ads_manager.services.analytics import AnalyticsService
from ads_manager.services.campaign_builder import DraftStore
from ads_manager.services.campaigns import CampaignService
from ads_manager.services.platform_api import PlatformApiClient
from ads_manager.services.query_cache import ACCOUNTS, FACEBOOK_PAGES, QueryCache, QueryCacheRegistry

logger = logging.getLogger(__name__)


def get_session_context(request: Request) -> SessionContext:
    """Per-request view over the signed session cookie"""
    return SessionContext(request.session)


def get_cache_registry(request: Request) -> QueryCacheRegistry:
    return request.app.state.cache_registry


def get_draft_store(request: Request) -> DraftStore:
    return request.app.state.draft_store


async def get_api_client(
    session: SessionContext = Depends(get_session_context),
) -> AsyncGenerator[PlatformApiClient, None]:
    """API client carrying the session's bearer token, closed after the request"""
    client = PlatformApiClient(token=session.token)
    try:
        yield client
    finally:
        await client.close()


def get_current_session(
    session: SessionContext = Depends(get_session_context),
    registry: QueryCacheRegistry = Depends(get_cache_registry),
) -> SessionContext:
    """
    Authenticated session or SessionRequired.

    A stored token that has expired is cleared here, so the next page
    load lands on the login view instead of failing against the API.
    """
    if session.token and not session.is_authenticated:
        logger.info(f"Expired session for user {session.user_id}")
        registry.drop(session.user_id)
        session.clear()
    if not session.is_authenticated:
        raise SessionRequired()
    return session


def get_cache(
    session: SessionContext = Depends(get_current_session),
    registry: QueryCacheRegistry = Depends(get_cache_registry),
) -> QueryCache:
    return registry.for_user(session.user_id)


def require_session(
    session: SessionContext = Depends(get_current_session),
    cache: QueryCache = Depends(get_cache),
) -> SessionContext:
    """
    Authenticated session for pages and JSON endpoints.

    A leftover Meta connect marker means the user came back from the
    provider some other way than the callback path: refetch accounts and
    pages once.
    """
    if session.consume_connect_pending():
        logger.info("Pending Meta connect found, refreshing accounts")
        cache.invalidate(ACCOUNTS, FACEBOOK_PAGES)
    return session


def get_account_service(
    api: PlatformApiClient = Depends(get_api_client),
    cache: QueryCache = Depends(get_cache),
) -> AccountService:
    return AccountService(api, cache)


def get_campaign_service(
    api: PlatformApiClient = Depends(get_api_client),
    cache: QueryCache = Depends(get_cache),
) -> CampaignService:
    return CampaignService(api, cache)


def get_analytics_service(
    api: PlatformApiClient = Depends(get_api_client),
    cache: QueryCache = Depends(get_cache),
) -> AnalyticsService:
    return AnalyticsService(api, cache)

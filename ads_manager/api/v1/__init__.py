"""
API v1 routes
"""
from fastapi import APIRouter

from ads_manager.api.v1 import campaign_drafts, campaign_pages, health, pages

api_router = APIRouter(prefix="/api/v1")

# Include routers
api_router.include_router(health.router)
api_router.include_router(campaign_drafts.router)

# Page routes (no prefix)
page_router = APIRouter()
page_router.include_router(pages.router)
page_router.include_router(campaign_pages.router)

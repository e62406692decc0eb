"""
Campaign accessor: cached reads, invalidating writes, local filtering
"""
import logging
from collections import Counter
from typing import Dict, Iterable, List, Optional

from ads_manager.core.exceptions import ApiAuthorizationError, PlatformApiError
from ads_manager.models.enums import CampaignStatus
from ads_manager.schemas.campaigns import (
    BulkStatusResult,
    Campaign,
    CampaignCreate,
    CampaignFilters,
    StatusUpdate,
)
from ads_manager.services.platform_api import PlatformApiClient
from ads_manager.services.query_cache import CAMPAIGN, CAMPAIGNS, METRICS, QueryCache, make_key

logger = logging.getLogger(__name__)


def filter_campaigns(
    campaigns: Iterable[Campaign],
    search: Optional[str] = None,
    status: Optional[CampaignStatus] = None,
) -> List[Campaign]:
    """Case-insensitive name search plus exact status match"""
    term = (search or "").strip().lower()
    return [
        c for c in campaigns
        if (not term or term in c.name.lower()) and (status is None or c.status == status)
    ]


def count_by_status(campaigns: Iterable[Campaign]) -> Dict[str, int]:
    counts = Counter(c.status.value for c in campaigns)
    return {s.value: counts.get(s.value, 0) for s in CampaignStatus}


class CampaignService:
    """Campaign reads and mutations for the current user"""

    def __init__(self, api: PlatformApiClient, cache: QueryCache):
        self.api = api
        self.cache = cache

    async def list_campaigns(self, filters: Optional[CampaignFilters] = None) -> List[Campaign]:
        params = filters.model_dump(mode="json") if filters else None

        async def load():
            return await self.api.list_campaigns(filters)

        return await self.cache.fetch(make_key(CAMPAIGNS, params), load)

    async def get_campaign(self, campaign_id: str) -> Campaign:
        async def load():
            return await self.api.get_campaign(campaign_id)

        return await self.cache.fetch(make_key(CAMPAIGN, {"id": campaign_id}), load)

    async def create_campaign(self, payload: CampaignCreate) -> Campaign:
        campaign = await self.api.create_campaign(payload)
        logger.info(f"Created campaign {campaign.id} ({campaign.name})")
        self.cache.invalidate(CAMPAIGNS)
        return campaign

    async def update_status(self, campaign_id: str, status: CampaignStatus) -> Optional[Campaign]:
        campaign = await self.api.update_campaign_status(campaign_id, StatusUpdate(status=status))
        logger.info(f"Campaign {campaign_id} status -> {status.value}")
        self.cache.invalidate(CAMPAIGNS, CAMPAIGN, METRICS)
        return campaign

    async def bulk_update_status(
        self,
        campaign_ids: Iterable[str],
        status: CampaignStatus,
    ) -> BulkStatusResult:
        """
        Apply one status to several campaigns, one request at a time.

        Failures are collected per id instead of aborting the batch; the
        caller reports them.
        """
        result = BulkStatusResult(status=status)
        for campaign_id in dict.fromkeys(campaign_ids):
            try:
                await self.api.update_campaign_status(campaign_id, StatusUpdate(status=status))
            except ApiAuthorizationError:
                # Every remaining request would fail the same way
                if result.succeeded:
                    self.cache.invalidate(CAMPAIGNS, CAMPAIGN, METRICS)
                raise
            except PlatformApiError as e:
                logger.warning(f"Bulk status change failed for {campaign_id}: {e.message}")
                result.failed[campaign_id] = e.message
            else:
                result.succeeded.append(campaign_id)

        if result.succeeded:
            self.cache.invalidate(CAMPAIGNS, CAMPAIGN, METRICS)
        return result

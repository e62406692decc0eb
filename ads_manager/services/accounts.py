"""
Meta account and Facebook Page accessor
"""
import logging
from typing import List

from ads_manager.schemas.accounts import FacebookPage, MetaAccount
from ads_manager.services.platform_api import PlatformApiClient
from ads_manager.services.query_cache import (
    ACCOUNTS,
    CAMPAIGN,
    CAMPAIGNS,
    FACEBOOK_PAGES,
    QueryCache,
    make_key,
)

logger = logging.getLogger(__name__)


class AccountService:
    """Connected Meta ad accounts of the current user"""

    def __init__(self, api: PlatformApiClient, cache: QueryCache):
        self.api = api
        self.cache = cache

    async def list_accounts(self) -> List[MetaAccount]:
        return await self.cache.fetch(make_key(ACCOUNTS), self.api.list_accounts)

    async def disconnect(self, account_id: str) -> None:
        """Unlink an account; its campaigns disappear from the campaign lists"""
        await self.api.disconnect_account(account_id)
        logger.info(f"Disconnected Meta account {account_id}")
        self.cache.invalidate(ACCOUNTS, CAMPAIGNS, CAMPAIGN)

    async def sync(self, account_id: str) -> None:
        await self.api.sync_account(account_id)
        logger.info(f"Synced Meta account {account_id}")
        self.cache.invalidate(ACCOUNTS, CAMPAIGNS, CAMPAIGN)

    async def list_facebook_pages(self) -> List[FacebookPage]:
        return await self.cache.fetch(make_key(FACEBOOK_PAGES), self.api.list_facebook_pages)

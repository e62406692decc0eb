"""
Meta ad account schemas
"""
from datetime import datetime
from typing import Optional
from pydantic import Field

from ads_manager.schemas.common import ApiModel


class MetaAccount(ApiModel):
    """A linked Meta advertising account (read-only apart from disconnect)"""
    id: str
    account_id: str
    account_name: str
    currency: str = "USD"
    status: Optional[str] = Field(default=None, alias="accountStatus")
    is_active: bool = True
    meta_app_id: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def label(self) -> str:
        return f"{self.account_name} ({self.currency})"


class FacebookPage(ApiModel):
    """A connected Facebook Page"""
    id: str
    page_id: Optional[str] = None
    page_name: str
    page_category: Optional[str] = None
    fan_count: int = 0
    page_url: Optional[str] = None

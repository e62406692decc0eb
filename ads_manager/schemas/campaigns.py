"""
Campaign schemas: server entities, create payload and the wizard draft
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from pydantic import Field, field_validator, model_validator

from ads_manager.models.catalog import DEFAULT_AGE_MAX, DEFAULT_AGE_MIN, DEFAULT_PLACEMENTS
from ads_manager.models.enums import (
    BudgetType,
    CallToAction,
    CampaignObjective,
    CampaignStatus,
    Gender,
    Placement,
)
from ads_manager.schemas.common import ApiModel


class Targeting(ApiModel):
    """Audience-narrowing parameters"""
    age_min: int = DEFAULT_AGE_MIN
    age_max: int = DEFAULT_AGE_MAX
    genders: List[Gender] = Field(default_factory=lambda: [Gender.ALL])
    locations: List[str] = Field(default_factory=list)
    interests: List[str] = Field(default_factory=list)
    behaviors: List[str] = Field(default_factory=list)


class Creative(ApiModel):
    """Ad creative attached to a campaign"""
    ad_name: Optional[str] = None
    headline: Optional[str] = None
    ad_text: Optional[str] = None
    description: Optional[str] = None
    call_to_action: Optional[str] = None
    destination_url: Optional[str] = None
    image_url: Optional[str] = None


class CampaignAccount(ApiModel):
    """Account summary embedded in a campaign response"""
    id: str
    account_name: Optional[str] = None
    currency: str = "USD"


class Campaign(ApiModel):
    """Campaign as owned by the server"""
    id: str
    name: str
    objective: CampaignObjective
    status: CampaignStatus
    budget_type: BudgetType = BudgetType.DAILY
    budget: Optional[float] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    meta_campaign_id: Optional[str] = None
    meta_account_id: Optional[str] = None
    meta_account: Optional[CampaignAccount] = Field(default=None, alias="MetaAccount")
    targeting: Optional[Targeting] = None
    placements: List[str] = Field(default_factory=list)
    creative: Optional[Creative] = None
    configuration: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def currency(self) -> str:
        return self.meta_account.currency if self.meta_account else "USD"


class CampaignFilters(ApiModel):
    """Server-side list filters"""
    meta_account_id: Optional[str] = None
    status: Optional[CampaignStatus] = None


class CampaignCreate(ApiModel):
    """Single atomic create-campaign request built from a complete draft"""
    meta_account_id: str
    name: str = Field(min_length=1)
    objective: CampaignObjective
    budget: float = Field(gt=0)
    budget_type: BudgetType
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    targeting: Targeting
    placements: List[Placement] = Field(min_length=1)
    ad_name: str
    ad_text: str
    headline: str
    description: Optional[str] = None
    call_to_action: CallToAction
    destination_url: str
    image_url: Optional[str] = None

    @model_validator(mode="after")
    def check_ranges(self) -> "CampaignCreate":
        if self.targeting.age_min > self.targeting.age_max:
            raise ValueError("age_min must not exceed age_max")
        if not self.targeting.locations:
            raise ValueError("at least one location is required")
        return self


class StatusUpdate(ApiModel):
    """Status change request"""
    status: CampaignStatus


class BulkStatusResult(ApiModel):
    """Outcome of a bulk status change"""
    status: CampaignStatus
    succeeded: List[str] = Field(default_factory=list)
    failed: Dict[str, str] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


class CampaignDraft(ApiModel):
    """
    The one shared draft record every wizard step reads and writes.

    All fields are optional here; completeness is checked per step by the
    wizard and once more when the draft becomes a CampaignCreate.
    """
    meta_account_id: Optional[str] = None
    name: Optional[str] = None
    objective: Optional[CampaignObjective] = None
    budget_type: Optional[BudgetType] = BudgetType.DAILY
    budget: Optional[float] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    targeting: Targeting = Field(default_factory=lambda: Targeting(locations=["US"]))
    placements: List[Placement] = Field(default_factory=lambda: list(DEFAULT_PLACEMENTS))
    ad_name: Optional[str] = None
    headline: Optional[str] = None
    ad_text: Optional[str] = None
    description: Optional[str] = None
    call_to_action: Optional[CallToAction] = CallToAction.LEARN_MORE
    destination_url: Optional[str] = None
    image_url: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Date pickers send naive values; keep comparisons tz-consistent
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class DraftEstimates(ApiModel):
    """Presentation-only heuristics, never server-confirmed figures"""
    audience_size: int = 0
    reach: int = 0
    impressions: int = 0
    total_budget: float = 0.0
    duration_days: Optional[int] = None
    is_estimate: bool = True

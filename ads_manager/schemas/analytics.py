"""
Analytics schemas
"""
from datetime import date as date_type, datetime
from typing import Optional
from pydantic import field_validator

from ads_manager.schemas.common import ApiModel


class Metric(ApiModel):
    """One day of delivery metrics for one campaign"""
    id: Optional[str] = None
    campaign_id: str
    date: date_type
    impressions: int = 0
    clicks: int = 0
    spend: float = 0.0
    conversions: int = 0
    ctr: float = 0.0
    cpc: float = 0.0
    cpm: float = 0.0
    roas: float = 0.0

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, value):
        # Server may send a full ISO timestamp
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, str) and len(value) > 10:
            return value[:10]
        return value


class MetricsSummary(ApiModel):
    """Totals and averages over a metric series"""
    total_impressions: int = 0
    total_clicks: int = 0
    total_spend: float = 0.0
    total_conversions: int = 0
    average_ctr: float = 0.0
    average_cpc: float = 0.0
    average_cpm: float = 0.0
    average_roas: float = 0.0


class DateRange(ApiModel):
    """Inclusive date range"""
    start: date_type
    end: date_type

"""
Analytics accessor and metric math
"""
import logging
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Union

from ads_manager.models.enums import DateRangePreset
from ads_manager.schemas.analytics import DateRange, Metric, MetricsSummary
from ads_manager.services.platform_api import PlatformApiClient
from ads_manager.services.query_cache import METRICS, QueryCache, make_key

logger = logging.getLogger(__name__)

DEFAULT_DATE_RANGE = DateRangePreset.LAST_7_DAYS


def calculate_ctr(clicks: float, impressions: float) -> float:
    """Click-through rate in percent"""
    return clicks / impressions * 100 if impressions else 0.0


def calculate_cpc(spend: float, clicks: float) -> float:
    return spend / clicks if clicks else 0.0


def calculate_cpm(spend: float, impressions: float) -> float:
    return spend / impressions * 1000 if impressions else 0.0


def resolve_date_range(
    period: Union[str, DateRangePreset, None],
    today: Optional[date] = None,
) -> DateRange:
    """
    Translate a preset into concrete dates.

    Unknown presets fall back to the last 7 days.
    """
    today = today or date.today()
    try:
        preset = DateRangePreset(period) if period else DEFAULT_DATE_RANGE
    except ValueError:
        preset = DEFAULT_DATE_RANGE

    if preset == DateRangePreset.TODAY:
        return DateRange(start=today, end=today)
    if preset == DateRangePreset.YESTERDAY:
        yesterday = today - timedelta(days=1)
        return DateRange(start=yesterday, end=yesterday)
    if preset == DateRangePreset.LAST_30_DAYS:
        return DateRange(start=today - timedelta(days=30), end=today)
    if preset == DateRangePreset.THIS_MONTH:
        return DateRange(start=today.replace(day=1), end=today)
    if preset == DateRangePreset.LAST_MONTH:
        last_day = today.replace(day=1) - timedelta(days=1)
        return DateRange(start=last_day.replace(day=1), end=last_day)
    return DateRange(start=today - timedelta(days=7), end=today)


def summarize(metrics: Iterable[Metric]) -> MetricsSummary:
    """Totals plus averages derived from the totals (not averages of averages)"""
    impressions = clicks = conversions = 0
    spend = 0.0
    roas_weighted = 0.0
    for m in metrics:
        impressions += m.impressions
        clicks += m.clicks
        conversions += m.conversions
        spend += m.spend
        roas_weighted += m.roas * m.spend

    return MetricsSummary(
        total_impressions=impressions,
        total_clicks=clicks,
        total_spend=round(spend, 2),
        total_conversions=conversions,
        average_ctr=calculate_ctr(clicks, impressions),
        average_cpc=calculate_cpc(spend, clicks),
        average_cpm=calculate_cpm(spend, impressions),
        average_roas=roas_weighted / spend if spend else 0.0,
    )


def chart_series(metrics: Iterable[Metric]) -> Dict[str, list]:
    """Per-day series for the charts, summed across campaigns"""
    by_day: Dict[date, Dict[str, float]] = {}
    for m in metrics:
        day = by_day.setdefault(m.date, {"impressions": 0, "clicks": 0, "spend": 0.0, "conversions": 0})
        day["impressions"] += m.impressions
        day["clicks"] += m.clicks
        day["spend"] += m.spend
        day["conversions"] += m.conversions

    days = sorted(by_day)
    return {
        "labels": [d.isoformat() for d in days],
        "impressions": [by_day[d]["impressions"] for d in days],
        "clicks": [by_day[d]["clicks"] for d in days],
        "spend": [round(by_day[d]["spend"], 2) for d in days],
        "conversions": [by_day[d]["conversions"] for d in days],
    }


class AnalyticsService:
    """Read-only metric time series"""

    def __init__(self, api: PlatformApiClient, cache: QueryCache):
        self.api = api
        self.cache = cache

    async def get_metrics(
        self,
        date_range: DateRange,
        campaign_id: Optional[str] = None,
    ) -> List[Metric]:
        key = make_key(METRICS, {
            "start": date_range.start.isoformat(),
            "end": date_range.end.isoformat(),
            "campaign_id": campaign_id,
        })

        async def load():
            return await self.api.get_metrics(date_range=date_range, campaign_id=campaign_id)

        return await self.cache.fetch(key, load)


def group_by_campaign(metrics: Iterable[Metric]) -> Dict[str, List[Metric]]:
    grouped: Dict[str, List[Metric]] = {}
    for m in metrics:
        grouped.setdefault(m.campaign_id, []).append(m)
    return grouped

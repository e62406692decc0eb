"""
Presentation-only campaign estimates

Placeholder heuristics computed from the draft alone, never fetched from
the server. Whatever renders them must label them as estimates.
"""
import math
from datetime import datetime
from typing import Optional

from ads_manager.models.enums import BudgetType, Gender
from ads_manager.schemas.campaigns import CampaignDraft, DraftEstimates, Targeting

AUDIENCE_PER_LOCATION = 1_000_000
AGE_SPAN = 52
SINGLE_GENDER_FACTOR = 0.5
INTEREST_FACTOR = 0.3
BEHAVIOR_FACTOR = 0.2

REACH_PER_BUDGET_UNIT = 1000
IMPRESSIONS_PER_BUDGET_UNIT = 1500
DAYS_PER_MONTH = 30


def estimate_audience_size(targeting: Targeting) -> int:
    age_span = max(targeting.age_max - targeting.age_min, 0)
    size = (
        len(targeting.locations)
        * AUDIENCE_PER_LOCATION
        * (age_span / AGE_SPAN)
        * (1 if Gender.ALL in targeting.genders else SINGLE_GENDER_FACTOR)
        * (INTEREST_FACTOR if targeting.interests else 1)
        * (BEHAVIOR_FACTOR if targeting.behaviors else 1)
    )
    return math.floor(size)


def estimate_reach(budget: Optional[float]) -> int:
    return math.floor(budget * REACH_PER_BUDGET_UNIT) if budget else 0


def estimate_impressions(budget: Optional[float]) -> int:
    return math.floor(budget * IMPRESSIONS_PER_BUDGET_UNIT) if budget else 0


def estimate_total_budget(budget: Optional[float], budget_type: Optional[BudgetType]) -> float:
    """A daily budget is projected over one month"""
    if not budget:
        return 0.0
    if budget_type == BudgetType.LIFETIME:
        return float(budget)
    return float(budget) * DAYS_PER_MONTH


def schedule_duration_days(start: Optional[datetime], end: Optional[datetime]) -> Optional[int]:
    """Whole days between start and end, rounded up; None while open-ended"""
    if start is None or end is None:
        return None
    return math.ceil((end - start).total_seconds() / 86400)


def estimate_draft(draft: CampaignDraft) -> DraftEstimates:
    return DraftEstimates(
        audience_size=estimate_audience_size(draft.targeting),
        reach=estimate_reach(draft.budget),
        impressions=estimate_impressions(draft.budget),
        total_budget=estimate_total_budget(draft.budget, draft.budget_type),
        duration_days=schedule_duration_days(draft.start_time, draft.end_time),
    )

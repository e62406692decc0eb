"""
Enums and fixed catalogs (entities are owned by the remote API, see schemas/)
"""
from ads_manager.models.enums import (
    BudgetType,
    CallToAction,
    CampaignObjective,
    CampaignStatus,
    DateRangePreset,
    Gender,
    Placement,
    WizardStep,
)

__all__ = [
    "BudgetType",
    "CallToAction",
    "CampaignObjective",
    "CampaignStatus",
    "DateRangePreset",
    "Gender",
    "Placement",
    "WizardStep",
]

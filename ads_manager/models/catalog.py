"""
Fixed option catalogs rendered by the dashboard (labels, countries, interests...)
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

OBJECTIVE_LABELS = {
    CampaignObjective.AWARENESS: "Brand Awareness",
    CampaignObjective.TRAFFIC: "Traffic",
    CampaignObjective.ENGAGEMENT: "Engagement",
    CampaignObjective.LEADS: "Lead Generation",
    CampaignObjective.APP_PROMOTION: "App Promotion",
    CampaignObjective.SALES: "Sales",
}

OBJECTIVE_DESCRIPTIONS = {
    CampaignObjective.AWARENESS: "Increase awareness of your brand, business, or service",
    CampaignObjective.TRAFFIC: "Drive traffic to your website or app",
    CampaignObjective.ENGAGEMENT: "Get more video views, post engagement, or page likes",
    CampaignObjective.LEADS: "Collect leads for your business",
    CampaignObjective.APP_PROMOTION: "Get more app installs or engagement",
    CampaignObjective.SALES: "Drive online and offline sales",
}

STATUS_LABELS = {
    CampaignStatus.ACTIVE: "Active",
    CampaignStatus.PAUSED: "Paused",
    CampaignStatus.DELETED: "Deleted",
    CampaignStatus.ARCHIVED: "Archived",
}

STATUS_COLORS = {
    CampaignStatus.ACTIVE: "green",
    CampaignStatus.PAUSED: "yellow",
    CampaignStatus.DELETED: "red",
    CampaignStatus.ARCHIVED: "gray",
}

# Bulk action label -> target status
BULK_ACTIONS = {
    CampaignStatus.ACTIVE: "Activate",
    CampaignStatus.PAUSED: "Pause",
    CampaignStatus.ARCHIVED: "Archive",
    CampaignStatus.DELETED: "Delete",
}

BUDGET_TYPE_LABELS = {
    BudgetType.DAILY: "Daily Budget",
    BudgetType.LIFETIME: "Lifetime Budget",
}

PLACEMENT_LABELS = {
    Placement.FACEBOOK_FEED: "Facebook Feed",
    Placement.INSTAGRAM_FEED: "Instagram Feed",
    Placement.FACEBOOK_STORIES: "Facebook Stories",
    Placement.INSTAGRAM_STORIES: "Instagram Stories",
    Placement.MESSENGER: "Messenger",
    Placement.AUDIENCE_NETWORK: "Audience Network",
}

DEFAULT_PLACEMENTS = [Placement.FACEBOOK_FEED, Placement.INSTAGRAM_FEED]

GENDER_LABELS = {
    Gender.ALL: "All genders",
    Gender.MALE: "Men",
    Gender.FEMALE: "Women",
}

CALL_TO_ACTION_LABELS = {
    CallToAction.LEARN_MORE: "Learn More",
    CallToAction.SHOP_NOW: "Shop Now",
    CallToAction.SIGN_UP: "Sign Up",
    CallToAction.DOWNLOAD: "Download",
    CallToAction.GET_QUOTE: "Get Quote",
    CallToAction.CONTACT_US: "Contact Us",
    CallToAction.BOOK_TRAVEL: "Book Now",
    CallToAction.WATCH_MORE: "Watch Video",
}

DATE_RANGE_LABELS = {
    DateRangePreset.TODAY: "Today",
    DateRangePreset.YESTERDAY: "Yesterday",
    DateRangePreset.LAST_7_DAYS: "Last 7 days",
    DateRangePreset.LAST_30_DAYS: "Last 30 days",
    DateRangePreset.THIS_MONTH: "This month",
    DateRangePreset.LAST_MONTH: "Last month",
}

WIZARD_STEP_TITLES = {
    WizardStep.BASICS: "Campaign Basics",
    WizardStep.BUDGET_SCHEDULE: "Budget & Schedule",
    WizardStep.TARGETING: "Targeting",
    WizardStep.CREATIVE: "Ad Creative",
    WizardStep.REVIEW: "Review & Launch",
}

# Country code -> display name
COUNTRIES = {
    "US": "United States",
    "CA": "Canada",
    "GB": "United Kingdom",
    "AU": "Australia",
    "DE": "Germany",
    "FR": "France",
    "IT": "Italy",
    "ES": "Spain",
    "NL": "Netherlands",
    "BR": "Brazil",
    "MX": "Mexico",
    "IN": "India",
    "SG": "Singapore",
    "JP": "Japan",
}

# Meta interest id -> name
INTERESTS = {
    "6003397425735": "Business and Industry",
    "6003020834693": "Technology",
    "6003139266461": "Food and Drink",
    "6003348108016": "Fitness and Wellness",
    "6003195833498": "Travel",
    "6003445422113": "Fashion",
    "6003659143595": "Sports",
    "6003286120153": "Entertainment",
    "6003520743025": "Education",
    "6003394918152": "Family and Relationships",
}

# Meta behavior id -> name
BEHAVIORS = {
    "6004037958583": "Digital activities",
    "6002714895372": "Mobile device user",
    "6015559470583": "Frequent travelers",
    "6017253486583": "Online shoppers",
    "6003808923983": "Small business owners",
}

MIN_TARGETING_AGE = 13
MAX_TARGETING_AGE = 65
DEFAULT_AGE_MIN = 18
DEFAULT_AGE_MAX = 65

METRIC_DEFINITIONS = {
    "impressions": "The number of times your ads were shown",
    "clicks": "The number of clicks on your ads",
    "ctr": "Click-through rate - the percentage of people who clicked your ad",
    "cpc": "Cost per click - average amount spent for each click",
    "cpm": "Cost per thousand impressions",
    "spend": "Total amount spent on your ads",
    "conversions": "Number of desired actions taken",
    "roas": "Return on ad spend - revenue generated per dollar spent",
}

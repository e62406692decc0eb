"""
Enums shared by schemas, services and templates
"""
import enum


class CampaignObjective(str, enum.Enum):
    """Meta campaign objectives (ODAX outcomes)"""
    AWARENESS = "OUTCOME_AWARENESS"
    TRAFFIC = "OUTCOME_TRAFFIC"
    ENGAGEMENT = "OUTCOME_ENGAGEMENT"
    LEADS = "OUTCOME_LEADS"
    APP_PROMOTION = "OUTCOME_APP_PROMOTION"
    SALES = "OUTCOME_SALES"


class CampaignStatus(str, enum.Enum):
    """Campaign delivery status"""
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    DELETED = "DELETED"    # Set server-side, never removed locally
    ARCHIVED = "ARCHIVED"


class BudgetType(str, enum.Enum):
    """Budget type"""
    DAILY = "DAILY"
    LIFETIME = "LIFETIME"


class Placement(str, enum.Enum):
    """Surfaces where an ad may be shown"""
    FACEBOOK_FEED = "facebook"
    INSTAGRAM_FEED = "instagram"
    FACEBOOK_STORIES = "facebook_stories"
    INSTAGRAM_STORIES = "instagram_stories"
    MESSENGER = "messenger"
    AUDIENCE_NETWORK = "audience_network"


class Gender(str, enum.Enum):
    """Gender targeting option"""
    ALL = "all"
    MALE = "male"
    FEMALE = "female"


class CallToAction(str, enum.Enum):
    """Ad call-to-action buttons"""
    LEARN_MORE = "LEARN_MORE"
    SHOP_NOW = "SHOP_NOW"
    SIGN_UP = "SIGN_UP"
    DOWNLOAD = "DOWNLOAD"
    GET_QUOTE = "GET_QUOTE"
    CONTACT_US = "CONTACT_US"
    BOOK_TRAVEL = "BOOK_TRAVEL"
    WATCH_MORE = "WATCH_MORE"


class DateRangePreset(str, enum.Enum):
    """Analytics date range presets"""
    TODAY = "today"
    YESTERDAY = "yesterday"
    LAST_7_DAYS = "last7days"
    LAST_30_DAYS = "last30days"
    THIS_MONTH = "thisMonth"
    LAST_MONTH = "lastMonth"


class WizardStep(int, enum.Enum):
    """Campaign creation wizard steps, in order"""
    BASICS = 1
    BUDGET_SCHEDULE = 2
    TARGETING = 3
    CREATIVE = 4
    REVIEW = 5

"""
Multi-step campaign builder

Basics -> Budget & schedule -> Targeting -> Creative -> Review.

Every step reads and writes the same CampaignDraft. "Next" only advances
when the current step validates, "Previous" never loses data, and the
final submit sends the merged draft as one create request.
"""
import logging
import secrets
from collections import OrderedDict
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple
from urllib.parse import urlparse

from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from ads_manager.core.exceptions import (
    ApiAuthorizationError,
    ApiValidationError,
    DraftNotFound,
    DraftValidationError,
    PlatformApiError,
    SubmissionInProgress,
)
from ads_manager.models.catalog import MAX_TARGETING_AGE, MIN_TARGETING_AGE
from ads_manager.models.enums import BudgetType, WizardStep
from ads_manager.schemas.accounts import MetaAccount
from ads_manager.schemas.campaigns import (
    Campaign,
    CampaignCreate,
    CampaignDraft,
    DraftEstimates,
    Targeting,
)
from ads_manager.services.campaigns import CampaignService
from ads_manager.services.estimates import estimate_draft

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 100
MAX_HEADLINE_LENGTH = 40
MAX_AD_TEXT_LENGTH = 125
MAX_DESCRIPTION_LENGTH = 30

SUBMIT_FAILED_MESSAGE = "Failed to create campaign. Please try again."

# Draft fields owned by each step
STEP_FIELDS = {
    WizardStep.BASICS: ("meta_account_id", "name", "objective"),
    WizardStep.BUDGET_SCHEDULE: ("budget_type", "budget", "start_time", "end_time"),
    WizardStep.TARGETING: ("targeting",),
    WizardStep.CREATIVE: (
        "placements",
        "ad_name",
        "headline",
        "ad_text",
        "description",
        "call_to_action",
        "destination_url",
        "image_url",
    ),
    WizardStep.REVIEW: (),
}

_DRAFT_FIELDS = {name: name for name in CampaignDraft.model_fields}
_DRAFT_FIELDS.update({to_camel(name): name for name in CampaignDraft.model_fields})
_TARGETING_FIELDS = {name: name for name in Targeting.model_fields}
_TARGETING_FIELDS.update({to_camel(name): name for name in Targeting.model_fields})


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _is_http_url(value: str) -> bool:
    parsed = urlparse(value.strip())
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _pydantic_errors(exc: ValidationError) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    for err in exc.errors():
        key = ".".join(str(part) for part in err["loc"]) or "draft"
        errors.setdefault(key, err["msg"])
    return errors


# ========================================
# Step validators
# ========================================

def _validate_basics(draft: CampaignDraft, account_ids: Optional[set]) -> Dict[str, str]:
    errors = {}
    if _blank(draft.meta_account_id):
        errors["meta_account_id"] = "Please select a Meta account"
    elif account_ids is not None and draft.meta_account_id not in account_ids:
        errors["meta_account_id"] = "Selected Meta account is not connected"
    if _blank(draft.name):
        errors["name"] = "Campaign name is required"
    elif len(draft.name.strip()) > MAX_NAME_LENGTH:
        errors["name"] = f"Campaign name must be at most {MAX_NAME_LENGTH} characters"
    if draft.objective is None:
        errors["objective"] = "Please select a campaign objective"
    return errors


def _validate_budget_schedule(draft: CampaignDraft) -> Dict[str, str]:
    errors = {}
    if draft.budget_type is None:
        errors["budget_type"] = "Please select a budget type"
    if draft.budget is None:
        errors["budget"] = "Budget is required"
    elif draft.budget < 1:
        errors["budget"] = "Budget must be at least $1"
    if draft.start_time and draft.end_time and draft.end_time <= draft.start_time:
        errors["end_time"] = "End date must be after the start date"
    elif draft.budget_type == BudgetType.LIFETIME and draft.end_time is None:
        errors["end_time"] = "Lifetime budgets require an end date"
    return errors


def _validate_targeting(draft: CampaignDraft) -> Dict[str, str]:
    errors = {}
    t = draft.targeting
    for field in ("age_min", "age_max"):
        value = getattr(t, field)
        if not MIN_TARGETING_AGE <= value <= MAX_TARGETING_AGE:
            errors[f"targeting.{field}"] = (
                f"Age must be between {MIN_TARGETING_AGE} and {MAX_TARGETING_AGE}"
            )
    if "targeting.age_min" not in errors and "targeting.age_max" not in errors and t.age_min > t.age_max:
        errors["targeting.age_max"] = "Maximum age must be greater than or equal to minimum age"
    if not t.genders:
        errors["targeting.genders"] = "Please select a gender option"
    if not t.locations:
        errors["targeting.locations"] = "Select at least one location"
    return errors


def _validate_creative(draft: CampaignDraft) -> Dict[str, str]:
    errors = {}
    if not draft.placements:
        errors["placements"] = "Select at least one placement"
    if _blank(draft.ad_name):
        errors["ad_name"] = "Ad name is required"
    if _blank(draft.headline):
        errors["headline"] = "Headline is required"
    elif len(draft.headline) > MAX_HEADLINE_LENGTH:
        errors["headline"] = f"Headline must be at most {MAX_HEADLINE_LENGTH} characters"
    if _blank(draft.ad_text):
        errors["ad_text"] = "Ad text is required"
    elif len(draft.ad_text) > MAX_AD_TEXT_LENGTH:
        errors["ad_text"] = f"Ad text must be at most {MAX_AD_TEXT_LENGTH} characters"
    if draft.description and len(draft.description) > MAX_DESCRIPTION_LENGTH:
        errors["description"] = f"Description must be at most {MAX_DESCRIPTION_LENGTH} characters"
    if draft.call_to_action is None:
        errors["call_to_action"] = "Please select a call to action"
    if _blank(draft.destination_url):
        errors["destination_url"] = "Destination URL is required"
    elif not _is_http_url(draft.destination_url):
        errors["destination_url"] = "Please enter a valid URL (http:// or https://)"
    if not _blank(draft.image_url) and not _is_http_url(draft.image_url):
        errors["image_url"] = "Please enter a valid image URL"
    return errors


def validate_step(
    draft: CampaignDraft,
    step: WizardStep,
    account_ids: Optional[set] = None,
) -> Dict[str, str]:
    """Field -> message for one step; the review step re-checks all the others"""
    step = WizardStep(step)
    if step == WizardStep.BASICS:
        return _validate_basics(draft, account_ids)
    if step == WizardStep.BUDGET_SCHEDULE:
        return _validate_budget_schedule(draft)
    if step == WizardStep.TARGETING:
        return _validate_targeting(draft)
    if step == WizardStep.CREATIVE:
        return _validate_creative(draft)

    errors: Dict[str, str] = {}
    for earlier in list(WizardStep)[:-1]:
        errors.update(validate_step(draft, earlier, account_ids))
    return errors


class CampaignWizard:
    """
    State of one campaign being built: the draft, the current step and
    submission bookkeeping.
    """

    TOTAL_STEPS = len(WizardStep)

    def __init__(
        self,
        draft: Optional[CampaignDraft] = None,
        accounts: Optional[Iterable[MetaAccount]] = None,
        owner_id: Optional[str] = None,
    ):
        self.draft = draft or CampaignDraft()
        self.accounts: Optional[List[MetaAccount]] = list(accounts) if accounts is not None else None
        self.owner_id = owner_id
        self.step = WizardStep.BASICS
        self.errors: Dict[str, str] = {}
        self.submit_error: Optional[str] = None
        self.submitting = False
        self.created_campaign: Optional[Campaign] = None

    # ========================================
    # Derived values
    # ========================================

    @property
    def account_ids(self) -> Optional[set]:
        if self.accounts is None:
            return None
        return {a.id for a in self.accounts}

    @property
    def selected_account(self) -> Optional[MetaAccount]:
        for account in self.accounts or []:
            if account.id == self.draft.meta_account_id:
                return account
        return None

    @property
    def currency(self) -> str:
        account = self.selected_account
        return account.currency if account else "USD"

    @property
    def progress(self) -> int:
        return round(self.step / self.TOTAL_STEPS * 100)

    @property
    def is_first_step(self) -> bool:
        return self.step == WizardStep.BASICS

    @property
    def is_last_step(self) -> bool:
        return self.step == WizardStep.REVIEW

    @property
    def estimates(self) -> DraftEstimates:
        return estimate_draft(self.draft)

    def set_accounts(self, accounts: Iterable[MetaAccount]) -> None:
        self.accounts = list(accounts)

    # ========================================
    # Draft updates
    # ========================================

    def apply(self, updates: Mapping[str, Any]) -> CampaignDraft:
        """
        Merge a partial update into the draft.

        Keys may be snake_case or camelCase; `targeting` is merged key by
        key. Type errors raise DraftValidationError and leave the draft as
        it was.
        """
        data = self.draft.model_dump()
        unknown: Dict[str, str] = {}
        touched = set()

        for key, value in updates.items():
            field = _DRAFT_FIELDS.get(key)
            if field is None:
                unknown[key] = "Unknown field"
                continue
            if field == "targeting" and isinstance(value, Mapping):
                for t_key, t_value in value.items():
                    t_field = _TARGETING_FIELDS.get(t_key)
                    if t_field is None:
                        unknown[f"targeting.{t_key}"] = "Unknown field"
                        continue
                    data["targeting"][t_field] = t_value
                    touched.add(f"targeting.{t_field}")
            else:
                data[field] = value
                touched.add(field)

        if unknown:
            raise DraftValidationError(self.step, unknown)
        try:
            draft = CampaignDraft.model_validate(data)
        except ValidationError as e:
            raise DraftValidationError(self.step, _pydantic_errors(e)) from e

        self.draft = draft
        self.errors = {k: v for k, v in self.errors.items() if k not in touched}
        return self.draft

    # ========================================
    # Navigation
    # ========================================

    def validate_step(self, step: Optional[WizardStep] = None) -> Dict[str, str]:
        return validate_step(self.draft, self.step if step is None else step, self.account_ids)

    def next(self) -> bool:
        """Advance one step if the current one validates"""
        errors = self.validate_step()
        if errors:
            self.errors = errors
            return False
        self.errors = {}
        if not self.is_last_step:
            self.step = WizardStep(self.step + 1)
        return True

    def previous(self) -> WizardStep:
        self.errors = {}
        if not self.is_first_step:
            self.step = WizardStep(self.step - 1)
        return self.step

    def go_to(self, step: int) -> bool:
        """
        Jump to a step. Backwards is always allowed; forwards walks through
        `next()` and stops on the first step that does not validate.
        """
        target = WizardStep(step)
        if target <= self.step:
            self.errors = {}
            self.step = target
            return True
        while self.step < target:
            if not self.next():
                return False
        return True

    # ========================================
    # Submission
    # ========================================

    def build_payload(self) -> CampaignCreate:
        """The complete create request; raises for the first invalid step"""
        for step in list(WizardStep)[:-1]:
            errors = self.validate_step(step)
            if errors:
                raise DraftValidationError(step, errors)

        d = self.draft
        return CampaignCreate(
            meta_account_id=d.meta_account_id,
            name=d.name.strip(),
            objective=d.objective,
            budget=d.budget,
            budget_type=d.budget_type,
            start_time=d.start_time,
            end_time=d.end_time,
            targeting=d.targeting.model_copy(deep=True),
            placements=list(d.placements),
            ad_name=d.ad_name.strip(),
            ad_text=d.ad_text,
            headline=d.headline,
            description=d.description or None,
            call_to_action=d.call_to_action,
            destination_url=d.destination_url.strip(),
            image_url=(d.image_url or "").strip() or None,
        )

    async def submit(self, service: CampaignService) -> Campaign:
        """
        Send the merged draft as one create request.

        Only one submission may be in flight. On failure the draft is kept
        untouched and `submit_error` holds the message for the user.
        """
        if self.submitting:
            raise SubmissionInProgress("Campaign creation is already in progress")
        if self.created_campaign is not None:
            return self.created_campaign

        try:
            payload = self.build_payload()
        except DraftValidationError as e:
            self.errors = e.errors
            raise

        self.submitting = True
        self.submit_error = None
        try:
            campaign = await service.create_campaign(payload)
        except ApiAuthorizationError:
            raise
        except ApiValidationError as e:
            self.errors = e.field_errors
            self.submit_error = e.message or SUBMIT_FAILED_MESSAGE
            raise
        except PlatformApiError as e:
            logger.warning(f"Campaign creation failed: {e.message}")
            self.submit_error = SUBMIT_FAILED_MESSAGE
            raise
        finally:
            self.submitting = False

        self.created_campaign = campaign
        self.errors = {}
        return campaign

    def state(self) -> Dict[str, Any]:
        """Serializable snapshot for the JSON API"""
        return {
            "step": int(self.step),
            "total_steps": self.TOTAL_STEPS,
            "progress": self.progress,
            "draft": self.draft.model_dump(mode="json", by_alias=True),
            "errors": self.errors,
            "estimates": self.estimates.model_dump(mode="json", by_alias=True),
            "currency": self.currency,
            "submitting": self.submitting,
            "submit_error": self.submit_error,
            "campaign_id": self.created_campaign.id if self.created_campaign else None,
        }


class DraftStore:
    """In-process wizards keyed by random draft id, oldest evicted first"""

    def __init__(self, max_drafts: int = 1000):
        self.max_drafts = max_drafts
        self._drafts: "OrderedDict[str, CampaignWizard]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._drafts)

    def create(
        self,
        owner_id: str,
        accounts: Optional[Iterable[MetaAccount]] = None,
    ) -> Tuple[str, CampaignWizard]:
        while len(self._drafts) >= self.max_drafts:
            evicted, _ = self._drafts.popitem(last=False)
            logger.debug(f"Evicted campaign draft {evicted}")
        draft_id = secrets.token_urlsafe(16)
        wizard = CampaignWizard(accounts=accounts, owner_id=owner_id)
        self._drafts[draft_id] = wizard
        return draft_id, wizard

    def get(self, draft_id: Optional[str], owner_id: Optional[str]) -> CampaignWizard:
        wizard = self._drafts.get(draft_id) if draft_id else None
        if wizard is None or wizard.owner_id != owner_id:
            raise DraftNotFound(draft_id)
        self._drafts.move_to_end(draft_id)
        return wizard

    def discard(self, draft_id: Optional[str]) -> None:
        if draft_id:
            self._drafts.pop(draft_id, None)

    def discard_owner(self, owner_id: Optional[str]) -> None:
        for draft_id in [k for k, w in self._drafts.items() if w.owner_id == owner_id]:
            del self._drafts[draft_id]

"""
Campaign page routes - list, detail, status actions and the creation wizard
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse
from starlette.datastructures import FormData

from ads_manager.api.v1.pages import redirect, render
from ads_manager.core.deps import (
    get_account_service,
    get_analytics_service,
    get_campaign_service,
    get_draft_store,
    require_session,
)
from ads_manager.core.exceptions import (
    ApiAuthorizationError,
    ApiValidationError,
    DraftNotFound,
    DraftValidationError,
    PlatformApiError,
    SubmissionInProgress,
)
from ads_manager.core.session import SessionContext
from ads_manager.models.catalog import BULK_ACTIONS
from ads_manager.models.enums import CampaignStatus, DateRangePreset, WizardStep
from ads_manager.schemas.campaigns import CampaignFilters
from ads_manager.services.accounts import AccountService
from ads_manager.services.analytics import (
    AnalyticsService,
    chart_series,
    resolve_date_range,
    summarize,
)
from ads_manager.services.campaign_builder import CampaignWizard, DraftStore
from ads_manager.services.campaigns import CampaignService, count_by_status, filter_campaigns

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/campaigns", tags=["Campaign Pages"])

CREATE_PATH = "/campaigns/create"
STALE_FORM_MESSAGE = "This page was out of date. Your changes were saved, continue from the current step."
STALE_FORM_REJECTED_MESSAGE = "This page was out of date and its changes could not be saved."


def _local_path(value: Optional[str], default: str) -> str:
    """Only same-site paths are accepted as redirect targets"""
    if value and value.startswith("/") and not value.startswith("//"):
        return value
    return default


def _parse_status(value: Optional[str]) -> Optional[CampaignStatus]:
    try:
        return CampaignStatus(value) if value else None
    except ValueError:
        return None


# ========================================
# List / detail
# ========================================

@router.get("", response_class=HTMLResponse)
async def campaigns_page(
    request: Request,
    search: Optional[str] = None,
    status: Optional[str] = None,
    account: Optional[str] = None,
    session: SessionContext = Depends(require_session),
    campaigns: CampaignService = Depends(get_campaign_service),
    accounts: AccountService = Depends(get_account_service),
):
    """Campaign list with search, status filter and bulk actions"""
    campaign_list = await campaigns.list_campaigns(CampaignFilters(meta_account_id=account or None))
    status_filter = _parse_status(status)

    return render(request, "campaigns/list.html", {
        "active_page": "campaigns",
        "campaigns": filter_campaigns(campaign_list, search, status_filter),
        "status_counts": count_by_status(campaign_list),
        "accounts": await accounts.list_accounts(),
        "search": search or "",
        "status": status_filter.value if status_filter else "",
        "account": account or "",
        "bulk_actions": BULK_ACTIONS,
    })


@router.post("/bulk-status")
async def bulk_status(
    request: Request,
    session: SessionContext = Depends(require_session),
    campaigns: CampaignService = Depends(get_campaign_service),
):
    """Apply one status to every selected campaign"""
    form = await request.form()
    ids = [i for i in form.getlist("campaign_ids") if i]
    status = _parse_status(form.get("status"))
    back = _local_path(form.get("redirect_to"), "/campaigns")

    if status is None or not ids:
        session.flash("Select at least one campaign and an action", "error")
        return redirect(back)

    result = await campaigns.bulk_update_status(ids, status)
    action = BULK_ACTIONS.get(status, status.value)
    if result.succeeded:
        session.flash(f"{action}: {len(result.succeeded)} campaign(s) updated", "success")
    if not result.ok:
        session.flash(
            f"{action} failed for {len(result.failed)} campaign(s): "
            + "; ".join(sorted(set(result.failed.values()))),
            "error",
        )
    return redirect(back)


@router.get("/create", response_class=HTMLResponse)
async def create_campaign_page(
    request: Request,
    new: bool = False,
    session: SessionContext = Depends(require_session),
    accounts: AccountService = Depends(get_account_service),
    drafts: DraftStore = Depends(get_draft_store),
):
    """Campaign creation wizard"""
    account_list = await accounts.list_accounts()
    if new:
        drafts.discard(session.draft_id)
        session.draft_id = None
    wizard = _load_or_create_wizard(session, drafts, account_list)
    return _render_wizard(request, wizard)


@router.post("/create", response_class=HTMLResponse)
async def create_campaign_step(
    request: Request,
    session: SessionContext = Depends(require_session),
    accounts: AccountService = Depends(get_account_service),
    campaigns: CampaignService = Depends(get_campaign_service),
    drafts: DraftStore = Depends(get_draft_store),
):
    """
    One wizard interaction: merge the posted step fields, then move
    (next / previous / goto) or submit. Always answers with a redirect.

    Fields are read for the step the form was rendered for. A form from an
    older page (second tab, Back button) only saves its fields; it never
    moves the wizard.
    """
    form = await request.form()
    account_list = await accounts.list_accounts()
    wizard = _load_or_create_wizard(session, drafts, account_list)
    action = form.get("action", "next")

    form_step = _posted_step(form, wizard.step)
    if form_step is None:
        session.flash("Unknown wizard step", "error")
        return redirect(CREATE_PATH)

    try:
        wizard.apply(parse_step_form(form, form_step))
    except DraftValidationError as e:
        if form_step == wizard.step:
            wizard.errors = e.errors
        else:
            session.flash(STALE_FORM_REJECTED_MESSAGE, "info")
        return redirect(CREATE_PATH)

    if form_step != wizard.step:
        logger.info(f"Stale wizard form for step {int(form_step)}, wizard is on step {int(wizard.step)}")
        session.flash(STALE_FORM_MESSAGE, "info")
        return redirect(CREATE_PATH)

    if action == "previous":
        wizard.previous()
    elif action == "goto":
        try:
            wizard.go_to(int(form.get("step", wizard.step)))
        except ValueError:
            session.flash("Unknown wizard step", "error")
    elif action == "submit":
        return await _submit(wizard, session, drafts, campaigns)
    else:
        wizard.next()
    return redirect(CREATE_PATH)


async def _submit(
    wizard: CampaignWizard,
    session: SessionContext,
    drafts: DraftStore,
    campaigns: CampaignService,
):
    try:
        campaign = await wizard.submit(campaigns)
    except SubmissionInProgress:
        session.flash("Campaign creation is already in progress", "info")
        return redirect(CREATE_PATH)
    except DraftValidationError:
        session.flash("Please fix the highlighted fields before launching", "error")
        return redirect(CREATE_PATH)
    except ApiAuthorizationError:
        raise
    except PlatformApiError as e:
        logger.info(f"Campaign submit failed, draft kept: {e.message}")
        return redirect(CREATE_PATH)

    drafts.discard(session.draft_id)
    session.draft_id = None
    session.flash(f"Campaign \"{campaign.name}\" created successfully", "success")
    return redirect(f"/campaigns/{campaign.id}")


@router.get("/{campaign_id}", response_class=HTMLResponse)
async def campaign_detail_page(
    request: Request,
    campaign_id: str,
    period: Optional[str] = DateRangePreset.LAST_30_DAYS.value,
    session: SessionContext = Depends(require_session),
    campaigns: CampaignService = Depends(get_campaign_service),
    analytics: AnalyticsService = Depends(get_analytics_service),
):
    """Campaign detail page"""
    campaign = await campaigns.get_campaign(campaign_id)
    date_range = resolve_date_range(period)
    metrics = await analytics.get_metrics(date_range, campaign_id=campaign_id)

    return render(request, "campaigns/detail.html", {
        "active_page": "campaigns",
        "campaign": campaign,
        "date_range": date_range,
        "summary": summarize(metrics),
        "chart": chart_series(metrics),
        "bulk_actions": BULK_ACTIONS,
    })


@router.post("/{campaign_id}/status")
async def change_status(
    campaign_id: str,
    status: str = Form(...),
    redirect_to: str = Form(""),
    session: SessionContext = Depends(require_session),
    campaigns: CampaignService = Depends(get_campaign_service),
):
    """Change one campaign's status"""
    back = _local_path(redirect_to, f"/campaigns/{campaign_id}")
    new_status = _parse_status(status)
    if new_status is None:
        session.flash("Unknown campaign status", "error")
        return redirect(back)

    try:
        await campaigns.update_status(campaign_id, new_status)
    except ApiValidationError as e:
        session.flash(e.message, "error")
        return redirect(back)

    session.flash(f"Campaign status updated to {new_status.value}", "success")
    return redirect(back)


# ========================================
# Wizard helpers
# ========================================

def _load_or_create_wizard(session: SessionContext, drafts: DraftStore, accounts) -> CampaignWizard:
    try:
        wizard = drafts.get(session.draft_id, session.user_id)
    except DraftNotFound:
        draft_id, wizard = drafts.create(session.user_id, accounts)
        session.draft_id = draft_id
        return wizard
    wizard.set_accounts(accounts)
    return wizard


def _render_wizard(request: Request, wizard: CampaignWizard):
    return render(request, "campaigns/create.html", {
        "active_page": "campaigns",
        "wizard": wizard,
        "draft": wizard.draft,
        "errors": wizard.errors,
        "estimates": wizard.estimates,
        "steps": list(WizardStep),
    })


def _posted_step(form: FormData, current: WizardStep) -> Optional[WizardStep]:
    """Step the posted form was rendered for; None when it is not a wizard step"""
    value = form.get("form_step")
    if value is None:
        return current
    try:
        return WizardStep(int(value))
    except ValueError:
        return None


def _text(form: FormData, name: str) -> Optional[str]:
    value = form.get(name)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _values(form: FormData, name: str) -> List[str]:
    return [str(v) for v in form.getlist(name) if str(v).strip()]


def parse_step_form(form: FormData, step: WizardStep) -> Dict[str, Any]:
    """
    Draft update from the fields rendered for `step`. Blank inputs become
    None; unchecked checkbox groups become empty lists.
    """
    if step == WizardStep.BASICS:
        return {
            "meta_account_id": _text(form, "meta_account_id"),
            "name": _text(form, "name"),
            "objective": _text(form, "objective"),
        }
    if step == WizardStep.BUDGET_SCHEDULE:
        return {
            "budget_type": _text(form, "budget_type"),
            "budget": _text(form, "budget"),
            "start_time": _text(form, "start_time"),
            "end_time": _text(form, "end_time"),
        }
    if step == WizardStep.TARGETING:
        targeting: Dict[str, Any] = {
            "locations": _values(form, "locations"),
            "interests": _values(form, "interests"),
            "behaviors": _values(form, "behaviors"),
        }
        gender = _text(form, "gender")
        targeting["genders"] = [gender] if gender else []
        for field in ("age_min", "age_max"):
            value = _text(form, field)
            if value is not None:
                targeting[field] = value
        return {"targeting": targeting}
    if step == WizardStep.CREATIVE:
        return {
            "placements": _values(form, "placements"),
            "ad_name": _text(form, "ad_name"),
            "headline": _text(form, "headline"),
            "ad_text": _text(form, "ad_text"),
            "description": _text(form, "description"),
            "call_to_action": _text(form, "call_to_action"),
            "destination_url": _text(form, "destination_url"),
            "image_url": _text(form, "image_url"),
        }
    return {}

"""
Page routes - serve HTML templates
"""
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError

from ads_manager.core.config import settings
from ads_manager.core.deps import (
    get_account_service,
    get_analytics_service,
    get_api_client,
    get_cache,
    get_cache_registry,
    get_campaign_service,
    get_current_session,
    get_draft_store,
    get_session_context,
    require_session,
)
from ads_manager.core.exceptions import ApiAuthorizationError, ApiValidationError
from ads_manager.core.session import SessionContext
from ads_manager.models import catalog
from ads_manager.models.enums import DateRangePreset
from ads_manager.schemas.auth import LoginRequest, PasswordChange, ProfileUpdate, RegisterRequest
from ads_manager.services.accounts import AccountService
from ads_manager.services.analytics import (
    AnalyticsService,
    chart_series,
    group_by_campaign,
    resolve_date_range,
    summarize,
)
from ads_manager.services.campaign_builder import DraftStore
from ads_manager.services.campaigns import CampaignService, count_by_status
from ads_manager.services.formatting import JINJA_FILTERS
from ads_manager.services.meta_connect import MetaConnectFlow
from ads_manager.services.platform_api import PlatformApiClient
from ads_manager.services.query_cache import ACCOUNTS, FACEBOOK_PAGES, QueryCache, QueryCacheRegistry

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Pages"])

# Setup Jinja2 templates
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parents[2] / "templates"))
templates.env.filters.update(JINJA_FILTERS)
templates.env.globals["catalog"] = catalog
templates.env.globals["app_name"] = settings.APP_NAME

RECENT_CAMPAIGNS_LIMIT = 5


def render(
    request: Request,
    name: str,
    context: Optional[Dict[str, Any]] = None,
    status_code: int = 200,
    headers: Optional[Dict[str, str]] = None,
):
    """Render a template with the current user and pending flash messages"""
    session = SessionContext(request.session)
    ctx = {
        "current_user": session.user if session.is_authenticated else None,
        "flashes": session.pop_flashes(),
    }
    ctx.update(context or {})
    return templates.TemplateResponse(
        request, name, ctx, status_code=status_code, headers=headers
    )


def redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=status.HTTP_303_SEE_OTHER)


def form_errors(exc: ValidationError) -> Dict[str, str]:
    errors = {}
    for err in exc.errors():
        field = str(err["loc"][0]) if err["loc"] else "form"
        errors.setdefault(field, err["msg"])
    return errors


# ========================================
# Auth pages
# ========================================

@router.get("/", response_class=HTMLResponse)
async def home(session: SessionContext = Depends(get_session_context)):
    """Home page - redirect to login or dashboard"""
    if session.is_authenticated:
        return redirect(settings.DEFAULT_AUTHENTICATED_PATH)
    return redirect(settings.LOGIN_PATH)


@router.get("/login", response_class=HTMLResponse)
async def login_page(
    request: Request,
    expired: bool = False,
    session: SessionContext = Depends(get_session_context),
):
    """Login page. Makes no API calls, so a rejected token cannot bounce back here."""
    if session.is_authenticated:
        return redirect(settings.DEFAULT_AUTHENTICATED_PATH)
    return render(request, "auth/login.html", {"expired": expired, "errors": {}, "email": ""})


@router.post("/login", response_class=HTMLResponse)
async def login(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    session: SessionContext = Depends(get_session_context),
    registry: QueryCacheRegistry = Depends(get_cache_registry),
    api: PlatformApiClient = Depends(get_api_client),
):
    """Login and start a session"""
    try:
        credentials = LoginRequest(email=email, password=password)
    except ValidationError as e:
        return render(
            request, "auth/login.html",
            {"expired": False, "errors": form_errors(e), "email": email},
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )

    try:
        auth = await api.login(credentials)
    except (ApiAuthorizationError, ApiValidationError) as e:
        return render(
            request, "auth/login.html",
            {"expired": False, "errors": {"form": e.message or "Invalid email or password"}, "email": email},
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    registry.drop(auth.user.id)
    session.start(auth)
    return redirect(settings.DEFAULT_AUTHENTICATED_PATH)


@router.get("/register", response_class=HTMLResponse)
async def register_page(
    request: Request,
    session: SessionContext = Depends(get_session_context),
):
    """Register page"""
    if session.is_authenticated:
        return redirect(settings.DEFAULT_AUTHENTICATED_PATH)
    return render(request, "auth/register.html", {"errors": {}, "values": {}})


@router.post("/register", response_class=HTMLResponse)
async def register(
    request: Request,
    name: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
    confirm_password: str = Form(""),
    session: SessionContext = Depends(get_session_context),
    api: PlatformApiClient = Depends(get_api_client),
):
    """Register a new user and sign them in"""
    values = {"name": name, "email": email}
    errors: Dict[str, str] = {}
    payload = None
    try:
        payload = RegisterRequest(name=name.strip(), email=email, password=password)
    except ValidationError as e:
        errors = form_errors(e)
    if password != confirm_password:
        errors["confirm_password"] = "Passwords do not match"

    if errors:
        return render(
            request, "auth/register.html", {"errors": errors, "values": values},
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )

    try:
        auth = await api.register(payload)
    except ApiValidationError as e:
        errors = dict(e.field_errors)
        errors["form"] = e.message
        return render(
            request, "auth/register.html", {"errors": errors, "values": values},
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )

    session.start(auth)
    session.flash("Welcome! Connect a Meta account to get started.", "success")
    return redirect(settings.DEFAULT_AUTHENTICATED_PATH)


@router.post("/logout")
async def logout(
    session: SessionContext = Depends(get_session_context),
    registry: QueryCacheRegistry = Depends(get_cache_registry),
    drafts: DraftStore = Depends(get_draft_store),
):
    """End the session and drop everything cached for the user"""
    registry.drop(session.user_id)
    drafts.discard_owner(session.user_id)
    session.clear()
    return redirect(settings.LOGIN_PATH)


# ========================================
# Dashboard / Analytics
# ========================================

@router.get("/dashboard", response_class=HTMLResponse)
async def dashboard_page(
    request: Request,
    session: SessionContext = Depends(require_session),
    accounts: AccountService = Depends(get_account_service),
    campaigns: CampaignService = Depends(get_campaign_service),
    analytics: AnalyticsService = Depends(get_analytics_service),
):
    """Dashboard page"""
    account_list = await accounts.list_accounts()
    campaign_list = await campaigns.list_campaigns()
    date_range = resolve_date_range(DateRangePreset.LAST_7_DAYS)
    metrics = await analytics.get_metrics(date_range)

    recent = sorted(
        campaign_list,
        key=lambda c: c.created_at.timestamp() if c.created_at else 0,
        reverse=True,
    )[:RECENT_CAMPAIGNS_LIMIT]

    return render(request, "dashboard.html", {
        "active_page": "dashboard",
        "accounts": account_list,
        "facebook_pages": await accounts.list_facebook_pages(),
        "recent_campaigns": recent,
        "campaign_total": len(campaign_list),
        "status_counts": count_by_status(campaign_list),
        "summary": summarize(metrics),
        "chart": chart_series(metrics),
        "date_range": date_range,
    })


@router.post("/dashboard/pages/connect")
async def connect_facebook_pages(
    session: SessionContext = Depends(require_session),
    api: PlatformApiClient = Depends(get_api_client),
):
    """Send the user to the provider to connect Facebook Pages"""
    auth_url = await MetaConnectFlow(session).begin_pages(api)
    return redirect(auth_url)

@router.get("/analytics", response_class=HTMLResponse)
async def analytics_page(
    request: Request,
    period: Optional[str] = None,
    campaign_id: Optional[str] = None,
    session: SessionContext = Depends(require_session),
    campaigns: CampaignService = Depends(get_campaign_service),
    analytics: AnalyticsService = Depends(get_analytics_service),
):
    """Analytics page"""
    date_range = resolve_date_range(period)
    campaign_list = await campaigns.list_campaigns()
    metrics = await analytics.get_metrics(date_range, campaign_id=campaign_id or None)

    names = {c.id: c.name for c in campaign_list}
    per_campaign = [
        {"id": cid, "name": names.get(cid, cid), "summary": summarize(items)}
        for cid, items in group_by_campaign(metrics).items()
    ]
    per_campaign.sort(key=lambda row: row["summary"].total_spend, reverse=True)

    return render(request, "analytics.html", {
        "active_page": "analytics",
        "period": period if period in DateRangePreset._value2member_map_ else DateRangePreset.LAST_7_DAYS.value,
        "campaign_id": campaign_id,
        "campaigns": campaign_list,
        "date_range": date_range,
        "summary": summarize(metrics),
        "chart": chart_series(metrics),
        "per_campaign": per_campaign,
    })


# ========================================
# Settings: profile, password, Meta accounts
# ========================================

@router.get("/settings", response_class=HTMLResponse)
async def settings_page(
    request: Request,
    session: SessionContext = Depends(require_session),
    api: PlatformApiClient = Depends(get_api_client),
    accounts: AccountService = Depends(get_account_service),
):
    """Settings page"""
    user = await api.get_current_user()
    session.update_user(user)
    return render(request, "settings/index.html", {
        "active_page": "settings",
        "user": user,
        "accounts": await accounts.list_accounts(),
    })


@router.post("/settings/profile")
async def update_profile(
    name: str = Form(""),
    email: str = Form(""),
    session: SessionContext = Depends(require_session),
    api: PlatformApiClient = Depends(get_api_client),
):
    try:
        payload = ProfileUpdate(name=name.strip() or None, email=email.strip() or None)
    except ValidationError as e:
        session.flash(next(iter(form_errors(e).values())), "error")
        return redirect("/settings")

    try:
        user = await api.update_profile(payload)
    except ApiValidationError as e:
        session.flash(e.message, "error")
        return redirect("/settings")

    session.update_user(user)
    session.flash("Profile updated successfully", "success")
    return redirect("/settings")


@router.post("/settings/password")
async def change_password(
    current_password: str = Form(""),
    new_password: str = Form(""),
    confirm_password: str = Form(""),
    session: SessionContext = Depends(require_session),
    api: PlatformApiClient = Depends(get_api_client),
):
    if new_password != confirm_password:
        session.flash("Passwords do not match", "error")
        return redirect("/settings")
    try:
        payload = PasswordChange(current_password=current_password, new_password=new_password)
    except ValidationError as e:
        session.flash(next(iter(form_errors(e).values())), "error")
        return redirect("/settings")

    try:
        await api.change_password(payload)
    except ApiValidationError as e:
        session.flash(e.message, "error")
        return redirect("/settings")

    session.flash("Password changed successfully", "success")
    return redirect("/settings")


@router.post("/settings/accounts/connect")
async def connect_account(
    meta_app_id: str = Form(""),
    session: SessionContext = Depends(require_session),
    api: PlatformApiClient = Depends(get_api_client),
):
    """Send the user to the provider's authorization page"""
    auth_url = await MetaConnectFlow(session).begin(api, meta_app_id.strip() or None)
    return redirect(auth_url)


@router.post("/settings/accounts/{account_id}/disconnect")
async def disconnect_account(
    account_id: str,
    session: SessionContext = Depends(require_session),
    accounts: AccountService = Depends(get_account_service),
):
    await accounts.disconnect(account_id)
    session.flash("Account disconnected", "success")
    return redirect("/settings")


@router.post("/settings/accounts/{account_id}/sync")
async def sync_account(
    account_id: str,
    session: SessionContext = Depends(require_session),
    accounts: AccountService = Depends(get_account_service),
):
    await accounts.sync(account_id)
    session.flash("Account synced", "success")
    return redirect("/settings")


# ========================================
# Meta connect callback
# ========================================

@router.get("/auth/callback", response_class=HTMLResponse)
async def meta_callback(
    request: Request,
    session: SessionContext = Depends(get_current_session),
    cache: QueryCache = Depends(get_cache),
):
    """
    Return point of the provider. Shows the outcome, then redirects to the
    default view after a short delay.
    """
    outcome = MetaConnectFlow(session).resolve(request.query_params)
    if outcome.refresh_accounts:
        cache.invalidate(ACCOUNTS, FACEBOOK_PAGES)
    if outcome.message is None:
        return redirect(outcome.redirect_to)

    return render(
        request,
        "auth/callback.html",
        {"outcome": outcome},
        headers={"Refresh": f"{outcome.delay_seconds}; url={outcome.redirect_to}"},
    )

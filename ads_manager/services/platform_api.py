"""
Ads Platform REST API Client
Thin async wrapper that turns HTTP failures into typed errors
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from ads_manager.core.config import settings
from ads_manager.core.exceptions import (
    ApiAuthorizationError,
    ApiNotFoundError,
    ApiTransientError,
    ApiValidationError,
    PlatformApiError,
)
from ads_manager.schemas.accounts import FacebookPage, MetaAccount
from ads_manager.schemas.analytics import DateRange, Metric
from ads_manager.schemas.auth import (
    AuthResult,
    LoginRequest,
    PasswordChange,
    ProfileUpdate,
    RegisterRequest,
    User,
)
from ads_manager.schemas.campaigns import Campaign, CampaignCreate, CampaignFilters, StatusUpdate

logger = logging.getLogger(__name__)

VALIDATION_STATUSES = {400, 409, 422}
TRANSIENT_STATUSES = {408, 429}


def _error_message(response: httpx.Response, fallback: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict):
        for key in ("error", "message", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return fallback


def _field_errors(details: Any) -> Dict[str, str]:
    """details: [{"field": ..., "message": ...}, ...]"""
    errors: Dict[str, str] = {}
    if not isinstance(details, list):
        return errors
    for item in details:
        if isinstance(item, dict) and item.get("field"):
            errors[str(item["field"])] = str(item.get("message") or "Invalid value")
    return errors


def raise_for_response(response: httpx.Response) -> None:
    """Map a non-2xx response onto the error taxonomy"""
    status_code = response.status_code
    if status_code < 400:
        return

    try:
        body = response.json()
    except ValueError:
        body = None
    details = body.get("details") if isinstance(body, dict) else None

    if status_code == 401:
        raise ApiAuthorizationError(
            _error_message(response, "Session expired. Please login again."),
            status_code=status_code,
        )
    if status_code == 404:
        raise ApiNotFoundError(_error_message(response, "Not found"), status_code=status_code)
    if status_code in VALIDATION_STATUSES:
        raise ApiValidationError(
            _error_message(response, "Invalid request"),
            status_code=status_code,
            details=details,
            field_errors=_field_errors(details),
        )
    if status_code in TRANSIENT_STATUSES or status_code >= 500:
        raise ApiTransientError(
            _error_message(response, "The server is temporarily unavailable. Please try again."),
            status_code=status_code,
        )
    raise PlatformApiError(
        _error_message(response, f"Request failed ({status_code})"),
        status_code=status_code,
        details=details,
    )


class PlatformApiClient:
    """
    Ads Platform API client for auth, Meta accounts, campaigns and analytics.

    One instance per request; the bearer token comes from the caller's session.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token = token
        self.base_url = (base_url or settings.platform_api_url).rstrip("/")
        self.timeout = timeout or settings.PLATFORM_API_TIMEOUT_SECONDS
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
                headers={
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                },
            )
        return self._client

    async def close(self):
        """Close the HTTP client"""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "PlatformApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if params:
            params = {k: v for k, v in params.items() if v is not None}

        logger.debug(f"API Request: {method} {path}")
        try:
            response = await self.client.request(method, path, params=params, json=json, headers=headers)
        except httpx.TimeoutException as e:
            logger.error(f"API timeout: {method} {path}: {e}")
            raise ApiTransientError("The request timed out. Please try again.") from e
        except httpx.TransportError as e:
            logger.error(f"API network error: {method} {path}: {e}")
            raise ApiTransientError("Could not reach the server. Please try again.") from e

        logger.debug(f"API Response: {response.status_code} {path}")
        if response.status_code == 401:
            logger.info(f"Unauthorized response from {path}")
        raise_for_response(response)

        if response.status_code == 204 or not response.content:
            return {}
        try:
            data = response.json()
        except ValueError as e:
            raise ApiTransientError("The server returned an invalid response.") from e
        return data if isinstance(data, dict) else {"data": data}

    # ========================================
    # Auth API
    # ========================================

    async def login(self, credentials: LoginRequest) -> AuthResult:
        data = await self._request("POST", "/auth/login", json=credentials.to_wire())
        return AuthResult.model_validate(data)

    async def register(self, payload: RegisterRequest) -> AuthResult:
        data = await self._request("POST", "/auth/register", json=payload.to_wire())
        return AuthResult.model_validate(data)

    async def get_current_user(self) -> User:
        data = await self._request("GET", "/auth/me")
        return User.model_validate(data["user"])

    async def update_profile(self, payload: ProfileUpdate) -> User:
        data = await self._request("PUT", "/auth/profile", json=payload.to_wire())
        return User.model_validate(data["user"])

    async def change_password(self, payload: PasswordChange) -> None:
        await self._request("POST", "/auth/change-password", json=payload.to_wire())

    async def get_meta_connect_url(self, meta_app_id: Optional[str] = None) -> str:
        """Authorization URL of the external provider"""
        data = await self._request("GET", "/auth/meta/connect", params={"metaAppId": meta_app_id})
        auth_url = data.get("authUrl")
        if not isinstance(auth_url, str) or not auth_url:
            raise PlatformApiError("Connect response is missing authUrl")
        return auth_url

    # ========================================
    # Accounts API
    # ========================================

    async def list_accounts(self) -> List[MetaAccount]:
        data = await self._request("GET", "/accounts")
        return [MetaAccount.model_validate(a) for a in data.get("accounts") or []]

    async def disconnect_account(self, account_id: str) -> None:
        await self._request("DELETE", f"/accounts/{account_id}")

    async def sync_account(self, account_id: str) -> Dict[str, Any]:
        return await self._request("POST", f"/accounts/{account_id}/sync")

    # ========================================
    # Facebook Pages API
    # ========================================

    async def get_facebook_auth_url(self, features: str = "ads_management") -> str:
        """Authorization URL for connecting Facebook Pages"""
        data = await self._request("GET", "/facebook/auth", params={"features": features})
        auth_url = data.get("authUrl")
        if not isinstance(auth_url, str) or not auth_url:
            raise PlatformApiError("Connect response is missing authUrl")
        return auth_url

    async def list_facebook_pages(self) -> List[FacebookPage]:
        data = await self._request("GET", "/facebook/pages")
        return [FacebookPage.model_validate(p) for p in data.get("pages") or []]

    # ========================================
    # Campaigns API
    # ========================================

    async def list_campaigns(self, filters: Optional[CampaignFilters] = None) -> List[Campaign]:
        params = filters.to_wire() if filters else None
        data = await self._request("GET", "/campaigns", params=params)
        return [Campaign.model_validate(c) for c in data.get("campaigns") or []]

    async def get_campaign(self, campaign_id: str) -> Campaign:
        data = await self._request("GET", f"/campaigns/{campaign_id}")
        return Campaign.model_validate(data["campaign"])

    async def create_campaign(self, payload: CampaignCreate) -> Campaign:
        data = await self._request("POST", "/campaigns", json=payload.to_wire())
        return Campaign.model_validate(data["campaign"])

    async def update_campaign_status(self, campaign_id: str, update: StatusUpdate) -> Optional[Campaign]:
        data = await self._request("PATCH", f"/campaigns/{campaign_id}/status", json=update.to_wire())
        campaign = data.get("campaign")
        return Campaign.model_validate(campaign) if campaign else None

    # ========================================
    # Analytics API
    # ========================================

    async def get_metrics(
        self,
        date_range: Optional[DateRange] = None,
        campaign_id: Optional[str] = None,
    ) -> List[Metric]:
        params: Dict[str, Any] = {"campaignId": campaign_id}
        if date_range:
            params["startDate"] = date_range.start.isoformat()
            params["endDate"] = date_range.end.isoformat()
        data = await self._request("GET", "/analytics/metrics", params=params)
        return [Metric.model_validate(m) for m in data.get("metrics") or []]

    # ========================================
    # Health
    # ========================================

    async def ping(self) -> Dict[str, Any]:
        """Upstream health endpoint"""
        return await self._request("GET", "/health")

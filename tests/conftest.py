import json
import os
import sys
import time
from datetime import date, timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

ROOT_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT_DIR))

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("PLATFORM_API_BASE_URL", "http://platform.test/api")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import httpx
import jwt
import pytest
from fastapi import Depends
from fastapi.testclient import TestClient

from ads_manager.core.deps import get_api_client, get_session_context
from ads_manager.core.session import SessionContext
from ads_manager.main import create_app
from ads_manager.services.platform_api import PlatformApiClient

BASE_URL = "http://platform.test/api"
USER_EMAIL = "owner@example.com"
USER_PASSWORD = "password123"
AUTH_URL = "https://www.facebook.com/v18.0/dialog/oauth?client_id=123&state=abc"
PAGES_AUTH_URL = "https://www.facebook.com/v18.0/dialog/oauth?client_id=123&scope=pages_show_list"


def make_token(user_id: str = "u1", expires_in: int = 3600, secret: str = "platform-secret") -> str:
    return jwt.encode(
        {"sub": user_id, "exp": int(time.time()) + expires_in},
        secret,
        algorithm="HS256",
    )


class FakePlatformApi:
    """In-memory Ads Platform REST API served through httpx.MockTransport"""

    def __init__(self):
        self.token = make_token()
        self.password = USER_PASSWORD
        self.user = {"id": "u1", "email": USER_EMAIL, "name": "Olivia Owner", "createdAt": "2026-01-05T10:00:00Z"}
        self.accounts: List[Dict[str, Any]] = [
            {
                "id": "a1",
                "accountId": "act_1001",
                "accountName": "Main Account",
                "currency": "USD",
                "accountStatus": "ACTIVE",
                "isActive": True,
            },
            {
                "id": "a2",
                "accountId": "act_2002",
                "accountName": "Empty Account",
                "currency": "EUR",
                "accountStatus": "ACTIVE",
                "isActive": True,
            },
        ]
        self.facebook_pages: List[Dict[str, Any]] = [
            {
                "id": "p1",
                "pageId": "1090001",
                "pageName": "Olivia's Bikes",
                "pageCategory": "Bicycle Shop",
                "fanCount": 12840,
                "pageUrl": "https://www.facebook.com/oliviasbikes",
            },
        ]
        self.campaigns: Dict[str, Dict[str, Any]] = {}
        self._add_campaign("c1", "Summer Sale", "ACTIVE", "OUTCOME_SALES", 50, "2026-09-01T10:00:00Z")
        self._add_campaign("c2", "Brand Push", "PAUSED", "OUTCOME_AWARENESS", 20, "2026-09-10T10:00:00Z")
        self._add_campaign("c3", "Winter Leads", "ACTIVE", "OUTCOME_LEADS", 35, "2026-09-20T10:00:00Z")

        yesterday = date.today() - timedelta(days=1)
        self.metrics: List[Dict[str, Any]] = [
            {"id": "m1", "campaignId": "c1", "date": f"{yesterday.isoformat()}T00:00:00.000Z",
             "impressions": 1000, "clicks": 50, "spend": 25.0, "conversions": 5,
             "ctr": 5.0, "cpc": 0.5, "cpm": 25.0, "roas": 4.0},
            {"id": "m2", "campaignId": "c2", "date": yesterday.isoformat(),
             "impressions": 3000, "clicks": 30, "spend": 75.0, "conversions": 1,
             "ctr": 1.0, "cpc": 2.5, "cpm": 25.0, "roas": 0.0},
        ]

        self.requests: List[Tuple[str, str, Dict[str, str], Optional[Dict[str, Any]]]] = []
        self.created_payloads: List[Dict[str, Any]] = []
        self.failures: Dict[Tuple[str, str], httpx.Response] = {}
        self.reject_tokens = False
        self._next_id = 100

    def _add_campaign(self, campaign_id, name, status, objective, budget, created_at, account_id="a1"):
        self.campaigns[campaign_id] = {
            "id": campaign_id,
            "name": name,
            "objective": objective,
            "status": status,
            "budgetType": "DAILY",
            "budget": budget,
            "metaAccountId": account_id,
            "metaCampaignId": f"meta_{campaign_id}",
            "targeting": {"ageMin": 18, "ageMax": 65, "genders": ["all"], "locations": ["US"]},
            "placements": ["facebook", "instagram"],
            "createdAt": created_at,
        }

    # ========================================
    # Helpers for tests
    # ========================================

    def client(self, token: Optional[str] = None) -> PlatformApiClient:
        return PlatformApiClient(
            token=token,
            base_url=BASE_URL,
            transport=httpx.MockTransport(self.handler),
        )

    def fail(self, method: str, path: str, status_code: int, body: Optional[Dict[str, Any]] = None):
        self.failures[(method, path)] = httpx.Response(status_code, json=body or {"error": "Request failed"})

    def calls(self, method: Optional[str] = None, path: Optional[str] = None) -> List[Tuple[str, str]]:
        return [
            (m, p) for m, p, _, _ in self.requests
            if (method is None or m == method) and (path is None or p == path)
        ]

    def _account(self, account_id):
        return next((a for a in self.accounts if a["id"] == account_id), None)

    def _campaign_out(self, campaign):
        account = self._account(campaign["metaAccountId"])
        out = dict(campaign)
        if account:
            out["MetaAccount"] = {
                "id": account["id"],
                "accountName": account["accountName"],
                "currency": account["currency"],
            }
        return out

    # ========================================
    # Transport handler
    # ========================================

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path[len("/api"):]
        method = request.method
        params = dict(request.url.params)
        body = json.loads(request.content) if request.content else None
        self.requests.append((method, path, params, body))

        if (method, path) in self.failures:
            return self.failures[(method, path)]

        if path in ("/auth/login", "/auth/register", "/health"):
            return self._public(method, path, body)

        authorization = request.headers.get("Authorization")
        if self.reject_tokens or authorization != f"Bearer {self.token}":
            return httpx.Response(401, json={"error": "Invalid or expired token"})
        return self._private(method, path, params, body)

    def _public(self, method, path, body):
        if path == "/health":
            return httpx.Response(200, json={"status": "ok"})
        if path == "/auth/login":
            if body["email"] == self.user["email"] and body["password"] == self.password:
                return httpx.Response(200, json={"user": self.user, "token": self.token})
            return httpx.Response(401, json={"error": "Invalid credentials"})
        if body["email"] == self.user["email"]:
            return httpx.Response(
                400,
                json={"error": "Email already registered", "details": [{"field": "email", "message": "Email already registered"}]},
            )
        user = {"id": "u2", "email": body["email"], "name": body["name"]}
        return httpx.Response(201, json={"user": user, "token": make_token("u2")})

    def _private(self, method, path, params, body):
        parts = path.strip("/").split("/")

        if path == "/auth/me" and method == "GET":
            return httpx.Response(200, json={"user": self.user})
        if path == "/auth/profile" and method == "PUT":
            self.user.update({k: v for k, v in body.items() if v})
            return httpx.Response(200, json={"user": self.user})
        if path == "/auth/change-password" and method == "POST":
            if body["currentPassword"] != self.password:
                return httpx.Response(400, json={"error": "Current password is incorrect"})
            self.password = body["newPassword"]
            return httpx.Response(200, json={"message": "Password changed"})
        if path == "/auth/meta/connect":
            return httpx.Response(200, json={"authUrl": AUTH_URL})
        if path == "/facebook/auth" and method == "GET":
            return httpx.Response(200, json={"authUrl": f"{PAGES_AUTH_URL}&features={params.get('features')}"})
        if path == "/facebook/pages" and method == "GET":
            return httpx.Response(200, json={"pages": self.facebook_pages})

        if parts[0] == "accounts":
            return self._accounts(method, parts)
        if parts[0] == "campaigns":
            return self._campaigns(method, parts, params, body)
        if path == "/analytics/metrics":
            metrics = [
                m for m in self.metrics
                if (not params.get("campaignId") or m["campaignId"] == params["campaignId"])
                and (not params.get("startDate") or m["date"][:10] >= params["startDate"])
                and (not params.get("endDate") or m["date"][:10] <= params["endDate"])
            ]
            return httpx.Response(200, json={"metrics": metrics})
        return httpx.Response(404, json={"error": "Not found"})

    def _accounts(self, method, parts):
        if len(parts) == 1 and method == "GET":
            return httpx.Response(200, json={"accounts": self.accounts})
        account = self._account(parts[1])
        if account is None:
            return httpx.Response(404, json={"error": "Account not found"})
        if method == "DELETE":
            self.accounts.remove(account)
            self.campaigns = {k: c for k, c in self.campaigns.items() if c["metaAccountId"] != account["id"]}
            return httpx.Response(200, json={"message": "Account disconnected"})
        if len(parts) == 3 and parts[2] == "sync" and method == "POST":
            return httpx.Response(200, json={"message": "Sync completed"})
        return httpx.Response(405, json={"error": "Method not allowed"})

    def _campaigns(self, method, parts, params, body):
        if len(parts) == 1 and method == "GET":
            campaigns = [
                self._campaign_out(c) for c in self.campaigns.values()
                if (not params.get("metaAccountId") or c["metaAccountId"] == params["metaAccountId"])
                and (not params.get("status") or c["status"] == params["status"])
            ]
            return httpx.Response(200, json={"campaigns": campaigns})
        if len(parts) == 1 and method == "POST":
            self.created_payloads.append(body)
            self._next_id += 1
            campaign_id = f"c{self._next_id}"
            self.campaigns[campaign_id] = {
                "id": campaign_id,
                "name": body["name"],
                "objective": body["objective"],
                "status": "PAUSED",
                "budgetType": body["budgetType"],
                "budget": body["budget"],
                "metaAccountId": body["metaAccountId"],
                "targeting": body["targeting"],
                "placements": body["placements"],
                "creative": {
                    "adName": body["adName"],
                    "headline": body["headline"],
                    "adText": body["adText"],
                    "callToAction": body["callToAction"],
                    "destinationUrl": body["destinationUrl"],
                },
            }
            return httpx.Response(201, json={"campaign": self._campaign_out(self.campaigns[campaign_id])})

        campaign = self.campaigns.get(parts[1])
        if campaign is None:
            return httpx.Response(404, json={"error": "Campaign not found"})
        if len(parts) == 2 and method == "GET":
            return httpx.Response(200, json={"campaign": self._campaign_out(campaign)})
        if len(parts) == 3 and parts[2] == "status" and method == "PATCH":
            campaign["status"] = body["status"]
            return httpx.Response(200, json={"campaign": self._campaign_out(campaign)})
        return httpx.Response(405, json={"error": "Method not allowed"})


@pytest.fixture()
def fake_api():
    return FakePlatformApi()


@pytest.fixture()
def app(fake_api):
    application = create_app()

    async def override_api_client(session: SessionContext = Depends(get_session_context)):
        client = fake_api.client(token=session.token)
        try:
            yield client
        finally:
            await client.close()

    application.dependency_overrides[get_api_client] = override_api_client
    return application


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def auth_client(client):
    response = client.post(
        "/login",
        data={"email": USER_EMAIL, "password": USER_PASSWORD},
        follow_redirects=False,
    )
    assert response.status_code == 303
    assert response.headers["location"] == "/dashboard"
    return client

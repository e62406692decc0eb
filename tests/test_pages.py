from __future__ import annotations

from conftest import AUTH_URL, PAGES_AUTH_URL, USER_EMAIL, make_token


def test_pages_require_login(client):
    response = client.get("/dashboard", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/login"

    assert client.get("/", follow_redirects=False).headers["location"] == "/login"


def test_login_with_wrong_password_shows_error(client, fake_api):
    response = client.post("/login", data={"email": USER_EMAIL, "password": "nope"})
    assert response.status_code == 401
    assert "Invalid credentials" in response.text


def test_login_validates_email_locally(client, fake_api):
    response = client.post("/login", data={"email": "not-an-email", "password": "x"})
    assert response.status_code == 422
    assert fake_api.requests == []


def test_dashboard_overview(auth_client):
    response = auth_client.get("/dashboard")
    assert response.status_code == 200
    assert 'id="account-count">2<' in response.text
    assert "Summer Sale" in response.text
    assert "$100.00" in response.text


def test_register_checks_confirmation_then_signs_in(client, fake_api):
    response = client.post(
        "/register",
        data={"name": "Nia", "email": "nia@example.com", "password": "longenough", "confirm_password": "different"},
    )
    assert response.status_code == 422
    assert "Passwords do not match" in response.text
    assert fake_api.calls("POST", "/auth/register") == []

    response = client.post(
        "/register",
        data={"name": "Nia", "email": "nia@example.com", "password": "longenough", "confirm_password": "longenough"},
        follow_redirects=False,
    )
    assert response.status_code == 303
    assert response.headers["location"] == "/dashboard"


def test_expired_token_is_cleared_on_next_page_load(client, fake_api):
    fake_api.token = make_token(expires_in=60)
    client.post("/login", data={"email": USER_EMAIL, "password": "password123"})

    response = client.get("/dashboard", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/login"
    assert fake_api.calls("GET", "/accounts") == []


def test_unauthorized_response_redirects_to_login_once(auth_client, fake_api):
    fake_api.reject_tokens = True

    response = auth_client.get("/campaigns", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/login?expired=1"

    calls_before = len(fake_api.requests)
    response = auth_client.get("/campaigns")
    assert response.status_code == 200
    assert response.url.path == "/login"
    assert len(response.history) == 1
    assert len(fake_api.requests) == calls_before

    response = auth_client.get("/login?expired=1")
    assert "Your session has expired" in response.text


def test_unauthorized_response_on_json_api_clears_session(auth_client, fake_api):
    fake_api.reject_tokens = True
    response = auth_client.post("/api/v1/campaign-drafts")
    assert response.status_code == 401
    assert response.json()["success"] is False

    assert auth_client.get("/dashboard", follow_redirects=False).headers["location"] == "/login"


def test_logout_clears_session(auth_client):
    response = auth_client.post("/logout", follow_redirects=False)
    assert response.headers["location"] == "/login"
    assert auth_client.get("/dashboard", follow_redirects=False).status_code == 303


def test_status_change_then_list_shows_new_status(auth_client, fake_api):
    response = auth_client.get("/campaigns")
    assert 'data-campaign-id="c1" data-status="ACTIVE"' in response.text

    response = auth_client.post(
        "/campaigns/c1/status",
        data={"status": "PAUSED", "redirect_to": "/campaigns"},
        follow_redirects=False,
    )
    assert response.status_code == 303
    assert response.headers["location"] == "/campaigns"

    response = auth_client.get("/campaigns")
    assert 'data-campaign-id="c1" data-status="PAUSED"' in response.text
    assert "Campaign status updated to PAUSED" in response.text
    assert len(fake_api.calls("GET", "/campaigns")) == 2


def test_campaign_list_search_and_status_filter(auth_client):
    response = auth_client.get("/campaigns", params={"search": "winter", "status": "ACTIVE"})
    assert 'data-campaign-id="c3"' in response.text
    assert 'data-campaign-id="c1"' not in response.text


def test_bulk_status_change(auth_client, fake_api):
    response = auth_client.post(
        "/campaigns/bulk-status",
        data={"campaign_ids": ["c1", "c3"], "status": "PAUSED"},
    )
    assert response.status_code == 200
    assert "Pause: 2 campaign(s) updated" in response.text
    assert fake_api.campaigns["c3"]["status"] == "PAUSED"


def test_bulk_status_partial_failure_is_reported(auth_client, fake_api):
    fake_api.fail("PATCH", "/campaigns/c3/status", 400, {"error": "Campaign cannot be archived"})
    response = auth_client.post(
        "/campaigns/bulk-status",
        data={"campaign_ids": ["c1", "c3"], "status": "ARCHIVED"},
    )
    assert "Archive: 1 campaign(s) updated" in response.text
    assert "Archive failed for 1 campaign(s): Campaign cannot be archived" in response.text


def test_transient_error_on_page_shows_retry(auth_client, fake_api):
    fake_api.fail("GET", "/campaigns", 503, {"error": "Service unavailable"})
    response = auth_client.get("/campaigns")
    assert response.status_code == 503
    assert "Service unavailable" in response.text
    assert "Try again" in response.text


def test_failed_mutation_flashes_and_redirects_back(auth_client, fake_api):
    fake_api.fail("PATCH", "/campaigns/c1/status", 500, {"error": "Upstream exploded"})
    response = auth_client.post(
        "/campaigns/c1/status",
        data={"status": "PAUSED"},
        headers={"referer": "http://testserver/campaigns"},
        follow_redirects=False,
    )
    assert response.status_code == 303
    assert response.headers["location"] == "/campaigns"

    response = auth_client.get("/campaigns")
    assert "Upstream exploded" in response.text
    assert fake_api.campaigns["c1"]["status"] == "ACTIVE"


def test_missing_campaign_is_404(auth_client):
    response = auth_client.get("/campaigns/nope")
    assert response.status_code == 404
    assert "Campaign not found" in response.text


def test_campaign_detail_and_analytics_pages(auth_client):
    response = auth_client.get("/campaigns/c1")
    assert response.status_code == 200
    assert "Summer Sale" in response.text

    response = auth_client.get("/analytics", params={"period": "last30days", "campaign_id": "c2"})
    assert response.status_code == 200
    assert "Brand Push" in response.text


def test_disconnect_account_with_zero_campaigns(auth_client, fake_api):
    assert "Empty Account" in auth_client.get("/settings").text

    response = auth_client.post("/settings/accounts/a2/disconnect", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/settings"

    response = auth_client.get("/settings")
    assert response.status_code == 200
    assert "Account disconnected" in response.text
    assert "Empty Account" not in response.text


def test_profile_and_password_updates(auth_client, fake_api):
    response = auth_client.post("/settings/profile", data={"name": "Olivia O.", "email": USER_EMAIL})
    assert "Profile updated successfully" in response.text
    assert "Olivia O." in response.text

    response = auth_client.post(
        "/settings/password",
        data={"current_password": "wrong", "new_password": "newpassword1", "confirm_password": "newpassword1"},
    )
    assert "Current password is incorrect" in response.text

    response = auth_client.post(
        "/settings/password",
        data={"current_password": "password123", "new_password": "newpassword1", "confirm_password": "newpassword1"},
    )
    assert "Password changed successfully" in response.text
    assert fake_api.password == "newpassword1"


def test_connect_redirects_to_provider(auth_client, fake_api):
    response = auth_client.post("/settings/accounts/connect", data={"meta_app_id": ""}, follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == AUTH_URL


def test_connect_failure_flashes_message(auth_client, fake_api):
    fake_api.fail("GET", "/auth/meta/connect", 500)
    response = auth_client.post(
        "/settings/accounts/connect",
        headers={"referer": "http://testserver/settings"},
    )
    assert response.url.path == "/settings"
    assert "Failed to connect account. Please try again." in response.text


def test_callback_access_denied_shows_message_then_redirects(auth_client):
    auth_client.post("/settings/accounts/connect", follow_redirects=False)

    response = auth_client.get("/auth/callback", params={"error": "access_denied"})
    assert response.status_code == 200
    assert "Access denied. You need to grant permissions to connect your Meta account." in response.text
    assert response.headers["refresh"] == "3; url=/dashboard"
    assert 'http-equiv="refresh" content="3; url=/dashboard"' in response.text

    assert auth_client.get("/dashboard").status_code == 200


def test_callback_success_refetches_accounts(auth_client, fake_api):
    auth_client.get("/dashboard")
    assert len(fake_api.calls("GET", "/accounts")) == 1
    fake_api.accounts.append({
        "id": "a3",
        "accountId": "act_3003",
        "accountName": "Fresh Account",
        "currency": "USD",
    })

    response = auth_client.get("/auth/callback", params={"connected": "true"})
    assert "Meta account connected successfully!" in response.text
    assert response.headers["refresh"] == "2; url=/dashboard"

    response = auth_client.get("/dashboard")
    assert len(fake_api.calls("GET", "/accounts")) == 2
    assert 'id="account-count">3<' in response.text


def test_pending_marker_refreshes_accounts_on_any_page(auth_client, fake_api):
    auth_client.get("/dashboard")
    auth_client.post("/settings/accounts/connect", follow_redirects=False)

    auth_client.get("/dashboard")
    assert len(fake_api.calls("GET", "/accounts")) == 2
    auth_client.get("/dashboard")
    assert len(fake_api.calls("GET", "/accounts")) == 2


def test_callback_without_signal_redirects_immediately(auth_client):
    response = auth_client.get("/auth/callback", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/dashboard"


def test_health_endpoints(client):
    assert client.get("/api/v1/health").json()["status"] == "healthy"
    assert client.get("/api/v1/health/api").json()["status"] == "healthy"


def test_dashboard_lists_connected_facebook_pages(auth_client):
    response = auth_client.get("/dashboard")
    assert 'data-page-id="p1"' in response.text
    assert "Bicycle Shop" in response.text
    assert "12,840 followers" in response.text
    assert 'href="https://www.facebook.com/oliviasbikes"' in response.text


def test_connect_pages_redirects_and_refreshes_pages_on_return(auth_client, fake_api):
    auth_client.get("/dashboard")
    assert len(fake_api.calls("GET", "/facebook/pages")) == 1

    response = auth_client.post("/dashboard/pages/connect", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"].startswith(PAGES_AUTH_URL)
    assert response.headers["location"].endswith("features=ads_management")

    fake_api.facebook_pages.append({"id": "p2", "pageName": "Second Page", "fanCount": 5})
    response = auth_client.get("/auth/callback", params={"connected": "true"})
    assert response.status_code == 200

    page = auth_client.get("/dashboard").text
    assert len(fake_api.calls("GET", "/facebook/pages")) == 2
    assert 'data-page-id="p2"' in page


def test_connect_pages_failure_flashes_message(auth_client, fake_api):
    fake_api.fail("GET", "/facebook/auth", 500)
    response = auth_client.post(
        "/dashboard/pages/connect",
        headers={"referer": "http://testserver/dashboard"},
    )
    assert response.url.path == "/dashboard"
    assert "Failed to connect account. Please try again." in response.text

"""
Tests for the subscription status and cancellation endpoints.
"""
from datetime import datetime, timedelta, timezone
from unittest.mock import patch, MagicMock

import pytest


def set_role(mock_supabase, role):
    query = mock_supabase.service_client.table.return_value.select.return_value.eq.return_value
    query.limit.return_value.execute.return_value = MagicMock(data=[{"role": role}] if role else [])


def set_subscription_rows(mock_supabase, rows):
    query = mock_supabase.service_client.table.return_value.select.return_value.eq.return_value
    query.order.return_value.limit.return_value.execute.return_value = MagicMock(data=rows)


def cancellable_query(mock_supabase):
    return (
        mock_supabase.service_client.table.return_value.select.return_value
        .eq.return_value.in_.return_value.order.return_value.limit.return_value
    )


# ============================================================================
# GET /api/subscription/status
# ============================================================================

def test_status_without_session_is_anonymous(client):
    response = client.get("/api/subscription/status")
    assert response.status_code == 200
    assert response.json() == {
        "userType": "anonymous",
        "hasActiveSubscription": False,
        "hasActiveTrial": False,
    }


def test_status_with_invalid_token_is_anonymous(client):
    response = client.get("/api/subscription/status", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 200
    assert response.json()["userType"] == "anonymous"


def test_status_with_expired_token_is_anonymous(client, token_factory):
    token = token_factory(expires_in=-60)
    response = client.get("/api/subscription/status", headers={"Authorization": f"Bearer {token}"})
    assert response.json()["userType"] == "anonymous"


def test_status_without_email_claim_is_anonymous(client, token_factory):
    token = token_factory(email=None, user_metadata={})
    response = client.get("/api/subscription/status", headers={"Authorization": f"Bearer {token}"})
    assert response.json()["userType"] == "anonymous"


@patch('agapefy_api.services.subscription_service.supabase_client')
def test_status_active_subscription(mock_supabase, client, auth_headers):
    set_role(mock_supabase, "user")
    set_subscription_rows(mock_supabase, [{"status": "paid"}])

    response = client.get("/api/subscription/status", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {
        "userType": "active_subscription",
        "hasActiveSubscription": True,
        "hasActiveTrial": False,
    }
    query = mock_supabase.service_client.table.return_value.select.return_value
    query.eq.assert_any_call("subscriber_email", "maria@example.com")


@patch('agapefy_api.services.subscription_service.supabase_client')
def test_status_trial(mock_supabase, client, auth_headers):
    set_role(mock_supabase, None)
    finished = (datetime.now(timezone.utc) + timedelta(days=10)).isoformat()
    set_subscription_rows(mock_supabase, [
        {"status": "pending", "trial_days": 30, "trial_finished_at": finished},
    ])

    response = client.get("/api/subscription/status", headers=auth_headers)

    assert response.json() == {
        "userType": "trial",
        "hasActiveSubscription": False,
        "hasActiveTrial": True,
    }


@patch('agapefy_api.services.subscription_service.supabase_client')
def test_status_admin_is_active_without_rows(mock_supabase, client, auth_headers):
    set_role(mock_supabase, "admin")
    set_subscription_rows(mock_supabase, [])

    response = client.get("/api/subscription/status", headers=auth_headers)

    assert response.json()["userType"] == "active_subscription"
    assert response.json()["hasActiveSubscription"] is True


@patch('agapefy_api.services.subscription_service.supabase_client')
def test_status_storage_failure_degrades_to_no_subscription(mock_supabase, client, auth_headers):
    mock_supabase.service_client.table.side_effect = Exception("connection refused")

    response = client.get("/api/subscription/status", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {
        "userType": "no_subscription",
        "hasActiveSubscription": False,
        "hasActiveTrial": False,
    }


@patch('agapefy_api.services.subscription_service.supabase_client')
def test_status_reads_session_cookie(mock_supabase, client, auth_token):
    set_role(mock_supabase, None)
    set_subscription_rows(mock_supabase, [])

    client.cookies.set("sb-access-token", auth_token)
    response = client.get("/api/subscription/status")

    assert response.json()["userType"] == "no_subscription"


# ============================================================================
# POST /api/subscription/cancel
# ============================================================================

def test_cancel_requires_session(client):
    response = client.post("/api/subscription/cancel")
    assert response.status_code == 401


def test_cancel_rejects_token_without_email(client, token_factory):
    token = token_factory(email=None, user_metadata={})
    response = client.post("/api/subscription/cancel", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


@patch('agapefy_api.services.subscription_service.supabase_client')
def test_cancel_schedules_cancellation(mock_supabase, client, auth_headers):
    cancellable_query(mock_supabase).execute.return_value = MagicMock(
        data=[{"id": "row-1", "status": "active", "cancel_at_cycle_end": False}]
    )

    response = client.post("/api/subscription/cancel", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Subscription cancelled successfully"}

    table = mock_supabase.service_client.table.return_value
    table.select.return_value.eq.return_value.in_.assert_called_once_with(
        "status", ["active", "paid", "authorized", "trialing"]
    )
    table.update.assert_called_once_with({"cancel_at_cycle_end": True})
    table.update.return_value.eq.assert_called_once_with("id", "row-1")


@patch('agapefy_api.services.subscription_service.supabase_client')
def test_cancel_already_scheduled(mock_supabase, client, auth_headers):
    cancellable_query(mock_supabase).execute.return_value = MagicMock(
        data=[{"id": "row-1", "status": "active", "cancel_at_cycle_end": True}]
    )

    response = client.post("/api/subscription/cancel", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert "already" in response.json()["message"]
    mock_supabase.service_client.table.return_value.update.assert_not_called()


@patch('agapefy_api.services.subscription_service.supabase_client')
def test_cancel_without_cancellable_subscription(mock_supabase, client, auth_headers):
    cancellable_query(mock_supabase).execute.return_value = MagicMock(data=[])

    response = client.post("/api/subscription/cancel", headers=auth_headers)

    assert response.status_code == 404


@patch('agapefy_api.services.subscription_service.supabase_client')
def test_cancel_fetch_failure(mock_supabase, client, auth_headers):
    cancellable_query(mock_supabase).execute.side_effect = Exception("timeout")

    response = client.post("/api/subscription/cancel", headers=auth_headers)

    assert response.status_code == 500


@patch('agapefy_api.services.subscription_service.supabase_client')
def test_cancel_update_failure(mock_supabase, client, auth_headers):
    cancellable_query(mock_supabase).execute.return_value = MagicMock(
        data=[{"id": "row-1", "status": "trialing", "cancel_at_cycle_end": None}]
    )
    table = mock_supabase.service_client.table.return_value
    table.update.return_value.eq.return_value.execute.side_effect = Exception("permission denied")

    response = client.post("/api/subscription/cancel", headers=auth_headers)

    assert response.status_code == 500


# ============================================================================
# Service
# ============================================================================

@pytest.mark.asyncio
@patch('agapefy_api.services.subscription_service.supabase_client')
async def test_service_limits_lookup_to_recent_rows(mock_supabase, test_user):
    from agapefy_api.services.subscription_service import subscription_service

    set_role(mock_supabase, None)
    set_subscription_rows(mock_supabase, [{"status": "expired"}])

    result = await subscription_service.get_status(test_user)

    assert result.user_type == "no_subscription"
    query = mock_supabase.service_client.table.return_value.select.return_value.eq.return_value
    query.order.assert_called_once_with("created_at", desc=True)
    query.order.return_value.limit.assert_called_once_with(10)

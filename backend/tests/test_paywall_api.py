"""
Tests for the paywall endpoints: settings documents and play authorization.
"""
import json
from unittest.mock import patch, AsyncMock, MagicMock

import pytest

from agapefy_api.core.config import settings
from agapefy_api.core.paywall import DEFAULT_PAYWALL_PERMISSIONS, UserType
from agapefy_api.schemas.free_plays import FreePlayCheckResponse
from agapefy_api.schemas.subscription import SubscriptionStatusResponse
from agapefy_api.services.access_service import access_service


def stored_setting(mock_supabase, value):
    query = mock_supabase.service_client.table.return_value.select.return_value.eq.return_value
    query.limit.return_value.execute.return_value = MagicMock(data=[{"value": value}] if value else [])


PERMISSIONS_BODY = {
    "anonymous": {"limit_enabled": True, "max_free_audios_per_day": 0},
    "no_subscription": {"limit_enabled": True, "max_free_audios_per_day": 3},
    "active_subscription": {"full_access_enabled": True},
    "trial": {"full_access_enabled": False},
}


# ============================================================================
# Permissions document
# ============================================================================

@patch('agapefy_api.services.settings_service.supabase_client')
def test_get_permissions_defaults_when_unset(mock_supabase, client):
    stored_setting(mock_supabase, None)

    response = client.get("/api/paywall/permissions")

    assert response.status_code == 200
    assert response.json() == DEFAULT_PAYWALL_PERMISSIONS.model_dump()


@patch('agapefy_api.services.settings_service.supabase_client')
def test_get_permissions_merges_stored_document(mock_supabase, client):
    stored_setting(mock_supabase, json.dumps({"no_subscription": {"limit_enabled": False, "max_free_audios_per_day": 5}}))

    data = client.get("/api/paywall/permissions").json()

    assert data["no_subscription"] == {"limit_enabled": False, "max_free_audios_per_day": 5}
    assert data["anonymous"] == {"limit_enabled": True, "max_free_audios_per_day": 0}


@patch('agapefy_api.services.settings_service.supabase_client')
def test_get_permissions_when_store_is_down(mock_supabase, client):
    mock_supabase.service_client.table.side_effect = Exception("down")

    response = client.get("/api/paywall/permissions")

    assert response.status_code == 200
    assert response.json() == DEFAULT_PAYWALL_PERMISSIONS.model_dump()


def test_update_permissions_requires_credentials(client):
    response = client.put("/api/paywall/permissions", json=PERMISSIONS_BODY)
    assert response.status_code == 401


@patch('agapefy_api.services.subscription_service.supabase_client')
def test_update_permissions_rejects_non_admin(mock_subscriptions, client, auth_headers):
    query = mock_subscriptions.service_client.table.return_value.select.return_value.eq.return_value
    query.limit.return_value.execute.return_value = MagicMock(data=[{"role": "user"}])

    response = client.put("/api/paywall/permissions", json=PERMISSIONS_BODY, headers=auth_headers)

    assert response.status_code == 403


@patch('agapefy_api.services.settings_service.supabase_client')
@patch('agapefy_api.services.subscription_service.supabase_client')
def test_update_permissions_as_admin(mock_subscriptions, mock_settings, client, auth_headers):
    query = mock_subscriptions.service_client.table.return_value.select.return_value.eq.return_value
    query.limit.return_value.execute.return_value = MagicMock(data=[{"role": "admin"}])

    response = client.put("/api/paywall/permissions", json=PERMISSIONS_BODY, headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == PERMISSIONS_BODY

    upsert = mock_settings.service_client.table.return_value.upsert
    row = upsert.call_args[0][0]
    assert row["key"] == "paywall_permissions"
    assert row["type"] == "text"
    assert json.loads(row["value"]) == PERMISSIONS_BODY
    assert upsert.call_args[1] == {"on_conflict": "key"}


@patch('agapefy_api.services.settings_service.supabase_client')
def test_update_permissions_with_admin_api_key(mock_settings, client):
    with patch.object(settings, "admin_api_key", "back-office-key"):
        response = client.put(
            "/api/paywall/permissions",
            json=PERMISSIONS_BODY,
            headers={"X-Admin-Key": "back-office-key"},
        )

    assert response.status_code == 200
    mock_settings.service_client.table.return_value.upsert.assert_called_once()


def test_update_permissions_with_wrong_api_key(client):
    with patch.object(settings, "admin_api_key", "back-office-key"):
        response = client.put(
            "/api/paywall/permissions",
            json=PERMISSIONS_BODY,
            headers={"X-API-Key": "guess"},
        )

    assert response.status_code == 401


def test_update_permissions_validates_body(client):
    with patch.object(settings, "admin_api_key", "back-office-key"):
        response = client.put(
            "/api/paywall/permissions",
            json={"anonymous": {"limit_enabled": True}},
            headers={"X-Admin-Key": "back-office-key"},
        )

    assert response.status_code == 422


@patch('agapefy_api.services.settings_service.supabase_client')
def test_update_permissions_storage_failure(mock_settings, client):
    mock_settings.service_client.table.return_value.upsert.return_value.execute.side_effect = Exception("down")

    with patch.object(settings, "admin_api_key", "back-office-key"):
        response = client.put(
            "/api/paywall/permissions",
            json=PERMISSIONS_BODY,
            headers={"X-Admin-Key": "back-office-key"},
        )

    assert response.status_code == 500


# ============================================================================
# Screen config
# ============================================================================

@patch('agapefy_api.services.settings_service.supabase_client')
def test_get_screen_config(mock_supabase, client):
    stored_setting(mock_supabase, json.dumps({"cta_label": "Comece agora"}))

    data = client.get("/api/paywall/screen-config").json()

    assert data["cta_label"] == "Comece agora"
    assert set(data["plans"]) == {"upfront", "installments"}
    assert data["testimonials"]


@patch('agapefy_api.services.settings_service.supabase_client')
def test_update_screen_config_keeps_unicode(mock_settings, client):
    stored_setting(mock_settings, None)
    body = client.get("/api/paywall/screen-config").json()
    body["title"] = "Oração guiada"

    with patch.object(settings, "admin_api_key", "back-office-key"):
        response = client.put("/api/paywall/screen-config", json=body, headers={"X-Admin-Key": "back-office-key"})

    assert response.status_code == 200
    row = mock_settings.service_client.table.return_value.upsert.call_args[0][0]
    assert row["key"] == "paywall_screen_config"
    assert "Oração guiada" in row["value"]


# ============================================================================
# Play authorization
# ============================================================================

def status_of(user_type):
    return SubscriptionStatusResponse(
        user_type=user_type,
        has_active_subscription=user_type == UserType.ACTIVE_SUBSCRIPTION,
        has_active_trial=user_type == UserType.TRIAL,
    )


@pytest.mark.asyncio
async def test_anonymous_must_log_in():
    with patch('agapefy_api.services.access_service.free_play_service') as free_plays:
        result = await access_service.authorize_play(None, "anon:1.2.3.4|ua")

    assert result.action == "login_required"
    assert result.allowed is False
    assert result.user_type == UserType.ANONYMOUS
    free_plays.check_and_consume.assert_not_called()


@pytest.mark.asyncio
async def test_subscriber_with_full_access_plays(test_user):
    with patch('agapefy_api.services.access_service.subscription_service') as subscriptions, \
         patch('agapefy_api.services.access_service.settings_service') as app_settings, \
         patch('agapefy_api.services.access_service.free_play_service') as free_plays:
        subscriptions.get_status = AsyncMock(return_value=status_of(UserType.ACTIVE_SUBSCRIPTION))
        app_settings.get_paywall_permissions = AsyncMock(return_value=DEFAULT_PAYWALL_PERMISSIONS)

        result = await access_service.authorize_play(test_user, "user:user-123")

    assert result.action == "allowed"
    assert result.allowed is True
    free_plays.check_and_consume.assert_not_called()


@pytest.mark.asyncio
async def test_non_subscriber_consumes_free_play(test_user):
    with patch('agapefy_api.services.access_service.subscription_service') as subscriptions, \
         patch('agapefy_api.services.access_service.settings_service') as app_settings, \
         patch('agapefy_api.services.access_service.free_play_service') as free_plays:
        subscriptions.get_status = AsyncMock(return_value=status_of(UserType.NO_SUBSCRIPTION))
        app_settings.get_paywall_permissions = AsyncMock(return_value=DEFAULT_PAYWALL_PERMISSIONS)
        free_plays.check_and_consume = AsyncMock(
            return_value=FreePlayCheckResponse(allowed=True, count=1, max=1)
        )

        result = await access_service.authorize_play(test_user, "user:user-123")

    assert result.action == "allowed"
    assert result.count == 1
    free_plays.check_and_consume.assert_awaited_once_with(
        limit_key="user:user-123", max_per_day=1, context="no_subscription"
    )


@pytest.mark.asyncio
async def test_exhausted_quota_shows_paywall(test_user):
    with patch('agapefy_api.services.access_service.subscription_service') as subscriptions, \
         patch('agapefy_api.services.access_service.settings_service') as app_settings, \
         patch('agapefy_api.services.access_service.free_play_service') as free_plays:
        subscriptions.get_status = AsyncMock(return_value=status_of(UserType.NO_SUBSCRIPTION))
        app_settings.get_paywall_permissions = AsyncMock(return_value=DEFAULT_PAYWALL_PERMISSIONS)
        free_plays.check_and_consume = AsyncMock(
            return_value=FreePlayCheckResponse(allowed=False, count=1, max=1)
        )

        result = await access_service.authorize_play(test_user, "user:user-123")

    assert result.action == "paywall"
    assert result.allowed is False


@pytest.mark.asyncio
async def test_trial_with_revoked_access_uses_quota(test_user):
    permissions = DEFAULT_PAYWALL_PERMISSIONS.model_copy(
        update={"trial": DEFAULT_PAYWALL_PERMISSIONS.trial.model_copy(update={"full_access_enabled": False})}
    )
    with patch('agapefy_api.services.access_service.subscription_service') as subscriptions, \
         patch('agapefy_api.services.access_service.settings_service') as app_settings, \
         patch('agapefy_api.services.access_service.free_play_service') as free_plays:
        subscriptions.get_status = AsyncMock(return_value=status_of(UserType.TRIAL))
        app_settings.get_paywall_permissions = AsyncMock(return_value=permissions)
        free_plays.check_and_consume = AsyncMock(
            return_value=FreePlayCheckResponse(allowed=True, count=1, max=1)
        )

        result = await access_service.authorize_play(test_user, "user:user-123")

    assert result.user_type == UserType.TRIAL
    free_plays.check_and_consume.assert_awaited_once_with(
        limit_key="user:user-123", max_per_day=1, context="trial"
    )


@pytest.mark.asyncio
async def test_disabled_limit_plays_freely(test_user):
    permissions = DEFAULT_PAYWALL_PERMISSIONS.model_copy(
        update={"no_subscription": DEFAULT_PAYWALL_PERMISSIONS.no_subscription.model_copy(
            update={"limit_enabled": False}
        )}
    )
    with patch('agapefy_api.services.access_service.subscription_service') as subscriptions, \
         patch('agapefy_api.services.access_service.settings_service') as app_settings, \
         patch('agapefy_api.services.access_service.free_play_service') as free_plays:
        subscriptions.get_status = AsyncMock(return_value=status_of(UserType.NO_SUBSCRIPTION))
        app_settings.get_paywall_permissions = AsyncMock(return_value=permissions)

        result = await access_service.authorize_play(test_user, "user:user-123")

    assert result.action == "allowed"
    free_plays.check_and_consume.assert_not_called()


def test_play_access_endpoint_for_visitor(client):
    response = client.post("/api/paywall/play-access")

    assert response.status_code == 200
    assert response.json() == {"userType": "anonymous", "action": "login_required", "allowed": False}


def test_update_permissions_with_non_ascii_api_key(client):
    with patch.object(settings, "admin_api_key", "back-office-key"):
        response = client.put(
            "/api/paywall/permissions",
            json=PERMISSIONS_BODY,
            headers={"X-Admin-Key": "clé".encode("utf-8")},
        )

    assert response.status_code == 401

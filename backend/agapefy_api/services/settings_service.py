"""
App settings store.

Admin-editable key/value pairs kept in the app_settings table. Paywall
documents are stored as JSON text and parsed on every read.
"""
import logging
from typing import Optional

from ..core.paywall import (
    PaywallPermissions,
    PaywallScreenConfig,
    parse_paywall_permissions,
    parse_paywall_screen_config,
)
from ..core.supabase_client import supabase_client
from ..utils.json_encoder import safe_json_dumps

logger = logging.getLogger(__name__)

APP_SETTINGS_TABLE = "app_settings"
PAYWALL_PERMISSIONS_KEY = "paywall_permissions"
PAYWALL_SCREEN_CONFIG_KEY = "paywall_screen_config"


class SettingsService:
    """Service for reading and writing app_settings rows."""

    @property
    def supabase(self):
        return supabase_client.service_client

    async def get_setting(self, key: str) -> Optional[str]:
        """Raw value of a setting, None when it was never saved."""
        result = self.supabase.table(APP_SETTINGS_TABLE).select(
            "value"
        ).eq("key", key).limit(1).execute()

        if result.data:
            return result.data[0].get("value")
        return None

    async def update_setting(self, key: str, value: str, value_type: str = "text") -> None:
        """Create or replace a setting."""
        self.supabase.table(APP_SETTINGS_TABLE).upsert({
            "key": key,
            "value": value,
            "type": value_type,
        }, on_conflict="key").execute()
        logger.info(f"Setting {key} updated")

    async def get_paywall_permissions(self) -> PaywallPermissions:
        """Effective paywall permissions; defaults when the store is unavailable."""
        try:
            raw = await self.get_setting(PAYWALL_PERMISSIONS_KEY)
        except Exception as e:
            logger.warning(f"Could not read {PAYWALL_PERMISSIONS_KEY}, using defaults: {e}")
            raw = None
        return parse_paywall_permissions(raw)

    async def save_paywall_permissions(self, permissions: PaywallPermissions) -> PaywallPermissions:
        await self.update_setting(PAYWALL_PERMISSIONS_KEY, safe_json_dumps(permissions.model_dump()))
        return permissions

    async def get_paywall_screen_config(self) -> PaywallScreenConfig:
        """Effective paywall screen copy; defaults when the store is unavailable."""
        try:
            raw = await self.get_setting(PAYWALL_SCREEN_CONFIG_KEY)
        except Exception as e:
            logger.warning(f"Could not read {PAYWALL_SCREEN_CONFIG_KEY}, using defaults: {e}")
            raw = None
        return parse_paywall_screen_config(raw)

    async def save_paywall_screen_config(self, config: PaywallScreenConfig) -> PaywallScreenConfig:
        await self.update_setting(
            PAYWALL_SCREEN_CONFIG_KEY,
            safe_json_dumps(config.model_dump(), ensure_ascii=False)
        )
        return config


# Global service instance
settings_service = SettingsService()

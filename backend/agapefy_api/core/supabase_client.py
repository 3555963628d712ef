"""
Supabase client configuration and initialization.
"""
from supabase import create_client, Client
from .config import settings


class SupabaseClient:
    """Supabase client wrapper for database operations."""

    def __init__(self):
        self._service_client: Client = None

    @property
    def service_client(self) -> Client:
        """Get the service role client (bypasses row level security)."""
        if not self._service_client:
            self._service_client = create_client(
                settings.supabase_url,
                settings.supabase_service_role_key
            )
        return self._service_client


# Global Supabase client instance
supabase_client = SupabaseClient()

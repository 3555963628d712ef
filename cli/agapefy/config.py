"""
Agapefy CLI Configuration

Handles environment variables for Supabase access.
Configuration is loaded from environment variables or a .env file.
"""
import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional, List

from dotenv import load_dotenv

# Load environment from ~/.agapefy/.env if present, else the current directory
env_file = Path.home() / ".agapefy" / ".env"
if env_file.exists():
    load_dotenv(env_file)
else:
    load_dotenv()


@dataclass
class SupabaseConfig:
    """Supabase configuration for database access."""
    url: str
    service_role_key: str

    @classmethod
    def from_env(cls) -> "SupabaseConfig":
        """Load Supabase config from environment variables."""
        return cls(
            url=os.environ.get("SUPABASE_URL", ""),
            service_role_key=os.environ.get("SUPABASE_SERVICE_ROLE_KEY", "")
        )


@dataclass
class Config:
    """Main CLI configuration."""
    supabase: SupabaseConfig
    subscription_lookup_limit: int = 10

    @classmethod
    def load(cls) -> "Config":
        """Load all configuration from environment."""
        return cls(
            supabase=SupabaseConfig.from_env(),
            subscription_lookup_limit=int(os.environ.get("SUBSCRIPTION_LOOKUP_LIMIT", "10")),
        )

    def validate(self) -> List[str]:
        """
        Validate configuration and return list of missing fields.
        """
        missing = []
        if not self.supabase.url:
            missing.append("SUPABASE_URL")
        if not self.supabase.service_role_key:
            missing.append("SUPABASE_SERVICE_ROLE_KEY")
        return missing


# Singleton config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.load()
    return _config


def get_supabase_client():
    """Create a Supabase client with service role key."""
    from supabase import create_client
    config = get_config()
    return create_client(config.supabase.url, config.supabase.service_role_key)

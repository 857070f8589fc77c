"""Application settings and configuration loader."""

import os
from pathlib import Path
from typing import Optional
from functools import lru_cache

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field


class SupabaseConfig(BaseModel):
    """Supabase configuration."""
    url: str = ""
    key: str = ""
    tracked_wallets_table: str = "tracked_wallets"


class DexScreenerConfig(BaseModel):
    """DexScreener price API configuration."""
    base_url: str = "https://api.dexscreener.com/latest/dex"
    chain_id: str = "solana"
    rate_limit: int = 300  # calls per minute
    timeout_seconds: float = 10.0


class RefresherConfig(BaseModel):
    """Open position refresher configuration."""
    interval_seconds: float = Field(default=300, gt=0)
    price_timeout_seconds: float = Field(default=10, gt=0)
    concurrency: int = Field(default=10, ge=1)


class Settings(BaseModel):
    """Application settings."""
    supabase: SupabaseConfig = Field(default_factory=SupabaseConfig)
    dexscreener: DexScreenerConfig = Field(default_factory=DexScreenerConfig)
    refresher: RefresherConfig = Field(default_factory=RefresherConfig)
    log_level: str = "INFO"
    config_path: Path = Field(default=Path("config.yaml"))

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Settings":
        """Load settings from environment and config file."""
        load_dotenv()

        config_path = config_path or Path("config.yaml")
        config_data = {}

        if config_path.exists():
            with open(config_path) as f:
                config_data = yaml.safe_load(f) or {}

        # Secrets come from the environment only
        supabase_data = dict(config_data.get("supabase", {}))
        supabase_data["url"] = os.getenv("SUPABASE_URL", "")
        supabase_data["key"] = os.getenv("SUPABASE_KEY", "")
        supabase_config = SupabaseConfig(**supabase_data)

        dexscreener_config = DexScreenerConfig(**config_data.get("dexscreener", {}))

        # Environment overrides the yaml values
        refresher_data = dict(config_data.get("refresher", {}))
        if os.getenv("REFRESH_INTERVAL_SECONDS"):
            refresher_data["interval_seconds"] = float(os.getenv("REFRESH_INTERVAL_SECONDS"))
        if os.getenv("PRICE_TIMEOUT_SECONDS"):
            refresher_data["price_timeout_seconds"] = float(os.getenv("PRICE_TIMEOUT_SECONDS"))
        if os.getenv("REFRESH_CONCURRENCY"):
            refresher_data["concurrency"] = int(os.getenv("REFRESH_CONCURRENCY"))
        refresher_config = RefresherConfig(**refresher_data)

        return cls(
            supabase=supabase_config,
            dexscreener=dexscreener_config,
            refresher=refresher_config,
            log_level=os.getenv("LOG_LEVEL", config_data.get("log_level", "INFO")),
            config_path=config_path,
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings.load()

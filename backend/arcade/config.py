"""Application configuration using Pydantic settings."""

import os
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Project root directory (backend/)
BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=os.path.join(BASE_DIR, ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Arcade Gate"
    app_version: str = "1.0.0"
    debug: bool = False

    # Database
    database_url: str = "sqlite+aiosqlite:///./arcade.db"

    # Shared secret the game vendor sends as a bearer token with score reports
    vendor_shared_secret: str = ""

    # CORS - comma-separated list of allowed origins
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000,http://127.0.0.1:5500"

    # Rate limiting
    rate_limit_submissions: int = 120  # score reports per minute per player

    # Leaderboard
    leaderboard_size: int = 10

    # Game sessions
    session_ttl_minutes: int = 60
    game_id: str = "penguin-hop"
    game_embed_base_url: str = (
        "https://coco-and-bridge.marketjs-cloud2.com/en/"
        "coco-and-bridge-penguin-hop/1756889184732/index.html"
    )

    # Chain (NFT ownership checks)
    chain_rpc_url: str = "https://api.testnet.abs.xyz"
    chain_id: int = 11124
    nft_contract_address: str = "0x70071362bCBc37C49cDCBC2112ad71215e2fd90D"
    rpc_timeout_seconds: float = 10.0

    @field_validator("vendor_shared_secret")
    @classmethod
    def validate_vendor_shared_secret(cls, v: str) -> str:
        """Generate a vendor secret for development if none is configured."""
        if not v:
            return secrets.token_hex(32)
        if len(v) < 16:
            raise ValueError("VENDOR_SHARED_SECRET must be at least 16 characters")
        return v

    @field_validator("leaderboard_size")
    @classmethod
    def validate_leaderboard_size(cls, v: int) -> int:
        if not 1 <= v <= 100:
            raise ValueError("LEADERBOARD_SIZE must be between 1 and 100")
        return v

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        if self.debug:
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

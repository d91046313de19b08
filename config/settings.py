"""Pydantic BaseSettings — order API endpoints, app data and logging."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration loaded from env / .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ── Application ─────────────────────────────────────────────
    APP_ENV: Literal["dev", "staging", "prod"] = "dev"
    APP_NAME: str = "gp-orders"
    LOG_LEVEL: str = "INFO"

    # ── App data ────────────────────────────────────────────────
    APP_CODE: str = "CowSwap"
    # Empty disables the environment block of the app-data document
    APP_DATA_ENVIRONMENT: str = ""

    # ── Order API (one base URL per supported chain) ────────────
    ORDER_API_BASE_URL_MAINNET: str = "https://api.cow.fi/mainnet/api/v1"
    ORDER_API_BASE_URL_RINKEBY: str = "https://api.cow.fi/rinkeby/api/v1"
    ORDER_API_BASE_URL_GOERLI: str = "https://api.cow.fi/goerli/api/v1"
    ORDER_API_BASE_URL_GNOSIS_CHAIN: str = "https://api.cow.fi/xdai/api/v1"
    ORDER_API_TIMEOUT_SECONDS: float = Field(default=15.0, gt=0)

    # ── Orders ──────────────────────────────────────────────────
    DEFAULT_ORDER_TTL_SECONDS: int = Field(default=1800, gt=0)

    # ── Wallet (CLI only, never commit real values) ─────────────
    WALLET_RPC_URL: str = ""
    PRIVATE_KEY: str = ""


settings = Settings()

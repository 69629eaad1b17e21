"""Configuration management using Pydantic Settings"""

from decimal import Decimal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Service
    service_name: str = "bastion-gateway"
    log_level: str = "INFO"

    # Account
    initial_wallet_balance: Decimal = Decimal("1000")
    transaction_history_limit: int = Field(10, gt=0)

    # Simulated processing delay before each operation is applied
    simulate_latency: bool = True
    latency_scale: float = 1.0

    # External catalog service (unset = built-in sample catalog)
    catalog_api_base: str | None = None

    # HTTP Client
    http_timeout_seconds: float = 5.0


settings = Settings()

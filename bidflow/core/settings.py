# bidflow/core/settings.py
import os
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # === General ===
    app_env: str = "local"  # local | development | production
    PUBLIC_BASE_URL: str = "http://localhost:8080"

    # === Database ===
    database_url: str = "sqlite:///./bidflow.db"
    database_echo: bool = False

    # === Money / locale ===
    default_currency: str = Field("BRL", description="ISO currency for new quotes")
    currency_symbol: str = "R$"
    decimal_sep: str = ","
    thousand_sep: str = "."
    date_format: str = "%d/%m/%Y"

    # === Proposals ===
    proposal_validity_days: int = Field(14, ge=1, description="Share link / proposal validity window")
    default_notes: str = (
        "Valores validos conforme a proposta. "
        "Servicos adicionais podem ser orcados separadamente."
    )

    # Company fallbacks when no company_settings row exists
    company_name: str = "bidFlow"
    company_email: Optional[str] = None
    company_phone: Optional[str] = None
    company_address: Optional[str] = None

    # === Versioning ===
    version_create_attempts: int = Field(5, ge=1)
    version_retry_base_seconds: float = 0.05
    version_retry_cap_seconds: float = 1.0

    # === Logging ===
    log_level: str = "INFO"
    log_json: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Singleton Settings instance with simple environment overrides."""
    s = Settings()

    env = os.getenv("ENVIRONMENT", s.app_env).lower()
    if env == "production":
        s.log_level = "WARNING"
    elif env == "development":
        s.log_level = "DEBUG"
        s.log_json = False

    return s


settings = get_settings()

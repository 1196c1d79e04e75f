"""
Application Configuration — Environment & Settings
Centralizes all config from .env with Pydantic Settings for validation.
"""
from decimal import Decimal
from pathlib import Path
from functools import lru_cache
from pydantic_settings import BaseSettings

# Resolve paths relative to backend/ directory
BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # --- Core ---
    APP_NAME: str = "MotoPay Vehicle Licensing API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # --- Database ---
    DATABASE_URL: str = f"sqlite:///{BASE_DIR / 'data' / 'motopay.db'}"

    # --- Payment Gateway (Paystack) ---
    PAYSTACK_SECRET_KEY: str = ""
    PAYSTACK_BASE_URL: str = "https://api.paystack.co"
    WEBHOOK_SECRET: str = ""            # Falls back to PAYSTACK_SECRET_KEY
    GATEWAY_TIMEOUT_SECONDS: float = 15.0
    FRONTEND_URL: str = "http://localhost:3000"

    # --- Fees & Commission (percent) ---
    FEE_RATE_PERCENT: Decimal = Decimal("1.5")
    COMMISSION_RATE_PERCENT: Decimal = Decimal("2.5")
    REFERENCE_MAX_ATTEMPTS: int = 5

    # --- Renewal Reminders ---
    EXPIRY_WARNING_DAYS: int = 30
    REMINDER_DAYS: list[int] = [30, 14, 7, 1]

    # --- Security ---
    CORS_ORIGINS: list[str] = ["*"]
    PAYMENT_RATE_LIMIT_REQUESTS: int = 10
    PAYMENT_RATE_LIMIT_WINDOW: int = 60

    # --- Logging ---
    LOG_DIR: str = str(BASE_DIR / "logs")
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = str(BASE_DIR / ".env")
        env_file_encoding = "utf-8"
        case_sensitive = True

    @property
    def webhook_secret(self) -> str:
        return self.WEBHOOK_SECRET or self.PAYSTACK_SECRET_KEY


@lru_cache()
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()

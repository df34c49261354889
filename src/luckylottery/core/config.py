"""Application configuration loaded from environment variables."""

from __future__ import annotations

from decimal import Decimal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Lucky Lottery application settings."""

    # App
    app_env: str = "development"
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_debug: bool = True
    log_level: str = "INFO"
    log_format: str = "text"  # "text" or "json"

    # Oracle Database
    oracle_dsn: str = "localhost:1521/FREEPDB1"
    oracle_user: str = "luckylottery"
    oracle_password: str = "LuckyLottery_Dev_2026!"
    oracle_pool_min: int = 2
    oracle_pool_max: int = 10
    oracle_pool_increment: int = 1

    # JWT (mock login only, no refresh sessions)
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 60
    jwt_secret_key: str = "5f1d0c2b7a9e4e38b6d2f0a1c3e5b7d9"

    # CORS
    cors_origins: str = "*"  # Comma-separated origins; "*" for dev only

    # Rate Limiting (requests per minute)
    rate_limit_anonymous: int = 30
    rate_limit_user: int = 120
    rate_limit_admin: int = 600

    # Lottery
    ticket_price: Decimal = Decimal("10.00")
    draw_hour_utc: int = 12  # Tickets bought today are bound to tomorrow's draw at this hour
    upi_payee: str = "9933308636@ybl"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def is_testing(self) -> bool:
        return self.app_env == "testing"

    @property
    def cors_origin_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def upi_payment_uri(self) -> str:
        """UPI deep link shown to depositors (rendered as a QR code by the UI)."""
        return f"upi://pay?pa={self.upi_payee}&pn=LuckyLottery"


def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()

from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "local"
    APP_NAME: str = "Guardline Booking API"
    # Comma-separated origins for CORS (e.g. https://guardline.in,https://app.guardline.in). If empty, uses localhost defaults.
    CORS_ORIGINS: str = ""
    LOG_LEVEL: str = "INFO"

    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    DATABASE_URL: str

    @field_validator("DATABASE_URL", mode="after")
    @classmethod
    def normalize_database_url(cls, v: str) -> str:
        """Render and others give postgres://; SQLAlchemy expects postgresql+psycopg2://."""
        if v and v.startswith("postgres://"):
            return "postgresql+psycopg2://" + v[11:]
        return v
    REDIS_URL: str = "redis://localhost:6379/0"

    # Booking rules
    BOOKING_TIMEZONE: str = "Asia/Kolkata"  # full-day windows are local wall-clock 09:00-21:00
    FULL_DAY_START_HOUR: int = 9
    FULL_DAY_END_HOUR: int = 21
    CURRENCY: str = "INR"
    AMOUNT_TOLERANCE: Decimal = Decimal("0.01")
    MAX_BOOKING_HOURS: int = 720  # longest hourly booking

    # Razorpay (orders API + checkout signature)
    RAZORPAY_API_BASE: str = "https://api.razorpay.com"
    RAZORPAY_KEY_ID: str = ""
    RAZORPAY_KEY_SECRET: str = ""
    RAZORPAY_TIMEOUT: int = 25
    RAZORPAY_SANDBOX: bool = False  # If True, skip the real orders API and issue local order ids (dev/tests)


settings = Settings()

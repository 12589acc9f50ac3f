from functools import lru_cache
from typing import Any, List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_CORS = ["http://localhost:3000", "http://localhost:5173"]


def _parse_cors_origins(v: Any) -> List[str]:
    try:
        if v is None or v == "":
            return _DEFAULT_CORS.copy()
        if isinstance(v, list):
            return [x for x in v if isinstance(x, str) and x.strip()]
        s = str(v).strip()
        if not s:
            return _DEFAULT_CORS.copy()
        if s.startswith("["):
            import json
            out = json.loads(s)
            return [x for x in out if isinstance(x, str) and x.strip()] or _DEFAULT_CORS.copy()
        return [x.strip() for x in s.split(",") if x.strip()] or _DEFAULT_CORS.copy()
    except ValueError:
        return _DEFAULT_CORS.copy()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # App
    env: str = Field(default="development", description="ENV")
    debug: bool = Field(default=False, description="DEBUG")

    # MongoDB
    mongodb_uri: str = Field(default="mongodb://localhost:27017", alias="MONGODB_URI")
    mongodb_db_name: str = Field(default="bg-removal", alias="MONGODB_DB_NAME")

    # Clerk (Svix-signed webhooks)
    clerk_webhook_secret: str = Field(default="", alias="CLERK_WEBHOOK_SECRET")
    webhook_tolerance_seconds: int = Field(default=5 * 60, alias="WEBHOOK_TOLERANCE_SECONDS")

    # Clipdrop
    clipdrop_api_key: str = Field(default="", alias="CLIPDROP_API")
    clipdrop_api_url: str = Field(
        default="https://clipdrop-api.co/remove-background/v1",
        alias="CLIPDROP_API_URL",
    )
    removal_timeout_seconds: float = Field(default=60.0, alias="REMOVAL_TIMEOUT_SECONDS")

    # Razorpay
    razorpay_key_id: str = Field(default="", alias="RAZORPAY_KEY_ID")
    razorpay_key_secret: str = Field(default="", alias="RAZORPAY_KEY_SECRET")

    # Stripe
    stripe_secret_key: str = Field(default="", alias="STRIPE_SECRET_KEY")

    currency: str = Field(default="INR", alias="CURRENCY")

    # Sentry
    sentry_dsn: str | None = Field(default=None, alias="SENTRY_DSN")

    # CORS: env as string, exposed as list
    cors_origins_raw: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        alias="CORS_ORIGINS",
        description="Comma-separated or JSON list",
    )

    @property
    def cors_origins(self) -> List[str]:
        return _parse_cors_origins(getattr(self, "cors_origins_raw", None))

    # Credits granted to a freshly synced user
    signup_credits: int = Field(default=5, alias="SIGNUP_CREDITS")


@lru_cache
def get_settings() -> Settings:
    return Settings()

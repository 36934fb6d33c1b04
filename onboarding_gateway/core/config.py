import warnings

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    APP_ENV: str = "development"
    APP_VERSION: str = "1.0.0"
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # Sentry error monitoring
    SENTRY_DSN: str | None = None
    SENTRY_ENVIRONMENT: str = "development"

    # Outbound HTTP
    HTTP_TIMEOUT_SECONDS: float = 30.0

    # Stripe Connect (the public key only signs token requests)
    STRIPE_PUBLIC_KEY: str = ""
    STRIPE_SECRET_KEY: str = ""
    STRIPE_API_BASE_URL: str = "https://api.stripe.com"
    STRIPE_FILES_BASE_URL: str = "https://files.stripe.com"
    # Some form revisions passed the organisation country on account update.
    STRIPE_UPDATE_ACCOUNT_SEND_COUNTRY: bool = False

    # Bubble.io backend
    BUBBLE_BASE_URL: str = "https://guestwhat.co"
    BUBBLE_TEST_KEY: str = ""
    BUBBLE_LIVE_KEY: str = ""

    @model_validator(mode="after")
    def _warn_missing_production_keys(self) -> "Settings":
        if self.APP_ENV == "production":
            missing = [
                name
                for name in ("STRIPE_PUBLIC_KEY", "STRIPE_SECRET_KEY", "BUBBLE_LIVE_KEY")
                if not getattr(self, name)
            ]
            if missing:
                warnings.warn(
                    f"Missing credentials in production: {', '.join(missing)}",
                    stacklevel=2,
                )
        return self


settings = Settings()

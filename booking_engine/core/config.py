from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str | None = None

    BOOKING_MIN_LEAD_MINUTES: int = 0
    BOOKING_MAX_ADVANCE_MONTHS: int = 6
    BOOKING_REQUIRE_GRID_ALIGNMENT: bool = False

    SITE_URL: str = "http://localhost:3000"

    SMTP_HOST: str | None = None
    SMTP_PORT: int = 587
    SMTP_USERNAME: str | None = None
    SMTP_PASSWORD: str | None = None
    SMTP_FROM_EMAIL: str | None = None
    SMTP_USE_TLS: bool = True

    NOTIFY_WEBHOOK_URL: str | None = None


settings = Settings()

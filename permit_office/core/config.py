from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field(..., alias="DATABASE_URL")
    database_echo: bool = Field(False, alias="DATABASE_ECHO")

    jwt_secret_key: str = Field(..., alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(60 * 24, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    admin_username: Optional[str] = Field(None, alias="ADMIN_USERNAME")
    admin_password: Optional[str] = Field(None, alias="ADMIN_PASSWORD")
    admin_name: str = Field("Administrator", alias="ADMIN_NAME")

    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # Outbound notifications; a missing key disables the channel
    sendgrid_api_key: Optional[str] = Field(None, alias="SENDGRID_API_KEY")
    email_from: str = Field("permits@parkspass.org", alias="EMAIL_FROM")
    payment_portal_url: str = Field("https://permit-viewer.replit.app/invoices", alias="PAYMENT_PORTAL_URL")
    twilio_account_sid: Optional[str] = Field(None, alias="TWILIO_ACCOUNT_SID")
    twilio_auth_token: Optional[str] = Field(None, alias="TWILIO_AUTH_TOKEN")
    twilio_from_number: Optional[str] = Field(None, alias="TWILIO_FROM_NUMBER")
    notification_timeout_seconds: float = Field(10.0, alias="NOTIFICATION_TIMEOUT_SECONDS")

    invoice_due_days: int = Field(30, alias="INVOICE_DUE_DAYS")

    reaper_enabled: bool = Field(True, alias="REAPER_ENABLED")
    reaper_interval_seconds: int = Field(3600, alias="REAPER_INTERVAL_SECONDS")
    stale_application_hours: int = Field(24, alias="STALE_APPLICATION_HOURS")

    admission_queue_enabled: bool = Field(True, alias="ADMISSION_QUEUE_ENABLED")
    admission_queue_capacity: int = Field(100, alias="ADMISSION_QUEUE_CAPACITY")
    admission_queue_timeout_seconds: float = Field(30.0, alias="ADMISSION_QUEUE_TIMEOUT_SECONDS")
    admission_queue_tick_seconds: float = Field(0.05, alias="ADMISSION_QUEUE_TICK_SECONDS")
    admission_retry_after_seconds: int = Field(5, alias="ADMISSION_RETRY_AFTER_SECONDS")
    warmup_seconds: float = Field(10.0, alias="WARMUP_SECONDS")

    # Legacy behaviour of the approved-with-invoices view: users without park
    # assignments see every record. Off unless explicitly enabled.
    dashboard_unassigned_fallback: bool = Field(False, alias="DASHBOARD_UNASSIGNED_FALLBACK")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()

"""WhatsApp OTP service — configuration loaded from environment."""

from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, loaded from .env or environment variables."""

    # ── OTP store ─────────────────────────────────────────
    otp_storage_path: Path | None = Path("otp_storage.json")
    otp_capacity: int = 10

    # ── OTP defaults ──────────────────────────────────────
    otp_default_length: int = 6
    otp_max_length: int = 10
    otp_default_ttl_minutes: int = 5
    default_template: str = "default"
    default_company: str = "Your Company"
    otp_templates_path: Path | None = None

    # ── WhatsApp Business API ─────────────────────────────
    whatsapp_api_token: str = ""
    whatsapp_phone_number_id: str = ""
    whatsapp_api_base_url: str = "https://graph.facebook.com/v21.0"
    whatsapp_timeout_seconds: float = 10.0

    # ── App ───────────────────────────────────────────────
    admin_token: str = ""
    app_name: str = "WhatsApp OTP"
    debug: bool = False

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Singleton settings instance
settings = Settings()

# /app/core/config.py

"""
Central runtime configuration.

Every tunable of the service is read from the environment exactly once, at
import time, after `.env` has been loaded. Modules import the shared `settings`
instance instead of calling `os.getenv` themselves.
"""

import os
from dataclasses import dataclass
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    # --- Application ---
    app_name: str = os.getenv("APP_NAME", "Library Management API")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # --- Database ---
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./library.db")

    # --- Security ---
    secret_key: str = os.getenv("SECRET_KEY", "change-me-in-production")
    jwt_algorithm: str = os.getenv("JWT_ALGORITHM", "HS256")
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "10080"))

    # --- Gemini ---
    google_api_key: Optional[str] = os.getenv("GOOGLE_API_KEY") or os.getenv("GEMINI_API_KEY")
    gemini_model: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

    # --- Circulation rules ---
    loan_period_days: int = int(os.getenv("LOAN_PERIOD_DAYS", "14"))
    extension_days: int = int(os.getenv("EXTENSION_DAYS", "7"))
    due_soon_days: int = int(os.getenv("DUE_SOON_DAYS", "3"))
    max_upload_size: int = int(os.getenv("MAX_UPLOAD_SIZE", str(5 * 1024 * 1024)))

    # --- Password reset ---
    reset_token_expiry_minutes: int = int(os.getenv("RESET_TOKEN_EXPIRY_MINUTES", "10"))
    otp_expiry_minutes: int = int(os.getenv("OTP_EXPIRY_MINUTES", "10"))
    otp_max_attempts: int = int(os.getenv("OTP_MAX_ATTEMPTS", "5"))

    # --- Background maintenance ---
    maintenance_interval_seconds: int = int(os.getenv("MAINTENANCE_INTERVAL_SECONDS", "300"))

    # --- E-mail ---
    smtp_host: str = os.getenv("SMTP_HOST", "")
    smtp_port: int = int(os.getenv("SMTP_PORT", "587"))
    smtp_username: str = os.getenv("SMTP_USERNAME", "")
    smtp_password: str = os.getenv("SMTP_PASSWORD", "")
    smtp_use_tls: bool = _as_bool(os.getenv("SMTP_USE_TLS", "true"))
    from_email: str = os.getenv("FROM_EMAIL", "noreply@library.local")
    from_name: str = os.getenv("FROM_NAME", "Library Management System")

    # --- Default accounts ---
    seed_default_users: bool = _as_bool(os.getenv("SEED_DEFAULT_USERS", "true"))
    default_admin_username: str = os.getenv("DEFAULT_ADMIN_USERNAME", "admin123")
    default_admin_password: str = os.getenv("DEFAULT_ADMIN_PASSWORD", "admin@123")
    default_admin_email: str = os.getenv("DEFAULT_ADMIN_EMAIL", "admin@library.com")
    default_librarian_username: str = os.getenv("DEFAULT_LIBRARIAN_USERNAME", "Lib123")
    default_librarian_password: str = os.getenv("DEFAULT_LIBRARIAN_PASSWORD", "Libpass123")
    default_librarian_email: str = os.getenv("DEFAULT_LIBRARIAN_EMAIL", "librarian@library.com")

    @property
    def email_configured(self) -> bool:
        return bool(self.smtp_host and self.from_email)

    @property
    def ai_configured(self) -> bool:
        return bool(self.google_api_key)


settings = Settings()

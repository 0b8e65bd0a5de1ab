"""
Configuration settings for the Rental Availability & Pricing Engine.
"""
import os
from dataclasses import dataclass
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes"}


@dataclass
class SupabaseConfig:
    """Supabase configuration settings."""
    url: str = os.getenv("SUPABASE_URL", "")
    anon_key: str = os.getenv("SUPABASE_ANON_KEY", "")
    service_role_key: str = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")

    def get_auth_key(self) -> str:
        """Prefer service role key for server-side operations when available."""
        return self.service_role_key or self.anon_key


@dataclass
class AppConfig:
    """Application configuration settings."""
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    owner_email: str = os.getenv("OWNER_EMAIL", "owner@example.com")

    # Data storage table names
    assets_collection: str = os.getenv("ASSETS_TABLE", "assets")
    reservations_collection: str = os.getenv("RESERVATIONS_TABLE", "bookings")
    customers_collection: str = os.getenv("CUSTOMERS_TABLE", "customers")


@dataclass
class SyncConfig:
    """External calendar feed settings."""
    fetch_timeout_seconds: float = float(os.getenv("ICAL_FETCH_TIMEOUT_SECONDS", "20"))
    user_agent: str = os.getenv("ICAL_USER_AGENT", "rental-engine-ics/1.0")
    allowed_url_pattern: str = os.getenv(
        "ICAL_ALLOWED_URL_PATTERN",
        r"^https://(www\.)?airbnb\.[a-z.]+/calendar/ical/.+\.ics",
    )
    skip_conflicting_events: bool = _env_flag("ICAL_SKIP_CONFLICTING_EVENTS", "true")
    preview_limit: int = int(os.getenv("ICAL_PREVIEW_LIMIT", "3"))
    default_summary: str = os.getenv("ICAL_DEFAULT_SUMMARY", "External reservation")


@dataclass
class NotificationConfig:
    """Outbound email / SMS credentials."""
    smtp_server: str = os.getenv("SMTP_SERVER", "smtp.gmail.com")
    smtp_port: int = int(os.getenv("SMTP_PORT", "587"))
    smtp_user: str = os.getenv("SMTP_USER", "")
    smtp_password: str = os.getenv("SMTP_PASSWORD", "")
    twilio_sid: str = os.getenv("TWILIO_SID", "")
    twilio_auth_token: str = os.getenv("TWILIO_AUTH_TOKEN", "")
    twilio_phone_number: str = os.getenv("TWILIO_PHONE_NUMBER", "")


supabase_config = SupabaseConfig()
app_config = AppConfig()
sync_config = SyncConfig()
notification_config = NotificationConfig()

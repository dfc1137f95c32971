# tracker/core/config.py

import os
from dataclasses import dataclass

from dotenv import load_dotenv


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _flag_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    """
    Process configuration, read once at startup.
    Every component receives what it needs from here instead of calling os.getenv on import.
    """
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: str = ""
    supabase_jwt_secret: str = ""
    supabase_aud: str = "authenticated"
    allow_dev_header: bool = False

    # Cron sweep
    cron_secret: str = ""
    reminder_window_ms: int = 60_000
    reminder_batch_limit: int = 500
    reminder_claim_rpc: str = ""          # empty = plain read, no claim step
    reminder_claim_lease_seconds: int = 300
    reminder_recipients_column: bool = True
    site_url: str = ""

    # Email (Resend)
    resend_api_key: str = ""
    email_from: str = ""
    email_timeout_seconds: int = 20

    poll_seconds: int = 60
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "Settings":
        if dotenv:
            load_dotenv()
        return cls(
            supabase_url=(os.getenv("SUPABASE_URL") or "").rstrip("/"),
            supabase_key=os.getenv("SUPABASE_KEY", ""),
            supabase_service_role_key=os.getenv("SUPABASE_SERVICE_ROLE_KEY", ""),
            supabase_jwt_secret=os.getenv("SUPABASE_JWT_SECRET", ""),
            supabase_aud=os.getenv("SUPABASE_AUD", "authenticated"),
            allow_dev_header=os.getenv("ALLOW_DEV_HEADER", "0") == "1",
            cron_secret=os.getenv("CRON_SECRET", ""),
            reminder_window_ms=_int_env("REMINDER_WINDOW_MS", 60_000),
            reminder_batch_limit=_int_env("REMINDER_BATCH_LIMIT", 500),
            reminder_claim_rpc=os.getenv("REMINDER_CLAIM_RPC", "").strip(),
            reminder_claim_lease_seconds=_int_env("REMINDER_CLAIM_LEASE_SECONDS", 300),
            reminder_recipients_column=_flag_env("REMINDER_RECIPIENTS_COLUMN", True),
            site_url=(os.getenv("NEXT_PUBLIC_SITE_URL") or os.getenv("SITE_URL") or "").rstrip("/"),
            resend_api_key=os.getenv("RESEND_API_KEY", ""),
            email_from=os.getenv("EMAIL_FROM", ""),
            email_timeout_seconds=_int_env("EMAIL_TIMEOUT_SECONDS", 20),
            poll_seconds=_int_env("DISPATCHER_POLL_SECONDS", 60),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    @property
    def service_key(self) -> str:
        # Without a service role key the anon key is reused (RLS will apply)
        return self.supabase_service_role_key or self.supabase_key

    def require_supabase(self) -> None:
        if not self.supabase_url or not self.service_key:
            missing = [
                name for name, value in (
                    ("SUPABASE_URL", self.supabase_url),
                    ("SUPABASE_KEY/SUPABASE_SERVICE_ROLE_KEY", self.service_key),
                ) if not value
            ]
            raise RuntimeError(f"Missing {', '.join(missing)} in environment/.env")


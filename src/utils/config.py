# runtime configuration, read once at startup and passed down explicitly
import os

from dotenv import load_dotenv


def str_to_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    """
    Connection and tuning knobs for the storefront.

    Values come from the environment. Outside of production a local .env file
    is loaded first so developers do not have to export the backend keys.
    """

    def __init__(self) -> None:
        self.ENV = os.getenv("STOREFRONT_ENV", "dev").strip().lower()  # dev | prod
        if self.ENV != "prod":
            load_dotenv()

        # ----------------------------
        # Backend
        # ----------------------------
        self.SUPABASE_URL = os.getenv("SUPABASE_URL", "").strip()
        self.SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY", "").strip()
        self.CLIENT_NAME = os.getenv("STOREFRONT_CLIENT_NAME", "jd-group-storefront")

        # ----------------------------
        # Network behaviour
        # ----------------------------
        self.REQUEST_TIMEOUT = float(os.getenv("STOREFRONT_REQUEST_TIMEOUT", "10"))
        self.HEALTH_CHECK_TIMEOUT = float(
            os.getenv("STOREFRONT_HEALTH_CHECK_TIMEOUT", "5")
        )
        self.MAX_RETRIES = int(os.getenv("STOREFRONT_MAX_RETRIES", "3"))
        self.RETRY_BASE_DELAY = float(os.getenv("STOREFRONT_RETRY_BASE_DELAY", "1.0"))

        # ----------------------------
        # Auth
        # ----------------------------
        self.SESSION_DB_PATH = os.getenv("STOREFRONT_SESSION_DB", "data/session.sqlite")
        self.OAUTH_REDIRECT_URL = os.getenv(
            "STOREFRONT_OAUTH_REDIRECT", "http://localhost:3000/auth/callback"
        )

        # ----------------------------
        # Logging
        # ----------------------------
        self.DEBUG = str_to_bool(os.getenv("DEBUG"))

    def validate(self) -> "Settings":
        if not self.SUPABASE_URL or not self.SUPABASE_ANON_KEY:
            raise RuntimeError("Missing Supabase environment variables")
        if self.MAX_RETRIES < 0:
            raise RuntimeError("STOREFRONT_MAX_RETRIES must not be negative")
        return self

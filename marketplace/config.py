import os
from pathlib import Path
from dotenv import load_dotenv

# Force-load .env (Windows-safe, reload-safe)
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH)

DEFAULT_CURRENCY = "usd"


def get_database_url() -> str:
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        raise RuntimeError("DATABASE_URL is not set. Check your .env file.")
    return database_url


def get_stripe_secret_key():
    return os.getenv("STRIPE_SECRET_KEY") or os.getenv("NEXT_PUBLIC_STRIPE_SECRET_KEY")


def get_payment_currency() -> str:
    return os.getenv("PAYMENT_CURRENCY", DEFAULT_CURRENCY).lower()


def get_supabase_url() -> str:
    return os.getenv("SUPABASE_URL", "").rstrip("/")


def get_supabase_anon_key() -> str:
    return os.getenv("SUPABASE_ANON_KEY", "")


def get_jwt_secret():
    return os.getenv("SUPABASE_JWT_SECRET")


def get_jwt_audience() -> str:
    return os.getenv("SUPABASE_JWT_AUDIENCE", "authenticated")


def get_auth_http_timeout() -> float:
    return float(os.getenv("AUTH_HTTP_TIMEOUT", "10"))


def get_log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO").upper()

import os
from urllib.parse import quote_plus
from dotenv import load_dotenv

load_dotenv()


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _database_url() -> str:
    url = os.getenv("DATABASE_URL")
    if url:
        return url

    # Same DB_* variables the alembic env reads
    user = os.getenv("DB_USER", "postgres")
    password = quote_plus(os.getenv("DB_PASSWORD", "postgres"))
    host = os.getenv("DB_HOST", "localhost")
    port = os.getenv("DB_PORT", "5432")
    name = os.getenv("DB_NAME", "engagement")
    return f"postgresql://{user}:{password}@{host}:{port}/{name}"


class Settings:
    DATABASE_URL = _database_url()

    # "sql" or "memory". Chosen once at startup by build_gateway().
    STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "sql")

    # ANALYSIS WINDOWS
    LOOKBACK_DAYS = int(os.getenv("LOOKBACK_DAYS", "90"))
    MIN_POSTS_FOR_RECOMMENDATIONS = int(os.getenv("MIN_POSTS_FOR_RECOMMENDATIONS", "10"))
    DASHBOARD_WINDOW_DAYS = int(os.getenv("DASHBOARD_WINDOW_DAYS", "30"))

    # SCHEDULER
    SCHEDULER_ENABLED = _as_bool(os.getenv("SCHEDULER_ENABLED", "true"))
    RECOMMENDATION_INTERVAL_HOURS = int(os.getenv("RECOMMENDATION_INTERVAL_HOURS", "24"))

    # Bearer secret for the external batch trigger
    CRON_SECRET = os.getenv("CRON_SECRET")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

settings = Settings()

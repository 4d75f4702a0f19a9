"""
Application configuration loaded from environment variables.
"""
import os
from typing import List

from dotenv import load_dotenv

load_dotenv()


def _build_database_url() -> str:
    """Compose a PostgreSQL URL from the DB_* variables when DATABASE_URL is unset."""
    host = os.getenv("DB_HOST", "localhost")
    port = os.getenv("DB_PORT", "5432")
    user = os.getenv("DB_USER", "postgres")
    password = os.getenv("DB_PASSWORD", "password")
    name = os.getenv("DB_NAME", "postgres")
    return f"postgresql+psycopg2://{user}:{password}@{host}:{port}/{name}"


def _split_cities(value: str) -> List[str]:
    return [c.strip().lower() for c in value.split(",") if c.strip()]


class Settings:
    """Application settings."""

    # Application
    APP_NAME: str = "Now Screening"
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8080"))

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL") or _build_database_url()

    # Logging settings
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_FILE: str = os.getenv("LOG_FILE", "logs/app.log")
    LOG_MAX_SIZE: int = int(os.getenv("LOG_MAX_SIZE", str(5 * 1024 * 1024)))  # 5MB default
    LOG_BACKUP_COUNT: int = int(os.getenv("LOG_BACKUP_COUNT", "3"))

    # Cache settings
    FRESHNESS_WINDOW_HOURS: float = float(os.getenv("FRESHNESS_WINDOW_HOURS", "24"))
    DEDUPLICATE_REFRESH: bool = os.getenv("DEDUPLICATE_REFRESH", "false").lower() == "true"

    # Extractor settings
    EXTRACTION_TIMEOUT: float = float(os.getenv("EXTRACTION_TIMEOUT", "60"))
    SETTLE_DELAY: float = float(os.getenv("SETTLE_DELAY", "5"))
    HEADLESS: bool = os.getenv("HEADLESS", "true").lower() != "false"
    USER_AGENT: str = os.getenv(
        "USER_AGENT",
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36",
    )
    LISTINGS_URL_TEMPLATE: str = os.getenv(
        "LISTINGS_URL_TEMPLATE",
        "https://in.bookmyshow.com/explore/home/{city}",
    )

    # Request / warm-up settings
    DEFAULT_CITY: str = os.getenv("DEFAULT_CITY", "cuttack").strip().lower()
    WARMUP_CITIES: List[str] = _split_cities(os.getenv("WARMUP_CITIES", "cuttack,bhubaneswar"))
    WARMUP_ON_STARTUP: bool = os.getenv("WARMUP_ON_STARTUP", "true").lower() == "true"


settings = Settings()

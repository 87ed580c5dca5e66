import os
import warnings
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)


def positive_int_setting(name: str, default: int) -> int:
    """Read a positive integer from the environment; zero or negative values fall back to ``default``"""
    value = int(os.getenv(name, str(default)))
    if value < 1:
        warnings.warn(f"{name}={value} must be positive, using {default}", RuntimeWarning, stacklevel=2)
        return default
    return value


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./wedding_transport.db")

# Database pool settings (ignored for SQLite)
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "20"))
DB_POOL_TIMEOUT = int(os.getenv("DB_POOL_TIMEOUT", "30"))
DB_POOL_RECYCLE = int(os.getenv("DB_POOL_RECYCLE", "300"))
DB_LOG_SLOW_QUERIES = os.getenv("DB_LOG_SLOW_QUERIES", "true").lower() == "true"
DB_SLOW_QUERY_THRESHOLD = float(os.getenv("DB_SLOW_QUERY_THRESHOLD", "1.0"))

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

# Transport generation
# Used when an event has no arrival buffer configured or it cannot be parsed
DEFAULT_ARRIVAL_BUFFER_MINUTES = int(os.getenv("DEFAULT_ARRIVAL_BUFFER_MINUTES", "30"))
PICKUP_SLOT_MINUTES = positive_int_setting("PICKUP_SLOT_MINUTES", 30)
DEFAULT_DROPOFF_LOCATION = os.getenv("DEFAULT_DROPOFF_LOCATION", "Hotel")

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# CORS
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "http://localhost:5173,http://localhost:3000",
).split(",")

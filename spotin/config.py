import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./spotin.db")

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "720"))  # one 12h shift
CLIENT_TOKEN_EXPIRE_MINUTES = int(os.getenv("CLIENT_TOKEN_EXPIRE_MINUTES", "10080"))  # 7 days

# Business settings
CURRENCY = os.getenv("CURRENCY", "EGP")
DAY_USE_TICKET_HOURS = int(os.getenv("DAY_USE_TICKET_HOURS", "24"))
# Check-ins open longer than this are closed by the nightly automation
STALE_SESSION_HOURS = int(os.getenv("STALE_SESSION_HOURS", "16"))
# Product categories a free-drink ticket can be redeemed against
DRINK_CATEGORIES = [
    c.strip() for c in os.getenv("DRINK_CATEGORIES", "beverage,hot_drinks,cold_drinks").split(",")
]

# Frontend base URL for links in emails
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "Spotin <noreply@spotin.space>")

# Redis (rate limiting, cache, worker). Unset means in-memory only.
REDIS_URL = os.getenv("REDIS_URL")

# Login throttling
LOGIN_RATE_LIMIT = int(os.getenv("LOGIN_RATE_LIMIT", "10"))
LOGIN_RATE_WINDOW_SECONDS = int(os.getenv("LOGIN_RATE_WINDOW_SECONDS", "300"))
SCAN_RATE_LIMIT = int(os.getenv("SCAN_RATE_LIMIT", "120"))

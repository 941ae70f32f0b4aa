import os
import re
from decimal import Decimal

from dotenv import load_dotenv

# Load .env from the project root
load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./villa_booking.db")
ENV = os.getenv("ENV", "dev")
ENV_NORMALIZED = ENV.lower()
IS_DEV = ENV_NORMALIZED in {"dev", "development", "local"}
IS_STAGE = ENV_NORMALIZED in {"stage", "staging"}
IS_PROD = ENV_NORMALIZED in {"prod", "production"}
PUBLIC_BASE_DOMAIN = os.getenv("PUBLIC_BASE_DOMAIN", "luxestaycations.in").strip().lower()

ADMIN_API_TOKEN = os.getenv("ADMIN_API_TOKEN", "").strip()

# Pricing
SERVICE_FEE_RATE = Decimal(os.getenv("SERVICE_FEE_RATE", "0.10"))
DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "INR").strip().upper() or "INR"

# Loyalty: 1 point per LOYALTY_AMOUNT_PER_POINT spent, JEWELS_PER_POINT jewels per point
LOYALTY_AMOUNT_PER_POINT = Decimal(os.getenv("LOYALTY_AMOUNT_PER_POINT", "100"))
JEWELS_PER_POINT = int(os.getenv("JEWELS_PER_POINT", "1"))
LOYALTY_DEFAULT_TIER = os.getenv("LOYALTY_DEFAULT_TIER", "bronze").strip().lower() or "bronze"

# CORS
_cors_env = os.getenv("CORS_ORIGINS", "")
CORS_ORIGINS = [origin.strip() for origin in _cors_env.split(",") if origin.strip() and origin.strip() != "*"]

if not CORS_ORIGINS and IS_DEV:
    CORS_ORIGINS = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

_cors_origin_regex_env = os.getenv("CORS_ALLOW_ORIGIN_REGEX", "").strip()
if _cors_origin_regex_env:
    CORS_ALLOW_ORIGIN_REGEX = _cors_origin_regex_env
elif not IS_DEV and PUBLIC_BASE_DOMAIN:
    CORS_ALLOW_ORIGIN_REGEX = rf"^https://([a-z0-9-]+\.)?{re.escape(PUBLIC_BASE_DOMAIN)}$"
else:
    CORS_ALLOW_ORIGIN_REGEX = None

import logging
import os

from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./aurora.db")

# ── Checkout client ──────────────────────────────────────────────
API_URL             = os.getenv("AURORA_API_URL", "http://localhost:5000/api")
API_TIMEOUT_SECONDS = float(os.getenv("AURORA_API_TIMEOUT", "15"))

# ── Stripe ───────────────────────────────────────────────────────
STRIPE_API_KEY        = os.getenv("STRIPE_API_KEY")
STRIPE_PUBLIC_KEY     = os.getenv("STRIPE_PUBLIC_KEY")
STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")
PAYMENT_CURRENCY      = os.getenv("PAYMENT_CURRENCY", "usd")

# ── Server ───────────────────────────────────────────────────────
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
LOG_LEVEL    = os.getenv("LOG_LEVEL", "INFO")


def setup_logging(level: str = None) -> None:
    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

import json
import logging
import os
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./academy.db")

# Firebase Configuration (session cookies are issued by Firebase Auth)
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID")
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "session")

# Frontend base URL used in email links
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "Trading Academy <noreply@tradingacademy.com>")
# Inbox that receives admin copies of enrollment notifications (optional)
ADMIN_NOTIFICATION_EMAIL = os.getenv("ADMIN_NOTIFICATION_EMAIL")

# Scheduling defaults
DEFAULT_GRACE_MINUTES = int(os.getenv("DEFAULT_GRACE_MINUTES", "30"))
DEFAULT_SLOT_DURATION_MINUTES = int(os.getenv("DEFAULT_SLOT_DURATION_MINUTES", "60"))
# Operating window used when suggesting alternative start times
SCHEDULE_DAY_START = os.getenv("SCHEDULE_DAY_START", "08:00")
SCHEDULE_DAY_END = os.getenv("SCHEDULE_DAY_END", "20:00")
MAX_SCHEDULE_SUGGESTIONS = int(os.getenv("MAX_SCHEDULE_SUGGESTIONS", "3"))

# Conflict domains: categories inside the same domain cannot overlap on the same day.
# Override with a JSON object, e.g. CONFLICT_DOMAINS='{"entrenamiento": ["SwingTrading"]}'
DEFAULT_CONFLICT_DOMAINS = {
    "entrenamiento": ["SwingTrading", "DowJones", "intensivo"],
    "asesoria": ["ConsultorioFinanciero", "CuentaAsesorada"],
    "trading": ["TradingAvanzado", "TradingBasico"],
}


def load_conflict_domains() -> dict[str, list[str]]:
    """Read CONFLICT_DOMAINS from the environment, falling back to the defaults"""
    raw = os.getenv("CONFLICT_DOMAINS")
    if not raw:
        return DEFAULT_CONFLICT_DOMAINS

    try:
        domains = json.loads(raw)
    except json.JSONDecodeError as e:
        raise RuntimeError(f"CONFLICT_DOMAINS is not valid JSON: {e}") from e

    if not isinstance(domains, dict) or not all(
        isinstance(members, list) and all(isinstance(m, str) for m in members)
        for members in domains.values()
    ):
        raise RuntimeError("CONFLICT_DOMAINS must map domain names to lists of categories")

    logger.info(f"📋 Loaded {len(domains)} conflict domains from environment")
    return domains


CONFLICT_DOMAINS = load_conflict_domains()

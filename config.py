import os
from dotenv import load_dotenv

load_dotenv()

TESTING = os.getenv("TESTING") == "1"
DATABASE_URL = os.getenv("DATABASE_URL")

# Seating time assumed when a reservation has no explicit end time
DEFAULT_DURATION_MINUTES = int(os.getenv("DEFAULT_DURATION_MINUTES", "120"))

JWT_SECRET = os.getenv("JWT_SECRET", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "720"))

RECONCILE_SCHEDULER_ENABLED = os.getenv("RECONCILE_SCHEDULER_ENABLED", "1") == "1" and not TESTING
RECONCILE_CRON_HOUR = int(os.getenv("RECONCILE_CRON_HOUR", "3"))
RECONCILE_CRON_MINUTE = int(os.getenv("RECONCILE_CRON_MINUTE", "0"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

import logging
import os
import sys

from dotenv import load_dotenv

load_dotenv()

MONGO_URI = os.getenv("MONGO_URI", "").strip()
DB_HOST = os.getenv("DB_HOST", "127.0.0.1")
DB_PORT = os.getenv("DB_PORT", "27017")
DB_NAME = os.getenv("DB_NAME", "aqua_buddy")

PUSH_MODE = (os.getenv("PUSH_MODE", "stub") or "stub").strip().lower()
PUSH_INTERNAL_TOKEN = (os.getenv("PUSH_INTERNAL_TOKEN", "") or "").strip()
PUSH_TIMEOUT_SECONDS = float(os.getenv("PUSH_TIMEOUT_SECONDS", "12"))
FCM_PROJECT_ID = os.getenv("FCM_PROJECT_ID", "").strip()
FCM_SERVICE_ACCOUNT_JSON = os.getenv("FCM_SERVICE_ACCOUNT_JSON", "").strip()
FCM_SERVICE_ACCOUNT_PATH = os.getenv("FCM_SERVICE_ACCOUNT_PATH", "").strip()

QUEUE_SCHEDULER_ENABLED = os.getenv("QUEUE_SCHEDULER_ENABLED", "true").strip().lower() in ("1", "true", "yes")
QUEUE_DRAIN_INTERVAL_SECONDS = int(os.getenv("QUEUE_DRAIN_INTERVAL_SECONDS", "60"))
QUEUE_CLEANUP_INTERVAL_HOURS = int(os.getenv("QUEUE_CLEANUP_INTERVAL_HOURS", "24"))

DRAIN_BATCH_LIMIT = 100
CLEANUP_BATCH_LIMIT = 500
RETENTION_DAYS = 7
# a century; later timestamps do not fit a datetime
MAX_DELAY_MINUTES = 100 * 365 * 24 * 60

DEFAULT_TITLE = "Aqua Buddy 💧"
NOTIFICATION_ICON = "/icon-192.png"
VIBRATE_PATTERN = [200, 100, 200]
CLICK_LINK = "/"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def setup_logging() -> logging.Logger:
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    logging.getLogger("apscheduler").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    return logging.getLogger("aqua_buddy")

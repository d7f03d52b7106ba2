"""Settings shared by every environment.

Each environment module star-imports this one and overrides what differs.
"""

import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "autopunch_db"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Passphrase hashed into the AES-256 key. Changing it invalidates stored secrets.
ENCRYPTION_KEY = os.getenv("ENCRYPTION_KEY", "")

# Shared secret expected in the X-Cron-Secret header of the sweep trigger
CRON_SECRET = os.getenv("CRON_SECRET", "")

PORTAL_ORIGIN = os.getenv("PORTAL_ORIGIN", "https://app.factohr.com")
PORTAL_TENANT = os.getenv("PORTAL_TENANT", "broseindia")
PORTAL_ZONE_ID = os.getenv("PORTAL_ZONE_ID", "Asia/Calcutta")
PORTAL_TIMEOUT = float(os.getenv("PORTAL_TIMEOUT", "20"))

# Wall clock used for windows, date keys, weekdays and leave dates
TIMEZONE = os.getenv("TIMEZONE", "Asia/Kolkata")

SWEEP_WORKERS = int(os.getenv("SWEEP_WORKERS", "4"))
RETRY_INTERVAL_MINUTES = int(os.getenv("RETRY_INTERVAL_MINUTES", "5"))

SCHEDULER_ENABLED = bool(int(os.getenv("SCHEDULER_ENABLED", "0")))

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

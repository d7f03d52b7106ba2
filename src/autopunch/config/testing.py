from .base import *  # noqa: F401,F403

SECRET_KEY = "test-secret"
ENCRYPTION_KEY = "test-encryption-passphrase"
CRON_SECRET = "test-cron-secret"

DEBUG = False
TESTING = True

SWEEP_WORKERS = 1
SCHEDULER_ENABLED = False
AUTO_INIT_DB = False

import os

from .base import *  # noqa: F401,F403

DEBUG = False

SWEEP_WORKERS = int(os.getenv("SWEEP_WORKERS", "2"))

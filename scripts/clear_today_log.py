"""Delete today's attendance record for one user so the next sweep retries it.

Usage: python scripts/clear_today_log.py <username>
"""

from __future__ import annotations

import importlib
import sys
from pathlib import Path
from zoneinfo import ZoneInfo

SRC_ROOT = Path(__file__).resolve().parents[1] / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from dotenv import load_dotenv

from autopunch.common.datetime_utils import now_local
from autopunch.config import get_settings_module
from autopunch.container import build_container


def main(argv: list[str]) -> int:
    if len(argv) != 1:
        print(__doc__.strip().splitlines()[-1])
        return 2

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    container = build_container(settings)

    user = container.users_repo.get_by_username(argv[0])
    if not user:
        print(f"User not found: {argv[0]}")
        return 1

    today = now_local(ZoneInfo(settings.TIMEZONE)).date()
    if container.logs_repo.delete_for_user_and_date(user.user_id, today):
        print(f"OK: Cleared {today} record for {user.username}")
    else:
        print(f"No record for {user.username} on {today}")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))

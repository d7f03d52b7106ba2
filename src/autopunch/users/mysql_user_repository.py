from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_date, db_cursor, fetchall, fetchone
from .model import Preferences, User
from .repository import UserRepository

_COLUMNS = """
    user_id, username, display_name, password_hash, portal_username, portal_secret,
    clock_in_time, clock_out_time, tolerance_minutes, working_days
"""


def _parse_days(value: Optional[str]) -> tuple[int, ...]:
    if not value:
        return ()
    return tuple(sorted(int(p) for p in value.split(",") if p.strip()))


def _format_days(days) -> str:
    return ",".join(str(d) for d in sorted(set(days)))


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._get_one("user_id=%s", (user_id,))

    def get_by_username(self, username: str) -> Optional[User]:
        return self._get_one("username=%s", (username,))

    def list_all(self) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users ORDER BY user_id")
            rows = fetchall(cur)
            leaves = self._leave_dates(cur, [int(r["user_id"]) for r in rows])
            return [self._to_user(r, leaves.get(int(r["user_id"]), ())) for r in rows]

    def create_user(
        self,
        *,
        username: str,
        display_name: str,
        password_hash: str,
        portal_username: str,
        portal_secret: str,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(username, display_name, password_hash, portal_username, portal_secret)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (username, display_name, password_hash, portal_username, portal_secret),
            )
            return int(cur.lastrowid)

    def update_preferences(self, user_id: int, preferences: Preferences) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE users
                SET clock_in_time=%s, clock_out_time=%s, tolerance_minutes=%s, working_days=%s
                WHERE user_id=%s
                """,
                (
                    preferences.clock_in_time,
                    preferences.clock_out_time,
                    int(preferences.tolerance_minutes),
                    _format_days(preferences.working_days),
                    user_id,
                ),
            )
            cur.execute("SELECT COUNT(*) AS n FROM users WHERE user_id=%s", (user_id,))
            if not int(fetchone(cur)["n"]):
                return False

            # Leave dates are replaced as a set in the same transaction.
            cur.execute("DELETE FROM leave_dates WHERE user_id=%s", (user_id,))
            if preferences.leave_dates:
                cur.executemany(
                    "INSERT INTO leave_dates(user_id, leave_date) VALUES(%s,%s)",
                    [(user_id, d) for d in sorted(set(preferences.leave_dates))],
                )
            return True

    def update_portal_identity(
        self,
        user_id: int,
        *,
        portal_username: Optional[str] = None,
        portal_secret: Optional[str] = None,
    ) -> bool:
        sets: list[str] = []
        params: list[object] = []
        if portal_username is not None:
            sets.append("portal_username=%s")
            params.append(portal_username)
        if portal_secret is not None:
            sets.append("portal_secret=%s")
            params.append(portal_secret)
        if not sets:
            return False

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE users SET {', '.join(sets)} WHERE user_id=%s",
                (*params, user_id),
            )
            return cur.rowcount > 0

    def _get_one(self, where: str, params: tuple) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE {where}", params)
            row = fetchone(cur)
            if not row:
                return None
            leaves = self._leave_dates(cur, [int(row["user_id"])])
            return self._to_user(row, leaves.get(int(row["user_id"]), ()))

    @staticmethod
    def _leave_dates(cur, user_ids: list[int]) -> dict[int, tuple]:
        if not user_ids:
            return {}
        placeholders = ",".join(["%s"] * len(user_ids))
        cur.execute(
            f"SELECT user_id, leave_date FROM leave_dates WHERE user_id IN ({placeholders}) ORDER BY leave_date",
            tuple(user_ids),
        )
        out: dict[int, list] = {}
        for r in fetchall(cur):
            out.setdefault(int(r["user_id"]), []).append(as_date(r["leave_date"]))
        return {k: tuple(v) for k, v in out.items()}

    @staticmethod
    def _to_user(r: dict, leave_dates: tuple) -> User:
        return User(
            user_id=int(r["user_id"]),
            username=r["username"],
            display_name=r["display_name"],
            password_hash=r["password_hash"],
            portal_username=r["portal_username"],
            portal_secret=r["portal_secret"],
            preferences=Preferences(
                clock_in_time=r["clock_in_time"],
                clock_out_time=r["clock_out_time"],
                tolerance_minutes=int(r["tolerance_minutes"]),
                working_days=_parse_days(r.get("working_days")),
                leave_dates=leave_dates,
            ),
        )

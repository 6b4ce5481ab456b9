"""
SQLite plumbing shared by every Peg Slam repository mixin.

Each entity table has an ``id`` primary key, the columns it is filtered or
sorted by, and a ``data_json`` blob with the full camelCase record. The
columns are derived from the record on every write, so the blob is the
source of truth and the columns are just indexes into it.
"""

from __future__ import annotations

import json
import sqlite3
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Mapping

from pegslam.exceptions import DatabaseError

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    email TEXT NOT NULL UNIQUE COLLATE NOCASE,
    username TEXT NOT NULL UNIQUE COLLATE NOCASE,
    first_name TEXT,
    last_name TEXT,
    club TEXT,
    location TEXT,
    status TEXT DEFAULT 'active',
    member_since TEXT,
    reset_token_hash TEXT,
    verification_token TEXT,
    created_at TEXT,
    data_json TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS staff (
    id TEXT PRIMARY KEY,
    email TEXT NOT NULL UNIQUE COLLATE NOCASE,
    role TEXT NOT NULL,
    created_at TEXT,
    data_json TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS sessions (
    token TEXT PRIMARY KEY,
    kind TEXT NOT NULL,
    principal_id TEXT NOT NULL,
    expires_at REAL NOT NULL,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS competitions (
    id TEXT PRIMARY KEY,
    date TEXT,
    status TEXT,
    competition_mode TEXT DEFAULT 'individual',
    created_at TEXT,
    data_json TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS participants (
    id TEXT PRIMARY KEY,
    competition_id TEXT NOT NULL,
    user_id TEXT NOT NULL,
    peg_number INTEGER,
    joined_at TEXT,
    data_json TEXT NOT NULL,
    UNIQUE (competition_id, user_id),
    FOREIGN KEY (competition_id) REFERENCES competitions(id) ON DELETE CASCADE,
    FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS teams (
    id TEXT PRIMARY KEY,
    competition_id TEXT NOT NULL,
    invite_code TEXT NOT NULL UNIQUE,
    created_by TEXT NOT NULL,
    peg_number INTEGER,
    created_at TEXT,
    data_json TEXT NOT NULL,
    FOREIGN KEY (competition_id) REFERENCES competitions(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS team_members (
    id TEXT PRIMARY KEY,
    team_id TEXT NOT NULL,
    user_id TEXT NOT NULL,
    role TEXT NOT NULL,
    status TEXT NOT NULL,
    joined_at TEXT,
    data_json TEXT NOT NULL,
    UNIQUE (team_id, user_id),
    FOREIGN KEY (team_id) REFERENCES teams(id) ON DELETE CASCADE,
    FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS leaderboard_entries (
    id TEXT PRIMARY KEY,
    competition_id TEXT NOT NULL,
    user_id TEXT,
    team_id TEXT,
    created_at TEXT,
    seq INTEGER NOT NULL,
    data_json TEXT NOT NULL,
    FOREIGN KEY (competition_id) REFERENCES competitions(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS payments (
    id TEXT PRIMARY KEY,
    competition_id TEXT NOT NULL,
    user_id TEXT NOT NULL,
    team_id TEXT,
    status TEXT NOT NULL,
    created_at TEXT,
    data_json TEXT NOT NULL,
    FOREIGN KEY (competition_id) REFERENCES competitions(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS news (
    id TEXT PRIMARY KEY,
    date TEXT,
    featured INTEGER DEFAULT 0,
    created_at TEXT,
    data_json TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS gallery_images (
    id TEXT PRIMARY KEY,
    date TEXT,
    featured INTEGER DEFAULT 0,
    created_at TEXT,
    data_json TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS sponsors (
    id TEXT PRIMARY KEY,
    tier TEXT,
    name TEXT,
    created_at TEXT,
    data_json TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS slider_images (
    id TEXT PRIMARY KEY,
    sort_order INTEGER DEFAULT 0,
    is_active INTEGER DEFAULT 1,
    created_at TEXT,
    data_json TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS youtube_videos (
    id TEXT PRIMARY KEY,
    display_order INTEGER DEFAULT 0,
    active INTEGER DEFAULT 1,
    created_at TEXT,
    data_json TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS user_gallery_photos (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    created_at TEXT,
    data_json TEXT NOT NULL,
    FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS site_settings (
    id TEXT PRIMARY KEY,
    data_json TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_users_status ON users(status);
CREATE INDEX IF NOT EXISTS idx_sessions_expires ON sessions(expires_at);
CREATE INDEX IF NOT EXISTS idx_competitions_date ON competitions(date);
CREATE INDEX IF NOT EXISTS idx_participants_user ON participants(user_id);
CREATE UNIQUE INDEX IF NOT EXISTS idx_participants_peg
    ON participants(competition_id, peg_number) WHERE peg_number IS NOT NULL;
CREATE INDEX IF NOT EXISTS idx_teams_competition ON teams(competition_id);
CREATE INDEX IF NOT EXISTS idx_team_members_user ON team_members(user_id);
CREATE INDEX IF NOT EXISTS idx_leaderboard_competition ON leaderboard_entries(competition_id, seq);
CREATE INDEX IF NOT EXISTS idx_leaderboard_user ON leaderboard_entries(user_id);
CREATE INDEX IF NOT EXISTS idx_payments_user ON payments(user_id, competition_id);
CREATE INDEX IF NOT EXISTS idx_news_date ON news(date);
CREATE INDEX IF NOT EXISTS idx_gallery_date ON gallery_images(date);
"""


@dataclass(frozen=True)
class Table:
    """Maps SQL index columns to keys of the JSON record."""

    name: str
    columns: Mapping[str, str] = field(default_factory=dict)
    bool_columns: frozenset[str] = frozenset()

    def column_values(self, record: Mapping[str, Any]) -> list[Any]:
        values = []
        for column, key in self.columns.items():
            value = record.get(key)
            if column in self.bool_columns:
                value = int(bool(value))
            values.append(value)
        return values


USERS = Table(
    "users",
    {
        "email": "email",
        "username": "username",
        "first_name": "firstName",
        "last_name": "lastName",
        "club": "club",
        "location": "location",
        "status": "status",
        "member_since": "memberSince",
        "reset_token_hash": "resetToken",
        "verification_token": "verificationToken",
        "created_at": "createdAt",
    },
)
STAFF = Table("staff", {"email": "email", "role": "role", "created_at": "createdAt"})
COMPETITIONS = Table(
    "competitions",
    {"date": "date", "status": "status", "competition_mode": "competitionMode", "created_at": "createdAt"},
)
PARTICIPANTS = Table(
    "participants",
    {"competition_id": "competitionId", "user_id": "userId", "peg_number": "pegNumber", "joined_at": "joinedAt"},
)
TEAMS = Table(
    "teams",
    {
        "competition_id": "competitionId",
        "invite_code": "inviteCode",
        "created_by": "createdBy",
        "peg_number": "pegNumber",
        "created_at": "createdAt",
    },
)
TEAM_MEMBERS = Table(
    "team_members",
    {"team_id": "teamId", "user_id": "userId", "role": "role", "status": "status", "joined_at": "joinedAt"},
)
LEADERBOARD = Table(
    "leaderboard_entries",
    {"competition_id": "competitionId", "user_id": "userId", "team_id": "teamId", "created_at": "createdAt"},
)
PAYMENTS = Table(
    "payments",
    {
        "competition_id": "competitionId",
        "user_id": "userId",
        "team_id": "teamId",
        "status": "status",
        "created_at": "createdAt",
    },
)
NEWS = Table("news", {"date": "date", "featured": "featured", "created_at": "createdAt"}, frozenset({"featured"}))
GALLERY = Table(
    "gallery_images",
    {"date": "date", "featured": "featured", "created_at": "createdAt"},
    frozenset({"featured"}),
)
SPONSORS = Table("sponsors", {"tier": "tier", "name": "name", "created_at": "createdAt"})
SLIDER = Table(
    "slider_images",
    {"sort_order": "order", "is_active": "isActive", "created_at": "createdAt"},
    frozenset({"is_active"}),
)
YOUTUBE = Table(
    "youtube_videos",
    {"display_order": "displayOrder", "active": "active", "created_at": "createdAt"},
    frozenset({"active"}),
)
USER_GALLERY = Table("user_gallery_photos", {"user_id": "userId", "created_at": "createdAt"})
SITE_SETTINGS = Table("site_settings")


def utc_now() -> str:
    return datetime.now(tz=timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def new_id() -> str:
    return str(uuid.uuid4())


def load_row(row: sqlite3.Row | None) -> dict[str, Any] | None:
    if row is None or not row["data_json"]:
        return None
    return json.loads(row["data_json"])


class SQLiteBase:
    """
    Single-file SQLite store.

    Every public method opens its own connection, so one repo instance can
    be shared by all request threads.
    """

    def __init__(self, db_path: str | Path = "data/pegslam.db") -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path), timeout=10)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON;")
        conn.execute("PRAGMA journal_mode = WAL;")
        conn.execute("PRAGMA synchronous = NORMAL;")
        return conn

    def _init_db(self) -> None:
        try:
            with self._conn() as conn:
                conn.executescript(SCHEMA)
        except sqlite3.Error as exc:
            raise DatabaseError("Failed to initialise database", operation="init", detail=str(exc)) from exc

    # ------------------------------------------------------------------
    # Generic record helpers. All take an open connection so callers can
    # compose them inside one transaction.
    # ------------------------------------------------------------------

    @staticmethod
    def _insert(conn: sqlite3.Connection, table: Table, record: dict[str, Any], **extra: Any) -> dict[str, Any]:
        record.setdefault("id", new_id())
        columns = ["id", *table.columns.keys(), *extra.keys(), "data_json"]
        values = [
            record["id"],
            *table.column_values(record),
            *extra.values(),
            json.dumps(record, ensure_ascii=False),
        ]
        placeholders = ", ".join("?" for _ in columns)
        conn.execute(f"INSERT INTO {table.name} ({', '.join(columns)}) VALUES ({placeholders})", values)
        return record

    @staticmethod
    def _save(conn: sqlite3.Connection, table: Table, record: dict[str, Any]) -> dict[str, Any]:
        assignments = [f"{column} = ?" for column in table.columns]
        assignments.append("data_json = ?")
        conn.execute(
            f"UPDATE {table.name} SET {', '.join(assignments)} WHERE id = ?",
            [*table.column_values(record), json.dumps(record, ensure_ascii=False), record["id"]],
        )
        return record

    @staticmethod
    def _get(conn: sqlite3.Connection, table: Table, record_id: str) -> dict[str, Any] | None:
        row = conn.execute(f"SELECT data_json FROM {table.name} WHERE id = ?", (record_id,)).fetchone()
        return load_row(row)

    @staticmethod
    def _find_one(conn: sqlite3.Connection, table: Table, where: str, params: Iterable[Any]) -> dict[str, Any] | None:
        row = conn.execute(f"SELECT data_json FROM {table.name} WHERE {where} LIMIT 1", list(params)).fetchone()
        return load_row(row)

    @staticmethod
    def _find_all(
        conn: sqlite3.Connection,
        table: Table,
        where: str = "",
        params: Iterable[Any] = (),
        order_by: str = "",
    ) -> list[dict[str, Any]]:
        sql = f"SELECT data_json FROM {table.name}"
        if where:
            sql += f" WHERE {where}"
        if order_by:
            sql += f" ORDER BY {order_by}"
        rows = conn.execute(sql, list(params)).fetchall()
        return [json.loads(row["data_json"]) for row in rows if row["data_json"]]

    @staticmethod
    def _delete(conn: sqlite3.Connection, table: Table, record_id: str) -> bool:
        cursor = conn.execute(f"DELETE FROM {table.name} WHERE id = ?", (record_id,))
        return cursor.rowcount > 0

    # ------------------------------------------------------------------
    # Simple CRUD for tables with no extra rules.
    # ------------------------------------------------------------------

    def _create_record(self, table: Table, data: Mapping[str, Any]) -> dict[str, Any]:
        record = {key: value for key, value in data.items() if key != "id"}
        record["id"] = new_id()
        record.setdefault("createdAt", utc_now())
        with self._conn() as conn:
            return self._insert(conn, table, record)

    def _get_record(self, table: Table, record_id: str) -> dict[str, Any] | None:
        with self._conn() as conn:
            return self._get(conn, table, record_id)

    def _update_record(self, table: Table, record_id: str, updates: Mapping[str, Any]) -> dict[str, Any] | None:
        with self._conn() as conn:
            record = self._get(conn, table, record_id)
            if record is None:
                return None
            record.update({key: value for key, value in updates.items() if key not in ("id", "createdAt")})
            return self._save(conn, table, record)

    def _delete_record(self, table: Table, record_id: str) -> bool:
        with self._conn() as conn:
            return self._delete(conn, table, record_id)

    def _list_records(
        self,
        table: Table,
        where: str = "",
        params: Iterable[Any] = (),
        order_by: str = "",
    ) -> list[dict[str, Any]]:
        with self._conn() as conn:
            return self._find_all(conn, table, where, params, order_by)

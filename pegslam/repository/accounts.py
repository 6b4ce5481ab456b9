"""
Anglers, staff accounts, login sessions and anglers' personal photo galleries.
"""

from __future__ import annotations

import sqlite3
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping

from pegslam.exceptions import AnglerNotFoundError, DuplicateError
from pegslam.repository.base import STAFF, USER_GALLERY, USERS, new_id, utc_now
from pegslam.security import contains_pattern, generate_session_token, hash_token

_ANGLER_SORT_COLUMNS = {
    "name": "LOWER(first_name) {order}, LOWER(last_name) {order}",
    "memberSince": "member_since {order}",
    "club": "LOWER(COALESCE(club, '')) {order}, LOWER(first_name) ASC",
}

USER_DEFAULTS: dict[str, Any] = {
    "club": None,
    "avatar": None,
    "bio": None,
    "favouriteMethod": None,
    "favouriteSpecies": None,
    "location": None,
    "mobileNumber": None,
    "dateOfBirth": None,
    "youtubeUrl": None,
    "facebookUrl": None,
    "twitterUrl": None,
    "instagramUrl": None,
    "tiktokUrl": None,
    "youtubeVideoUrl": None,
    "status": "active",
    "emailVerified": False,
    "resetToken": None,
    "resetTokenExpiry": None,
    "verificationToken": None,
    "verificationTokenExpiry": None,
}


def _expiry(seconds: int) -> str:
    return (datetime.now(tz=timezone.utc) + timedelta(seconds=seconds)).isoformat()


def _expired(value: str | None) -> bool:
    if not value:
        return True
    return datetime.fromisoformat(value.replace("Z", "+00:00")) < datetime.now(tz=timezone.utc)


class AccountsMixin:
    # ------------------------------------------------------------------
    # Anglers
    # ------------------------------------------------------------------

    def create_user(self, data: Mapping[str, Any]) -> dict[str, Any]:
        """
        Insert an angler. ``data["password"]`` must already be hashed.

        Raises DuplicateError when the email or username is taken.
        """
        now = utc_now()
        record = {**USER_DEFAULTS, **{k: v for k, v in data.items() if k != "id"}}
        record["id"] = new_id()
        record.setdefault("memberSince", now)
        record.setdefault("createdAt", now)
        with self._conn() as conn:
            self._check_unique_user(conn, record["email"], record["username"])
            return self._insert(conn, USERS, record)

    def _check_unique_user(
        self,
        conn: sqlite3.Connection,
        email: str | None,
        username: str | None,
        exclude_id: str | None = None,
    ) -> None:
        if email:
            row = conn.execute("SELECT id FROM users WHERE email = ?", (email,)).fetchone()
            if row and row["id"] != exclude_id:
                raise DuplicateError("Email already registered", field="email")
        if username:
            row = conn.execute("SELECT id FROM users WHERE username = ?", (username,)).fetchone()
            if row and row["id"] != exclude_id:
                raise DuplicateError("Username already taken", field="username")

    def get_user(self, user_id: str) -> dict[str, Any] | None:
        return self._get_record(USERS, user_id)

    def get_user_by_email(self, email: str) -> dict[str, Any] | None:
        with self._conn() as conn:
            return self._find_one(conn, USERS, "email = ?", (email.strip().lower(),))

    def get_user_by_username(self, username: str) -> dict[str, Any] | None:
        with self._conn() as conn:
            return self._find_one(conn, USERS, "username = ?", (username.strip(),))

    def get_users_by_ids(self, user_ids: list[str]) -> dict[str, dict[str, Any]]:
        if not user_ids:
            return {}
        unique = list(dict.fromkeys(user_ids))
        placeholders = ", ".join("?" for _ in unique)
        with self._conn() as conn:
            users = self._find_all(conn, USERS, f"id IN ({placeholders})", unique)
        return {user["id"]: user for user in users}

    def list_users(self) -> list[dict[str, Any]]:
        """All anglers, newest members first."""
        return self._list_records(USERS, order_by="member_since DESC")

    def count_users(self) -> int:
        with self._conn() as conn:
            return int(conn.execute("SELECT COUNT(*) AS c FROM users").fetchone()["c"])

    def list_anglers(
        self,
        *,
        search: str = "",
        sort_by: str = "name",
        sort_order: str = "asc",
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[int, list[dict[str, Any]]]:
        """
        Public angler directory page: (total_count, page_items).

        Blocked anglers are left out.
        """
        order = "DESC" if sort_order == "desc" else "ASC"
        order_by = _ANGLER_SORT_COLUMNS.get(sort_by, _ANGLER_SORT_COLUMNS["name"]).format(order=order)

        where = ["status != 'blocked'"]
        params: list[Any] = []
        if search:
            like = contains_pattern(search)
            where.append(
                "(first_name LIKE ? ESCAPE '\\' OR last_name LIKE ? ESCAPE '\\' OR username LIKE ? ESCAPE '\\'"
                " OR club LIKE ? ESCAPE '\\' OR location LIKE ? ESCAPE '\\'"
                " OR (first_name || ' ' || last_name) LIKE ? ESCAPE '\\')"
            )
            params.extend([like] * 6)
        where_sql = " AND ".join(where)

        page = max(1, int(page))
        page_size = max(1, min(int(page_size), 100))
        with self._conn() as conn:
            total = int(conn.execute(f"SELECT COUNT(*) AS c FROM users WHERE {where_sql}", params).fetchone()["c"])
            items = self._find_all(
                conn,
                USERS,
                where_sql,
                params,
                f"{order_by} LIMIT {page_size} OFFSET {(page - 1) * page_size}",
            )
        return total, items

    def update_user(self, user_id: str, updates: Mapping[str, Any]) -> dict[str, Any] | None:
        """Apply profile/admin edits; email and username stay unique."""
        with self._conn() as conn:
            record = self._get(conn, USERS, user_id)
            if record is None:
                return None
            self._check_unique_user(conn, updates.get("email"), updates.get("username"), exclude_id=user_id)
            record.update({k: v for k, v in updates.items() if k not in ("id", "createdAt", "memberSince")})
            return self._save(conn, USERS, record)

    def update_user_status(self, user_id: str, status: str) -> dict[str, Any] | None:
        return self.update_user(user_id, {"status": status})

    def set_user_password(self, user_id: str, password_hash: str) -> dict[str, Any] | None:
        return self.update_user(user_id, {"password": password_hash})

    def delete_user(self, user_id: str) -> bool:
        """Delete an angler and free any pegs they held."""
        with self._conn() as conn:
            rows = conn.execute("SELECT competition_id FROM participants WHERE user_id = ?", (user_id,)).fetchall()
            for row in rows:
                self._adjust_pegs_booked(conn, row["competition_id"], -1)
            return self._delete(conn, USERS, user_id)

    # Password reset / email verification

    def set_reset_token(self, user_id: str, token: str, ttl_seconds: int = 3600) -> None:
        """Store only the SHA-256 of a password reset token."""
        updates = {"resetToken": hash_token(token), "resetTokenExpiry": _expiry(ttl_seconds)}
        if self.update_user(user_id, updates) is None:
            raise AnglerNotFoundError(user_id)

    def get_user_by_reset_token(self, token: str) -> dict[str, Any] | None:
        """The angler owning an unexpired reset token, or None."""
        with self._conn() as conn:
            user = self._find_one(conn, USERS, "reset_token_hash = ?", (hash_token(token),))
        if user is None or _expired(user.get("resetTokenExpiry")):
            return None
        return user

    def reset_password(self, user_id: str, password_hash: str) -> dict[str, Any] | None:
        return self.update_user(
            user_id,
            {"password": password_hash, "resetToken": None, "resetTokenExpiry": None},
        )

    def set_verification_token(self, user_id: str, token: str, ttl_seconds: int = 86400) -> None:
        updates = {"verificationToken": token, "verificationTokenExpiry": _expiry(ttl_seconds)}
        if self.update_user(user_id, updates) is None:
            raise AnglerNotFoundError(user_id)

    def get_user_by_verification_token(self, token: str) -> dict[str, Any] | None:
        """Angler for a verification token; expiry is checked by the caller."""
        with self._conn() as conn:
            return self._find_one(conn, USERS, "verification_token = ?", (token,))

    def verify_user_email(self, user_id: str) -> dict[str, Any] | None:
        return self.update_user(
            user_id,
            {"emailVerified": True, "verificationToken": None, "verificationTokenExpiry": None},
        )

    @staticmethod
    def token_expired(value: str | None) -> bool:
        return _expired(value)

    # ------------------------------------------------------------------
    # Staff
    # ------------------------------------------------------------------

    def create_staff(self, data: Mapping[str, Any]) -> dict[str, Any]:
        record = {k: v for k, v in data.items() if k != "id"}
        record["id"] = new_id()
        record.setdefault("role", "marshal")
        record.setdefault("isActive", True)
        record.setdefault("createdAt", utc_now())
        with self._conn() as conn:
            if conn.execute("SELECT 1 FROM staff WHERE email = ?", (record["email"],)).fetchone():
                raise DuplicateError("Email already in use", field="email")
            return self._insert(conn, STAFF, record)

    def get_staff(self, staff_id: str) -> dict[str, Any] | None:
        return self._get_record(STAFF, staff_id)

    def get_staff_by_email(self, email: str) -> dict[str, Any] | None:
        with self._conn() as conn:
            return self._find_one(conn, STAFF, "email = ?", (email.strip().lower(),))

    def list_staff(self) -> list[dict[str, Any]]:
        return self._list_records(STAFF, order_by="created_at ASC")

    def count_staff(self) -> int:
        with self._conn() as conn:
            return int(conn.execute("SELECT COUNT(*) AS c FROM staff").fetchone()["c"])

    def update_staff(self, staff_id: str, updates: Mapping[str, Any]) -> dict[str, Any] | None:
        with self._conn() as conn:
            record = self._get(conn, STAFF, staff_id)
            if record is None:
                return None
            email = updates.get("email")
            if email:
                row = conn.execute("SELECT id FROM staff WHERE email = ?", (email,)).fetchone()
                if row and row["id"] != staff_id:
                    raise DuplicateError("Email already in use", field="email")
            record.update({k: v for k, v in updates.items() if k not in ("id", "createdAt")})
            return self._save(conn, STAFF, record)

    def update_staff_password(self, staff_id: str, password_hash: str) -> dict[str, Any] | None:
        return self.update_staff(staff_id, {"password": password_hash})

    def delete_staff(self, staff_id: str) -> bool:
        with self._conn() as conn:
            conn.execute("DELETE FROM sessions WHERE kind = 'staff' AND principal_id = ?", (staff_id,))
            return self._delete(conn, STAFF, staff_id)

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def create_session(self, kind: str, principal_id: str, ttl_seconds: int) -> str:
        token = generate_session_token()
        with self._conn() as conn:
            conn.execute(
                "INSERT INTO sessions (token, kind, principal_id, expires_at, created_at) VALUES (?, ?, ?, ?, ?)",
                (token, kind, principal_id, time.time() + ttl_seconds, utc_now()),
            )
        return token

    def get_session(self, token: str) -> dict[str, Any] | None:
        """Session for ``token``; expired sessions are deleted and treated as missing."""
        if not token:
            return None
        with self._conn() as conn:
            row = conn.execute(
                "SELECT token, kind, principal_id, expires_at FROM sessions WHERE token = ?",
                (token,),
            ).fetchone()
            if row is None:
                return None
            if row["expires_at"] < time.time():
                conn.execute("DELETE FROM sessions WHERE token = ?", (token,))
                return None
            return {"token": row["token"], "kind": row["kind"], "principalId": row["principal_id"]}

    def delete_session(self, token: str) -> None:
        with self._conn() as conn:
            conn.execute("DELETE FROM sessions WHERE token = ?", (token,))

    def purge_expired_sessions(self) -> int:
        with self._conn() as conn:
            return conn.execute("DELETE FROM sessions WHERE expires_at < ?", (time.time(),)).rowcount

    # ------------------------------------------------------------------
    # Angler photo galleries
    # ------------------------------------------------------------------

    def add_user_gallery_photo(self, user_id: str, url: str, caption: str | None = None) -> dict[str, Any]:
        return self._create_record(USER_GALLERY, {"userId": user_id, "url": url, "caption": caption})

    def list_user_gallery_photos(self, user_id: str) -> list[dict[str, Any]]:
        return self._list_records(USER_GALLERY, "user_id = ?", (user_id,), "created_at DESC")

    def delete_user_gallery_photo(self, photo_id: str, user_id: str) -> bool:
        """Delete a photo only if ``user_id`` owns it."""
        with self._conn() as conn:
            cursor = conn.execute("DELETE FROM user_gallery_photos WHERE id = ? AND user_id = ?", (photo_id, user_id))
            return cursor.rowcount > 0

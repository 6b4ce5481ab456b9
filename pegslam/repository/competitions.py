"""
Competitions, peg bookings, teams, weigh-ins and payments.

Every operation that reads the booked pegs and then writes one runs inside a
``BEGIN IMMEDIATE`` transaction, so two concurrent bookings cannot both see
the same peg as free.
"""

from __future__ import annotations

import random
import sqlite3
from typing import Any, Iterable, Mapping, Sequence

from pegslam.exceptions import (
    AnglerNotFoundError,
    CompetitionNotFoundError,
    ConflictError,
    NotFoundError,
    PegUnavailableError,
    PermissionDeniedError,
    TeamNotFoundError,
    ValidationError,
)
from pegslam.leaderboard import aggregate_leaderboard, angler_stats
from pegslam.logging_config import get_logger
from pegslam.pegs import PegAssignment, available_pegs, draw_pegs, first_free_peg, validate_requested_peg
from pegslam.repository.base import (
    COMPETITIONS,
    LEADERBOARD,
    PARTICIPANTS,
    PAYMENTS,
    TEAM_MEMBERS,
    TEAMS,
    USERS,
    Table,
    load_row,
    new_id,
    utc_now,
)
from pegslam.security import generate_invite_code
from pegslam.weights import weight_value

logger = get_logger(__name__)

COMPETITION_DEFAULTS: dict[str, Any] = {
    "endDate": None,
    "time": None,
    "endTime": None,
    "description": "",
    "type": "",
    "rules": [],
    "pegsTotal": 0,
    "entryFee": "0",
    "prizePool": "",
    "prizeType": "pool",
    "status": "upcoming",
    "imageUrl": None,
    "thumbnailUrl": None,
    "thumbnailUrlMd": None,
    "thumbnailUrlLg": None,
    "competitionMode": "individual",
    "maxTeamMembers": None,
    "teamPegAssignmentMode": "team",
}

# Fields the server maintains; admin edits never overwrite them.
_COMPETITION_READ_ONLY = frozenset({"id", "createdAt", "pegsBooked"})


def _entry_fee(competition: Mapping[str, Any]) -> float:
    try:
        return float(str(competition.get("entryFee") or "0").replace("£", "").strip() or 0)
    except ValueError:
        return 0.0


class CompetitionsMixin:
    # ------------------------------------------------------------------
    # Competitions
    # ------------------------------------------------------------------

    def create_competition(self, data: Mapping[str, Any]) -> dict[str, Any]:
        record = {**COMPETITION_DEFAULTS, **{k: v for k, v in data.items() if k not in _COMPETITION_READ_ONLY}}
        record["id"] = new_id()
        record["pegsBooked"] = 0
        record["createdAt"] = utc_now()
        with self._conn() as conn:
            return self._insert(conn, COMPETITIONS, record)

    def get_competition(self, competition_id: str) -> dict[str, Any] | None:
        return self._get_record(COMPETITIONS, competition_id)

    def require_competition(self, competition_id: str) -> dict[str, Any]:
        competition = self.get_competition(competition_id)
        if competition is None:
            raise CompetitionNotFoundError(competition_id)
        return competition

    def list_competitions(self) -> list[dict[str, Any]]:
        return self._list_records(COMPETITIONS, order_by="date ASC, created_at ASC")

    def update_competition(self, competition_id: str, updates: Mapping[str, Any]) -> dict[str, Any] | None:
        with self._conn() as conn:
            record = self._get(conn, COMPETITIONS, competition_id)
            if record is None:
                return None
            record.update({k: v for k, v in updates.items() if k not in _COMPETITION_READ_ONLY})
            return self._save(conn, COMPETITIONS, record)

    def delete_competition(self, competition_id: str) -> bool:
        """Delete a competition; bookings, teams and weigh-ins cascade."""
        return self._delete_record(COMPETITIONS, competition_id)

    @staticmethod
    def entry_fee(competition: Mapping[str, Any]) -> float:
        return _entry_fee(competition)

    def _adjust_pegs_booked(self, conn: sqlite3.Connection, competition_id: str, delta: int) -> None:
        competition = self._get(conn, COMPETITIONS, competition_id)
        if competition is None:
            return
        competition["pegsBooked"] = max(0, int(competition.get("pegsBooked") or 0) + delta)
        self._save(conn, COMPETITIONS, competition)

    @staticmethod
    def _booked_pegs(conn: sqlite3.Connection, competition_id: str, exclude_ids: Iterable[str] = ()) -> set[int]:
        excluded = set(exclude_ids)
        booked: set[int] = set()
        for table in ("participants", "teams"):
            rows = conn.execute(
                f"SELECT id, peg_number FROM {table} WHERE competition_id = ? AND peg_number IS NOT NULL",
                (competition_id,),
            ).fetchall()
            booked.update(row["peg_number"] for row in rows if row["id"] not in excluded)
        return booked

    # ------------------------------------------------------------------
    # Participants
    # ------------------------------------------------------------------

    def join_competition(
        self,
        competition_id: str,
        user_id: str,
        peg_number: int | None = None,
    ) -> dict[str, Any]:
        """
        Book ``user_id`` onto a competition.

        Takes ``peg_number`` when given and free, otherwise the lowest free
        peg, and increments ``pegsBooked``.

        Raises:
            CompetitionNotFoundError: unknown competition.
            ConflictError: the angler has already joined.
            PegUnavailableError: requested peg taken/out of range, or venue full.
        """
        with self._conn() as conn:
            conn.execute("BEGIN IMMEDIATE")
            competition = self._get(conn, COMPETITIONS, competition_id)
            if competition is None:
                raise CompetitionNotFoundError(competition_id)
            if self._get(conn, USERS, user_id) is None:
                raise AnglerNotFoundError(user_id)
            exists = conn.execute(
                "SELECT 1 FROM participants WHERE competition_id = ? AND user_id = ?",
                (competition_id, user_id),
            ).fetchone()
            if exists:
                raise ConflictError("Already joined this competition")

            pegs_total = int(competition.get("pegsTotal") or 0)
            booked = self._booked_pegs(conn, competition_id)
            if peg_number is not None:
                validate_requested_peg(peg_number, pegs_total, booked)
                peg = peg_number
            else:
                peg = first_free_peg(pegs_total, booked)

            participant = self._insert(
                conn,
                PARTICIPANTS,
                {
                    "id": new_id(),
                    "competitionId": competition_id,
                    "userId": user_id,
                    "pegNumber": peg,
                    "joinedAt": utc_now(),
                },
            )
            self._adjust_pegs_booked(conn, competition_id, 1)
        return participant

    def leave_competition(self, competition_id: str, user_id: str) -> bool:
        with self._conn() as conn:
            cursor = conn.execute(
                "DELETE FROM participants WHERE competition_id = ? AND user_id = ?",
                (competition_id, user_id),
            )
            if cursor.rowcount == 0:
                return False
            self._adjust_pegs_booked(conn, competition_id, -1)
            return True

    def delete_participant(self, participant_id: str) -> bool:
        with self._conn() as conn:
            participant = self._get(conn, PARTICIPANTS, participant_id)
            if participant is None:
                return False
            self._delete(conn, PARTICIPANTS, participant_id)
            self._adjust_pegs_booked(conn, participant["competitionId"], -1)
            return True

    def get_participant(self, participant_id: str) -> dict[str, Any] | None:
        return self._get_record(PARTICIPANTS, participant_id)

    def is_user_in_competition(self, competition_id: str, user_id: str) -> bool:
        with self._conn() as conn:
            row = conn.execute(
                "SELECT 1 FROM participants WHERE competition_id = ? AND user_id = ?",
                (competition_id, user_id),
            ).fetchone()
            return row is not None

    def get_competition_participants(self, competition_id: str) -> list[dict[str, Any]]:
        """Bookings in join order."""
        return self._list_records(PARTICIPANTS, "competition_id = ?", (competition_id,), "joined_at ASC, rowid ASC")

    def get_user_participations(self, user_id: str) -> list[dict[str, Any]]:
        return self._list_records(PARTICIPANTS, "user_id = ?", (user_id,), "joined_at DESC")

    def list_all_participants(self) -> list[dict[str, Any]]:
        return self._list_records(PARTICIPANTS, order_by="joined_at DESC, rowid DESC")

    def get_available_pegs(self, competition_id: str) -> list[int]:
        with self._conn() as conn:
            competition = self._get(conn, COMPETITIONS, competition_id)
            if competition is None:
                raise CompetitionNotFoundError(competition_id)
            return available_pegs(int(competition.get("pegsTotal") or 0), self._booked_pegs(conn, competition_id))

    def _set_peg(self, table: Table, record_id: str, peg_number: int) -> dict[str, Any] | None:
        with self._conn() as conn:
            conn.execute("BEGIN IMMEDIATE")
            record = self._get(conn, table, record_id)
            if record is None:
                return None
            competition = self._get(conn, COMPETITIONS, record["competitionId"])
            pegs_total = int((competition or {}).get("pegsTotal") or 0)
            booked = self._booked_pegs(conn, record["competitionId"], exclude_ids=[record_id])
            validate_requested_peg(peg_number, pegs_total, booked)
            record["pegNumber"] = peg_number
            return self._save(conn, table, record)

    def update_participant_peg(self, participant_id: str, peg_number: int) -> dict[str, Any] | None:
        """Move one participant; refuses a peg held by anyone else in the competition."""
        return self._set_peg(PARTICIPANTS, participant_id, peg_number)

    def update_team_peg(self, team_id: str, peg_number: int) -> dict[str, Any] | None:
        return self._set_peg(TEAMS, team_id, peg_number)

    def _apply_assignments(
        self,
        conn: sqlite3.Connection,
        table: Table,
        competition: Mapping[str, Any],
        assignments: Sequence[PegAssignment],
    ) -> int:
        """Clear every peg of ``table`` in the competition, then write ``assignments``."""
        if not assignments:
            return 0
        competition_id = competition["id"]
        pegs_total = int(competition.get("pegsTotal") or 0)

        targets: dict[str, dict[str, Any]] = {}
        for assignment in assignments:
            record = self._get(conn, table, assignment.participant_id)
            if record is None or record["competitionId"] != competition_id:
                raise NotFoundError(
                    f"Participant {assignment.participant_id} is not in this competition",
                    resource_id=assignment.participant_id,
                )
            targets[record["id"]] = record

        seen: set[int] = set()
        for assignment in assignments:
            peg = assignment.peg_number
            if peg < 1 or peg > pegs_total:
                raise PegUnavailableError(f"Peg {peg} is out of range (1-{pegs_total})", peg_number=peg)
            if peg in seen:
                raise PegUnavailableError(f"Peg {peg} is assigned twice", peg_number=peg)
            seen.add(peg)

        for record in self._find_all(conn, table, "competition_id = ?", (competition_id,)):
            if record.get("pegNumber") is not None:
                record["pegNumber"] = None
                self._save(conn, table, record)

        clash = seen & self._booked_pegs(conn, competition_id, exclude_ids=targets)
        if clash:
            peg = min(clash)
            raise PegUnavailableError(f"Peg {peg} is already taken", peg_number=peg)

        for assignment in assignments:
            record = targets[assignment.participant_id]
            record["pegNumber"] = assignment.peg_number
            self._save(conn, table, record)
        return len(assignments)

    def assign_pegs(self, competition_id: str, assignments: Sequence[PegAssignment]) -> int:
        """
        Bulk-assign pegs in one transaction; returns the number updated.

        Every existing peg in the competition is cleared first, so entrants
        left out of ``assignments`` end up without one. In team competitions
        the ids are team ids.
        """
        with self._conn() as conn:
            conn.execute("BEGIN IMMEDIATE")
            competition = self._get(conn, COMPETITIONS, competition_id)
            if competition is None:
                raise CompetitionNotFoundError(competition_id)
            table = TEAMS if competition.get("competitionMode") == "team" else PARTICIPANTS
            return self._apply_assignments(conn, table, competition, assignments)

    def draw_competition_pegs(
        self,
        competition_id: str,
        mode: str = "sequential",
        rng: random.Random | None = None,
        *,
        dry_run: bool = False,
    ) -> list[PegAssignment]:
        """
        Assign pegs to every competitor (teams in team mode) in join order.

        Existing pegs are cleared first; competitors beyond the peg count are
        left without one.
        """
        with self._conn() as conn:
            conn.execute("BEGIN IMMEDIATE")
            competition = self._get(conn, COMPETITIONS, competition_id)
            if competition is None:
                raise CompetitionNotFoundError(competition_id)
            if competition.get("competitionMode") == "team":
                table, order = TEAMS, "created_at ASC, rowid ASC"
            else:
                table, order = PARTICIPANTS, "joined_at ASC, rowid ASC"
            competitors = self._find_all(conn, table, "competition_id = ?", (competition_id,), order)
            assignments = draw_pegs(
                [record["id"] for record in competitors],
                int(competition.get("pegsTotal") or 0),
                mode,
                rng,
            )
            if dry_run:
                conn.rollback()
                return assignments
            self._apply_assignments(conn, table, competition, assignments)

        logger.info(
            "pegs_drawn",
            extra={"competition_id": competition_id, "mode": mode, "updated": len(assignments)},
        )
        return assignments

    # ------------------------------------------------------------------
    # Teams
    # ------------------------------------------------------------------

    def _user_team_in_competition(
        self, conn: sqlite3.Connection, user_id: str, competition_id: str
    ) -> dict[str, Any] | None:
        row = conn.execute(
            """
            SELECT t.data_json FROM teams t
            JOIN team_members m ON m.team_id = t.id
            WHERE m.user_id = ? AND t.competition_id = ? AND m.status = 'accepted'
            LIMIT 1
            """,
            (user_id, competition_id),
        ).fetchone()
        return load_row(row)

    def create_team(self, competition_id: str, user_id: str, name: str, image: str | None = None) -> dict[str, Any]:
        """Create a team with ``user_id`` as its accepted primary member (captain)."""
        name = (name or "").strip()
        if not name:
            raise ValidationError("Team name is required", field="name")

        with self._conn() as conn:
            conn.execute("BEGIN IMMEDIATE")
            competition = self._get(conn, COMPETITIONS, competition_id)
            if competition is None:
                raise CompetitionNotFoundError(competition_id)
            if competition.get("competitionMode") != "team":
                raise ValidationError("This competition does not support teams")
            if self._user_team_in_competition(conn, user_id, competition_id):
                raise ConflictError("You already have a team in this competition")

            invite_code = generate_invite_code()
            while conn.execute("SELECT 1 FROM teams WHERE invite_code = ?", (invite_code,)).fetchone():
                invite_code = generate_invite_code()

            now = utc_now()
            team = self._insert(
                conn,
                TEAMS,
                {
                    "id": new_id(),
                    "competitionId": competition_id,
                    "name": name,
                    "image": image,
                    "inviteCode": invite_code,
                    "createdBy": user_id,
                    "paymentStatus": "pending",
                    "pegNumber": None,
                    "createdAt": now,
                },
            )
            self._insert(
                conn,
                TEAM_MEMBERS,
                {
                    "id": new_id(),
                    "teamId": team["id"],
                    "userId": user_id,
                    "role": "primary",
                    "status": "accepted",
                    "joinedAt": now,
                },
            )
        return team

    def get_team(self, team_id: str) -> dict[str, Any] | None:
        return self._get_record(TEAMS, team_id)

    def get_team_by_invite_code(self, invite_code: str) -> dict[str, Any] | None:
        with self._conn() as conn:
            return self._find_one(conn, TEAMS, "invite_code = ?", (invite_code.strip().upper(),))

    def get_user_team(self, user_id: str, competition_id: str) -> dict[str, Any] | None:
        with self._conn() as conn:
            return self._user_team_in_competition(conn, user_id, competition_id)

    def get_user_teams(self, user_id: str) -> list[dict[str, Any]]:
        return self._list_records(
            TEAMS,
            "id IN (SELECT team_id FROM team_members WHERE user_id = ? AND status = 'accepted')",
            (user_id,),
            "created_at DESC",
        )

    def list_teams_by_competition(self, competition_id: str) -> list[dict[str, Any]]:
        return self._list_records(TEAMS, "competition_id = ?", (competition_id,), "created_at ASC, rowid ASC")

    def get_team_members(self, team_id: str) -> list[dict[str, Any]]:
        return self._list_records(TEAM_MEMBERS, "team_id = ?", (team_id,), "joined_at ASC, rowid ASC")

    def is_user_in_team(self, team_id: str, user_id: str) -> bool:
        with self._conn() as conn:
            row = conn.execute(
                "SELECT 1 FROM team_members WHERE team_id = ? AND user_id = ?",
                (team_id, user_id),
            ).fetchone()
            return row is not None

    def join_team(self, invite_code: str, user_id: str) -> dict[str, Any]:
        """Add ``user_id`` to the team owning ``invite_code`` (case-insensitive)."""
        with self._conn() as conn:
            conn.execute("BEGIN IMMEDIATE")
            team = self._find_one(conn, TEAMS, "invite_code = ?", ((invite_code or "").strip().upper(),))
            if team is None:
                raise NotFoundError("Invalid invite code")
            competition = self._get(conn, COMPETITIONS, team["competitionId"])
            if competition is None:
                raise CompetitionNotFoundError(team["competitionId"])
            if conn.execute(
                "SELECT 1 FROM team_members WHERE team_id = ? AND user_id = ?",
                (team["id"], user_id),
            ).fetchone():
                raise ConflictError("You are already a member of this team")
            if self._user_team_in_competition(conn, user_id, team["competitionId"]):
                raise ConflictError("You already have a team in this competition")

            accepted = conn.execute(
                "SELECT COUNT(*) AS c FROM team_members WHERE team_id = ? AND status = 'accepted'",
                (team["id"],),
            ).fetchone()["c"]
            max_members = competition.get("maxTeamMembers")
            if max_members and accepted >= int(max_members):
                raise ConflictError("Team is full")

            return self._insert(
                conn,
                TEAM_MEMBERS,
                {
                    "id": new_id(),
                    "teamId": team["id"],
                    "userId": user_id,
                    "role": "member",
                    "status": "accepted",
                    "joinedAt": utc_now(),
                },
            )

    def leave_team(self, team_id: str, user_id: str) -> str:
        """
        Remove ``user_id`` from a team.

        Returns ``"deleted"`` when a lone captain leaves (the team goes too),
        ``"left"`` otherwise. A captain with other members cannot leave.
        """
        with self._conn() as conn:
            conn.execute("BEGIN IMMEDIATE")
            if self._get(conn, TEAMS, team_id) is None:
                raise TeamNotFoundError(team_id)
            members = self._find_all(conn, TEAM_MEMBERS, "team_id = ?", (team_id,))
            membership = next((m for m in members if m["userId"] == user_id), None)
            if membership is None:
                raise NotFoundError("You are not a member of this team")

            if membership["role"] == "primary":
                others = [m for m in members if m["userId"] != user_id and m["status"] == "accepted"]
                if others:
                    raise ValidationError(
                        "Team leader cannot leave while other members are in the team. "
                        "Remove all members first or transfer leadership."
                    )
                self._delete(conn, TEAMS, team_id)
                return "deleted"

            self._delete(conn, TEAM_MEMBERS, membership["id"])
            return "left"

    def remove_team_member(self, team_id: str, member_id: str, requested_by: str) -> None:
        """Captain-only removal of another member."""
        with self._conn() as conn:
            team = self._get(conn, TEAMS, team_id)
            if team is None:
                raise TeamNotFoundError(team_id)
            if team["createdBy"] != requested_by:
                raise PermissionDeniedError("Only team leader can remove members")
            member = self._get(conn, TEAM_MEMBERS, member_id)
            if member is None or member["teamId"] != team_id:
                raise NotFoundError("Team member not found")
            if member["userId"] == requested_by:
                raise ValidationError("Team leader cannot remove themselves; leave the team instead")
            self._delete(conn, TEAM_MEMBERS, member_id)

    def update_team(self, team_id: str, updates: Mapping[str, Any]) -> dict[str, Any] | None:
        allowed = {k: v for k, v in updates.items() if k in ("name", "image", "paymentStatus")}
        return self._update_record(TEAMS, team_id, allowed)

    def delete_team(self, team_id: str) -> bool:
        return self._delete_record(TEAMS, team_id)

    # ------------------------------------------------------------------
    # Weigh-ins
    # ------------------------------------------------------------------

    def create_leaderboard_entry(self, data: Mapping[str, Any]) -> dict[str, Any]:
        if not data.get("userId") and not data.get("teamId"):
            raise ValidationError("A weigh-in needs a userId or a teamId")
        now = utc_now()
        record = {
            "id": new_id(),
            "competitionId": data["competitionId"],
            "userId": data.get("userId"),
            "teamId": data.get("teamId"),
            "pegNumber": data.get("pegNumber"),
            "weight": str(data.get("weight", "0")),
            "position": data.get("position"),
            "createdAt": now,
            "updatedAt": now,
        }
        with self._conn() as conn:
            conn.execute("BEGIN IMMEDIATE")
            if self._get(conn, COMPETITIONS, record["competitionId"]) is None:
                raise CompetitionNotFoundError(record["competitionId"])
            seq = conn.execute("SELECT COALESCE(MAX(seq), 0) + 1 AS s FROM leaderboard_entries").fetchone()["s"]
            return self._insert(conn, LEADERBOARD, record, seq=seq)

    def get_leaderboard_entry(self, entry_id: str) -> dict[str, Any] | None:
        return self._get_record(LEADERBOARD, entry_id)

    def update_leaderboard_entry(self, entry_id: str, updates: Mapping[str, Any]) -> dict[str, Any] | None:
        changes = {k: v for k, v in updates.items() if k in ("pegNumber", "weight", "position", "userId", "teamId")}
        if "weight" in changes:
            changes["weight"] = str(changes["weight"])
        changes["updatedAt"] = utc_now()
        return self._update_record(LEADERBOARD, entry_id, changes)

    def delete_leaderboard_entry(self, entry_id: str) -> bool:
        return self._delete_record(LEADERBOARD, entry_id)

    def _competition_entries(self, competition_id: str) -> list[dict[str, Any]]:
        return self._list_records(LEADERBOARD, "competition_id = ?", (competition_id,), "seq ASC")

    def get_leaderboard(self, competition_id: str) -> list[dict[str, Any]]:
        """Ranked totals per angler, or per team in team competitions."""
        competition = self.require_competition(competition_id)
        key = "teamId" if competition.get("competitionMode") == "team" else "userId"
        entries = [entry for entry in self._competition_entries(competition_id) if entry.get(key)]
        return aggregate_leaderboard(entries, key=key)

    def get_user_leaderboard_entries(self, user_id: str) -> list[dict[str, Any]]:
        entries = self._list_records(LEADERBOARD, "user_id = ?", (user_id,), "seq ASC")
        return sorted(entries, key=lambda entry: weight_value(entry.get("weight")), reverse=True)

    def get_participant_entries(self, competition_id: str, user_id: str) -> list[dict[str, Any]]:
        return self._list_records(
            LEADERBOARD,
            "competition_id = ? AND user_id = ?",
            (competition_id, user_id),
            "seq DESC",
        )

    def get_team_entries(self, competition_id: str, team_id: str) -> list[dict[str, Any]]:
        return self._list_records(
            LEADERBOARD,
            "competition_id = ? AND team_id = ?",
            (competition_id, team_id),
            "seq DESC",
        )

    def get_user_finishing_positions(self, user_id: str) -> list[int]:
        """The angler's rank on each individual leaderboard they appear on."""
        with self._conn() as conn:
            rows = conn.execute(
                "SELECT DISTINCT competition_id FROM leaderboard_entries WHERE user_id = ?",
                (user_id,),
            ).fetchall()
        positions = []
        for row in rows:
            entries = [entry for entry in self._competition_entries(row["competition_id"]) if entry.get("userId")]
            for ranked in aggregate_leaderboard(entries, key="userId"):
                if ranked["userId"] == user_id:
                    positions.append(ranked["position"])
                    break
        return positions

    def get_angler_stats(self, user_id: str, *, include_matches: bool = False) -> dict[str, Any]:
        participations = len(self.get_user_participations(user_id)) if include_matches else None
        return angler_stats(
            self.get_user_leaderboard_entries(user_id),
            self.get_user_finishing_positions(user_id),
            participations,
        )

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    def record_payment(self, data: Mapping[str, Any]) -> dict[str, Any]:
        record = {
            "competitionId": data["competitionId"],
            "userId": data["userId"],
            "teamId": data.get("teamId"),
            "amount": int(data.get("amount") or 0),
            "currency": data.get("currency") or "gbp",
            "stripePaymentIntentId": data.get("stripePaymentIntentId"),
            "status": data.get("status") or "pending",
        }
        with self._conn() as conn:
            if self._get(conn, COMPETITIONS, record["competitionId"]) is None:
                raise CompetitionNotFoundError(record["competitionId"])
        return self._create_record(PAYMENTS, record)

    def get_user_payments(self, user_id: str) -> list[dict[str, Any]]:
        return self._list_records(PAYMENTS, "user_id = ?", (user_id,), "created_at DESC")

    def get_competition_payments(self, competition_id: str) -> list[dict[str, Any]]:
        return self._list_records(PAYMENTS, "competition_id = ?", (competition_id,), "created_at DESC")

    def has_succeeded_payment(self, competition_id: str, user_id: str) -> bool:
        with self._conn() as conn:
            row = conn.execute(
                "SELECT 1 FROM payments WHERE competition_id = ? AND user_id = ? AND status = 'succeeded'",
                (competition_id, user_id),
            ).fetchone()
            return row is not None

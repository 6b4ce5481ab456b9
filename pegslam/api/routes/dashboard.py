"""Headline numbers and recent activity for the admin dashboard."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Request, Response

from pegslam.api.dependencies import get_repo, require_staff, set_no_store
from pegslam.pegs import competition_status, uk_day_start, uk_month_start

router = APIRouter(prefix="/api/admin", tags=["dashboard"])

RECENT_PARTICIPATIONS_LIMIT = 10


def _joined_at(participation: dict) -> datetime | None:
    value = participation.get("joinedAt")
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@router.get("/dashboard/stats")
def dashboard_stats(request: Request, response: Response) -> dict:
    """
    Totals shown on the dashboard home page.

    ``totalRevenue`` is this month's bookings multiplied by each
    competition's entry fee; months and days are UK calendar ones.
    """
    require_staff(request)
    repo = get_repo(request)
    competitions = {c["id"]: c for c in repo.list_competitions()}
    participations = repo.list_all_participants()

    month_start = uk_month_start()
    day_start = uk_day_start()
    revenue = 0.0
    bookings_today = 0
    for participation in participations:
        joined = _joined_at(participation)
        if joined is None:
            continue
        if joined >= day_start:
            bookings_today += 1
        competition = competitions.get(participation["competitionId"])
        if joined >= month_start and competition:
            revenue += repo.entry_fee(competition)

    active = sum(1 for c in competitions.values() if competition_status(c) in ("live", "upcoming"))
    set_no_store(response)
    return {
        "totalAnglers": repo.count_users(),
        "activeCompetitions": active,
        "totalRevenue": f"£{revenue:.0f}",
        "bookingsToday": bookings_today,
    }


@router.get("/recent-participations")
def recent_participations(request: Request, response: Response) -> list[dict]:
    require_staff(request)
    repo = get_repo(request)
    recent = repo.list_all_participants()[:RECENT_PARTICIPATIONS_LIMIT]
    users = repo.get_users_by_ids([p["userId"] for p in recent])
    competitions = {c["id"]: c for c in repo.list_competitions()}

    rows = []
    for participation in recent:
        user = users.get(participation["userId"])
        competition = competitions.get(participation["competitionId"]) or {}
        rows.append(
            {
                "id": participation["id"],
                "anglerName": f"{user['firstName']} {user['lastName']}" if user else "Unknown",
                "competitionName": competition.get("name", "Unknown Competition"),
                "pegNumber": participation.get("pegNumber"),
                "joinedAt": participation.get("joinedAt"),
            }
        )
    set_no_store(response)
    return rows

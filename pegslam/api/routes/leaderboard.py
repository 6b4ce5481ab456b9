"""
Leaderboards and weigh-in management.

Weigh-ins are stored as a weight string. Readings given as pounds and
ounces (or as ``"X lb Y oz"``) are stored as total ounces so the leaderboard
can add them up.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request, Response

from pegslam.api.dependencies import get_repo, require_staff
from pegslam.api.models import LeaderboardEntryCreate, LeaderboardEntryUpdate
from pegslam.exceptions import NotFoundError, ValidationError
from pegslam.leaderboard import entries_total
from pegslam.logging_config import log_event
from pegslam.weights import convert_to_ounces, format_total, parse_weight

router = APIRouter(prefix="/api", tags=["leaderboard"])


def _stored_weight(weight: str | None, pounds: int | None, ounces: int | None) -> str | None:
    if pounds is not None or ounces is not None:
        return str(convert_to_ounces(pounds or 0, ounces or 0))
    if weight is None:
        return None
    weight = weight.strip()
    if "lb" in weight.lower():
        return str(parse_weight(weight))
    return weight


@router.get("/competitions/{competition_id}/leaderboard")
def competition_leaderboard(competition_id: str, request: Request, response: Response) -> list[dict]:
    """Ranked totals: one row per angler, or per team in team competitions."""
    repo = get_repo(request)
    competition = repo.require_competition(competition_id)
    ranked = repo.get_leaderboard(competition_id)
    response.headers["Cache-Control"] = "public, max-age=15"

    if competition.get("competitionMode") == "team":
        rows = []
        for row in ranked:
            team = repo.get_team(row["teamId"]) or {}
            rows.append(
                {
                    "position": row["position"],
                    "teamId": row["teamId"],
                    "teamName": team.get("name", "Unknown"),
                    "pegNumber": team.get("pegNumber") or row.get("pegNumber"),
                    "weight": row["weight"],
                    "weighInCount": row["weighInCount"],
                }
            )
        return rows

    users = repo.get_users_by_ids([row["userId"] for row in ranked])
    rows = []
    for row in ranked:
        user = users.get(row["userId"])
        rows.append(
            {
                "position": row["position"],
                "userId": row["userId"],
                "anglerName": f"{user['firstName']} {user['lastName']}" if user else "Unknown",
                "username": (user or {}).get("username", ""),
                "club": (user or {}).get("club") or "",
                "pegNumber": row.get("pegNumber"),
                "weight": row["weight"],
                "weighInCount": row["weighInCount"],
            }
        )
    return rows


@router.post("/admin/leaderboard", status_code=201)
def create_entry(payload: LeaderboardEntryCreate, request: Request) -> dict:
    staff = require_staff(request)
    weight = _stored_weight(payload.weight, payload.pounds, payload.ounces)
    if not weight:
        raise ValidationError("Either weight or pounds and ounces is required", field="weight")

    data = payload.record(partial=False)
    data.pop("pounds", None)
    data.pop("ounces", None)
    data["weight"] = weight
    entry = get_repo(request).create_leaderboard_entry(data)
    log_event(
        "weigh_in_recorded",
        entry_id=entry["id"],
        competition_id=entry["competitionId"],
        weight=weight,
        recorded_by=staff["id"],
    )
    return entry


@router.put("/admin/leaderboard/{entry_id}")
def update_entry(entry_id: str, payload: LeaderboardEntryUpdate, request: Request) -> dict:
    require_staff(request)
    updates: dict[str, Any] = payload.record()
    updates.pop("pounds", None)
    updates.pop("ounces", None)
    weight = _stored_weight(payload.weight, payload.pounds, payload.ounces)
    if weight is not None:
        updates["weight"] = weight

    entry = get_repo(request).update_leaderboard_entry(entry_id, updates)
    if entry is None:
        raise NotFoundError("Leaderboard entry not found", resource_id=entry_id)
    return entry


@router.delete("/admin/leaderboard/{entry_id}")
def delete_entry(entry_id: str, request: Request) -> dict:
    staff = require_staff(request)
    if not get_repo(request).delete_leaderboard_entry(entry_id):
        raise NotFoundError("Leaderboard entry not found", resource_id=entry_id)
    log_event("weigh_in_deleted", entry_id=entry_id, deleted_by=staff["id"])
    return {"message": "Leaderboard entry deleted successfully"}


@router.get("/admin/competitions/{competition_id}/participants/{user_id}/entries")
def participant_entries(competition_id: str, user_id: str, request: Request) -> dict:
    require_staff(request)
    entries = get_repo(request).get_participant_entries(competition_id, user_id)
    return {"entries": entries, "totalWeight": format_total(entries_total(entries))}


@router.get("/admin/competitions/{competition_id}/teams/{team_id}/entries")
def team_entries(competition_id: str, team_id: str, request: Request) -> dict:
    require_staff(request)
    entries = get_repo(request).get_team_entries(competition_id, team_id)
    return {"entries": entries, "totalWeight": format_total(entries_total(entries))}

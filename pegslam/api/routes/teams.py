"""
Teams for team-mode competitions.

The angler who creates a team is its captain and the only one who sees the
invite code. Others join with that code until the competition's
``maxTeamMembers`` is reached.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request, Response

from pegslam.api.dependencies import get_repo, require_staff, require_user, set_no_store
from pegslam.api.models import JoinTeamRequest, PegUpdate, TeamCreate
from pegslam.exceptions import NotFoundError, PermissionDeniedError, TeamNotFoundError
from pegslam.logging_config import log_event
from pegslam.repository import PegSlamRepo

router = APIRouter(prefix="/api", tags=["teams"])

_TEAM_FIELDS = ("id", "competitionId", "name", "image", "createdBy", "paymentStatus", "pegNumber", "createdAt")


def _full_name(user: dict[str, Any] | None) -> str:
    return f"{user['firstName']} {user['lastName']}" if user else "Unknown"


def _accepted(members: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [m for m in members if m.get("status") == "accepted"]


def _team_view(team: dict[str, Any], viewer_id: str) -> dict[str, Any]:
    view = {field: team.get(field) for field in _TEAM_FIELDS}
    if team["createdBy"] == viewer_id:
        view["inviteCode"] = team["inviteCode"]
    return view


def _member_rows(repo: PegSlamRepo, team: dict[str, Any], members: list[dict[str, Any]]) -> list[dict[str, Any]]:
    users = repo.get_users_by_ids([m["userId"] for m in members])
    rows = []
    for member in members:
        user = users.get(member["userId"])
        rows.append(
            {
                **member,
                "userName": _full_name(user),
                "username": (user or {}).get("username", ""),
                "avatar": (user or {}).get("avatar"),
                "isCaptain": member["userId"] == team["createdBy"],
            }
        )
    return rows


@router.post("/competitions/{competition_id}/teams", status_code=201)
def create_team(competition_id: str, payload: TeamCreate, request: Request) -> dict:
    user = require_user(request)
    team = get_repo(request).create_team(competition_id, user["id"], payload.name, payload.image)
    log_event("team_created", team_id=team["id"], competition_id=competition_id, user_id=user["id"])
    return team


@router.get("/competitions/{competition_id}/my-team")
def my_team(competition_id: str, request: Request, response: Response) -> dict:
    user = require_user(request)
    repo = get_repo(request)
    team = repo.get_user_team(user["id"], competition_id)
    if team is None:
        raise NotFoundError("You don't have a team for this competition", resource_id=competition_id)
    set_no_store(response)
    members = _accepted(repo.get_team_members(team["id"]))
    return {
        **_team_view(team, user["id"]),
        "members": _member_rows(repo, team, members),
        "isCaptain": team["createdBy"] == user["id"],
    }


@router.get("/competitions/{competition_id}/teams")
def competition_teams(competition_id: str, request: Request) -> list[dict]:
    repo = get_repo(request)
    repo.require_competition(competition_id)
    teams = repo.list_teams_by_competition(competition_id)
    creators = repo.get_users_by_ids([team["createdBy"] for team in teams])
    return [
        {
            **{field: team.get(field) for field in _TEAM_FIELDS},
            "memberCount": len(_accepted(repo.get_team_members(team["id"]))),
            "creatorName": _full_name(creators.get(team["createdBy"])),
        }
        for team in teams
    ]


@router.get("/teams/{team_id}")
def get_team(team_id: str, request: Request, response: Response) -> dict:
    """Team details for its members; the invite code is included for the captain only."""
    user = require_user(request)
    repo = get_repo(request)
    team = repo.get_team(team_id)
    if team is None:
        raise TeamNotFoundError(team_id)
    members = repo.get_team_members(team_id)
    if not any(m["userId"] == user["id"] for m in _accepted(members)):
        raise PermissionDeniedError("You are not a member of this team")
    set_no_store(response)
    return {**_team_view(team, user["id"]), "members": _member_rows(repo, team, members)}


@router.get("/user/teams")
def my_teams(request: Request, response: Response) -> list[dict]:
    user = require_user(request)
    repo = get_repo(request)
    set_no_store(response)
    rows = []
    for team in repo.get_user_teams(user["id"]):
        competition = repo.get_competition(team["competitionId"]) or {}
        rows.append(
            {
                **_team_view(team, user["id"]),
                "competitionName": competition.get("name", "Unknown Competition"),
                "competitionDate": competition.get("date", ""),
                "memberCount": len(_accepted(repo.get_team_members(team["id"]))),
                "maxMembers": competition.get("maxTeamMembers") or 0,
            }
        )
    return rows


@router.post("/teams/join")
def join_team(payload: JoinTeamRequest, request: Request) -> dict:
    user = require_user(request)
    member = get_repo(request).join_team(payload.invite_code, user["id"])
    log_event("team_joined", team_id=member["teamId"], user_id=user["id"])
    return {"message": "Successfully joined team", "member": member}


@router.delete("/teams/{team_id}/leave")
def leave_team(team_id: str, request: Request) -> dict:
    user = require_user(request)
    outcome = get_repo(request).leave_team(team_id, user["id"])
    log_event("team_left", team_id=team_id, user_id=user["id"], outcome=outcome)
    if outcome == "deleted":
        return {"message": "Team deleted successfully"}
    return {"message": "Left team successfully"}


@router.delete("/teams/{team_id}/members/{member_id}")
def remove_team_member(team_id: str, member_id: str, request: Request) -> dict:
    user = require_user(request)
    get_repo(request).remove_team_member(team_id, member_id, requested_by=user["id"])
    log_event("team_member_removed", team_id=team_id, member_id=member_id, removed_by=user["id"])
    return {"message": "Member removed successfully"}


@router.put("/admin/teams/{team_id}/peg")
def update_team_peg(team_id: str, payload: PegUpdate, request: Request) -> dict:
    require_staff(request)
    team = get_repo(request).update_team_peg(team_id, payload.peg_number)
    if team is None:
        raise TeamNotFoundError(team_id)
    return team

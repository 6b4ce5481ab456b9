"""
Competitions, peg bookings, the admin peg draw and the payment ledger.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request, Response

from pegslam.api.dependencies import get_repo, get_state, optional_user, require_staff, require_user, set_no_store
from pegslam.api.models import (
    AddParticipantRequest,
    AssignPegsRequest,
    CompetitionCreate,
    CompetitionUpdate,
    DrawPegsRequest,
    JoinCompetitionRequest,
    PaymentCreate,
    PegUpdate,
)
from pegslam.exceptions import (
    AnglerNotFoundError,
    CompetitionNotFoundError,
    NotFoundError,
    PaymentRequiredError,
    ValidationError,
)
from pegslam.logging_config import PerformanceTracker, log_event
from pegslam.pegs import PegAssignment, competition_status
from pegslam.repository import PegSlamRepo

router = APIRouter(prefix="/api", tags=["competitions"])


def _with_live_status(competition: dict[str, Any]) -> dict[str, Any]:
    return {**competition, "liveStatus": competition_status(competition)}


def _check_team_settings(competition: dict[str, Any]) -> None:
    if competition.get("competitionMode") == "team" and int(competition.get("maxTeamMembers") or 0) < 2:
        raise ValidationError("Team competitions need at least 2 members per team", field="maxTeamMembers")


def _participant_rows(repo: PegSlamRepo, competition: dict[str, Any]) -> list[dict[str, Any]]:
    """Entrants in join order: teams for team competitions, anglers otherwise."""
    if competition.get("competitionMode") == "team":
        teams = repo.list_teams_by_competition(competition["id"])
        captains = repo.get_users_by_ids([team["createdBy"] for team in teams])
        rows = []
        for team in teams:
            captain = captains.get(team["createdBy"], {})
            members = [m for m in repo.get_team_members(team["id"]) if m.get("status") == "accepted"]
            rows.append(
                {
                    "id": team["id"],
                    "userId": team["id"],
                    "pegNumber": team.get("pegNumber"),
                    "name": team["name"],
                    "username": captain.get("username", ""),
                    "club": captain.get("club") or "",
                    "avatar": captain.get("avatar") or "",
                    "joinedAt": team.get("createdAt"),
                    "memberCount": len(members),
                    "paymentStatus": team.get("paymentStatus"),
                    "isTeam": True,
                }
            )
        return rows

    participants = repo.get_competition_participants(competition["id"])
    users = repo.get_users_by_ids([p["userId"] for p in participants])
    rows = []
    for participant in participants:
        user = users.get(participant["userId"])
        rows.append(
            {
                "id": participant["id"],
                "userId": participant["userId"],
                "pegNumber": participant.get("pegNumber"),
                "name": f"{user['firstName']} {user['lastName']}" if user else "Unknown",
                "username": (user or {}).get("username", ""),
                "club": (user or {}).get("club") or "",
                "avatar": (user or {}).get("avatar") or "",
                "joinedAt": participant.get("joinedAt"),
                "isTeam": False,
            }
        )
    return rows


# =============================================================================
# Public
# =============================================================================


@router.get("/competitions")
def list_competitions(request: Request, response: Response) -> list[dict]:
    competitions = get_repo(request).list_competitions()
    request.state.result_count = len(competitions)
    response.headers["Cache-Control"] = "public, max-age=30"
    return [_with_live_status(c) for c in competitions]


@router.get("/competitions/{competition_id}")
def get_competition(competition_id: str, request: Request, response: Response) -> dict:
    competition = get_repo(request).require_competition(competition_id)
    response.headers["Cache-Control"] = "public, max-age=30"
    return _with_live_status(competition)


@router.get("/competitions/{competition_id}/participants")
def list_participants(competition_id: str, request: Request) -> list[dict]:
    repo = get_repo(request)
    return _participant_rows(repo, repo.require_competition(competition_id))


@router.get("/competitions/{competition_id}/available-pegs")
def available_pegs(competition_id: str, request: Request, response: Response) -> list[int]:
    set_no_store(response)
    return get_repo(request).get_available_pegs(competition_id)


# =============================================================================
# Signed-in angler
# =============================================================================


@router.post(
    "/competitions/{competition_id}/join",
    responses={
        402: {"description": "Entry fee not paid"},
        404: {"description": "Competition not found"},
        409: {"description": "Already joined, or peg not available"},
    },
)
def join_competition(competition_id: str, request: Request, payload: JoinCompetitionRequest | None = None) -> dict:
    user = require_user(request)
    state = get_state(request)
    repo = state.repo
    competition = repo.require_competition(competition_id)

    if (
        state.settings.enforce_entry_fees
        and repo.entry_fee(competition) > 0
        and not repo.has_succeeded_payment(competition_id, user["id"])
    ):
        raise PaymentRequiredError("Payment required. Please complete payment to join this competition.")

    peg_number = payload.peg_number if payload else None
    participant = repo.join_competition(competition_id, user["id"], peg_number)
    log_event(
        "competition_joined",
        competition_id=competition_id,
        user_id=user["id"],
        peg_number=participant["pegNumber"],
    )
    return participant


@router.delete("/competitions/{competition_id}/leave")
def leave_competition(competition_id: str, request: Request) -> dict:
    user = require_user(request)
    if not get_repo(request).leave_competition(competition_id, user["id"]):
        raise NotFoundError("Not in this competition", resource_id=competition_id)
    log_event("competition_left", competition_id=competition_id, user_id=user["id"])
    return {"message": "Left competition successfully"}


@router.get("/competitions/{competition_id}/is-joined")
def is_joined(competition_id: str, request: Request, response: Response) -> dict:
    set_no_store(response)
    user = optional_user(request)
    if user is None:
        return {"isJoined": False}
    return {"isJoined": get_repo(request).is_user_in_competition(competition_id, user["id"])}


# =============================================================================
# Admin
# =============================================================================


@router.get("/admin/competitions")
def admin_list_competitions(request: Request, response: Response) -> list[dict]:
    require_staff(request)
    set_no_store(response)
    return [_with_live_status(c) for c in get_repo(request).list_competitions()]


@router.post("/admin/competitions", status_code=201)
def create_competition(payload: CompetitionCreate, request: Request) -> dict:
    staff = require_staff(request)
    data = payload.record()
    _check_team_settings(data)
    competition = get_repo(request).create_competition(data)
    log_event("competition_created", competition_id=competition["id"], created_by=staff["id"])
    return competition


@router.put("/admin/competitions/{competition_id}")
def update_competition(competition_id: str, payload: CompetitionUpdate, request: Request) -> dict:
    require_staff(request)
    repo = get_repo(request)
    updates = payload.record()
    _check_team_settings({**repo.require_competition(competition_id), **updates})
    competition = repo.update_competition(competition_id, updates)
    if competition is None:
        raise CompetitionNotFoundError(competition_id)
    return competition


@router.delete("/admin/competitions/{competition_id}")
def delete_competition(competition_id: str, request: Request) -> dict:
    staff = require_staff(request)
    if not get_repo(request).delete_competition(competition_id):
        raise CompetitionNotFoundError(competition_id)
    log_event("competition_deleted", competition_id=competition_id, deleted_by=staff["id"])
    return {"message": "Competition deleted successfully"}


@router.post("/admin/competitions/{competition_id}/assign-pegs")
def assign_pegs(competition_id: str, payload: AssignPegsRequest, request: Request) -> dict:
    require_staff(request)
    assignments = [PegAssignment(a.participant_id, a.peg_number) for a in payload.assignments]
    updated = get_repo(request).assign_pegs(competition_id, assignments)
    log_event("pegs_assigned", competition_id=competition_id, updated=updated)
    return {"message": "Pegs assigned successfully", "updated": updated}


@router.post("/admin/competitions/{competition_id}/draw-pegs")
def draw_pegs(competition_id: str, request: Request, payload: DrawPegsRequest | None = None) -> dict:
    """Assign every entrant a peg in join order, either 1..N or by random draw."""
    require_staff(request)
    mode = payload.mode if payload else "sequential"
    with PerformanceTracker("peg_draw", competition_id=competition_id, mode=mode):
        assignments = get_repo(request).draw_competition_pegs(competition_id, mode)
    return {
        "message": "Pegs drawn successfully" if mode == "random" else "Pegs assigned successfully",
        "updated": len(assignments),
        "assignments": [a.to_dict() for a in assignments],
    }


@router.post("/admin/competitions/{competition_id}/participants", status_code=201)
def add_participant(competition_id: str, payload: AddParticipantRequest, request: Request) -> dict:
    """Book an angler onto a competition from the dashboard; entry fees are not checked."""
    staff = require_staff(request)
    repo = get_repo(request)
    if repo.get_user(payload.user_id) is None:
        raise AnglerNotFoundError(payload.user_id)
    participant = repo.join_competition(competition_id, payload.user_id, payload.peg_number)
    log_event(
        "participant_added",
        competition_id=competition_id,
        user_id=payload.user_id,
        peg_number=participant["pegNumber"],
        added_by=staff["id"],
    )
    return participant


@router.delete("/admin/participants/{participant_id}")
def remove_participant(participant_id: str, request: Request) -> dict:
    require_staff(request)
    if not get_repo(request).delete_participant(participant_id):
        raise NotFoundError("Participant not found", resource_id=participant_id)
    return {"message": "Participant removed successfully"}


@router.put("/admin/participants/{participant_id}/peg")
def update_participant_peg(participant_id: str, payload: PegUpdate, request: Request) -> dict:
    require_staff(request)
    participant = get_repo(request).update_participant_peg(participant_id, payload.peg_number)
    if participant is None:
        raise NotFoundError("Participant not found", resource_id=participant_id)
    return participant


@router.get("/admin/competitions/{competition_id}/payments")
def competition_payments(competition_id: str, request: Request, response: Response) -> list[dict]:
    require_staff(request)
    repo = get_repo(request)
    repo.require_competition(competition_id)
    set_no_store(response)
    return repo.get_competition_payments(competition_id)


@router.post("/admin/competitions/{competition_id}/payments", status_code=201)
def record_payment(competition_id: str, payload: PaymentCreate, request: Request) -> dict:
    """Record an offline payment (cash on the bank, bank transfer) against a booking."""
    staff = require_staff(request)
    repo = get_repo(request)
    if repo.get_user(payload.user_id) is None:
        raise AnglerNotFoundError(payload.user_id)
    payment = repo.record_payment({**payload.record(partial=False), "competitionId": competition_id})
    log_event(
        "payment_recorded",
        competition_id=competition_id,
        user_id=payload.user_id,
        status=payment["status"],
        recorded_by=staff["id"],
    )
    return payment

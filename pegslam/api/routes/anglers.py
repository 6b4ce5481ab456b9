"""
Angler directory, public profiles, self-service profile and admin angler management.
"""

from __future__ import annotations

import math
from typing import Any, Literal

from fastapi import APIRouter, Query, Request, Response

from pegslam.api.dependencies import get_repo, public_user, require_staff, require_user, set_no_store
from pegslam.api.models import (
    AnglerCreate,
    AnglerStatusUpdate,
    AnglerUpdate,
    PasswordChangeRequest,
    ProfileUpdate,
    UserGalleryPhotoCreate,
)
from pegslam.exceptions import AnglerNotFoundError, AuthenticationError, NotFoundError, ValidationError
from pegslam.logging_config import log_event
from pegslam.repository import PegSlamRepo
from pegslam.security import (
    hash_password,
    validate_email,
    validate_password,
    validate_search_input,
    validate_username,
    verify_password,
)

router = APIRouter(prefix="/api", tags=["anglers"])

# Never shown in the public directory
_DIRECTORY_HIDDEN = ("email", "emailVerified", "mobileNumber", "dateOfBirth")


def _user_by_username(repo: PegSlamRepo, username: str) -> dict[str, Any]:
    user = repo.get_user_by_username(username)
    if user is None:
        raise NotFoundError("User not found", resource_id=username)
    return user


def _with_competitions(repo: PegSlamRepo, participations: list[dict]) -> list[dict]:
    return [{**p, "competition": repo.get_competition(p["competitionId"])} for p in participations]


def _normalise_account_fields(updates: dict[str, Any]) -> dict[str, Any]:
    if updates.get("email"):
        updates["email"] = validate_email(updates["email"])
    if updates.get("username"):
        updates["username"] = validate_username(updates["username"])
    if updates.get("password"):
        updates["password"] = hash_password(validate_password(updates["password"]))
    return updates


# =============================================================================
# Public directory and profiles
# =============================================================================


@router.get("/anglers")
def list_anglers(
    request: Request,
    response: Response,
    search: str | None = Query(default=None, max_length=100),
    sort_by: Literal["name", "memberSince", "club"] = Query(default="name", alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query(default="asc", alias="sortOrder"),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100, alias="pageSize"),
) -> dict:
    total, items = get_repo(request).list_anglers(
        search=validate_search_input(search),
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        page_size=page_size,
    )
    request.state.result_count = len(items)
    response.headers["Cache-Control"] = "public, max-age=60"
    data = []
    for user in items:
        row = public_user(user)
        for field in _DIRECTORY_HIDDEN:
            row.pop(field, None)
        data.append(row)
    return {
        "data": data,
        "total": total,
        "page": page,
        "pageSize": page_size,
        "totalPages": math.ceil(total / page_size),
    }


@router.get("/users/{username}")
def get_angler_profile(username: str, request: Request) -> dict:
    return public_user(_user_by_username(get_repo(request), username), include_email=False)


@router.get("/users/{username}/stats")
def get_angler_stats(username: str, request: Request) -> dict:
    repo = get_repo(request)
    return repo.get_angler_stats(_user_by_username(repo, username)["id"])


@router.get("/users/{username}/participations")
def get_angler_participations(username: str, request: Request) -> list[dict]:
    repo = get_repo(request)
    user = _user_by_username(repo, username)
    return _with_competitions(repo, repo.get_user_participations(user["id"]))


@router.get("/users/{username}/gallery")
def get_angler_gallery(username: str, request: Request) -> list[dict]:
    repo = get_repo(request)
    return repo.list_user_gallery_photos(_user_by_username(repo, username)["id"])


# =============================================================================
# Signed-in angler
# =============================================================================


@router.get("/user/participations")
def my_participations(request: Request, response: Response) -> list[dict]:
    user = require_user(request)
    repo = get_repo(request)
    set_no_store(response)
    return _with_competitions(repo, repo.get_user_participations(user["id"]))


@router.get("/user/stats")
def my_stats(request: Request, response: Response) -> dict:
    user = require_user(request)
    set_no_store(response)
    return get_repo(request).get_angler_stats(user["id"])


@router.put("/user/profile")
def update_my_profile(payload: ProfileUpdate, request: Request) -> dict:
    user = require_user(request)
    updates = payload.record()
    if not updates:
        raise ValidationError("At least one field must be provided")
    updated = get_repo(request).update_user(user["id"], updates)
    if updated is None:
        raise AnglerNotFoundError(user["id"])
    return public_user(updated)


@router.put("/user/password")
def change_my_password(payload: PasswordChangeRequest, request: Request) -> dict:
    user = require_user(request)
    validate_password(payload.new_password, payload.confirm_password)
    if not verify_password(payload.current_password, user.get("password")):
        raise AuthenticationError("Current password is incorrect")
    get_repo(request).set_user_password(user["id"], hash_password(payload.new_password))
    log_event("password_changed", user_id=user["id"])
    return {"message": "Password updated successfully"}


@router.get("/user/gallery")
def my_gallery(request: Request, response: Response) -> list[dict]:
    user = require_user(request)
    set_no_store(response)
    return get_repo(request).list_user_gallery_photos(user["id"])


@router.post("/user/gallery", status_code=201)
def add_gallery_photo(payload: UserGalleryPhotoCreate, request: Request) -> dict:
    user = require_user(request)
    return get_repo(request).add_user_gallery_photo(user["id"], payload.url, payload.caption)


@router.delete("/user/gallery/{photo_id}")
def delete_gallery_photo(photo_id: str, request: Request) -> dict:
    user = require_user(request)
    if not get_repo(request).delete_user_gallery_photo(photo_id, user["id"]):
        raise NotFoundError("Photo not found", resource_id=photo_id)
    return {"message": "Photo deleted successfully"}


# =============================================================================
# Admin
# =============================================================================


@router.get("/admin/anglers")
def admin_list_anglers(request: Request, response: Response) -> list[dict]:
    require_staff(request)
    set_no_store(response)
    return [public_user(user) for user in get_repo(request).list_users()]


@router.post("/admin/anglers", status_code=201)
def admin_create_angler(payload: AnglerCreate, request: Request) -> dict:
    staff = require_staff(request)
    data = _normalise_account_fields(payload.record(partial=False))
    # Staff-created accounts skip email verification
    data["emailVerified"] = True
    user = get_repo(request).create_user(data)
    log_event("angler_created", user_id=user["id"], created_by=staff["id"])
    return public_user(user)


@router.put("/admin/anglers/{user_id}")
def admin_update_angler(user_id: str, payload: AnglerUpdate, request: Request) -> dict:
    require_staff(request)
    updates = _normalise_account_fields(payload.record())
    user = get_repo(request).update_user(user_id, updates)
    if user is None:
        raise AnglerNotFoundError(user_id)
    return public_user(user)


@router.delete("/admin/anglers/{user_id}")
def admin_delete_angler(user_id: str, request: Request) -> dict:
    staff = require_staff(request)
    if not get_repo(request).delete_user(user_id):
        raise AnglerNotFoundError(user_id)
    log_event("angler_deleted", user_id=user_id, deleted_by=staff["id"])
    return {"message": "Angler deleted successfully"}


@router.patch("/admin/anglers/{user_id}/status")
def admin_update_angler_status(user_id: str, payload: AnglerStatusUpdate, request: Request) -> dict:
    staff = require_staff(request)
    user = get_repo(request).update_user_status(user_id, payload.status)
    if user is None:
        raise AnglerNotFoundError(user_id)
    log_event("angler_status_changed", user_id=user_id, status=payload.status, changed_by=staff["id"])
    return public_user(user)


@router.get("/admin/anglers/{user_id}/stats")
def admin_angler_stats(user_id: str, request: Request) -> dict:
    require_staff(request)
    repo = get_repo(request)
    if repo.get_user(user_id) is None:
        raise AnglerNotFoundError(user_id)
    return repo.get_angler_stats(user_id, include_matches=True)


@router.get("/admin/anglers/{user_id}/participations")
def admin_angler_participations(user_id: str, request: Request) -> list[dict]:
    """One row per booking with the angler's final position and total weight, or ``"-"``."""
    require_staff(request)
    repo = get_repo(request)
    if repo.get_user(user_id) is None:
        raise AnglerNotFoundError(user_id)

    rows = []
    for participation in repo.get_user_participations(user_id):
        competition = repo.get_competition(participation["competitionId"]) or {}
        standing: dict[str, Any] = {}
        if competition and competition.get("competitionMode") != "team":
            standing = next(
                (row for row in repo.get_leaderboard(competition["id"]) if row.get("userId") == user_id),
                {},
            )
        rows.append(
            {
                "competitionId": participation["competitionId"],
                "competitionName": competition.get("name", "Unknown"),
                "date": competition.get("date", "-"),
                "venue": competition.get("venue", "-"),
                "pegNumber": participation.get("pegNumber") or "-",
                "position": standing.get("position") or "-",
                "weight": standing.get("weight") or "-",
            }
        )
    return rows

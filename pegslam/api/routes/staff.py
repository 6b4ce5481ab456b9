"""
Staff account management (admin role only, except password changes).
"""

from __future__ import annotations

from fastapi import APIRouter, Request, Response

from pegslam.api.dependencies import get_repo, require_admin, require_staff, set_no_store
from pegslam.api.models import PasswordChangeRequest, StaffCreate, StaffUpdate
from pegslam.exceptions import AuthenticationError, NotFoundError, PermissionDeniedError
from pegslam.logging_config import log_event
from pegslam.security import hash_password, validate_email, validate_password, verify_password

router = APIRouter(prefix="/api/admin/staff", tags=["staff"])

_STAFF_FIELDS = ("id", "email", "firstName", "lastName", "role", "isActive", "createdAt")


def _staff_row(staff: dict) -> dict:
    return {field: staff.get(field) for field in _STAFF_FIELDS}


@router.get("")
def list_staff(request: Request, response: Response) -> list[dict]:
    require_admin(request)
    set_no_store(response)
    return [_staff_row(staff) for staff in get_repo(request).list_staff()]


@router.post("", status_code=201)
def create_staff(payload: StaffCreate, request: Request) -> dict:
    admin = require_admin(request)
    data = payload.record(partial=False)
    data["email"] = validate_email(payload.email)
    data["password"] = hash_password(payload.password)
    staff = get_repo(request).create_staff(data)
    log_event("staff_created", staff_id=staff["id"], role=staff["role"], created_by=admin["id"])
    return _staff_row(staff)


@router.put("/{staff_id}")
def update_staff(staff_id: str, payload: StaffUpdate, request: Request) -> dict:
    admin = require_admin(request)
    updates = payload.record()
    if staff_id == admin["id"] and updates.get("role") and updates["role"] != admin["role"]:
        raise PermissionDeniedError("Cannot change your own role")
    if updates.get("email"):
        updates["email"] = validate_email(updates["email"])

    staff = get_repo(request).update_staff(staff_id, updates)
    if staff is None:
        raise NotFoundError("Staff member not found", resource_id=staff_id)
    return _staff_row(staff)


@router.post("/{staff_id}/password")
def change_staff_password(staff_id: str, payload: PasswordChangeRequest, request: Request) -> dict:
    """
    Change a staff password.

    Anyone may change their own (current password required); admins may
    also reset another staff member's.
    """
    caller = require_staff(request)
    if staff_id != caller["id"] and caller.get("role") != "admin":
        raise PermissionDeniedError("Access denied")
    validate_password(payload.new_password, payload.confirm_password)

    repo = get_repo(request)
    staff = repo.get_staff(staff_id)
    if staff is None:
        raise NotFoundError("Staff member not found", resource_id=staff_id)
    if staff_id == caller["id"] and not verify_password(payload.current_password, staff.get("password")):
        raise AuthenticationError("Current password is incorrect")

    repo.update_staff_password(staff_id, hash_password(payload.new_password))
    log_event("staff_password_changed", staff_id=staff_id, changed_by=caller["id"])
    return {"message": "Password updated successfully"}


@router.delete("/{staff_id}")
def delete_staff(staff_id: str, request: Request) -> dict:
    admin = require_admin(request)
    if staff_id == admin["id"]:
        raise PermissionDeniedError("Cannot delete your own account")
    if not get_repo(request).delete_staff(staff_id):
        raise NotFoundError("Staff member not found", resource_id=staff_id)
    log_event("staff_deleted", staff_id=staff_id, deleted_by=admin["id"])
    return {"message": "Staff member deleted successfully"}

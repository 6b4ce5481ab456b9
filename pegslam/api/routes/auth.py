"""
Login, registration and account recovery for anglers and staff.

Both principal kinds log in to a server-side session. The session token is
set as an HTTP-only cookie for the web dashboard and also returned in the
body as ``token`` for the mobile app's ``Authorization: Bearer`` header.
"""

from __future__ import annotations

from fastapi import APIRouter, Query, Request, Response

from pegslam.api.dependencies import (
    end_session,
    enforce_rate_limit,
    get_repo,
    get_state,
    public_user,
    require_staff,
    require_user,
    set_no_store,
    start_session,
)
from pegslam.api.models import (
    ContactRequest,
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResendVerificationRequest,
    ResetPasswordRequest,
    StaffProfileUpdate,
)
from pegslam.exceptions import (
    AuthenticationError,
    EmailDeliveryError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from pegslam.logging_config import LogLevel, log_event
from pegslam.security import (
    generate_token,
    hash_password,
    validate_email,
    validate_password,
    validate_username,
    verify_password,
)

router = APIRouter(prefix="/api", tags=["auth"])

_FORGOT_PASSWORD_MESSAGE = "If an account exists with this email, you will receive password reset instructions."
_RESEND_MESSAGE = "If an account exists with this email, a verification email will be sent."


def _staff_view(staff: dict) -> dict:
    return {
        "id": staff["id"],
        "email": staff["email"],
        "firstName": staff.get("firstName"),
        "lastName": staff.get("lastName"),
        "role": staff.get("role"),
    }


def _send_verification(request: Request, user: dict) -> None:
    state = get_state(request)
    token = generate_token()
    state.repo.set_verification_token(user["id"], token)
    state.mailer.send_verification(user["email"], token, user.get("firstName"))


# =============================================================================
# Staff
# =============================================================================


@router.post(
    "/admin/login",
    responses={401: {"description": "Invalid email or password"}, 403: {"description": "Account is inactive"}},
)
def admin_login(payload: LoginRequest, request: Request, response: Response) -> dict:
    enforce_rate_limit(request, "staff_login")
    repo = get_repo(request)
    staff = repo.get_staff_by_email(payload.email)
    if staff is None or not verify_password(payload.password, staff.get("password")):
        log_event("login_failed", level=LogLevel.WARNING, kind="staff")
        raise AuthenticationError("Invalid email or password")
    if not staff.get("isActive", True):
        raise PermissionDeniedError("Account is inactive")

    token = start_session(request, response, "staff", staff["id"])
    log_event("login_succeeded", kind="staff", role=staff.get("role"))
    set_no_store(response)
    return {**_staff_view(staff), "token": token}


@router.post("/admin/logout")
def admin_logout(request: Request, response: Response) -> dict:
    end_session(request, response)
    return {"message": "Logged out successfully"}


@router.get("/admin/me")
def admin_me(request: Request, response: Response) -> dict:
    staff = require_staff(request)
    set_no_store(response)
    return _staff_view(staff)


@router.put("/admin/profile")
def update_admin_profile(payload: StaffProfileUpdate, request: Request, response: Response) -> dict:
    """Update the signed-in staff member's name, email and (with the current password) password."""
    staff = require_staff(request)
    repo = get_repo(request)

    updates: dict = {}
    if payload.email:
        updates["email"] = validate_email(payload.email)
    if payload.name:
        first, _, last = payload.name.strip().partition(" ")
        updates["firstName"] = first
        updates["lastName"] = last.strip()
    if payload.first_name:
        updates["firstName"] = payload.first_name.strip()
    if payload.last_name:
        updates["lastName"] = payload.last_name.strip()
    if payload.new_password:
        if not payload.current_password or not verify_password(payload.current_password, staff.get("password")):
            raise AuthenticationError("Current password is incorrect")
        updates["password"] = hash_password(payload.new_password)

    updated = repo.update_staff(staff["id"], updates)
    if updated is None:
        raise NotFoundError("Staff member not found")
    set_no_store(response)
    return _staff_view(updated)


# =============================================================================
# Anglers
# =============================================================================


@router.post(
    "/user/register",
    responses={400: {"description": "Invalid data, email already registered or username taken"}},
)
def register(payload: RegisterRequest, request: Request, response: Response) -> dict:
    repo = get_repo(request)
    email = validate_email(payload.email)
    username = validate_username(payload.username)
    validate_password(payload.password)

    user = repo.create_user(
        {
            "firstName": payload.first_name.strip(),
            "lastName": payload.last_name.strip(),
            "email": email,
            "username": username,
            "club": payload.club,
            "password": hash_password(payload.password),
            "emailVerified": False,
        }
    )
    log_event("angler_registered", user_id=user["id"])

    try:
        _send_verification(request, user)
    except EmailDeliveryError as exc:
        # Registration stands; the angler can ask for a new link.
        log_event("verification_email_failed", level=LogLevel.WARNING, user_id=user["id"], detail=exc.detail)

    set_no_store(response)
    return {
        "message": "Registration successful! Please check your email to verify your account.",
        "email": user["email"],
    }


@router.post(
    "/user/login",
    responses={
        401: {"description": "Invalid email or password"},
        403: {"description": "Blocked, or email not verified (emailNotVerified: true)"},
    },
)
def user_login(payload: LoginRequest, request: Request, response: Response) -> dict:
    enforce_rate_limit(request, "login")
    repo = get_repo(request)
    user = repo.get_user_by_email(payload.email)
    if user is None or not verify_password(payload.password, user.get("password")):
        log_event("login_failed", level=LogLevel.WARNING, kind="user")
        raise AuthenticationError("Invalid email or password")
    if user.get("status") == "blocked":
        raise PermissionDeniedError("Your account has been blocked")
    if user.get("emailVerified") is False:
        raise PermissionDeniedError(
            "Please verify your email address before logging in. Check your inbox for the verification link.",
            extra={"emailNotVerified": True},
        )

    token = start_session(request, response, "user", user["id"])
    log_event("login_succeeded", kind="user")
    set_no_store(response)
    return {
        "id": user["id"],
        "firstName": user.get("firstName"),
        "lastName": user.get("lastName"),
        "email": user["email"],
        "username": user["username"],
        "club": user.get("club"),
        "status": user.get("status"),
        "token": token,
    }


@router.post("/user/logout")
def user_logout(request: Request, response: Response) -> dict:
    end_session(request, response)
    return {"message": "Logged out successfully"}


@router.get("/user/me")
def user_me(request: Request, response: Response) -> dict:
    user = require_user(request)
    set_no_store(response)
    return public_user(user)


@router.post("/auth/forgot-password")
def forgot_password(payload: ForgotPasswordRequest, request: Request) -> dict:
    """Email a reset link. The answer is the same whether or not the account exists."""
    enforce_rate_limit(request, "password_reset")
    state = get_state(request)
    email = validate_email(payload.email)
    user = state.repo.get_user_by_email(email)
    if user is None:
        return {"message": _FORGOT_PASSWORD_MESSAGE}

    token = generate_token()
    state.repo.set_reset_token(user["id"], token)
    name = f"{user.get('firstName', '')} {user.get('lastName', '')}".strip() or None
    try:
        state.mailer.send_password_reset(user["email"], token, name)
    except EmailDeliveryError as exc:
        raise EmailDeliveryError(
            "Failed to send password reset email. Please try again later.",
            status_code=exc.status_code,
            detail=exc.detail,
        ) from exc
    log_event("password_reset_requested", user_id=user["id"])
    return {"message": _FORGOT_PASSWORD_MESSAGE}


@router.post("/auth/reset-password")
def reset_password(payload: ResetPasswordRequest, request: Request) -> dict:
    repo = get_repo(request)
    validate_password(payload.password, payload.confirm_password)
    user = repo.get_user_by_reset_token(payload.token)
    if user is None:
        raise ValidationError("Invalid or expired reset token", field="token")
    repo.reset_password(user["id"], hash_password(payload.password))
    log_event("password_reset_completed", user_id=user["id"])
    return {"message": "Password has been reset successfully. You can now login with your new password."}


@router.get("/verify-email")
def verify_email(request: Request, token: str = Query(default="", max_length=200)) -> dict:
    if not token:
        raise ValidationError("Invalid verification token", field="token")
    repo = get_repo(request)
    user = repo.get_user_by_verification_token(token)
    if user is None or repo.token_expired(user.get("verificationTokenExpiry")):
        raise ValidationError("Invalid or expired verification token", field="token")
    repo.verify_user_email(user["id"])
    log_event("email_verified", user_id=user["id"])
    return {"message": "Email verified successfully! You can now login to your account.", "success": True}


@router.post("/resend-verification")
def resend_verification(payload: ResendVerificationRequest, request: Request) -> dict:
    enforce_rate_limit(request, "resend_verification")
    if not payload.email.strip():
        raise ValidationError("Email is required", field="email")
    user = get_repo(request).get_user_by_email(payload.email)
    if user is None:
        return {"message": _RESEND_MESSAGE}
    if user.get("emailVerified"):
        raise ValidationError("Email is already verified", field="email")
    try:
        _send_verification(request, user)
    except EmailDeliveryError as exc:
        raise EmailDeliveryError(
            "Failed to send verification email. Please try again later.",
            status_code=exc.status_code,
            detail=exc.detail,
        ) from exc
    return {"message": _RESEND_MESSAGE}


@router.post("/contact")
def contact(payload: ContactRequest, request: Request) -> dict:
    enforce_rate_limit(request, "contact")
    form = payload.record(partial=False)
    if not all(str(value).strip() for value in form.values()):
        raise ValidationError("All fields are required")
    form["email"] = validate_email(form["email"])
    get_state(request).mailer.send_contact(form)
    log_event("contact_form_submitted")
    return {"message": "Thank you for contacting us. We'll get back to you soon!"}

"""
API tests for sign-in, registration, account recovery and staff management.
"""

from fastapi.testclient import TestClient

from pegslam.api import create_app
from pegslam.security import RateLimitConfig, SQLiteRateLimiter

NEW_ANGLER_PASSWORD = "tight-lines"


def _register(client, **overrides):
    body = {
        "firstName": "Jane",
        "lastName": "Carp",
        "email": "Jane@Example.com",
        "username": "jane_carp",
        "password": NEW_ANGLER_PASSWORD,
        **overrides,
    }
    return client.post("/api/user/register", json=body)


class TestRegistration:
    def test_register_sends_verification_and_blocks_login(self, client, mailer):
        """New accounts must verify their email before logging in."""
        resp = _register(client)
        assert resp.status_code == 200
        assert resp.json()["email"] == "jane@example.com"
        assert mailer.sent[-1]["kind"] == "verification"

        resp = client.post("/api/user/login", json={"email": "jane@example.com", "password": NEW_ANGLER_PASSWORD})
        assert resp.status_code == 403
        assert resp.json()["emailNotVerified"] is True

    def test_verify_then_login(self, client, mailer):
        _register(client)
        token = mailer.last_token("verification")

        resp = client.get("/api/verify-email", params={"token": token})
        assert resp.status_code == 200
        assert resp.json()["success"] is True

        resp = client.post("/api/user/login", json={"email": "JANE@example.com", "password": NEW_ANGLER_PASSWORD})
        assert resp.status_code == 200
        body = resp.json()
        assert body["username"] == "jane_carp"
        assert "password" not in body
        assert resp.headers["cache-control"] == "no-store"

        me = client.get("/api/user/me")
        assert me.status_code == 200
        assert me.json()["email"] == "jane@example.com"
        client.cookies.clear()

    def test_bearer_token_from_login_body(self, client, mailer):
        """The mobile app sends the returned token as a Bearer header."""
        _register(client)
        client.get("/api/verify-email", params={"token": mailer.last_token("verification")})
        login = {"email": "jane@example.com", "password": NEW_ANGLER_PASSWORD}
        token = client.post("/api/user/login", json=login).json()["token"]
        client.cookies.clear()

        resp = client.get("/api/user/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 200

    def test_bad_verification_token(self, client):
        assert client.get("/api/verify-email", params={"token": "nope"}).status_code == 400
        assert client.get("/api/verify-email").status_code == 400

    def test_duplicate_registration(self, client, make_angler):
        make_angler("jane_carp", email="jane@example.com")
        resp = _register(client)
        assert resp.status_code == 400
        assert resp.json()["message"] == "Email already registered"

        resp = _register(client, email="other@example.com")
        assert resp.status_code == 400
        assert resp.json()["message"] == "Username already taken"

    def test_invalid_fields(self, client):
        assert _register(client, username="jc").json()["message"] == "Username must be at least 3 characters"
        assert _register(client, password="short").json()["message"] == "Password must be at least 6 characters"
        assert _register(client, email="nope").json()["message"] == "Invalid email address"

    def test_missing_field_is_400(self, client):
        resp = client.post("/api/user/register", json={"email": "x@example.com"})
        assert resp.status_code == 400
        assert resp.json()["message"] == "Invalid data"

    def test_resend_verification(self, client, mailer):
        _register(client)
        before = len(mailer.sent)
        resp = client.post("/api/resend-verification", json={"email": "jane@example.com"})
        assert resp.status_code == 200
        assert len(mailer.sent) == before + 1

        # Unknown addresses get the same answer and no email.
        resp = client.post("/api/resend-verification", json={"email": "ghost@example.com"})
        assert resp.status_code == 200
        assert len(mailer.sent) == before + 1


class TestLogin:
    def test_wrong_password(self, client, make_angler):
        make_angler()
        resp = client.post("/api/user/login", json={"email": "jane_carp@example.com", "password": "wrong!"})
        assert resp.status_code == 401
        assert resp.json()["message"] == "Invalid email or password"

    def test_blocked_angler(self, client, make_angler, password):
        angler = make_angler(status="blocked")
        resp = client.post("/api/user/login", json={"email": angler["email"], "password": password})
        assert resp.status_code == 403
        assert resp.json()["message"] == "Your account has been blocked"
        assert client.get("/api/user/me", headers=angler["headers"]).status_code == 403

    def test_logout_ends_session(self, client, make_angler):
        angler = make_angler()
        assert client.post("/api/user/logout", headers=angler["headers"]).status_code == 200
        assert client.get("/api/user/me", headers=angler["headers"]).status_code == 401

    def test_me_requires_session(self, client):
        assert client.get("/api/user/me").status_code == 401

    def test_login_is_rate_limited(self, settings, mailer, tmp_path):
        limiter = SQLiteRateLimiter(tmp_path / "strict.db", RateLimitConfig(requests_per_window=2))
        client = TestClient(create_app(settings=settings, mailer=mailer, rate_limiter=limiter))
        body = {"email": "nobody@example.com", "password": "whatever"}
        assert client.post("/api/user/login", json=body).status_code == 401
        assert client.post("/api/user/login", json=body).status_code == 401
        resp = client.post("/api/user/login", json=body)
        assert resp.status_code == 429
        assert int(resp.headers["retry-after"]) >= 1


class TestPasswordReset:
    def test_forgot_and_reset(self, client, make_angler, mailer):
        angler = make_angler()
        resp = client.post("/api/auth/forgot-password", json={"email": angler["email"]})
        assert resp.status_code == 200
        token = mailer.last_token("password_reset")

        resp = client.post(
            "/api/auth/reset-password",
            json={"token": token, "password": "brand-new", "confirmPassword": "brand-new"},
        )
        assert resp.status_code == 200

        resp = client.post("/api/user/login", json={"email": angler["email"], "password": "brand-new"})
        assert resp.status_code == 200
        client.cookies.clear()

        # Tokens are single use.
        resp = client.post(
            "/api/auth/reset-password",
            json={"token": token, "password": "again!!", "confirmPassword": "again!!"},
        )
        assert resp.status_code == 400

    def test_unknown_email_gets_same_answer(self, client, make_angler, mailer):
        make_angler()
        known = client.post("/api/auth/forgot-password", json={"email": "jane_carp@example.com"}).json()
        unknown = client.post("/api/auth/forgot-password", json={"email": "ghost@example.com"}).json()
        assert known == unknown
        assert len(mailer.sent) == 1

    def test_mismatched_confirmation(self, client):
        resp = client.post(
            "/api/auth/reset-password",
            json={"token": "t", "password": "abcdef", "confirmPassword": "abcdeg"},
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == "Passwords don't match"


class TestContact:
    def test_contact_form_emails_the_office(self, client, mailer):
        resp = client.post(
            "/api/contact",
            json={
                "firstName": "Jane",
                "lastName": "Carp",
                "email": "jane@example.com",
                "mobileNumber": "07700900000",
                "comment": "When is the next match?",
            },
        )
        assert resp.status_code == 200
        assert mailer.sent[-1]["kind"] == "contact"
        assert mailer.sent[-1]["reply_to"] == "jane@example.com"

    def test_all_fields_required(self, client):
        resp = client.post("/api/contact", json={"firstName": "Jane"})
        assert resp.status_code == 400
        assert resp.json()["message"] == "All fields are required"


class TestStaffAuth:
    def test_staff_login_and_me(self, client, admin, password):
        resp = client.post("/api/admin/login", json={"email": "ADMIN@pegslam.co.uk", "password": password})
        assert resp.status_code == 200
        assert resp.json()["role"] == "admin"
        client.cookies.clear()

        me = client.get("/api/admin/me", headers=admin["headers"])
        assert me.json()["email"] == "admin@pegslam.co.uk"
        assert "password" not in me.json()

    def test_inactive_staff(self, client, make_staff, password):
        make_staff("old@pegslam.co.uk", isActive=False)
        resp = client.post("/api/admin/login", json={"email": "old@pegslam.co.uk", "password": password})
        assert resp.status_code == 403

    def test_angler_session_is_not_staff(self, client, make_angler):
        angler = make_angler()
        assert client.get("/api/admin/me", headers=angler["headers"]).status_code == 401

    def test_update_own_profile(self, client, admin):
        resp = client.put("/api/admin/profile", json={"name": "Samuel Reed Jr"}, headers=admin["headers"])
        assert resp.json()["firstName"] == "Samuel"
        assert resp.json()["lastName"] == "Reed Jr"

        resp = client.put(
            "/api/admin/profile",
            json={"currentPassword": "wrong", "newPassword": "another1"},
            headers=admin["headers"],
        )
        assert resp.status_code == 401


class TestStaffManagement:
    def test_admin_creates_and_lists_staff(self, client, admin):
        resp = client.post(
            "/api/admin/staff",
            json={"email": "Marsh@pegslam.co.uk", "password": "marshal1", "firstName": "Mo", "lastName": "Lee"},
            headers=admin["headers"],
        )
        assert resp.status_code == 201
        assert resp.json()["role"] == "marshal"
        assert resp.json()["email"] == "marsh@pegslam.co.uk"

        listed = client.get("/api/admin/staff", headers=admin["headers"]).json()
        assert {s["email"] for s in listed} == {"admin@pegslam.co.uk", "marsh@pegslam.co.uk"}
        assert all("password" not in s for s in listed)

    def test_only_admins_manage_staff(self, client, make_staff):
        marshal = make_staff("marsh@pegslam.co.uk", role="marshal")
        resp = client.get("/api/admin/staff", headers=marshal["headers"])
        assert resp.status_code == 403
        assert resp.json()["message"] == "Admin access required"

    def test_admin_cannot_demote_or_delete_self(self, client, admin):
        resp = client.put(f"/api/admin/staff/{admin['id']}", json={"role": "marshal"}, headers=admin["headers"])
        assert resp.status_code == 403
        resp = client.delete(f"/api/admin/staff/{admin['id']}", headers=admin["headers"])
        assert resp.status_code == 403

    def test_password_changes(self, client, admin, make_staff):
        marshal = make_staff("marsh@pegslam.co.uk", role="marshal")
        body = {"newPassword": "fresh-pass", "confirmPassword": "fresh-pass"}

        # Admin resets someone else's password without their current one.
        resp = client.post(f"/api/admin/staff/{marshal['id']}/password", json=body, headers=admin["headers"])
        assert resp.status_code == 200

        # Marshals may only change their own, and need the current password.
        resp = client.post(f"/api/admin/staff/{admin['id']}/password", json=body, headers=marshal["headers"])
        assert resp.status_code == 403
        resp = client.post(
            f"/api/admin/staff/{marshal['id']}/password",
            json={**body, "currentPassword": "wrong"},
            headers=marshal["headers"],
        )
        assert resp.status_code == 401

    def test_delete_staff_ends_their_sessions(self, client, admin, make_staff):
        marshal = make_staff("marsh@pegslam.co.uk", role="marshal")
        resp = client.delete(f"/api/admin/staff/{marshal['id']}", headers=admin["headers"])
        assert resp.json()["message"] == "Staff member deleted successfully"
        assert client.get("/api/admin/me", headers=marshal["headers"]).status_code == 401

"""
HTTP client for the Peg Slam API.

Mirrors the calls made by the mobile app and the admin dashboard. The
session token returned by login is sent as ``Authorization: Bearer`` and,
when ``token_path`` is given, kept on disk so a later client picks it up.

    client = PegSlamClient("http://localhost:8000", token_path=Path("~/.pegslam.json").expanduser())
    client.login("jane@example.com", "s3cret!")
    client.join_competition(competition_id)
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Mapping

import requests

from pegslam.exceptions import PegSlamError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10


class ApiError(PegSlamError):
    """A non-2xx response, or no response at all (``status_code`` 0)."""

    default_error_code = "api_error"

    def __init__(self, status_code: int, message: str, payload: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class PegSlamClient:
    def __init__(
        self,
        base_url: str,
        *,
        token_path: Path | str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.token_path = Path(token_path) if token_path else None
        self.token: str | None = None
        self._load_token()

    # ------------------------------------------------------------------
    # Token persistence
    # ------------------------------------------------------------------

    def _load_token(self) -> None:
        if self.token_path is None or not self.token_path.exists():
            return
        try:
            self.token = json.loads(self.token_path.read_text(encoding="utf-8")).get("token")
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable token file {self.token_path}: {e}")

    def _store_token(self, token: str | None) -> None:
        self.token = token
        if self.token_path is None:
            return
        if token is None:
            self.token_path.unlink(missing_ok=True)
            return
        self.token_path.parent.mkdir(parents=True, exist_ok=True)
        self.token_path.write_text(json.dumps({"token": token}), encoding="utf-8")

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: Any = None,
        params: Mapping[str, Any] | None = None,
        files: Mapping[str, Any] | None = None,
        data: Mapping[str, Any] | None = None,
    ) -> Any:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if params:
            params = {k: v for k, v in params.items() if v is not None}

        try:
            response = self.session.request(
                method,
                f"{self.base_url}{path}",
                json=json_body,
                params=params,
                files=files,
                data=data,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ApiError(0, f"Could not reach Peg Slam API: {e}") from e

        try:
            payload = response.json() if response.content else None
        except ValueError:
            payload = response.text

        if not response.ok:
            message = payload.get("message") if isinstance(payload, dict) else None
            raise ApiError(response.status_code, message or response.reason or "Request failed", payload)
        return payload

    def _get(self, path: str, **params: Any) -> Any:
        return self._request("GET", path, params=params)

    def _post(self, path: str, body: Any = None) -> Any:
        return self._request("POST", path, json_body=body if body is not None else {})

    def _put(self, path: str, body: Any) -> Any:
        return self._request("PUT", path, json_body=body)

    def _patch(self, path: str, body: Any) -> Any:
        return self._request("PATCH", path, json_body=body)

    def _delete(self, path: str) -> Any:
        return self._request("DELETE", path)

    # ------------------------------------------------------------------
    # Public reads
    # ------------------------------------------------------------------

    def health(self) -> bool:
        return bool(self._get("/api/health").get("ok"))

    def get_competitions(self) -> list[dict]:
        return self._get("/api/competitions")

    def get_competition(self, competition_id: str) -> dict:
        return self._get(f"/api/competitions/{competition_id}")

    def get_participants(self, competition_id: str) -> list[dict]:
        return self._get(f"/api/competitions/{competition_id}/participants")

    def get_available_pegs(self, competition_id: str) -> list[int]:
        return self._get(f"/api/competitions/{competition_id}/available-pegs")

    def get_leaderboard(self, competition_id: str) -> list[dict]:
        return self._get(f"/api/competitions/{competition_id}/leaderboard")

    def get_competition_teams(self, competition_id: str) -> list[dict]:
        return self._get(f"/api/competitions/{competition_id}/teams")

    def get_news(self, *, featured: bool = False) -> list[dict]:
        return self._get("/api/news/featured" if featured else "/api/news")

    def get_news_article(self, news_id: str) -> dict:
        return self._get(f"/api/news/{news_id}")

    def get_gallery(self, *, featured: bool = False, category: str | None = None) -> list[dict]:
        if featured:
            return self._get("/api/gallery/featured")
        return self._get("/api/gallery", category=category)

    def get_sponsors(self, tier: str | None = None) -> list[dict]:
        return self._get("/api/sponsors", tier=tier)

    def get_anglers(
        self,
        search: str | None = None,
        *,
        sort_by: str = "name",
        sort_order: str = "asc",
        page: int = 1,
        page_size: int = 20,
    ) -> dict:
        return self._get(
            "/api/anglers",
            search=search,
            sortBy=sort_by,
            sortOrder=sort_order,
            page=page,
            pageSize=page_size,
        )

    def get_angler(self, username: str) -> dict:
        return self._get(f"/api/users/{username}")

    def get_angler_stats(self, username: str) -> dict:
        return self._get(f"/api/users/{username}/stats")

    def get_angler_participations(self, username: str) -> list[dict]:
        return self._get(f"/api/users/{username}/participations")

    def get_angler_gallery(self, username: str) -> list[dict]:
        return self._get(f"/api/users/{username}/gallery")

    def get_slider_images(self) -> list[dict]:
        return self._get("/api/slider-images")

    def get_site_settings(self) -> dict:
        return self._get("/api/site-settings")

    def get_youtube_videos(self) -> list[dict]:
        return self._get("/api/youtube-videos")

    def contact(self, form: Mapping[str, str]) -> dict:
        return self._post("/api/contact", dict(form))

    # ------------------------------------------------------------------
    # Angler account
    # ------------------------------------------------------------------

    def register(
        self,
        *,
        first_name: str,
        last_name: str,
        email: str,
        username: str,
        password: str,
        club: str | None = None,
    ) -> dict:
        return self._post(
            "/api/user/register",
            {
                "firstName": first_name,
                "lastName": last_name,
                "email": email,
                "username": username,
                "password": password,
                "club": club,
            },
        )

    def login(self, email: str, password: str) -> dict:
        user = self._post("/api/user/login", {"email": email, "password": password})
        self._store_token(user.get("token"))
        return user

    def logout(self) -> None:
        try:
            self._post("/api/user/logout")
        finally:
            self._store_token(None)

    def me(self) -> dict:
        return self._get("/api/user/me")

    def forgot_password(self, email: str) -> dict:
        return self._post("/api/auth/forgot-password", {"email": email})

    def reset_password(self, token: str, password: str) -> dict:
        return self._post(
            "/api/auth/reset-password",
            {"token": token, "password": password, "confirmPassword": password},
        )

    def update_profile(self, **fields: Any) -> dict:
        """Update profile fields, given in camelCase (``bio=..., favouriteMethod=...``)."""
        return self._put("/api/user/profile", fields)

    def change_password(self, current_password: str, new_password: str) -> dict:
        return self._put(
            "/api/user/password",
            {"currentPassword": current_password, "newPassword": new_password, "confirmPassword": new_password},
        )

    def my_participations(self) -> list[dict]:
        return self._get("/api/user/participations")

    def my_stats(self) -> dict:
        return self._get("/api/user/stats")

    def my_teams(self) -> list[dict]:
        return self._get("/api/user/teams")

    # ------------------------------------------------------------------
    # Bookings and teams
    # ------------------------------------------------------------------

    def join_competition(self, competition_id: str, peg_number: int | None = None) -> dict:
        body = {"pegNumber": peg_number} if peg_number is not None else {}
        return self._post(f"/api/competitions/{competition_id}/join", body)

    def leave_competition(self, competition_id: str) -> dict:
        return self._delete(f"/api/competitions/{competition_id}/leave")

    def is_joined(self, competition_id: str) -> bool:
        return bool(self._get(f"/api/competitions/{competition_id}/is-joined").get("isJoined"))

    def create_team(self, competition_id: str, name: str, image: str | None = None) -> dict:
        return self._post(f"/api/competitions/{competition_id}/teams", {"name": name, "image": image})

    def join_team(self, invite_code: str) -> dict:
        return self._post("/api/teams/join", {"inviteCode": invite_code})

    def my_team(self, competition_id: str) -> dict:
        return self._get(f"/api/competitions/{competition_id}/my-team")

    def get_team(self, team_id: str) -> dict:
        return self._get(f"/api/teams/{team_id}")

    def leave_team(self, team_id: str) -> dict:
        return self._delete(f"/api/teams/{team_id}/leave")

    def remove_team_member(self, team_id: str, member_id: str) -> dict:
        return self._delete(f"/api/teams/{team_id}/members/{member_id}")

    # ------------------------------------------------------------------
    # Admin dashboard
    # ------------------------------------------------------------------

    def staff_login(self, email: str, password: str) -> dict:
        staff = self._post("/api/admin/login", {"email": email, "password": password})
        self._store_token(staff.get("token"))
        return staff

    def staff_logout(self) -> None:
        try:
            self._post("/api/admin/logout")
        finally:
            self._store_token(None)

    def staff_me(self) -> dict:
        return self._get("/api/admin/me")

    def dashboard_stats(self) -> dict:
        return self._get("/api/admin/dashboard/stats")

    def recent_participations(self) -> list[dict]:
        return self._get("/api/admin/recent-participations")

    # Generic CRUD over the admin collections:
    # competitions, anglers, news, gallery, sponsors, slider-images, youtube-videos, staff

    def list_resource(self, resource: str) -> list[dict]:
        return self._get(f"/api/admin/{resource}")

    def create_resource(self, resource: str, data: Mapping[str, Any]) -> dict:
        return self._post(f"/api/admin/{resource}", dict(data))

    def update_resource(self, resource: str, resource_id: str, data: Mapping[str, Any]) -> dict:
        return self._put(f"/api/admin/{resource}/{resource_id}", dict(data))

    def delete_resource(self, resource: str, resource_id: str) -> dict:
        return self._delete(f"/api/admin/{resource}/{resource_id}")

    def create_competition(self, data: Mapping[str, Any]) -> dict:
        return self.create_resource("competitions", data)

    def update_competition(self, competition_id: str, data: Mapping[str, Any]) -> dict:
        return self.update_resource("competitions", competition_id, data)

    def delete_competition(self, competition_id: str) -> dict:
        return self.delete_resource("competitions", competition_id)

    def set_angler_status(self, user_id: str, status: str) -> dict:
        return self._patch(f"/api/admin/anglers/{user_id}/status", {"status": status})

    def update_site_settings(self, data: Mapping[str, Any]) -> dict:
        return self._put("/api/admin/site-settings", dict(data))

    def add_participant(self, competition_id: str, user_id: str, peg_number: int | None = None) -> dict:
        return self._post(
            f"/api/admin/competitions/{competition_id}/participants",
            {"userId": user_id, "pegNumber": peg_number},
        )

    def remove_participant(self, participant_id: str) -> dict:
        return self._delete(f"/api/admin/participants/{participant_id}")

    def update_participant_peg(self, participant_id: str, peg_number: int) -> dict:
        return self._put(f"/api/admin/participants/{participant_id}/peg", {"pegNumber": peg_number})

    def update_team_peg(self, team_id: str, peg_number: int) -> dict:
        return self._put(f"/api/admin/teams/{team_id}/peg", {"pegNumber": peg_number})

    def assign_pegs(self, competition_id: str, assignments: Iterable[tuple[str, int]]) -> dict:
        """Set pegs explicitly from ``(participant_id, peg_number)`` pairs."""
        body = {"assignments": [{"participantId": pid, "pegNumber": peg} for pid, peg in assignments]}
        return self._post(f"/api/admin/competitions/{competition_id}/assign-pegs", body)

    def auto_assign_pegs(self, competition_id: str) -> dict:
        return self._post(f"/api/admin/competitions/{competition_id}/draw-pegs", {"mode": "sequential"})

    def random_draw(self, competition_id: str) -> dict:
        return self._post(f"/api/admin/competitions/{competition_id}/draw-pegs", {"mode": "random"})

    def record_weight(
        self,
        competition_id: str,
        *,
        user_id: str | None = None,
        team_id: str | None = None,
        peg_number: int | None = None,
        weight: str | None = None,
        pounds: int | None = None,
        ounces: int | None = None,
    ) -> dict:
        body: dict[str, Any] = {"competitionId": competition_id, "userId": user_id, "teamId": team_id}
        if peg_number is not None:
            body["pegNumber"] = peg_number
        if weight is not None:
            body["weight"] = weight
        if pounds is not None or ounces is not None:
            body["pounds"] = pounds or 0
            body["ounces"] = ounces or 0
        return self._post("/api/admin/leaderboard", body)

    def update_weight(self, entry_id: str, data: Mapping[str, Any]) -> dict:
        return self._put(f"/api/admin/leaderboard/{entry_id}", dict(data))

    def delete_weight(self, entry_id: str) -> dict:
        return self._delete(f"/api/admin/leaderboard/{entry_id}")

    def participant_entries(self, competition_id: str, user_id: str) -> dict:
        return self._get(f"/api/admin/competitions/{competition_id}/participants/{user_id}/entries")

    def team_entries(self, competition_id: str, team_id: str) -> dict:
        return self._get(f"/api/admin/competitions/{competition_id}/teams/{team_id}/entries")

    def competition_payments(self, competition_id: str) -> list[dict]:
        return self._get(f"/api/admin/competitions/{competition_id}/payments")

    def record_payment(self, competition_id: str, user_id: str, amount: int, status: str = "succeeded") -> dict:
        return self._post(
            f"/api/admin/competitions/{competition_id}/payments",
            {"userId": user_id, "amount": amount, "status": status},
        )

    def upload_image(self, path: Path | str, upload_type: str = "gallery", content_type: str = "image/jpeg") -> dict:
        path = Path(path)
        with path.open("rb") as fh:
            return self._request(
                "POST",
                "/api/upload",
                files={"image": (path.name, fh, content_type)},
                data={"type": upload_type},
            )

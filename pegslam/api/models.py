"""
Pydantic models for API requests.

The clients speak camelCase JSON. Models declare snake_case fields with a
camelCase alias, and ``record()`` dumps only the fields the client sent,
under their camelCase names, ready to merge into a stored record.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel
from pydantic.config import ConfigDict

from pegslam.pegs import parse_clock, parse_day


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def record(self, *, partial: bool = True) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_unset=partial)


StaffRole = Literal["admin", "manager", "marshal"]
AnglerStatus = Literal["active", "pending", "blocked"]
SponsorTier = Literal["platinum", "gold", "silver", "partner"]
PaymentStatus = Literal["pending", "succeeded", "failed", "refunded"]


# =============================================================================
# Auth / account
# =============================================================================


class LoginRequest(CamelModel):
    email: str = Field(min_length=1, max_length=254)
    password: str = Field(min_length=1, max_length=200)


class RegisterRequest(CamelModel):
    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "firstName": "Jane",
                    "lastName": "Carp",
                    "email": "jane@example.com",
                    "username": "jane_carp",
                    "password": "s3cret!",
                    "club": "Trent Valley AC",
                }
            ]
        },
    )

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: str = Field(max_length=254)
    username: str = Field(max_length=40)
    password: str = Field(max_length=200)
    club: str | None = Field(default=None, max_length=200)


class ForgotPasswordRequest(CamelModel):
    email: str = Field(max_length=254)


class ResetPasswordRequest(CamelModel):
    token: str = Field(min_length=1)
    password: str = Field(max_length=200)
    confirm_password: str = Field(min_length=1, description="Please confirm your password")


class ResendVerificationRequest(CamelModel):
    email: str = ""


class ContactRequest(CamelModel):
    """Fields are all checked by the route so the client gets one message."""

    first_name: str = ""
    last_name: str = ""
    email: str = ""
    mobile_number: str = ""
    comment: str = Field(default="", max_length=5000)


class PasswordChangeRequest(CamelModel):
    current_password: str = ""
    new_password: str = Field(max_length=200)
    confirm_password: str = Field(min_length=1)


class StaffProfileUpdate(CamelModel):
    email: str | None = None
    name: str | None = Field(default=None, max_length=200)
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    current_password: str | None = None
    new_password: str | None = Field(default=None, min_length=6, max_length=200)


# =============================================================================
# Staff
# =============================================================================


class StaffCreate(CamelModel):
    email: str = Field(max_length=254)
    password: str = Field(min_length=6, max_length=200)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    role: StaffRole = "marshal"
    is_active: bool = True


class StaffUpdate(CamelModel):
    email: str | None = Field(default=None, max_length=254)
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    role: StaffRole | None = None
    is_active: bool | None = None


# =============================================================================
# Anglers
# =============================================================================


class ProfileUpdate(CamelModel):
    bio: str | None = None
    club: str | None = None
    location: str | None = None
    favourite_method: str | None = None
    favourite_species: str | None = None
    avatar: str | None = None
    mobile_number: str | None = None
    date_of_birth: str | None = None
    youtube_url: str | None = None
    youtube_video_url: str | None = None
    facebook_url: str | None = None
    twitter_url: str | None = None
    instagram_url: str | None = None
    tiktok_url: str | None = None


class AnglerCreate(ProfileUpdate):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: str = Field(max_length=254)
    username: str = Field(max_length=40)
    password: str = Field(max_length=200)
    status: AnglerStatus = "active"


class AnglerUpdate(ProfileUpdate):
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    email: str | None = Field(default=None, max_length=254)
    username: str | None = Field(default=None, max_length=40)
    password: str | None = Field(default=None, max_length=200)
    status: AnglerStatus | None = None


class AnglerStatusUpdate(CamelModel):
    status: AnglerStatus


class UserGalleryPhotoCreate(CamelModel):
    url: str = Field(min_length=1, max_length=2000)
    caption: str | None = Field(default=None, max_length=500)


# =============================================================================
# Competitions, pegs and teams
# =============================================================================


class CompetitionUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    date: str | None = Field(default=None, pattern=r"^\d{4}-\d{2}-\d{2}")
    end_date: str | None = None
    time: str | None = Field(default=None, pattern=r"^\d{1,2}:\d{2}")
    end_time: str | None = None
    venue: str | None = None
    pegs_total: int | None = Field(default=None, ge=0)
    entry_fee: str | None = None
    prize_pool: str | None = None
    prize_type: Literal["pool", "other"] | None = None
    description: str | None = None
    type: str | None = None
    rules: list[str] | None = None
    image_url: str | None = None
    thumbnail_url: str | None = None
    thumbnail_url_md: str | None = None
    thumbnail_url_lg: str | None = None
    competition_mode: Literal["individual", "team"] | None = None
    max_team_members: int | None = Field(default=None, ge=1)
    team_peg_assignment_mode: Literal["team", "members"] | None = None

    @field_validator("date", "end_date")
    @classmethod
    def _real_date(cls, value: str | None) -> str | None:
        if value:
            parse_day(value)
        return value

    @field_validator("time", "end_time")
    @classmethod
    def _real_clock(cls, value: str | None) -> str | None:
        if value:
            parse_clock(value)
        return value


class CompetitionCreate(CompetitionUpdate):
    name: str = Field(min_length=1, max_length=200)
    date: str = Field(pattern=r"^\d{4}-\d{2}-\d{2}")
    time: str = Field(pattern=r"^\d{1,2}:\d{2}")
    venue: str = Field(min_length=1)
    pegs_total: int = Field(ge=1)
    entry_fee: str = "0"
    prize_pool: str = ""
    description: str = ""
    type: str = ""


class JoinCompetitionRequest(CamelModel):
    peg_number: int | None = Field(default=None, ge=1)


class AddParticipantRequest(CamelModel):
    user_id: str = Field(min_length=1)
    peg_number: int | None = Field(default=None, ge=1)


class PegUpdate(CamelModel):
    peg_number: int = Field(ge=1)


class PegAssignmentIn(CamelModel):
    participant_id: str = Field(min_length=1)
    peg_number: int


class AssignPegsRequest(CamelModel):
    assignments: list[PegAssignmentIn]


class DrawPegsRequest(CamelModel):
    mode: Literal["sequential", "random"] = "sequential"


class TeamCreate(CamelModel):
    name: str = Field(max_length=100)
    image: str | None = None


class JoinTeamRequest(CamelModel):
    invite_code: str = Field(min_length=1, max_length=20)


# =============================================================================
# Weigh-ins and payments
# =============================================================================


class LeaderboardEntryCreate(CamelModel):
    competition_id: str = Field(min_length=1)
    user_id: str | None = None
    team_id: str | None = None
    peg_number: int | None = None
    weight: str | None = None
    pounds: int | None = Field(default=None, ge=0)
    ounces: int | None = Field(default=None, ge=0, le=15)
    position: int | None = None


class LeaderboardEntryUpdate(CamelModel):
    peg_number: int | None = None
    weight: str | None = None
    pounds: int | None = Field(default=None, ge=0)
    ounces: int | None = Field(default=None, ge=0, le=15)
    position: int | None = None


class PaymentCreate(CamelModel):
    user_id: str = Field(min_length=1)
    team_id: str | None = None
    amount: int = Field(default=0, ge=0, description="Amount in pence")
    currency: str = "gbp"
    status: PaymentStatus = "succeeded"


# =============================================================================
# Site content
# =============================================================================


class NewsUpdate(CamelModel):
    title: str | None = None
    excerpt: str | None = None
    content: str | None = None
    category: str | None = None
    author: str | None = None
    date: str | None = None
    read_time: str | None = None
    image: str | None = None
    competition: str | None = None
    featured: bool | None = None


class NewsCreate(NewsUpdate):
    title: str = Field(min_length=1)
    excerpt: str
    content: str
    category: str
    author: str
    date: str
    read_time: str
    image: str


class GalleryImageUpdate(CamelModel):
    urls: list[str] | None = None
    title: str | None = None
    description: str | None = None
    category: str | None = None
    competition: str | None = None
    date: str | None = None
    angler: str | None = None
    weight: str | None = None
    featured: bool | None = None


class GalleryImageCreate(GalleryImageUpdate):
    urls: list[str] = Field(min_length=1)
    title: str = Field(min_length=1)
    description: str
    category: str
    date: str


class SponsorSocial(CamelModel):
    facebook: str | None = None
    twitter: str | None = None
    instagram: str | None = None


class SponsorUpdate(CamelModel):
    name: str | None = None
    tier: SponsorTier | None = None
    logo: str | None = None
    website: str | None = None
    short_description: str | None = None
    description: str | None = None
    social: SponsorSocial | None = None
    featured_above_footer: bool | None = None


class SponsorCreate(SponsorUpdate):
    name: str = Field(min_length=1)
    tier: SponsorTier
    logo: str
    short_description: str
    description: str


class SliderImageUpdate(CamelModel):
    image_url: str | None = None
    order: int | None = None
    is_active: bool | None = None


class SliderImageCreate(SliderImageUpdate):
    image_url: str = Field(min_length=1)


class YoutubeVideoUpdate(CamelModel):
    title: str | None = None
    video_id: str | None = None
    description: str | None = None
    display_order: int | None = None
    active: bool | None = None


class YoutubeVideoCreate(YoutubeVideoUpdate):
    title: str = Field(min_length=1)
    video_id: str = Field(min_length=1)


class SiteSettingsUpdate(CamelModel):
    logo_url: str | None = None

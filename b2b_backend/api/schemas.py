"""API request/response schemas."""

from typing import Any, Literal

from pydantic import BaseModel, Field


# Auth schemas
class RegisterRequest(BaseModel):
    email: str
    password: str
    remember_me: bool = False


class LoginRequest(BaseModel):
    email: str
    password: str
    remember_me: bool = False


class TutorialStatusUpdate(BaseModel):
    tutorial_status: str | None = Field(default=None, description="incomplete/complete/skipped")


class UserResponse(BaseModel):
    id: str
    email: str
    role: str | None
    tutorial_status: str

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str
    expires_in: int


class AuthResponse(BaseModel):
    user: UserResponse
    tokens: TokenResponse


# Role schemas
class RoleAssign(BaseModel):
    role: str | None = Field(default=None, description="student/professional/business")


class RoleResponse(BaseModel):
    name: str
    description: str


class RoleStatusResponse(BaseModel):
    user_id: str
    role: str | None
    has_role: bool


# Profile schemas
class ProfileCreate(BaseModel):
    profile_data: Any = None


class ProfileSearchResult(BaseModel):
    user_id: str
    first_name: str | None
    last_name: str | None
    avatar_url: str | None


class ProfileSearchResponse(BaseModel):
    results: list[ProfileSearchResult]
    page: int
    limit: int
    has_more: bool
    total_candidates: int


# Team schemas
class InvitationCreate(BaseModel):
    invitee: str = Field(description="User id or email of the person to invite")
    role: str = Field(description="admin/editor")


# Job schemas
class JobLocation(BaseModel):
    city: str | None = None
    state: str | None = None
    country: str | None = None


class ExperienceLevel(BaseModel):
    min: int | None = Field(default=None, ge=0)
    max: int | None = Field(default=None, ge=0)


class JobCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    job_description: str = Field(min_length=1)
    employment_type: Literal["full_time", "part_time"] | None = None
    job_mode: Literal["onsite", "remote", "hybrid"] | None = None
    status: Literal["active", "inactive", "closed"] = "active"
    location: JobLocation | None = None
    experience_level: ExperienceLevel | None = None
    skills: list[str] = Field(default_factory=list)


class JobUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    job_description: str | None = Field(default=None, min_length=1)
    employment_type: Literal["full_time", "part_time"] | None = None
    job_mode: Literal["onsite", "remote", "hybrid"] | None = None
    status: Literal["active", "inactive", "closed"] | None = None
    location: JobLocation | None = None
    experience_level: ExperienceLevel | None = None
    skills: list[str] | None = None


class ApplicationReview(BaseModel):
    status: str = Field(description="selected/rejected")


# Application schemas
class ResumeRef(BaseModel):
    file_name: str | None = None
    file_url: str


class ApplicationCreate(BaseModel):
    full_name: str = Field(min_length=1, max_length=200)
    email: str | None = None
    phone: str | None = Field(default=None, max_length=20)
    address: str | None = None
    resume: ResumeRef | None = None


class ApplicationUpdate(BaseModel):
    email: str | None = None
    phone: str | None = Field(default=None, max_length=20)
    resume: ResumeRef | None = None


# Connection schemas
class ConnectRequest(BaseModel):
    recipient_id: str


class SenderRequest(BaseModel):
    sender_id: str


class RemoveConnection(BaseModel):
    user_id: str


class NotificationRead(BaseModel):
    notification_id: str


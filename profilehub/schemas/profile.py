# profile.py
from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from profilehub.schemas.user import UserRead, validate_email_like


class ProfileUpdateForm(BaseModel):
    """Non-image fields of the profile edit form."""

    name: str
    email: str
    description: Optional[str] = None
    dob: Optional[date] = None

    @field_validator("name")
    @classmethod
    def _validate_name(cls, v: str) -> str:
        value = (v or "").strip()
        if not value:
            raise ValueError("name must not be empty")
        return value

    @field_validator("email")
    @classmethod
    def _validate_email_like(cls, v: str) -> str:
        return validate_email_like(v)

    @field_validator("dob", mode="before")
    @classmethod
    def _blank_dob_is_none(cls, v):
        # HTML forms post an empty string for an untouched date input.
        if isinstance(v, str) and not v.strip():
            return None
        return v


class SaveProfilePayload(BaseModel):
    fullname: str
    email: str
    image_url: str = ""
    description: str = ""
    dob: Optional[date] = None


class SaveProfileResult(BaseModel):
    success: bool
    message: str


class ProfileRead(BaseModel):
    id: int
    user_id: int
    fullname: str
    email: str
    image_url: str
    description: str
    dob: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ProfileView(BaseModel):
    """Payload rendered back to the profile page after GET or a form submission."""

    success: Optional[str] = None
    error: Optional[str] = None
    user: Optional[UserRead] = None
    profile: Optional[ProfileRead] = None
    status: Optional[str] = None

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from profilehub.schemas.upload import UploadResult


EmploymentType = Literal["full-time", "part-time", "contract", "freelance", "internship", "temporary"]


class _DateRange(BaseModel):
    @model_validator(mode="after")
    def _check_date_range(self):
        start = getattr(self, "start_date", None)
        end = getattr(self, "end_date", None)
        if start and end and end < start:
            raise ValueError("end_date must not be before start_date")
        if getattr(self, "is_current", False):
            self.end_date = None
        return self


class EducationCreate(_DateRange):
    university_name: str = Field(min_length=1, max_length=255)
    degree_type: str = Field(min_length=1, max_length=100)
    field_of_study: str = Field(min_length=1, max_length=255)
    start_date: date
    end_date: Optional[date] = None
    gpa: Optional[Decimal] = Field(default=None, ge=0, le=9.99, decimal_places=2)
    description: Optional[str] = None
    is_current: bool = False
    location: Optional[str] = Field(default=None, max_length=255)
    honors: Optional[str] = Field(default=None, max_length=255)


class EducationUpdate(EducationCreate):
    pass


class EducationRead(EducationCreate):
    id: int
    user_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ExperienceCreate(_DateRange):
    company_name: str = Field(min_length=1, max_length=255)
    designation: str = Field(min_length=1, max_length=150)
    start_date: date
    end_date: Optional[date] = None
    employment_type: EmploymentType = "full-time"
    description: Optional[str] = None
    location: Optional[str] = Field(default=None, max_length=255)
    is_current: bool = False
    industry: Optional[str] = Field(default=None, max_length=150)


class ExperienceUpdate(ExperienceCreate):
    pass


class ExperienceRead(ExperienceCreate):
    id: int
    user_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ProjectCreate(_DateRange):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    url: Optional[str] = Field(default=None, max_length=1024)


class ProjectUpdate(ProjectCreate):
    pass


class ProjectRead(ProjectCreate):
    id: int
    owner_kind: str
    owner_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ImageRead(BaseModel):
    id: int
    path: str
    url: Optional[str] = None
    original_filename: str
    mime_type: str
    size: int
    alt_text: Optional[str] = None
    display_order: int
    is_primary: bool
    owner_kind: str
    owner_id: int

    model_config = ConfigDict(from_attributes=True)


class ImageUploadResponse(BaseModel):
    image: Optional[ImageRead] = None
    upload: UploadResult

"""Bootcamp API schemas."""

from enum import Enum

from pydantic import BaseModel, EmailStr, Field

_WEBSITE_PATTERN = (
    r"^https?://(www\.)?[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b([-a-zA-Z0-9()@:%_+.~#?&/=]*)$"
)


class Career(str, Enum):
    WEB_DEVELOPMENT = "Web Development"
    MOBILE_DEVELOPMENT = "Mobile Development"
    UI_UX = "UI/UX"
    DATA_SCIENCE = "Data Science"
    BUSINESS = "Business"
    OTHER = "Other"


class CreateBootcampRequest(BaseModel):
    name: str = Field(min_length=1, max_length=50)
    description: str = Field(min_length=1, max_length=500)
    website: str | None = Field(default=None, pattern=_WEBSITE_PATTERN)
    phone: str | None = Field(default=None, max_length=20)
    email: EmailStr | None = None
    address: str = Field(min_length=1)
    careers: list[Career] = Field(min_length=1)
    housing: bool = False
    job_assistance: bool = False
    job_guarantee: bool = False
    accept_gi: bool = False

    model_config = {"str_strip_whitespace": True}


class UpdateBootcampRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=50)
    description: str | None = Field(default=None, min_length=1, max_length=500)
    website: str | None = Field(default=None, pattern=_WEBSITE_PATTERN)
    phone: str | None = Field(default=None, max_length=20)
    email: EmailStr | None = None
    address: str | None = Field(default=None, min_length=1)
    careers: list[Career] | None = Field(default=None, min_length=1)
    housing: bool | None = None
    job_assistance: bool | None = None
    job_guarantee: bool | None = None
    accept_gi: bool | None = None

    model_config = {"str_strip_whitespace": True}

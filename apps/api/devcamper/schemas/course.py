"""Course API schemas."""

from enum import Enum

from pydantic import BaseModel, Field


class MinimumSkill(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class CreateCourseRequest(BaseModel):
    title: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1)
    weeks: int = Field(ge=1)
    tuition: float = Field(ge=0)
    minimum_skill: MinimumSkill
    scholarship_available: bool = False


class UpdateCourseRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, min_length=1)
    weeks: int | None = Field(default=None, ge=1)
    tuition: float | None = Field(default=None, ge=0)
    minimum_skill: MinimumSkill | None = None
    scholarship_available: bool | None = None

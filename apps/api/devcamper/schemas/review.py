"""Review API schemas."""

from pydantic import BaseModel, Field


class CreateReviewRequest(BaseModel):
    title: str = Field(min_length=1, max_length=100)
    text: str = Field(min_length=1)
    rating: int = Field(ge=1, le=10)


class UpdateReviewRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=100)
    text: str | None = Field(default=None, min_length=1)
    rating: int | None = Field(default=None, ge=1, le=10)

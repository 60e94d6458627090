"""API error response schemas."""

from typing import Literal

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    success: Literal[False] = False
    error: str

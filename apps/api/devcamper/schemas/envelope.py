"""Success envelopes shared by every resource."""

from typing import Any, Literal

from pydantic import BaseModel


class PageRef(BaseModel):
    page: int
    limit: int


class PaginatedResult(BaseModel):
    success: Literal[True] = True
    count: int
    pagination: dict[Literal["next", "prev"], PageRef]
    data: list[dict[str, Any]]


class DataResponse(BaseModel):
    success: Literal[True] = True
    data: Any


class ListResponse(BaseModel):
    success: Literal[True] = True
    count: int
    data: list[dict[str, Any]]


class TokenResponse(BaseModel):
    success: Literal[True] = True
    token: str


class MessageResponse(BaseModel):
    success: Literal[True] = True
    data: str

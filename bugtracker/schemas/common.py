"""Schemas shared by every router: base config, pagination, errors, health."""

from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class BaseSchema(BaseModel):
    """Reads ORM objects and trims surrounding whitespace from strings."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class ErrorBody(BaseModel):
    code: str = Field(..., examples=["AUTHORIZATION_ERROR"])
    message: str = Field(..., examples=["Access denied. You can only view bugs you reported."])
    details: Optional[list[dict[str, Any]]] = None
    request_id: Optional[str] = None


class ErrorResponse(BaseModel):
    """Envelope of every non-2xx response."""

    error: ErrorBody


# OpenAPI entries for errors any authenticated route can return
COMMON_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    401: {"model": ErrorResponse, "description": "Missing, invalid or revoked token"},
    403: {"model": ErrorResponse, "description": "Role lacks access"},
    422: {"model": ErrorResponse, "description": "Request validation failed"},
}


class PaginationParams(BaseModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class PaginatedResponse(BaseModel, Generic[T]):
    """One page of results with the totals a client needs to page through."""

    items: list[T]
    total: int = Field(..., description="Items matching the query across all pages")
    page: int
    limit: int
    pages: int

    @classmethod
    def create(
        cls, items: list[T], total: int, page: int, limit: int
    ) -> "PaginatedResponse[T]":
        return cls(
            items=items,
            total=total,
            page=page,
            limit=limit,
            pages=-(-total // limit) if limit else 0,
        )


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    status: str
    version: str
    database: Optional[str] = None
    redis: Optional[str] = None

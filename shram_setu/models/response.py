"""Standard response envelope shared by every endpoint."""

from typing import Any, List, Optional

from pydantic import BaseModel, Field


class Pagination(BaseModel):
    """Pagination block for list endpoints."""

    current_page: int = Field(ge=1)
    total_pages: int = Field(ge=0)
    total_items: int = Field(ge=0)
    limit: int = Field(ge=1)

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        """Compute the page count for ``total`` items."""
        return cls(
            current_page=page,
            total_pages=-(-total // limit),
            total_items=total,
            limit=limit,
        )


class ApiResponse(BaseModel):
    """Successful response: ``{success: true, message, data?, pagination?}``."""

    success: bool = True
    message: str = "Success"
    data: Optional[Any] = None
    pagination: Optional[Pagination] = None


class ErrorResponse(BaseModel):
    """Failed response: ``{success: false, message, errors?}``."""

    success: bool = False
    message: str
    errors: Optional[List[Any]] = None

"""Builders for the ``{success, message, data?, pagination?, errors?}`` envelope."""

from typing import Any, List, Mapping, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from shram_setu.models.response import ErrorResponse, Pagination

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Validation or request error"},
    401: {"model": ErrorResponse, "description": "Not authenticated"},
    403: {"model": ErrorResponse, "description": "Blocked account or role not allowed"},
}


def success_response(
    message: str = "Success",
    data: Any = None,
    pagination: Optional[Pagination] = None,
    status_code: int = 200,
) -> JSONResponse:
    """JSON success envelope; ``data`` and ``pagination`` are omitted when None."""
    body: dict = {"success": True, "message": message}
    if data is not None:
        body["data"] = jsonable_encoder(data)
    if pagination is not None:
        body["pagination"] = jsonable_encoder(pagination)
    return JSONResponse(status_code=status_code, content=body)


def error_response(
    status_code: int,
    message: str,
    errors: Optional[List[Any]] = None,
    headers: Optional[Mapping[str, str]] = None,
) -> JSONResponse:
    """JSON failure envelope; ``errors`` is omitted when None."""
    body: dict = {"success": False, "message": message}
    if errors is not None:
        body["errors"] = jsonable_encoder(errors)
    return JSONResponse(status_code=status_code, content=body, headers=headers)

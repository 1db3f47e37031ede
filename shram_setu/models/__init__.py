"""Models package exports."""

from shram_setu.models.auth import (
    AccountSummary,
    AuthPayload,
    LoginRequest,
    RegisterRequest,
    TokenPair,
    UpdatePasswordRequest,
    UpdateProfileRequest,
)
from shram_setu.models.response import ApiResponse, ErrorResponse, Pagination
from shram_setu.models.user import Account, HirerDetails, Role, WorkerDetails

__all__ = [
    "Account",
    "AccountSummary",
    "ApiResponse",
    "AuthPayload",
    "ErrorResponse",
    "HirerDetails",
    "LoginRequest",
    "Pagination",
    "RegisterRequest",
    "Role",
    "TokenPair",
    "UpdatePasswordRequest",
    "UpdateProfileRequest",
    "WorkerDetails",
]

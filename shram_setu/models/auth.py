"""Auth request and response models with validation."""

import re
from datetime import date, datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from shram_setu.models.user import Account, HirerDetails, Role, WorkerDetails

EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")
PHONE_PATTERN = re.compile(r"^[6-9]\d{9}$")
PINCODE_PATTERN = re.compile(r"^\d{6}$")


def _check_email(v: str) -> str:
    v = v.strip().lower()
    if not EMAIL_PATTERN.match(v):
        raise ValueError("Please provide a valid email")
    return v


def _check_phone(v: str) -> str:
    v = v.strip()
    if not PHONE_PATTERN.match(v):
        raise ValueError("Please provide a valid 10-digit Indian phone number")
    return v


def _check_pincode(v: str) -> str:
    v = v.strip()
    if not PINCODE_PATTERN.match(v):
        raise ValueError("Please provide a valid 6-digit pincode")
    return v


def _check_password(v: str) -> str:
    if not re.search(r"\d", v):
        raise ValueError("Password must contain at least one number")
    return v


def _check_not_blank(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Field cannot be empty")
    return v


class RegisterRequest(BaseModel):
    """Self-service registration for workers and hirers.

    Admin accounts are never created through this request.
    """

    first_name: str = Field(..., min_length=2, max_length=50)
    last_name: str = Field(..., min_length=2, max_length=50)
    email: str
    phone: str
    password: str = Field(..., min_length=6, max_length=72)
    role: Literal["worker", "hirer"]
    address: str
    city: str
    state: str
    pincode: str
    dob: date

    # Worker details
    skills: List[str] = Field(default_factory=list)
    experience: int = Field(default=0, ge=0)
    daily_wage: float = Field(default=0, ge=0)
    availability: bool = True

    # Hirer details
    company_name: str = ""
    work_location: str = ""

    @field_validator("first_name", "last_name", "address", "city", "state", mode="before")
    @classmethod
    def strip_required(cls, v):
        """Trim whitespace and reject blank values."""
        if isinstance(v, str):
            return _check_not_blank(v)
        return v

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str) -> str:
        return _check_email(v)

    @field_validator("phone")
    @classmethod
    def phone_valid(cls, v: str) -> str:
        return _check_phone(v)

    @field_validator("pincode")
    @classmethod
    def pincode_valid(cls, v: str) -> str:
        return _check_pincode(v)

    @field_validator("password")
    @classmethod
    def password_has_digit(cls, v: str) -> str:
        return _check_password(v)

    def worker_details(self) -> Optional[WorkerDetails]:
        if self.role != Role.WORKER.value:
            return None
        return WorkerDetails(
            skills=self.skills,
            experience=self.experience,
            daily_wage=self.daily_wage,
            availability=self.availability,
        )

    def hirer_details(self) -> Optional[HirerDetails]:
        if self.role != Role.HIRER.value:
            return None
        return HirerDetails(
            company_name=self.company_name,
            work_location=self.work_location,
        )


class LoginRequest(BaseModel):
    """Login credentials."""

    email: str
    password: str = Field(..., min_length=1, max_length=72)

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str) -> str:
        return _check_email(v)


class UpdateProfileRequest(BaseModel):
    """Partial profile update.

    All fields are optional; only provided fields are updated. Worker and
    hirer fields are ignored unless they match the caller's role.
    """

    first_name: Optional[str] = Field(default=None, min_length=2, max_length=50)
    last_name: Optional[str] = Field(default=None, min_length=2, max_length=50)
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None

    skills: Optional[List[str]] = None
    experience: Optional[int] = Field(default=None, ge=0)
    daily_wage: Optional[float] = Field(default=None, ge=0)
    availability: Optional[bool] = None

    company_name: Optional[str] = None
    work_location: Optional[str] = None

    @field_validator("first_name", "last_name", "address", "city", "state", mode="before")
    @classmethod
    def strip_optional(cls, v):
        if isinstance(v, str):
            return _check_not_blank(v)
        return v

    @field_validator("phone")
    @classmethod
    def phone_valid(cls, v: Optional[str]) -> Optional[str]:
        return v if v is None else _check_phone(v)

    @field_validator("pincode")
    @classmethod
    def pincode_valid(cls, v: Optional[str]) -> Optional[str]:
        return v if v is None else _check_pincode(v)


class UpdatePasswordRequest(BaseModel):
    """Password change for the current account."""

    current_password: str = Field(..., min_length=1, max_length=72)
    new_password: str = Field(..., min_length=6, max_length=72)

    @field_validator("new_password")
    @classmethod
    def password_has_digit(cls, v: str) -> str:
        return _check_password(v)


class AccountSummary(BaseModel):
    """Compact account representation for auth responses."""

    id: UUID
    first_name: str
    last_name: str
    email: str
    role: Role
    profile_image: str = ""
    is_blocked: bool = False
    created_at: datetime

    @classmethod
    def from_account(cls, account: Account) -> "AccountSummary":
        return cls(
            id=account.id,
            first_name=account.first_name,
            last_name=account.last_name,
            email=account.email,
            role=account.role,
            profile_image=account.profile_image,
            is_blocked=account.is_blocked,
            created_at=account.created_at,
        )


class TokenPair(BaseModel):
    """Freshly issued access and refresh tokens.

    Attributes:
        access_token: Short-lived JWT returned in the response payload
        refresh_token: Long-lived JWT, only ever sent in the refresh cookie
        expires_in: Access token lifetime in seconds
    """

    access_token: str
    refresh_token: str
    expires_in: int = Field(ge=1)


class AuthPayload(BaseModel):
    """``data`` block of login/register/refresh responses."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(ge=1, description="Access token lifetime in seconds")
    user: Optional[AccountSummary] = None

"""Account models."""

from datetime import date, datetime
from enum import Enum
from typing import List
from uuid import UUID

from pydantic import BaseModel, Field


class Role(str, Enum):
    """Marketplace roles."""

    WORKER = "worker"
    HIRER = "hirer"
    ADMIN = "admin"


class WorkerDetails(BaseModel):
    """Worker-specific profile fields."""

    skills: List[str] = Field(default_factory=list)
    experience: int = 0
    daily_wage: float = 0
    availability: bool = True
    rating: float = Field(default=0, ge=0, le=5)
    completed_jobs: int = 0


class HirerDetails(BaseModel):
    """Hirer-specific profile fields."""

    company_name: str = ""
    work_location: str = ""


class Account(BaseModel):
    """A registered worker, hirer or admin.

    The refresh token slot and password hash are deliberately not part of
    this model; they are only read by the session and auth services.
    """

    id: UUID
    first_name: str
    last_name: str
    email: str
    phone: str
    role: Role
    address: str
    city: str
    state: str
    pincode: str
    dob: date
    profile_image: str = ""
    worker_details: WorkerDetails | None = None
    hirer_details: HirerDetails | None = None
    is_blocked: bool = False
    created_at: datetime
    updated_at: datetime

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

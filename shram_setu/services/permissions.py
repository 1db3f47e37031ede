"""Declarative role capabilities.

Every authorization decision goes through ``is_allowed``; handlers never
branch on roles themselves. A (role, operation) pair that is not listed in
``CAPABILITIES`` is denied.
"""

from enum import Enum
from typing import Dict, Iterable, Tuple

from shram_setu.errors import PermissionDeniedError
from shram_setu.models.user import Account, Role


class Operation(str, Enum):
    """Operations subject to authorization."""

    # Account
    VIEW_PROFILE = "profile:view"
    UPDATE_PROFILE = "profile:update"
    UPDATE_PASSWORD = "password:update"
    LOGOUT = "session:logout"

    # Jobs
    VIEW_JOBS = "jobs:view"
    VIEW_TOP_WORKERS = "workers:top"
    VIEW_OWN_JOBS = "jobs:view_own"
    CREATE_JOB = "jobs:create"
    UPDATE_JOB = "jobs:update"
    COMPLETE_JOB = "jobs:complete"
    DELETE_OWN_JOB = "jobs:delete_own"

    # Applications
    APPLY_FOR_JOB = "applications:create"
    VIEW_OWN_APPLICATIONS = "applications:view_own"
    VIEW_JOB_APPLICATIONS = "applications:view_for_job"
    UPDATE_APPLICATION_STATUS = "applications:update_status"

    # Reviews
    CREATE_REVIEW = "reviews:create"
    VIEW_REVIEWS = "reviews:view"

    # Admin
    ADMIN_LIST_USERS = "admin:users:list"
    ADMIN_BLOCK_USER = "admin:users:block"
    ADMIN_DELETE_JOB = "admin:jobs:delete"
    ADMIN_VIEW_ANALYTICS = "admin:analytics"


def _grant(roles: Iterable[Role], operations: Iterable[Operation]) -> Dict[Tuple[Role, Operation], bool]:
    return {(role, op): True for role in roles for op in operations}


ALL_ROLES = tuple(Role)

CAPABILITIES: Dict[Tuple[Role, Operation], bool] = {
    **_grant(
        ALL_ROLES,
        (
            Operation.VIEW_PROFILE,
            Operation.UPDATE_PROFILE,
            Operation.UPDATE_PASSWORD,
            Operation.LOGOUT,
            Operation.VIEW_JOBS,
            Operation.VIEW_TOP_WORKERS,
            Operation.VIEW_REVIEWS,
        ),
    ),
    **_grant(
        (Role.WORKER,),
        (Operation.APPLY_FOR_JOB, Operation.VIEW_OWN_APPLICATIONS),
    ),
    **_grant(
        (Role.HIRER,),
        (
            Operation.VIEW_OWN_JOBS,
            Operation.CREATE_JOB,
            Operation.UPDATE_JOB,
            Operation.COMPLETE_JOB,
            Operation.DELETE_OWN_JOB,
            Operation.VIEW_JOB_APPLICATIONS,
            Operation.UPDATE_APPLICATION_STATUS,
            Operation.CREATE_REVIEW,
        ),
    ),
    **_grant(
        (Role.ADMIN,),
        (
            Operation.ADMIN_LIST_USERS,
            Operation.ADMIN_BLOCK_USER,
            Operation.ADMIN_DELETE_JOB,
            Operation.ADMIN_VIEW_ANALYTICS,
        ),
    ),
}


def is_allowed(role: Role, operation: Operation) -> bool:
    """Look up ``(role, operation)``; unlisted pairs are denied."""
    return CAPABILITIES.get((role, operation), False)


def authorize(account: Account, operation: Operation) -> None:
    """Raise PermissionDeniedError unless the account's role may perform ``operation``."""
    if not is_allowed(account.role, operation):
        raise PermissionDeniedError(
            f"Access denied. Role '{account.role.value}' is not authorized."
        )

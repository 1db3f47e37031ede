"""Admin endpoints for account management."""

from typing import Optional
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from shram_setu.api.dependencies import require_capability
from shram_setu.api.responses import ERROR_RESPONSES, success_response
from shram_setu.config import get_settings
from shram_setu.models.response import Pagination
from shram_setu.models.user import Account, Role
from shram_setu.services.account_service import AccountService
from shram_setu.services.permissions import Operation

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"], responses=ERROR_RESPONSES)


@router.get("/users")
async def list_users(
    page: int = Query(default=1, ge=1),
    limit: Optional[int] = Query(default=None, ge=1),
    role: Optional[Role] = None,
    search: Optional[str] = Query(default=None, max_length=100),
    admin: Account = Depends(require_capability(Operation.ADMIN_LIST_USERS)),
) -> JSONResponse:
    """List accounts, newest first, filtered by role and a name/email search.

    ``limit`` defaults to the configured page size and is capped at the
    configured maximum.
    """
    settings = get_settings()
    limit = min(limit or settings.default_page_size, settings.max_page_size)

    accounts, total = await AccountService().list_accounts(
        page=page, limit=limit, role=role, search=search
    )

    return success_response(
        "Users fetched",
        data={"users": accounts},
        pagination=Pagination.build(page=page, limit=limit, total=total),
    )


@router.patch("/users/{user_id}/block")
async def block_user(
    user_id: UUID,
    admin: Account = Depends(require_capability(Operation.ADMIN_BLOCK_USER)),
) -> JSONResponse:
    """Toggle the blocked flag of a worker or hirer.

    Raises:
        NotFoundError: If the account does not exist
        BadRequestError: If the account is an admin
    """
    account = await AccountService().toggle_block(user_id)

    logger.info(
        "admin_block_toggled",
        admin_id=str(admin.id),
        account_id=str(account.id),
        is_blocked=account.is_blocked,
    )
    state = "blocked" if account.is_blocked else "unblocked"
    return success_response(
        f"User {state} successfully",
        data={"user_id": account.id, "is_blocked": account.is_blocked},
    )


@router.get("/analytics")
async def analytics(
    admin: Account = Depends(require_capability(Operation.ADMIN_VIEW_ANALYTICS)),
) -> JSONResponse:
    """Account counts by role, the blocked count and the newest signups."""
    stats = await AccountService().account_stats()

    return success_response(
        "Analytics fetched",
        data={
            "total_users": stats["total"],
            "total_workers": stats["workers"],
            "total_hirers": stats["hirers"],
            "total_admins": stats["admins"],
            "blocked_users": stats["blocked"],
            "recent_users": stats["recent"],
        },
    )

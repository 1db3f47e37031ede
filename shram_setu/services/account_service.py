"""Account management service."""

from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID, uuid4

import structlog

from shram_setu.database import get_pool
from shram_setu.errors import BadRequestError, ConflictError, NotFoundError
from shram_setu.models.auth import RegisterRequest, UpdateProfileRequest
from shram_setu.models.user import Account, HirerDetails, Role, WorkerDetails
from shram_setu.services.auth_service import AuthService

logger = structlog.get_logger(__name__)

ACCOUNT_COLUMNS = """
    id, first_name, last_name, email, phone, role, address, city, state,
    pincode, dob, profile_image, skills, experience, daily_wage, availability,
    rating, completed_jobs, company_name, work_location, is_blocked,
    created_at, updated_at
"""

COMMON_PROFILE_FIELDS = ("first_name", "last_name", "phone", "address", "city", "state", "pincode")
ROLE_PROFILE_FIELDS = {
    Role.WORKER: ("skills", "experience", "daily_wage", "availability"),
    Role.HIRER: ("company_name", "work_location"),
}

RECENT_ACCOUNTS_LIMIT = 5


def _row_to_account(row: Any) -> Account:
    """Build an Account from a users row, nesting the role-specific details."""
    role = Role(row["role"])
    worker_details = None
    hirer_details = None
    if role is Role.WORKER:
        worker_details = WorkerDetails(
            skills=list(row["skills"] or []),
            experience=row["experience"],
            daily_wage=float(row["daily_wage"]),
            availability=row["availability"],
            rating=float(row["rating"]),
            completed_jobs=row["completed_jobs"],
        )
    elif role is Role.HIRER:
        hirer_details = HirerDetails(
            company_name=row["company_name"],
            work_location=row["work_location"],
        )

    return Account(
        id=row["id"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        email=row["email"],
        phone=row["phone"],
        role=role,
        address=row["address"],
        city=row["city"],
        state=row["state"],
        pincode=row["pincode"],
        dob=row["dob"],
        profile_image=row["profile_image"],
        worker_details=worker_details,
        hirer_details=hirer_details,
        is_blocked=row["is_blocked"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class AccountService:
    """Service for account CRUD operations."""

    def __init__(self):
        self.auth_service = AuthService()

    async def create_account(
        self, request: RegisterRequest, role: Optional[Role] = None
    ) -> Account:
        """Create a new account with a hashed password.

        Args:
            request: Validated registration data
            role: Overrides ``request.role``; only used to bootstrap admins

        Returns:
            Created Account model

        Raises:
            ConflictError: If the email is already registered
        """
        if await self.get_by_email(request.email) is not None:
            raise ConflictError("A user with this email already exists.")

        account_id = uuid4()
        now = datetime.now(timezone.utc)
        role = role or Role(request.role)
        password_hash = self.auth_service.hash_password(request.password)
        worker = request.worker_details() or WorkerDetails()
        hirer = request.hirer_details() or HirerDetails()

        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                INSERT INTO users (
                    id, first_name, last_name, email, phone, password_hash, role,
                    address, city, state, pincode, dob, skills, experience,
                    daily_wage, availability, company_name, work_location,
                    created_at, updated_at
                )
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12,
                        $13, $14, $15, $16, $17, $18, $19, $19)
                RETURNING {ACCOUNT_COLUMNS}
                """,
                account_id,
                request.first_name,
                request.last_name,
                request.email,
                request.phone,
                password_hash,
                role.value,
                request.address,
                request.city,
                request.state,
                request.pincode,
                request.dob,
                worker.skills,
                worker.experience,
                worker.daily_wage,
                worker.availability,
                hirer.company_name,
                hirer.work_location,
                now,
            )

        logger.info("account_created", account_id=str(account_id), role=role.value)

        return _row_to_account(row)

    async def get_by_email(self, email: str) -> Optional[tuple[Account, str]]:
        """Get an account by email (case-insensitive).

        Returns:
            Tuple of (Account, password_hash) or None if not found
        """
        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                SELECT {ACCOUNT_COLUMNS}, password_hash
                FROM users
                WHERE LOWER(email) = LOWER($1)
                """,
                email,
            )

        if row is None:
            return None

        return _row_to_account(row), row["password_hash"]

    async def get_by_id(self, account_id: UUID) -> Optional[Account]:
        """Get an account by UUID, or None if not found."""
        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {ACCOUNT_COLUMNS} FROM users WHERE id = $1",
                account_id,
            )

        if row is None:
            return None

        return _row_to_account(row)

    async def get_password_hash(self, account_id: UUID) -> Optional[str]:
        pool = await get_pool()

        async with pool.acquire() as conn:
            return await conn.fetchval(
                "SELECT password_hash FROM users WHERE id = $1",
                account_id,
            )

    async def update_profile(
        self, account: Account, request: UpdateProfileRequest
    ) -> Account:
        """Update the provided profile fields.

        Worker fields are only applied to workers and hirer fields only to
        hirers; anything else in the request is ignored.

        Returns:
            Updated Account model

        Raises:
            NotFoundError: If the account disappeared meanwhile
        """
        allowed = COMMON_PROFILE_FIELDS + ROLE_PROFILE_FIELDS.get(account.role, ())
        provided = request.model_dump(exclude_none=True)
        updates = {field: provided[field] for field in allowed if field in provided}

        if not updates:
            return account

        set_clauses = []
        params: list[Any] = []
        for param_idx, (field, value) in enumerate(updates.items(), start=1):
            set_clauses.append(f"{field} = ${param_idx}")
            params.append(value)

        params.append(datetime.now(timezone.utc))
        set_clauses.append(f"updated_at = ${len(params)}")
        params.append(account.id)

        query = f"""
            UPDATE users
            SET {', '.join(set_clauses)}
            WHERE id = ${len(params)}
            RETURNING {ACCOUNT_COLUMNS}
        """

        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(query, *params)

        if row is None:
            raise NotFoundError("User not found.")

        logger.info(
            "account_profile_updated",
            account_id=str(account.id),
            fields_updated=list(updates),
        )

        return _row_to_account(row)

    async def update_password(self, account_id: UUID, password: str) -> None:
        """Replace the password hash with a hash of ``password``."""
        password_hash = self.auth_service.hash_password(password)
        pool = await get_pool()

        async with pool.acquire() as conn:
            await conn.execute(
                """
                UPDATE users
                SET password_hash = $2, updated_at = NOW()
                WHERE id = $1
                """,
                account_id,
                password_hash,
            )

        logger.info("account_password_updated", account_id=str(account_id))

    async def list_accounts(
        self,
        page: int = 1,
        limit: int = 10,
        role: Optional[Role] = None,
        search: Optional[str] = None,
    ) -> tuple[list[Account], int]:
        """Return one page of accounts, newest first, and the total match count.

        Args:
            page: 1-based page number
            limit: Page size
            role: Only return accounts with this role
            search: Case-insensitive substring of first name, last name or email
        """
        where = []
        params: list[Any] = []

        if role is not None:
            params.append(role.value)
            where.append(f"role = ${len(params)}")

        if search:
            params.append(f"%{search}%")
            idx = len(params)
            where.append(
                f"(first_name ILIKE ${idx} OR last_name ILIKE ${idx} OR email ILIKE ${idx})"
            )

        where_sql = f"WHERE {' AND '.join(where)}" if where else ""
        page_params = params + [limit, (page - 1) * limit]

        pool = await get_pool()

        async with pool.acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {ACCOUNT_COLUMNS}
                FROM users
                {where_sql}
                ORDER BY created_at DESC
                LIMIT ${len(params) + 1} OFFSET ${len(params) + 2}
                """,
                *page_params,
            )
            total = await conn.fetchval(
                f"SELECT COUNT(*) FROM users {where_sql}",
                *params,
            )

        return [_row_to_account(row) for row in rows], total

    async def toggle_block(self, account_id: UUID) -> Account:
        """Flip the blocked flag of a non-admin account.

        Raises:
            NotFoundError: If the account does not exist
            BadRequestError: If the account is an admin
        """
        account = await self.get_by_id(account_id)
        if account is None:
            raise NotFoundError("User not found.")
        if account.role is Role.ADMIN:
            raise BadRequestError("Cannot block an admin.")

        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                UPDATE users
                SET is_blocked = NOT is_blocked, updated_at = NOW()
                WHERE id = $1
                RETURNING {ACCOUNT_COLUMNS}
                """,
                account_id,
            )

        if row is None:
            raise NotFoundError("User not found.")

        updated = _row_to_account(row)
        logger.info(
            "account_block_toggled",
            account_id=str(account_id),
            is_blocked=updated.is_blocked,
        )
        return updated

    async def account_stats(self, recent_limit: int = RECENT_ACCOUNTS_LIMIT) -> dict:
        """Account counts by role, the blocked count and the newest accounts.

        Returns:
            Dict with ``total``, ``workers``, ``hirers``, ``admins``,
            ``blocked`` and ``recent`` (a list of Account)
        """
        pool = await get_pool()

        async with pool.acquire() as conn:
            counts = await conn.fetchrow(
                """
                SELECT
                    COUNT(*) AS total,
                    COUNT(*) FILTER (WHERE role = 'worker') AS workers,
                    COUNT(*) FILTER (WHERE role = 'hirer') AS hirers,
                    COUNT(*) FILTER (WHERE role = 'admin') AS admins,
                    COUNT(*) FILTER (WHERE is_blocked) AS blocked
                FROM users
                """
            )
            rows = await conn.fetch(
                f"""
                SELECT {ACCOUNT_COLUMNS}
                FROM users
                ORDER BY created_at DESC
                LIMIT $1
                """,
                recent_limit,
            )

        return {
            **dict(counts),
            "recent": [_row_to_account(row) for row in rows],
        }

"""
Authentication endpoints and dependencies.

Sessions are server-signed cookies (Starlette SessionMiddleware) holding
the user id. Passwords are bcrypt hashes.

Security features:
- Emails and usernames are unique and case-insensitive
- Password policy on talent/company registration and password changes
- Constant-time comparison of the configured admin credentials
- Role-based access control (guest, talent, employer, recruiter, admin)
"""
import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.database import get_db
from jobboard.database_types import utcnow
from jobboard.errors import AppError
from jobboard.models.job import JobStatus
from jobboard.models.user import User, UserRole, HIRING_ROLES
from jobboard.schemas.auth import (
    AdminLoginRequest,
    CompanyRegisterRequest,
    LoginRequest,
    PasswordChangeRequest,
    ProfileUpdateRequest,
    RegisterRequest,
    SelectRoleRequest,
    TalentRegisterRequest,
    UserResponse,
)
from jobboard.services import users
from jobboard.services.companies import create_company
from jobboard.services.jobs import create_job

logger = logging.getLogger(__name__)
router = APIRouter()


# ============================================================
# SESSION HELPERS
# ============================================================

def login_session(request: Request, user: User) -> None:
    """Start a fresh session for the user."""
    request.session.clear()
    request.session["user_id"] = str(user.id)


def logout_session(request: Request) -> None:
    request.session.clear()


# ============================================================
# DEPENDENCIES
# ============================================================

async def get_optional_user(
    request: Request,
    db: AsyncSession = Depends(get_db)
) -> Optional[User]:
    """
    Dependency returning the signed-in user, or None for anonymous requests.

    A session pointing at a deleted user is cleared.
    """
    raw_id = request.session.get("user_id")
    if not raw_id:
        return None
    try:
        user_id = UUID(raw_id)
    except ValueError:
        logout_session(request)
        return None

    user = await db.get(User, user_id)
    if user is None:
        logout_session(request)
    return user


async def get_current_user(
    user: Optional[User] = Depends(get_optional_user)
) -> User:
    """
    Dependency to get the current authenticated user from the session cookie.

    Raises:
        HTTPException 401: If there is no valid session
    """
    if user is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user


def require_roles(*roles: UserRole):
    """
    Dependency factory restricting an endpoint to the given roles.

    Example:
        @router.post("/jobs")
        async def create(user: User = Depends(require_roles(UserRole.EMPLOYER))):
            ...
    """
    async def dependency(current_user: User = Depends(get_current_user)) -> User:
        if not current_user.has_role(*roles):
            logger.warning(
                f"User {current_user.email} (role={current_user.role.value}) "
                f"denied access; requires one of {[r.value for r in roles]}"
            )
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return current_user

    return dependency


async def require_admin(
    current_user: User = Depends(get_current_user)
) -> User:
    """
    Dependency to require admin role.

    Raises:
        HTTPException 403: If user is not an admin
    """
    if not current_user.is_admin():
        logger.warning(
            f"User {current_user.email} (role={current_user.role.value}) "
            f"attempted to access admin endpoint"
        )
        raise HTTPException(status_code=403, detail="Admin access required")
    return current_user


require_hiring = require_roles(*HIRING_ROLES)


# ============================================================
# REGISTRATION
# ============================================================

@router.post("/register", response_model=UserResponse, status_code=201)
async def register(
    body: RegisterRequest,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """
    Create a guest account and sign it in.

    Returns:
        201: Account created
        409: Email or username already taken
    """
    user = await users.create_user(
        db,
        body.email,
        body.password,
        username=body.username,
        first_name=body.first_name,
        last_name=body.last_name,
    )
    await db.commit()
    await db.refresh(user)
    login_session(request, user)
    return user


@router.post("/register/talent", response_model=UserResponse, status_code=201)
async def register_talent(
    body: TalentRegisterRequest,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """
    Create a talent account together with its talent profile.

    Returns:
        201: Account and profile created
        400: Password policy or form validation failed
        409: Email already registered
    """
    try:
        user = await users.create_user(
            db,
            body.email,
            body.password,
            role=UserRole.TALENT,
            first_name=body.first_name,
            last_name=body.last_name,
            profile_image_url=body.avatar_url,
        )
        await users.create_talent_profile(
            db,
            user,
            headline=body.title,
            bio=body.story,
            location=body.location,
            timezone=body.timezone,
            skills=body.skill_list(),
            languages=body.language_list(),
            hourly_rate=body.hourly_rate,
            monthly_rate=body.monthly_rate,
            linkedin_url=body.linkedin_url,
            telegram=body.telegram,
        )
        await db.commit()
        await db.refresh(user)
    except AppError:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Error registering talent {body.email}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Registration failed. Please try again.")

    login_session(request, user)
    return user


@router.post("/register/company", response_model=UserResponse, status_code=201)
async def register_company(
    body: CompanyRegisterRequest,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """
    Employer sign-up in one step: account, company (owned by the new
    account) and a first job that waits for admin approval.

    Returns:
        201: Account, company and job created
        400: Validation failed (password policy, salary range, apply method)
        409: Email already registered
    """
    try:
        user = await users.create_user(
            db,
            body.email,
            body.password,
            role=UserRole.EMPLOYER,
            first_name=body.first_name,
            last_name=body.last_name,
        )
        company = await create_company(
            db,
            {
                "name": body.company_name,
                "description": body.company_description,
                "website": body.company_website,
                "location": body.company_location,
                "size": body.company_size,
                "logo": body.company_logo,
                "twitter": body.company_twitter,
                "telegram": body.company_telegram,
                "payment_in_crypto": body.payment_in_crypto,
                "remote_working": body.remote_working,
            },
            owner=user,
            approved=True,
        )
        await create_job(
            db,
            user,
            {
                "company_id": company.id,
                "title": body.job_title,
                "description": body.job_description,
                "category": body.job_category,
                "location": body.job_location,
                "is_remote": body.is_remote,
                "job_type": body.job_type,
                "experience_level": body.experience_level,
                "salary_min": body.salary_min,
                "salary_max": body.salary_max,
                "salary_currency": body.salary_currency,
                "salary_period": body.salary_period,
                "application_method": body.application_method,
                "application_email": body.application_email,
                "external_url": body.application_url,
                "tags": body.tags,
            },
            status=JobStatus.PENDING,
        )
        await db.commit()
        await db.refresh(user)
    except AppError:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Error registering company {body.company_name}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Registration failed. Please try again.")

    login_session(request, user)
    return user


# ============================================================
# LOGIN / LOGOUT
# ============================================================

@router.post("/login", response_model=UserResponse)
async def login(
    body: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """
    Sign in with email or username.

    Returns:
        200: Signed in
        401: Invalid credentials
    """
    user = await users.authenticate(db, body.identifier, body.password)
    login_session(request, user)
    logger.info(f"Successful login: {user.email}")
    return user


@router.post("/admin-login", response_model=UserResponse)
async def admin_login(
    body: AdminLoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """Sign in with the admin credentials configured in the environment."""
    user = await users.authenticate_admin(db, body.email, body.password)
    login_session(request, user)
    logger.info(f"Admin login: {user.email}")
    return user


@router.post("/logout")
async def logout(request: Request):
    """Clear the session. Safe to call when already signed out."""
    logout_session(request)
    return {"message": "Successfully logged out"}


# ============================================================
# ACCOUNT
# ============================================================

@router.get("/user", response_model=UserResponse)
async def get_user(current_user: User = Depends(get_current_user)):
    return current_user


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    body: ProfileUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Partial update of the account's display fields."""
    update_data = body.model_dump(exclude_unset=True)
    if not update_data:
        raise HTTPException(status_code=400, detail="No fields to update")

    for field, value in update_data.items():
        setattr(current_user, field, value)
    current_user.updated_at = utcnow()
    await db.commit()
    await db.refresh(current_user)
    return current_user


@router.put("/password")
async def change_password(
    body: PasswordChangeRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await users.change_password(db, current_user, body.current_password, body.new_password)
    return {"message": "Password updated"}


@router.post("/select-role", response_model=UserResponse)
async def select_role(
    body: SelectRoleRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Let a guest pick talent, employer or recruiter. Only allowed once.

    Returns:
        200: Role set
        400: Role cannot be self-selected
        403: Role already selected
    """
    return await users.select_role(db, current_user, body.role)

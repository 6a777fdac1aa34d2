"""
Account business logic: registration, credential checks and role selection.
"""
import logging
import secrets
from typing import Optional

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.config import settings
from jobboard.database_types import utcnow
from jobboard.errors import ConflictError, ForbiddenError, UnauthorizedError, ValidationError
from jobboard.models.talent_profile import TalentProfile
from jobboard.models.user import User, UserRole, SELECTABLE_ROLES
from jobboard.services.passwords import hash_password, verify_password

logger = logging.getLogger(__name__)


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == email.strip().lower()))
    return result.scalar_one_or_none()


async def get_user_by_username(db: AsyncSession, username: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.username == username.strip().lower()))
    return result.scalar_one_or_none()


async def create_user(
    db: AsyncSession,
    email: str,
    password: Optional[str],
    role: UserRole = UserRole.GUEST,
    username: Optional[str] = None,
    **profile,
) -> User:
    """
    Create an account. Emails and usernames are stored lowercased.
    The caller commits.

    Raises:
        ConflictError: If the email or username is taken
    """
    email = email.strip().lower()
    if await get_user_by_email(db, email):
        raise ConflictError("An account with this email already exists")
    if username:
        username = username.strip().lower()
        if await get_user_by_username(db, username):
            raise ConflictError("Username is already taken")

    user = User(
        email=email,
        username=username or None,
        password_hash=hash_password(password) if password else None,
        role=role,
        **profile,
    )
    db.add(user)
    await db.flush()
    logger.info(f"Created {role.value} account {email}")
    return user


async def create_talent_profile(db: AsyncSession, user: User, **fields) -> TalentProfile:
    profile = TalentProfile(user_id=user.id, last_active_at=utcnow(), **fields)
    db.add(profile)
    await db.flush()
    return profile


async def authenticate(db: AsyncSession, identifier: str, password: str) -> User:
    """
    Check credentials given an email or a username.

    Raises:
        UnauthorizedError: On unknown user or wrong password
    """
    identifier = identifier.strip().lower()
    result = await db.execute(
        select(User).where(or_(User.email == identifier, User.username == identifier))
    )
    user = result.scalars().first()
    if user is None or not verify_password(password, user.password_hash):
        logger.warning(f"Failed login for {identifier}")
        raise UnauthorizedError("Invalid email/username or password")
    await touch_last_active(db, user)
    return user


async def touch_last_active(db: AsyncSession, user: User) -> None:
    """Stamp last_active_at on the user and their talent profile. Commits."""
    now = utcnow()
    user.last_active_at = now
    result = await db.execute(select(TalentProfile).where(TalentProfile.user_id == user.id))
    profile = result.scalar_one_or_none()
    if profile is not None:
        profile.last_active_at = now
    await db.commit()


async def authenticate_admin(db: AsyncSession, email: str, password: str) -> User:
    """
    Check the configured admin credentials and return the admin account,
    creating or promoting it on first use.

    Raises:
        UnauthorizedError: If admin login is not configured or the credentials differ
    """
    if not settings.admin_email or not settings.admin_password:
        raise UnauthorizedError("Admin login is not configured")

    email_ok = secrets.compare_digest(email.strip().lower(), settings.admin_email.strip().lower())
    password_ok = secrets.compare_digest(password.encode("utf-8"), settings.admin_password.encode("utf-8"))
    if not (email_ok and password_ok):
        logger.warning(f"Failed admin login for {email}")
        raise UnauthorizedError("Invalid admin credentials")

    user = await get_user_by_email(db, email)
    if user is None:
        user = await create_user(db, email, None, role=UserRole.ADMIN, first_name="Admin")
    elif user.role != UserRole.ADMIN:
        logger.info(f"Promoting {email} to admin")
        user.role = UserRole.ADMIN
    await touch_last_active(db, user)
    return user


async def change_password(db: AsyncSession, user: User, current_password: str, new_password: str) -> None:
    """
    Raises:
        UnauthorizedError: If the current password is wrong
        ValidationError: If the new password equals the current one
    """
    if not verify_password(current_password, user.password_hash):
        raise UnauthorizedError("Current password is incorrect")
    if current_password == new_password:
        raise ValidationError("New password must be different from the current password")
    user.password_hash = hash_password(new_password)
    user.updated_at = utcnow()
    await db.commit()
    logger.info(f"Password changed for {user.email}")


async def select_role(db: AsyncSession, user: User, role: UserRole) -> User:
    """
    A guest picks their role exactly once.

    Raises:
        ValidationError: If the role cannot be self-selected
        ForbiddenError: If the user already has a role
    """
    if role not in SELECTABLE_ROLES:
        raise ValidationError("Invalid role")
    if user.role != UserRole.GUEST:
        raise ForbiddenError("Role has already been selected")

    user.role = role
    user.updated_at = utcnow()
    if role == UserRole.TALENT:
        result = await db.execute(select(TalentProfile.id).where(TalentProfile.user_id == user.id))
        if result.first() is None:
            await create_talent_profile(db, user)
    await db.commit()
    await db.refresh(user)
    logger.info(f"User {user.email} selected role {role.value}")
    return user

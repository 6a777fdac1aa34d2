"""Company membership and CRUD business logic."""
import logging
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import select, or_, func
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.database_types import utcnow
from jobboard.errors import ForbiddenError, NotFoundError, ValidationError
from jobboard.models.company import Company, CompanyMember
from jobboard.models.user import User
from jobboard.services.slug import generate_unique_company_slug

logger = logging.getLogger(__name__)


# ============================================================
# MEMBERSHIP
# ============================================================

async def is_company_member(db: AsyncSession, user_id: UUID, company_id: UUID) -> bool:
    result = await db.execute(
        select(CompanyMember.id).where(
            CompanyMember.user_id == user_id,
            CompanyMember.company_id == company_id,
        )
    )
    return result.first() is not None


async def can_manage_company(db: AsyncSession, user: Optional[User], company_id: UUID) -> bool:
    """Company members and admins manage a company's jobs and applications."""
    if user is None:
        return False
    if user.is_admin():
        return True
    return await is_company_member(db, user.id, company_id)


async def require_company_access(db: AsyncSession, user: User, company_id: UUID) -> None:
    """
    Raises:
        ForbiddenError: If the user is neither a member nor an admin
    """
    if not await can_manage_company(db, user, company_id):
        logger.warning(f"User {user.email} denied access to company {company_id}")
        raise ForbiddenError("You are not a member of this company")


async def get_user_company_ids(db: AsyncSession, user_id: UUID) -> List[UUID]:
    result = await db.execute(
        select(CompanyMember.company_id).where(CompanyMember.user_id == user_id)
    )
    return list(result.scalars().all())


async def add_company_member(
    db: AsyncSession,
    company_id: UUID,
    user_id: UUID,
    is_owner: bool = False,
) -> CompanyMember:
    """Add a member once; an existing membership is returned unchanged. The caller commits."""
    result = await db.execute(
        select(CompanyMember).where(
            CompanyMember.company_id == company_id,
            CompanyMember.user_id == user_id,
        )
    )
    member = result.scalar_one_or_none()
    if member:
        return member

    member = CompanyMember(company_id=company_id, user_id=user_id, is_owner=is_owner)
    db.add(member)
    await db.flush()
    return member


async def list_company_members(db: AsyncSession, company_id: UUID) -> Sequence[CompanyMember]:
    result = await db.execute(
        select(CompanyMember)
        .where(CompanyMember.company_id == company_id)
        .order_by(CompanyMember.created_at)
    )
    return result.scalars().all()


# ============================================================
# COMPANIES
# ============================================================

async def get_company(db: AsyncSession, company_id: UUID) -> Company:
    """
    Raises:
        NotFoundError: If no company has this id
    """
    company = await db.get(Company, company_id)
    if not company:
        raise NotFoundError("Company not found")
    return company


async def get_company_by_slug(db: AsyncSession, slug: str) -> Optional[Company]:
    result = await db.execute(select(Company).where(Company.slug == slug))
    return result.scalar_one_or_none()


def _company_filters(search: Optional[str], is_hiring: Optional[bool], approved_only: bool) -> list:
    filters = []
    if approved_only:
        filters.append(Company.is_approved.is_(True))
    if search:
        pattern = f"%{search}%"
        filters.append(or_(Company.name.ilike(pattern), Company.location.ilike(pattern)))
    if is_hiring is not None:
        filters.append(Company.is_hiring.is_(is_hiring))
    return filters


async def list_companies(
    db: AsyncSession,
    search: Optional[str] = None,
    is_hiring: Optional[bool] = None,
    approved_only: bool = True,
    skip: int = 0,
    limit: int = 50,
) -> Sequence[Company]:
    query = (
        select(Company)
        .where(*_company_filters(search, is_hiring, approved_only))
        .order_by(Company.name)
        .offset(skip)
        .limit(limit)
    )
    result = await db.execute(query)
    return result.scalars().all()


async def count_companies(
    db: AsyncSession,
    search: Optional[str] = None,
    is_hiring: Optional[bool] = None,
    approved_only: bool = True,
) -> int:
    result = await db.execute(
        select(func.count(Company.id)).where(*_company_filters(search, is_hiring, approved_only))
    )
    return result.scalar_one()


async def list_user_companies(db: AsyncSession, user_id: UUID) -> Sequence[Company]:
    result = await db.execute(
        select(Company)
        .join(CompanyMember, CompanyMember.company_id == Company.id)
        .where(CompanyMember.user_id == user_id)
        .order_by(Company.created_at)
    )
    return result.scalars().all()


async def list_pending_companies(db: AsyncSession) -> Sequence[Company]:
    """Unapproved companies that have not been rejected yet."""
    result = await db.execute(
        select(Company)
        .where(Company.is_approved.is_(False), Company.rejected_at.is_(None))
        .order_by(Company.created_at)
    )
    return result.scalars().all()


async def create_company(
    db: AsyncSession,
    data: dict,
    owner: Optional[User] = None,
    approved: bool = False,
    created_by_admin: bool = False,
) -> Company:
    """
    Create a company with a unique slug. The owner, when given, becomes
    its first member. The caller commits.
    """
    name = (data.get("name") or "").strip()
    if not name:
        raise ValidationError("Company name is required")

    company = Company(
        **{k: v for k, v in data.items() if k != "name"},
        name=name,
        slug=await generate_unique_company_slug(db, name),
        is_approved=approved,
        created_by_admin=created_by_admin,
    )
    db.add(company)
    await db.flush()

    if owner is not None:
        await add_company_member(db, company.id, owner.id, is_owner=True)

    logger.info(f"Created company {company.slug} (approved={approved})")
    return company


async def update_company(db: AsyncSession, company: Company, update_data: dict) -> Company:
    """Apply a partial update. Renaming keeps the existing slug so links stay valid."""
    for field, value in update_data.items():
        setattr(company, field, value)
    company.updated_at = utcnow()
    await db.commit()
    await db.refresh(company)
    return company


async def set_company_approval(db: AsyncSession, company: Company, approved: bool) -> Company:
    company.is_approved = approved
    company.rejected_at = None if approved else utcnow()
    company.updated_at = utcnow()
    await db.commit()
    await db.refresh(company)
    logger.info(f"Company {company.slug} {'approved' if approved else 'rejected'}")
    return company

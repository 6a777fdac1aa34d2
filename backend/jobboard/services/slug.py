"""Company slugs derived from the company name."""
import re
import time

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.models.company import Company


def slugify(text: str) -> str:
    """
    Lowercase, collapse every run of non-alphanumerics into one dash and
    trim dashes from both ends. "Acme Labs, Inc." -> "acme-labs-inc".
    """
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower().strip())
    return slug.strip("-")


async def slug_exists(db: AsyncSession, slug: str) -> bool:
    result = await db.execute(select(Company.id).where(Company.slug == slug))
    return result.first() is not None


async def generate_unique_company_slug(db: AsyncSession, name: str) -> str:
    """
    Slug for a new company. Falls back to company-<ms timestamp> when the
    name has no usable characters; appends -1, -2, ... until unused.
    """
    base = slugify(name) or f"company-{int(time.time() * 1000)}"

    slug = base
    counter = 1
    while await slug_exists(db, slug):
        slug = f"{base}-{counter}"
        counter += 1
    return slug

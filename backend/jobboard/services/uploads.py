"""Upload validation and storage for resumes, logos and avatars."""
import logging
from pathlib import Path

from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.config import settings
from jobboard.errors import ValidationError
from jobboard.models.user import User
from jobboard.services.object_acl import ObjectAclPolicy
from jobboard.services.object_storage import StoredObject, new_entity_id, save_object

logger = logging.getLogger(__name__)

RESUME_TYPES = {
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}
IMAGE_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
}
PUBLIC_KINDS = ("logo", "avatar")


def validate_upload(file: UploadFile, allowed: dict) -> str:
    """
    Check the file extension and return the content type to store.

    Raises:
        ValidationError: If the extension is not allowed
    """
    ext = Path(file.filename or "").suffix.lower()
    if ext not in allowed:
        raise ValidationError(f"Invalid file type. Allowed: {', '.join(sorted(allowed))}")
    return ext


async def read_upload(file: UploadFile) -> bytes:
    """
    Raises:
        ValidationError: If the file is empty or larger than MAX_UPLOAD_MB
    """
    max_size = settings.max_upload_mb * 1024 * 1024
    data = await file.read(max_size + 1)
    if len(data) > max_size:
        raise ValidationError(f"File too large. Maximum size: {settings.max_upload_mb}MB")
    if not data:
        raise ValidationError("File is empty")
    return data


async def upload_resume(db: AsyncSession, user: User, file: UploadFile) -> StoredObject:
    """Store a private resume owned by the user and make it their default."""
    ext = validate_upload(file, RESUME_TYPES)
    data = await read_upload(file)

    stored = await save_object(
        new_entity_id("resumes", ext),
        data,
        RESUME_TYPES[ext],
        ObjectAclPolicy(owner=str(user.id), visibility="private"),
        original_filename=file.filename,
    )
    user.resume_path = stored.path
    await db.commit()
    logger.info(f"Resume uploaded for {user.email}: {stored.path}")
    return stored


async def upload_public_image(db: AsyncSession, user: User, kind: str, file: UploadFile) -> StoredObject:
    """
    Store a public logo or avatar. Avatars become the user's profile image;
    logos are attached to a company by updating it with the returned path.
    """
    if kind not in PUBLIC_KINDS:
        raise ValidationError(f"Unknown upload kind. Allowed: {', '.join(PUBLIC_KINDS)}")
    ext = validate_upload(file, IMAGE_TYPES)
    data = await read_upload(file)

    stored = await save_object(
        new_entity_id(f"public/{kind}s", ext),
        data,
        IMAGE_TYPES[ext],
        ObjectAclPolicy(owner=str(user.id), visibility="public"),
        original_filename=file.filename,
    )
    if kind == "avatar":
        user.profile_image_url = stored.path
        await db.commit()
    return stored

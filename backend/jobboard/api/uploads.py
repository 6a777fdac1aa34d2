"""
File uploads and object serving.

Uploaded files live in object storage under "/objects/<entity id>" and
carry an ACL policy in their metadata. GET /objects/... enforces it.
"""
import logging
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.api.auth import get_current_user, get_optional_user
from jobboard.database import get_db
from jobboard.models.user import User
from jobboard.services import uploads
from jobboard.services.object_acl import ObjectAclPolicy, ObjectPermission, can_access_object
from jobboard.services.object_storage import get_object_store

logger = logging.getLogger(__name__)

router = APIRouter()
objects_router = APIRouter()

PUBLIC_CACHE_CONTROL = "public, max-age=3600"
PRIVATE_CACHE_CONTROL = "private, max-age=0, no-store"


@router.post("/resume", status_code=201)
async def upload_resume(
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Upload a private resume (pdf, doc, docx); it becomes the default for applications."""
    stored = await uploads.upload_resume(db, current_user, file)
    return {"object_path": stored.path, "filename": file.filename}


@router.post("/public/{kind}", status_code=201)
async def upload_public(
    kind: str,
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Upload a public logo or avatar image."""
    stored = await uploads.upload_public_image(db, current_user, kind, file)
    return {"object_path": stored.path, "filename": file.filename}


@objects_router.get("/objects/{entity_id:path}")
async def get_object(
    entity_id: str,
    current_user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Serve a stored object.

    Raises:
        HTTPException 404: Unknown object
        HTTPException 403: The caller may not read it
    """
    stored = await get_object_store().get(entity_id)
    policy = ObjectAclPolicy.from_metadata(stored.metadata)
    if not await can_access_object(db, current_user, policy, ObjectPermission.READ):
        logger.warning(f"Denied read of /objects/{entity_id} to {current_user.email if current_user else 'anonymous'}")
        raise HTTPException(status_code=403, detail="Access denied")

    headers = {
        "Cache-Control": PUBLIC_CACHE_CONTROL if policy.visibility == "public" else PRIVATE_CACHE_CONTROL,
    }
    filename = stored.metadata.get("filename")
    if filename:
        headers["Content-Disposition"] = f"inline; filename*=UTF-8''{quote(filename)}"
    return Response(content=stored.data, media_type=stored.content_type, headers=headers)

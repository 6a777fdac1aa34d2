"""
Saved jobs and saved searches of the signed-in user.
"""
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.api.auth import get_current_user
from jobboard.database import get_db
from jobboard.models.user import User
from jobboard.schemas.saved import (
    SaveJobRequest,
    SavedJobResponse,
    SavedSearchCreate,
    SavedSearchResponse,
)
from jobboard.services import saved as saved_service

router = APIRouter()


@router.get("/saved-jobs", response_model=List[SavedJobResponse])
async def list_saved_jobs(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await saved_service.list_saved_jobs(db, current_user)


@router.post("/saved-jobs", response_model=SavedJobResponse, status_code=201)
async def save_job(
    body: SaveJobRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await saved_service.save_job(db, current_user, body.job_id)


@router.delete("/saved-jobs/{job_id}", status_code=204)
async def unsave_job(
    job_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await saved_service.unsave_job(db, current_user, job_id)
    return Response(status_code=204)


@router.get("/saved-searches", response_model=List[SavedSearchResponse])
async def list_saved_searches(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await saved_service.list_saved_searches(db, current_user)


@router.post("/saved-searches", response_model=SavedSearchResponse, status_code=201)
async def create_saved_search(
    body: SavedSearchCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Alert frequency is stored with the search; alerts are not sent from here."""
    return await saved_service.create_saved_search(db, current_user, body.model_dump())


@router.delete("/saved-searches/{search_id}", status_code=204)
async def delete_saved_search(
    search_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await saved_service.delete_saved_search(db, current_user, search_id)
    return Response(status_code=204)

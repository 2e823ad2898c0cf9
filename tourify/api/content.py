from typing import List
from fastapi import APIRouter, Depends, Query
import logging

from tourify.api.deps import get_content_service, http_error
from tourify.auth import get_current_user
from tourify.core.exceptions import AccountError
from tourify.schemas.content import JobPostingCreate, JobPostingRead, PostCreate, PostRead
from tourify.services.content_service import ContentService
from tourify.utils.pagination import PaginationParams

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/posts", response_model=PostRead)
async def create_post(
    post: PostCreate,
    user_id: str = Depends(get_current_user),
    service: ContentService = Depends(get_content_service)
):
    """Create a post attributed to the requested account type"""
    try:
        return service.create_post(user_id, post.account_type, post)
    except AccountError as e:
        logger.info(f"Post by {user_id} as {post.account_type} rejected: {type(e).__name__}")
        raise http_error(e)


@router.post("/jobs", response_model=JobPostingRead)
async def create_job_posting(
    job: JobPostingCreate,
    user_id: str = Depends(get_current_user),
    service: ContentService = Depends(get_content_service)
):
    """Create a job posting attributed to the requested account type"""
    try:
        return service.create_job_posting(user_id, job.account_type, job)
    except AccountError as e:
        logger.info(f"Job posting by {user_id} as {job.account_type} rejected: {type(e).__name__}")
        raise http_error(e)


@router.get("/accounts/{account_id}/posts", response_model=List[PostRead])
async def list_account_posts(
    account_id: str,
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
    user_id: str = Depends(get_current_user),
    service: ContentService = Depends(get_content_service)
):
    """List posts made as an account, newest first; private ones only for its owner"""
    try:
        return service.list_posts_by_account(
            account_id, PaginationParams(page=page, page_size=page_size), viewer_user_id=user_id
        )
    except AccountError as e:
        raise http_error(e)


@router.post("/accounts/{account_id}/backfill")
async def backfill_attribution(
    account_id: str,
    user_id: str = Depends(get_current_user),
    service: ContentService = Depends(get_content_service)
):
    """Rewrite the attribution of an account's content from its current display info"""
    try:
        return {"updated": service.backfill_attribution(user_id, account_id)}
    except AccountError as e:
        raise http_error(e)

from typing import List, Union

from fastapi import APIRouter, Body, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.security import current_user_id
from app.services import comments as comment_service
from schemas.blog import CommentCreate, CommentPatchOperation, CommentRead, CommentUpdate

router = APIRouter()


@router.post("", response_model=CommentRead, status_code=201)
async def create_comment(
    payload: CommentCreate,
    user_id: str = Depends(current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await comment_service.create_comment(db, payload, user_id)


@router.get("/blogpost/{post_id}", response_model=List[CommentRead])
async def list_comments_for_post(post_id: int, db: AsyncSession = Depends(get_db)):
    return await comment_service.list_comments_for_post(db, post_id)


@router.get("/{comment_id}", response_model=CommentRead)
async def get_comment(comment_id: int, db: AsyncSession = Depends(get_db)):
    return await comment_service.get_comment(db, comment_id)


@router.patch("/{comment_id}", response_model=CommentRead)
async def update_comment(
    comment_id: int,
    payload: Union[List[CommentPatchOperation], CommentUpdate] = Body(...),
    user_id: str = Depends(current_user_id),
    db: AsyncSession = Depends(get_db),
):
    # accepts a merge document or a JSON Patch list scoped to /content
    if isinstance(payload, list):
        payload = comment_service.comment_update_from_patch(payload)
    return await comment_service.update_comment(db, comment_id, payload, user_id)


@router.delete("/{comment_id}", status_code=204)
async def delete_comment(
    comment_id: int,
    user_id: str = Depends(current_user_id),
    db: AsyncSession = Depends(get_db),
):
    await comment_service.delete_comment(db, comment_id, user_id)
    return Response(status_code=204)

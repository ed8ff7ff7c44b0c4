from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.security import current_user_id
from app.services import likes as like_service
from schemas.blog import LikeRead, LikeToggleRequest, LikeToggleResponse

router = APIRouter()


@router.post("", response_model=LikeToggleResponse)
async def toggle_like(
    payload: LikeToggleRequest,
    user_id: str = Depends(current_user_id),
    db: AsyncSession = Depends(get_db),
):
    liked = await like_service.toggle_like(db, user_id, post_id=payload.post_id, comment_id=payload.comment_id)
    return LikeToggleResponse(liked=liked, message="Liked." if liked else "Unliked.")


@router.get("/post/{post_id}", response_model=List[LikeRead])
async def list_likes_for_post(post_id: int, db: AsyncSession = Depends(get_db)):
    return await like_service.list_likes_for_post(db, post_id)


@router.get("/comment/{comment_id}", response_model=List[LikeRead])
async def list_likes_for_comment(comment_id: int, db: AsyncSession = Depends(get_db)):
    return await like_service.list_likes_for_comment(db, comment_id)

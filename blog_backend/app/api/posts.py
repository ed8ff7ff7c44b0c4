from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.security import current_user_id
from app.services import posts as post_service
from schemas.blog import PostCreate, PostImagesResponse, PostPage, PostRead, PostUpdate

router = APIRouter()


@router.get("", response_model=List[PostRead])
async def list_posts(
    filter_on: Optional[str] = None,
    filter_query: Optional[str] = None,
    sort_by: Optional[str] = None,
    is_ascending: bool = True,
    page_number: Optional[int] = Query(None, ge=1),
    page_size: Optional[int] = Query(None, ge=1),
    db: AsyncSession = Depends(get_db),
):
    return await post_service.list_posts(
        db,
        filter_on=filter_on,
        filter_query=filter_query,
        sort_by=sort_by,
        is_ascending=is_ascending,
        page_number=page_number,
        page_size=page_size,
    )


@router.get("/category/{category}", response_model=PostPage)
async def list_posts_by_category(
    category: str,
    page_number: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, ge=1),
    db: AsyncSession = Depends(get_db),
):
    return await post_service.list_posts_by_category(db, category, page_number, page_size)


@router.get("/{post_id}", response_model=PostRead)
async def get_post(post_id: int, db: AsyncSession = Depends(get_db)):
    return await post_service.get_post(db, post_id)


@router.get("/{post_id}/images", response_model=PostImagesResponse)
async def get_post_images(post_id: int, db: AsyncSession = Depends(get_db)):
    image_urls = await post_service.get_post_images(db, post_id)
    return PostImagesResponse(post_id=post_id, image_urls=image_urls)


@router.post("", response_model=PostRead, status_code=201)
async def create_post(
    payload: PostCreate,
    user_id: str = Depends(current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await post_service.create_post(db, payload, user_id)


@router.put("/{post_id}", response_model=PostRead)
async def update_post(
    post_id: int,
    payload: PostUpdate,
    user_id: str = Depends(current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await post_service.update_post(db, post_id, payload, user_id)


@router.delete("/{post_id}", status_code=204)
async def delete_post(
    post_id: int,
    user_id: str = Depends(current_user_id),
    db: AsyncSession = Depends(get_db),
):
    await post_service.delete_post(db, post_id, user_id)
    return Response(status_code=204)

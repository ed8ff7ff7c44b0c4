import logging
from datetime import datetime

from sqlalchemy import delete, func, insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.errors import DatabaseOperationError, ForbiddenError, InvalidArgumentError, NotFoundError
from app.security import mask_user_id
from app.services.comments import collect_thread_levels, delete_comment_levels
from app.services.tags import resolve_tags
from app.services.views import build_post_reads, decode_image_urls, encode_image_urls
from app.utils.image_urls import dedupe_urls, validate_image_urls
from models.blog import BlogCategory, Comment, Like, Post, post_tags
from schemas.blog import PostCreate, PostPage, PostRead, PostUpdate

logger = logging.getLogger("blog.posts")

FILTER_FIELDS = {"title"}
SORT_FIELDS = {"created_at", "createdat"}


def _validated_image_urls(payload: PostCreate) -> list[str]:
    if len(payload.tags) > settings.MAX_TAGS_PER_POST:
        raise InvalidArgumentError(f"Max tags per blog post is {settings.MAX_TAGS_PER_POST}.")
    if len(payload.image_urls) > settings.MAX_IMAGES_PER_POST:
        raise InvalidArgumentError(f"Maximum {settings.MAX_IMAGES_PER_POST} images allowed per blog post.")
    is_valid, invalid_urls = validate_image_urls(payload.image_urls)
    if not is_valid:
        raise InvalidArgumentError(f"Invalid image URLs: {', '.join(invalid_urls)}")
    return dedupe_urls(payload.image_urls)


def _check_page(page_number: int, page_size: int) -> None:
    if page_number < 1:
        raise InvalidArgumentError("page_number must be at least 1")
    if page_size < 1 or page_size > settings.MAX_PAGE_SIZE:
        raise InvalidArgumentError(f"page_size must be between 1 and {settings.MAX_PAGE_SIZE}")


async def _get_post_or_404(db: AsyncSession, post_id: int) -> Post:
    post = (await db.execute(select(Post).where(Post.id == post_id))).scalar_one_or_none()
    if not post:
        raise NotFoundError(f"Blog post ID: {post_id} not found.")
    return post


def _require_owner(post: Post, user_id: str, action: str) -> None:
    if post.user_id != user_id:
        logger.warning("POST_DENY action=%s post=%s user=%s", action, post.id, mask_user_id(user_id))
        raise ForbiddenError()


async def _replace_tags(db: AsyncSession, post_id: int, names) -> None:
    tags = await resolve_tags(db, names)
    await db.execute(delete(post_tags).where(post_tags.c.post_id == post_id))
    if tags:
        await db.execute(insert(post_tags), [{"post_id": post_id, "tag_id": tag.id} for tag in tags])


async def create_post(db: AsyncSession, payload: PostCreate, user_id: str) -> PostRead:
    image_urls = _validated_image_urls(payload)
    post = Post(
        user_id=user_id,
        title=payload.title,
        content=payload.content,
        category=payload.category.value,
        image_urls=encode_image_urls(image_urls),
    )
    try:
        db.add(post)
        await db.flush()
        await _replace_tags(db, post.id, payload.tags)
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("POST_CREATE_FAILED user=%s", mask_user_id(user_id))
        raise DatabaseOperationError("Failed to create blog post") from exc
    await db.refresh(post)
    logger.info("POST_CREATE id=%s user=%s", post.id, mask_user_id(user_id))
    return (await build_post_reads(db, [post], with_comments=True))[0]


async def get_post(db: AsyncSession, post_id: int) -> PostRead:
    post = await _get_post_or_404(db, post_id)
    return (await build_post_reads(db, [post], with_comments=True))[0]


async def list_posts(
    db: AsyncSession,
    filter_on: str | None = None,
    filter_query: str | None = None,
    sort_by: str | None = None,
    is_ascending: bool = True,
    page_number: int | None = None,
    page_size: int | None = None,
) -> list[PostRead]:
    """List posts, optionally filtered by title and sorted by creation time.

    Unknown filter or sort fields are ignored rather than rejected.
    Pagination applies only when ``page_size`` is given.
    """
    query = select(Post)
    if filter_on and filter_query and filter_on.strip().lower() in FILTER_FIELDS:
        query = query.where(func.lower(Post.title).contains(filter_query.strip().lower(), autoescape=True))
    if sort_by and sort_by.strip().lower() in SORT_FIELDS:
        if is_ascending:
            query = query.order_by(Post.created_at.asc(), Post.id.asc())
        else:
            query = query.order_by(Post.created_at.desc(), Post.id.desc())
    else:
        query = query.order_by(Post.id)
    if page_size is not None:
        page_number = page_number or 1
        _check_page(page_number, page_size)
        query = query.offset((page_number - 1) * page_size).limit(page_size)
    posts = list((await db.execute(query)).scalars().all())
    return await build_post_reads(db, posts)


async def list_posts_by_category(
    db: AsyncSession,
    category,
    page_number: int = 1,
    page_size: int | None = None,
) -> PostPage:
    try:
        category = BlogCategory.parse(category)
    except ValueError as exc:
        raise InvalidArgumentError(str(exc)) from exc
    page_size = page_size or settings.DEFAULT_PAGE_SIZE
    _check_page(page_number, page_size)

    total = (await db.execute(
        select(func.count(Post.id)).where(Post.category == category.value)
    )).scalar_one() or 0
    rows = await db.execute(
        select(Post)
        .where(Post.category == category.value)
        .order_by(Post.created_at.desc(), Post.id.desc())
        .offset((page_number - 1) * page_size)
        .limit(page_size)
    )
    items = await build_post_reads(db, list(rows.scalars().all()))
    return PostPage(items=items, total_count=total, page_number=page_number, page_size=page_size)


async def update_post(db: AsyncSession, post_id: int, payload: PostUpdate, user_id: str) -> PostRead:
    post = await _get_post_or_404(db, post_id)
    _require_owner(post, user_id, "update")
    image_urls = _validated_image_urls(payload)
    try:
        post.title = payload.title
        post.content = payload.content
        post.category = payload.category.value
        post.image_urls = encode_image_urls(image_urls)
        post.updated_at = datetime.utcnow()
        await _replace_tags(db, post.id, payload.tags)
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("POST_UPDATE_FAILED id=%s", post_id)
        raise DatabaseOperationError("Failed to update blog post") from exc
    logger.info("POST_UPDATE id=%s user=%s", post_id, mask_user_id(user_id))
    return (await build_post_reads(db, [post], with_comments=True))[0]


async def delete_post(db: AsyncSession, post_id: int, user_id: str) -> None:
    post = await _get_post_or_404(db, post_id)
    _require_owner(post, user_id, "delete")
    try:
        rows = await db.execute(
            select(Comment.id).where(Comment.post_id == post_id, Comment.parent_comment_id.is_(None))
        )
        levels = await collect_thread_levels(db, [cid for (cid,) in rows.all()])
        await delete_comment_levels(db, levels)
        await db.execute(delete(Like).where(Like.post_id == post_id))
        await db.execute(delete(post_tags).where(post_tags.c.post_id == post_id))
        await db.execute(delete(Post).where(Post.id == post_id))
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("POST_DELETE_FAILED id=%s", post_id)
        raise DatabaseOperationError("Failed to delete blog post") from exc
    logger.info("POST_DELETE id=%s user=%s", post_id, mask_user_id(user_id))


async def get_post_images(db: AsyncSession, post_id: int) -> list[str]:
    post = await _get_post_or_404(db, post_id)
    return decode_image_urls(post.image_urls)

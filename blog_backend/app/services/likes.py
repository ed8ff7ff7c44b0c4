import logging

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import DatabaseOperationError, InvalidArgumentError, NotFoundError
from app.security import mask_user_id
from app.services.views import like_to_read, load_comment_likes, load_post_likes, load_user_names
from models.blog import Comment, Like, Post
from schemas.blog import LikeRead

logger = logging.getLogger("blog.likes")


def _target_filter(post_id: int | None, comment_id: int | None):
    # both columns are matched so a post like never matches a comment like
    return (
        Like.post_id.is_(None) if post_id is None else Like.post_id == post_id,
        Like.comment_id.is_(None) if comment_id is None else Like.comment_id == comment_id,
    )


async def _like_exists(db: AsyncSession, user_id: str, post_id: int | None, comment_id: int | None) -> bool:
    row = await db.execute(
        select(Like.id).where(Like.user_id == user_id, *_target_filter(post_id, comment_id)).limit(1)
    )
    return row.first() is not None


async def _ensure_target_exists(db: AsyncSession, post_id: int | None, comment_id: int | None) -> None:
    if post_id is not None:
        found = (await db.execute(select(Post.id).where(Post.id == post_id))).scalar_one_or_none()
        if found is None:
            raise NotFoundError(f"Blog post ID: {post_id} not found.")
    else:
        found = (await db.execute(select(Comment.id).where(Comment.id == comment_id))).scalar_one_or_none()
        if found is None:
            raise NotFoundError(f"Comment with ID {comment_id} not found.")


async def toggle_like(
    db: AsyncSession,
    user_id: str,
    post_id: int | None = None,
    comment_id: int | None = None,
) -> bool:
    """Flip the like state of ``user_id`` on exactly one target.

    Returns True when the target is liked afterwards, False when unliked.
    The delete is a single conditional statement; the insert runs in a
    savepoint so that losing a race against a concurrent insert of the same
    pair resolves to "liked" instead of surfacing the unique-index error.
    Any other insert failure, such as the target disappearing, leaves no
    like behind and raises DatabaseOperationError.
    """
    if (post_id is None) == (comment_id is None):
        raise InvalidArgumentError("must specify exactly one of post or comment")
    await _ensure_target_exists(db, post_id, comment_id)
    target = f"post:{post_id}" if post_id is not None else f"comment:{comment_id}"

    try:
        result = await db.execute(delete(Like).where(Like.user_id == user_id, *_target_filter(post_id, comment_id)))
        if result.rowcount:
            await db.commit()
            logger.info("LIKE_TOGGLE user=%s target=%s liked=0", mask_user_id(user_id), target)
            return False
        try:
            async with db.begin_nested():
                db.add(Like(user_id=user_id, post_id=post_id, comment_id=comment_id))
        except IntegrityError as exc:
            if not await _like_exists(db, user_id, post_id, comment_id):
                await db.rollback()
                logger.warning("LIKE_TOGGLE_FAILED user=%s target=%s reason=integrity", mask_user_id(user_id), target)
                raise DatabaseOperationError("Failed to toggle like") from exc
            logger.info("LIKE_TOGGLE_RACE user=%s target=%s", mask_user_id(user_id), target)
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("LIKE_TOGGLE_FAILED user=%s target=%s", mask_user_id(user_id), target)
        raise DatabaseOperationError("Failed to toggle like") from exc
    logger.info("LIKE_TOGGLE user=%s target=%s liked=1", mask_user_id(user_id), target)
    return True


async def _likes_to_read(db: AsyncSession, likes: list[Like]) -> list[LikeRead]:
    names = await load_user_names(db, [like.user_id for like in likes])
    return [like_to_read(like, names) for like in likes]


async def list_likes_for_post(db: AsyncSession, post_id: int) -> list[LikeRead]:
    await _ensure_target_exists(db, post_id, None)
    likes_map = await load_post_likes(db, [post_id])
    return await _likes_to_read(db, likes_map.get(post_id, []))


async def list_likes_for_comment(db: AsyncSession, comment_id: int) -> list[LikeRead]:
    await _ensure_target_exists(db, None, comment_id)
    likes_map = await load_comment_likes(db, [comment_id])
    return await _likes_to_read(db, likes_map.get(comment_id, []))
